"""Metric aggregator - per-entity counts over the fact relations.

Each metric is its own grouping pass over exactly one fact relation, keyed by
the owning entity id, and always returns a count for every entity (zero when
the entity never appears in the relation). Multi-metric reports combine the
single-metric mappings with ``merge_metrics``.

Never count several fact relations in one pass: a photo with 3 likes and 2
comments joined row-by-row yields 6 rows, which inflates both counts.
"""
import logging
from typing import Callable, Dict, Iterable, Optional, Sequence

from .store import EntityStore
from .windowing import TimeWindow, filter_window


logger = logging.getLogger(__name__)

Counts = Dict[int, int]


def count_by(keys: Iterable[int], rows: Iterable, key_fn: Callable) -> Counts:
    """Count rows per key; every key starts at zero, unknown keys are ignored."""
    counts: Counts = {key: 0 for key in keys}
    for row in rows:
        key = key_fn(row)
        if key in counts:
            counts[key] += 1
    return counts


def merge_metrics(keys: Iterable[int], **metrics: Counts) -> Dict[int, Dict[str, int]]:
    """Keyed left-merge of single-metric mappings, absent keys default to 0."""
    return {
        key: {name: counts.get(key, 0) for name, counts in metrics.items()}
        for key in keys
    }


# =============================================================================
# User metrics
# =============================================================================

def posts_created(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    return count_by(store.user_ids(), filter_window(store.photos, window), lambda p: p.user_id)


def likes_given(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    return count_by(store.user_ids(), filter_window(store.likes, window), lambda l: l.user_id)


def comments_given(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    return count_by(store.user_ids(), filter_window(store.comments, window), lambda c: c.user_id)


def likes_received(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    """Likes on photos the user owns, keyed by photo owner."""
    return count_by(
        store.user_ids(),
        filter_window(store.likes, window),
        lambda l: store.photo_owner(l.photo_id),
    )


def comments_received(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    """Comments on photos the user owns, keyed by photo owner."""
    return count_by(
        store.user_ids(),
        filter_window(store.comments, window),
        lambda c: store.photo_owner(c.photo_id),
    )


def tags_received(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    """Tag applications on photos the user owns.

    Photo tags carry no timestamp of their own; a window keeps the tags of
    photos created inside it.
    """
    photo_ids = {p.id for p in filter_window(store.photos, window)}
    return count_by(
        store.user_ids(),
        (pt for pt in store.photo_tags if pt.photo_id in photo_ids),
        lambda pt: store.photo_owner(pt.photo_id),
    )


def follower_count(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    return count_by(store.user_ids(), filter_window(store.follows, window), lambda f: f.followee_id)


def following_count(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    return count_by(store.user_ids(), filter_window(store.follows, window), lambda f: f.follower_id)


USER_METRICS: Dict[str, Callable[..., Counts]] = {
    "posts_created": posts_created,
    "likes_given": likes_given,
    "comments_given": comments_given,
    "likes_received": likes_received,
    "comments_received": comments_received,
    "tags_received": tags_received,
    "follower_count": follower_count,
    "following_count": following_count,
}


def aggregate_user_metrics(
    store: EntityStore,
    names: Sequence[str],
    window: Optional[TimeWindow] = None,
) -> Dict[int, Dict[str, int]]:
    """Compute each named metric in its own pass, then merge by user id."""
    unknown = [name for name in names if name not in USER_METRICS]
    if unknown:
        raise KeyError(f"Unknown user metric(s): {unknown}")

    passes = {name: USER_METRICS[name](store, window) for name in names}
    logger.debug(f"Aggregated {len(passes)} user metric(s) over {len(store.users)} users")
    return merge_metrics(store.user_ids(), **passes)


# =============================================================================
# Photo metrics
# =============================================================================

def photo_likes(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    return count_by(store.photo_ids(), filter_window(store.likes, window), lambda l: l.photo_id)


def photo_comments(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    return count_by(store.photo_ids(), filter_window(store.comments, window), lambda c: c.photo_id)


def photo_tags(store: EntityStore) -> Counts:
    return count_by(store.photo_ids(), store.photo_tags, lambda pt: pt.photo_id)


# =============================================================================
# Tag metrics
# =============================================================================

def posts_using_tag(store: EntityStore) -> Counts:
    return count_by(store.tag_ids(), store.photo_tags, lambda pt: pt.tag_id)


def _sum_over_tagged_photos(store: EntityStore, per_photo: Counts) -> Counts:
    # Distributes an already-aggregated per-photo count onto each tag of the photo
    totals: Counts = {tag_id: 0 for tag_id in store.tag_ids()}
    for pt in store.photo_tags:
        if pt.tag_id in totals:
            totals[pt.tag_id] += per_photo.get(pt.photo_id, 0)
    return totals


def tag_likes_received(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    return _sum_over_tagged_photos(store, photo_likes(store, window))


def tag_comments_received(store: EntityStore, window: Optional[TimeWindow] = None) -> Counts:
    return _sum_over_tagged_photos(store, photo_comments(store, window))


def tag_metrics(store: EntityStore, window: Optional[TimeWindow] = None) -> Dict[int, Dict[str, int]]:
    """Posts, likes and comments per tag, each from an independent pass."""
    return merge_metrics(
        store.tag_ids(),
        posts_using_tag=posts_using_tag(store),
        likes_received=tag_likes_received(store, window),
        comments_received=tag_comments_received(store, window),
    )


def photo_metrics(store: EntityStore) -> Dict[int, Dict[str, int]]:
    return merge_metrics(
        store.photo_ids(),
        likes=photo_likes(store),
        comments=photo_comments(store),
        tags=photo_tags(store),
    )
