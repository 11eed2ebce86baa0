"""Generate a reproducible synthetic dataset for demos and manual checks.

Produces the full schema: users, photos, likes, comments, follows, tags,
photo_tags and a user_interactions log. Activity follows a skewed
distribution so every segment and ranking tie shows up.
"""
from __future__ import annotations

import random
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from .models import (
    User, Photo, Like, Comment, Follow, Tag, PhotoTag, UserInteraction, utc_now
)


FIRST_NAMES = [
    "alex", "jordan", "taylor", "morgan", "casey", "riley", "avery", "quinn",
    "blake", "drew", "jamie", "sam", "chris", "pat", "lee", "max", "sky",
    "ash", "sage", "river", "luna", "nova", "echo",
]

TOPICS = [
    "sunset", "photography", "food", "travel", "fashion", "beach", "party",
    "dreamy", "lol", "happy", "fun", "style", "hair", "concert", "drunk",
    "foodie", "smile", "landscape", "stunning", "delicious", "beauty",
]

COMMENT_SNIPPETS = [
    "Love this!",
    "Where was this taken?",
    "So good",
    "Stunning shot",
    "Need this in my life",
    "Great colors",
]


def generate_username(rng: random.Random) -> str:
    style = rng.choice(["name_topic", "name_num", "topic_name"])

    if style == "name_topic":
        return f"{rng.choice(FIRST_NAMES)}_{rng.choice(TOPICS)}"
    if style == "name_num":
        return f"{rng.choice(FIRST_NAMES)}{rng.randint(1, 999)}"
    return f"{rng.choice(TOPICS)}{rng.choice(FIRST_NAMES)}"


def _random_time(rng: random.Random, start: datetime, end: datetime) -> datetime:
    span = (end - start).total_seconds()
    return start + timedelta(seconds=rng.uniform(0, span))


def generate_sample_dataset(
    db: Session,
    users: int = 100,
    days: int = 120,
    seed: int = 42,
    reference_time: datetime | None = None,
) -> dict:
    """Insert a synthetic dataset and return per-relation row counts."""
    rng = random.Random(seed)
    end = reference_time or utc_now()
    start = end - timedelta(days=days)

    user_rows = [
        User(id=i, username=generate_username(rng), created_at=_random_time(rng, start, end))
        for i in range(1, users + 1)
    ]
    db.add_all(user_rows)

    tag_rows = [Tag(id=i, tag_name=name) for i, name in enumerate(TOPICS, start=1)]
    db.add_all(tag_rows)
    db.flush()

    # About a quarter of users never post; the rest follow a long tail
    photos: list[Photo] = []
    for user in user_rows:
        if rng.random() < 0.25:
            continue
        for _ in range(min(int(rng.paretovariate(1.5)), 12)):
            photos.append(Photo(
                id=len(photos) + 1,
                image_url=f"https://example.com/photos/{len(photos) + 1}.jpg",
                user_id=user.id,
                created_at=_random_time(rng, start, end),
            ))
    db.add_all(photos)
    db.flush()

    photo_tags: list[PhotoTag] = []
    for photo in photos:
        for tag in rng.sample(tag_rows, k=rng.randint(0, 5)):
            photo_tags.append(PhotoTag(photo_id=photo.id, tag_id=tag.id))
    db.add_all(photo_tags)

    likes: list[Like] = []
    comments: list[Comment] = []
    interactions: list[UserInteraction] = []
    for user in user_rows:
        appetite = rng.random()
        if appetite < 0.15 or not photos:
            continue
        liked = rng.sample(photos, k=min(len(photos), int(appetite * 25)))
        for photo in liked:
            created = _random_time(rng, photo.created_at, end)
            likes.append(Like(user_id=user.id, photo_id=photo.id, created_at=created))
            interactions.append(UserInteraction(
                user_id=user.id, photo_id=photo.id, engagement_type="Like", created_at=created
            ))
        for photo in rng.sample(liked, k=len(liked) // 3):
            created = _random_time(rng, photo.created_at, end)
            comments.append(Comment(
                comment_text=rng.choice(COMMENT_SNIPPETS),
                user_id=user.id,
                photo_id=photo.id,
                created_at=created,
            ))
            interactions.append(UserInteraction(
                user_id=user.id, photo_id=photo.id, engagement_type="Comment", created_at=created
            ))
    db.add_all(likes)
    db.add_all(comments)
    db.add_all(interactions)

    follows: list[Follow] = []
    for follower in user_rows:
        targets = rng.sample(user_rows, k=rng.randint(0, min(15, users - 1)))
        for followee in targets:
            if followee.id == follower.id:
                continue
            follows.append(Follow(
                follower_id=follower.id,
                followee_id=followee.id,
                created_at=_random_time(rng, start, end),
            ))
    db.add_all(follows)
    db.commit()

    return {
        "users": len(user_rows),
        "photos": len(photos),
        "likes": len(likes),
        "comments": len(comments),
        "follows": len(follows),
        "tags": len(tag_rows),
        "photo_tags": len(photo_tags),
        "user_interactions": len(interactions),
    }
