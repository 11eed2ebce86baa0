"""Report catalogue - one named operation per analytic question.

Every report runs the same way:
1. capture the reference instant once
2. load a single snapshot of the entity store
3. run the data-quality pass (strict mode turns dangling references fatal)
4. build flat records from independently aggregated metrics

Any exception abandons the whole report; nothing partial is returned.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from . import metrics as m
from .config import settings
from .mutual import detect_follow_backs
from .ranking import DENSE, GAPPED, asc, desc, rank_records, top_n
from .scoring import (
    ActivityWeights, ADVOCATE_WEIGHTS, EQUAL_WEIGHTS,
    activity_score, avg_engagement_per_post, engagement_rate, engagement_score,
    safe_ratio, total_engagement,
)
from .segments import THRESHOLD_SETS, ThresholdSet, get_threshold_set
from .store import EntityStore, as_utc
from .validation import DataQualityReport, validate
from .windowing import TimeWindow, utc_now


logger = logging.getLogger(__name__)


class UnknownReportError(Exception):
    """No report is registered under the requested name."""
    pass


class ReportConfig(BaseModel):
    """Options accepted by every report; unset options fall back to report defaults."""
    limit: int = Field(default_factory=lambda: settings.default_limit, ge=1)
    window_days: int = Field(default_factory=lambda: settings.default_window_days, ge=0)
    threshold_set: Optional[str] = None
    weights: Optional[ActivityWeights] = None
    strict: bool = Field(default_factory=lambda: settings.strict_validation)

    @field_validator("threshold_set")
    @classmethod
    def _known_threshold_set(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in THRESHOLD_SETS:
            raise ValueError(f"threshold_set must be one of {sorted(THRESHOLD_SETS)}")
        return value


@dataclass
class ReportContext:
    """Everything a report builder may read. Built once per report."""
    store: EntityStore
    config: ReportConfig
    reference_instant: datetime
    diagnostics: DataQualityReport
    thresholds: ThresholdSet
    weights: ActivityWeights
    notes: dict = field(default_factory=dict)

    @property
    def window(self) -> TimeWindow:
        return TimeWindow.trailing_days(self.reference_instant, self.config.window_days)

    def user_row(self, user_id: int) -> dict:
        return {"user_id": user_id, "username": self.store.username(user_id)}


@dataclass
class ReportResult:
    name: str
    description: str
    reference_instant: datetime
    config: ReportConfig
    records: List[dict]
    diagnostics: DataQualityReport
    notes: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "reference_instant": self.reference_instant.isoformat(),
            "config": self.config.model_dump(),
            "records": self.records,
            "diagnostics": self.diagnostics.to_dict(),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ReportSpec:
    name: str
    description: str
    build: Callable[[ReportContext], List[dict]]
    default_threshold_set: Optional[str] = None
    default_weights: ActivityWeights = EQUAL_WEIGHTS


REPORTS: Dict[str, ReportSpec] = {}


def report(name: str, description: str, **defaults):
    """Register a report builder under ``name``."""
    def decorator(build):
        REPORTS[name] = ReportSpec(name=name, description=description, build=build, **defaults)
        return build
    return decorator


def get_report(name: str) -> ReportSpec:
    try:
        return REPORTS[name]
    except KeyError:
        raise UnknownReportError(
            f"Unknown report '{name}'. Available: {', '.join(sorted(REPORTS))}"
        ) from None


def build_report(
    name: str,
    store: EntityStore,
    config: Optional[ReportConfig] = None,
    reference_instant: Optional[datetime] = None,
) -> ReportResult:
    """Run a report against an already loaded snapshot."""
    spec = get_report(name)
    config = config or ReportConfig()
    reference_instant = as_utc(reference_instant) if reference_instant else utc_now()

    logger.info(f"Running report '{name}' at {reference_instant.isoformat()}")

    diagnostics = validate(store, strict=config.strict)
    ctx = ReportContext(
        store=store,
        config=config,
        reference_instant=reference_instant,
        diagnostics=diagnostics,
        thresholds=get_threshold_set(
            config.threshold_set or spec.default_threshold_set or settings.default_threshold_set
        ),
        weights=config.weights or spec.default_weights,
    )
    records = spec.build(ctx)

    logger.info(f"Report '{name}' produced {len(records)} record(s)")
    return ReportResult(
        name=name,
        description=spec.description,
        reference_instant=reference_instant,
        config=config,
        records=records,
        diagnostics=diagnostics,
        notes=ctx.notes,
    )


def run_report(
    name: str,
    db: Session,
    config: Optional[ReportConfig] = None,
    reference_instant: Optional[datetime] = None,
) -> ReportResult:
    """Load a snapshot from ``db`` and run the named report on it."""
    get_report(name)
    if reference_instant is None:
        reference_instant = utc_now()
    store = EntityStore.load(db)
    return build_report(name, store, config, reference_instant)


# =============================================================================
# Data quality & distribution
# =============================================================================

@report("data_quality", "Null and duplicate spot checks across all relations")
def _data_quality(ctx: ReportContext) -> List[dict]:
    ctx.notes["duplicate_usernames"] = ctx.diagnostics.duplicate_usernames
    return ctx.diagnostics.findings()


@report(
    "activity_distribution",
    "Number of users per activity level (posts + likes + comments)",
    default_threshold_set="distribution",
)
def _activity_distribution(ctx: ReportContext) -> List[dict]:
    users = m.aggregate_user_metrics(ctx.store, ["posts_created", "likes_given", "comments_given"])

    counts = {label: 0 for label in ctx.thresholds.activity_labels()}
    for values in users.values():
        counts[ctx.thresholds.activity_segment(activity_score(values, ctx.weights))] += 1

    return [{"activity_level": label, "user_count": n} for label, n in counts.items()]


@report("avg_tags_per_post", "Average number of tags per photo")
def _avg_tags_per_post(ctx: ReportContext) -> List[dict]:
    per_photo = m.photo_tags(ctx.store)
    tag_count = sum(per_photo.values())
    return [{
        "photo_count": len(per_photo),
        "tag_count": tag_count,
        "avg_tags_per_post": safe_ratio(tag_count, len(per_photo)),
    }]


@report("inactive_users", "Users with no posts, likes or comments versus everyone else")
def _inactive_users(ctx: ReportContext) -> List[dict]:
    users = m.aggregate_user_metrics(ctx.store, ["posts_created", "likes_given", "comments_given"])
    inactive = sum(1 for values in users.values() if activity_score(values) == 0)
    return [
        {"user_status": "Inactive", "user_count": inactive},
        {"user_status": "Active", "user_count": len(users) - inactive},
    ]


@report("never_liked", "Users who have never liked a photo")
def _never_liked(ctx: ReportContext) -> List[dict]:
    likes = m.likes_given(ctx.store)
    return [ctx.user_row(user_id) for user_id in sorted(likes) if likes[user_id] == 0]


# =============================================================================
# User engagement
# =============================================================================

def _engagement_rows(ctx: ReportContext) -> List[dict]:
    users = m.aggregate_user_metrics(
        ctx.store, ["posts_created", "likes_received", "comments_received"]
    )
    rows = []
    for user_id, values in users.items():
        row = ctx.user_row(user_id)
        row.update(
            total_posts=values["posts_created"],
            likes_received=values["likes_received"],
            comments_received=values["comments_received"],
            total_engagement=total_engagement(values),
            avg_engagement_per_post=avg_engagement_per_post(values),
        )
        rows.append(row)
    return rows


@report("top_engagement_rate", "Users with the highest average engagement per post")
def _top_engagement_rate(ctx: ReportContext) -> List[dict]:
    return rank_records(
        _engagement_rows(ctx),
        [desc("avg_engagement_per_post"), desc("total_engagement")],
        discipline=GAPPED,
        rank_field="rank_by_avg",
        limit=ctx.config.limit,
    )


@report("engagement_per_post", "Average engagement per post for every user")
def _engagement_per_post(ctx: ReportContext) -> List[dict]:
    return top_n(
        _engagement_rows(ctx),
        [desc("avg_engagement_per_post"), desc("total_engagement")],
    )


@report("user_engagement_totals", "Likes, comments and tags received per user")
def _user_engagement_totals(ctx: ReportContext) -> List[dict]:
    users = m.aggregate_user_metrics(
        ctx.store, ["likes_received", "comments_received", "tags_received"]
    )
    rows = []
    for user_id, values in users.items():
        row = ctx.user_row(user_id)
        row.update(
            total_likes_received=values["likes_received"],
            total_comments_received=values["comments_received"],
            total_tags=values["tags_received"],
        )
        rows.append(row)
    return top_n(rows, [desc("total_likes_received"), desc("total_comments_received")])


@report("monthly_engagement_rank", "Users ranked by engagement received inside the trailing window")
def _monthly_engagement_rank(ctx: ReportContext) -> List[dict]:
    window = ctx.window
    ctx.notes["window_start"] = window.start.isoformat()

    users = m.merge_metrics(
        ctx.store.user_ids(),
        likes_received=m.likes_received(ctx.store, window),
        comments_received=m.comments_received(ctx.store, window),
    )
    rows = []
    for user_id, values in users.items():
        total = total_engagement(values)
        if total == 0:
            continue
        row = ctx.user_row(user_id)
        row.update(
            likes_in_month=values["likes_received"],
            comments_in_month=values["comments_received"],
            total_engagement_in_month=total,
        )
        rows.append(row)

    return rank_records(
        rows,
        [desc("total_engagement_in_month"), desc("likes_in_month")],
        discipline=DENSE,
        rank_field="engagement_rank",
    )


# =============================================================================
# Followers & influence
# =============================================================================

def _top_by_count(ctx: ReportContext, metric: str, column: str) -> List[dict]:
    counts = m.USER_METRICS[metric](ctx.store)
    rows = []
    for user_id, count in counts.items():
        row = ctx.user_row(user_id)
        row[column] = count
        rows.append(row)
    ranked = rank_records(rows, [desc(column)], discipline=DENSE)
    return [row for row in ranked if row["rank"] == 1]


@report("most_followed", "Users with the highest follower count")
def _most_followed(ctx: ReportContext) -> List[dict]:
    return _top_by_count(ctx, "follower_count", "follower_count")


@report("most_following", "Users following the most accounts")
def _most_following(ctx: ReportContext) -> List[dict]:
    return _top_by_count(ctx, "following_count", "following_count")


@report("influencer_candidates", "Users with followers and posts, by follower count then engagement rate")
def _influencer_candidates(ctx: ReportContext) -> List[dict]:
    users = m.aggregate_user_metrics(
        ctx.store,
        ["follower_count", "posts_created", "likes_received", "comments_received"],
    )
    rows = []
    for user_id, values in users.items():
        if values["follower_count"] == 0 or values["posts_created"] == 0:
            continue
        row = ctx.user_row(user_id)
        row.update(
            follower_count=values["follower_count"],
            total_posts=values["posts_created"],
            total_likes=values["likes_received"],
            total_comments=values["comments_received"],
            avg_engagement_rate=avg_engagement_per_post(values),
        )
        rows.append(row)
    return top_n(rows, [desc("follower_count"), desc("avg_engagement_rate")], ctx.config.limit)


@report("follow_backs", "Users who followed someone back after being followed by them")
def _follow_backs(ctx: ReportContext) -> List[dict]:
    result = detect_follow_backs(ctx.store)
    ctx.notes["simultaneous_reciprocal_follows"] = result.simultaneous_pairs
    return [fb.to_dict() for fb in result.follow_backs]


# =============================================================================
# Segments & advocates
# =============================================================================

SCORED_METRICS = [
    "posts_created", "likes_given", "comments_given",
    "likes_received", "comments_received", "tags_received",
]


def _scored_rows(ctx: ReportContext) -> List[dict]:
    users = m.aggregate_user_metrics(ctx.store, SCORED_METRICS)
    rows = []
    for user_id, values in users.items():
        activity = activity_score(values, ctx.weights)
        engagement = engagement_score(values)
        row = ctx.user_row(user_id)
        row.update(values)
        row.update(
            activity_score=activity,
            engagement_score=engagement,
            activity_level=ctx.thresholds.activity_segment(activity),
            engagement_level=ctx.thresholds.engagement_segment(engagement),
        )
        rows.append(row)
    return rows


@report(
    "loyal_users",
    "Most engaged and active users with loyalty segments",
    default_threshold_set="loyalty",
)
def _loyal_users(ctx: ReportContext) -> List[dict]:
    return top_n(_scored_rows(ctx), [desc("engagement_score"), desc("activity_score")], ctx.config.limit)


@report("user_segments", "Activity and engagement segment for every user")
def _user_segments(ctx: ReportContext) -> List[dict]:
    return [
        {
            "user_id": row["user_id"],
            "username": row["username"],
            "activity_score": row["activity_score"],
            "engagement_score": row["engagement_score"],
            "activity_segment": row["activity_level"],
            "engagement_segment": row["engagement_level"],
        }
        for row in _scored_rows(ctx)
    ]


@report(
    "brand_advocates",
    "Posting users ranked by weighted activity (posts x3, likes x1, comments x2)",
    default_weights=ADVOCATE_WEIGHTS,
)
def _brand_advocates(ctx: ReportContext) -> List[dict]:
    users = m.aggregate_user_metrics(ctx.store, ["posts_created", "likes_given", "comments_given"])
    rows = []
    for user_id, values in users.items():
        if values["posts_created"] == 0:
            continue
        row = ctx.user_row(user_id)
        row.update(
            posts_count=values["posts_created"],
            likes_given=values["likes_given"],
            comments_written=values["comments_given"],
            activity_score=activity_score(values, ctx.weights),
        )
        rows.append(row)
    return rank_records(
        rows,
        [desc("activity_score"), desc("posts_count")],
        discipline=GAPPED,
        limit=ctx.config.limit,
    )


# =============================================================================
# Tags & content
# =============================================================================

def _tag_rows(ctx: ReportContext) -> List[dict]:
    rows = []
    for tag_id, values in m.tag_metrics(ctx.store).items():
        if values["posts_using_tag"] == 0:
            continue
        rows.append({
            "tag_id": tag_id,
            "tag_name": ctx.store.tag_name(tag_id),
            "total_posts": values["posts_using_tag"],
            "likes_received": values["likes_received"],
            "comments_received": values["comments_received"],
            "total_engagement": total_engagement(values),
            "engagement_rate": engagement_rate(values),
        })
    return rows


@report("top_hashtags", "Most used hashtags")
def _top_hashtags(ctx: ReportContext) -> List[dict]:
    rows = [
        {"tag_id": tag_id, "tag_name": ctx.store.tag_name(tag_id), "usage_count": count}
        for tag_id, count in m.posts_using_tag(ctx.store).items()
        if count > 0
    ]
    return top_n(rows, [desc("usage_count"), asc("tag_name")], ctx.config.limit)


@report("top_posts", "Photos with the most likes plus comments")
def _top_posts(ctx: ReportContext) -> List[dict]:
    rows = []
    for photo_id, values in m.photo_metrics(ctx.store).items():
        rows.append({
            "photo_id": photo_id,
            "username": ctx.store.username(ctx.store.photo_owner(photo_id)),
            "likes": values["likes"],
            "comments": values["comments"],
            "total_engagement": values["likes"] + values["comments"],
        })
    return top_n(rows, [desc("total_engagement"), desc("likes")], ctx.config.limit)


@report("most_tagged_users", "Posting users whose photos carry the most tags")
def _most_tagged_users(ctx: ReportContext) -> List[dict]:
    users = m.aggregate_user_metrics(ctx.store, ["posts_created", "tags_received"])
    rows = []
    for user_id, values in users.items():
        if values["posts_created"] == 0:
            continue
        row = ctx.user_row(user_id)
        row["total_tags"] = values["tags_received"]
        rows.append(row)
    return top_n(rows, [desc("total_tags")], ctx.config.limit)


@report("tag_content_performance", "Photos, likes and comments per hashtag")
def _tag_content_performance(ctx: ReportContext) -> List[dict]:
    rows = [
        {
            "content_type": row["tag_name"],
            "total_photos": row["total_posts"],
            "total_likes": row["likes_received"],
            "total_comments": row["comments_received"],
        }
        for row in _tag_rows(ctx)
    ]
    return top_n(rows, [desc("total_likes"), desc("total_comments")])


@report("hashtag_avg_likes", "Hashtags whose photos get the most likes on average")
def _hashtag_avg_likes(ctx: ReportContext) -> List[dict]:
    rows = [
        {
            "tag_name": row["tag_name"],
            "photo_count": row["total_posts"],
            "total_likes": row["likes_received"],
            "avg_likes": safe_ratio(row["likes_received"], row["total_posts"]),
        }
        for row in _tag_rows(ctx)
    ]
    return top_n(rows, [desc("avg_likes"), desc("total_likes")], ctx.config.limit)


@report("hashtag_engagement_rate", "Hashtags with the highest engagement per post")
def _hashtag_engagement_rate(ctx: ReportContext) -> List[dict]:
    return top_n(_tag_rows(ctx), [desc("engagement_rate"), desc("total_engagement")], ctx.config.limit)
