"""Engagement scorer - derived scores from aggregated counts."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Union

from pydantic import BaseModel, ConfigDict, Field


Number = Union[int, float, Decimal]


class ActivityWeights(BaseModel):
    """Weights applied to posts, likes given and comments given."""
    model_config = ConfigDict(frozen=True)

    posts: int = Field(default=1, ge=0)
    likes: int = Field(default=1, ge=0)
    comments: int = Field(default=1, ge=0)


EQUAL_WEIGHTS = ActivityWeights()
ADVOCATE_WEIGHTS = ActivityWeights(posts=3, likes=1, comments=2)

WEIGHT_PRESETS = {
    "equal": EQUAL_WEIGHTS,
    "advocate": ADVOCATE_WEIGHTS,
}


def round_half_up(value: Number, places: int = 2) -> float:
    """Round half away from zero (2.345 -> 2.35), unlike the builtin round()."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def safe_ratio(numerator: int, denominator: int, places: int = 2) -> float:
    """numerator / denominator rounded half-up; 0 when the denominator is 0."""
    if not denominator:
        return 0.0
    return round_half_up(Decimal(numerator) / Decimal(denominator), places)


def activity_score(metrics: Mapping[str, int], weights: ActivityWeights = EQUAL_WEIGHTS) -> int:
    return (
        metrics.get("posts_created", 0) * weights.posts
        + metrics.get("likes_given", 0) * weights.likes
        + metrics.get("comments_given", 0) * weights.comments
    )


def engagement_score(metrics: Mapping[str, int]) -> int:
    return (
        metrics.get("likes_received", 0)
        + metrics.get("comments_received", 0)
        + metrics.get("tags_received", 0)
    )


def total_engagement(metrics: Mapping[str, int]) -> int:
    """Likes plus comments received, without tags."""
    return metrics.get("likes_received", 0) + metrics.get("comments_received", 0)


def avg_engagement_per_post(metrics: Mapping[str, int]) -> float:
    return safe_ratio(total_engagement(metrics), metrics.get("posts_created", 0))


def engagement_rate(metrics: Mapping[str, int]) -> float:
    """Tag-level analogue of avg_engagement_per_post."""
    return safe_ratio(total_engagement(metrics), metrics.get("posts_using_tag", 0))
