"""Segmentation classifier - ordered score buckets.

Buckets are inclusive on both ends and evaluated in order, first match wins.
A bucket list must start at 0, leave no gap between neighbours and end with
an open upper bound, so every non-negative score lands in exactly one bucket.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


class SegmentationError(ValueError):
    """Bucket list does not partition the non-negative integers."""
    pass


@dataclass(frozen=True)
class Bucket:
    label: str
    lower: int
    upper: Optional[int] = None  # None = no upper bound

    def contains(self, score: int) -> bool:
        if score < self.lower:
            return False
        return self.upper is None or score <= self.upper


def check_buckets(buckets: Tuple[Bucket, ...]) -> None:
    """Raise SegmentationError unless buckets are contiguous from 0 and open-ended."""
    if not buckets:
        raise SegmentationError("At least one bucket is required")
    if buckets[0].lower != 0:
        raise SegmentationError(f"First bucket '{buckets[0].label}' must start at 0")

    for current, following in zip(buckets, buckets[1:]):
        if current.upper is None:
            raise SegmentationError(f"Only the last bucket may be open-ended, not '{current.label}'")
        if current.upper < current.lower:
            raise SegmentationError(f"Bucket '{current.label}' has upper < lower")
        if following.lower != current.upper + 1:
            raise SegmentationError(
                f"Buckets '{current.label}' and '{following.label}' overlap or leave a gap"
            )

    if buckets[-1].upper is not None:
        raise SegmentationError(f"Last bucket '{buckets[-1].label}' must be open-ended")


def classify(score: int, buckets: Tuple[Bucket, ...]) -> str:
    """Label of the first bucket containing score."""
    if score < 0:
        raise ValueError(f"Scores are non-negative, got {score}")
    for bucket in buckets:
        if bucket.contains(score):
            return bucket.label
    raise SegmentationError(f"No bucket covers score {score}")


@dataclass(frozen=True)
class ThresholdSet:
    """Named pair of bucket lists for activity and engagement scores."""
    name: str
    activity: Tuple[Bucket, ...]
    engagement: Tuple[Bucket, ...]

    def __post_init__(self):
        check_buckets(self.activity)
        check_buckets(self.engagement)

    def activity_segment(self, score: int) -> str:
        return classify(score, self.activity)

    def engagement_segment(self, score: int) -> str:
        return classify(score, self.engagement)

    def activity_labels(self) -> list:
        return [bucket.label for bucket in self.activity]

    def engagement_labels(self) -> list:
        return [bucket.label for bucket in self.engagement]


STANDARD_ENGAGEMENT = (
    Bucket("No Engagement", 0, 0),
    Bucket("Low Engagement", 1, 20),
    Bucket("Moderate Engagement", 21, 100),
    Bucket("High Engagement", 101),
)

STANDARD = ThresholdSet(
    name="standard",
    activity=(
        Bucket("Inactive", 0, 0),
        Bucket("Low Activity", 1, 5),
        Bucket("Moderate Activity", 6, 20),
        Bucket("High Activity", 21),
    ),
    engagement=STANDARD_ENGAGEMENT,
)

LOYALTY = ThresholdSet(
    name="loyalty",
    activity=(
        Bucket("Inactive", 0, 0),
        Bucket("Low Active", 1, 5),
        Bucket("Moderately Active", 6, 20),
        Bucket("Highly Active", 21),
    ),
    engagement=(
        Bucket("No Engagement", 0, 0),
        Bucket("Low Engagement", 1, 49),
        Bucket("Moderately Engaged", 50, 200),
        Bucket("Highly Engaged", 201),
    ),
)

# Short labels used by the activity distribution report
DISTRIBUTION = ThresholdSet(
    name="distribution",
    activity=(
        Bucket("Inactive", 0, 0),
        Bucket("Low", 1, 5),
        Bucket("Medium", 6, 20),
        Bucket("High", 21),
    ),
    engagement=STANDARD_ENGAGEMENT,
)

THRESHOLD_SETS: Dict[str, ThresholdSet] = {
    STANDARD.name: STANDARD,
    LOYALTY.name: LOYALTY,
    DISTRIBUTION.name: DISTRIBUTION,
}


def get_threshold_set(name: str) -> ThresholdSet:
    try:
        return THRESHOLD_SETS[name]
    except KeyError:
        raise SegmentationError(
            f"Unknown threshold set '{name}', expected one of {sorted(THRESHOLD_SETS)}"
        ) from None
