"""Test segmentation buckets."""
import pytest

from social_insights.segments import (
    Bucket, LOYALTY, STANDARD, THRESHOLD_SETS, SegmentationError, ThresholdSet,
    classify, get_threshold_set,
)


@pytest.mark.parametrize("name", sorted(THRESHOLD_SETS))
def test_buckets_are_disjoint_and_exhaustive(name):
    """Every score up to well past the last boundary hits exactly one bucket."""
    thresholds = THRESHOLD_SETS[name]
    for buckets in (thresholds.activity, thresholds.engagement):
        for score in range(0, 1000):
            matches = [b for b in buckets if b.contains(score)]
            assert len(matches) == 1


class TestStandard:

    @pytest.mark.parametrize("score,label", [
        (0, "Inactive"), (1, "Low Activity"), (5, "Low Activity"),
        (6, "Moderate Activity"), (20, "Moderate Activity"), (21, "High Activity"),
    ])
    def test_activity_boundaries(self, score, label):
        assert STANDARD.activity_segment(score) == label

    @pytest.mark.parametrize("score,label", [
        (0, "No Engagement"), (1, "Low Engagement"), (20, "Low Engagement"),
        (21, "Moderate Engagement"), (100, "Moderate Engagement"), (101, "High Engagement"),
    ])
    def test_engagement_boundaries(self, score, label):
        assert STANDARD.engagement_segment(score) == label


class TestLoyalty:

    @pytest.mark.parametrize("score,label", [
        (0, "No Engagement"), (49, "Low Engagement"), (50, "Moderately Engaged"),
        (200, "Moderately Engaged"), (201, "Highly Engaged"),
    ])
    def test_engagement_boundaries(self, score, label):
        assert LOYALTY.engagement_segment(score) == label

    def test_activity_labels(self):
        assert LOYALTY.activity_labels() == [
            "Inactive", "Low Active", "Moderately Active", "Highly Active"
        ]


class TestValidation:

    def test_gap_rejected(self):
        with pytest.raises(SegmentationError):
            ThresholdSet("bad", activity=(Bucket("a", 0, 0), Bucket("b", 2)), engagement=STANDARD.engagement)

    def test_overlap_rejected(self):
        with pytest.raises(SegmentationError):
            ThresholdSet("bad", activity=(Bucket("a", 0, 5), Bucket("b", 5)), engagement=STANDARD.engagement)

    def test_closed_last_bucket_rejected(self):
        with pytest.raises(SegmentationError):
            ThresholdSet("bad", activity=(Bucket("a", 0, 0), Bucket("b", 1, 9)), engagement=STANDARD.engagement)

    def test_must_start_at_zero(self):
        with pytest.raises(SegmentationError):
            ThresholdSet("bad", activity=(Bucket("a", 1),), engagement=STANDARD.engagement)

    def test_negative_score_rejected(self):
        with pytest.raises(ValueError):
            classify(-1, STANDARD.activity)

    def test_unknown_threshold_set(self):
        with pytest.raises(SegmentationError):
            get_threshold_set("premium")
