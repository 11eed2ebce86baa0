"""Test per-entity metric aggregation."""
import pytest
from datetime import timedelta

from social_insights import metrics as m
from social_insights.store import EntityStore
from social_insights.windowing import TimeWindow

from conftest import T0


class TestScenario:
    """Three users, A with two liked photos."""

    def test_likes_received(self, scenario):
        store = EntityStore.load(scenario)
        assert m.likes_received(store) == {1: 3, 2: 0, 3: 0}

    def test_posts_created(self, scenario):
        store = EntityStore.load(scenario)
        assert m.posts_created(store) == {1: 2, 2: 0, 3: 0}

    def test_likes_given(self, scenario):
        store = EntityStore.load(scenario)
        assert m.likes_given(store) == {1: 0, 2: 2, 3: 1}

    def test_every_user_present_with_zero(self, scenario):
        """Users absent from a relation resolve to 0, never missing."""
        store = EntityStore.load(scenario)
        for metric in m.USER_METRICS.values():
            counts = metric(store)
            assert set(counts) == {1, 2, 3}
            assert all(value >= 0 for value in counts.values())


class TestNoFanOut:
    """Counting several relations must not multiply them."""

    @pytest.fixture
    def store(self, seed):
        # Photo 1: 3 likes, 2 comments, 2 tags
        db = seed(
            users=[(1, "owner"), (2, "a"), (3, "b"), (4, "c")],
            photos=[(1, 1, None)],
            likes=[(2, 1, None), (3, 1, None), (4, 1, None)],
            comments=[(2, 1, None), (3, 1, None)],
            tags=[(1, "sunset"), (2, "beach")],
            photo_tags=[(1, 1), (1, 2)],
        )
        return EntityStore.load(db)

    def test_merged_counts_are_not_inflated(self, store):
        merged = m.aggregate_user_metrics(
            store, ["likes_received", "comments_received", "tags_received"]
        )
        assert merged[1] == {"likes_received": 3, "comments_received": 2, "tags_received": 2}

    def test_tag_metrics_are_not_inflated(self, store):
        tags = m.tag_metrics(store)
        assert tags[1] == {"posts_using_tag": 1, "likes_received": 3, "comments_received": 2}
        assert tags[2] == {"posts_using_tag": 1, "likes_received": 3, "comments_received": 2}

    def test_photo_metrics(self, store):
        assert m.photo_metrics(store)[1] == {"likes": 3, "comments": 2, "tags": 2}


class TestInvariants:

    def test_sum_of_posts_equals_photo_rows(self, seed):
        db = seed(
            users=[(1, "a"), (2, "b"), (3, "c")],
            photos=[(1, 1, None), (2, 1, None), (3, 2, None), (4, 3, None), (5, 3, None)],
        )
        store = EntityStore.load(db)
        assert sum(m.posts_created(store).values()) == len(store.photos) == 5

    def test_likes_received_matches_owned_photo_likes(self, seed):
        db = seed(
            users=[(1, "a"), (2, "b")],
            photos=[(1, 1, None), (2, 2, None)],
            likes=[(2, 1, None), (1, 2, None), (2, 2, None)],
            comments=[(2, 1, None), (2, 1, None)],
        )
        store = EntityStore.load(db)
        received = m.likes_received(store)
        for user_id in store.user_ids():
            expected = sum(1 for like in store.likes if store.photo_owner(like.photo_id) == user_id)
            assert received[user_id] == expected

    def test_duplicate_likes_counted_as_occurrences(self, seed):
        db = seed(
            users=[(1, "a"), (2, "b")],
            photos=[(1, 1, None)],
            likes=[(2, 1, None), (2, 1, None)],
        )
        store = EntityStore.load(db)
        assert m.likes_given(store)[2] == 2
        assert m.likes_received(store)[1] == 2

    def test_follower_and_following_counts(self, seed):
        db = seed(
            users=[(1, "a"), (2, "b"), (3, "c")],
            follows=[(1, 2, None), (3, 2, None), (2, 1, None)],
        )
        store = EntityStore.load(db)
        assert m.follower_count(store) == {1: 1, 2: 2, 3: 0}
        assert m.following_count(store) == {1: 1, 2: 1, 3: 1}

    def test_unknown_metric_name_raises(self, scenario):
        store = EntityStore.load(scenario)
        with pytest.raises(KeyError):
            m.aggregate_user_metrics(store, ["shares"])


class TestWindowedMetrics:

    def test_window_excludes_old_likes(self, seed):
        db = seed(
            users=[(1, "a"), (2, "b")],
            photos=[(1, 1, T0 - timedelta(days=90))],
            likes=[
                (2, 1, T0 - timedelta(days=40)),
                (2, 1, T0 - timedelta(days=5)),
            ],
        )
        store = EntityStore.load(db)
        window = TimeWindow.trailing_days(T0, 30)
        assert m.likes_received(store, window)[1] == 1
        assert m.likes_received(store)[1] == 2

    def test_window_start_is_inclusive(self, seed):
        window = TimeWindow.trailing_days(T0, 30)
        db = seed(
            users=[(1, "a"), (2, "b")],
            photos=[(1, 1, T0 - timedelta(days=90))],
            likes=[
                (2, 1, window.start),
                (2, 1, window.start - timedelta(microseconds=1)),
            ],
        )
        store = EntityStore.load(db)
        assert m.likes_received(store, window)[1] == 1
        assert window.contains(T0 - timedelta(days=30))
        assert not window.contains(T0 - timedelta(days=30, microseconds=1))


class TestMergeMetrics:

    def test_absent_keys_default_to_zero(self):
        merged = m.merge_metrics([1, 2, 3], likes={1: 4}, comments={2: 1, 9: 7})
        assert merged == {
            1: {"likes": 4, "comments": 0},
            2: {"likes": 0, "comments": 1},
            3: {"likes": 0, "comments": 0},
        }

    def test_count_by_ignores_unknown_keys(self):
        counts = m.count_by([1, 2], [1, 1, 3, None], lambda row: row)
        assert counts == {1: 2, 2: 0}
