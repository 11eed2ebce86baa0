"""Test the data-quality pass."""
import pytest

from social_insights.models import User, Photo, Like
from social_insights.store import EntityStore, StructuralError
from social_insights.validation import validate


class TestFindings:

    def test_clean_dataset(self, scenario):
        report = validate(EntityStore.load(scenario))
        assert not report.has_findings
        assert all(row["count"] == 0 for row in report.findings())

    def test_duplicate_usernames(self, seed):
        db = seed(users=[(1, "sam"), (2, "sam"), (3, "lee")])
        report = validate(EntityStore.load(db))
        assert report.duplicate_usernames == {"sam": 2}
        assert report.has_findings

    def test_duplicate_likes_and_follows(self, seed):
        db = seed(
            users=[(1, "a"), (2, "b")],
            photos=[(1, 1, None)],
            likes=[(2, 1, None), (2, 1, None), (1, 1, None)],
            follows=[(1, 2, None), (1, 2, None)],
        )
        report = validate(EntityStore.load(db))
        assert report.duplicate_likes == [(2, 1, 2)]
        assert report.duplicate_follows == [(1, 2, 2)]

    def test_self_follows(self, seed):
        db = seed(users=[(1, "a")], follows=[(1, 1, None)])
        assert validate(EntityStore.load(db)).self_follows == 1

    def test_null_fields(self, db_session):
        db_session.add_all([
            User(id=1, username=None),
            Photo(id=1, user_id=None, image_url=None),
            Like(user_id=None, photo_id=None),
        ])
        db_session.commit()

        report = validate(EntityStore.load(db_session))
        assert report.null_usernames == 1
        assert report.null_image_urls == 1
        assert report.null_photo_user_ids == 1
        assert report.null_like_user_ids == 1
        assert report.null_like_photo_ids == 1
        # Nulls are not double counted as dangling references
        assert report.dangling_references == {}


class TestDanglingReferences:

    @pytest.fixture
    def dangling(self, seed):
        return seed(
            users=[(1, "a")],
            photos=[(1, 1, None)],
            likes=[(1, 42, None)],
            follows=[(1, 7, None)],
        )

    def test_counted_when_not_strict(self, dangling):
        report = validate(EntityStore.load(dangling))
        assert report.dangling_references == {"likes.photo_id": 1, "follows.followee_id": 1}

    def test_fatal_when_strict(self, dangling):
        with pytest.raises(StructuralError) as exc:
            validate(EntityStore.load(dangling), strict=True)
        assert exc.value.relation == "likes"
        assert exc.value.column == "photo_id"

    def test_to_dict(self, dangling):
        data = validate(EntityStore.load(dangling)).to_dict()
        assert data["dangling_references"]["likes.photo_id"] == 1
        assert data["duplicate_likes"] == []
