"""Test database models, the rename write path and the sample generator."""
import pytest
from datetime import datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from social_insights.database import Base, _connect_args
from social_insights.maintenance import rename_engagement_type
from social_insights.models import (
    User, Photo, Like, Follow, UserInteraction, utc_now
)
from social_insights.sample_data import generate_sample_dataset
from social_insights.store import EntityStore
from social_insights.validation import validate


def test_utc_now_is_timezone_aware():
    assert utc_now().tzinfo == timezone.utc


def test_duplicate_likes_are_storable(db_session):
    """Likes carry a surrogate id so duplicates survive to be reported."""
    db_session.add(User(id=1, username="a"))
    db_session.add(Photo(id=1, user_id=1))
    db_session.add_all([Like(user_id=1, photo_id=1), Like(user_id=1, photo_id=1)])
    db_session.commit()

    assert db_session.query(Like).count() == 2


def test_duplicate_usernames_are_storable(db_session):
    db_session.add_all([User(id=1, username="sam"), User(id=2, username="sam")])
    db_session.commit()

    assert db_session.query(User).filter(User.username == "sam").count() == 2


def test_photo_owner_relationship(db_session):
    user = User(id=1, username="alice")
    db_session.add(user)
    db_session.add(Photo(id=1, user_id=1, image_url="https://example.com/1.jpg"))
    db_session.commit()

    assert [p.id for p in user.photos] == [1]


class TestRename:

    @pytest.fixture
    def interactions(self, db_session):
        db_session.add_all([
            UserInteraction(user_id=1, photo_id=1, engagement_type="Like"),
            UserInteraction(user_id=2, photo_id=1, engagement_type="Like"),
            UserInteraction(user_id=2, photo_id=1, engagement_type="Comment"),
        ])
        db_session.commit()
        return db_session

    def test_renames_all_matching_rows(self, interactions):
        changed = rename_engagement_type(interactions)

        assert changed == 2
        types = sorted(i.engagement_type for i in interactions.query(UserInteraction).all())
        assert types == ["Comment", "Heart", "Heart"]

    def test_no_matching_rows(self, interactions):
        assert rename_engagement_type(interactions, old="Share", new="Send") == 0

    def test_empty_replacement_rejected(self, interactions):
        with pytest.raises(ValueError):
            rename_engagement_type(interactions, new="")


class TestSampleData:

    def test_generates_consistent_dataset(self, db_session):
        reference = datetime(2026, 1, 31, tzinfo=timezone.utc)
        counts = generate_sample_dataset(db_session, users=30, seed=7, reference_time=reference)

        assert counts["users"] == 30
        assert db_session.query(Follow).count() == counts["follows"]

        report = validate(EntityStore.load(db_session), strict=True)
        assert report.self_follows == 0
        assert report.duplicate_likes == []

    def test_reproducible(self, session_factory):
        reference = datetime(2026, 1, 31, tzinfo=timezone.utc)
        first = generate_sample_dataset(session_factory(), users=20, seed=3, reference_time=reference)
        # Same seed into a fresh schema yields identical counts
        other = create_engine("sqlite://")
        Base.metadata.create_all(other)
        second = generate_sample_dataset(sessionmaker(bind=other)(), users=20, seed=3, reference_time=reference)
        assert first == second


def test_sqlite_connections_shared_across_threads():
    assert _connect_args("sqlite:///./x.db") == {"check_same_thread": False}
    assert _connect_args("postgresql://localhost/insights") == {}
