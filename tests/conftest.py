"""Shared fixtures: an in-memory database and a compact row seeder."""
import pytest
from datetime import datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from social_insights.database import Base
from social_insights.models import User, Photo, Like, Comment, Follow, Tag, PhotoTag


# Fixed "now" shared by every test that needs a reference instant
T0 = datetime(2026, 1, 31, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across sessions."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create in-memory database session for testing."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(db_session):
    """Insert rows from plain tuples.

    users:      (id, username)
    photos:     (id, user_id, created_at)
    likes:      (user_id, photo_id, created_at)
    comments:   (user_id, photo_id, created_at)
    follows:    (follower_id, followee_id, created_at)
    tags:       (id, tag_name)
    photo_tags: (photo_id, tag_id)
    """
    def _seed(users=(), photos=(), likes=(), comments=(), follows=(), tags=(), photo_tags=()):
        db_session.add_all([User(id=i, username=name, created_at=T0) for i, name in users])
        db_session.add_all([
            Photo(id=i, user_id=owner, image_url=f"https://example.com/{i}.jpg", created_at=ts or T0)
            for i, owner, ts in photos
        ])
        db_session.add_all([Tag(id=i, tag_name=name) for i, name in tags])
        db_session.flush()
        db_session.add_all([Like(user_id=u, photo_id=p, created_at=ts or T0) for u, p, ts in likes])
        db_session.add_all([
            Comment(user_id=u, photo_id=p, comment_text="nice", created_at=ts or T0)
            for u, p, ts in comments
        ])
        db_session.add_all([
            Follow(follower_id=a, followee_id=b, created_at=ts or T0) for a, b, ts in follows
        ])
        db_session.add_all([PhotoTag(photo_id=p, tag_id=t) for p, t in photo_tags])
        db_session.commit()
        return db_session

    return _seed


@pytest.fixture
def scenario(seed):
    """Three users; A has two photos liked three times in total.

    B likes A's photo 1 and 2, C likes photo 1. B has no photos.
    """
    return seed(
        users=[(1, "alice"), (2, "bob"), (3, "carol")],
        photos=[(1, 1, None), (2, 1, None)],
        likes=[(2, 1, None), (2, 2, None), (3, 1, None)],
    )
