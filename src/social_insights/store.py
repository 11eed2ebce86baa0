"""Entity store - a read-only, in-memory snapshot of the six relations.

All rows are read once, inside a single session, before any metric is
computed. Downstream code only ever sees these immutable records.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from .models import User, Photo, Like, Comment, Follow, Tag, PhotoTag


logger = logging.getLogger(__name__)


class StructuralError(Exception):
    """A relation or column the analysis depends on is absent or inconsistent."""

    def __init__(self, message: str, relation: str, column: Optional[str] = None):
        super().__init__(message)
        self.relation = relation
        self.column = column


# Columns each analytic read depends on, per relation
REQUIRED_COLUMNS: Dict[str, tuple] = {
    "users": ("id", "username"),
    "photos": ("id", "user_id", "image_url", "created_at"),
    "likes": ("user_id", "photo_id", "created_at"),
    "comments": ("id", "user_id", "photo_id", "created_at"),
    "follows": ("follower_id", "followee_id", "created_at"),
    "tags": ("id", "tag_name"),
    "photo_tags": ("photo_id", "tag_id"),
}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps (SQLite returns those) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: Optional[str]


@dataclass(frozen=True)
class PhotoRecord:
    id: int
    user_id: Optional[int]
    image_url: Optional[str]
    created_at: Optional[datetime]


@dataclass(frozen=True)
class LikeRecord:
    id: int
    user_id: Optional[int]
    photo_id: Optional[int]
    created_at: Optional[datetime]


@dataclass(frozen=True)
class CommentRecord:
    id: int
    user_id: Optional[int]
    photo_id: Optional[int]
    created_at: Optional[datetime]


@dataclass(frozen=True)
class FollowRecord:
    id: int
    follower_id: int
    followee_id: int
    created_at: Optional[datetime]


@dataclass(frozen=True)
class TagRecord:
    id: int
    tag_name: str


@dataclass(frozen=True)
class PhotoTagRecord:
    id: int
    photo_id: int
    tag_id: int


def check_schema(db: Session) -> None:
    """Raise StructuralError if any required relation or column is missing."""
    inspector = inspect(db.get_bind())
    tables = set(inspector.get_table_names())

    for relation, columns in REQUIRED_COLUMNS.items():
        if relation not in tables:
            raise StructuralError(
                f"Required relation '{relation}' does not exist",
                relation=relation,
            )
        present = {col["name"] for col in inspector.get_columns(relation)}
        for column in columns:
            if column not in present:
                raise StructuralError(
                    f"Required column '{relation}.{column}' does not exist",
                    relation=relation,
                    column=column,
                )


class EntityStore:
    """Immutable snapshot of users, photos, likes, comments, follows and tags.

    Rows are held as tuples ordered by primary key so every scan over the
    store is deterministic.
    """

    def __init__(
        self,
        users: Iterable[UserRecord] = (),
        photos: Iterable[PhotoRecord] = (),
        likes: Iterable[LikeRecord] = (),
        comments: Iterable[CommentRecord] = (),
        follows: Iterable[FollowRecord] = (),
        tags: Iterable[TagRecord] = (),
        photo_tags: Iterable[PhotoTagRecord] = (),
    ):
        self.users = tuple(users)
        self.photos = tuple(photos)
        self.likes = tuple(likes)
        self.comments = tuple(comments)
        self.follows = tuple(follows)
        self.tags = tuple(tags)
        self.photo_tags = tuple(photo_tags)

        self._photo_owner = {p.id: p.user_id for p in self.photos}
        self._usernames: Dict[int, Optional[str]] = {}
        for user in self.users:
            self._usernames.setdefault(user.id, user.username)
        self._tag_names = {t.id: t.tag_name for t in self.tags}

    @classmethod
    def load(cls, db: Session) -> "EntityStore":
        """Read every relation from the database in one pass."""
        check_schema(db)

        store = cls(
            users=[
                UserRecord(id=u.id, username=u.username)
                for u in db.query(User).order_by(User.id).all()
            ],
            photos=[
                PhotoRecord(
                    id=p.id,
                    user_id=p.user_id,
                    image_url=p.image_url,
                    created_at=as_utc(p.created_at),
                )
                for p in db.query(Photo).order_by(Photo.id).all()
            ],
            likes=[
                LikeRecord(
                    id=l.id,
                    user_id=l.user_id,
                    photo_id=l.photo_id,
                    created_at=as_utc(l.created_at),
                )
                for l in db.query(Like).order_by(Like.id).all()
            ],
            comments=[
                CommentRecord(
                    id=c.id,
                    user_id=c.user_id,
                    photo_id=c.photo_id,
                    created_at=as_utc(c.created_at),
                )
                for c in db.query(Comment).order_by(Comment.id).all()
            ],
            follows=[
                FollowRecord(
                    id=f.id,
                    follower_id=f.follower_id,
                    followee_id=f.followee_id,
                    created_at=as_utc(f.created_at),
                )
                for f in db.query(Follow).order_by(Follow.id).all()
            ],
            tags=[
                TagRecord(id=t.id, tag_name=t.tag_name)
                for t in db.query(Tag).order_by(Tag.id).all()
            ],
            photo_tags=[
                PhotoTagRecord(id=pt.id, photo_id=pt.photo_id, tag_id=pt.tag_id)
                for pt in db.query(PhotoTag).order_by(PhotoTag.id).all()
            ],
        )

        logger.info(
            f"Loaded snapshot: {len(store.users)} users, {len(store.photos)} photos, "
            f"{len(store.likes)} likes, {len(store.comments)} comments, "
            f"{len(store.follows)} follows, {len(store.tags)} tags"
        )
        return store

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def user_ids(self) -> List[int]:
        return list(self._usernames)

    def photo_ids(self) -> List[int]:
        return [p.id for p in self.photos]

    def tag_ids(self) -> List[int]:
        return [t.id for t in self.tags]

    def username(self, user_id: int) -> Optional[str]:
        return self._usernames.get(user_id)

    def tag_name(self, tag_id: int) -> Optional[str]:
        return self._tag_names.get(tag_id)

    def photo_owner(self, photo_id: Optional[int]) -> Optional[int]:
        """Owner user id of a photo, None when the photo is unknown."""
        return self._photo_owner.get(photo_id)

    def has_user(self, user_id: Optional[int]) -> bool:
        return user_id in self._usernames

    def has_photo(self, photo_id: Optional[int]) -> bool:
        return photo_id in self._photo_owner

    def has_tag(self, tag_id: Optional[int]) -> bool:
        return tag_id in self._tag_names
