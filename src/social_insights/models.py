"""SQLAlchemy models for the social dataset.

Schema mirrors the photo-sharing clone the analyses run against:
- Entities: users, photos, tags
- Fact relations (append-only event logs): likes, comments, follows, photo_tags
- Glue: user_interactions (only touched by the terminology rename)

Likes and follows carry a surrogate row id so that duplicate pairs can be
stored and surfaced as data-quality findings instead of being rejected.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


def utc_now():
    """Timezone-aware UTC now (replaces deprecated datetime.utcnow)."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENTITIES
# =============================================================================

class User(Base):
    """Platform user. Usernames are expected unique but not enforced."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    # Relationships
    photos: Mapped[list["Photo"]] = relationship(back_populates="owner")


class Photo(Base):
    """A post. Every like, comment and tag hangs off a photo."""
    __tablename__ = "photos"

    id: Mapped[int] = mapped_column(primary_key=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    # Relationships
    owner: Mapped[Optional["User"]] = relationship(back_populates="photos")


class Tag(Base):
    """Hashtag."""
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(primary_key=True)
    tag_name: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)


# =============================================================================
# FACT RELATIONS (append-only)
# =============================================================================

class Like(Base):
    """User liked a photo."""
    __tablename__ = "likes"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    photo_id: Mapped[Optional[int]] = mapped_column(ForeignKey("photos.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)


class Comment(Base):
    """User commented on a photo."""
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    comment_text: Mapped[str] = mapped_column(Text, default="")
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    photo_id: Mapped[Optional[int]] = mapped_column(ForeignKey("photos.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)


class Follow(Base):
    """Directed follow edge: follower -> followee."""
    __tablename__ = "follows"

    id: Mapped[int] = mapped_column(primary_key=True)
    follower_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    followee_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)


class PhotoTag(Base):
    """Photo-to-tag association."""
    __tablename__ = "photo_tags"

    id: Mapped[int] = mapped_column(primary_key=True)
    photo_id: Mapped[int] = mapped_column(ForeignKey("photos.id"), index=True)
    tag_id: Mapped[int] = mapped_column(ForeignKey("tags.id"), index=True)


# =============================================================================
# GLUE
# =============================================================================

class UserInteraction(Base):
    """Engagement log keyed by free-text type ("Like", "Comment", ...)."""
    __tablename__ = "user_interactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    photo_id: Mapped[Optional[int]] = mapped_column(ForeignKey("photos.id"), nullable=True)
    engagement_type: Mapped[str] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)


# =============================================================================
# INDEXES
# =============================================================================

Index("ix_likes_created_at", Like.created_at)
Index("ix_comments_created_at", Comment.created_at)
Index("ix_follows_pair", Follow.follower_id, Follow.followee_id)
