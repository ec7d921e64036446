"""ORM models matching the hosted Postgres schema.

These models map to tables owned by the hosted database; the engine issues
no migrations. They use extend_existing=True and portable column types so
the same metadata can build a throwaway SQLite schema in tests.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from wanderlist.db.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class Profile(Base):
    """Maps to the 'profiles' table (one row per auth user)."""

    __tablename__ = "profiles"
    __table_args__ = {"extend_existing": True}  # noqa: RUF012

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Reference data: categories, objectives, items
# ---------------------------------------------------------------------------


class Category(Base):
    """Objective category lookup table."""

    __tablename__ = "categories"
    __table_args__ = {"extend_existing": True}  # noqa: RUF012

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    slug: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(64), nullable=True)


class Objective(Base):
    """A named collection of places. Read-only from the engine's perspective."""

    __tablename__ = "objectives"
    __table_args__ = {"extend_existing": True}  # noqa: RUF012

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_items: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    category_id: Mapped[str | None] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ObjectiveItem(Base):
    """A single place belonging to exactly one objective."""

    __tablename__ = "objective_items"
    __table_args__ = (
        Index("ix_objective_items_objective_order", "objective_id", "order_index"),
        {"extend_existing": True},
    )

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    objective_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("objectives.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")


# ---------------------------------------------------------------------------
# Per-user state: membership and progress
# ---------------------------------------------------------------------------


class UserObjective(Base):
    """Membership edge: the objective appears in the user's list."""

    __tablename__ = "user_objectives"
    __table_args__ = (
        UniqueConstraint("user_id", "objective_id", name="uq_user_objective"),
        {"extend_existing": True},
    )

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False)
    objective_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("objectives.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class UserProgress(Base):
    """Visit mark. UNIQUE(user_id, objective_item_id) prevents duplicates."""

    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "objective_item_id", name="uq_user_progress_item"),
        {"extend_existing": True},
    )

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False)
    objective_item_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("objective_items.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Social: follows and activity feed
# ---------------------------------------------------------------------------


class Follow(Base):
    """Directed follow relationship, at most one per ordered pair."""

    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        {"extend_existing": True},
    )

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    follower_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False)
    following_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ActivityFeedEntry(Base):
    """Derived feed entry: inserted or deleted, never edited.

    ``item_name`` holds the place name for visited_place entries and the
    follower's username for new_follower entries.
    """

    __tablename__ = "activity_feed"
    __table_args__ = (
        Index("ix_activity_feed_user_created", "user_id", "created_at"),
        Index("ix_activity_feed_follow", "follow_id"),
        {"extend_existing": True},
    )

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False)
    activity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    objective_id: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)
    objective_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    objective_item_id: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)
    item_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    actor_id: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)
    follow_id: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
