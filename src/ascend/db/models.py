"""ORM models for users, roadmaps, task progress and connections.

Unique constraints on the edge and progress tables are load-bearing: they
arbitrate concurrent toggles, not just lookups.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ascend.db.base import Base, BigIntPK, JSONDocument, UTCDateTime, utcnow

CATEGORIES = ("Body", "Skills", "Mindset", "Career")
DIFFICULTIES = ("easy", "medium", "hard")
SKILL_LEVELS = ("beginner", "intermediate", "advanced")
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
RESOURCE_TYPES = ("video", "audio", "website", "article", "book", "other")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Identity plus ledger state and denormalized connection counters."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("total_xp >= 0", name="ck_users_total_xp"),
        CheckConstraint("custom_xp >= 0", name="ck_users_custom_xp"),
        CheckConstraint("follower_count >= 0", name="ck_users_follower_count"),
        CheckConstraint("close_friend_count >= 0", name="ck_users_close_friend_count"),
        Index("idx_users_total_xp", "total_xp"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)

    # --- Ledger ---
    total_xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    streak: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    last_active_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    body_xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    skills_xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    mindset_xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    career_xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    # Custom-roadmap XP, kept out of total_xp so the leaderboard stays fair
    custom_xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    # --- Privacy & connections ---
    is_profile_public: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    allow_close_friend_requests: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    follower_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    close_friend_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    roadmaps: Mapped[list[Roadmap]] = relationship("Roadmap", back_populates="user")


# ---------------------------------------------------------------------------
# Roadmaps
# ---------------------------------------------------------------------------


class Roadmap(Base):
    """A weekly plan owned by one user. ``weekly_plan`` is the task source of truth."""

    __tablename__ = "roadmaps"
    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_roadmaps_progress"),
        CheckConstraint("star_count >= 0", name="ck_roadmaps_star_count"),
        Index("idx_roadmaps_user_created", "user_id", "created_at"),
        Index("idx_roadmaps_public", "user_id", "is_public"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    goal: Mapped[str] = mapped_column(String(500), nullable=False)
    title: Mapped[str] = mapped_column(String(200), default="", server_default="", nullable=False)
    skill_level: Mapped[str] = mapped_column(String(16), default="beginner", server_default="beginner")
    difficulty: Mapped[str] = mapped_column(String(8), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    weekly_plan: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, default=list, nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    is_custom: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    star_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    user: Mapped[User] = relationship("User", back_populates="roadmaps")


class TaskProgress(Base):
    """Completion state of one task, keyed by (user, roadmap, task title)."""

    __tablename__ = "task_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "roadmap_id", "task_title", name="uq_task_progress_user_roadmap_task"),
        CheckConstraint("xp_earned >= 0", name="ck_task_progress_xp_earned"),
        Index("idx_task_progress_user_roadmap_week_day", "user_id", "roadmap_id", "week", "day"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    roadmap_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("roadmaps.id", ondelete="CASCADE"), nullable=False, index=True
    )
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    day: Mapped[str] = mapped_column(String(16), nullable=False)
    task_title: Mapped[str] = mapped_column(String(200), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    xp_earned: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


class TaskResource(Base):
    """Learning link attached by the roadmap owner to one module (week)."""

    __tablename__ = "task_resources"
    __table_args__ = (
        Index("idx_task_resources_user_roadmap_week", "user_id", "roadmap_id", "week"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    roadmap_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("roadmaps.id", ondelete="CASCADE"), nullable=False, index=True
    )
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now(), nullable=False
    )


class RoadmapStar(Base):
    """One endorsement per (user, roadmap)."""

    __tablename__ = "roadmap_stars"
    __table_args__ = (
        UniqueConstraint("user_id", "roadmap_id", name="uq_roadmap_stars_user_roadmap"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    roadmap_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("roadmaps.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now(), nullable=False
    )


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------


class Follow(Base):
    """Directed mentor-follow edge."""

    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "followed_id", name="uq_follows_follower_followed"),
        CheckConstraint("follower_id <> followed_id", name="ck_follows_no_self"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    follower_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    followed_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now(), nullable=False
    )


class FriendRequest(Base):
    """Close-friend relationship record: pending -> accepted | declined.

    ``user_low_id``/``user_high_id`` hold the pair in sorted order so the
    unordered pair is unique regardless of who sent the request.
    """

    __tablename__ = "friend_requests"
    __table_args__ = (
        UniqueConstraint("sender_id", "receiver_id", name="uq_friend_requests_sender_receiver"),
        UniqueConstraint("user_low_id", "user_high_id", name="uq_friend_requests_pair"),
        CheckConstraint("sender_id <> receiver_id", name="ck_friend_requests_no_self"),
        Index("idx_friend_requests_receiver_status", "receiver_id", "status"),
        Index("idx_friend_requests_sender_status", "sender_id", "status"),
        Index("idx_friend_requests_expires", "expires_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    receiver_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_low_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_high_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="pending", server_default="pending", nullable=False)
    resend_after: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
