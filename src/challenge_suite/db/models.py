"""ORM models.

Uniqueness rules of the engagement ledger live in the schema so the database,
not application code, rejects duplicate facts:

* one vote per (submission, user)
* one submission per (challenge, user)
* one favorite per (user, submission) and, independently, per (user, challenge)
* one leaderboard entry per (user, challenge), the global entry included
* one earned badge per (user, badge)
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from challenge_suite.db.base import Base, BigIntId


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _partial_unique(name: str, *columns: str, where: str) -> Index:
    """Unique index restricted to rows matching ``where`` (PostgreSQL and SQLite)."""
    return Index(
        name,
        *columns,
        unique=True,
        postgresql_where=text(where),
        sqlite_where=text(where),
    )


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Account plus denormalized stats counters."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str] = mapped_column(String(160), default="", server_default="")
    location: Mapped[str] = mapped_column(String(50), default="", server_default="")
    website: Mapped[str] = mapped_column(String(256), default="", server_default="")
    role: Mapped[str] = mapped_column(String(16), default="user", server_default="user")

    # --- Stats (mirrors; see gamification.reconciliation) ---
    total_points: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    badges_collected: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    challenges_entered: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    challenges_won: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    badges: Mapped[list[UserBadge]] = relationship(
        "UserBadge",
        order_by=lambda: (UserBadge.earned_at, UserBadge.id),
        lazy="selectin",
        viewonly=True,
    )


class UserBadge(Base):
    """An earned badge. Append-only; the catalogue itself is not stored."""

    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(String(256), nullable=False)
    image: Mapped[str] = mapped_column(String(256), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Challenges and submissions
# ---------------------------------------------------------------------------


class Challenge(Base):
    __tablename__ = "challenges"
    __table_args__ = (
        Index("idx_challenges_status_start", "status", "start_date"),
        Index("idx_challenges_category", "category"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    image: Mapped[str] = mapped_column(Text, nullable=False)
    video_url: Mapped[str] = mapped_column(Text, default="", server_default="")
    badge: Mapped[str] = mapped_column(String(16), default="Normal", server_default="Normal")
    status: Mapped[str] = mapped_column(String(16), default="upcoming", server_default="upcoming")
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    participants: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rules: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_by: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    creator: Mapped[User] = relationship("User", lazy="joined")


class Submission(Base):
    """A challenge entry. ``votes`` caches the number of Vote rows."""

    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("challenge_id", "user_id", name="uq_submissions_challenge_user"),
        CheckConstraint("votes >= 0", name="ck_submissions_votes_non_negative"),
        Index("idx_submissions_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    challenge_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), default="", server_default="")
    media_url: Mapped[str] = mapped_column(Text, nullable=False)
    media_type: Mapped[str] = mapped_column(String(8), nullable=False)
    votes: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    status: Mapped[str] = mapped_column(String(16), default="pending", server_default="pending")
    is_winner: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    author: Mapped[User] = relationship("User", lazy="joined")
    challenge: Mapped[Challenge] = relationship("Challenge", lazy="joined")


class ChallengeParticipation(Base):
    """Per-user progress on a challenge; completed when the user submits."""

    __tablename__ = "challenge_participations"
    __table_args__ = (UniqueConstraint("user_id", "challenge_id", name="uq_participations_user_challenge"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    challenge_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
    )
    progress: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    status: Mapped[str] = mapped_column(String(16), default="joined", server_default="joined")
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Engagement facts
# ---------------------------------------------------------------------------


class Vote(Base):
    """Fact record: the user voted on the submission."""

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("submission_id", "user_id", name="uq_votes_submission_user"),
        Index("idx_votes_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    submission_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    submission: Mapped[Submission] = relationship("Submission", lazy="joined")


class Favorite(Base):
    """Fact record: the user favorited exactly one submission or one challenge."""

    __tablename__ = "favorites"
    __table_args__ = (
        CheckConstraint(
            "(submission_id IS NULL) <> (challenge_id IS NULL)",
            name="ck_favorites_single_target",
        ),
        _partial_unique(
            "uq_favorites_user_submission", "user_id", "submission_id",
            where="submission_id IS NOT NULL",
        ),
        _partial_unique(
            "uq_favorites_user_challenge", "user_id", "challenge_id",
            where="challenge_id IS NOT NULL",
        ),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    submission_id: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=True
    )
    challenge_id: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    submission: Mapped[Submission | None] = relationship("Submission", lazy="joined")
    challenge: Mapped[Challenge | None] = relationship("Challenge", lazy="joined")


# ---------------------------------------------------------------------------
# Social
# ---------------------------------------------------------------------------


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (Index("idx_comments_submission_created", "submission_id", "created_at"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    submission_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    author: Mapped[User] = relationship("User", lazy="joined")


class Follow(Base):
    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        CheckConstraint("follower_id <> following_id", name="ck_follows_not_self"),
        Index("idx_follows_following", "following_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    follower_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    following_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    follower: Mapped[User] = relationship("User", foreign_keys=[follower_id], lazy="joined")
    following: Mapped[User] = relationship("User", foreign_keys=[following_id], lazy="joined")


# ---------------------------------------------------------------------------
# Leaderboards
# ---------------------------------------------------------------------------


class LeaderboardEntry(Base):
    """Points and wins per (user, challenge); ``challenge_id IS NULL`` is the global board."""

    __tablename__ = "leaderboard_entries"
    __table_args__ = (
        _partial_unique(
            "uq_leaderboard_global_user", "user_id",
            where="challenge_id IS NULL",
        ),
        _partial_unique(
            "uq_leaderboard_challenge_user", "user_id", "challenge_id",
            where="challenge_id IS NOT NULL",
        ),
        Index("idx_leaderboard_challenge_points", "challenge_id", "points"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    challenge_id: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=True
    )
    points: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    wins: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user: Mapped[User] = relationship("User", lazy="joined")
    challenge: Mapped[Challenge | None] = relationship("Challenge", lazy="joined")

