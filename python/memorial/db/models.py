"""SQLAlchemy ORM models for the memorial interactions service.

Defines all database tables using SQLAlchemy 2.x declarative patterns.
Enums are Python enums stored as text with CHECK constraints, so the same
schema runs on PostgreSQL (production) and SQLite (tests).
"""

from datetime import datetime
from enum import Enum as PyEnum
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Enums
# =============================================================================


class ReactionKind(str, PyEnum):
    """The closed set of reactions a visitor can leave on a memorial.

    Declaration order is the canonical order used in responses.
    """

    liebe = "liebe"
    dankbarkeit = "dankbarkeit"
    freiheit = "freiheit"
    blumen = "blumen"
    kerze = "kerze"


REACTION_KINDS: tuple[str, ...] = tuple(kind.value for kind in ReactionKind)


class PrivacyLevel(str, PyEnum):
    """Who may view a memorial."""

    public = "public"
    private = "private"


class MemberRole(str, PyEnum):
    """Roles a user can hold on a memorial they were invited to."""

    administrator = "administrator"
    member = "member"


class MemorialType(str, PyEnum):
    person = "person"
    pet = "pet"


class ActivityType(str, PyEnum):
    """Kinds of activity that produce owner notifications."""

    reaction = "reaction"
    condolence_entry = "condolence_entry"
    post = "post"


# =============================================================================
# Models
# =============================================================================


class User(Base):
    """User account model.

    The user ID matches the Supabase auth user ID (sub claim). ``name`` and
    ``avatar_url`` are profile values the user maintains themselves; they are
    the first choice when rendering the user as an actor.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    memorials: Mapped[list["Memorial"]] = relationship(
        "Memorial", back_populates="creator", cascade="all, delete-orphan"
    )


class Memorial(Base):
    """A memorial page for a deceased person or pet."""

    __tablename__ = "memorials"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    creator_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    memorial_type: Mapped[str] = mapped_column(Text, nullable=False, default="person")
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    privacy_level: Mapped[str] = mapped_column(Text, nullable=False, default="public")
    invite_link: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "privacy_level IN ('public', 'private')",
            name="ck_memorials_privacy_level",
        ),
        CheckConstraint(
            "memorial_type IN ('person', 'pet')",
            name="ck_memorials_memorial_type",
        ),
        Index("ix_memorials_creator_id", "creator_id"),
    )

    creator: Mapped["User"] = relationship("User", back_populates="memorials")
    members: Mapped[list["MemorialMember"]] = relationship(
        "MemorialMember", back_populates="memorial", cascade="all, delete-orphan"
    )
    reactions: Mapped[list["MemorialReaction"]] = relationship(
        "MemorialReaction", back_populates="memorial", cascade="all, delete-orphan"
    )

    @property
    def display_name(self) -> str:
        if self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name


class MemorialMember(Base):
    """Membership of a user on a memorial, created by the invitation flow."""

    __tablename__ = "memorial_members"

    memorial_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("memorials.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('administrator', 'member')",
            name="ck_memorial_members_role",
        ),
    )

    memorial: Mapped["Memorial"] = relationship("Memorial", back_populates="members")


class MemorialReaction(Base):
    """One reaction of one user on one memorial.

    Row existence is the "has reacted" state. Rows are inserted and deleted,
    never updated.
    """

    __tablename__ = "memorial_reactions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    memorial_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("memorials.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    reaction_type: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "memorial_id",
            "user_id",
            "reaction_type",
            name="uq_memorial_reactions_memorial_user_type",
        ),
        CheckConstraint(
            "reaction_type IN ('liebe', 'dankbarkeit', 'freiheit', 'blumen', 'kerze')",
            name="ck_memorial_reactions_reaction_type",
        ),
    )

    memorial: Mapped["Memorial"] = relationship("Memorial", back_populates="reactions")


class Notification(Base):
    """Owner notification aggregating one actor's activity on one memorial.

    ``reaction_types`` is the accumulated set (stored as a JSON list) and
    ``reaction_count`` is always its size. Records older than the merge
    window are history and are never merged into again.
    """

    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    recipient_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    memorial_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("memorials.id", ondelete="CASCADE"),
        nullable=False,
    )
    actor_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    actor_name: Mapped[str] = mapped_column(Text, nullable=False)
    actor_avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    reaction_types: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    reaction_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "type IN ('reaction', 'condolence_entry', 'post')",
            name="ck_notifications_type",
        ),
        Index(
            "ix_notifications_merge_key",
            "recipient_id",
            "memorial_id",
            "actor_id",
            "type",
            "created_at",
        ),
        Index("ix_notifications_recipient_unread", "recipient_id", "is_read"),
    )
