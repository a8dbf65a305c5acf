"""Database module for the memorial service.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from memorial.db.engine import create_db_engine, get_engine
from memorial.db.models import (
    REACTION_KINDS,
    ActivityType,
    Base,
    Memorial,
    MemorialMember,
    MemorialReaction,
    MemorialType,
    MemberRole,
    Notification,
    PrivacyLevel,
    ReactionKind,
    User,
)
from memorial.db.session import get_db, session_scope, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "get_db",
    "session_scope",
    "transaction",
    # Base
    "Base",
    # Enums
    "ActivityType",
    "MemberRole",
    "MemorialType",
    "PrivacyLevel",
    "ReactionKind",
    "REACTION_KINDS",
    # Models
    "User",
    "Memorial",
    "MemorialMember",
    "MemorialReaction",
    "Notification",
]
