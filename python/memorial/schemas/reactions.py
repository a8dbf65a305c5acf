"""Reaction-related Pydantic schemas.

Contains request and response models for the reaction endpoints.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

ReactionAction = Literal["added", "removed"]

__all__ = [
    "ReactionAction",
    "ToggleReactionRequest",
    "ReactionsOut",
    "ToggleReactionOut",
    "ReactorOut",
    "ReactorListOut",
]

# =============================================================================
# Request Schemas
# =============================================================================


class ToggleReactionRequest(BaseModel):
    """Request body for toggling a reaction.

    The kind is validated by the service so an unknown value maps to
    E_INVALID_REACTION_KIND rather than a generic validation error.
    """

    kind: str = Field(
        ...,
        validation_alias=AliasChoices("kind", "reactionType"),
        description="One of liebe, dankbarkeit, freiheit, blumen, kerze",
    )


# =============================================================================
# Response Schemas
# =============================================================================


class ReactionsOut(BaseModel):
    """Live counts for every kind plus the viewer's own reactions."""

    counts: dict[str, int]
    actor_reactions: list[str]


class ToggleReactionOut(ReactionsOut):
    action: ReactionAction


class ReactorOut(BaseModel):
    """All reactions of one user on a memorial."""

    user_id: UUID
    user_name: str
    user_avatar_url: str | None
    reaction_types: list[str]
    latest_reaction_at: datetime


class ReactorListOut(BaseModel):
    reactions: list[ReactorOut]
    counts: dict[str, int]
