"""Display identity for a user acting on a memorial.

The actor's name is taken from the first source that yields a non-empty
value, in this order:

1. the profile name the user set themselves (users.name)
2. ``full_name`` from the identity provider's user metadata
3. ``name`` from the identity provider's user metadata
4. the local part of the e-mail address
5. the placeholder "Besucher"

The avatar follows the same pattern with profile avatar, then the identity
provider's ``avatar_url``. Sources are consulted lazily; the profile row is
loaded at most once and only when a strategy asks for it.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from sqlalchemy.orm import Session

from memorial.auth.middleware import Viewer
from memorial.db.models import User

PLACEHOLDER_ACTOR_NAME = "Besucher"


@dataclass
class ActorSources:
    """Everything a display-name strategy may look at."""

    load_profile: Callable[[], User | None]
    email: str | None = None
    identity_metadata: Mapping[str, Any] = field(default_factory=dict)

    @cached_property
    def profile(self) -> User | None:
        return self.load_profile()

    @classmethod
    def for_viewer(cls, db: Session, viewer: Viewer) -> "ActorSources":
        """Sources for the signed-in viewer (token claims plus stored profile)."""
        return cls(
            load_profile=lambda: db.get(User, viewer.user_id),
            email=viewer.email,
            identity_metadata=viewer.user_metadata,
        )

    @classmethod
    def for_user(cls, user: User | None) -> "ActorSources":
        """Sources for a stored user, when no identity claims are at hand."""
        return cls(
            load_profile=lambda: user,
            email=user.email if user is not None else None,
        )


@dataclass(frozen=True)
class ActorDisplay:
    name: str
    avatar_url: str | None


Strategy = Callable[[ActorSources], Any]


def _profile_name(sources: ActorSources) -> Any:
    return sources.profile.name if sources.profile is not None else None


def _identity_full_name(sources: ActorSources) -> Any:
    return sources.identity_metadata.get("full_name")


def _identity_name(sources: ActorSources) -> Any:
    return sources.identity_metadata.get("name")


def _email_local_part(sources: ActorSources) -> Any:
    if not sources.email:
        return None
    return sources.email.split("@", 1)[0]


def _profile_avatar(sources: ActorSources) -> Any:
    return sources.profile.avatar_url if sources.profile is not None else None


def _identity_avatar(sources: ActorSources) -> Any:
    return sources.identity_metadata.get("avatar_url")


NAME_STRATEGIES: tuple[Strategy, ...] = (
    _profile_name,
    _identity_full_name,
    _identity_name,
    _email_local_part,
)

AVATAR_STRATEGIES: tuple[Strategy, ...] = (
    _profile_avatar,
    _identity_avatar,
)


def first_present(strategies: tuple[Strategy, ...], sources: ActorSources) -> str | None:
    """Return the first non-blank string any strategy yields, else None."""
    for strategy in strategies:
        value = strategy(sources)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def resolve_actor_display(sources: ActorSources) -> ActorDisplay:
    return ActorDisplay(
        name=first_present(NAME_STRATEGIES, sources) or PLACEHOLDER_ACTOR_NAME,
        avatar_url=first_present(AVATAR_STRATEGIES, sources),
    )
