"""Tests for the actor display-name fallback chain."""

from uuid import uuid4

from sqlalchemy.orm import Session

from memorial.auth.middleware import Viewer
from memorial.db.models import User
from memorial.services.actors import (
    PLACEHOLDER_ACTOR_NAME,
    ActorSources,
    resolve_actor_display,
)
from tests.factories import create_test_user


def _sources(profile=None, email=None, **metadata) -> ActorSources:
    return ActorSources(load_profile=lambda: profile, email=email, identity_metadata=metadata)


class TestNameFallback:
    def test_profile_name_wins(self):
        profile = User(id=uuid4(), name="Anna Profil")
        sources = _sources(profile, "x@example.com", full_name="Anna Identity")

        assert resolve_actor_display(sources).name == "Anna Profil"

    def test_identity_full_name_before_name(self):
        sources = _sources(None, "x@example.com", full_name="Full Name", name="Short")

        assert resolve_actor_display(sources).name == "Full Name"

    def test_identity_name(self):
        assert resolve_actor_display(_sources(name="Short")).name == "Short"

    def test_email_local_part(self):
        assert resolve_actor_display(_sources(email="jonas.k@example.com")).name == "jonas.k"

    def test_placeholder(self):
        assert resolve_actor_display(_sources()).name == PLACEHOLDER_ACTOR_NAME == "Besucher"

    def test_blank_values_are_skipped(self):
        profile = User(id=uuid4(), name="   ")
        sources = _sources(profile, "mia@example.com", full_name="", name=None)

        assert resolve_actor_display(sources).name == "mia"

    def test_non_string_metadata_is_skipped(self):
        assert resolve_actor_display(_sources(full_name={"first": "A"}, name="B")).name == "B"


class TestLaziness:
    def test_profile_loaded_once(self):
        loads = []

        def load():
            loads.append(1)
            return None

        resolve_actor_display(ActorSources(load_profile=load, email="a@example.com"))

        assert loads == [1]


class TestAvatar:
    def test_profile_avatar_before_identity(self):
        profile = User(id=uuid4(), avatar_url="https://img/profile.png")
        sources = _sources(profile, avatar_url="https://img/identity.png")

        assert resolve_actor_display(sources).avatar_url == "https://img/profile.png"

    def test_identity_avatar(self):
        sources = _sources(avatar_url="https://img/identity.png")

        assert resolve_actor_display(sources).avatar_url == "https://img/identity.png"

    def test_no_avatar(self):
        assert resolve_actor_display(_sources()).avatar_url is None


class TestForViewer:
    def test_reads_stored_profile(self, db_session: Session):
        user_id = create_test_user(db_session, name="Gespeichert")
        viewer = Viewer(user_id=user_id, user_metadata={"full_name": "Aus Token"})

        display = resolve_actor_display(ActorSources.for_viewer(db_session, viewer))

        assert display.name == "Gespeichert"

    def test_missing_profile_row_uses_claims(self, db_session: Session):
        viewer = Viewer(user_id=uuid4(), email="lena@example.com")

        display = resolve_actor_display(ActorSources.for_viewer(db_session, viewer))

        assert display.name == "lena"
