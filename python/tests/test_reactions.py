"""Tests for the reaction store.

Tests cover:
- toggle_reaction alternates added/removed per (memorial, user, kind)
- Duplicate adds converge on one row and all report "added"
- Counts are live, zero-filled and in canonical order
- get_user_reactions and list_reactors
- Kind validation
"""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from memorial.db.models import REACTION_KINDS, MemorialReaction
from memorial.errors import ApiErrorCode, InvalidRequestError
from memorial.services import reactions as reactions_service
from memorial.services.reactions import (
    get_reaction_counts,
    get_user_reactions,
    list_reactors,
    toggle_reaction,
    validate_reaction_kind,
)
from tests.factories import create_test_memorial, create_test_reaction, create_test_user


def _row_count(db: Session, memorial_id, user_id, kind) -> int:
    return db.execute(
        select(func.count(MemorialReaction.id)).where(
            MemorialReaction.memorial_id == memorial_id,
            MemorialReaction.user_id == user_id,
            MemorialReaction.reaction_type == kind,
        )
    ).scalar_one()


class TestToggleReaction:
    def test_first_toggle_adds(self, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        assert toggle_reaction(db_session, memorial_id, owner, "kerze") == "added"
        assert _row_count(db_session, memorial_id, owner, "kerze") == 1

    def test_toggles_alternate(self, db_session: Session):
        owner = create_test_user(db_session)
        visitor = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        actions = [toggle_reaction(db_session, memorial_id, visitor, "liebe") for _ in range(4)]

        assert actions == ["added", "removed", "added", "removed"]
        assert _row_count(db_session, memorial_id, visitor, "liebe") == 0

    def test_kinds_are_independent(self, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        toggle_reaction(db_session, memorial_id, owner, "liebe")
        assert toggle_reaction(db_session, memorial_id, owner, "blumen") == "added"

        assert get_user_reactions(db_session, memorial_id, owner) == ["liebe", "blumen"]

    def test_invalid_kind_rejected_without_writes(self, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        with pytest.raises(InvalidRequestError) as exc_info:
            toggle_reaction(db_session, memorial_id, owner, "herz")

        assert exc_info.value.code == ApiErrorCode.E_INVALID_REACTION_KIND
        assert db_session.execute(select(func.count(MemorialReaction.id))).scalar_one() == 0

    def test_duplicate_adds_converge_on_one_row(self, db_session: Session, monkeypatch):
        """Callers that all saw "absent" all insert; only one row survives."""
        owner = create_test_user(db_session)
        visitor = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)
        monkeypatch.setattr(reactions_service, "_has_reaction", lambda *args: False)

        actions = [toggle_reaction(db_session, memorial_id, visitor, "kerze") for _ in range(5)]

        assert actions == ["added"] * 5
        assert _row_count(db_session, memorial_id, visitor, "kerze") == 1


class TestReactionCounts:
    def test_zero_filled_in_canonical_order(self, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        counts = get_reaction_counts(db_session, memorial_id)

        assert list(counts) == list(REACTION_KINDS)
        assert set(counts.values()) == {0}

    def test_counts_reflect_rows(self, db_session: Session):
        owner = create_test_user(db_session)
        a = create_test_user(db_session)
        b = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)
        create_test_reaction(db_session, memorial_id, a, "kerze")
        create_test_reaction(db_session, memorial_id, b, "kerze")
        create_test_reaction(db_session, memorial_id, b, "liebe")

        counts = get_reaction_counts(db_session, memorial_id)

        assert counts == {"liebe": 1, "dankbarkeit": 0, "freiheit": 0, "blumen": 0, "kerze": 2}

    def test_counts_scoped_to_memorial(self, db_session: Session):
        owner = create_test_user(db_session)
        first = create_test_memorial(db_session, owner)
        second = create_test_memorial(db_session, owner)
        create_test_reaction(db_session, first, owner, "freiheit")

        assert get_reaction_counts(db_session, second)["freiheit"] == 0

    def test_counts_drop_after_remove(self, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        toggle_reaction(db_session, memorial_id, owner, "dankbarkeit")
        toggle_reaction(db_session, memorial_id, owner, "dankbarkeit")

        assert get_reaction_counts(db_session, memorial_id)["dankbarkeit"] == 0


class TestListReactors:
    def test_grouped_per_user_newest_first(self, db_session: Session):
        owner = create_test_user(db_session)
        anna = create_test_user(db_session, name="Anna")
        ben = create_test_user(db_session, email="ben@example.com")
        memorial_id = create_test_memorial(db_session, owner)
        base = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        create_test_reaction(db_session, memorial_id, anna, "kerze", created_at=base)
        create_test_reaction(
            db_session, memorial_id, ben, "liebe", created_at=base + timedelta(minutes=5)
        )
        create_test_reaction(
            db_session, memorial_id, anna, "liebe", created_at=base + timedelta(minutes=10)
        )

        reactors = list_reactors(db_session, memorial_id)

        assert [r.user_id for r in reactors] == [anna, ben]
        assert reactors[0].user_name == "Anna"
        assert reactors[0].reaction_types == ["liebe", "kerze"]
        assert reactors[1].user_name == "ben"

    def test_placeholder_name_without_profile_or_email(self, db_session: Session):
        owner = create_test_user(db_session)
        anonymous_profile = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)
        create_test_reaction(db_session, memorial_id, anonymous_profile, "blumen")

        (reactor,) = list_reactors(db_session, memorial_id)

        assert reactor.user_name == "Besucher"
        assert reactor.user_avatar_url is None


class TestValidateReactionKind:
    @pytest.mark.parametrize("kind", REACTION_KINDS)
    def test_accepts_every_kind(self, kind):
        assert validate_reaction_kind(kind) == kind

    @pytest.mark.parametrize("kind", ["", "Liebe", "candle", None, 3])
    def test_rejects_others(self, kind):
        with pytest.raises(InvalidRequestError):
            validate_reaction_kind(kind)
