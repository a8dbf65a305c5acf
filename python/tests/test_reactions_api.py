"""Integration tests for the reaction endpoints.

Exercises the full stack: auth middleware, user bootstrap, routing, access
gate, toggle, notification and response envelopes.
"""

from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from memorial.db.models import Notification, User
from tests.factories import create_test_memorial, create_test_user
from tests.helpers import auth_headers


def _toggle(client: TestClient, memorial_id, user_id, kind: str, **claims):
    return client.post(
        f"/memorials/{memorial_id}/reactions",
        json={"kind": kind},
        headers=auth_headers(user_id, **claims),
    )


class TestToggleEndpoint:
    def test_add_then_remove(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)
        visitor = uuid4()

        added = _toggle(client, memorial_id, visitor, "liebe")
        removed = _toggle(client, memorial_id, visitor, "liebe")

        assert added.status_code == 200
        assert added.json()["data"]["action"] == "added"
        assert added.json()["data"]["counts"]["liebe"] == 1
        assert added.json()["data"]["actor_reactions"] == ["liebe"]
        assert removed.json()["data"]["action"] == "removed"
        assert removed.json()["data"]["counts"]["liebe"] == 0

    def test_first_request_bootstraps_user(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)
        visitor = uuid4()

        _toggle(client, memorial_id, visitor, "kerze", email="neu@example.com")

        user = db_session.get(User, visitor)
        assert user is not None
        assert user.email == "neu@example.com"

    def test_visitor_reaction_notifies_owner(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)
        visitor = uuid4()

        _toggle(
            client,
            memorial_id,
            visitor,
            "blumen",
            email="anna@example.com",
            user_metadata={"full_name": "Anna Beispiel"},
        )

        notification = db_session.execute(select(Notification)).scalar_one()
        assert notification.recipient_id == owner
        assert notification.actor_name == "Anna Beispiel"

    def test_owner_scenario_counts_and_no_notification(
        self, client: TestClient, db_session: Session
    ):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        response = _toggle(client, memorial_id, owner, "kerze")

        assert response.json()["data"]["action"] == "added"
        assert db_session.execute(select(Notification)).first() is None

    def test_missing_token_is_401(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        response = client.post(f"/memorials/{memorial_id}/reactions", json={"kind": "liebe"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "E_UNAUTHENTICATED"

    def test_invalid_kind_is_400(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        response = _toggle(client, memorial_id, owner, "herz")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_INVALID_REACTION_KIND"

    def test_missing_kind_is_400(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        response = client.post(
            f"/memorials/{memorial_id}/reactions", json={}, headers=auth_headers(owner)
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_INVALID_REQUEST"

    def test_legacy_reaction_type_field_accepted(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        response = client.post(
            f"/memorials/{memorial_id}/reactions",
            json={"reactionType": "freiheit"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        assert response.json()["data"]["action"] == "added"

    def test_unknown_memorial_is_404(self, client: TestClient):
        response = _toggle(client, uuid4(), uuid4(), "liebe")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_MEMORIAL_NOT_FOUND"

    def test_private_memorial_hidden_from_stranger(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner, privacy_level="private")

        response = _toggle(client, memorial_id, uuid4(), "liebe")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_MEMORIAL_NOT_FOUND"


class TestReadEndpoints:
    def test_anonymous_read_on_public_memorial(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)
        _toggle(client, memorial_id, owner, "kerze")

        response = client.get(f"/memorials/{memorial_id}/reactions")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["counts"] == {
            "liebe": 0,
            "dankbarkeit": 0,
            "freiheit": 0,
            "blumen": 0,
            "kerze": 1,
        }
        assert data["actor_reactions"] == []

    def test_anonymous_read_on_private_memorial_is_401(
        self, client: TestClient, db_session: Session
    ):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner, privacy_level="private")

        response = client.get(f"/memorials/{memorial_id}/reactions")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "E_UNAUTHENTICATED"

    def test_signed_in_read_includes_own_reactions(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)
        _toggle(client, memorial_id, owner, "dankbarkeit")

        response = client.get(f"/memorials/{memorial_id}/reactions", headers=auth_headers(owner))

        assert response.json()["data"]["actor_reactions"] == ["dankbarkeit"]

    def test_reactor_list(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)
        visitor = uuid4()
        _toggle(client, memorial_id, visitor, "liebe", email="paul@example.com")

        response = client.get(f"/memorials/{memorial_id}/reactions/list")

        assert response.status_code == 200
        (reactor,) = response.json()["data"]["reactions"]
        assert reactor["user_id"] == str(visitor)
        assert reactor["user_name"] == "paul"
        assert reactor["reaction_types"] == ["liebe"]
        assert response.json()["data"]["counts"]["liebe"] == 1

    def test_memorial_summary_for_anonymous_visitor(
        self, client: TestClient, db_session: Session
    ):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner)

        response = client.get(f"/memorials/{memorial_id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["display_name"] == "Erika Mustermann"
        assert data["role"] == "visitor"
        assert data["reason"] == "public"

    def test_memorial_summary_for_owner(self, client: TestClient, db_session: Session):
        owner = create_test_user(db_session)
        memorial_id = create_test_memorial(db_session, owner, privacy_level="private")

        response = client.get(f"/memorials/{memorial_id}", headers=auth_headers(owner))

        assert response.json()["data"]["role"] == "creator"

    def test_invalid_memorial_id_is_400(self, client: TestClient):
        response = client.get("/memorials/not-a-uuid/reactions")

        assert response.status_code == 400
