from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.auth import CAPABILITIES, can, create_session_token, verify_session_token
from app.models import User, UserRole
from app.shared.errors import Unauthorized


def user_with(role: UserRole) -> User:
    return User(id="u-1", email="x@example.com", role=role)


@pytest.mark.parametrize(
    "role, capability, allowed",
    [
        (UserRole.USER, "booking:read", True),
        (UserRole.USER, "booking:modify", True),
        (UserRole.USER, "email:send", False),
        (UserRole.USER, "email:queue:manage", False),
        (UserRole.FACILITY_OWNER, "email:send", True),
        (UserRole.FACILITY_OWNER, "email:queue:read", False),
        (UserRole.FACILITY_OWNER, "email:queue:manage", False),
        (UserRole.ADMIN, "email:queue:manage", True),
        (UserRole.ADMIN, "email:health", True),
    ],
)
def test_capability_table(role, capability, allowed):
    assert can(user_with(role), capability) is allowed


def test_admin_holds_every_capability():
    admin = user_with(UserRole.ADMIN)

    assert all(can(admin, capability) for capability in CAPABILITIES)


def test_unknown_capability_is_denied():
    assert can(user_with(UserRole.ADMIN), "booking:delete") is False


class TestSessionTokens:
    def test_verifies_own_token(self):
        payload = verify_session_token(create_session_token("u-42"))

        assert payload["sub"] == "u-42"

    def test_expired_token(self):
        token = create_session_token("u-42", expires_delta=timedelta(seconds=-10))

        with pytest.raises(Unauthorized) as exc:
            verify_session_token(token)

        assert "expired" in exc.value.detail

    def test_garbage_token(self):
        with pytest.raises(Unauthorized):
            verify_session_token("not-a-jwt")


class TestBearerAuthentication:
    """Runs the real get_current_user against the test database"""

    def test_valid_token(self, client_for, player):
        client: TestClient = client_for(None)

        response = client.get("/bookings", headers={"Authorization": f"Bearer {create_session_token(player.id)}"})

        assert response.status_code == 200
        assert response.json() == []

    def test_token_for_unknown_user(self, client_for):
        client = client_for(None)

        response = client.get("/bookings", headers={"Authorization": f"Bearer {create_session_token('ghost')}"})

        assert response.status_code == 401

    def test_missing_header(self, unauthed_client):
        response = unauthed_client.get("/bookings")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_forbidden_role(self, client_for, player):
        client = client_for(None)

        response = client.get("/email/queue", headers={"Authorization": f"Bearer {create_session_token(player.id)}"})

        assert response.status_code == 403
