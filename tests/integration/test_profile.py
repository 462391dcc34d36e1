"""Integration tests for GET/PUT /api/profile."""

from datetime import timedelta

import pytest
from libs.auth.security import create_access_token
from libs.common.datetime_utils import utc_now
from tests.factories import MembershipFactory, bearer, register_user


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_profile_without_membership(client, auth_headers):
    response = await client.get("/api/profile", headers=auth_headers)

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["username"] == "alice"
    assert user["email"] == "alice@example.com"
    assert user["membership"] is None
    assert "password" not in user


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_profile_includes_membership(client, auth_headers):
    await client.post(
        "/api/memberships", json={"planId": "monthly"}, headers=auth_headers
    )

    response = await client.get("/api/profile", headers=auth_headers)

    membership = response.json()["user"]["membership"]
    assert membership["plan_id"] == "monthly"
    assert membership["is_active"] is True


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Bearer not-a-token"}, {"Authorization": "Basic abc"}],
)
async def test_profile_requires_valid_token(client, headers):
    response = await client.get("/api/profile", headers=headers)

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_profile_of_deleted_user_is_not_found(client):
    """A valid token whose user no longer exists resolves to 404."""
    headers = bearer(create_access_token(9999))

    get_response = await client.get("/api/profile", headers=headers)
    put_response = await client.put(
        "/api/profile", json={"username": "ghost"}, headers=headers
    )

    assert get_response.status_code == 404
    assert put_response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_username(client, auth_headers):
    response = await client.put(
        "/api/profile", json={"username": "  alicia "}, headers=auth_headers
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["message"] == "Profile updated successfully"
    assert data["user"]["username"] == "alicia"
    assert data["user"]["email"] == "alice@example.com"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_username_and_email(client, auth_headers):
    response = await client.put(
        "/api/profile",
        json={"username": "alicia", "email": "alicia@example.com"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["user"]["email"] == "alicia@example.com"

    profile = await client.get("/api/profile", headers=auth_headers)
    assert profile.json()["user"]["email"] == "alicia@example.com"


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("body", [{}, {"username": ""}, {"username": "   "}])
async def test_update_requires_username(client, auth_headers, body):
    response = await client.put("/api/profile", json=body, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Username is required"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_to_own_username_is_allowed(client, auth_headers):
    response = await client.put(
        "/api/profile", json={"username": "alice"}, headers=auth_headers
    )
    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_to_taken_username_conflicts(client, auth_headers):
    await register_user(client, username="bob", email="bob@example.com")

    response = await client.put(
        "/api/profile", json={"username": "bob"}, headers=auth_headers
    )

    assert response.status_code == 409
    assert response.json()["code"] == "USERNAME_TAKEN"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_to_taken_email_conflicts(client, auth_headers):
    await register_user(client, username="bob", email="bob@example.com")

    response = await client.put(
        "/api/profile",
        json={"username": "alice", "email": "bob@example.com"},
        headers=auth_headers,
    )

    assert response.status_code == 409


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_rejects_overlong_username(client, auth_headers):
    response = await client.put(
        "/api/profile", json={"username": "x" * 256}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"

    profile = await client.get("/api/profile", headers=auth_headers)
    assert profile.json()["user"]["username"] == "alice"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_profile_shows_expired_membership_as_inactive(client, db_session):
    """An expired row keeps status "active" but reports is_active false."""
    token, user = await register_user(client)
    db_session.add(
        MembershipFactory.create(
            user["id"],
            plan_id="quarterly",
            amount=564,
            started_at=utc_now() - timedelta(days=91),
            expires_at=utc_now() - timedelta(days=1),
        )
    )
    await db_session.commit()

    response = await client.get("/api/profile", headers=bearer(token))

    membership = response.json()["user"]["membership"]
    assert membership["plan_id"] == "quarterly"
    assert membership["status"] == "active"
    assert membership["is_active"] is False
