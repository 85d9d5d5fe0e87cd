"""
Tests for authentication and access permissions
Trial window, admin allowlist, promoters, subscriptions and the auth endpoints
"""

import pytest
from datetime import datetime, timedelta, UTC
from decimal import Decimal

from fitai.database.crud import create_subscription, activate_subscription
from fitai.database.models import Promoter, PromoterStatus
from fitai.services.auth_service import AuthService

from tests.conftest import ADMIN_EMAIL, auth_headers


# ============================================================================
# PASSWORDS & TOKENS
# ============================================================================


def test_password_hash_roundtrip():
    password_hash = AuthService.hash_password("secret123")

    assert password_hash != "secret123"
    assert AuthService.verify_password("secret123", password_hash)
    assert not AuthService.verify_password("wrong", password_hash)


def test_verify_password_with_malformed_hash():
    assert AuthService.verify_password("secret123", "not-a-bcrypt-hash") is False


def test_password_over_bcrypt_limit():
    long_password = "a" * 80
    password_hash = AuthService.hash_password("secret123")

    assert AuthService.password_fits("a" * 72)
    assert not AuthService.password_fits("ç" * 40)
    assert AuthService.verify_password(long_password, password_hash) is False
    with pytest.raises(ValueError):
        AuthService.hash_password(long_password)


def test_access_token_contains_user():
    token = AuthService.create_access_token(42, "ana@example.com")
    payload = AuthService.decode_access_token(token)

    assert payload["user_id"] == 42
    assert payload["email"] == "ana@example.com"


def test_decode_invalid_token_returns_none():
    assert AuthService.decode_access_token("garbage.token.value") is None


def test_admin_email_is_case_insensitive():
    assert AuthService.is_admin_email("  ADMIN@fitai.test ")
    assert not AuthService.is_admin_email("someone@fitai.test")


# ============================================================================
# PERMISSIONS
# ============================================================================


@pytest.mark.asyncio
async def test_new_user_has_trial_access(db_session, make_user):
    user = await make_user()

    permissions = await AuthService.get_permissions(db_session, user)

    assert permissions.is_trial_active
    assert permissions.has_premium_access
    assert not permissions.is_admin
    assert not permissions.has_active_subscription


@pytest.mark.asyncio
async def test_trial_expires_after_24_hours(db_session, make_user):
    user = await make_user(created_hours_ago=25)

    permissions = await AuthService.get_permissions(db_session, user)

    assert not permissions.is_trial_active
    assert not permissions.has_premium_access


@pytest.mark.asyncio
async def test_trial_boundary(db_session, make_user):
    user = await make_user()
    created_at = user.created_at if user.created_at.tzinfo else user.created_at.replace(tzinfo=UTC)

    just_before = await AuthService.get_permissions(
        db_session, user, now=created_at + timedelta(hours=23, minutes=59)
    )
    exactly_at = await AuthService.get_permissions(
        db_session, user, now=created_at + timedelta(hours=24)
    )

    assert just_before.is_trial_active
    assert not exactly_at.is_trial_active


@pytest.mark.asyncio
async def test_admin_gets_everything(db_session, make_user):
    admin = await make_user(email=ADMIN_EMAIL, created_hours_ago=1000)

    permissions = await AuthService.get_permissions(db_session, admin)

    assert permissions.is_admin
    assert permissions.is_trial_active
    assert permissions.is_promoter
    assert permissions.has_active_subscription
    assert permissions.has_premium_access


@pytest.mark.asyncio
async def test_active_promoter_has_access(db_session, make_user):
    user = await make_user(created_hours_ago=100)
    db_session.add(Promoter(user_id=user.id, promoter_code="PROMOABC123", status=PromoterStatus.ACTIVE.value))
    await db_session.commit()

    permissions = await AuthService.get_permissions(db_session, user)

    assert permissions.is_promoter
    assert permissions.has_premium_access


@pytest.mark.asyncio
async def test_inactive_promoter_has_no_access(db_session, make_user):
    user = await make_user(created_hours_ago=100)
    db_session.add(Promoter(
        user_id=user.id,
        promoter_code="PROMOXYZ789",
        status=PromoterStatus.INACTIVE.value,
        deactivated_at=datetime.now(UTC),
    ))
    await db_session.commit()

    permissions = await AuthService.get_permissions(db_session, user)

    assert not permissions.is_promoter
    assert not permissions.has_premium_access


@pytest.mark.asyncio
async def test_active_subscription_grants_access(db_session, make_user):
    user = await make_user(created_hours_ago=100)
    subscription = await create_subscription(db_session, user.id, "pay_001", Decimal("69.90"))
    await activate_subscription(db_session, subscription, duration_days=30)

    permissions = await AuthService.get_permissions(db_session, user)

    assert permissions.has_active_subscription
    assert permissions.subscription_expires_at is not None
    assert permissions.has_premium_access


@pytest.mark.asyncio
async def test_expired_subscription_does_not_grant_access(db_session, make_user):
    user = await make_user(created_hours_ago=100)
    subscription = await create_subscription(db_session, user.id, "pay_002", Decimal("69.90"))
    await activate_subscription(db_session, subscription, duration_days=30)

    permissions = await AuthService.get_permissions(
        db_session, user, now=datetime.now(UTC) + timedelta(days=31)
    )

    assert not permissions.has_active_subscription


@pytest.mark.asyncio
async def test_permissions_to_dict(db_session, make_user):
    user = await make_user()

    data = (await AuthService.get_permissions(db_session, user)).to_dict()

    assert data["has_premium_access"] is True
    assert isinstance(data["trial_ends_at"], str)
    assert data["subscription_expires_at"] is None


# ============================================================================
# PASSWORD RESET
# ============================================================================


@pytest.mark.asyncio
async def test_reset_token_is_single_use(db_session, make_user):
    user = await make_user()
    reset_token = await AuthService.create_reset_token(db_session, user)

    updated = await AuthService.reset_password(db_session, reset_token.token, "newpass456")
    assert updated is not None
    assert AuthService.verify_password("newpass456", updated.password_hash)

    assert await AuthService.reset_password(db_session, reset_token.token, "another789") is None


@pytest.mark.asyncio
async def test_reset_with_unknown_token(db_session):
    assert await AuthService.reset_password(db_session, "does-not-exist", "newpass456") is None


# ============================================================================
# API
# ============================================================================


@pytest.mark.asyncio
async def test_signup_and_me(client):
    response = await client.post("/api/auth/signup", json={
        "email": "Nova@Example.com",
        "password": "secret123",
        "full_name": "Nova Usuária",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["user"]["email"] == "nova@example.com"

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["permissions"]["is_trial_active"] is True


@pytest.mark.asyncio
async def test_signup_duplicate_email(client, make_user):
    await make_user(email="dup@example.com")

    response = await client.post("/api/auth/signup", json={
        "email": "dup@example.com",
        "password": "secret123",
        "full_name": "Dup",
    })

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_login(client, make_user):
    await make_user(email="login@example.com", password="secret123")

    ok = await client.post("/api/auth/login", json={"email": "login@example.com", "password": "secret123"})
    wrong = await client.post("/api/auth/login", json={"email": "login@example.com", "password": "nope"})

    assert ok.status_code == 200
    assert ok.json()["token"]
    assert wrong.status_code == 401


@pytest.mark.asyncio
async def test_banned_user_cannot_login(client, db_session, make_user):
    user = await make_user(email="banned@example.com", password="secret123")
    user.is_banned = True
    await db_session.commit()

    response = await client.post("/api/auth/login", json={"email": "banned@example.com", "password": "secret123"})

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_me_requires_bearer_token(client):
    assert (await client.get("/api/auth/me")).status_code == 401
    assert (await client.get("/api/auth/me", headers={"Authorization": "Token abc"})).status_code == 401
    assert (await client.get("/api/auth/me", headers={"Authorization": "Bearer abc"})).status_code == 401


@pytest.mark.asyncio
async def test_forgot_password_does_not_reveal_accounts(client):
    response = await client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

    assert response.status_code == 200
    assert response.json()["success"] is True


@pytest.mark.asyncio
async def test_change_password(client, make_user):
    user = await make_user(password="secret123")
    headers = auth_headers(user)

    wrong = await client.post("/api/auth/change-password", headers=headers, json={
        "current_password": "bad", "new_password": "newpass456",
    })
    same = await client.post("/api/auth/change-password", headers=headers, json={
        "current_password": "secret123", "new_password": "secret123",
    })
    ok = await client.post("/api/auth/change-password", headers=headers, json={
        "current_password": "secret123", "new_password": "newpass456",
    })

    assert wrong.status_code == 400
    assert same.status_code == 400
    assert ok.status_code == 200
    assert AuthService.verify_password("newpass456", user.password_hash)


@pytest.mark.asyncio
async def test_premium_endpoint_rejects_expired_trial(client, make_user):
    user = await make_user(created_hours_ago=30)

    response = await client.post(
        "/api/chat/general", headers=auth_headers(user), json={"message": "Olá"}
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_long_passwords_are_rejected(client, make_user):
    user = await make_user(password="secret123")

    signup = await client.post("/api/auth/signup", json={
        "email": "longa@example.com",
        "password": "a" * 80,
        "full_name": "Senha Longa",
    })
    multibyte = await client.post("/api/auth/signup", json={
        "email": "acentos@example.com",
        "password": "ç" * 40,
        "full_name": "Senha Acentuada",
    })
    change = await client.post("/api/auth/change-password", headers=auth_headers(user), json={
        "current_password": "secret123", "new_password": "b" * 73,
    })
    reset = await client.post("/api/auth/reset-password", json={"token": "x", "new_password": "c" * 100})
    login = await client.post("/api/auth/login", json={"email": user.email, "password": "d" * 100})

    assert signup.status_code == 422
    assert multibyte.status_code == 422
    assert change.status_code == 422
    assert reset.status_code == 422
    assert login.status_code == 401
