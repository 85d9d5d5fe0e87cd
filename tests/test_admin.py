"""
Tests for promoter management, admin stats and maintenance jobs
"""

import pytest
from datetime import datetime, timedelta, UTC
from decimal import Decimal

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from fitai.database.crud import activate_subscription, create_subscription, expire_subscriptions
from fitai.database.models import PromoterStatus, SubscriptionStatus
from fitai.services.auth_service import AuthService
from fitai.services.challenge_service import ChallengeService
from fitai.services.promoter_service import PromoterService
from fitai.tasks import maintenance_scheduler

from tests.conftest import ADMIN_EMAIL, auth_headers


# ============================================================================
# PROMOTERS
# ============================================================================


@pytest.mark.asyncio
async def test_create_promoter_codes(db_session, make_user):
    user = await make_user(email="promoter@example.com")

    promoter, code = await PromoterService.create_promoter(db_session, "PROMOTER@example.com")

    assert code == "ok"
    assert promoter.promoter_code.startswith("PROMO")
    assert await PromoterService.create_promoter(db_session, user.email) == (None, "already_promoter")
    assert await PromoterService.create_promoter(db_session, "ghost@example.com") == (None, "user_not_found")


@pytest.mark.asyncio
async def test_promoter_status_drives_premium_access(db_session, make_user):
    user = await make_user(email="promoter@example.com", created_hours_ago=72)
    promoter, _ = await PromoterService.create_promoter(db_session, user.email)

    assert (await AuthService.get_permissions(db_session, user)).has_premium_access

    await PromoterService.set_status(db_session, promoter.id, PromoterStatus.INACTIVE)
    assert promoter.deactivated_at is not None
    assert not (await AuthService.get_permissions(db_session, user)).has_premium_access

    await PromoterService.set_status(db_session, promoter.id, PromoterStatus.ACTIVE)
    assert promoter.deactivated_at is None


@pytest.mark.asyncio
async def test_admin_stats(db_session, make_user):
    buyer = await make_user(email="buyer@example.com")
    subscription = await create_subscription(db_session, buyer.id, "pay_1", Decimal("69.90"))
    await activate_subscription(db_session, subscription, duration_days=30)
    await make_user(email="promoter@example.com")
    await PromoterService.create_promoter(db_session, "promoter@example.com")

    stats = await PromoterService.get_admin_stats(db_session)

    assert stats == {
        "total_users": 2,
        "active_subscribers": 1,
        "active_promoters": 1,
        "total_affiliates": 0,
    }


@pytest.mark.asyncio
async def test_expire_subscriptions(db_session, make_user):
    user = await make_user()
    subscription = await create_subscription(db_session, user.id, "pay_1", Decimal("69.90"))
    await activate_subscription(db_session, subscription, duration_days=30)

    assert await expire_subscriptions(db_session) == 0
    assert await expire_subscriptions(db_session, now=datetime.now(UTC) + timedelta(days=31)) == 1

    await db_session.refresh(subscription)
    assert subscription.status == SubscriptionStatus.EXPIRED.value


@pytest.mark.asyncio
async def test_admin_endpoints(client, make_user):
    user = await make_user()
    admin = await make_user(email=ADMIN_EMAIL)
    headers = auth_headers(admin)

    denied = await client.get("/api/admin/stats", headers=auth_headers(user))
    created = await client.post("/api/admin/promoters", headers=headers, json={"email": user.email})
    duplicate = await client.post("/api/admin/promoters", headers=headers, json={"email": user.email})
    missing = await client.post("/api/admin/promoters", headers=headers, json={"email": "ghost@example.com"})
    promoter_id = created.json()["id"]
    pending = await client.put(
        f"/api/admin/promoters/{promoter_id}/status", headers=headers, json={"status": "pending"}
    )
    inactive = await client.put(
        f"/api/admin/promoters/{promoter_id}/status", headers=headers, json={"status": "inactive"}
    )
    listing = await client.get("/api/admin/promoters", headers=headers)
    deleted = await client.delete(f"/api/admin/promoters/{promoter_id}", headers=headers)

    assert denied.status_code == 403
    assert created.json()["email"] == user.email
    assert duplicate.status_code == 409
    assert missing.status_code == 404
    assert pending.status_code == 400
    assert inactive.json()["deactivated_at"] is not None
    assert [p["status"] for p in listing.json()["promoters"]] == ["inactive"]
    assert deleted.status_code == 200
    assert (await client.delete(f"/api/admin/promoters/{promoter_id}", headers=headers)).status_code == 404


# ============================================================================
# SCHEDULER
# ============================================================================


def test_maintenance_jobs_registered(monkeypatch):
    monkeypatch.setattr(maintenance_scheduler, "ACCOUNT_CLEANUP_ENABLED", False)

    scheduler = maintenance_scheduler.schedule_maintenance_tasks(AsyncIOScheduler(timezone="UTC"))

    assert {job.id for job in scheduler.get_jobs()} == {
        "cleanup_notifications",
        "generate_challenges",
        "process_workout_queue",
        "expire_subscriptions",
    }


def test_account_cleanup_job_is_opt_in(monkeypatch):
    monkeypatch.setattr(maintenance_scheduler, "ACCOUNT_CLEANUP_ENABLED", True)

    scheduler = maintenance_scheduler.schedule_maintenance_tasks(AsyncIOScheduler(timezone="UTC"))

    assert scheduler.get_job("cleanup_expired_accounts") is not None


@pytest.mark.asyncio
async def test_challenge_job_uses_session_maker(session_maker, monkeypatch):
    monkeypatch.setattr(maintenance_scheduler, "get_session_maker", lambda: session_maker)

    await maintenance_scheduler.generate_challenges()
    await maintenance_scheduler.process_workout_queue()

    async with session_maker() as session:
        result = await ChallengeService.generate_daily_challenges(session)

    assert result["daily_created"] == 0
