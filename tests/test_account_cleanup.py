"""
Tests for expired account cleanup
"""

import pytest
from datetime import datetime, timedelta, UTC
from decimal import Decimal

from sqlalchemy import select, func

from fitai.database.crud import create_subscription, get_user_by_id
from fitai.database.models import (
    ForumPost,
    Notification,
    PromoterStatus,
    Referral,
    SubscriptionStatus,
)
from fitai.services import storage_service
from fitai.services.account_cleanup_service import AccountCleanupService
from fitai.services.affiliate_service import AffiliateService
from fitai.services.forum_service import ForumService
from fitai.services.notification_service import NotificationService
from fitai.services.promoter_service import PromoterService
from fitai.services.storage_service import StorageService

from tests.conftest import ADMIN_EMAIL


async def _count(session, model):
    stmt = select(func.count(model.id))
    return (await session.execute(stmt)).scalar()


@pytest.mark.asyncio
async def test_expired_trial_is_deleted_with_its_data(db_session, make_user, tmp_path, monkeypatch):
    storage = StorageService(root=str(tmp_path))
    monkeypatch.setattr(storage_service, "_storage_service", storage)

    user = await make_user(created_hours_ago=72)
    user.avatar_url, _ = storage.save_avatar(user.id, b"img", "image/png")
    await db_session.commit()
    avatar_path = storage.path_from_url(user.avatar_url)

    category = await ForumService.create_category(db_session, "Geral")
    await ForumService.create_post(db_session, user.id, category.id, "Meu treino", "Conteúdo suficiente aqui")
    await NotificationService.create_notification(db_session, user.id, "Oi", "...")
    fresh = await make_user(email="fresh@example.com")

    result = await AccountCleanupService.cleanup_expired_accounts(db_session)

    assert result == {"checked": 2, "deleted": 1}
    assert await get_user_by_id(db_session, user.id) is None
    assert await get_user_by_id(db_session, fresh.id) is not None
    assert await _count(db_session, ForumPost) == 0
    assert await _count(db_session, Notification) == 0
    assert not avatar_path.exists()


@pytest.mark.asyncio
async def test_protected_accounts_are_kept(db_session, make_user):
    now = datetime.now(UTC)
    limit_date = now - timedelta(hours=48)

    admin = await make_user(email=ADMIN_EMAIL, created_hours_ago=72)
    subscriber = await make_user(email="subscriber@example.com", created_hours_ago=72)
    subscription = await create_subscription(db_session, subscriber.id, "pay_1", Decimal("69.90"))
    subscription.status = SubscriptionStatus.EXPIRED.value
    await db_session.commit()
    promoter_user = await make_user(email="promoter@example.com", created_hours_ago=72)
    await PromoterService.create_promoter(db_session, promoter_user.email)

    for user in (admin, subscriber, promoter_user):
        assert not await AccountCleanupService.should_delete(
            db_session, user.id, user.email, user.created_at, limit_date, now
        )


@pytest.mark.asyncio
async def test_former_promoter_grace_period_starts_at_deactivation(db_session, make_user):
    now = datetime.now(UTC)
    limit_date = now - timedelta(hours=48)
    user = await make_user(email="promoter@example.com", created_hours_ago=500)
    promoter, _ = await PromoterService.create_promoter(db_session, user.email)

    await PromoterService.set_status(db_session, promoter.id, PromoterStatus.INACTIVE)
    assert not await AccountCleanupService.should_delete(
        db_session, user.id, user.email, user.created_at, limit_date, now
    )

    promoter.deactivated_at = now - timedelta(hours=49)
    await db_session.commit()
    assert await AccountCleanupService.should_delete(
        db_session, user.id, user.email, user.created_at, limit_date, now
    )


@pytest.mark.asyncio
async def test_deleting_affiliate_removes_referrals(db_session, make_user):
    affiliate_user = await make_user(email="affiliate@example.com")
    affiliate = await AffiliateService.create_affiliate(db_session, affiliate_user)
    buyer = await make_user(email="buyer@example.com")
    await AffiliateService.stage_referral_code(db_session, buyer, affiliate.affiliate_code)

    await AccountCleanupService.delete_user_data(db_session, affiliate_user.id)
    await db_session.commit()

    assert await _count(db_session, Referral) == 0
    assert await get_user_by_id(db_session, buyer.id) is not None
