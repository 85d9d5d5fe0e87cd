# coding: utf-8
"""
Account Cleanup Service

Removes accounts that never converted once their grace period is over:
- regular users: ACCOUNT_GRACE_HOURS after signup
- former promoters: ACCOUNT_GRACE_HOURS after deactivation

Kept regardless of age: admins, active promoters, users with an active
subscription and users who ever paid (active/expired/cancelled rows).
"""

from datetime import datetime, timedelta, UTC
from typing import Optional, Dict

from loguru import logger
from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from config.config import ACCOUNT_GRACE_HOURS
from fitai.database.crud import get_active_subscription, get_promoter_by_user
from fitai.database.models import (
    Affiliate,
    AffiliateWithdrawal,
    AIConversation,
    Commission,
    ForumPost,
    ForumPostLike,
    ForumReply,
    ForumReplyLike,
    Notification,
    PasswordResetToken,
    Promoter,
    PromoterStatus,
    Referral,
    Subscription,
    SubscriptionStatus,
    User,
    UserChallengeProgress,
    UserGamification,
    UserOnboardingStatus,
    UserProfile,
    UserProgress,
    UserWorkoutPlan,
    WorkoutPlanQueue,
)
from fitai.services.auth_service import AuthService
from fitai.services.storage_service import get_storage_service
from fitai.utils.time_utils import ensure_utc


PAID_STATUSES = (
    SubscriptionStatus.ACTIVE.value,
    SubscriptionStatus.EXPIRED.value,
    SubscriptionStatus.CANCELLED.value,
)

# Plain user_id tables, deleted after the forum/affiliate graph
USER_OWNED_TABLES = (
    AIConversation,
    UserProgress,
    UserWorkoutPlan,
    WorkoutPlanQueue,
    UserProfile,
    UserOnboardingStatus,
    UserGamification,
    UserChallengeProgress,
    Notification,
    PasswordResetToken,
    Promoter,
)


class AccountCleanupService:
    """Deletion of expired trial accounts"""

    @staticmethod
    async def should_delete(
        session: AsyncSession,
        user_id: int,
        email: str,
        created_at: datetime,
        limit_date: datetime,
        now: datetime,
    ) -> bool:
        if AuthService.is_admin_email(email):
            return False

        if await get_active_subscription(session, user_id, now=now):
            return False

        promoter = await get_promoter_by_user(session, user_id)
        if promoter and promoter.status == PromoterStatus.ACTIVE.value:
            return False

        paid_before = (await session.execute(
            select(Subscription.id)
            .where(Subscription.user_id == user_id)
            .where(Subscription.status.in_(PAID_STATUSES))
            .limit(1)
        )).scalar_one_or_none()
        if paid_before is not None:
            return False

        if promoter:
            deactivated_at = ensure_utc(promoter.deactivated_at)
            return (
                promoter.status == PromoterStatus.INACTIVE.value
                and deactivated_at is not None
                and deactivated_at < limit_date
            )

        return ensure_utc(created_at) < limit_date

    @staticmethod
    async def delete_user_data(session: AsyncSession, user_id: int) -> None:
        """
        Delete a user and every row that references it

        Children go first so the order also holds on databases without
        ON DELETE CASCADE enforcement.
        """
        own_posts = select(ForumPost.id).where(ForumPost.author_id == user_id)
        touched_replies = select(ForumReply.id).where(
            or_(ForumReply.author_id == user_id, ForumReply.post_id.in_(own_posts))
        )
        await session.execute(delete(ForumReplyLike).where(
            or_(ForumReplyLike.user_id == user_id, ForumReplyLike.reply_id.in_(touched_replies))
        ))
        await session.execute(delete(ForumPostLike).where(
            or_(ForumPostLike.user_id == user_id, ForumPostLike.post_id.in_(own_posts))
        ))
        await session.execute(delete(ForumReply).where(
            or_(ForumReply.author_id == user_id, ForumReply.post_id.in_(own_posts))
        ))
        await session.execute(delete(ForumPost).where(ForumPost.author_id == user_id))

        own_affiliate = select(Affiliate.id).where(Affiliate.user_id == user_id)
        own_subscriptions = select(Subscription.id).where(Subscription.user_id == user_id)
        related_referrals = select(Referral.id).where(
            or_(Referral.affiliate_id.in_(own_affiliate), Referral.referred_user_id == user_id)
        )
        await session.execute(delete(Commission).where(
            or_(
                Commission.affiliate_id.in_(own_affiliate),
                Commission.referral_id.in_(related_referrals),
                Commission.subscription_id.in_(own_subscriptions),
            )
        ))
        await session.execute(
            delete(AffiliateWithdrawal).where(AffiliateWithdrawal.affiliate_id.in_(own_affiliate))
        )
        await session.execute(delete(Referral).where(
            or_(Referral.affiliate_id.in_(own_affiliate), Referral.referred_user_id == user_id)
        ))
        await session.execute(delete(Affiliate).where(Affiliate.user_id == user_id))
        await session.execute(delete(Subscription).where(Subscription.user_id == user_id))

        for model in USER_OWNED_TABLES:
            await session.execute(delete(model).where(model.user_id == user_id))

        await session.execute(delete(User).where(User.id == user_id))

    @staticmethod
    async def cleanup_expired_accounts(
        session: AsyncSession, now: Optional[datetime] = None
    ) -> Dict[str, int]:
        """
        Delete accounts past their grace period

        Args:
            session: Database session
            now: Reference time (defaults to current UTC time)

        Returns:
            {"checked": n, "deleted": n}
        """
        now = now or datetime.now(UTC)
        limit_date = now - timedelta(hours=ACCOUNT_GRACE_HOURS)

        # Plain column rows: ORM instances would expire on rollback
        rows = (await session.execute(
            select(User.id, User.email, User.created_at, User.avatar_url).order_by(User.id)
        )).all()
        storage = get_storage_service()

        checked = 0
        deleted = 0
        for user_id, email, created_at, avatar_url in rows:
            checked += 1

            if not await AccountCleanupService.should_delete(
                session, user_id, email, created_at, limit_date, now
            ):
                continue

            try:
                await AccountCleanupService.delete_user_data(session, user_id)
                await session.commit()
            except Exception as e:
                logger.error(f"Error deleting expired account {email} ({user_id}): {e}")
                await session.rollback()
                continue

            storage.delete_avatar(avatar_url)
            deleted += 1
            logger.info(f"Expired account deleted: {email} ({user_id})")

        logger.info(f"Account cleanup finished: {deleted} deleted of {checked} checked")
        return {"checked": checked, "deleted": deleted}
