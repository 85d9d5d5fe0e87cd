"""
CRUD operations for FitAI Pro

Async database operations using SQLAlchemy 2.0
"""

import logging
import random
import string
from datetime import datetime, timedelta, UTC
from decimal import Decimal
from typing import List, Optional, Dict, Any

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.database.models import (
    User,
    UserProfile,
    UserProgress,
    Subscription,
    SubscriptionStatus,
    Promoter,
    PromoterStatus,
    Affiliate,
)

logger = logging.getLogger(__name__)


# ===========================
# USER OPERATIONS
# ===========================


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[User]:
    """
    Get user by ID

    Args:
        session: Database session
        user_id: User ID

    Returns:
        User model or None
    """
    stmt = select(User).where(User.id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """
    Get user by email (case-insensitive)

    Args:
        session: Database session
        email: User email

    Returns:
        User model or None
    """
    stmt = select(User).where(User.email == email.strip().lower())
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession,
    email: str,
    password_hash: str,
    full_name: Optional[str] = None,
    pending_referral_code: Optional[str] = None,
) -> User:
    """
    Create new user

    Args:
        session: Database session
        email: Login email
        password_hash: bcrypt hash
        full_name: Display name
        pending_referral_code: Referral code staged at signup

    Returns:
        Created User model
    """
    user = User(
        email=email.strip().lower(),
        password_hash=password_hash,
        full_name=full_name,
        pending_referral_code=pending_referral_code,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)

    logger.info(f"User created: {user.id} ({user.email})")
    return user


async def update_last_login(session: AsyncSession, user: User) -> None:
    user.last_login_at = datetime.now(UTC)
    await session.commit()


async def get_users_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(User.id)))
    return result.scalar() or 0


# ===========================
# PROFILE OPERATIONS
# ===========================


async def get_profile(session: AsyncSession, user_id: int) -> Optional[UserProfile]:
    stmt = select(UserProfile).where(UserProfile.user_id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def upsert_profile(
    session: AsyncSession, user_id: int, **fields: Any
) -> UserProfile:
    """
    Create or update the fitness profile

    Args:
        session: Database session
        user_id: User ID
        **fields: Profile columns to set (None values are skipped)

    Returns:
        UserProfile model
    """
    profile = await get_profile(session, user_id)
    if not profile:
        profile = UserProfile(user_id=user_id)
        session.add(profile)

    for key, value in fields.items():
        if value is not None and hasattr(profile, key):
            setattr(profile, key, value)

    await session.commit()
    await session.refresh(profile)
    return profile


async def add_progress_entry(
    session: AsyncSession,
    user_id: int,
    weight_kg: Optional[Decimal] = None,
    body_fat_pct: Optional[Decimal] = None,
    notes: Optional[str] = None,
) -> UserProgress:
    entry = UserProgress(
        user_id=user_id,
        weight_kg=weight_kg,
        body_fat_pct=body_fat_pct,
        notes=notes,
    )
    session.add(entry)
    await session.commit()
    await session.refresh(entry)

    logger.info(f"Progress entry recorded for user {user_id}")
    return entry


async def list_progress_entries(
    session: AsyncSession, user_id: int, limit: int = 100
) -> List[UserProgress]:
    stmt = (
        select(UserProgress)
        .where(UserProgress.user_id == user_id)
        .order_by(UserProgress.recorded_at.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


# ===========================
# SUBSCRIPTION OPERATIONS
# ===========================


async def get_subscription_by_payment_id(
    session: AsyncSession, payment_id: str, user_id: Optional[int] = None
) -> Optional[Subscription]:
    """
    Get subscription by external (Asaas) payment ID

    Args:
        session: Database session
        payment_id: Asaas payment ID
        user_id: Restrict to this user (optional)

    Returns:
        Subscription model or None
    """
    stmt = select(Subscription).where(Subscription.payment_id == payment_id)
    if user_id is not None:
        stmt = stmt.where(Subscription.user_id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_active_subscription(
    session: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> Optional[Subscription]:
    """
    Get an active, non-expired subscription

    Args:
        session: Database session
        user_id: User ID
        now: Reference time (defaults to current UTC time)

    Returns:
        Subscription with the latest expiry, or None
    """
    now = now or datetime.now(UTC)
    stmt = (
        select(Subscription)
        .where(Subscription.user_id == user_id)
        .where(Subscription.status == SubscriptionStatus.ACTIVE.value)
        .where(Subscription.expires_at.isnot(None))
        .where(Subscription.expires_at > now)
        .order_by(Subscription.expires_at.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_latest_subscription(
    session: AsyncSession, user_id: int
) -> Optional[Subscription]:
    stmt = (
        select(Subscription)
        .where(Subscription.user_id == user_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_subscription(
    session: AsyncSession,
    user_id: int,
    payment_id: str,
    amount: Decimal,
) -> Subscription:
    """
    Create a pending subscription for a freshly generated PIX charge

    Args:
        session: Database session
        user_id: User ID
        payment_id: Asaas payment ID
        amount: Charged amount

    Returns:
        Created Subscription model
    """
    subscription = Subscription(
        user_id=user_id,
        payment_id=payment_id,
        amount=amount,
        status=SubscriptionStatus.PENDING.value,
        payment_method="pix",
    )
    session.add(subscription)
    await session.commit()
    await session.refresh(subscription)

    logger.info(f"Created pending subscription {subscription.id} for user {user_id} (payment {payment_id})")
    return subscription


async def activate_subscription(
    session: AsyncSession,
    subscription: Subscription,
    duration_days: int,
) -> Subscription:
    """
    Flip subscription to active, valid for duration_days from now

    Args:
        session: Database session
        subscription: Subscription to activate
        duration_days: Validity in days

    Returns:
        Updated Subscription model
    """
    now = datetime.now(UTC)
    subscription.status = SubscriptionStatus.ACTIVE.value
    subscription.expires_at = now + timedelta(days=duration_days)
    subscription.updated_at = now

    await session.commit()
    await session.refresh(subscription)

    logger.info(
        f"Activated subscription {subscription.id} for user {subscription.user_id} "
        f"until {subscription.expires_at}"
    )
    return subscription


async def expire_subscriptions(session: AsyncSession, now: Optional[datetime] = None) -> int:
    """
    Mark active subscriptions past their expiry as expired

    Returns:
        Number of rows updated
    """
    now = now or datetime.now(UTC)
    stmt = (
        update(Subscription)
        .where(Subscription.status == SubscriptionStatus.ACTIVE.value)
        .where(Subscription.expires_at.isnot(None))
        .where(Subscription.expires_at < now)
        .values(status=SubscriptionStatus.EXPIRED.value, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    await session.commit()
    return result.rowcount or 0


async def count_active_subscribers(session: AsyncSession) -> int:
    now = datetime.now(UTC)
    stmt = (
        select(func.count(func.distinct(Subscription.user_id)))
        .where(Subscription.status == SubscriptionStatus.ACTIVE.value)
        .where(Subscription.expires_at > now)
    )
    result = await session.execute(stmt)
    return result.scalar() or 0


# ===========================
# PROMOTER OPERATIONS
# ===========================


async def get_promoter_by_user(session: AsyncSession, user_id: int) -> Optional[Promoter]:
    stmt = select(Promoter).where(Promoter.user_id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def is_active_promoter(session: AsyncSession, user_id: int) -> bool:
    promoter = await get_promoter_by_user(session, user_id)
    return promoter is not None and promoter.status == PromoterStatus.ACTIVE.value


# ===========================
# CODE GENERATION
# ===========================


async def generate_affiliate_code(session: AsyncSession, length: int = 8) -> str:
    """
    Generate unique affiliate code

    Args:
        session: Database session
        length: Code length

    Returns:
        Unique uppercase alphanumeric code
    """
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))

        stmt = select(Affiliate.id).where(Affiliate.affiliate_code == code)
        result = await session.execute(stmt)
        if not result.scalar_one_or_none():
            return code


async def generate_promoter_code(session: AsyncSession, prefix: str, length: int = 6) -> str:
    """
    Generate unique promoter code (prefix + random suffix)
    """
    while True:
        code = prefix + ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))

        stmt = select(Promoter.id).where(Promoter.promoter_code == code)
        result = await session.execute(stmt)
        if not result.scalar_one_or_none():
            return code


def serialize_user(user: User) -> Dict[str, Any]:
    """Public user payload"""
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "avatar_url": user.avatar_url,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
