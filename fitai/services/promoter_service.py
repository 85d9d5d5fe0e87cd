# coding: utf-8
"""
Promoter Service - admin management of promoters

Active promoters get premium access. Deactivation starts the grace period
used by the account cleanup job.
"""

from datetime import datetime, UTC
from typing import Optional, List, Dict, Any, Tuple

from loguru import logger
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from config.affiliate_config import PROMOTER_CODE_PREFIX, PROMOTER_CODE_LENGTH
from fitai.database.crud import (
    count_active_subscribers,
    generate_promoter_code,
    get_promoter_by_user,
    get_user_by_email,
    get_users_count,
)
from fitai.database.models import Promoter, PromoterStatus, User
from fitai.services.affiliate_service import AffiliateService
from fitai.utils.time_utils import isoformat


def serialize_promoter(promoter: Promoter, email: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": promoter.id,
        "user_id": promoter.user_id,
        "email": email,
        "promoter_code": promoter.promoter_code,
        "status": promoter.status,
        "deactivated_at": isoformat(promoter.deactivated_at),
        "created_at": isoformat(promoter.created_at),
    }


class PromoterService:
    """Promoter CRUD and admin statistics"""

    @staticmethod
    async def create_promoter(
        session: AsyncSession, email: str
    ) -> Tuple[Optional[Promoter], str]:
        """
        Make an existing user a promoter

        Returns:
            Tuple of (promoter or None, status code: ok, user_not_found,
            already_promoter)
        """
        user = await get_user_by_email(session, email)
        if not user:
            return None, "user_not_found"

        if await get_promoter_by_user(session, user.id):
            return None, "already_promoter"

        code = await generate_promoter_code(session, PROMOTER_CODE_PREFIX, PROMOTER_CODE_LENGTH)
        promoter = Promoter(
            user_id=user.id,
            promoter_code=code,
            status=PromoterStatus.ACTIVE.value,
        )
        session.add(promoter)
        await session.commit()
        await session.refresh(promoter)

        logger.info(f"Promoter created: {user.email} ({code})")
        return promoter, "ok"

    @staticmethod
    async def set_status(
        session: AsyncSession, promoter_id: int, status: PromoterStatus
    ) -> Optional[Promoter]:
        """Activate/deactivate; deactivated_at is set on deactivation and cleared otherwise"""
        promoter = await session.get(Promoter, promoter_id)
        if not promoter:
            return None

        promoter.status = status.value
        promoter.deactivated_at = (
            datetime.now(UTC) if status == PromoterStatus.INACTIVE else None
        )
        await session.commit()

        logger.info(f"Promoter {promoter_id} status -> {status.value}")
        return promoter

    @staticmethod
    async def list_promoters(session: AsyncSession) -> List[Dict[str, Any]]:
        stmt = (
            select(Promoter, User.email)
            .join(User, User.id == Promoter.user_id)
            .order_by(Promoter.created_at.desc())
        )
        rows = (await session.execute(stmt)).all()
        return [serialize_promoter(promoter, email) for promoter, email in rows]

    @staticmethod
    async def delete_promoter(session: AsyncSession, promoter_id: int) -> bool:
        promoter = await session.get(Promoter, promoter_id)
        if not promoter:
            return False

        await session.delete(promoter)
        await session.commit()
        logger.info(f"Promoter {promoter_id} deleted")
        return True

    @staticmethod
    async def get_admin_stats(session: AsyncSession) -> Dict[str, int]:
        active_promoters = (await session.execute(
            select(func.count(Promoter.id)).where(Promoter.status == PromoterStatus.ACTIVE.value)
        )).scalar() or 0

        return {
            "total_users": await get_users_count(session),
            "active_subscribers": await count_active_subscribers(session),
            "active_promoters": active_promoters,
            "total_affiliates": await AffiliateService.count_affiliates(session),
        }
