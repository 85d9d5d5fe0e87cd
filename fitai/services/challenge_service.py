# coding: utf-8
"""
Challenge Service - daily and weekly challenges
"""

from datetime import date, datetime, timedelta, UTC
from typing import Optional, List, Dict, Any, Tuple

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config.gamification_config import (
    DAILY_CHALLENGES,
    WEEKLY_CHALLENGES,
    WEEKLY_CHALLENGE_DAYS,
)
from fitai.database.models import (
    Challenge,
    ChallengeType,
    User,
    UserChallengeProgress,
)
from fitai.services.gamification_service import GamificationService
from fitai.utils.time_utils import isoformat, today_utc


def serialize_challenge(
    challenge: Challenge, progress: Optional[UserChallengeProgress] = None
) -> Dict[str, Any]:
    return {
        "id": challenge.id,
        "title": challenge.title,
        "description": challenge.description,
        "type": challenge.type,
        "category": challenge.category,
        "target_value": challenge.target_value,
        "target_unit": challenge.target_unit,
        "xp_reward": challenge.xp_reward,
        "difficulty": challenge.difficulty,
        "start_date": challenge.start_date.isoformat(),
        "end_date": challenge.end_date.isoformat(),
        "current_value": progress.current_value if progress else 0,
        "completed": progress.completed if progress else False,
        "completed_at": isoformat(progress.completed_at) if progress else None,
    }


class ChallengeService:
    """Challenge generation and user progress"""

    @staticmethod
    async def generate_daily_challenges(
        session: AsyncSession, today: Optional[date] = None
    ) -> Dict[str, int]:
        """
        Rotate challenges for the day

        1. Deactivate challenges whose end_date has passed
        2. Create the daily set unless it already exists for today
        3. Create the weekly set when no weekly challenge is running

        Returns:
            {"deactivated": n, "daily_created": n, "weekly_created": n}
        """
        today = today or today_utc()

        result = await session.execute(
            update(Challenge)
            .where(Challenge.end_date < today)
            .where(Challenge.is_active.is_(True))
            .values(is_active=False)
        )
        deactivated = result.rowcount or 0

        existing_daily = (await session.execute(
            select(Challenge.id)
            .where(Challenge.type == ChallengeType.DAILY.value)
            .where(Challenge.start_date == today)
            .where(Challenge.is_active.is_(True))
            .limit(1)
        )).scalar_one_or_none()

        daily_created = 0
        if existing_daily is None:
            for definition in DAILY_CHALLENGES:
                session.add(Challenge(
                    **definition,
                    type=ChallengeType.DAILY.value,
                    start_date=today,
                    end_date=today,
                    is_active=True,
                ))
                daily_created += 1

        active_weekly = (await session.execute(
            select(Challenge.id)
            .where(Challenge.type == ChallengeType.WEEKLY.value)
            .where(Challenge.is_active.is_(True))
            .where(Challenge.end_date >= today)
            .limit(1)
        )).scalar_one_or_none()

        weekly_created = 0
        if active_weekly is None:
            end_date = today + timedelta(days=WEEKLY_CHALLENGE_DAYS - 1)
            for definition in WEEKLY_CHALLENGES:
                session.add(Challenge(
                    **definition,
                    type=ChallengeType.WEEKLY.value,
                    start_date=today,
                    end_date=end_date,
                    is_active=True,
                ))
                weekly_created += 1

        await session.commit()

        logger.info(
            f"Challenges for {today}: deactivated={deactivated}, "
            f"daily_created={daily_created}, weekly_created={weekly_created}"
        )
        return {
            "deactivated": deactivated,
            "daily_created": daily_created,
            "weekly_created": weekly_created,
        }

    @staticmethod
    async def get_progress(
        session: AsyncSession, user_id: int, challenge_id: int
    ) -> Optional[UserChallengeProgress]:
        stmt = (
            select(UserChallengeProgress)
            .where(UserChallengeProgress.user_id == user_id)
            .where(UserChallengeProgress.challenge_id == challenge_id)
        )
        return (await session.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def list_active(
        session: AsyncSession, user: User, today: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        """Active challenges covering today, with the user's progress"""
        today = today or today_utc()

        challenges = (await session.execute(
            select(Challenge)
            .where(Challenge.is_active.is_(True))
            .where(Challenge.start_date <= today)
            .where(Challenge.end_date >= today)
            .order_by(Challenge.type.asc(), Challenge.id.asc())
        )).scalars().all()

        if not challenges:
            return []

        progress_rows = (await session.execute(
            select(UserChallengeProgress)
            .where(UserChallengeProgress.user_id == user.id)
            .where(UserChallengeProgress.challenge_id.in_([c.id for c in challenges]))
        )).scalars().all()
        progress_by_challenge = {p.challenge_id: p for p in progress_rows}

        return [
            serialize_challenge(challenge, progress_by_challenge.get(challenge.id))
            for challenge in challenges
        ]

    @staticmethod
    async def update_progress(
        session: AsyncSession,
        user: User,
        challenge_id: int,
        increment: int = 1,
    ) -> Tuple[Optional[Dict[str, Any]], str]:
        """
        Add progress towards a challenge

        The value is clamped at the target. The XP reward is paid once, on
        the update that completes the challenge.

        Returns:
            Tuple of (challenge dict or None, status code: ok, not_found,
            inactive, invalid_increment)
        """
        if increment <= 0:
            return None, "invalid_increment"

        challenge = await session.get(Challenge, challenge_id)
        if not challenge:
            return None, "not_found"
        if not challenge.is_active:
            return None, "inactive"

        progress = await ChallengeService.get_progress(session, user.id, challenge_id)
        if not progress:
            progress = UserChallengeProgress(
                user_id=user.id,
                challenge_id=challenge_id,
                current_value=0,
                completed=False,
            )
            session.add(progress)

        just_completed = False
        if not progress.completed:
            progress.current_value = min(
                (progress.current_value or 0) + increment, challenge.target_value
            )
            if progress.current_value >= challenge.target_value:
                progress.completed = True
                progress.completed_at = datetime.now(UTC)
                just_completed = True

        await session.commit()
        await session.refresh(progress)

        if just_completed:
            logger.info(f"User {user.id} completed challenge {challenge_id} (+{challenge.xp_reward} XP)")
            await GamificationService.add_xp(
                session, user.id, challenge.xp_reward, reason=f"challenge:{challenge_id}"
            )

        return serialize_challenge(challenge, progress), "ok"
