# coding: utf-8
"""
Onboarding Service

Checklist steps are inferred from the user's data on every status call:
- complete-profile: name + age/height/weight
- first-workout: a generated plan or a recorded workout
- nutrition-plan: at least one message to the nutrition assistant
- record-progress: any progress entry

Newly completed steps are persisted and award their points as XP once.
"""

from datetime import datetime, UTC
from typing import Optional, List, Dict, Any

from loguru import logger
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from config.onboarding_config import (
    CONTEXTUAL_TIPS,
    CONTEXTUAL_TIP_IDS,
    ONBOARDING_STEPS,
)
from fitai.core.enums import ConversationType
from fitai.database.crud import get_profile
from fitai.database.models import (
    User,
    UserGamification,
    UserOnboardingStatus,
    UserProgress,
    UserWorkoutPlan,
)
from fitai.services.assistant_service import AssistantService
from fitai.services.gamification_service import GamificationService


class OnboardingService:
    """Checklist, product tour and contextual tips"""

    @staticmethod
    async def get_or_create_status(session: AsyncSession, user_id: int) -> UserOnboardingStatus:
        stmt = select(UserOnboardingStatus).where(UserOnboardingStatus.user_id == user_id)
        result = await session.execute(stmt)
        status = result.scalar_one_or_none()

        if status:
            return status

        status = UserOnboardingStatus(
            user_id=user_id,
            has_seen_tour=False,
            completed_checklist_steps=[],
            dismissed_contextual_tips=[],
            hide_checklist=False,
        )
        session.add(status)
        await session.commit()
        await session.refresh(status)
        return status

    @staticmethod
    async def has_workout_plan(session: AsyncSession, user_id: int) -> bool:
        stmt = select(UserWorkoutPlan.id).where(UserWorkoutPlan.user_id == user_id)
        return (await session.execute(stmt)).scalar_one_or_none() is not None

    @staticmethod
    async def infer_completed_steps(session: AsyncSession, user: User) -> List[str]:
        """
        Step ids whose completion condition holds right now
        """
        completed = []

        profile = await get_profile(session, user.id)
        if (
            user.full_name
            and profile
            and profile.age
            and profile.height_cm
            and profile.weight_kg
        ):
            completed.append("complete-profile")

        has_plan = await OnboardingService.has_workout_plan(session, user.id)
        total_workouts = (await session.execute(
            select(UserGamification.total_workouts).where(UserGamification.user_id == user.id)
        )).scalar_one_or_none() or 0
        if has_plan or total_workouts > 0:
            completed.append("first-workout")

        conversation = await AssistantService.get_conversation(
            session, user.id, ConversationType.NUTRITION
        )
        if AssistantService.has_user_turn(conversation):
            completed.append("nutrition-plan")

        progress_count = (await session.execute(
            select(func.count(UserProgress.id)).where(UserProgress.user_id == user.id)
        )).scalar() or 0
        if progress_count > 0:
            completed.append("record-progress")

        return completed

    @staticmethod
    async def get_status(session: AsyncSession, user: User) -> Dict[str, Any]:
        """
        Onboarding checklist state

        Persists newly completed steps and awards their points.

        Returns:
            {steps, completed_count, total_points, earned_points, progress_pct,
            has_seen_tour, hide_checklist, dismissed_tips}
        """
        status = await OnboardingService.get_or_create_status(session, user.id)
        inferred = await OnboardingService.infer_completed_steps(session, user)

        stored = list(status.completed_checklist_steps or [])
        newly_completed = [step_id for step_id in inferred if step_id not in stored]

        if newly_completed:
            status.completed_checklist_steps = stored + newly_completed
            status.updated_at = datetime.now(UTC)
            await session.commit()

            points_by_id = {step["id"]: step["points"] for step in ONBOARDING_STEPS}
            for step_id in newly_completed:
                await GamificationService.add_xp(
                    session, user.id, points_by_id[step_id], reason=f"onboarding:{step_id}"
                )
            logger.info(f"User {user.id} completed onboarding steps: {newly_completed}")

        completed_ids = set(status.completed_checklist_steps or [])
        steps = [
            {**step, "completed": step["id"] in completed_ids}
            for step in ONBOARDING_STEPS
        ]
        total_points = sum(step["points"] for step in ONBOARDING_STEPS)
        earned_points = sum(step["points"] for step in steps if step["completed"])
        completed_count = sum(1 for step in steps if step["completed"])

        return {
            "steps": steps,
            "completed_count": completed_count,
            "total_steps": len(steps),
            "total_points": total_points,
            "earned_points": earned_points,
            "progress_pct": round(completed_count / len(steps) * 100),
            "has_seen_tour": status.has_seen_tour,
            "hide_checklist": status.hide_checklist,
            "dismissed_tips": list(status.dismissed_contextual_tips or []),
        }

    @staticmethod
    async def mark_tour_seen(session: AsyncSession, user_id: int) -> UserOnboardingStatus:
        status = await OnboardingService.get_or_create_status(session, user_id)
        status.has_seen_tour = True
        status.updated_at = datetime.now(UTC)
        await session.commit()
        return status

    @staticmethod
    async def dismiss_tip(
        session: AsyncSession, user_id: int, tip_id: str
    ) -> Optional[UserOnboardingStatus]:
        """
        Dismiss a contextual tip

        Returns:
            Updated status, or None for an unknown tip id
        """
        if tip_id not in CONTEXTUAL_TIP_IDS:
            return None

        status = await OnboardingService.get_or_create_status(session, user_id)
        dismissed = list(status.dismissed_contextual_tips or [])
        if tip_id not in dismissed:
            status.dismissed_contextual_tips = dismissed + [tip_id]
            status.updated_at = datetime.now(UTC)
            await session.commit()
        return status

    @staticmethod
    async def hide_checklist(session: AsyncSession, user_id: int) -> UserOnboardingStatus:
        status = await OnboardingService.get_or_create_status(session, user_id)
        status.hide_checklist = True
        status.updated_at = datetime.now(UTC)
        await session.commit()
        return status

    @staticmethod
    async def get_contextual_tips(
        session: AsyncSession, user_id: int, page: str
    ) -> List[Dict[str, Any]]:
        """
        Tips for a page that the user has not dismissed

        Tips with requires_plan True/False only show with/without a workout plan.
        """
        status = await OnboardingService.get_or_create_status(session, user_id)
        dismissed = set(status.dismissed_contextual_tips or [])
        has_plan = await OnboardingService.has_workout_plan(session, user_id)

        tips = []
        for tip in CONTEXTUAL_TIPS:
            if page not in tip["pages"] or tip["id"] in dismissed:
                continue
            if tip["requires_plan"] is not None and tip["requires_plan"] != has_plan:
                continue
            tips.append({k: v for k, v in tip.items() if k not in ("pages", "requires_plan")})
        return tips
