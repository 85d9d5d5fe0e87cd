# coding: utf-8
"""
Gamification Service

XP, levels, daily streaks and achievements.

Features:
- Level as a step function of total XP
- Streak driven by the day gap since the last workout
- Append-only achievements (never duplicated)
- Notifications for unlocks and level-ups
"""

from dataclasses import dataclass, field
from datetime import date, datetime, UTC
from typing import Optional, List, Dict, Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.gamification_config import (
    ACHIEVEMENTS,
    ACHIEVEMENTS_BY_ID,
    DEFAULT_WORKOUT_XP,
    LEADERBOARD_SIZE,
    LEVEL_NAMES,
    get_level_for_xp,
    get_next_level_xp,
    map_fitness_level_to_category,
)
from fitai.core.enums import NotificationType
from fitai.database.crud import get_profile
from fitai.database.models import UserGamification, User
from fitai.services.notification_service import NotificationService
from fitai.utils.time_utils import today_utc


@dataclass
class WorkoutResult:
    """Outcome of a recorded workout"""

    xp_gained: int
    total_xp: int
    level: int
    leveled_up: bool
    current_streak: int
    best_streak: int
    total_workouts: int
    new_achievements: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "xp_gained": self.xp_gained,
            "total_xp": self.total_xp,
            "level": self.level,
            "leveled_up": self.leveled_up,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
            "total_workouts": self.total_workouts,
            "new_achievements": [
                ACHIEVEMENTS_BY_ID[achievement_id] for achievement_id in self.new_achievements
            ],
        }


def serialize_gamification(profile: UserGamification) -> Dict[str, Any]:
    return {
        "xp": profile.xp,
        "level": profile.level,
        "level_name": LEVEL_NAMES.get(profile.level, ""),
        "next_level_xp": get_next_level_xp(profile.level),
        "current_streak": profile.current_streak,
        "best_streak": profile.best_streak,
        "total_workouts": profile.total_workouts,
        "achievements": list(profile.achievements or []),
        "fitness_category": profile.fitness_category,
        "last_activity_date": (
            profile.last_activity_date.isoformat() if profile.last_activity_date else None
        ),
    }


class GamificationService:
    """Service for XP, levels, streaks and achievements"""

    # ===========================
    # PURE RULES
    # ===========================

    @staticmethod
    def calculate_level(xp: int) -> int:
        return get_level_for_xp(xp)

    @staticmethod
    def calculate_streak(
        last_activity_date: Optional[date],
        current_streak: int,
        today: Optional[date] = None,
    ) -> int:
        """
        New streak after a workout today

        Args:
            last_activity_date: Date of the previous workout (None if never)
            current_streak: Streak before this workout
            today: Reference date

        Returns:
            1 after a gap or on first workout, +1 for consecutive days,
            unchanged for a second workout on the same day
        """
        today = today or today_utc()

        if last_activity_date is None:
            return 1

        gap = (today - last_activity_date).days
        if gap == 0:
            return max(current_streak, 1)
        if gap == 1:
            return current_streak + 1
        return 1

    @staticmethod
    def check_new_achievements(profile: UserGamification) -> List[str]:
        """
        Achievement ids earned by the profile but not unlocked yet
        """
        unlocked = set(profile.achievements or [])
        new_ids = []

        for achievement in ACHIEVEMENTS:
            if achievement["id"] in unlocked:
                continue
            value = getattr(profile, achievement["metric"], 0) or 0
            if value >= achievement["threshold"]:
                new_ids.append(achievement["id"])

        return new_ids

    @staticmethod
    def fitness_category_for_level(level_label: Optional[str]) -> str:
        return map_fitness_level_to_category(level_label)

    # ===========================
    # PERSISTENCE
    # ===========================

    @staticmethod
    async def get_or_create_profile(session: AsyncSession, user_id: int) -> UserGamification:
        """
        Get or create gamification row for user

        Args:
            session: Database session
            user_id: User ID

        Returns:
            UserGamification model
        """
        stmt = select(UserGamification).where(UserGamification.user_id == user_id)
        result = await session.execute(stmt)
        profile = result.scalar_one_or_none()

        if profile:
            return profile

        user_profile = await get_profile(session, user_id)
        fitness_level = user_profile.fitness_level if user_profile else None

        profile = UserGamification(
            user_id=user_id,
            fitness_category=map_fitness_level_to_category(fitness_level),
            xp=0,
            level=1,
            current_streak=0,
            best_streak=0,
            total_workouts=0,
            achievements=[],
        )
        session.add(profile)
        await session.commit()
        await session.refresh(profile)

        logger.info(f"Created gamification profile for user {user_id}")
        return profile

    @staticmethod
    def _unlock_achievements(profile: UserGamification) -> List[str]:
        new_ids = GamificationService.check_new_achievements(profile)
        if new_ids:
            current = list(profile.achievements or [])
            # Membership check keeps the list duplicate-free
            profile.achievements = current + [a for a in new_ids if a not in current]
        return new_ids

    @staticmethod
    async def _notify(
        session: AsyncSession,
        user_id: int,
        new_achievements: List[str],
        leveled_up: bool,
        level: int,
    ) -> None:
        for achievement_id in new_achievements:
            achievement = ACHIEVEMENTS_BY_ID[achievement_id]
            await NotificationService.notify_achievement(
                session, user_id, achievement["title"], achievement_id
            )

        if leveled_up:
            await NotificationService.create_notification(
                session,
                user_id=user_id,
                title="Subiu de nível!",
                message=f"Parabéns! Você alcançou o nível {level} ({LEVEL_NAMES.get(level, '')}).",
                type=NotificationType.SUCCESS,
                metadata={"level": level},
            )

    @staticmethod
    async def record_workout(
        session: AsyncSession,
        user_id: int,
        xp_gained: int = DEFAULT_WORKOUT_XP,
        today: Optional[date] = None,
    ) -> Optional[WorkoutResult]:
        """
        Record a completed workout

        Adds XP, recomputes level and streak, bumps total_workouts and
        unlocks achievements.

        Args:
            session: Database session
            user_id: User ID
            xp_gained: XP for this workout
            today: Reference date

        Returns:
            WorkoutResult or None on error
        """
        today = today or today_utc()

        try:
            profile = await GamificationService.get_or_create_profile(session, user_id)

            old_level = profile.level
            profile.xp = (profile.xp or 0) + xp_gained
            profile.level = GamificationService.calculate_level(profile.xp)
            profile.current_streak = GamificationService.calculate_streak(
                profile.last_activity_date, profile.current_streak or 0, today
            )
            profile.best_streak = max(profile.best_streak or 0, profile.current_streak)
            profile.total_workouts = (profile.total_workouts or 0) + 1
            profile.last_activity_date = today
            profile.updated_at = datetime.now(UTC)

            new_achievements = GamificationService._unlock_achievements(profile)
            leveled_up = profile.level > old_level

            await session.commit()
            await session.refresh(profile)

        except Exception as e:
            logger.error(f"Error recording workout for user {user_id}: {e}")
            await session.rollback()
            return None

        await GamificationService._notify(
            session, user_id, new_achievements, leveled_up, profile.level
        )

        logger.info(
            f"Workout recorded for user {user_id}: +{xp_gained} XP "
            f"(total={profile.xp}, level={profile.level}, streak={profile.current_streak})"
        )

        return WorkoutResult(
            xp_gained=xp_gained,
            total_xp=profile.xp,
            level=profile.level,
            leveled_up=leveled_up,
            current_streak=profile.current_streak,
            best_streak=profile.best_streak,
            total_workouts=profile.total_workouts,
            new_achievements=new_achievements,
        )

    @staticmethod
    async def add_xp(
        session: AsyncSession, user_id: int, amount: int, reason: str
    ) -> Optional[UserGamification]:
        """
        Award XP outside of workouts (challenges, onboarding)

        Args:
            session: Database session
            user_id: User ID
            amount: XP to add
            reason: Log label

        Returns:
            Updated UserGamification or None on error
        """
        if amount <= 0:
            return None

        try:
            profile = await GamificationService.get_or_create_profile(session, user_id)

            old_level = profile.level
            profile.xp = (profile.xp or 0) + amount
            profile.level = GamificationService.calculate_level(profile.xp)
            profile.updated_at = datetime.now(UTC)

            new_achievements = GamificationService._unlock_achievements(profile)
            leveled_up = profile.level > old_level

            await session.commit()
            await session.refresh(profile)

        except Exception as e:
            logger.error(f"Error adding {amount} XP to user {user_id} ({reason}): {e}")
            await session.rollback()
            return None

        await GamificationService._notify(
            session, user_id, new_achievements, leveled_up, profile.level
        )

        logger.info(f"User {user_id} +{amount} XP ({reason}), total={profile.xp}")
        return profile

    @staticmethod
    async def set_fitness_category(
        session: AsyncSession, user_id: int, fitness_level: Optional[str]
    ) -> UserGamification:
        profile = await GamificationService.get_or_create_profile(session, user_id)
        profile.fitness_category = GamificationService.fitness_category_for_level(fitness_level)
        await session.commit()
        return profile

    @staticmethod
    def achievements_catalogue(profile: UserGamification) -> List[Dict[str, Any]]:
        unlocked = set(profile.achievements or [])
        return [
            {**achievement, "unlocked": achievement["id"] in unlocked}
            for achievement in ACHIEVEMENTS
        ]

    @staticmethod
    async def get_leaderboard(
        session: AsyncSession, limit: int = LEADERBOARD_SIZE
    ) -> List[Dict[str, Any]]:
        """
        Top users by XP

        Returns:
            [{rank, user_id, full_name, avatar_url, xp, level, current_streak}]
        """
        stmt = (
            select(UserGamification, User)
            .join(User, User.id == UserGamification.user_id)
            .where(User.is_banned.is_(False))
            .order_by(UserGamification.xp.desc(), UserGamification.user_id.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)

        leaderboard = []
        for rank, (profile, user) in enumerate(result.all(), start=1):
            leaderboard.append({
                "rank": rank,
                "user_id": user.id,
                "full_name": user.full_name,
                "avatar_url": user.avatar_url,
                "xp": profile.xp,
                "level": profile.level,
                "current_streak": profile.current_streak,
            })
        return leaderboard
