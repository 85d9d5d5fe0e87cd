"""
Maintenance Scheduler

Background jobs run by the API process (APScheduler AsyncIOScheduler):
- notification cleanup (daily)
- expired account cleanup (hourly, when ACCOUNT_CLEANUP_ENABLED)
- daily/weekly challenge generation (00:05 UTC)
- workout plan queue processing (every minute)
- subscription expiry sweep (hourly)
"""

from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from config.config import ACCOUNT_CLEANUP_ENABLED
from fitai.database.crud import expire_subscriptions
from fitai.database.engine import get_session_maker
from fitai.services.account_cleanup_service import AccountCleanupService
from fitai.services.challenge_service import ChallengeService
from fitai.services.notification_service import NotificationService
from fitai.services.workout_plan_service import get_workout_plan_service


NOTIFICATION_RETENTION_DAYS = 30


async def cleanup_notifications():
    """Delete notifications older than NOTIFICATION_RETENTION_DAYS"""
    try:
        SessionLocal = get_session_maker()
        async with SessionLocal() as session:
            deleted = await NotificationService.cleanup_old_notifications(
                session, days=NOTIFICATION_RETENTION_DAYS
            )
        logger.info(f"Notification cleanup: {deleted} removed")
    except Exception as e:
        logger.error(f"Error in notification cleanup: {e}", exc_info=True)


async def cleanup_expired_accounts():
    try:
        start_time = datetime.now()
        SessionLocal = get_session_maker()
        async with SessionLocal() as session:
            stats = await AccountCleanupService.cleanup_expired_accounts(session)

        duration = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Account cleanup completed in {duration:.2f}s: "
            f"{stats['deleted']} deleted, {stats['checked']} checked"
        )
    except Exception as e:
        logger.error(f"Error in account cleanup: {e}", exc_info=True)


async def generate_challenges():
    try:
        SessionLocal = get_session_maker()
        async with SessionLocal() as session:
            await ChallengeService.generate_daily_challenges(session)
    except Exception as e:
        logger.error(f"Error generating challenges: {e}", exc_info=True)


async def process_workout_queue():
    """Process one pending workout plan request"""
    try:
        SessionLocal = get_session_maker()
        async with SessionLocal() as session:
            item = await get_workout_plan_service().process_next(session)
        if item:
            logger.info(f"Workout queue: request {item.id} -> {item.status}")
    except Exception as e:
        logger.error(f"Error processing workout queue: {e}", exc_info=True)


async def expire_old_subscriptions():
    try:
        SessionLocal = get_session_maker()
        async with SessionLocal() as session:
            expired = await expire_subscriptions(session)
        if expired:
            logger.info(f"Subscription sweep: {expired} expired")
    except Exception as e:
        logger.error(f"Error expiring subscriptions: {e}", exc_info=True)


def schedule_maintenance_tasks(scheduler: AsyncIOScheduler) -> AsyncIOScheduler:
    """
    Register every maintenance job

    Args:
        scheduler: APScheduler instance

    Returns:
        The same scheduler
    """
    scheduler.add_job(
        cleanup_notifications,
        trigger='cron',
        hour=3,
        minute=0,
        id='cleanup_notifications',
        name='Delete notifications older than 30 days',
        replace_existing=True,
        max_instances=1,
    )

    if ACCOUNT_CLEANUP_ENABLED:
        scheduler.add_job(
            cleanup_expired_accounts,
            trigger='interval',
            hours=1,
            id='cleanup_expired_accounts',
            name='Delete expired trial accounts',
            replace_existing=True,
            max_instances=1,
        )
    else:
        logger.info("Account cleanup disabled (ACCOUNT_CLEANUP_ENABLED=false)")

    scheduler.add_job(
        generate_challenges,
        trigger='cron',
        hour=0,
        minute=5,
        id='generate_challenges',
        name='Generate daily and weekly challenges',
        replace_existing=True,
        max_instances=1,
    )

    scheduler.add_job(
        process_workout_queue,
        trigger='interval',
        minutes=1,
        id='process_workout_queue',
        name='Process workout plan queue',
        replace_existing=True,
        max_instances=1,  # One plan at a time
    )

    scheduler.add_job(
        expire_old_subscriptions,
        trigger='interval',
        hours=1,
        id='expire_subscriptions',
        name='Expire subscriptions past expires_at',
        replace_existing=True,
        max_instances=1,
    )

    logger.info("Maintenance scheduler configured")
    return scheduler


def create_scheduler() -> AsyncIOScheduler:
    return schedule_maintenance_tasks(AsyncIOScheduler(timezone="UTC"))
