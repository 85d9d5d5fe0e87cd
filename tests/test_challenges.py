"""
Tests for daily/weekly challenge rotation and progress
"""

import pytest
from datetime import date, timedelta

from sqlalchemy import select

from config.gamification_config import DAILY_CHALLENGES, WEEKLY_CHALLENGES, WEEKLY_CHALLENGE_DAYS
from fitai.database.models import Challenge, ChallengeType
from fitai.services.challenge_service import ChallengeService
from fitai.services.gamification_service import GamificationService

from tests.conftest import auth_headers


TODAY = date(2025, 3, 10)


async def _first_daily(session):
    stmt = (
        select(Challenge)
        .where(Challenge.type == ChallengeType.DAILY.value)
        .where(Challenge.title == DAILY_CHALLENGES[0]["title"])
    )
    return (await session.execute(stmt)).scalars().first()


@pytest.mark.asyncio
async def test_generate_is_idempotent_per_day(db_session):
    first = await ChallengeService.generate_daily_challenges(db_session, today=TODAY)
    second = await ChallengeService.generate_daily_challenges(db_session, today=TODAY)

    assert first == {
        "deactivated": 0,
        "daily_created": len(DAILY_CHALLENGES),
        "weekly_created": len(WEEKLY_CHALLENGES),
    }
    assert second == {"deactivated": 0, "daily_created": 0, "weekly_created": 0}


@pytest.mark.asyncio
async def test_next_day_rotates_daily_and_keeps_weekly(db_session):
    await ChallengeService.generate_daily_challenges(db_session, today=TODAY)

    result = await ChallengeService.generate_daily_challenges(db_session, today=TODAY + timedelta(days=1))

    assert result["deactivated"] == len(DAILY_CHALLENGES)
    assert result["daily_created"] == len(DAILY_CHALLENGES)
    assert result["weekly_created"] == 0

    after_week = await ChallengeService.generate_daily_challenges(
        db_session, today=TODAY + timedelta(days=WEEKLY_CHALLENGE_DAYS)
    )
    assert after_week["weekly_created"] == len(WEEKLY_CHALLENGES)


@pytest.mark.asyncio
async def test_list_active_includes_user_progress(db_session, make_user):
    user = await make_user()
    await ChallengeService.generate_daily_challenges(db_session, today=TODAY)
    challenge = await _first_daily(db_session)
    await ChallengeService.update_progress(db_session, user, challenge.id)

    listing = await ChallengeService.list_active(db_session, user, today=TODAY)

    assert len(listing) == len(DAILY_CHALLENGES) + len(WEEKLY_CHALLENGES)
    entry = next(c for c in listing if c["id"] == challenge.id)
    assert entry["current_value"] == 1
    assert await ChallengeService.list_active(db_session, user, today=TODAY - timedelta(days=1)) == []


@pytest.mark.asyncio
async def test_progress_is_clamped_and_rewarded_once(db_session, make_user):
    user = await make_user()
    await ChallengeService.generate_daily_challenges(db_session, today=TODAY)
    hydration = (await db_session.execute(
        select(Challenge).where(Challenge.title == "Hidratação Diária")
    )).scalar_one()

    partial, _ = await ChallengeService.update_progress(db_session, user, hydration.id, increment=5)
    done, _ = await ChallengeService.update_progress(db_session, user, hydration.id, increment=10)
    again, _ = await ChallengeService.update_progress(db_session, user, hydration.id, increment=3)

    assert partial["completed"] is False
    assert done["current_value"] == hydration.target_value
    assert done["completed"] is True
    assert again["current_value"] == hydration.target_value

    profile = await GamificationService.get_or_create_profile(db_session, user.id)
    assert profile.xp == hydration.xp_reward


@pytest.mark.asyncio
async def test_progress_error_codes(db_session, make_user):
    user = await make_user()
    await ChallengeService.generate_daily_challenges(db_session, today=TODAY)
    challenge = await _first_daily(db_session)

    assert await ChallengeService.update_progress(db_session, user, challenge.id, increment=0) == (None, "invalid_increment")
    assert await ChallengeService.update_progress(db_session, user, 999) == (None, "not_found")

    challenge.is_active = False
    await db_session.commit()
    assert await ChallengeService.update_progress(db_session, user, challenge.id) == (None, "inactive")


@pytest.mark.asyncio
async def test_challenge_endpoints(client, db_session, make_user):
    user = await make_user()
    headers = auth_headers(user)
    await ChallengeService.generate_daily_challenges(db_session)

    listing = await client.get("/api/challenges", headers=headers)
    challenge_id = listing.json()["challenges"][0]["id"]
    progress = await client.post(f"/api/challenges/{challenge_id}/progress", headers=headers, json={"increment": 1})
    missing = await client.post("/api/challenges/999/progress", headers=headers, json={"increment": 1})
    invalid = await client.post(f"/api/challenges/{challenge_id}/progress", headers=headers, json={"increment": 0})

    assert len(listing.json()["challenges"]) == len(DAILY_CHALLENGES) + len(WEEKLY_CHALLENGES)
    assert progress.status_code == 200
    assert progress.json()["current_value"] >= 1
    assert missing.status_code == 404
    assert invalid.status_code == 422
