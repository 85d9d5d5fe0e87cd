"""
Tests for onboarding checklist inference, tour and contextual tips
"""

import pytest
from decimal import Decimal

from fitai.core.enums import ConversationType
from fitai.database.crud import add_progress_entry, upsert_profile
from fitai.services.assistant_service import AssistantService
from fitai.services.gamification_service import GamificationService
from fitai.services.llm_service import LLMService
from fitai.services.onboarding_service import OnboardingService
from fitai.services.workout_plan_service import WorkoutPlanService

from tests.conftest import auth_headers


@pytest.mark.asyncio
async def test_fresh_user_has_nothing_completed(db_session, make_user):
    user = await make_user()

    status = await OnboardingService.get_status(db_session, user)

    assert status["completed_count"] == 0
    assert status["total_steps"] == 4
    assert status["total_points"] == 60
    assert status["progress_pct"] == 0
    assert status["has_seen_tour"] is False


@pytest.mark.asyncio
async def test_steps_are_inferred_and_awarded_once(db_session, make_user):
    user = await make_user()
    await upsert_profile(db_session, user.id, age=30, height_cm=Decimal("175"), weight_kg=Decimal("80"))
    await add_progress_entry(db_session, user.id, weight_kg=Decimal("80"))

    status = await OnboardingService.get_status(db_session, user)
    again = await OnboardingService.get_status(db_session, user)

    completed = {step["id"] for step in status["steps"] if step["completed"]}
    assert completed == {"complete-profile", "record-progress"}
    assert status["earned_points"] == 25
    assert again["earned_points"] == 25

    profile = await GamificationService.get_or_create_profile(db_session, user.id)
    assert profile.xp == 25


@pytest.mark.asyncio
async def test_partial_profile_does_not_complete_step(db_session, make_user):
    user = await make_user()
    await upsert_profile(db_session, user.id, age=30)

    assert "complete-profile" not in await OnboardingService.infer_completed_steps(db_session, user)


@pytest.mark.asyncio
async def test_workout_and_nutrition_steps(db_session, make_user):
    user = await make_user()
    await WorkoutPlanService.save_plan(db_session, user.id, {"weeks": []})
    assistant = AssistantService(llm=LLMService(api_key=""))
    await assistant.send_message(db_session, user, ConversationType.NUTRITION, "O que comer?")

    steps = await OnboardingService.infer_completed_steps(db_session, user)

    assert "first-workout" in steps
    assert "nutrition-plan" in steps


@pytest.mark.asyncio
async def test_greeting_alone_is_not_a_nutrition_visit(db_session, make_user):
    user = await make_user()
    await AssistantService.get_or_create_conversation(db_session, user.id, ConversationType.NUTRITION)

    assert "nutrition-plan" not in await OnboardingService.infer_completed_steps(db_session, user)


@pytest.mark.asyncio
async def test_contextual_tips_depend_on_plan(db_session, make_user):
    user = await make_user()

    without_plan = await OnboardingService.get_contextual_tips(db_session, user.id, "workout")
    await WorkoutPlanService.save_plan(db_session, user.id, {"weeks": []})
    with_plan = await OnboardingService.get_contextual_tips(db_session, user.id, "workout")

    assert [t["id"] for t in without_plan] == ["first-workout-tip", "assistant-help-tip"]
    assert [t["id"] for t in with_plan] == ["nutrition-complement-tip", "assistant-help-tip"]
    assert "pages" not in with_plan[0]


@pytest.mark.asyncio
async def test_dismissed_tip_is_hidden(db_session, make_user):
    user = await make_user()

    assert await OnboardingService.dismiss_tip(db_session, user.id, "unknown-tip") is None
    await OnboardingService.dismiss_tip(db_session, user.id, "assistant-help-tip")
    status = await OnboardingService.dismiss_tip(db_session, user.id, "assistant-help-tip")

    assert status.dismissed_contextual_tips == ["assistant-help-tip"]
    tips = await OnboardingService.get_contextual_tips(db_session, user.id, "nutrition")
    assert tips == []


@pytest.mark.asyncio
async def test_onboarding_endpoints(client, make_user):
    user = await make_user()
    headers = auth_headers(user)

    assert (await client.post("/api/onboarding/tour-seen", headers=headers)).status_code == 200
    assert (await client.post("/api/onboarding/checklist/hide", headers=headers)).status_code == 200
    assert (await client.post("/api/onboarding/tips/nope/dismiss", headers=headers)).status_code == 404

    status = await client.get("/api/onboarding/status", headers=headers)
    tips = await client.get("/api/onboarding/tips?page=nutrition", headers=headers)

    assert status.json()["has_seen_tour"] is True
    assert status.json()["hide_checklist"] is True
    assert [t["id"] for t in tips.json()["tips"]] == ["assistant-help-tip"]
