"""
Tests for workout plan parsing, normalization and the generation queue
"""

import json
import pytest
from unittest.mock import Mock, AsyncMock

from fitai.database.models import QueueStatus
from fitai.services.realtime import get_realtime_broker
from fitai.services.workout_plan_service import (
    PLAN_WEEKS,
    WorkoutPlanService,
    bmi_category,
    build_emergency_plan,
    build_plan_prompt,
    calculate_bmi,
    clean_and_parse_json,
    normalize_plan,
    parse_minutes,
)

from tests.conftest import auth_headers


REQUEST = {
    "age": 30,
    "height": 175,
    "weight": 80,
    "fitness_level": "iniciante",
    "fitness_goals": "perder peso",
    "workout_location": "casa",
    "workout_days": 3,
    "available_time": "45 minutos",
    "health_conditions": None,
}


def make_llm(answer):
    llm = Mock()
    llm.generate = AsyncMock(return_value=answer)
    return llm


# ============================================================================
# PARSING
# ============================================================================


def test_clean_and_parse_json_strips_fences():
    answer = 'Aqui está:\n```json\n{"title": "Plano", "workouts": []}\n```'

    assert clean_and_parse_json(answer) == {"title": "Plano", "workouts": []}


def test_clean_and_parse_json_fixes_trailing_commas():
    assert clean_and_parse_json('{"title": "Plano", "tips": ["a", "b",],}') == {
        "title": "Plano",
        "tips": ["a", "b"],
    }


def test_clean_and_parse_json_rebuilds_skeleton():
    broken = '{"title": "Força", "description": "Treino base", "difficulty_level": "iniciante", "workouts": [{oops'
    broken += "}"

    plan = clean_and_parse_json(broken)

    assert plan["title"] == "Força"
    assert plan["duration_weeks"] == PLAN_WEEKS
    assert plan["workouts"] == []


def test_clean_and_parse_json_without_object():
    with pytest.raises(ValueError):
        clean_and_parse_json("Desculpe, não consigo ajudar.")


def test_helpers():
    assert parse_minutes("60 minutos") == 60
    assert parse_minutes(None) == 45
    assert round(calculate_bmi(80, 200), 1) == 20.0
    assert bmi_category(17) == "abaixo do peso"
    assert bmi_category(27) == "sobrepeso"
    assert "IMC: 26.1" in build_plan_prompt(REQUEST)


# ============================================================================
# NORMALIZATION
# ============================================================================


def test_normalize_pads_workouts():
    plan = normalize_plan({"title": "Plano", "workouts": [{"week": 1, "day": 1}]}, REQUEST)

    assert plan["duration_weeks"] == PLAN_WEEKS
    assert plan["total_workouts"] == 18
    assert len(plan["workouts"]) == 18
    assert plan["workouts"][-1]["week"] == 6
    assert plan["workouts"][-1]["day"] == 3


def test_emergency_plan_covers_every_week():
    plan = build_emergency_plan({**REQUEST, "workout_days": 4, "available_time": "30 min"})

    assert plan["total_workouts"] == 24
    assert {w["week"] for w in plan["workouts"]} == set(range(1, PLAN_WEEKS + 1))
    assert plan["workouts"][0]["estimated_duration"] == 30


# ============================================================================
# QUEUE
# ============================================================================


@pytest.mark.asyncio
async def test_enqueue_returns_existing_active_request(db_session, make_user):
    user = await make_user()

    first = await WorkoutPlanService.enqueue(db_session, user, REQUEST)
    second = await WorkoutPlanService.enqueue(db_session, user, REQUEST)

    assert first.id == second.id
    assert first.position_in_queue == 1
    assert first.request_data["user_id"] == user.id


@pytest.mark.asyncio
async def test_process_next_completes_and_shifts_queue(db_session, make_user):
    ana = await make_user(email="ana@example.com")
    bia = await make_user(email="bia@example.com")
    await WorkoutPlanService.enqueue(db_session, ana, REQUEST)
    waiting = await WorkoutPlanService.enqueue(db_session, bia, REQUEST)
    assert waiting.position_in_queue == 2

    answer = json.dumps({"title": "Queima Total", "workouts": []})
    service = WorkoutPlanService(llm=make_llm(answer))
    broker = get_realtime_broker()
    queue = broker.subscribe(bia.id)

    try:
        processed = await service.process_next(db_session)
    finally:
        broker.unsubscribe(bia.id, queue)

    assert processed.user_id == ana.id
    assert processed.status == QueueStatus.COMPLETED.value
    plan = await WorkoutPlanService.get_current_plan(db_session, ana.id)
    assert plan.plan_data["title"] == "Queima Total"
    assert plan.plan_data["total_workouts"] == 18

    await db_session.refresh(waiting)
    assert waiting.position_in_queue == 1
    assert queue.get_nowait()["data"]["position_in_queue"] == 1


@pytest.mark.asyncio
async def test_unparseable_answer_uses_emergency_plan(db_session, make_user):
    user = await make_user()
    await WorkoutPlanService.enqueue(db_session, user, REQUEST)

    processed = await WorkoutPlanService(llm=make_llm("sem json")).process_next(db_session)

    assert processed.status == QueueStatus.COMPLETED.value
    plan = await WorkoutPlanService.get_current_plan(db_session, user.id)
    assert plan.plan_data["title"].startswith("Plano 3x/semana")


@pytest.mark.asyncio
async def test_model_failure_marks_request_failed(db_session, make_user):
    user = await make_user()
    await WorkoutPlanService.enqueue(db_session, user, REQUEST)
    service = WorkoutPlanService(llm=make_llm(None))

    processed = await service.process_next(db_session)

    assert processed.status == QueueStatus.FAILED.value
    assert processed.error_message
    assert await WorkoutPlanService.get_current_plan(db_session, user.id) is None
    assert await service.process_next(db_session) is None
    assert await WorkoutPlanService.get_active_request(db_session, user.id) is None

    retry = await WorkoutPlanService.enqueue(db_session, user, REQUEST)
    assert retry.id != processed.id
    assert retry.status == QueueStatus.PENDING.value
    assert retry.position_in_queue == 1


# ============================================================================
# API
# ============================================================================


@pytest.mark.asyncio
async def test_workout_plan_endpoints(client, make_user):
    user = await make_user()
    headers = auth_headers(user)

    assert (await client.get("/api/workout-plans/current", headers=headers)).status_code == 404
    assert (await client.get("/api/workout-plans/queue", headers=headers)).json() == {"request": None}

    bad_location = await client.post(
        "/api/workout-plans/request", headers=headers, json={**REQUEST, "workout_location": "praia"}
    )
    queued = await client.post("/api/workout-plans/request", headers=headers, json=REQUEST)
    status = await client.get("/api/workout-plans/queue", headers=headers)

    assert bad_location.status_code == 400
    assert queued.json()["status"] == QueueStatus.PENDING.value
    assert status.json()["request"]["id"] == queued.json()["id"]


@pytest.mark.asyncio
async def test_expired_trial_cannot_request_plan(client, make_user):
    user = await make_user(created_hours_ago=48)

    response = await client.post("/api/workout-plans/request", headers=auth_headers(user), json=REQUEST)

    assert response.status_code == 403
