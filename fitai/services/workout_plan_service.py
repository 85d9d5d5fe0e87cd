# coding: utf-8
"""
Workout Plan Service - AI workout plans through a FIFO queue

Requests are queued (one active request per user) and processed one at a
time by the scheduler. The LLM answers with JSON which is cleaned and
validated; when it cannot be parsed a basic emergency plan is generated.
Every plan covers 6 weeks: workout_days * 6 workouts.
"""

import json
import re
from datetime import datetime, UTC
from typing import Optional, Dict, Any, List

from loguru import logger
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from config.prompts import WORKOUT_PLAN_SYSTEM_PROMPT, WORKOUT_PLAN_USER_PROMPT
from fitai.core.enums import RealtimeEvent
from fitai.database.models import (
    QueueStatus,
    User,
    UserWorkoutPlan,
    WorkoutPlanQueue,
)
from fitai.services.llm_service import LLMService, get_llm_service
from fitai.services.realtime import get_realtime_broker
from fitai.utils.time_utils import isoformat


PLAN_WEEKS = 6
WORKOUT_PLAN_TEMPERATURE = 0.1
WORKOUT_PLAN_MAX_TOKENS = 8000
DEFAULT_WORKOUT_MINUTES = 45

ACTIVE_STATUSES = (QueueStatus.PENDING.value, QueueStatus.PROCESSING.value)

# workout_location -> (available equipment, workout style)
LOCATION_EQUIPMENT: Dict[str, tuple] = {
    "casa": ("apenas peso corporal, sem equipamentos", "treinos funcionais com peso corporal"),
    "casa_equipamentos": ("halteres, elásticos, tapete, possível barra fixa", "treinos com equipamentos básicos"),
    "academia": ("equipamentos completos: máquinas, pesos livres, cardio", "musculação tradicional"),
    "parque": ("barras, paralelas, espaço para corrida", "calistenia e exercícios ao ar livre"),
    "condominio": ("equipamentos básicos de academia", "treinos adaptados"),
}

DEFAULT_NUTRITION_TIPS = [
    "Mantenha-se hidratado bebendo pelo menos 2-3 litros de água por dia",
    "Consuma proteína após o treino para recuperação muscular",
    "Inclua carboidratos complexos antes do treino para energia",
    "Mantenha uma alimentação equilibrada rica em nutrientes",
    "Evite alimentos processados e priorize alimentos naturais",
]

DEFAULT_PROGRESSION = {
    "week_1_2": "Adaptação e aprendizado dos movimentos básicos",
    "week_3_4": "Aumento gradual da intensidade e carga",
    "week_5_6": "Consolidação e preparação para próximo nível",
}


# ===========================
# PURE HELPERS
# ===========================


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    height_m = float(height_cm) / 100
    return float(weight_kg) / (height_m * height_m)


def bmi_category(bmi: float) -> str:
    if bmi < 18.5:
        return "abaixo do peso"
    if bmi < 25:
        return "peso normal"
    if bmi < 30:
        return "sobrepeso"
    return "obesidade"


def parse_minutes(available_time: Any) -> int:
    """Leading integer of values like "45 minutos" (default 45)"""
    match = re.match(r"\s*(\d+)", str(available_time or ""))
    return int(match.group(1)) if match else DEFAULT_WORKOUT_MINUTES


def clean_and_parse_json(content: str) -> Dict[str, Any]:
    """
    Parse plan JSON from a model answer

    1. Strip markdown fences, slice the outermost {...}
    2. Retry after removing trailing/duplicate commas and broken newlines
    3. Last resort: rebuild a skeleton plan from title/description/level

    Raises:
        ValueError: If nothing usable can be extracted
    """
    cleaned = re.sub(r"```json", "", content, flags=re.IGNORECASE)
    cleaned = cleaned.replace("```", "")
    cleaned = re.sub(r"^\s*json\s*", "", cleaned, flags=re.IGNORECASE).strip()

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or start >= end:
        raise ValueError("Não foi possível encontrar JSON válido na resposta")

    cleaned = cleaned[start:end + 1]

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as first_error:
        logger.warning(f"Plan JSON parse failed, trying fixes: {first_error}")

        fixed = re.sub(r",(\s*[}\]])", r"\1", cleaned)
        fixed = re.sub(r",+", ",", fixed)
        fixed = re.sub(r'"([^"]*)\n([^"]*)"', r'"\1 \2"', fixed)

        try:
            return json.loads(fixed)
        except json.JSONDecodeError:
            title = re.search(r'"title"\s*:\s*"([^"]+)"', cleaned)
            description = re.search(r'"description"\s*:\s*"([^"]+)"', cleaned)
            level = re.search(r'"difficulty_level"\s*:\s*"([^"]+)"', cleaned)

            if title and description and level:
                logger.warning("Rebuilding plan skeleton from JSON fragments")
                return {
                    "title": title.group(1),
                    "description": description.group(1),
                    "difficulty_level": level.group(1),
                    "duration_weeks": PLAN_WEEKS,
                    "total_workouts": 18,
                    "workouts": [],
                    "nutrition_tips": list(DEFAULT_NUTRITION_TIPS),
                    "progression_schedule": dict(DEFAULT_PROGRESSION),
                }

            raise ValueError(f"Erro ao processar JSON: {first_error}") from first_error


def build_basic_workout(week: int, day: int, minutes: int) -> Dict[str, Any]:
    return {
        "week": week,
        "day": day,
        "title": f"Treino {day} - Semana {week}",
        "focus": "Treino completo de corpo inteiro",
        "estimated_duration": minutes,
        "warm_up": {
            "duration": 10,
            "exercises": [{
                "name": "Aquecimento Geral",
                "duration": 600,
                "instructions": "Realize movimentos articulares suaves e cardio leve para preparar o corpo.",
            }],
        },
        "main_exercises": [{
            "name": "Exercício Principal",
            "muscle_groups": ["corpo_inteiro"],
            "sets": 3,
            "reps": "10-15",
            "rest_seconds": 60,
            "weight_guidance": "Use carga adequada ao seu nível",
            "instructions": "Execute com boa técnica, focando na forma correta.",
            "form_cues": ["Mantenha postura alinhada", "Respire corretamente", "Execute movimento controlado"],
            "progression_notes": "Aumente gradualmente a intensidade conforme evolui.",
            "safety_tips": "Pare se sentir dor ou desconforto.",
            "breathing_pattern": "Expire no esforço, inspire no relaxamento.",
        }],
        "cool_down": {
            "duration": 10,
            "exercises": [{
                "name": "Alongamento Geral",
                "duration": 600,
                "instructions": "Alongue os principais grupos musculares trabalhados.",
            }],
        },
        "workout_tips": [
            "Mantenha boa hidratação durante o treino",
            "Foque na qualidade dos movimentos",
            "Respeite seus limites",
        ],
    }


def build_emergency_plan(request: Dict[str, Any]) -> Dict[str, Any]:
    """Basic plan used when the model answer cannot be parsed"""
    workout_days = int(request["workout_days"])
    minutes = parse_minutes(request.get("available_time"))

    return {
        "title": f"Plano {workout_days}x/semana - {request.get('fitness_level')}",
        "description": (
            f"Plano personalizado para {request.get('fitness_goals')} "
            f"em {request.get('workout_location')}"
        ),
        "difficulty_level": request.get("fitness_level"),
        "duration_weeks": PLAN_WEEKS,
        "total_workouts": workout_days * PLAN_WEEKS,
        "workouts": [
            build_basic_workout(week, day, minutes)
            for week in range(1, PLAN_WEEKS + 1)
            for day in range(1, workout_days + 1)
        ],
        "nutrition_tips": list(DEFAULT_NUTRITION_TIPS),
        "progression_schedule": dict(DEFAULT_PROGRESSION),
    }


def normalize_plan(plan: Dict[str, Any], request: Dict[str, Any]) -> Dict[str, Any]:
    """
    Force 6 weeks and pad workouts up to workout_days * 6
    """
    workout_days = int(request["workout_days"])
    total = workout_days * PLAN_WEEKS
    minutes = parse_minutes(request.get("available_time"))

    workouts = plan.get("workouts")
    if not isinstance(workouts, list):
        workouts = []

    while len(workouts) < total:
        index = len(workouts)
        workouts.append(build_basic_workout(index // workout_days + 1, index % workout_days + 1, minutes))

    plan["workouts"] = workouts
    plan["duration_weeks"] = PLAN_WEEKS
    plan["total_workouts"] = len(workouts)
    return plan


def build_plan_prompt(request: Dict[str, Any]) -> str:
    bmi = calculate_bmi(request["weight"], request["height"])
    equipment, style = LOCATION_EQUIPMENT.get(
        request.get("workout_location"), ("equipamentos disponíveis", "treinos adaptados")
    )

    return WORKOUT_PLAN_USER_PROMPT.format(
        age=request.get("age"),
        height=request.get("height"),
        weight=request.get("weight"),
        bmi=bmi,
        bmi_category=bmi_category(bmi),
        fitness_level=request.get("fitness_level"),
        fitness_goals=request.get("fitness_goals"),
        workout_location=request.get("workout_location"),
        equipment=equipment,
        workout_style=style,
        workout_days=request.get("workout_days"),
        available_time=request.get("available_time"),
        health_conditions=request.get("health_conditions") or "Nenhuma",
        total_workouts=int(request["workout_days"]) * PLAN_WEEKS,
    )


def serialize_queue_item(item: WorkoutPlanQueue) -> Dict[str, Any]:
    return {
        "id": item.id,
        "status": item.status,
        "position_in_queue": item.position_in_queue,
        "error_message": item.error_message,
        "created_at": isoformat(item.created_at),
        "started_at": isoformat(item.started_at),
        "completed_at": isoformat(item.completed_at),
    }


class WorkoutPlanService:
    """Queue and generation of AI workout plans"""

    def __init__(self, llm: Optional[LLMService] = None):
        self.llm = llm or get_llm_service()

    # ===========================
    # QUEUE
    # ===========================

    @staticmethod
    async def _publish(item: WorkoutPlanQueue) -> None:
        await get_realtime_broker().publish(
            item.user_id,
            RealtimeEvent.WORKOUT_QUEUE_UPDATED.value,
            serialize_queue_item(item),
        )

    @staticmethod
    async def get_active_request(session: AsyncSession, user_id: int) -> Optional[WorkoutPlanQueue]:
        stmt = (
            select(WorkoutPlanQueue)
            .where(WorkoutPlanQueue.user_id == user_id)
            .where(WorkoutPlanQueue.status.in_(ACTIVE_STATUSES))
            .order_by(WorkoutPlanQueue.created_at.desc())
            .limit(1)
        )
        return (await session.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def enqueue(
        session: AsyncSession, user: User, request: Dict[str, Any]
    ) -> WorkoutPlanQueue:
        """
        Queue a plan request

        A user with a pending/processing request gets that request back.

        Args:
            session: Database session
            user: Requesting user
            request: Profile data for the prompt

        Returns:
            WorkoutPlanQueue item
        """
        existing = await WorkoutPlanService.get_active_request(session, user.id)
        if existing:
            logger.info(f"User {user.id} already has queued plan request {existing.id}")
            return existing

        pending_ahead = (await session.execute(
            select(func.count(WorkoutPlanQueue.id))
            .where(WorkoutPlanQueue.status == QueueStatus.PENDING.value)
        )).scalar() or 0

        item = WorkoutPlanQueue(
            user_id=user.id,
            status=QueueStatus.PENDING.value,
            request_data={**request, "user_id": user.id},
            position_in_queue=pending_ahead + 1,
        )
        session.add(item)
        await session.commit()
        await session.refresh(item)

        await WorkoutPlanService._publish(item)
        logger.info(f"Workout plan request {item.id} queued for user {user.id} (position {item.position_in_queue})")
        return item

    @staticmethod
    async def get_queue_status(session: AsyncSession, user: User) -> Optional[Dict[str, Any]]:
        stmt = (
            select(WorkoutPlanQueue)
            .where(WorkoutPlanQueue.user_id == user.id)
            .order_by(WorkoutPlanQueue.created_at.desc(), WorkoutPlanQueue.id.desc())
            .limit(1)
        )
        item = (await session.execute(stmt)).scalar_one_or_none()
        return serialize_queue_item(item) if item else None

    @staticmethod
    async def recompute_positions(session: AsyncSession) -> List[WorkoutPlanQueue]:
        """Renumber pending items 1..n by age and notify their owners"""
        stmt = (
            select(WorkoutPlanQueue)
            .where(WorkoutPlanQueue.status == QueueStatus.PENDING.value)
            .order_by(WorkoutPlanQueue.created_at.asc(), WorkoutPlanQueue.id.asc())
        )
        pending = list((await session.execute(stmt)).scalars().all())

        changed = []
        for position, item in enumerate(pending, start=1):
            if item.position_in_queue != position:
                item.position_in_queue = position
                changed.append(item)

        if changed:
            await session.commit()
            for item in changed:
                await WorkoutPlanService._publish(item)
        return pending

    @staticmethod
    async def get_current_plan(session: AsyncSession, user_id: int) -> Optional[UserWorkoutPlan]:
        stmt = select(UserWorkoutPlan).where(UserWorkoutPlan.user_id == user_id)
        return (await session.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def save_plan(session: AsyncSession, user_id: int, plan: Dict[str, Any]) -> UserWorkoutPlan:
        existing = await WorkoutPlanService.get_current_plan(session, user_id)
        now = datetime.now(UTC)

        if existing:
            existing.plan_data = plan
            existing.updated_at = now
            await session.commit()
            return existing

        user_plan = UserWorkoutPlan(user_id=user_id, plan_data=plan)
        session.add(user_plan)
        await session.commit()
        await session.refresh(user_plan)
        return user_plan

    # ===========================
    # GENERATION
    # ===========================

    async def generate_plan(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        Ask the model for a plan

        Raises:
            RuntimeError: If the model is unavailable or fails
        """
        answer = await self.llm.generate(
            WORKOUT_PLAN_SYSTEM_PROMPT,
            [],
            build_plan_prompt(request),
            temperature=WORKOUT_PLAN_TEMPERATURE,
            max_tokens=WORKOUT_PLAN_MAX_TOKENS,
        )
        if answer is None:
            raise RuntimeError("Falha ao gerar plano com IA")

        try:
            plan = clean_and_parse_json(answer)
        except ValueError as e:
            logger.error(f"Plan parsing failed, using emergency plan: {e}")
            plan = build_emergency_plan(request)

        return normalize_plan(plan, request)

    async def process_next(self, session: AsyncSession) -> Optional[WorkoutPlanQueue]:
        """
        Process the oldest pending request

        Returns:
            Processed queue item (completed or failed), None if the queue is empty
        """
        stmt = (
            select(WorkoutPlanQueue)
            .where(WorkoutPlanQueue.status == QueueStatus.PENDING.value)
            .order_by(WorkoutPlanQueue.created_at.asc(), WorkoutPlanQueue.id.asc())
            .limit(1)
        )
        item = (await session.execute(stmt)).scalar_one_or_none()
        if not item:
            return None

        item.status = QueueStatus.PROCESSING.value
        item.started_at = datetime.now(UTC)
        item.position_in_queue = 0
        await session.commit()
        await self._publish(item)
        await self.recompute_positions(session)

        item_id = item.id
        logger.info(f"Processing workout plan request {item_id} (user {item.user_id})")

        try:
            plan = await self.generate_plan(dict(item.request_data))
            await self.save_plan(session, item.user_id, plan)

            item.status = QueueStatus.COMPLETED.value
            item.completed_at = datetime.now(UTC)
            item.error_message = None
            await session.commit()

            logger.info(f"Workout plan request {item_id} completed: {plan.get('title')}")

        except Exception as e:
            logger.error(f"Workout plan request {item_id} failed: {e}")
            await session.rollback()

            # rollback expires loaded rows
            item = await session.get(WorkoutPlanQueue, item_id)
            item.status = QueueStatus.FAILED.value
            item.error_message = str(e)
            item.completed_at = datetime.now(UTC)
            await session.commit()

        await self._publish(item)
        return item


_workout_plan_service: Optional[WorkoutPlanService] = None


def get_workout_plan_service() -> WorkoutPlanService:
    """Get singleton workout plan service instance"""
    global _workout_plan_service
    if _workout_plan_service is None:
        _workout_plan_service = WorkoutPlanService()
    return _workout_plan_service
