# coding: utf-8
"""
Gamification Configuration

XP rewards, level thresholds and the achievements catalogue.
Thresholds live here so they can be tuned without touching the service code.
"""

from typing import Dict, List, Any


# =======================
# XP REWARDS
# =======================

DEFAULT_WORKOUT_XP = 25  # XP for a completed workout
MAX_WORKOUT_XP = 200  # Upper bound accepted from clients


# =======================
# LEVELS
# =======================

# (min_xp, level) - checked from the highest threshold down
LEVEL_THRESHOLDS: List[tuple] = [
    (1500, 6),
    (1000, 5),
    (600, 4),
    (300, 3),
    (100, 2),
    (0, 1),
]

LEVEL_NAMES: Dict[int, str] = {
    1: "Iniciante",
    2: "Aprendiz",
    3: "Dedicado",
    4: "Atleta",
    5: "Elite",
    6: "Lenda",
}


def get_level_for_xp(xp: int) -> int:
    """
    Get level for total XP

    Args:
        xp: Total XP

    Returns:
        Level number (1-6)
    """
    for min_xp, level in LEVEL_THRESHOLDS:
        if xp >= min_xp:
            return level

    return 1


def get_next_level_xp(level: int) -> int | None:
    """XP required to reach the next level (None at max level)"""
    for min_xp, lvl in reversed(LEVEL_THRESHOLDS):
        if lvl == level + 1:
            return min_xp
    return None


# =======================
# FITNESS CATEGORIES
# =======================

FITNESS_CATEGORIES = ("iniciante", "intermediario", "avancado")


def map_fitness_level_to_category(fitness_level: str | None) -> str:
    """
    Map a free-form fitness level label to one of FITNESS_CATEGORIES
    """
    level = (fitness_level or "").lower()
    if "avancado" in level or "avançado" in level or "expert" in level:
        return "avancado"
    if "intermediario" in level or "intermediário" in level or "regular" in level:
        return "intermediario"
    return "iniciante"


# =======================
# ACHIEVEMENTS
# =======================

# metric: which profile field is compared against threshold
ACHIEVEMENTS: List[Dict[str, Any]] = [
    {
        "id": "first-workout",
        "title": "Primeiro Passo",
        "description": "Complete seu primeiro treino",
        "metric": "total_workouts",
        "threshold": 1,
        "icon": "🎯",
    },
    {
        "id": "workout-10",
        "title": "Em Ritmo",
        "description": "Complete 10 treinos",
        "metric": "total_workouts",
        "threshold": 10,
        "icon": "💪",
    },
    {
        "id": "workout-25",
        "title": "Comprometido",
        "description": "Complete 25 treinos",
        "metric": "total_workouts",
        "threshold": 25,
        "icon": "🔥",
    },
    {
        "id": "workout-50",
        "title": "Imparável",
        "description": "Complete 50 treinos",
        "metric": "total_workouts",
        "threshold": 50,
        "icon": "🏆",
    },
    {
        "id": "streak-3",
        "title": "Três Seguidos",
        "description": "Treine 3 dias consecutivos",
        "metric": "current_streak",
        "threshold": 3,
        "icon": "📅",
    },
    {
        "id": "streak-7",
        "title": "Semana Perfeita",
        "description": "Treine 7 dias consecutivos",
        "metric": "current_streak",
        "threshold": 7,
        "icon": "⭐",
    },
    {
        "id": "streak-30",
        "title": "Mês de Ferro",
        "description": "Treine 30 dias consecutivos",
        "metric": "current_streak",
        "threshold": 30,
        "icon": "👑",
    },
    {
        "id": "level-3",
        "title": "Subindo de Nível",
        "description": "Alcance o nível 3",
        "metric": "level",
        "threshold": 3,
        "icon": "🚀",
    },
    {
        "id": "level-5",
        "title": "Elite Fitness",
        "description": "Alcance o nível 5",
        "metric": "level",
        "threshold": 5,
        "icon": "💎",
    },
]

ACHIEVEMENTS_BY_ID: Dict[str, Dict[str, Any]] = {a["id"]: a for a in ACHIEVEMENTS}

LEADERBOARD_SIZE = 10


# =======================
# CHALLENGES
# =======================

WEEKLY_CHALLENGE_DAYS = 7

# Created every day (start_date == end_date == today)
DAILY_CHALLENGES: List[Dict[str, Any]] = [
    {
        "title": "Treino do Dia",
        "description": "Complete 1 treino hoje",
        "category": "workout",
        "target_value": 1,
        "target_unit": "treino",
        "xp_reward": 20,
        "difficulty": "easy",
    },
    {
        "title": "Hidratação Diária",
        "description": "Beba 8 copos de água hoje",
        "category": "nutrition",
        "target_value": 8,
        "target_unit": "copos",
        "xp_reward": 15,
        "difficulty": "easy",
    },
    {
        "title": "Atividade Física",
        "description": "Faça 30 minutos de atividade física",
        "category": "workout",
        "target_value": 30,
        "target_unit": "minutos",
        "xp_reward": 25,
        "difficulty": "medium",
    },
    {
        "title": "Passo Saudável",
        "description": "Caminhe por 15 minutos",
        "category": "general",
        "target_value": 15,
        "target_unit": "minutos",
        "xp_reward": 10,
        "difficulty": "easy",
    },
]

# Created when no weekly challenge is active (runs for WEEKLY_CHALLENGE_DAYS)
WEEKLY_CHALLENGES: List[Dict[str, Any]] = [
    {
        "title": "Guerreiro da Semana",
        "description": "Complete 5 treinos esta semana",
        "category": "workout",
        "target_value": 5,
        "target_unit": "treinos",
        "xp_reward": 100,
        "difficulty": "medium",
    },
    {
        "title": "Consistência Semanal",
        "description": "Complete desafios diários por 7 dias consecutivos",
        "category": "general",
        "target_value": 7,
        "target_unit": "dias",
        "xp_reward": 75,
        "difficulty": "medium",
    },
]
