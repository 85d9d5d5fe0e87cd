# coding: utf-8
"""
Onboarding checklist steps and contextual tips
"""

from typing import Dict, List, Any


ONBOARDING_STEPS: List[Dict[str, Any]] = [
    {
        "id": "complete-profile",
        "title": "Complete seu Perfil",
        "description": "Adicione informações básicas para personalizar sua experiência",
        "points": 10,
    },
    {
        "id": "first-workout",
        "title": "Gere seu Primeiro Treino",
        "description": "Crie um plano de treino personalizado com nossa IA",
        "points": 20,
    },
    {
        "id": "nutrition-plan",
        "title": "Explore a Nutrição",
        "description": "Descubra dicas alimentares personalizadas",
        "points": 15,
    },
    {
        "id": "record-progress",
        "title": "Registre seu Progresso",
        "description": "Adicione suas medidas iniciais para acompanhar evolução",
        "points": 15,
    },
]

ONBOARDING_STEP_IDS = [step["id"] for step in ONBOARDING_STEPS]

# pages: dashboard tabs where the tip may appear
# requires_plan: True = only with a workout plan, False = only without, None = either
CONTEXTUAL_TIPS: List[Dict[str, Any]] = [
    {
        "id": "first-workout-tip",
        "title": "💡 Dica: Comece com um Treino Personalizado",
        "description": (
            "Que tal criar seu primeiro plano de treino? Nossa IA vai personalizar "
            "exercícios baseados nos seus objetivos e nível de condicionamento."
        ),
        "action_label": "Criar Treino Agora",
        "action_tab": "workout",
        "pages": ["workout"],
        "requires_plan": False,
    },
    {
        "id": "nutrition-complement-tip",
        "title": "🍎 Dica: Complete com Nutrição",
        "description": (
            "Você já tem um treino! Agora que tal complementar com um plano nutricional? "
            "A combinação de exercícios e alimentação adequada acelera seus resultados."
        ),
        "action_label": "Ver Nutrição",
        "action_tab": "nutrition",
        "pages": ["workout"],
        "requires_plan": True,
    },
    {
        "id": "assistant-help-tip",
        "title": "🤖 Dica: Use o Assistente para Dúvidas",
        "description": (
            "Tem alguma dúvida sobre os exercícios ou técnica? O assistente IA está sempre "
            "disponível para te ajudar com orientações personalizadas."
        ),
        "action_label": "Falar com Assistente",
        "action_tab": "assistant",
        "pages": ["workout", "nutrition"],
        "requires_plan": None,
    },
]

CONTEXTUAL_TIP_IDS = [tip["id"] for tip in CONTEXTUAL_TIPS]
