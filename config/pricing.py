"""
Pricing Configuration - single source of truth for the FitAI Pro plan

All prices in BRL, charged through PIX.
"""

from decimal import Decimal
from typing import Dict, Any, List

from config.config import TRIAL_HOURS


SUBSCRIPTION_PRICE = Decimal("69.90")
SUBSCRIPTION_DURATION_DAYS = 30
SUBSCRIPTION_DESCRIPTION = "Assinatura FitAI Pro - Mensal"
CURRENCY = "BRL"
BILLING_TYPE = "PIX"

PLAN_FEATURES: List[str] = [
    "Assistente de treino com IA 24h",
    "Assistente de nutrição personalizado",
    "Planos de treino gerados por IA",
    "Desafios diários e conquistas",
    "Acesso completo à comunidade",
    "Acompanhamento de progresso",
]


def get_plan_pricing() -> Dict[str, Any]:
    """
    Get pricing payload for the public pricing page

    Returns:
        Dict with price, currency, duration and features
    """
    return {
        "name": "FitAI Pro",
        "price": float(SUBSCRIPTION_PRICE),
        "currency": CURRENCY,
        "billing_type": BILLING_TYPE,
        "duration_days": SUBSCRIPTION_DURATION_DAYS,
        "description": SUBSCRIPTION_DESCRIPTION,
        "features": PLAN_FEATURES,
        "trial_hours": TRIAL_HOURS,
    }
