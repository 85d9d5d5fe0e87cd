"""
Config API Endpoints
Public endpoints for landing content and pricing
"""

from fastapi import APIRouter
from typing import Dict, Any

from config.marketing import HERO, FEATURES, TESTIMONIALS, FOOTER
from config.pricing import get_plan_pricing

# Create router
router = APIRouter(prefix="/config", tags=["config"])


@router.get("/landing")
async def get_landing() -> Dict[str, Any]:
    """
    Landing page content

    Public endpoint - no authentication required

    Returns:
        {"hero": {...}, "features": [...], "testimonials": [...],
         "pricing": {...}, "footer": {...}}
    """
    return {
        "hero": HERO,
        "features": FEATURES,
        "testimonials": TESTIMONIALS,
        "pricing": get_plan_pricing(),
        "footer": FOOTER,
    }


@router.get("/pricing")
async def get_pricing() -> Dict[str, Any]:
    """
    Get current pricing configuration

    Public endpoint - no authentication required

    Returns:
        {
            "name": "FitAI Pro",
            "price": 69.9,
            "currency": "BRL",
            "billing_type": "PIX",
            "duration_days": 30,
            "description": "Assinatura FitAI Pro - Mensal",
            "features": [...],
            "trial_hours": 24
        }
    """
    return get_plan_pricing()
