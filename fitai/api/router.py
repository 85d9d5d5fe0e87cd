"""
FastAPI Router for the FitAI Pro API (mounted under /api)
"""

from fastapi import APIRouter

# Import sub-routers
from fitai.api.auth import router as auth_router
from fitai.api.chat import router as chat_router
from fitai.api.gamification import router as gamification_router
from fitai.api.forum import router as forum_router
from fitai.api.affiliate import router as affiliate_router
from fitai.api.payment import router as payment_router
from fitai.api.webhooks_asaas import router as asaas_webhook_router
from fitai.api.onboarding import router as onboarding_router
from fitai.api.notifications import router as notifications_router
from fitai.api.realtime import router as realtime_router
from fitai.api.profile import router as profile_router
from fitai.api.workout_plans import router as workout_plans_router
from fitai.api.challenges import router as challenges_router
from fitai.api.admin import router as admin_router
from fitai.api.config import router as config_router


# Main router
router = APIRouter()

# Include sub-routers (they carry their own prefixes)
router.include_router(auth_router)
router.include_router(chat_router)  # General + nutrition assistants
router.include_router(gamification_router)
router.include_router(forum_router)
router.include_router(affiliate_router)
router.include_router(payment_router)  # PIX via Asaas
router.include_router(asaas_webhook_router)  # Asaas webhook (public)
router.include_router(onboarding_router)
router.include_router(notifications_router)
router.include_router(realtime_router)  # WebSocket events
router.include_router(profile_router)
router.include_router(workout_plans_router)  # AI workout plan queue
router.include_router(challenges_router)
router.include_router(admin_router)  # Promoters and stats (admin)
router.include_router(config_router)  # Public landing + pricing
