# coding: utf-8
"""
Billing Service - PIX subscriptions through Asaas

Flow:
1. create_pix_charge(): customer -> PIX charge -> QR code (polled) -> pending subscription
2. Payment confirmed by webhook (process_webhook) or by the user (verify_payment)
3. Subscription becomes active for SUBSCRIPTION_DURATION_DAYS, affiliate conversion runs
"""

import asyncio
import re
from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional, Dict, Any, Tuple

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from config.config import (
    ASAAS_QR_POLL_ATTEMPTS,
    ASAAS_QR_POLL_DELAY_SECONDS,
    PIX_FALLBACK_KEY,
    PIX_MERCHANT_NAME,
    PIX_MERCHANT_CITY,
)
from config.pricing import (
    SUBSCRIPTION_PRICE,
    SUBSCRIPTION_DURATION_DAYS,
    SUBSCRIPTION_DESCRIPTION,
)
from config.sentry import capture_exception
from fitai.core.enums import NotificationType, RealtimeEvent
from fitai.database.crud import (
    activate_subscription,
    create_subscription,
    get_latest_subscription,
    get_subscription_by_payment_id,
)
from fitai.database.models import Subscription, SubscriptionStatus, User
from fitai.services.affiliate_service import AffiliateService
from fitai.services.asaas_service import AsaasService, get_asaas_service
from fitai.services.auth_service import AuthService
from fitai.services.notification_service import NotificationService
from fitai.services.realtime import get_realtime_broker
from fitai.utils.pix import build_static_pix_payload
from fitai.utils.time_utils import isoformat, today_utc


PAYMENT_EVENTS = ("PAYMENT_RECEIVED", "PAYMENT_CONFIRMED")


def normalize_cpf(cpf: str) -> Optional[str]:
    """Strip punctuation; None unless exactly 11 digits remain"""
    digits = re.sub(r"\D", "", cpf or "")
    return digits if len(digits) == 11 else None


def serialize_subscription(subscription: Subscription) -> Dict[str, Any]:
    return {
        "id": subscription.id,
        "payment_id": subscription.payment_id,
        "amount": float(subscription.amount),
        "status": subscription.status,
        "payment_method": subscription.payment_method,
        "expires_at": isoformat(subscription.expires_at),
        "created_at": isoformat(subscription.created_at),
        "updated_at": isoformat(subscription.updated_at),
    }


class BillingService:
    """PIX subscription lifecycle"""

    def __init__(
        self,
        asaas: Optional[AsaasService] = None,
        poll_attempts: int = ASAAS_QR_POLL_ATTEMPTS,
        poll_delay: float = ASAAS_QR_POLL_DELAY_SECONDS,
    ):
        self.asaas = asaas or get_asaas_service()
        self.poll_attempts = poll_attempts
        self.poll_delay = poll_delay

    # ===========================
    # CHARGE CREATION
    # ===========================

    async def _get_or_create_customer(self, user: User, cpf: str) -> Optional[str]:
        customer = await self.asaas.find_customer(user.email, cpf)
        if customer:
            return customer["id"]

        customer = await self.asaas.create_customer(user.full_name or user.email, user.email, cpf)
        return customer["id"] if customer else None

    async def _poll_qr_code(self, payment_id: str) -> Optional[Dict[str, Any]]:
        """
        Ask for the QR code up to poll_attempts times

        Asaas generates it asynchronously right after the charge is created.
        """
        for attempt in range(1, self.poll_attempts + 1):
            qr = await self.asaas.get_pix_qr_code(payment_id)
            if qr:
                logger.info(f"PIX QR code ready for {payment_id} (attempt {attempt})")
                return qr

            if attempt < self.poll_attempts:
                await asyncio.sleep(self.poll_delay)

        logger.warning(f"PIX QR code not available for {payment_id} after {self.poll_attempts} attempts")
        return None

    @staticmethod
    def build_fallback_payload(amount: Decimal, payment_id: str) -> Optional[str]:
        if not PIX_FALLBACK_KEY:
            logger.error("PIX_FALLBACK_KEY not configured - no fallback PIX payload")
            return None

        return build_static_pix_payload(
            pix_key=PIX_FALLBACK_KEY,
            merchant_name=PIX_MERCHANT_NAME,
            merchant_city=PIX_MERCHANT_CITY,
            amount=amount,
            txid=payment_id,
        )

    async def create_pix_charge(
        self,
        session: AsyncSession,
        user: User,
        cpf: str,
        amount: Decimal = SUBSCRIPTION_PRICE,
    ) -> Tuple[Optional[Dict[str, Any]], str]:
        """
        Create PIX charge and pending subscription

        Args:
            session: Database session
            user: Paying user
            cpf: Payer CPF (punctuation allowed)
            amount: Charge amount (BRL)

        Returns:
            Tuple of (charge dict or None, status code: ok, invalid_cpf,
            gateway_unavailable, customer_error, payment_error)
        """
        cpf_digits = normalize_cpf(cpf)
        if not cpf_digits:
            return None, "invalid_cpf"

        if not self.asaas.enabled:
            return None, "gateway_unavailable"

        customer_id = await self._get_or_create_customer(user, cpf_digits)
        if not customer_id:
            return None, "customer_error"

        payment = await self.asaas.create_pix_payment(
            customer_id=customer_id,
            value=amount,
            description=SUBSCRIPTION_DESCRIPTION,
            due_date=today_utc(),
        )
        if not payment:
            return None, "payment_error"

        payment_id = payment["id"]
        qr = await self._poll_qr_code(payment_id)

        if qr:
            pix_code = qr.get("payload")
            qr_code_image = qr.get("encodedImage")
            expiration_date = qr.get("expirationDate")
            fallback = False
        else:
            pix_code = self.build_fallback_payload(amount, payment_id)
            qr_code_image = None
            expiration_date = None
            fallback = True

        try:
            subscription = await create_subscription(session, user.id, payment_id, amount)
        except Exception as e:
            logger.error(f"Error saving subscription for payment {payment_id}: {e}")
            await session.rollback()
            capture_exception(e, user_id=user.id, payment_id=payment_id)
            return None, "payment_error"

        return {
            "payment_id": payment_id,
            "pix_code": pix_code,
            "qr_code_image": qr_code_image,
            "expiration_date": expiration_date,
            "subscription_id": subscription.id,
            "amount": float(amount),
            "fallback": fallback,
        }, "ok"

    # ===========================
    # ACTIVATION
    # ===========================

    @staticmethod
    async def _activate(session: AsyncSession, subscription: Subscription) -> Subscription:
        subscription = await activate_subscription(session, subscription, SUBSCRIPTION_DURATION_DAYS)

        await get_realtime_broker().publish(
            subscription.user_id,
            RealtimeEvent.SUBSCRIPTION_UPDATED.value,
            serialize_subscription(subscription),
        )
        await AffiliateService.process_referral_conversion(
            session, subscription.user_id, subscription
        )
        return subscription

    async def verify_payment(
        self, session: AsyncSession, user: User, payment_id: str
    ) -> Tuple[Optional[Dict[str, Any]], str]:
        """
        Check payment status with Asaas and activate when paid

        Returns:
            Tuple of ({paid, status, payment_id, message} or None,
            status code: ok, not_found, gateway_error)
        """
        subscription = await get_subscription_by_payment_id(session, payment_id, user_id=user.id)
        if not subscription:
            return None, "not_found"

        payment = await self.asaas.get_payment(payment_id)
        if not payment:
            return None, "gateway_error"

        status = payment.get("status")
        paid = AsaasService.is_paid_status(status)

        if paid and subscription.status != SubscriptionStatus.ACTIVE.value:
            await self._activate(session, subscription)
            logger.info(f"Payment {payment_id} verified by user {user.id}, subscription activated")

        return {
            "paid": paid,
            "status": status,
            "payment_id": payment_id,
            "message": "Pagamento confirmado e assinatura ativada!" if paid else "Pagamento ainda pendente",
        }, "ok"

    @staticmethod
    async def process_webhook(
        session: AsyncSession, payload: Dict[str, Any]
    ) -> Tuple[str, Dict[str, Any]]:
        """
        Handle Asaas webhook

        Args:
            session: Database session
            payload: Webhook JSON ({"event": ..., "payment": {...}})

        Returns:
            Tuple of (status code: ignored, invalid_payload, not_found,
            already_processed, activated; response body)
        """
        event = payload.get("event")
        if event not in PAYMENT_EVENTS:
            logger.info(f"Asaas webhook ignored: {event}")
            return "ignored", {"message": "Evento ignorado"}

        payment = payload.get("payment") or {}
        payment_id = payment.get("id")
        if not payment_id:
            logger.error(f"Asaas webhook with invalid payment data: {payment}")
            return "invalid_payload", {"error": "Dados de pagamento inválidos"}

        subscription = await get_subscription_by_payment_id(session, payment_id)
        if not subscription:
            logger.bind(payment_id=payment_id).error(f"Subscription not found for payment_id {payment_id}")
            return "not_found", {"error": "Assinatura não encontrada"}

        if subscription.status == SubscriptionStatus.ACTIVE.value:
            logger.info(f"Payment {payment_id} already processed")
            return "already_processed", {"message": "Pagamento já processado"}

        subscription = await BillingService._activate(session, subscription)

        await NotificationService.create_notification(
            session,
            user_id=subscription.user_id,
            title="Pagamento Confirmado!",
            message="Sua assinatura FitAI Pro foi ativada automaticamente. Aproveite todos os recursos!",
            type=NotificationType.SUCCESS,
        )

        logger.info(
            f"Subscription {subscription.id} activated via webhook "
            f"(payment {payment_id}, user {subscription.user_id})"
        )
        return "activated", {
            "message": "Webhook processado com sucesso",
            "subscription_id": subscription.id,
            "payment_id": payment_id,
            "status": SubscriptionStatus.ACTIVE.value,
        }

    # ===========================
    # STATUS
    # ===========================

    @staticmethod
    async def get_subscription_status(session: AsyncSession, user: User) -> Dict[str, Any]:
        subscription = await get_latest_subscription(session, user.id)
        permissions = await AuthService.get_permissions(session, user, now=datetime.now(UTC))

        return {
            "subscription": serialize_subscription(subscription) if subscription else None,
            "permissions": permissions.to_dict(),
        }


_billing_service: Optional[BillingService] = None


def get_billing_service() -> BillingService:
    """Get singleton billing service instance"""
    global _billing_service
    if _billing_service is None:
        _billing_service = BillingService()
    return _billing_service
