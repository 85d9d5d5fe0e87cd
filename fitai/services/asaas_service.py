# coding: utf-8
"""
Asaas Service for FitAI Pro

Functionality:
- Customer lookup / creation
- PIX charge creation
- PIX QR code retrieval (payload + base64 image)
- Payment status lookup

API Documentation: https://docs.asaas.com/reference
Auth: `access_token` header with the account API key
"""

import asyncio
import logging  # Needed for tenacity before_sleep_log level constants
from datetime import date
from decimal import Decimal
from typing import Optional, Dict, Any

import aiohttp
from loguru import logger
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from config.config import ASAAS_API_KEY, ASAAS_BASE_URL, ASAAS_SANDBOX


PAID_STATUSES = ("RECEIVED", "CONFIRMED")

REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=15)


class AsaasService:
    """
    Thin async client for the Asaas REST API

    Every public method returns None (and logs) on failure so callers
    can fall back without try/except.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else ASAAS_API_KEY
        self.base_url = (base_url or ASAAS_BASE_URL).rstrip("/")

        if not self.api_key:
            logger.warning("ASAAS_API_KEY not configured - PIX payments disabled")
            self.enabled = False
            return

        self.enabled = True
        network = "Sandbox" if ASAAS_SANDBOX else "Production"
        logger.info(f"AsaasService initialized ({network}: {self.base_url})")

    def _get_headers(self) -> Dict[str, str]:
        return {
            "access_token": self.api_key,
            "Content-Type": "application/json",
        }

    @retry(
        retry=retry_if_exception_type((aiohttp.ClientError, asyncio.TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Send request to Asaas

        Network errors are retried; HTTP error statuses are not.

        Returns:
            Parsed JSON body, or None on a non-2xx status
        """
        url = f"{self.base_url}{path}"

        async with aiohttp.ClientSession(timeout=REQUEST_TIMEOUT) as session:
            async with session.request(
                method, url, headers=self._get_headers(), json=payload, params=params
            ) as response:
                if response.status >= 400:
                    error_text = await response.text()
                    logger.error(f"Asaas {method} {path} failed: HTTP {response.status} - {error_text[:500]}")
                    return None
                return await response.json()

    async def _safe_request(self, method: str, path: str, **kwargs) -> Optional[Dict[str, Any]]:
        if not self.enabled:
            logger.error("Asaas not configured")
            return None

        try:
            return await self._request(method, path, **kwargs)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Asaas {method} {path} network error after retries: {e}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected Asaas error on {method} {path}: {e}")
            return None

    # ===========================
    # CUSTOMERS
    # ===========================

    async def find_customer(self, email: str, cpf: str) -> Optional[Dict[str, Any]]:
        """
        Find existing customer by email + CPF

        Returns:
            First matching customer or None
        """
        data = await self._safe_request(
            "GET", "/customers", params={"email": email, "cpfCnpj": cpf}
        )
        if not data:
            return None

        customers = data.get("data") or []
        return customers[0] if customers else None

    async def create_customer(self, name: str, email: str, cpf: str) -> Optional[Dict[str, Any]]:
        data = await self._safe_request(
            "POST",
            "/customers",
            payload={"name": name, "email": email, "cpfCnpj": cpf},
        )
        if data and data.get("id"):
            logger.info(f"Asaas customer created: {data['id']} ({email})")
            return data
        return None

    # ===========================
    # PAYMENTS
    # ===========================

    async def create_pix_payment(
        self,
        customer_id: str,
        value: Decimal,
        description: str,
        due_date: date,
    ) -> Optional[Dict[str, Any]]:
        """
        Create PIX charge

        Args:
            customer_id: Asaas customer ID
            value: Amount in BRL
            description: Charge description
            due_date: Due date

        Returns:
            Payment object ({"id": "pay_...", "status": "PENDING", ...}) or None
        """
        data = await self._safe_request(
            "POST",
            "/payments",
            payload={
                "customer": customer_id,
                "billingType": "PIX",
                "value": float(value),
                "dueDate": due_date.isoformat(),
                "description": description,
            },
        )
        if data and data.get("id"):
            logger.info(f"Asaas PIX payment created: {data['id']} (R$ {value})")
            return data
        return None

    async def get_pix_qr_code(self, payment_id: str) -> Optional[Dict[str, Any]]:
        """
        Get PIX QR code for a payment

        Returns:
            {"payload": str, "encodedImage": base64 str, "expirationDate": str}
            or None while the QR code is not available yet
        """
        data = await self._safe_request("GET", f"/payments/{payment_id}/pixQrCode")
        if data and data.get("payload"):
            return data
        return None

    async def get_payment(self, payment_id: str) -> Optional[Dict[str, Any]]:
        return await self._safe_request("GET", f"/payments/{payment_id}")

    @staticmethod
    def is_paid_status(status: Optional[str]) -> bool:
        return status in PAID_STATUSES


_asaas_service: Optional[AsaasService] = None


def get_asaas_service() -> AsaasService:
    """Get singleton Asaas service instance"""
    global _asaas_service
    if _asaas_service is None:
        _asaas_service = AsaasService()
    return _asaas_service
