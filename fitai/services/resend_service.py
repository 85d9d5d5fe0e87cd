"""
Resend Email Service for password reset

Sends transactional emails through the Resend API
https://resend.com/docs/send-with-python
"""

from typing import Optional

import resend
from loguru import logger

from config.config import RESEND_API_KEY, RESEND_FROM_EMAIL, RESEND_FROM_NAME


class ResendEmailService:
    """
    Email service for password reset links via Resend API

    Disabled (every send returns False) when RESEND_API_KEY is not set.
    """

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else RESEND_API_KEY
        self.from_email = RESEND_FROM_EMAIL
        self.from_name = RESEND_FROM_NAME

        if not self.api_key:
            logger.warning("RESEND_API_KEY not set - email service disabled")
            self.client = None
        else:
            # Resend SDK uses a module-level API key
            resend.api_key = self.api_key
            self.client = resend
            logger.info("Resend email service initialized")

    def is_available(self) -> bool:
        return self.client is not None

    async def send_password_reset(self, to_email: str, reset_url: str) -> bool:
        """
        Send password reset email

        Args:
            to_email: Recipient email address
            reset_url: Full reset URL with token

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self.is_available():
            logger.error("Resend not configured - cannot send password reset email")
            return False

        try:
            params: resend.Emails.SendParams = {
                "from": f"{self.from_name} <{self.from_email}>",
                "to": [to_email],
                "subject": "Redefinição de senha - FitAI Pro",
                "html": self._get_password_reset_template(reset_url),
                "tags": [
                    {"name": "type", "value": "password_reset"},
                ],
            }

            response = resend.Emails.send(params)

            # Resend returns dict with 'id' on success
            if response and 'id' in response:
                logger.info(f"Password reset email sent to {to_email} (id: {response['id']})")
                return True

            logger.error(f"Failed to send password reset email: {response}")
            return False

        except Exception as e:
            logger.exception(f"Error sending password reset email via Resend: {e}")
            return False

    def _get_password_reset_template(self, reset_url: str) -> str:
        return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Redefinir senha</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; background: #0f172a; color: #e2e8f0; padding: 32px;">
    <div style="max-width: 480px; margin: 0 auto; background: #1e293b; border-radius: 12px; padding: 32px;">
        <h1 style="color: #22c55e; margin-top: 0;">FitAI Pro</h1>
        <p>Recebemos um pedido para redefinir a senha da sua conta.</p>
        <p>Clique no botão abaixo para escolher uma nova senha. O link expira em 1 hora.</p>
        <p style="text-align: center; margin: 32px 0;">
            <a href="{reset_url}" style="background: #22c55e; color: #0f172a; padding: 12px 24px; border-radius: 8px; text-decoration: none; font-weight: bold;">Redefinir senha</a>
        </p>
        <p style="font-size: 12px; color: #94a3b8;">Se você não pediu a redefinição, ignore este email.</p>
    </div>
</body>
</html>
"""


# Singleton instance
_email_service: Optional[ResendEmailService] = None


def get_resend_service() -> ResendEmailService:
    """
    Get singleton Resend email service instance

    Returns:
        ResendEmailService instance
    """
    global _email_service
    if _email_service is None:
        _email_service = ResendEmailService()
    return _email_service
