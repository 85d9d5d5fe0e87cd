"""
Auth Service - passwords, JWT and access permissions

Access model (combined with OR):
- admin: email in ADMIN_EMAILS allowlist (gets everything)
- trial: first TRIAL_HOURS after signup
- promoter: active promoters row
- subscriber: active subscription with expires_at in the future
"""

import secrets
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, UTC
from typing import Optional, Dict, Any

import bcrypt
from jose import JWTError, jwt
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.config import (
    JWT_SECRET,
    JWT_ALGORITHM,
    JWT_EXPIRATION_DAYS,
    ADMIN_EMAILS,
    TRIAL_HOURS,
    PASSWORD_RESET_EXPIRATION_MINUTES,
)
from fitai.database.crud import get_active_subscription, is_active_promoter
from fitai.database.models import User, PasswordResetToken
from fitai.utils.time_utils import ensure_utc, isoformat


@dataclass
class Permissions:
    """Derived access flags for a user"""

    is_admin: bool
    is_trial_active: bool
    trial_ends_at: Optional[datetime]
    is_promoter: bool
    has_active_subscription: bool
    subscription_expires_at: Optional[datetime] = None

    @property
    def has_premium_access(self) -> bool:
        return (
            self.is_admin
            or self.is_trial_active
            or self.is_promoter
            or self.has_active_subscription
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["trial_ends_at"] = isoformat(self.trial_ends_at)
        data["subscription_expires_at"] = isoformat(self.subscription_expires_at)
        data["has_premium_access"] = self.has_premium_access
        return data


# bcrypt only accepts up to 72 bytes of input
MAX_PASSWORD_BYTES = 72


class AuthService:
    """Password hashing, tokens and permission derivation"""

    # ===========================
    # PASSWORDS
    # ===========================

    @staticmethod
    def password_fits(password: str) -> bool:
        return len(password.encode("utf-8")) <= MAX_PASSWORD_BYTES

    @staticmethod
    def hash_password(password: str) -> str:
        if not AuthService.password_fits(password):
            raise ValueError(f"Password longer than {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        if not AuthService.password_fits(password):
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed hash in the database
            return False

    # ===========================
    # JWT
    # ===========================

    @staticmethod
    def create_access_token(user_id: int, email: str) -> str:
        """
        Generate JWT token for authenticated user

        Args:
            user_id: User ID
            email: User email

        Returns:
            JWT token string (valid for JWT_EXPIRATION_DAYS)
        """
        now = datetime.now(UTC)
        payload = {
            "user_id": user_id,
            "email": email,
            "exp": now + timedelta(days=JWT_EXPIRATION_DAYS),
            "iat": now,
        }
        return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)

    @staticmethod
    def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
        """
        Decode and validate a JWT token

        Returns:
            Token payload, or None if the token is invalid or expired
        """
        try:
            return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            logger.debug(f"JWT validation failed: {e}")
            return None

    # ===========================
    # PERMISSIONS
    # ===========================

    @staticmethod
    def is_admin_email(email: str) -> bool:
        return email.strip().lower() in ADMIN_EMAILS

    @staticmethod
    async def get_permissions(
        session: AsyncSession, user: User, now: Optional[datetime] = None
    ) -> Permissions:
        """
        Derive the user's access flags

        Args:
            session: Database session
            user: User model
            now: Reference time (defaults to current UTC time)

        Returns:
            Permissions
        """
        now = now or datetime.now(UTC)

        is_admin = AuthService.is_admin_email(user.email)

        trial_ends_at = ensure_utc(user.created_at) + timedelta(hours=TRIAL_HOURS)
        is_trial_active = now < trial_ends_at

        is_promoter = await is_active_promoter(session, user.id)

        subscription = await get_active_subscription(session, user.id, now=now)
        has_active_subscription = subscription is not None

        if is_admin:
            return Permissions(
                is_admin=True,
                is_trial_active=True,
                trial_ends_at=trial_ends_at,
                is_promoter=True,
                has_active_subscription=True,
                subscription_expires_at=ensure_utc(subscription.expires_at) if subscription else None,
            )

        return Permissions(
            is_admin=False,
            is_trial_active=is_trial_active,
            trial_ends_at=trial_ends_at,
            is_promoter=is_promoter,
            has_active_subscription=has_active_subscription,
            subscription_expires_at=ensure_utc(subscription.expires_at) if subscription else None,
        )

    # ===========================
    # PASSWORD RESET
    # ===========================

    @staticmethod
    async def create_reset_token(session: AsyncSession, user: User) -> PasswordResetToken:
        """
        Create one-time password reset token

        Returns:
            PasswordResetToken (valid for PASSWORD_RESET_EXPIRATION_MINUTES)
        """
        reset_token = PasswordResetToken(
            user_id=user.id,
            token=secrets.token_urlsafe(32),
            expires_at=datetime.now(UTC) + timedelta(minutes=PASSWORD_RESET_EXPIRATION_MINUTES),
        )
        session.add(reset_token)
        await session.commit()
        await session.refresh(reset_token)

        logger.info(f"Password reset token created for user {user.id}")
        return reset_token

    @staticmethod
    async def reset_password(session: AsyncSession, token: str, new_password: str) -> Optional[User]:
        """
        Consume reset token and set a new password

        Args:
            session: Database session
            token: Token from the reset email
            new_password: New plain password

        Returns:
            Updated User, or None if the token is unknown, used or expired
        """
        stmt = select(PasswordResetToken).where(PasswordResetToken.token == token)
        result = await session.execute(stmt)
        reset_token = result.scalar_one_or_none()

        now = datetime.now(UTC)
        if not reset_token or reset_token.used_at is not None:
            return None
        if ensure_utc(reset_token.expires_at) <= now:
            return None

        user = await session.get(User, reset_token.user_id)
        if not user:
            return None

        user.password_hash = AuthService.hash_password(new_password)
        reset_token.used_at = now
        await session.commit()

        logger.info(f"Password reset completed for user {user.id}")
        return user

    @staticmethod
    async def change_password(session: AsyncSession, user: User, new_password: str) -> None:
        user.password_hash = AuthService.hash_password(new_password)
        await session.commit()
        logger.info(f"Password changed for user {user.id}")
