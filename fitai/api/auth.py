"""
Email/password authentication

- Bearer JWT issued on signup/login (python-jose, HS256)
- Dependencies for authenticated, premium and admin endpoints
- Password reset through Resend email links
"""

from typing import Annotated, Optional, Dict, Any, Tuple

from fastapi import APIRouter, HTTPException, Header, Depends
from pydantic import AfterValidator, BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from config.config import WEBAPP_URL
from config.sentry import set_user_context
from fitai.database.crud import (
    create_user,
    get_user_by_email,
    get_user_by_id,
    serialize_user,
    update_last_login,
)
from fitai.database.engine import get_session
from fitai.database.models import User
from fitai.services.affiliate_service import AffiliateService
from fitai.services.auth_service import AuthService, MAX_PASSWORD_BYTES
from fitai.services.resend_service import get_resend_service


router = APIRouter(prefix="/auth", tags=["auth"])


# ===========================
# DEPENDENCIES
# ===========================


async def _authenticate(authorization: Optional[str], session: AsyncSession) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization header. Expected: 'Bearer <token>'"
        )

    payload = AuthService.decode_access_token(authorization[7:])
    if not payload or not payload.get("user_id"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = await get_user_by_id(session, int(payload["user_id"]))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if user.is_banned:
        raise HTTPException(status_code=403, detail="Sua conta foi suspensa")

    set_user_context(user.id)
    return user


async def get_current_user(
    authorization: Optional[str] = Header(None),
    session: AsyncSession = Depends(get_session)
) -> User:
    """
    FastAPI dependency for the authenticated user

    Usage:
        @router.get("/profile")
        async def get_profile(user: User = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    return await _authenticate(authorization, session)


async def get_current_user_with_session(
    authorization: Optional[str] = Header(None),
    session: AsyncSession = Depends(get_session)
) -> Tuple[User, AsyncSession]:
    """
    Get current user AND the session together.
    Use this in endpoints that need to make additional DB queries, so the
    user and the queries share one session.

    Usage:
        @router.get("/endpoint")
        async def handler(
            user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session)
        ):
            user, session = user_session
    """
    user = await _authenticate(authorization, session)
    return user, session


async def require_premium(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session)
) -> Tuple[User, AsyncSession]:
    """Trial, promoter, subscriber or admin"""
    user, session = user_session
    permissions = await AuthService.get_permissions(session, user)
    if not permissions.has_premium_access:
        raise HTTPException(status_code=403, detail="Acesso premium necessário")
    return user, session


async def require_admin(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session)
) -> Tuple[User, AsyncSession]:
    user, session = user_session
    if not AuthService.is_admin_email(user.email):
        raise HTTPException(status_code=403, detail="Acesso restrito a administradores")
    return user, session


# ===========================
# REQUEST/RESPONSE MODELS
# ===========================


def _check_password_bytes(value: str) -> str:
    if not AuthService.password_fits(value):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


NewPassword = Annotated[str, Field(min_length=6), AfterValidator(_check_password_bytes)]


class SignupRequest(BaseModel):
    email: EmailStr
    password: NewPassword
    full_name: str = Field(..., min_length=1, max_length=255)
    referral_code: Optional[str] = None  # ?ref= from the landing page


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: NewPassword


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: NewPassword


class AuthResponse(BaseModel):
    success: bool
    token: str
    user: Dict[str, Any]


# ===========================
# API ENDPOINTS
# ===========================


@router.post("/signup", response_model=AuthResponse)
async def signup(
    data: SignupRequest,
    session: AsyncSession = Depends(get_session),
):
    """
    Create account

    The 24h trial starts at signup. A referral code is staged on the user
    and linked to the affiliate right away when it is valid.

    Errors:
        409: Email already registered
    """
    if await get_user_by_email(session, data.email):
        raise HTTPException(status_code=409, detail="Email já cadastrado")

    referral_code = data.referral_code.strip().upper() if data.referral_code else None

    user = await create_user(
        session,
        email=data.email,
        password_hash=AuthService.hash_password(data.password),
        full_name=data.full_name.strip(),
        pending_referral_code=referral_code,
    )

    if referral_code:
        await AffiliateService.process_staged_referral(session, user)

    logger.info(f"New signup: {user.email} (id={user.id}, ref={referral_code})")

    return {
        "success": True,
        "token": AuthService.create_access_token(user.id, user.email),
        "user": serialize_user(user),
    }


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    session: AsyncSession = Depends(get_session),
):
    """
    Errors:
        401: Wrong email or password
        403: Account suspended
    """
    user = await get_user_by_email(session, data.email)
    if not user or not AuthService.verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Email ou senha inválidos")

    if user.is_banned:
        raise HTTPException(status_code=403, detail="Sua conta foi suspensa")

    await update_last_login(session, user)

    return {
        "success": True,
        "token": AuthService.create_access_token(user.id, user.email),
        "user": serialize_user(user),
    }


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    """Always succeeds so account existence is not revealed"""
    user = await get_user_by_email(session, data.email)

    if user:
        reset_token = await AuthService.create_reset_token(session, user)
        reset_url = f"{WEBAPP_URL}/reset-password?token={reset_token.token}"

        sent = await get_resend_service().send_password_reset(user.email, reset_url)
        if not sent:
            logger.warning(f"Password reset email not sent to {user.email}")
    else:
        logger.info(f"Password reset requested for unknown email {data.email}")

    return {
        "success": True,
        "message": "Se o email estiver cadastrado, você receberá um link para redefinir sua senha.",
    }


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    """
    Errors:
        400: Unknown, used or expired token
    """
    user = await AuthService.reset_password(session, data.token, data.new_password)
    if not user:
        raise HTTPException(status_code=400, detail="Link inválido ou expirado")

    return {"success": True, "message": "Senha redefinida com sucesso"}


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """
    Errors:
        400: Wrong current password or unchanged password
    """
    user, session = user_session

    if not AuthService.verify_password(data.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Senha atual incorreta")

    if data.current_password == data.new_password:
        raise HTTPException(status_code=400, detail="A nova senha deve ser diferente da atual")

    await AuthService.change_password(session, user, data.new_password)
    return {"success": True, "message": "Senha alterada com sucesso"}


@router.get("/me")
async def get_me(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """Current user with derived permissions"""
    user, session = user_session
    permissions = await AuthService.get_permissions(session, user)

    return {
        "user": serialize_user(user),
        "permissions": permissions.to_dict(),
    }
