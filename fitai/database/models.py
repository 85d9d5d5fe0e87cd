"""
Database models for FitAI Pro

SQLAlchemy 2.0 models with full type hints
"""

from datetime import datetime, date, UTC
from typing import Optional, List, Dict, Any
from enum import Enum
from decimal import Decimal

from sqlalchemy import (
    String,
    Text,
    Integer,
    Boolean,
    DateTime,
    Date,
    ForeignKey,
    UniqueConstraint,
    Numeric,
    Index,
    JSON,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from fitai.core.enums import ConversationType, NotificationType


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all models"""

    pass


# ===========================
# ENUMS
# ===========================


class SubscriptionStatus(str, Enum):
    """Subscription lifecycle status"""

    PENDING = "pending"  # PIX charge created, awaiting payment
    ACTIVE = "active"  # Paid, valid until expires_at
    EXPIRED = "expired"  # Was active, expires_at passed
    CANCELLED = "cancelled"  # Cancelled by user or admin


class AffiliateStatus(str, Enum):
    """Affiliate account status"""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class ReferralStatus(str, Enum):
    """Referral status"""

    PENDING = "pending"  # Signed up, not paid yet
    CONVERTED = "converted"  # Paid a subscription
    CANCELLED = "cancelled"


class CommissionStatus(str, Enum):
    """Commission payout status"""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class WithdrawalStatus(str, Enum):
    """Affiliate withdrawal status"""

    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class PromoterStatus(str, Enum):
    """Promoter status (promoters get premium access for free)"""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class QueueStatus(str, Enum):
    """Workout plan generation queue status"""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ChallengeType(str, Enum):
    """Challenge period"""

    DAILY = "daily"
    WEEKLY = "weekly"


# ===========================
# USERS & AUTH
# ===========================


class User(Base):
    """
    User account (email + password)

    Tracks:
    - Credentials and display info
    - Staged referral code (captured before the referral row can be created)
    - Login activity
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False, comment="Login email (lowercase)"
    )
    password_hash: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="bcrypt password hash"
    )
    full_name: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, comment="Display name"
    )
    avatar_url: Mapped[Optional[str]] = mapped_column(
        String(512), nullable=True, comment="Public avatar path"
    )
    is_banned: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, comment="Account suspended"
    )
    pending_referral_code: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True, comment="Referral code staged until the referral row is created"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Last successful login"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class PasswordResetToken(Base):
    """One-time password reset token sent by email"""

    __tablename__ = "password_reset_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    token: Mapped[str] = mapped_column(
        String(128), unique=True, index=True, nullable=False, comment="URL-safe random token"
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, comment="Token expiration"
    )
    used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="When the token was consumed"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<PasswordResetToken(id={self.id}, user_id={self.user_id})>"


class UserProfile(Base):
    """Fitness profile used for workout plan generation and onboarding"""

    __tablename__ = "user_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height_cm: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 1), nullable=True)
    weight_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 1), nullable=True)
    fitness_level: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, comment="iniciante, intermediario, avancado"
    )
    fitness_goals: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    workout_location: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, comment="casa, casa_equipamentos, academia, parque, condominio"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<UserProfile(user_id={self.user_id}, level={self.fitness_level})>"


class UserProgress(Base):
    """Body measurement entry"""

    __tablename__ = "user_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    weight_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 1), nullable=True)
    body_fat_pct: Mapped[Optional[Decimal]] = mapped_column(Numeric(4, 1), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )


# ===========================
# BILLING
# ===========================


class Subscription(Base):
    """
    PIX subscription (one row per checkout)

    Lifecycle:
    - pending: created when the PIX charge is generated
    - active: flipped by webhook or manual verification, valid until expires_at
    - expired: swept by the scheduler once expires_at passes
    """

    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
        comment="User ID (foreign key)",
    )
    payment_id: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False, comment="Asaas payment ID"
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, comment="Charged amount (BRL)"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=SubscriptionStatus.PENDING.value,
        nullable=False,
        index=True,
        comment="pending, active, expired, cancelled",
    )
    payment_method: Mapped[str] = mapped_column(
        String(20), default="pix", nullable=False, comment="Payment method"
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True, comment="Access valid until"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Subscription(id={self.id}, user_id={self.user_id}, status={self.status})>"


# ===========================
# GAMIFICATION
# ===========================


class UserGamification(Base):
    """
    Gamification profile - one row per user, created lazily

    achievements is append-only: ids are only added after a membership check.
    """

    __tablename__ = "user_gamification"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False, comment="Total XP")
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False, comment="Level 1-6")
    current_streak: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False, comment="Consecutive days with a workout"
    )
    best_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_workouts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    achievements: Mapped[List[str]] = mapped_column(
        JSONType, default=list, nullable=False, comment="Unlocked achievement ids"
    )
    fitness_category: Mapped[str] = mapped_column(
        String(20), default="iniciante", nullable=False, comment="iniciante, intermediario, avancado"
    )
    last_activity_date: Mapped[Optional[date]] = mapped_column(
        Date, nullable=True, comment="Date of the last recorded workout"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (Index("ix_user_gamification_xp", "xp"),)

    def __repr__(self) -> str:
        return f"<UserGamification(user_id={self.user_id}, xp={self.xp}, level={self.level})>"


class Challenge(Base):
    """Daily / weekly challenge"""

    __tablename__ = "challenges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True, comment="daily, weekly")
    category: Mapped[str] = mapped_column(
        String(30), nullable=False, comment="workout, nutrition, general"
    )
    target_value: Mapped[int] = mapped_column(Integer, nullable=False)
    target_unit: Mapped[str] = mapped_column(String(30), nullable=False)
    xp_reward: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(20), default="easy", nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Challenge(id={self.id}, type={self.type}, title={self.title})>"


class UserChallengeProgress(Base):
    """User progress towards a challenge target"""

    __tablename__ = "user_challenge_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    challenge_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("challenges.id", ondelete="CASCADE"), index=True, nullable=False
    )
    current_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "challenge_id", name="uq_user_challenge"),
    )


# ===========================
# FORUM
# ===========================


class ForumCategory(Base):
    """Forum category"""

    __tablename__ = "forum_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    color: Mapped[str] = mapped_column(String(20), default="#3B82F6", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class ForumPost(Base):
    """
    Forum post

    likes_count / replies_count are denormalized counters kept in step
    with forum_post_likes / forum_replies by ForumService.
    """

    __tablename__ = "forum_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("forum_categories.id", ondelete="CASCADE"), index=True, nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    likes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    replies_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<ForumPost(id={self.id}, title={self.title!r})>"


class ForumReply(Base):
    """Reply to a forum post"""

    __tablename__ = "forum_replies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("forum_posts.id", ondelete="CASCADE"), index=True, nullable=False
    )
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    likes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class ForumPostLike(Base):
    __tablename__ = "forum_post_likes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("forum_posts.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_like"),)


class ForumReplyLike(Base):
    __tablename__ = "forum_reply_likes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reply_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("forum_replies.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    __table_args__ = (UniqueConstraint("reply_id", "user_id", name="uq_reply_like"),)


# ===========================
# AFFILIATES & PROMOTERS
# ===========================


class Affiliate(Base):
    """
    Affiliate account

    Earns commission_rate % of every subscription paid by referred users.
    """

    __tablename__ = "affiliates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    affiliate_code: Mapped[str] = mapped_column(
        String(16), unique=True, index=True, nullable=False, comment="Public referral code"
    )
    status: Mapped[str] = mapped_column(
        String(20), default=AffiliateStatus.ACTIVE.value, nullable=False, index=True
    )
    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("15.00"), nullable=False, comment="Commission %"
    )
    total_earnings: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    total_referrals: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    pix_key: Mapped[Optional[str]] = mapped_column(
        String(140), nullable=True, comment="PIX key for payouts"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Affiliate(id={self.id}, code={self.affiliate_code}, status={self.status})>"


class Referral(Base):
    """A user referred by an affiliate (at most one per referred user)"""

    __tablename__ = "referrals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    affiliate_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("affiliates.id", ondelete="CASCADE"), index=True, nullable=False
    )
    referred_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    referral_code: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ReferralStatus.PENDING.value, nullable=False, index=True
    )
    conversion_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Referral(id={self.id}, affiliate_id={self.affiliate_id}, status={self.status})>"


class Commission(Base):
    """Commission earned on a converted referral"""

    __tablename__ = "commissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    affiliate_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("affiliates.id", ondelete="CASCADE"), index=True, nullable=False
    )
    referral_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("referrals.id", ondelete="CASCADE"), index=True, nullable=False
    )
    subscription_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("subscriptions.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=CommissionStatus.PENDING.value, nullable=False, index=True
    )
    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class AffiliateWithdrawal(Base):
    """Payout request to the affiliate's PIX key"""

    __tablename__ = "affiliate_withdrawals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    affiliate_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("affiliates.id", ondelete="CASCADE"), index=True, nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    pix_key: Mapped[str] = mapped_column(String(140), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=WithdrawalStatus.PENDING.value, nullable=False, index=True
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class Promoter(Base):
    """Promoter - gets premium access while active"""

    __tablename__ = "promoters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    promoter_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=PromoterStatus.ACTIVE.value, nullable=False, index=True
    )
    deactivated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Start of the post-deactivation grace period"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Promoter(id={self.id}, user_id={self.user_id}, status={self.status})>"


# ===========================
# ONBOARDING & NOTIFICATIONS
# ===========================


class UserOnboardingStatus(Base):
    """Onboarding flags - one row per user, upserted on every change"""

    __tablename__ = "user_onboarding_status"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    has_seen_tour: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_checklist_steps: Mapped[List[str]] = mapped_column(
        JSONType, default=list, nullable=False
    )
    dismissed_contextual_tips: Mapped[List[str]] = mapped_column(
        JSONType, default=list, nullable=False
    )
    hide_checklist: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class Notification(Base):
    """In-app notification (pushed over the user's realtime channel on insert)"""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(30), default=NotificationType.INFO.value, nullable=False
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    action_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    extra_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        "metadata", JSONType, nullable=True, comment="Free-form payload"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user_id={self.user_id}, type={self.type})>"


# ===========================
# AI
# ===========================


class AIConversation(Base):
    """Assistant transcript - one row per (user, conversation_type)"""

    __tablename__ = "ai_conversations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    conversation_type: Mapped[str] = mapped_column(
        String(20), default=ConversationType.GENERAL.value, nullable=False
    )
    messages: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONType, default=list, nullable=False, comment="[{role, content, timestamp}]"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "conversation_type", name="uq_user_conversation_type"),
    )


class UserWorkoutPlan(Base):
    """Current AI-generated workout plan - one row per user"""

    __tablename__ = "user_workout_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    plan_data: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class WorkoutPlanQueue(Base):
    """Workout plan generation request, processed FIFO by the scheduler"""

    __tablename__ = "workout_plan_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=QueueStatus.PENDING.value, nullable=False, index=True
    )
    request_data: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False)
    position_in_queue: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<WorkoutPlanQueue(id={self.id}, user_id={self.user_id}, status={self.status})>"
