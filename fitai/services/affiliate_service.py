# coding: utf-8
"""
Affiliate Service

Affiliate accounts, referral tracking, commissions and withdrawals.

Flow:
1. Visitor arrives with ?ref=CODE, code is staged on the user row
2. process_staged_referral() turns it into a pending referral
3. First paid subscription converts the referral and creates a commission
4. Affiliate requests a withdrawal to their PIX key, admin processes it
"""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional, List, Dict, Any, Tuple

from loguru import logger
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from config.affiliate_config import (
    AFFILIATE_CODE_LENGTH,
    DEFAULT_COMMISSION_RATE,
    MIN_WITHDRAWAL_AMOUNT,
    calculate_commission,
)
from fitai.database.crud import generate_affiliate_code
from fitai.database.models import (
    Affiliate,
    AffiliateStatus,
    AffiliateWithdrawal,
    Commission,
    CommissionStatus,
    Referral,
    ReferralStatus,
    Subscription,
    User,
    WithdrawalStatus,
)
from fitai.utils.time_utils import isoformat


def _money(value: Optional[Decimal]) -> float:
    return float(value or 0)


def serialize_affiliate(affiliate: Affiliate) -> Dict[str, Any]:
    return {
        "id": affiliate.id,
        "user_id": affiliate.user_id,
        "affiliate_code": affiliate.affiliate_code,
        "status": affiliate.status,
        "commission_rate": _money(affiliate.commission_rate),
        "total_earnings": _money(affiliate.total_earnings),
        "total_referrals": affiliate.total_referrals,
        "pix_key": affiliate.pix_key,
        "created_at": isoformat(affiliate.created_at),
    }


def serialize_withdrawal(withdrawal: AffiliateWithdrawal) -> Dict[str, Any]:
    return {
        "id": withdrawal.id,
        "affiliate_id": withdrawal.affiliate_id,
        "amount": _money(withdrawal.amount),
        "pix_key": withdrawal.pix_key,
        "status": withdrawal.status,
        "requested_at": isoformat(withdrawal.created_at),
        "processed_at": isoformat(withdrawal.processed_at),
    }


class AffiliateService:
    """Service for the affiliate program"""

    # ===========================
    # AFFILIATE ACCOUNT
    # ===========================

    @staticmethod
    async def get_affiliate_by_user(session: AsyncSession, user_id: int) -> Optional[Affiliate]:
        stmt = select(Affiliate).where(Affiliate.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_affiliate_by_code(session: AsyncSession, code: str) -> Optional[Affiliate]:
        stmt = select(Affiliate).where(Affiliate.affiliate_code == code.strip().upper())
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_affiliate(session: AsyncSession, user: User) -> Affiliate:
        """
        Register user as affiliate (idempotent)

        Args:
            session: Database session
            user: User to register

        Returns:
            New or existing Affiliate
        """
        existing = await AffiliateService.get_affiliate_by_user(session, user.id)
        if existing:
            return existing

        affiliate = Affiliate(
            user_id=user.id,
            affiliate_code=await generate_affiliate_code(session, AFFILIATE_CODE_LENGTH),
            status=AffiliateStatus.ACTIVE.value,
            commission_rate=DEFAULT_COMMISSION_RATE,
            total_earnings=Decimal("0.00"),
            total_referrals=0,
        )
        session.add(affiliate)
        await session.commit()
        await session.refresh(affiliate)

        logger.info(f"Affiliate created for user {user.id}: {affiliate.affiliate_code}")
        return affiliate

    @staticmethod
    async def update_pix_key(session: AsyncSession, user_id: int, pix_key: str) -> Optional[Affiliate]:
        affiliate = await AffiliateService.get_affiliate_by_user(session, user_id)
        if not affiliate:
            return None

        affiliate.pix_key = pix_key.strip()
        await session.commit()
        await session.refresh(affiliate)
        logger.info(f"Affiliate {affiliate.id} updated PIX key")
        return affiliate

    @staticmethod
    async def get_available_balance(session: AsyncSession, affiliate: Affiliate) -> Decimal:
        """
        Earnings not yet withdrawn or reserved by a pending withdrawal
        """
        stmt = (
            select(func.coalesce(func.sum(AffiliateWithdrawal.amount), 0))
            .where(AffiliateWithdrawal.affiliate_id == affiliate.id)
            .where(AffiliateWithdrawal.status.in_([
                WithdrawalStatus.PENDING.value,
                WithdrawalStatus.COMPLETED.value,
            ]))
        )
        withdrawn = Decimal(str((await session.execute(stmt)).scalar() or 0))
        return (Decimal(affiliate.total_earnings or 0) - withdrawn).quantize(Decimal("0.01"))

    @staticmethod
    async def get_dashboard(session: AsyncSession, user_id: int) -> Optional[Dict[str, Any]]:
        """
        Affiliate dashboard

        Returns:
            {affiliate, referrals, commissions, withdrawals, totals} or None
        """
        affiliate = await AffiliateService.get_affiliate_by_user(session, user_id)
        if not affiliate:
            return None

        referral_rows = (await session.execute(
            select(Referral, User)
            .join(User, User.id == Referral.referred_user_id)
            .where(Referral.affiliate_id == affiliate.id)
            .order_by(Referral.created_at.desc())
        )).all()

        commissions = (await session.execute(
            select(Commission)
            .where(Commission.affiliate_id == affiliate.id)
            .order_by(Commission.created_at.desc())
        )).scalars().all()

        withdrawals = (await session.execute(
            select(AffiliateWithdrawal)
            .where(AffiliateWithdrawal.affiliate_id == affiliate.id)
            .order_by(AffiliateWithdrawal.created_at.desc())
        )).scalars().all()

        converted = sum(1 for referral, _ in referral_rows if referral.status == ReferralStatus.CONVERTED.value)
        pending_commissions = sum(
            (c.amount for c in commissions if c.status == CommissionStatus.PENDING.value),
            Decimal("0"),
        )
        paid_commissions = sum(
            (c.amount for c in commissions if c.status == CommissionStatus.PAID.value),
            Decimal("0"),
        )
        total_referrals = len(referral_rows)

        return {
            "affiliate": serialize_affiliate(affiliate),
            "referrals": [
                {
                    "id": referral.id,
                    "referred_user_id": referral.referred_user_id,
                    "referred_name": referred.full_name,
                    "status": referral.status,
                    "conversion_date": isoformat(referral.conversion_date),
                    "created_at": isoformat(referral.created_at),
                }
                for referral, referred in referral_rows
            ],
            "commissions": [
                {
                    "id": c.id,
                    "referral_id": c.referral_id,
                    "subscription_id": c.subscription_id,
                    "amount": _money(c.amount),
                    "commission_rate": _money(c.commission_rate),
                    "status": c.status,
                    "payment_date": isoformat(c.payment_date),
                    "created_at": isoformat(c.created_at),
                }
                for c in commissions
            ],
            "withdrawals": [serialize_withdrawal(w) for w in withdrawals],
            "totals": {
                "total_referrals": total_referrals,
                "converted_referrals": converted,
                "conversion_rate": round(converted / total_referrals * 100, 1) if total_referrals else 0.0,
                "total_earnings": _money(affiliate.total_earnings),
                "pending_commissions": _money(pending_commissions),
                "paid_commissions": _money(paid_commissions),
                "available_balance": _money(await AffiliateService.get_available_balance(session, affiliate)),
            },
        }

    # ===========================
    # REFERRALS
    # ===========================

    @staticmethod
    async def get_referral_for_user(session: AsyncSession, user_id: int) -> Optional[Referral]:
        stmt = select(Referral).where(Referral.referred_user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def stage_referral_code(
        session: AsyncSession, user: User, code: str
    ) -> Optional[Referral]:
        """
        Store referral code on the user, then try to process it

        Args:
            session: Database session
            user: Referred user
            code: Affiliate code from the ?ref= link

        Returns:
            Referral if one exists for the user after processing
        """
        code = (code or "").strip().upper()
        if not code:
            return None

        if not await AffiliateService.get_referral_for_user(session, user.id):
            user.pending_referral_code = code
            await session.commit()
            logger.info(f"Referral code {code} staged for user {user.id}")

        return await AffiliateService.process_staged_referral(session, user)

    @staticmethod
    async def process_staged_referral(session: AsyncSession, user: User) -> Optional[Referral]:
        """
        Turn the staged referral code into a pending referral

        The staged code is cleared once a referral row exists for the user.
        Unknown codes and inactive affiliates leave it in place;
        self-referral clears it.

        Args:
            session: Database session
            user: Referred user

        Returns:
            Referral for the user, or None
        """
        existing = await AffiliateService.get_referral_for_user(session, user.id)
        if existing:
            if user.pending_referral_code:
                user.pending_referral_code = None
                await session.commit()
            return existing

        code = user.pending_referral_code
        if not code:
            return None

        affiliate = await AffiliateService.get_affiliate_by_code(session, code)
        if not affiliate or affiliate.status != AffiliateStatus.ACTIVE.value:
            logger.info(f"Referral code {code} for user {user.id} not usable (unknown or inactive affiliate)")
            return None

        if affiliate.user_id == user.id:
            logger.warning(f"Self-referral blocked: user {user.id} used own code {code}")
            user.pending_referral_code = None
            await session.commit()
            return None

        try:
            referral = Referral(
                affiliate_id=affiliate.id,
                referred_user_id=user.id,
                referral_code=affiliate.affiliate_code,
                status=ReferralStatus.PENDING.value,
            )
            session.add(referral)
            affiliate.total_referrals = (affiliate.total_referrals or 0) + 1
            user.pending_referral_code = None

            await session.commit()
            await session.refresh(referral)

        except Exception as e:
            logger.error(f"Error creating referral for user {user.id}: {e}")
            await session.rollback()
            return None

        logger.info(f"Referral created: affiliate {affiliate.id} -> user {user.id} ({affiliate.affiliate_code})")
        return referral

    @staticmethod
    async def process_referral_conversion(
        session: AsyncSession, referred_user_id: int, subscription: Subscription
    ) -> Optional[Commission]:
        """
        Convert pending referral and credit the affiliate

        Idempotent per subscription.

        Args:
            session: Database session
            referred_user_id: Paying user
            subscription: Paid subscription

        Returns:
            Created Commission, or None if nothing to convert
        """
        try:
            stmt = select(Commission).where(Commission.subscription_id == subscription.id)
            if (await session.execute(stmt)).scalar_one_or_none():
                return None

            referral = await AffiliateService.get_referral_for_user(session, referred_user_id)
            if not referral or referral.status != ReferralStatus.PENDING.value:
                return None

            affiliate = await session.get(Affiliate, referral.affiliate_id)
            if not affiliate:
                return None

            rate = affiliate.commission_rate or DEFAULT_COMMISSION_RATE
            amount = calculate_commission(subscription.amount, rate)

            referral.status = ReferralStatus.CONVERTED.value
            referral.conversion_date = datetime.now(UTC)

            commission = Commission(
                affiliate_id=affiliate.id,
                referral_id=referral.id,
                subscription_id=subscription.id,
                amount=amount,
                commission_rate=rate,
                status=CommissionStatus.PENDING.value,
            )
            session.add(commission)
            affiliate.total_earnings = Decimal(affiliate.total_earnings or 0) + amount

            await session.commit()
            await session.refresh(commission)

        except Exception as e:
            logger.error(f"Error processing referral conversion for user {referred_user_id}: {e}")
            await session.rollback()
            return None

        logger.info(
            f"Referral {referral.id} converted: affiliate {affiliate.id} earned R$ {amount} "
            f"(subscription {subscription.id})"
        )
        return commission

    # ===========================
    # WITHDRAWALS
    # ===========================

    @staticmethod
    async def request_withdrawal(
        session: AsyncSession, user_id: int, amount: Decimal
    ) -> Tuple[Optional[AffiliateWithdrawal], str]:
        """
        Request payout to the affiliate's PIX key

        Returns:
            Tuple of (AffiliateWithdrawal or None, status code: ok, not_affiliate,
            missing_pix_key, below_minimum, insufficient_balance)
        """
        affiliate = await AffiliateService.get_affiliate_by_user(session, user_id)
        if not affiliate:
            return None, "not_affiliate"
        if not affiliate.pix_key:
            return None, "missing_pix_key"

        amount = Decimal(str(amount)).quantize(Decimal("0.01"))
        if amount <= 0 or amount < MIN_WITHDRAWAL_AMOUNT:
            return None, "below_minimum"

        available = await AffiliateService.get_available_balance(session, affiliate)
        if amount > available:
            return None, "insufficient_balance"

        withdrawal = AffiliateWithdrawal(
            affiliate_id=affiliate.id,
            amount=amount,
            pix_key=affiliate.pix_key,
            status=WithdrawalStatus.PENDING.value,
        )
        session.add(withdrawal)
        await session.commit()
        await session.refresh(withdrawal)

        logger.info(f"Withdrawal {withdrawal.id} requested: affiliate {affiliate.id}, R$ {amount}")
        return withdrawal, "ok"

    @staticmethod
    async def list_withdrawals(
        session: AsyncSession, status: Optional[str] = None
    ) -> List[AffiliateWithdrawal]:
        stmt = select(AffiliateWithdrawal).order_by(AffiliateWithdrawal.created_at.asc())
        if status:
            stmt = stmt.where(AffiliateWithdrawal.status == status)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def process_withdrawal(
        session: AsyncSession, withdrawal_id: int, approve: bool
    ) -> Tuple[Optional[AffiliateWithdrawal], str]:
        """
        Approve or reject a pending withdrawal (admin)

        Approval marks pending commissions as paid, oldest first,
        up to the withdrawn amount.

        Returns:
            Tuple of (AffiliateWithdrawal or None, status code: ok, not_found,
            already_processed)
        """
        withdrawal = await session.get(AffiliateWithdrawal, withdrawal_id)
        if not withdrawal:
            return None, "not_found"
        if withdrawal.status != WithdrawalStatus.PENDING.value:
            return None, "already_processed"

        now = datetime.now(UTC)
        withdrawal.processed_at = now

        if approve:
            withdrawal.status = WithdrawalStatus.COMPLETED.value

            commissions = (await session.execute(
                select(Commission)
                .where(Commission.affiliate_id == withdrawal.affiliate_id)
                .where(Commission.status == CommissionStatus.PENDING.value)
                .order_by(Commission.created_at.asc(), Commission.id.asc())
            )).scalars().all()

            remaining = Decimal(withdrawal.amount)
            for commission in commissions:
                if commission.amount > remaining:
                    break
                commission.status = CommissionStatus.PAID.value
                commission.payment_date = now
                remaining -= commission.amount
        else:
            withdrawal.status = WithdrawalStatus.REJECTED.value

        await session.commit()
        await session.refresh(withdrawal)

        logger.info(f"Withdrawal {withdrawal.id} {withdrawal.status} (R$ {withdrawal.amount})")
        return withdrawal, "ok"

    @staticmethod
    async def count_affiliates(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Affiliate.id)))
        return result.scalar() or 0
