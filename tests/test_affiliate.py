"""
Tests for the affiliate program
Referral staging, conversions, withdrawals and the affiliate endpoints
"""

import pytest
from decimal import Decimal

from config.affiliate_config import calculate_commission
from fitai.database.crud import create_subscription
from fitai.database.models import AffiliateStatus, CommissionStatus, ReferralStatus, WithdrawalStatus
from fitai.services.affiliate_service import AffiliateService

from tests.conftest import ADMIN_EMAIL, auth_headers


async def _affiliate(session, make_user, email="affiliate@example.com"):
    user = await make_user(email=email)
    affiliate = await AffiliateService.create_affiliate(session, user)
    return user, affiliate


async def _convert(session, buyer, payment_id, amount=Decimal("100.00")):
    subscription = await create_subscription(session, buyer.id, payment_id, amount)
    return await AffiliateService.process_referral_conversion(session, buyer.id, subscription)


# ============================================================================
# CODES & ACCOUNTS
# ============================================================================


def test_calculate_commission_rounds_to_cents():
    assert calculate_commission(Decimal("100.00"), Decimal("15.00")) == Decimal("15.00")
    assert calculate_commission(Decimal("33.33"), Decimal("10")) == Decimal("3.33")


@pytest.mark.asyncio
async def test_create_affiliate_is_idempotent(db_session, make_user):
    user, affiliate = await _affiliate(db_session, make_user)

    again = await AffiliateService.create_affiliate(db_session, user)

    assert again.id == affiliate.id
    assert len(affiliate.affiliate_code) == 8
    assert affiliate.affiliate_code.isupper() or affiliate.affiliate_code.isdigit()
    assert affiliate.status == AffiliateStatus.ACTIVE.value


# ============================================================================
# REFERRAL STAGING
# ============================================================================


@pytest.mark.asyncio
async def test_staged_code_is_linked_and_cleared(db_session, make_user):
    _, affiliate = await _affiliate(db_session, make_user)
    buyer = await make_user(email="buyer@example.com")

    referral = await AffiliateService.stage_referral_code(db_session, buyer, affiliate.affiliate_code.lower())

    assert referral is not None
    assert referral.status == ReferralStatus.PENDING.value
    assert buyer.pending_referral_code is None
    assert affiliate.total_referrals == 1


@pytest.mark.asyncio
async def test_unknown_code_stays_staged(db_session, make_user):
    buyer = await make_user(email="buyer@example.com")

    referral = await AffiliateService.stage_referral_code(db_session, buyer, "NOPE1234")

    assert referral is None
    assert buyer.pending_referral_code == "NOPE1234"


@pytest.mark.asyncio
async def test_code_staged_before_affiliate_exists_links_later(db_session, make_user):
    buyer = await make_user(email="buyer@example.com")
    await AffiliateService.stage_referral_code(db_session, buyer, "LATER123")

    affiliate_user = await make_user(email="affiliate@example.com")
    affiliate = await AffiliateService.create_affiliate(db_session, affiliate_user)
    affiliate.affiliate_code = "LATER123"
    await db_session.commit()

    referral = await AffiliateService.process_staged_referral(db_session, buyer)

    assert referral is not None
    assert referral.affiliate_id == affiliate.id


@pytest.mark.asyncio
async def test_inactive_affiliate_is_not_linked(db_session, make_user):
    _, affiliate = await _affiliate(db_session, make_user)
    affiliate.status = AffiliateStatus.SUSPENDED.value
    await db_session.commit()
    buyer = await make_user(email="buyer@example.com")

    referral = await AffiliateService.stage_referral_code(db_session, buyer, affiliate.affiliate_code)

    assert referral is None
    assert buyer.pending_referral_code == affiliate.affiliate_code


@pytest.mark.asyncio
async def test_self_referral_is_blocked(db_session, make_user):
    user, affiliate = await _affiliate(db_session, make_user)

    referral = await AffiliateService.stage_referral_code(db_session, user, affiliate.affiliate_code)

    assert referral is None
    assert user.pending_referral_code is None


@pytest.mark.asyncio
async def test_first_referral_wins(db_session, make_user):
    _, first = await _affiliate(db_session, make_user, email="first@example.com")
    _, second = await _affiliate(db_session, make_user, email="second@example.com")
    buyer = await make_user(email="buyer@example.com")

    await AffiliateService.stage_referral_code(db_session, buyer, first.affiliate_code)
    referral = await AffiliateService.stage_referral_code(db_session, buyer, second.affiliate_code)

    assert referral.affiliate_id == first.id
    assert buyer.pending_referral_code is None
    assert second.total_referrals == 0


# ============================================================================
# CONVERSIONS & WITHDRAWALS
# ============================================================================


@pytest.mark.asyncio
async def test_conversion_is_idempotent_per_subscription(db_session, make_user):
    _, affiliate = await _affiliate(db_session, make_user)
    buyer = await make_user(email="buyer@example.com")
    await AffiliateService.stage_referral_code(db_session, buyer, affiliate.affiliate_code)

    subscription = await create_subscription(db_session, buyer.id, "pay_1", Decimal("100.00"))
    commission = await AffiliateService.process_referral_conversion(db_session, buyer.id, subscription)
    duplicate = await AffiliateService.process_referral_conversion(db_session, buyer.id, subscription)

    assert commission.amount == Decimal("15.00")
    assert duplicate is None
    assert affiliate.total_earnings == Decimal("15.00")


@pytest.mark.asyncio
async def test_withdrawal_rules(db_session, make_user):
    user, affiliate = await _affiliate(db_session, make_user)

    assert (await AffiliateService.request_withdrawal(db_session, user.id, Decimal("60")))[1] == "missing_pix_key"
    await AffiliateService.update_pix_key(db_session, user.id, " pix@example.com ")

    assert (await AffiliateService.request_withdrawal(db_session, user.id, Decimal("10")))[1] == "below_minimum"
    assert (await AffiliateService.request_withdrawal(db_session, user.id, Decimal("60")))[1] == "insufficient_balance"

    stranger = await make_user(email="stranger@example.com")
    assert (await AffiliateService.request_withdrawal(db_session, stranger.id, Decimal("60")))[1] == "not_affiliate"


@pytest.mark.asyncio
async def test_approved_withdrawal_pays_commissions(db_session, make_user):
    user, affiliate = await _affiliate(db_session, make_user)
    await AffiliateService.update_pix_key(db_session, user.id, "pix@example.com")
    for i in range(4):
        buyer = await make_user(email=f"buyer{i}@example.com")
        await AffiliateService.stage_referral_code(db_session, buyer, affiliate.affiliate_code)
        await _convert(db_session, buyer, f"pay_{i}", amount=Decimal("100.00"))

    withdrawal, code = await AffiliateService.request_withdrawal(db_session, user.id, Decimal("50.00"))
    assert code == "ok"
    assert withdrawal.pix_key == "pix@example.com"
    assert await AffiliateService.get_available_balance(db_session, affiliate) == Decimal("10.00")

    processed, code = await AffiliateService.process_withdrawal(db_session, withdrawal.id, approve=True)
    assert processed.status == WithdrawalStatus.COMPLETED.value

    dashboard = await AffiliateService.get_dashboard(db_session, user.id)
    statuses = [c["status"] for c in dashboard["commissions"]]
    assert statuses.count(CommissionStatus.PAID.value) == 3
    assert dashboard["totals"]["conversion_rate"] == 100.0

    assert (await AffiliateService.process_withdrawal(db_session, withdrawal.id, approve=False))[1] == "already_processed"


@pytest.mark.asyncio
async def test_rejected_withdrawal_releases_balance(db_session, make_user):
    user, affiliate = await _affiliate(db_session, make_user)
    await AffiliateService.update_pix_key(db_session, user.id, "pix@example.com")
    affiliate.total_earnings = Decimal("80.00")
    await db_session.commit()

    withdrawal, _ = await AffiliateService.request_withdrawal(db_session, user.id, Decimal("80.00"))
    await AffiliateService.process_withdrawal(db_session, withdrawal.id, approve=False)

    assert await AffiliateService.get_available_balance(db_session, affiliate) == Decimal("80.00")


# ============================================================================
# API
# ============================================================================


@pytest.mark.asyncio
async def test_signup_with_referral_code(client, db_session, make_user):
    _, affiliate = await _affiliate(db_session, make_user)

    response = await client.post("/api/auth/signup", json={
        "email": "new@example.com",
        "password": "secret123",
        "full_name": "Novo",
        "referral_code": f" {affiliate.affiliate_code.lower()} ",
    })

    assert response.status_code == 200
    referral = await AffiliateService.get_referral_for_user(db_session, response.json()["user"]["id"])
    assert referral.affiliate_id == affiliate.id


@pytest.mark.asyncio
async def test_affiliate_endpoints(client, make_user):
    user = await make_user()
    headers = auth_headers(user)

    assert (await client.get("/api/affiliate/dashboard", headers=headers)).status_code == 404

    joined = await client.post("/api/affiliate", headers=headers)
    pix = await client.put("/api/affiliate/pix-key", headers=headers, json={"pix_key": "pix@example.com"})
    dashboard = await client.get("/api/affiliate/dashboard", headers=headers)
    withdrawal = await client.post("/api/affiliate/withdrawals", headers=headers, json={"amount": 60})

    assert joined.status_code == 200
    assert pix.json()["pix_key"] == "pix@example.com"
    assert dashboard.json()["totals"]["available_balance"] == 0.0
    assert withdrawal.status_code == 400


@pytest.mark.asyncio
async def test_track_referral_endpoint(client, db_session, make_user):
    buyer = await make_user(email="buyer@example.com")

    response = await client.post(
        "/api/affiliate/referrals/track", headers=auth_headers(buyer), json={"code": "abc12345"}
    )

    assert response.json() == {"linked": False, "pending_code": "ABC12345", "referral": None}


@pytest.mark.asyncio
async def test_admin_withdrawal_endpoints(client, db_session, make_user):
    user, affiliate = await _affiliate(db_session, make_user)
    await AffiliateService.update_pix_key(db_session, user.id, "pix@example.com")
    affiliate.total_earnings = Decimal("75.00")
    await db_session.commit()
    withdrawal, _ = await AffiliateService.request_withdrawal(db_session, user.id, Decimal("75.00"))
    admin = await make_user(email=ADMIN_EMAIL)

    denied = await client.get("/api/affiliate/admin/withdrawals", headers=auth_headers(user))
    listing = await client.get("/api/affiliate/admin/withdrawals?status=pending", headers=auth_headers(admin))
    processed = await client.post(
        f"/api/affiliate/admin/withdrawals/{withdrawal.id}",
        headers=auth_headers(admin),
        json={"approve": True},
    )

    assert denied.status_code == 403
    assert [w["id"] for w in listing.json()["withdrawals"]] == [withdrawal.id]
    assert processed.json()["status"] == WithdrawalStatus.COMPLETED.value
