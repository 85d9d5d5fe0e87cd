# coding: utf-8
"""
Affiliate Program Configuration

Commission and withdrawal settings. Values can change without a migration:
each commission row stores the rate it was created with.
"""

from decimal import Decimal


# =======================
# COMMISSIONS
# =======================

DEFAULT_COMMISSION_RATE = Decimal("15.00")  # % of the subscription amount

# =======================
# CODES
# =======================

AFFILIATE_CODE_LENGTH = 8
PROMOTER_CODE_PREFIX = "PROMO"
PROMOTER_CODE_LENGTH = 6

# =======================
# WITHDRAWALS
# =======================

MIN_WITHDRAWAL_AMOUNT = Decimal("50.00")  # R$


def calculate_commission(amount: Decimal, rate: Decimal) -> Decimal:
    """
    Commission for a subscription payment

    Args:
        amount: Subscription amount (R$)
        rate: Commission rate in percent

    Returns:
        Commission amount rounded to cents
    """
    return (Decimal(amount) * Decimal(rate) / Decimal("100")).quantize(Decimal("0.01"))
