"""Credit pricing rules

Top-up bounds, the tiered top-up bonus table and the low-balance severity
levels. Amounts are whole minor units of a zero-decimal currency.
"""

from typing import Optional

MIN_TOPUP = 100_000
MAX_TOPUP = 10_000_000

# (threshold, bonus percentage), highest threshold first
BONUS_TIERS = (
    (10_000_000, 25),
    (5_000_000, 20),
    (3_000_000, 15),
    (1_000_000, 10),
)

# (threshold, level), lowest threshold first: a balance at or below the
# threshold gets that level
LOW_BALANCE_LEVELS = (
    (100_000, "critical"),
    (500_000, "low"),
    (1_000_000, "moderate"),
)

TOPUP_PACKAGE_AMOUNTS = (100_000, 500_000, 1_000_000, 3_000_000, 5_000_000, 10_000_000)


def calculate_bonus(amount: int) -> tuple[int, int]:
    """
    Bonus credits granted for a top-up.

    Returns:
        Tuple of (bonus credits, bonus percentage); (0, 0) below the lowest tier
    """
    for threshold, percentage in BONUS_TIERS:
        if amount >= threshold:
            return amount * percentage // 100, percentage
    return 0, 0


def validate_topup_amount(
    amount, min_topup: int = MIN_TOPUP, max_topup: int = MAX_TOPUP
) -> Optional[str]:
    """Return an error message when ``amount`` is not an acceptable top-up, else None."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        return "Amount must be a whole number"
    if amount < min_topup:
        return f"Minimum top-up amount is {min_topup:,} VND"
    if amount > max_topup:
        return f"Maximum top-up amount is {max_topup:,} VND"
    return None


def get_low_balance_level(balance: int) -> Optional[str]:
    for threshold, level in LOW_BALANCE_LEVELS:
        if balance <= threshold:
            return level
    return None
