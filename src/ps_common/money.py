"""Integer money arithmetic.

All prices, revenue and expense figures are int paise (1/100 rupee). No
float. Ratios are expressed in basis points (10000 bps = 100%).
"""

BPS_DENOMINATOR = 10000


def validate_bps(bps: int) -> None:
    """Validate a ratio in basis points is within [0, 10000]."""
    if not (0 <= bps <= BPS_DENOMINATOR):
        raise ValueError(f"Ratio must be between 0 and {BPS_DENOMINATOR} bps, got {bps}")


def apply_bps(amount: int, bps: int) -> int:
    """Share of amount at rate bps, floored.

    Callers derive the complementary share as ``amount - apply_bps(...)`` so
    the two parts always add back up to amount.
    """
    if amount == 0 or bps == 0:
        return 0
    return amount * bps // BPS_DENOMINATOR


def cents_to_display(cents: int) -> str:
    """Convert paise to display string: 1250 -> '₹12.50', -1200 -> '-₹12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-₹{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"₹{cents // 100:,}.{cents % 100:02d}"
