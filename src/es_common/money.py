"""Paise arithmetic. Every balance, fee and prize is an int number of paise."""

BPS_DENOMINATOR = 10_000


def ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def calculate_fee(amount: int, fee_rate_bps: int) -> int:
    """Platform cut of `amount`, rounded up so the platform is never short a paisa."""
    if amount <= 0 or fee_rate_bps <= 0:
        return 0
    return ceil_div(amount * fee_rate_bps, BPS_DENOMINATOR)


def paise_to_display(paise: int) -> str:
    """150000 -> '₹1,500.00', -1200 -> '-₹12.00'."""
    sign = "-" if paise < 0 else ""
    rupees, rem = divmod(abs(paise), 100)
    return f"{sign}₹{rupees:,}.{rem:02d}"
