"""Integer-cent arithmetic helpers"""

from decimal import Decimal, ROUND_HALF_UP

from hockey_gateway.domain.exceptions import InvalidArgumentError


def require_cents(value: int, name: str) -> int:
    """Reject anything that is not a non-negative integer amount"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer number of cents, got {value!r}")
    if value < 0:
        raise InvalidArgumentError(f"{name} must be non-negative, got {value}")
    return value


def round_half_up(value: Decimal) -> int:
    """Round to the nearest whole cent, halves away from zero (0.5 -> 1)"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage_of(amount_cents: int, percentage: Decimal) -> int:
    """Percentage of an amount rounded half up: 10% of 1 -> 0, 50% of 1 -> 1"""
    return round_half_up(Decimal(amount_cents) * Decimal(percentage) / Decimal(100))


def format_cents(amount_cents: int, symbol: str = "$") -> str:
    """Render cents for user-facing messages, e.g. 1000 -> $10.00"""
    return f"{symbol}{Decimal(amount_cents) / Decimal(100):.2f}"
