"""Fixed-point unit helpers.

All on-ledger amounts are integers scaled by ``10**decimals``; these helpers
convert human-readable token amounts without going through floats.
"""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

from .errors import InvalidAmount

ZERO_ADDRESS = "0x" + "0" * 40

# Enough digits for any uint256 amount
_PRECISION = 100


def parse_units(value: Union[int, str, Decimal], decimals: int) -> int:
    """
    Convert a token amount to its integer base-unit representation.

    Formula: units = value * 10^decimals (must be exact)

    Args:
        value: Whole or fractional token amount ("0.5", 50, Decimal("1.25"))
        decimals: Ledger decimals

    Returns:
        Integer amount in base units

    Raises:
        InvalidAmount: If the value is negative, malformed, or has more
            fractional digits than ``decimals`` allows
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmount(f"refusing inexact amount {value!r}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        try:
            scaled = Decimal(value).scaleb(decimals)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidAmount(f"malformed amount {value!r}")

    if not scaled.is_finite() or scaled != scaled.to_integral_value() or scaled < 0:
        raise InvalidAmount(f"amount {value!r} not representable with {decimals} decimals")
    return int(scaled)


def format_units(amount: int, decimals: int) -> str:
    """Render a base-unit integer as a decimal token string."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        text = format(Decimal(amount).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def require_amount(amount: int) -> int:
    """Reject anything that is not a non-negative plain integer."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidAmount()
    return amount
