"""
Bonding-curve pricing (Bancor formula) with deterministic integer rounding.

All values are plain Python ints; fractional quantities are fixed-point,
scaled by PRECISION (1e8). Every function is pure and bit-reproducible for
identical integer inputs.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Purchase: tokens = S * ((1 + D/R) ** (CRR/100) - 1)
- Sale:     payout = R * (1 - (1 - A/S) ** (100/CRR))
- Rounding: always in favour of the pool (tokens and payouts round down)

Fractional powers are exact: `power_fraction` computes
floor(PRECISION * (base/PRECISION) ** (n/d)) with an integer d-th root over
big integers, so a buy followed by selling the received tokens back can never
return more than was deposited.
"""

from __future__ import annotations

import math

from .errors import InsufficientSupply, ValidationError

PRECISION: int = 100_000_000  # 1e8
RATIO_DENOM: int = 100
MIN_RESERVE_RATIO: int = 1
MAX_RESERVE_RATIO: int = 100


def _require_uint(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationError(f"{name} must be a non-negative int, got {value!r}")


def require_reserve_ratio(reserve_ratio: int) -> None:
    """Reject ratios outside [1, 100]."""
    if not isinstance(reserve_ratio, int) or isinstance(reserve_ratio, bool):
        raise ValidationError(f"reserve_ratio must be an int, got {reserve_ratio!r}")
    if not (MIN_RESERVE_RATIO <= reserve_ratio <= MAX_RESERVE_RATIO):
        raise ValidationError(
            f"reserve_ratio must be in [{MIN_RESERVE_RATIO}, {MAX_RESERVE_RATIO}]: {reserve_ratio}"
        )


def _iroot(value: int, k: int) -> int:
    """floor(value ** (1/k)) for value >= 0, k >= 1 (integer Newton iteration)."""
    if value < 2 or k == 1:
        return value
    # Start above the true root; the iteration then decreases monotonically to the floor.
    x = 1 << -(-value.bit_length() // k)
    while True:
        y = ((k - 1) * x + value // x ** (k - 1)) // k
        if y >= x:
            return x
        x = y


def power(base: int, exp: int) -> int:
    """
    PRECISION-scaled `base ** exp` by binary exponentiation.

    Each multiply is rescaled with floor division, so the result can sit a few
    ulps below the exact value for large exponents.
    """
    _require_uint("base", base)
    _require_uint("exp", exp)
    result = PRECISION
    while exp > 0:
        if exp & 1:
            result = (result * base) // PRECISION
        base = (base * base) // PRECISION
        exp >>= 1
    return result


def power_fraction(base: int, numerator: int, denominator: int, *, round_up: bool = False) -> int:
    """
    PRECISION-scaled `base ** (numerator/denominator)`.

    Returns the largest x with (x/P) ** d <= (base/P) ** n, i.e. the exact
    floor; with `round_up=True` the exact ceiling instead.
    """
    _require_uint("base", base)
    _require_uint("numerator", numerator)
    if not isinstance(denominator, int) or isinstance(denominator, bool) or denominator <= 0:
        raise ValidationError(f"denominator must be a positive int, got {denominator!r}")

    if numerator == 0:
        return PRECISION
    if base == 0:
        return 0

    g = math.gcd(numerator, denominator)
    n = numerator // g
    d = denominator // g

    # x ** d * P ** n <= base ** n * P ** d
    lhs_scale = PRECISION ** n
    rhs = base ** n * PRECISION ** d
    x = _iroot(rhs // lhs_scale, d)
    if round_up and x ** d * lhs_scale != rhs:
        x += 1
    return x


def calculate_purchase_return(
    supply: int,
    reserve_balance: int,
    reserve_ratio: int,
    deposit: int,
) -> int:
    """
    Tokens minted for a net `deposit` of reserve asset.

    Bootstrap rule: an empty curve (no supply or no reserve) mints
    `deposit * reserve_ratio // 100` tokens exactly.

    Raises:
        ValidationError: On negative/non-int inputs or an out-of-range ratio
    """
    _require_uint("supply", supply)
    _require_uint("reserve_balance", reserve_balance)
    _require_uint("deposit", deposit)
    require_reserve_ratio(reserve_ratio)

    if deposit == 0:
        return 0
    if supply == 0 or reserve_balance == 0:
        return (deposit * reserve_ratio) // RATIO_DENOM

    base = PRECISION + (deposit * PRECISION) // reserve_balance
    powered = power_fraction(base, reserve_ratio, RATIO_DENOM)
    if powered <= PRECISION:
        return 0
    return (supply * (powered - PRECISION)) // PRECISION


def calculate_sale_return(
    supply: int,
    reserve_balance: int,
    reserve_ratio: int,
    sell_amount: int,
) -> int:
    """
    Gross reserve asset released for burning `sell_amount` tokens.

    The fractional power is rounded up so the payout rounds down.

    Raises:
        InsufficientSupply: If `sell_amount > supply`
        ValidationError: On negative/non-int inputs or an out-of-range ratio
    """
    _require_uint("supply", supply)
    _require_uint("reserve_balance", reserve_balance)
    _require_uint("sell_amount", sell_amount)
    require_reserve_ratio(reserve_ratio)

    if sell_amount > supply:
        raise InsufficientSupply(f"sell_amount ({sell_amount}) > supply ({supply})")
    if sell_amount == 0 or supply == 0:
        return 0

    base = PRECISION - (sell_amount * PRECISION) // supply
    powered = power_fraction(base, RATIO_DENOM, reserve_ratio, round_up=True)
    if powered >= PRECISION:
        return 0
    return (reserve_balance * (PRECISION - powered)) // PRECISION


def calculate_current_price(supply: int, reserve_balance: int, reserve_ratio: int) -> int:
    """Spot price in reserve base units per token base unit, scaled by PRECISION."""
    _require_uint("supply", supply)
    _require_uint("reserve_balance", reserve_balance)
    require_reserve_ratio(reserve_ratio)
    if supply == 0:
        return 0
    return (reserve_balance * PRECISION * RATIO_DENOM) // (supply * reserve_ratio)
