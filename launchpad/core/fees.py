"""
Trading fee configuration (deterministic, integer-only).

Fees are quoted in basis points and always rounded down:
    fee = floor(amount * fee_bps / 10_000)
so a trader is never charged more than the advertised rate.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .errors import FeeTooHigh, ValidationError


BPS_DENOM = 10_000
MAX_FEE_BPS = 1_000  # 10%


def _check_fee_bps(name: str, v: int) -> None:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ValidationError(f"{name} must be an int")
    if v < 0:
        raise ValidationError(f"{name} must be non-negative: {v}")
    if v > MAX_FEE_BPS:
        raise FeeTooHigh(f"{name} must be <= {MAX_FEE_BPS}: {v}")


@dataclass(frozen=True)
class FeeConfig:
    """Global fee and authority settings. Replaced wholesale on every admin update."""

    admin: str
    treasury: str
    buy_fee_bps: int = 100
    sell_fee_bps: int = 100

    def __post_init__(self) -> None:
        for name, v in (("buy_fee_bps", self.buy_fee_bps), ("sell_fee_bps", self.sell_fee_bps)):
            _check_fee_bps(name, v)
        for name, addr in (("admin", self.admin), ("treasury", self.treasury)):
            if not isinstance(addr, str) or not addr:
                raise ValidationError(f"{name} must be a non-empty address string")


def compute_fee(amount: int, fee_bps: int) -> int:
    """floor(amount * fee_bps / 10_000)."""
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValidationError(f"amount must be a non-negative int, got {amount!r}")
    _check_fee_bps("fee_bps", fee_bps)
    return (amount * fee_bps) // BPS_DENOM


def with_fees(config: FeeConfig, buy_fee_bps: int, sell_fee_bps: int) -> FeeConfig:
    """Return a copy with new fees (validated; raises FeeTooHigh above MAX_FEE_BPS)."""
    return replace(config, buy_fee_bps=buy_fee_bps, sell_fee_bps=sell_fee_bps)
