"""
Reserve-asset/USD price oracle state.

This module is intentionally small and pure:
- The functional core validates updates and answers freshness queries.
- The imperative shell (the launchpad service) decides who may update it.

Trades never write the oracle; it only feeds market-cap checks.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .errors import ValidationError


@dataclass(frozen=True)
class OracleState:
    """Last known reserve-asset price, in USD cents per whole reserve unit."""

    price_usd_cents: int
    last_update_timestamp: int
    source_address: str
    max_staleness_seconds: int = 300

    def __post_init__(self) -> None:
        if not isinstance(self.price_usd_cents, int) or isinstance(self.price_usd_cents, bool):
            raise ValidationError("price_usd_cents must be an int")
        if self.price_usd_cents <= 0:
            raise ValidationError(f"price_usd_cents must be positive: {self.price_usd_cents}")
        if self.last_update_timestamp < 0:
            raise ValidationError(
                f"last_update_timestamp must be non-negative: {self.last_update_timestamp}"
            )
        if self.max_staleness_seconds <= 0:
            raise ValidationError(
                f"max_staleness_seconds must be positive: {self.max_staleness_seconds}"
            )


def init_oracle_state(
    price_usd_cents: int,
    source_address: str,
    *,
    timestamp: int = 0,
    max_staleness_seconds: int = 300,
) -> OracleState:
    return OracleState(
        price_usd_cents=price_usd_cents,
        last_update_timestamp=timestamp,
        source_address=source_address,
        max_staleness_seconds=max_staleness_seconds,
    )


def update_price(
    state: OracleState,
    price_usd_cents: int,
    source_address: str,
    current_timestamp: int,
) -> OracleState:
    """Record a new price observation."""
    if current_timestamp < 0:
        raise ValidationError(f"current_timestamp must be non-negative: {current_timestamp}")
    if not isinstance(source_address, str) or not source_address:
        raise ValidationError("source_address must be a non-empty string")
    return replace(
        state,
        price_usd_cents=price_usd_cents,
        source_address=source_address,
        last_update_timestamp=current_timestamp,
    )


def is_fresh(state: OracleState, current_timestamp: int) -> bool:
    """Return True if the last update is within the max staleness window."""
    if current_timestamp < 0:
        raise ValidationError(f"current_timestamp must be non-negative: {current_timestamp}")
    if state.last_update_timestamp > current_timestamp:
        return False
    return (current_timestamp - state.last_update_timestamp) <= state.max_staleness_seconds
