"""
Market-cap tracking and the migration state transition.

    Active -> (buy | sell)* -> ThresholdReached | ForcedMigration -> Migrated

`Migrated` is terminal: `curve.is_active` flips to False once and never back.
The DEX deposit itself is performed by an external collaborator; this module
only decides *when* and computes the liquidity to hand over.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..state.balances import Amount
from ..state.pools import Pool
from .errors import TradingDisabled
from .oracle import OracleState
from .pricing import PRECISION, RATIO_DENOM, calculate_current_price

# Base units per whole reserve-asset coin (8 decimals).
RESERVE_UNIT: int = 100_000_000


def market_cap_cents(
    supply: Amount,
    reserve_balance: Amount,
    reserve_ratio: int,
    price_usd_cents: int,
    reserve_unit: int = RESERVE_UNIT,
) -> int:
    """
    USD market cap in cents:
        supply * spot_price / PRECISION      -> reserve base units
        * price_usd_cents / reserve_unit     -> USD cents
    """
    price = calculate_current_price(supply, reserve_balance, reserve_ratio)
    return (supply * price * price_usd_cents) // (PRECISION * reserve_unit)


def pool_market_cap_cents(pool: Pool, supply: Amount, oracle: OracleState, reserve_unit: int = RESERVE_UNIT) -> int:
    return market_cap_cents(
        supply,
        pool.curve.reserve_balance,
        pool.curve.reserve_ratio,
        oracle.price_usd_cents,
        reserve_unit,
    )


def threshold_reached(pool: Pool, supply: Amount, oracle: OracleState, reserve_unit: int = RESERVE_UNIT) -> bool:
    return pool_market_cap_cents(pool, supply, oracle, reserve_unit) >= pool.settings.market_cap_threshold_cents


def evaluate_migration(
    pool: Pool,
    *,
    supply: Amount,
    oracle: OracleState,
    now: int,
    reserve_unit: int = RESERVE_UNIT,
) -> Optional[Pool]:
    """Return the migrated pool if an active pool has crossed its threshold, else None."""
    if not pool.curve.is_active:
        return None
    if not threshold_reached(pool, supply, oracle, reserve_unit):
        return None
    return pool.migrated(now)


def force_migration(pool: Pool, *, now: int) -> Pool:
    """Unconditional transition; an already-migrated pool is rejected."""
    if not pool.curve.is_active:
        raise TradingDisabled(f"pool {pool.pool_id} has already migrated")
    return pool.migrated(now)


def migration_liquidity(pool: Pool, supply: Amount) -> Tuple[Amount, Amount]:
    """
    (reserve_amount, token_amount) to seed the DEX pair at the curve's spot price.

    An empty curve has no spot price; the bootstrap rate (ratio/100 tokens per
    reserve unit) is used instead.

    With a `max_supply`, the token amount is clamped to the remaining headroom
    and the reserve scaled down in proportion; the remainder stays in custody.
    """
    reserve = pool.curve.reserve_balance
    price = calculate_current_price(supply, reserve, pool.curve.reserve_ratio)
    if price == 0:
        tokens = (reserve * pool.curve.reserve_ratio) // RATIO_DENOM
    else:
        tokens = (reserve * PRECISION) // price

    max_supply = pool.metadata.max_supply
    if max_supply is not None:
        headroom = max(0, max_supply - supply)
        if tokens > headroom:
            reserve = (reserve * headroom) // tokens
            tokens = headroom
    return reserve, tokens
