"""
Reserve-asset flow accounting across all pools.

Totals are monotonic: `collected` grows with net buy deposits, `paid_out`
with net sell payouts. `available = collected - paid_out` must never go
negative, globally or for any single pool.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict

from .balances import Amount


@dataclass(frozen=True)
class LiquidityTotals:
    total_collected: Amount = 0
    total_paid_out: Amount = 0

    @property
    def available(self) -> Amount:
        return self.total_collected - self.total_paid_out


class LiquidityAccounting:
    def __init__(self) -> None:
        self._global = LiquidityTotals()
        self._per_pool: Dict[str, LiquidityTotals] = {}
        self._lock = threading.Lock()

    def record_collected(self, pool_id: str, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"collected amount must be non-negative: {amount}")
        with self._lock:
            pool = self._per_pool.get(pool_id, LiquidityTotals())
            self._per_pool[pool_id] = LiquidityTotals(pool.total_collected + amount, pool.total_paid_out)
            self._global = LiquidityTotals(
                self._global.total_collected + amount, self._global.total_paid_out
            )

    def record_paid_out(self, pool_id: str, amount: Amount) -> None:
        """
        Raises:
            ValueError: If the payout would exceed what the pool has collected
        """
        if amount < 0:
            raise ValueError(f"paid-out amount must be non-negative: {amount}")
        with self._lock:
            pool = self._per_pool.get(pool_id, LiquidityTotals())
            if pool.available < amount:
                raise ValueError(
                    f"payout {amount} exceeds available liquidity {pool.available} for pool {pool_id}"
                )
            self._per_pool[pool_id] = LiquidityTotals(pool.total_collected, pool.total_paid_out + amount)
            self._global = LiquidityTotals(
                self._global.total_collected, self._global.total_paid_out + amount
            )

    def totals(self) -> LiquidityTotals:
        return self._global

    def for_pool(self, pool_id: str) -> LiquidityTotals:
        return self._per_pool.get(pool_id, LiquidityTotals())

    def verify_non_negative(self) -> bool:
        with self._lock:
            return self._global.available >= 0 and all(t.available >= 0 for t in self._per_pool.values())

    def __repr__(self) -> str:
        g = self._global
        return f"LiquidityAccounting(collected={g.total_collected}, paid_out={g.total_paid_out})"
