"""
State management for the launchpad: ledger, pools, registry, liquidity accounting
"""

from .balances import BalanceTable, InMemoryLedger, IssuanceCapability, NATIVE_ASSET
from .pools import CurveState, Pool, PoolMetadata, PoolSettings, PoolStatus
from .registry import PoolRegistry
from .liquidity import LiquidityAccounting, LiquidityTotals

__all__ = [
    "BalanceTable",
    "InMemoryLedger",
    "IssuanceCapability",
    "NATIVE_ASSET",
    "CurveState",
    "Pool",
    "PoolMetadata",
    "PoolSettings",
    "PoolStatus",
    "PoolRegistry",
    "LiquidityAccounting",
    "LiquidityTotals",
]
