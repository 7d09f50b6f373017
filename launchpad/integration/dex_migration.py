"""
DEX migration collaborator.

Once a pool has migrated, its reserve and a price-matched token amount are
handed to an external DEX. The launchpad only needs an address to pay into
and a `deposit_liquidity` call that returns a reference to the new DEX pool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol

from ..state.balances import Address, Amount, AssetId
from ..state.canonical import derive_id


class DexMigrator(Protocol):
    @property
    def address(self) -> Address: ...

    def deposit_liquidity(self, asset: AssetId, reserve_amount: Amount, token_amount: Amount) -> str: ...


@dataclass(frozen=True)
class LiquidityDeposit:
    asset: AssetId
    reserve_amount: Amount
    token_amount: Amount
    dex_pool_reference: str


@dataclass
class RecordingDexMigrator:
    """In-memory migrator: records deposits and returns deterministic references."""

    address: Address = "dex:recording"
    deposits: List[LiquidityDeposit] = field(default_factory=list)

    def deposit_liquidity(self, asset: AssetId, reserve_amount: Amount, token_amount: Amount) -> str:
        ref = derive_id(
            "dex_pool",
            {"dex": self.address, "asset": asset, "reserve": reserve_amount, "tokens": token_amount},
        )
        self.deposits.append(LiquidityDeposit(asset, reserve_amount, token_amount, ref))
        return ref
