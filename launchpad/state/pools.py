"""
Pool state for bonding-curve launches.

Pools are immutable snapshots: every trade or admin action builds a new
`Pool` with `dataclasses.replace` and the service swaps it in with a single
assignment.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from ..core.errors import ValidationError
from ..core.pricing import require_reserve_ratio
from .balances import Address, Amount, AssetId
from .canonical import derive_id


MIN_TICKER_LEN = 1
MAX_TICKER_LEN = 10
MAX_DECIMALS = 18


def _optional_str(name: str, value: Optional[str]) -> None:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{name} must be a string or None")


@dataclass(frozen=True)
class PoolMetadata:
    """Descriptive token data. Social links are optional."""

    name: str
    ticker: str
    image_uri: str = ""
    description: Optional[str] = None
    website: Optional[str] = None
    twitter: Optional[str] = None
    telegram: Optional[str] = None
    discord: Optional[str] = None
    decimals: int = 8
    max_supply: Optional[Amount] = None
    created_at: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("name must be a non-empty string")
        if not isinstance(self.ticker, str) or not (MIN_TICKER_LEN <= len(self.ticker) <= MAX_TICKER_LEN):
            raise ValidationError(
                f"ticker must be {MIN_TICKER_LEN}-{MAX_TICKER_LEN} characters: {self.ticker!r}"
            )
        if not isinstance(self.image_uri, str):
            raise ValidationError("image_uri must be a string")
        for name in ("description", "website", "twitter", "telegram", "discord"):
            _optional_str(name, getattr(self, name))
        if not isinstance(self.decimals, int) or isinstance(self.decimals, bool):
            raise ValidationError("decimals must be an int")
        if not (0 <= self.decimals <= MAX_DECIMALS):
            raise ValidationError(f"decimals must be in [0, {MAX_DECIMALS}]: {self.decimals}")
        if self.max_supply is not None and (
            not isinstance(self.max_supply, int) or isinstance(self.max_supply, bool) or self.max_supply <= 0
        ):
            raise ValidationError(f"max_supply must be a positive int: {self.max_supply!r}")


@dataclass(frozen=True)
class CurveState:
    """
    Bonding-curve state.

    Attributes:
        reserve_ratio: Connector weight in percent (1-100)
        reserve_balance: Reserve asset held in pool custody
        seed_reserve: Creator's initial deposit; sells never draw the reserve below it
        is_active: False once the pool has migrated (terminal)
    """

    reserve_ratio: int
    reserve_balance: Amount
    seed_reserve: Amount
    is_active: bool = True

    def __post_init__(self) -> None:
        require_reserve_ratio(self.reserve_ratio)
        if self.reserve_balance < 0:
            raise ValidationError(f"reserve_balance must be non-negative: {self.reserve_balance}")
        if self.seed_reserve < 0:
            raise ValidationError(f"seed_reserve must be non-negative: {self.seed_reserve}")

    @property
    def withdrawable(self) -> Amount:
        """Reserve that sells may release (everything above the seed)."""
        return max(0, self.reserve_balance - self.seed_reserve)


@dataclass(frozen=True)
class PoolSettings:
    market_cap_threshold_cents: int
    trading_enabled: bool = True
    migration_completed: bool = False
    migration_timestamp: Optional[int] = None
    dex_pool_reference: Optional[str] = None

    def __post_init__(self) -> None:
        t = self.market_cap_threshold_cents
        if not isinstance(t, int) or isinstance(t, bool) or t <= 0:
            raise ValidationError(f"market_cap_threshold_cents must be a positive int: {t!r}")


class PoolStatus(Enum):
    """Derived pool status."""
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    MIGRATED = "MIGRATED"


def compute_pool_id(creator: Address, ticker: str, sequence: int) -> str:
    """Deterministic pool id: sha256 over (creator, ticker, registry sequence)."""
    if not isinstance(sequence, int) or isinstance(sequence, bool) or sequence < 0:
        raise ValidationError(f"sequence must be a non-negative int: {sequence!r}")
    return derive_id("pool", {"creator": creator, "ticker": ticker, "sequence": sequence})


@dataclass(frozen=True)
class Pool:
    pool_id: str
    creator: Address
    token_asset: AssetId
    metadata: PoolMetadata
    curve: CurveState
    settings: PoolSettings

    @property
    def status(self) -> PoolStatus:
        if not self.curve.is_active:
            return PoolStatus.MIGRATED
        if not self.settings.trading_enabled:
            return PoolStatus.PAUSED
        return PoolStatus.ACTIVE

    @property
    def tradable(self) -> bool:
        return self.curve.is_active and self.settings.trading_enabled

    def with_reserve(self, reserve_balance: Amount) -> "Pool":
        return replace(self, curve=replace(self.curve, reserve_balance=reserve_balance))

    def with_settings(self, **changes) -> "Pool":
        return replace(self, settings=replace(self.settings, **changes))

    def migrated(self, timestamp: int) -> "Pool":
        """Terminal transition: deactivate the curve and stamp the migration time."""
        return replace(
            self,
            curve=replace(self.curve, is_active=False),
            settings=replace(self.settings, migration_completed=True, migration_timestamp=timestamp),
        )

    def __repr__(self) -> str:
        return (
            f"Pool(pool_id={self.pool_id[:16]}..., ticker={self.metadata.ticker}, "
            f"reserve={self.curve.reserve_balance}, ratio={self.curve.reserve_ratio}, "
            f"status={self.status.value})"
        )
