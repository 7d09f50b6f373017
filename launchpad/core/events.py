"""Domain events emitted by the launchpad.

Events are frozen dataclasses, one class per ``Event`` member. The log is
append-only and assigns a strictly increasing ``sequence`` so external
indexers can resume with ``since(sequence)``.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from enum import Enum, unique
from typing import Any, ClassVar, Dict, List, Type, TypeVar


@unique
class Event(Enum):
    POOL_CREATED = "PoolCreated"
    BUY_EXECUTED = "BuyExecuted"
    SELL_EXECUTED = "SellExecuted"
    FEE_UPDATED = "FeeUpdated"
    POOL_SETTINGS_UPDATED = "PoolSettingsUpdated"
    ADMIN_CHANGED = "AdminChanged"
    TREASURY_CHANGED = "TreasuryChanged"
    ADMIN_WITHDRAWAL = "AdminWithdrawal"
    ORACLE_PRICE_UPDATED = "OraclePriceUpdated"
    MIGRATION_READY = "MigrationReady"
    MIGRATION_COMPLETED = "MigrationCompleted"


@dataclass(frozen=True)
class DomainEvent:
    sequence: int
    timestamp: int

    kind: ClassVar[Event]

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["kind"] = self.kind.value
        return d


@dataclass(frozen=True)
class PoolCreated(DomainEvent):
    kind: ClassVar[Event] = Event.POOL_CREATED
    pool_id: str
    creator: str
    token_asset: str
    name: str
    ticker: str
    reserve_ratio: int
    initial_reserve: int


@dataclass(frozen=True)
class BuyExecuted(DomainEvent):
    kind: ClassVar[Event] = Event.BUY_EXECUTED
    pool_id: str
    buyer: str
    deposit_amount: int
    tokens_out: int
    fee: int
    new_price: int
    new_supply: int


@dataclass(frozen=True)
class SellExecuted(DomainEvent):
    kind: ClassVar[Event] = Event.SELL_EXECUTED
    pool_id: str
    seller: str
    sell_amount: int
    gross_return: int
    net_return: int
    fee: int
    new_price: int
    new_supply: int


@dataclass(frozen=True)
class FeeUpdated(DomainEvent):
    kind: ClassVar[Event] = Event.FEE_UPDATED
    old_buy_fee_bps: int
    old_sell_fee_bps: int
    buy_fee_bps: int
    sell_fee_bps: int


@dataclass(frozen=True)
class PoolSettingsUpdated(DomainEvent):
    kind: ClassVar[Event] = Event.POOL_SETTINGS_UPDATED
    pool_id: str
    market_cap_threshold_cents: int
    trading_enabled: bool


@dataclass(frozen=True)
class AdminChanged(DomainEvent):
    kind: ClassVar[Event] = Event.ADMIN_CHANGED
    old_admin: str
    new_admin: str


@dataclass(frozen=True)
class TreasuryChanged(DomainEvent):
    kind: ClassVar[Event] = Event.TREASURY_CHANGED
    old_treasury: str
    new_treasury: str


@dataclass(frozen=True)
class AdminWithdrawal(DomainEvent):
    kind: ClassVar[Event] = Event.ADMIN_WITHDRAWAL
    pool_id: str
    admin: str
    amount: int
    remaining_reserve: int


@dataclass(frozen=True)
class OraclePriceUpdated(DomainEvent):
    kind: ClassVar[Event] = Event.ORACLE_PRICE_UPDATED
    old_price_usd_cents: int
    price_usd_cents: int
    source_address: str


@dataclass(frozen=True)
class MigrationReady(DomainEvent):
    kind: ClassVar[Event] = Event.MIGRATION_READY
    pool_id: str
    market_cap_cents: int
    reserve_balance: int
    supply: int
    forced: bool


@dataclass(frozen=True)
class MigrationCompleted(DomainEvent):
    kind: ClassVar[Event] = Event.MIGRATION_COMPLETED
    pool_id: str
    dex_pool_reference: str
    reserve_amount: int
    token_amount: int


E = TypeVar("E", bound=DomainEvent)


class EventLog:
    """Append-only, thread-safe event log."""

    def __init__(self) -> None:
        self._events: List[DomainEvent] = []
        self._lock = threading.Lock()

    def emit(self, event_cls: Type[E], *, timestamp: int, **fields: Any) -> E:
        with self._lock:
            event = event_cls(sequence=len(self._events) + 1, timestamp=timestamp, **fields)
            self._events.append(event)
        return event

    def all(self) -> List[DomainEvent]:
        with self._lock:
            return list(self._events)

    def since(self, sequence: int) -> List[DomainEvent]:
        """Events with a sequence strictly greater than `sequence`."""
        with self._lock:
            return list(self._events[max(sequence, 0):])

    def of_kind(self, kind: Event) -> List[DomainEvent]:
        return [e for e in self.all() if e.kind is kind]

    def for_pool(self, pool_id: str) -> List[DomainEvent]:
        return [e for e in self.all() if getattr(e, "pool_id", None) == pool_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
