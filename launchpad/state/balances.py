"""
Asset ledger collaborator: balances, supply, issuance.

The launchpad core never owns balances; it talks to an `AssetLedger`.
`InMemoryLedger` is the reference implementation used by tests and local
runs. Minting and burning go through an `IssuanceCapability`, which the
ledger hands out exactly once per issued asset.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import ContextManager, Dict, Iterator, Optional, Protocol, Tuple

from ..core.errors import InsufficientBalance, ValidationError
from .canonical import derive_id


# Type aliases
Address = str  # account or custody address
AssetId = str  # 0x-prefixed sha256 hex
Amount = int  # Non-negative integer (arbitrary precision)

# Reserve asset identifier (the chain's native coin)
NATIVE_ASSET = "0x" + "00" * 32


def _require_amount(amount: Amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValidationError(f"amount must be a non-negative int, got {amount!r}")


class BalanceTable:
    """
    Balance table mapping (owner, asset) -> amount.

    Zero balances are dropped to keep the table sparse.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Address, AssetId], Amount] = {}

    def get(self, owner: Address, asset: AssetId) -> Amount:
        """Get balance for (owner, asset). Returns 0 if not found."""
        return self._balances.get((owner, asset), 0)

    def set(self, owner: Address, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise InsufficientBalance(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((owner, asset), None)
        else:
            self._balances[(owner, asset)] = amount

    def add(self, owner: Address, asset: AssetId, delta: int) -> None:
        """
        Add delta to a balance (delta may be negative).

        Raises:
            InsufficientBalance: If the resulting balance would be negative
        """
        current = self.get(owner, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise InsufficientBalance(
                f"Insufficient balance of {asset[:10]} for {owner}: {current} + {delta} < 0"
            )
        self.set(owner, asset, new_balance)

    def subtract(self, owner: Address, asset: AssetId, delta: Amount) -> None:
        if delta < 0:
            raise ValidationError(f"Delta must be non-negative: {delta}")
        self.add(owner, asset, -delta)

    def copy(self) -> "BalanceTable":
        out = BalanceTable()
        out._balances = dict(self._balances)
        return out

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"


class IssuanceCapability:
    """
    Mint/burn authority over exactly one asset.

    Held by the pool that issued the asset. Copying or pickling is refused
    so the authority cannot be duplicated.
    """

    __slots__ = ("_asset_id", "_ledger")

    def __init__(self, asset_id: AssetId, ledger: "InMemoryLedger") -> None:
        self._asset_id = asset_id
        self._ledger = ledger

    @property
    def asset_id(self) -> AssetId:
        return self._asset_id

    def mint(self, to: Address, amount: Amount) -> None:
        self._ledger._mint(self._asset_id, to, amount)

    def burn(self, owner: Address, amount: Amount) -> None:
        self._ledger._burn(self._asset_id, owner, amount)

    def __copy__(self):
        raise TypeError("issuance capabilities cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("issuance capabilities cannot be copied")

    def __reduce__(self):
        raise TypeError("issuance capabilities cannot be serialized")

    def __repr__(self) -> str:
        return f"IssuanceCapability({self._asset_id[:18]}...)"


class AssetLedger(Protocol):
    """What the launchpad needs from the asset ledger."""

    def issue_asset(
        self,
        *,
        issuer: Address,
        name: str,
        symbol: str,
        decimals: int,
        max_supply: Optional[Amount] = None,
    ) -> IssuanceCapability: ...

    def transfer(self, asset: AssetId, sender: Address, recipient: Address, amount: Amount) -> None: ...

    def balance_of(self, asset: AssetId, owner: Address) -> Amount: ...

    def supply(self, asset: AssetId) -> Amount: ...

    def transaction(self) -> ContextManager[None]: ...


class InMemoryLedger:
    """
    Thread-safe in-memory ledger.

    `transaction()` holds the ledger lock for its whole scope and restores
    the pre-transaction balances, supplies and supply caps if the scope
    raises, so a multi-step trade settles all-or-nothing. An asset issued
    inside an aborted scope is forgotten; the issue counter is not rewound,
    so asset ids are never reused.

    Each scope copies the whole balance table, O(accounts), and the single
    lock serializes settlement across every pool. A production ledger should
    journal writes instead.
    """

    def __init__(self) -> None:
        self._balances = BalanceTable()
        self._supply: Dict[AssetId, Amount] = {NATIVE_ASSET: 0}
        self._max_supply: Dict[AssetId, Optional[Amount]] = {NATIVE_ASSET: None}
        self._issued = 0
        self._lock = threading.RLock()

    # -- issuance ---------------------------------------------------------

    def issue_asset(
        self,
        *,
        issuer: Address,
        name: str,
        symbol: str,
        decimals: int,
        max_supply: Optional[Amount] = None,
    ) -> IssuanceCapability:
        with self._lock:
            self._issued += 1
            asset_id = derive_id(
                "asset",
                {"issuer": issuer, "name": name, "symbol": symbol, "decimals": decimals, "seq": self._issued},
            )
            self._supply[asset_id] = 0
            self._max_supply[asset_id] = max_supply
            return IssuanceCapability(asset_id, self)

    def _require_known(self, asset: AssetId) -> None:
        if asset not in self._supply:
            raise ValidationError(f"unknown asset: {asset}")

    def _mint(self, asset: AssetId, to: Address, amount: Amount) -> None:
        _require_amount(amount)
        with self._lock:
            self._require_known(asset)
            cap = self._max_supply.get(asset)
            new_supply = self._supply[asset] + amount
            if cap is not None and new_supply > cap:
                raise ValidationError(f"mint exceeds max supply: {new_supply} > {cap}")
            self._balances.add(to, asset, amount)
            self._supply[asset] = new_supply

    def _burn(self, asset: AssetId, owner: Address, amount: Amount) -> None:
        _require_amount(amount)
        with self._lock:
            self._require_known(asset)
            self._balances.subtract(owner, asset, amount)
            self._supply[asset] -= amount

    def credit(self, owner: Address, amount: Amount, asset: AssetId = NATIVE_ASSET) -> None:
        """Fund an account with the native reserve asset (faucet / bridge-in)."""
        if asset != NATIVE_ASSET:
            raise ValidationError("only the native asset can be credited directly")
        self._mint(asset, owner, amount)

    # -- transfers and queries -------------------------------------------

    def transfer(self, asset: AssetId, sender: Address, recipient: Address, amount: Amount) -> None:
        _require_amount(amount)
        if amount == 0:
            return
        with self._lock:
            self._require_known(asset)
            self._balances.subtract(sender, asset, amount)
            self._balances.add(recipient, asset, amount)

    def balance_of(self, asset: AssetId, owner: Address) -> Amount:
        with self._lock:
            return self._balances.get(owner, asset)

    def supply(self, asset: AssetId) -> Amount:
        with self._lock:
            self._require_known(asset)
            return self._supply[asset]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            balances = self._balances.copy()
            supply = dict(self._supply)
            max_supply = dict(self._max_supply)
            try:
                yield
            except BaseException:
                self._balances = balances
                self._supply = supply
                self._max_supply = max_supply
                raise

    def __repr__(self) -> str:
        return f"InMemoryLedger({len(self._supply)} assets, {self._balances!r})"
