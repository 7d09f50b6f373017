"""
Launchpad service (imperative shell).

Wraps the functional core with everything stateful:
- the keyed pool store, registry and liquidity accounting,
- per-pool locking (one writer per pool; readers never lock),
- ledger effects, executed inside one ledger transaction per operation,
- event emission and logging.

Every operation validates and plans first, then runs ledger effects, then
commits pool state. A rejection at any step leaves the pool, the accounting
and the ledger exactly as they were.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from ..core.errors import (
    InsufficientBalance,
    InsufficientReserve,
    PoolNotFound,
    Unauthorized,
    ValidationError,
)
from ..core.events import (
    AdminChanged,
    AdminWithdrawal,
    BuyExecuted,
    EventLog,
    FeeUpdated,
    MigrationCompleted,
    MigrationReady,
    OraclePriceUpdated,
    PoolCreated,
    PoolSettingsUpdated,
    SellExecuted,
    TreasuryChanged,
)
from ..core.fees import FeeConfig, compute_fee, with_fees
from ..core.migration import (
    evaluate_migration,
    force_migration,
    migration_liquidity,
    pool_market_cap_cents,
)
from ..core.oracle import OracleState, init_oracle_state, is_fresh, update_price
from ..core.pricing import (
    calculate_current_price,
    calculate_purchase_return,
    calculate_sale_return,
    require_reserve_ratio,
)
from ..core.trading import BuyPlan, SellPlan, plan_buy, plan_sell
from ..state.balances import Address, Amount, AssetLedger, IssuanceCapability
from ..state.liquidity import LiquidityAccounting, LiquidityTotals
from ..state.pools import CurveState, Pool, PoolMetadata, PoolSettings, compute_pool_id
from ..state.registry import PoolRegistry
from .config import LaunchpadConfig
from .dex_migration import DexMigrator

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def _system_clock() -> int:
    return int(time.time())


def pool_custody_address(pool_id: str) -> Address:
    """Ledger account holding a pool's reserve."""
    return "custody:" + pool_id


def _require_positive(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValidationError(f"{name} must be a positive int, got {value!r}")


def _require_address(name: str, value: Address) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{name} must be a non-empty address string")


class Launchpad:
    """
    Bonding-curve launchpad over an external asset ledger.

    Args:
        config: Runtime configuration (admin, treasury, fees, oracle seed)
        ledger: Asset ledger collaborator
        clock: Returns the current unix time in seconds
    """

    def __init__(self, config: LaunchpadConfig, ledger: AssetLedger, *, clock: Clock = _system_clock) -> None:
        self._config = config
        self._ledger = ledger
        self._clock = clock

        self._fees = FeeConfig(
            admin=config.admin,
            treasury=config.treasury,
            buy_fee_bps=config.buy_fee_bps,
            sell_fee_bps=config.sell_fee_bps,
        )
        self._oracle = init_oracle_state(
            config.initial_oracle_price_cents,
            config.effective_oracle_source,
            timestamp=clock(),
            max_staleness_seconds=config.max_oracle_staleness_seconds,
        )

        self._pools: Dict[str, Pool] = {}
        self._capabilities: Dict[str, IssuanceCapability] = {}
        self._pool_locks: Dict[str, threading.Lock] = {}
        self._registry = PoolRegistry()
        self._liquidity = LiquidityAccounting()
        self._events = EventLog()

        self._admin_lock = threading.Lock()
        self._create_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @property
    def _reserve_asset(self) -> str:
        return self._config.reserve_asset

    def _pool(self, pool_id: str) -> Pool:
        try:
            return self._pools[pool_id]
        except KeyError:
            raise PoolNotFound(pool_id) from None

    def _lock_for(self, pool_id: str) -> threading.Lock:
        try:
            return self._pool_locks[pool_id]
        except KeyError:
            raise PoolNotFound(pool_id) from None

    def _require_admin(self, caller: Address, action: str) -> None:
        if caller != self._fees.admin:
            logger.warning("rejected %s from non-admin %s", action, caller)
            raise Unauthorized(f"{action} requires the admin")

    def _supply(self, pool: Pool) -> Amount:
        return self._ledger.supply(pool.token_asset)

    # ------------------------------------------------------------------
    # Pool creation
    # ------------------------------------------------------------------

    def create_pool(
        self,
        caller: Address,
        metadata: PoolMetadata,
        reserve_ratio: int,
        initial_reserve: Amount,
        threshold_cents: Optional[int] = None,
    ) -> Pool:
        """
        Launch a new token with a bonding curve seeded by `initial_reserve`.

        Decimals and the optional max supply travel in `metadata`; the
        threshold defaults to the configured market-cap threshold.

        Raises:
            ValidationError: Bad metadata, ratio, reserve or threshold
            InsufficientBalance: Creator cannot fund the seed reserve
        """
        _require_address("caller", caller)
        if not isinstance(metadata, PoolMetadata):
            raise ValidationError("metadata must be a PoolMetadata")
        require_reserve_ratio(reserve_ratio)
        _require_positive("initial_reserve", initial_reserve)
        if threshold_cents is None:
            threshold_cents = self._config.default_threshold_cents
        settings = PoolSettings(market_cap_threshold_cents=threshold_cents)
        curve = CurveState(
            reserve_ratio=reserve_ratio,
            reserve_balance=initial_reserve,
            seed_reserve=initial_reserve,
        )

        with self._create_lock:
            balance = self._ledger.balance_of(self._reserve_asset, caller)
            if balance < initial_reserve:
                raise InsufficientBalance(f"creator balance {balance} < initial_reserve {initial_reserve}")

            now = self._clock()
            pool_id = compute_pool_id(caller, metadata.ticker, len(self._registry))
            with self._ledger.transaction():
                cap = self._ledger.issue_asset(
                    issuer=pool_custody_address(pool_id),
                    name=metadata.name,
                    symbol=metadata.ticker,
                    decimals=metadata.decimals,
                    max_supply=metadata.max_supply,
                )
                self._ledger.transfer(self._reserve_asset, caller, pool_custody_address(pool_id), initial_reserve)

            pool = Pool(
                pool_id=pool_id,
                creator=caller,
                token_asset=cap.asset_id,
                metadata=replace(metadata, created_at=now),
                curve=curve,
                settings=settings,
            )
            self._capabilities[pool_id] = cap
            self._pools[pool_id] = pool
            self._pool_locks[pool_id] = threading.Lock()
            self._registry.append(pool_id)

            self._events.emit(
                PoolCreated,
                timestamp=now,
                pool_id=pool_id,
                creator=caller,
                token_asset=cap.asset_id,
                name=metadata.name,
                ticker=metadata.ticker,
                reserve_ratio=reserve_ratio,
                initial_reserve=initial_reserve,
            )

        logger.info(
            "pool created: %s ticker=%s ratio=%d seed=%d threshold_cents=%d",
            pool_id[:18], metadata.ticker, reserve_ratio, initial_reserve, threshold_cents,
        )
        return pool

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    def buy(
        self,
        caller: Address,
        pool_id: str,
        deposit_amount: Amount,
        min_tokens_out: Amount,
        deadline: int,
    ) -> BuyExecuted:
        """
        Buy curve tokens with reserve asset; may trigger migration.

        Raises:
            PoolNotFound, DeadlineExceeded, TradingDisabled, ValidationError,
            InsufficientBalance, SlippageExceeded
        """
        with self._lock_for(pool_id):
            pool = self._pool(pool_id)
            fees = self._fees
            now = self._clock()
            plan = plan_buy(
                pool,
                buyer=caller,
                buyer_balance=self._ledger.balance_of(self._reserve_asset, caller),
                supply=self._supply(pool),
                fees=fees,
                deposit_amount=deposit_amount,
                min_tokens_out=min_tokens_out,
                deadline=deadline,
                now=now,
            )

            custody = pool_custody_address(pool_id)
            with self._ledger.transaction():
                self._ledger.transfer(self._reserve_asset, caller, custody, plan.net_deposit)
                self._ledger.transfer(self._reserve_asset, caller, fees.treasury, plan.fee)
                self._capabilities[pool_id].mint(caller, plan.tokens_out)

            updated = pool.with_reserve(plan.new_reserve)
            self._pools[pool_id] = updated
            self._liquidity.record_collected(pool_id, plan.net_deposit)

            event = self._events.emit(
                BuyExecuted,
                timestamp=now,
                pool_id=pool_id,
                buyer=caller,
                deposit_amount=plan.deposit_amount,
                tokens_out=plan.tokens_out,
                fee=plan.fee,
                new_price=plan.new_price,
                new_supply=plan.new_supply,
            )
            logger.debug(
                "buy %s: deposit=%d fee=%d tokens_out=%d price=%d",
                pool_id[:18], plan.deposit_amount, plan.fee, plan.tokens_out, plan.new_price,
            )

            migrated = evaluate_migration(
                updated,
                supply=plan.new_supply,
                oracle=self._oracle,
                now=now,
                reserve_unit=self._config.reserve_unit,
            )
            if migrated is not None:
                self._pools[pool_id] = migrated
                self._emit_migration_ready(migrated, plan.new_supply, now, forced=False)
        return event

    def sell(
        self,
        caller: Address,
        pool_id: str,
        sell_amount: Amount,
        min_deposit_out: Amount,
        deadline: int,
    ) -> SellExecuted:
        """
        Sell curve tokens back for reserve asset.

        Raises:
            PoolNotFound, DeadlineExceeded, TradingDisabled, ValidationError,
            InsufficientBalance, InsufficientSupply, SlippageExceeded,
            InsufficientReserve
        """
        with self._lock_for(pool_id):
            pool = self._pool(pool_id)
            fees = self._fees
            now = self._clock()
            plan = plan_sell(
                pool,
                seller=caller,
                seller_balance=self._ledger.balance_of(pool.token_asset, caller),
                supply=self._supply(pool),
                fees=fees,
                sell_amount=sell_amount,
                min_deposit_out=min_deposit_out,
                deadline=deadline,
                now=now,
            )
            available = self._liquidity.for_pool(pool_id).available
            if plan.net_return > available:
                raise InsufficientReserve(f"payout {plan.net_return} exceeds collected liquidity {available}")

            custody = pool_custody_address(pool_id)
            with self._ledger.transaction():
                self._capabilities[pool_id].burn(caller, plan.sell_amount)
                self._ledger.transfer(self._reserve_asset, custody, caller, plan.net_return)
                self._ledger.transfer(self._reserve_asset, custody, fees.treasury, plan.fee)

            self._pools[pool_id] = pool.with_reserve(plan.new_reserve)
            self._liquidity.record_paid_out(pool_id, plan.net_return)

            event = self._events.emit(
                SellExecuted,
                timestamp=now,
                pool_id=pool_id,
                seller=caller,
                sell_amount=plan.sell_amount,
                gross_return=plan.gross_return,
                net_return=plan.net_return,
                fee=plan.fee,
                new_price=plan.new_price,
                new_supply=plan.new_supply,
            )
            logger.debug(
                "sell %s: amount=%d gross=%d fee=%d net=%d",
                pool_id[:18], plan.sell_amount, plan.gross_return, plan.fee, plan.net_return,
            )
        return event

    def _emit_migration_ready(self, pool: Pool, supply: Amount, now: int, *, forced: bool) -> None:
        market_cap = pool_market_cap_cents(pool, supply, self._oracle, self._config.reserve_unit)
        self._events.emit(
            MigrationReady,
            timestamp=now,
            pool_id=pool.pool_id,
            market_cap_cents=market_cap,
            reserve_balance=pool.curve.reserve_balance,
            supply=supply,
            forced=forced,
        )
        logger.info(
            "pool %s ready for migration (forced=%s): market_cap_cents=%d threshold_cents=%d",
            pool.pool_id[:18], forced, market_cap, pool.settings.market_cap_threshold_cents,
        )

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    def set_admin(self, caller: Address, new_admin: Address) -> AdminChanged:
        with self._admin_lock:
            self._require_admin(caller, "set_admin")
            _require_address("new_admin", new_admin)
            old = self._fees.admin
            self._fees = replace(self._fees, admin=new_admin)
            event = self._events.emit(AdminChanged, timestamp=self._clock(), old_admin=old, new_admin=new_admin)
        logger.info("admin changed: %s -> %s", old, new_admin)
        return event

    def set_treasury(self, caller: Address, new_treasury: Address) -> TreasuryChanged:
        with self._admin_lock:
            self._require_admin(caller, "set_treasury")
            _require_address("new_treasury", new_treasury)
            old = self._fees.treasury
            self._fees = replace(self._fees, treasury=new_treasury)
            event = self._events.emit(
                TreasuryChanged, timestamp=self._clock(), old_treasury=old, new_treasury=new_treasury
            )
        logger.info("treasury changed: %s -> %s", old, new_treasury)
        return event

    def update_fee(self, caller: Address, buy_fee_bps: int, sell_fee_bps: int) -> FeeUpdated:
        """
        Raises:
            Unauthorized, FeeTooHigh (either fee above MAX_FEE_BPS), ValidationError
        """
        with self._admin_lock:
            self._require_admin(caller, "update_fee")
            old = self._fees
            self._fees = with_fees(old, buy_fee_bps, sell_fee_bps)
            event = self._events.emit(
                FeeUpdated,
                timestamp=self._clock(),
                old_buy_fee_bps=old.buy_fee_bps,
                old_sell_fee_bps=old.sell_fee_bps,
                buy_fee_bps=buy_fee_bps,
                sell_fee_bps=sell_fee_bps,
            )
        logger.info("fees updated: buy=%d sell=%d bps", buy_fee_bps, sell_fee_bps)
        return event

    def update_pool_settings(
        self,
        caller: Address,
        pool_id: str,
        threshold_cents: Optional[int] = None,
        trading_enabled: Optional[bool] = None,
    ) -> PoolSettingsUpdated:
        """Change a pool's migration threshold and/or pause flag. `None` keeps the current value."""
        self._require_admin(caller, "update_pool_settings")
        if trading_enabled is not None and not isinstance(trading_enabled, bool):
            raise ValidationError("trading_enabled must be a bool")
        changes = {}
        if threshold_cents is not None:
            changes["market_cap_threshold_cents"] = threshold_cents
        if trading_enabled is not None:
            changes["trading_enabled"] = trading_enabled

        with self._lock_for(pool_id):
            pool = self._pool(pool_id).with_settings(**changes)
            self._pools[pool_id] = pool
            event = self._events.emit(
                PoolSettingsUpdated,
                timestamp=self._clock(),
                pool_id=pool_id,
                market_cap_threshold_cents=pool.settings.market_cap_threshold_cents,
                trading_enabled=pool.settings.trading_enabled,
            )
        logger.info(
            "pool %s settings: threshold_cents=%d trading_enabled=%s",
            pool_id[:18], pool.settings.market_cap_threshold_cents, pool.settings.trading_enabled,
        )
        return event

    def admin_withdraw(self, caller: Address, pool_id: str, amount: Amount) -> AdminWithdrawal:
        """
        Move `amount` of a pool's reserve to the admin.

        Raises:
            Unauthorized, PoolNotFound, ValidationError,
            InsufficientReserve: If `amount > reserve_balance`
        """
        self._require_admin(caller, "admin_withdraw")
        _require_positive("amount", amount)
        with self._lock_for(pool_id):
            pool = self._pool(pool_id)
            reserve = pool.curve.reserve_balance
            if amount > reserve:
                raise InsufficientReserve(f"withdraw {amount} exceeds reserve {reserve}")
            with self._ledger.transaction():
                self._ledger.transfer(self._reserve_asset, pool_custody_address(pool_id), caller, amount)
            self._pools[pool_id] = pool.with_reserve(reserve - amount)
            event = self._events.emit(
                AdminWithdrawal,
                timestamp=self._clock(),
                pool_id=pool_id,
                admin=caller,
                amount=amount,
                remaining_reserve=reserve - amount,
            )
        logger.info("admin withdrew %d from pool %s (remaining %d)", amount, pool_id[:18], reserve - amount)
        return event

    def update_oracle_price(self, caller: Address, price_usd_cents: int, source_address: Address) -> OraclePriceUpdated:
        with self._admin_lock:
            self._require_admin(caller, "update_oracle_price")
            old = self._oracle
            now = self._clock()
            self._oracle = update_price(old, price_usd_cents, source_address, now)
            event = self._events.emit(
                OraclePriceUpdated,
                timestamp=now,
                old_price_usd_cents=old.price_usd_cents,
                price_usd_cents=price_usd_cents,
                source_address=source_address,
            )
        logger.info("oracle price %d -> %d cents (source %s)", old.price_usd_cents, price_usd_cents, source_address)
        return event

    def force_migrate(self, caller: Address, pool_id: str) -> Pool:
        """
        Migrate a pool regardless of its market cap.

        Raises:
            Unauthorized, PoolNotFound, TradingDisabled (already migrated)
        """
        self._require_admin(caller, "force_migrate")
        with self._lock_for(pool_id):
            now = self._clock()
            migrated = force_migration(self._pool(pool_id), now=now)
            self._pools[pool_id] = migrated
            self._emit_migration_ready(migrated, self._supply(migrated), now, forced=True)
        return migrated

    def complete_migration(self, caller: Address, pool_id: str, migrator: DexMigrator) -> MigrationCompleted:
        """
        Hand a migrated pool's reserve (and a price-matched token amount) to the DEX.

        A capped pool hands over only what its remaining supply headroom can
        price-match; the leftover reserve stays in custody.

        Raises:
            Unauthorized, PoolNotFound,
            ValidationError: Pool still active, migration already completed, or
                no supply headroom left to mint DEX liquidity
        """
        self._require_admin(caller, "complete_migration")
        with self._lock_for(pool_id):
            pool = self._pool(pool_id)
            if pool.curve.is_active:
                raise ValidationError(f"pool {pool_id} has not reached migration")
            if pool.settings.dex_pool_reference is not None:
                raise ValidationError(f"pool {pool_id} already migrated to {pool.settings.dex_pool_reference}")

            reserve_amount, token_amount = migration_liquidity(pool, self._supply(pool))
            if token_amount == 0:
                raise ValidationError(f"pool {pool_id} has no token supply headroom left for DEX liquidity")
            with self._ledger.transaction():
                self._ledger.transfer(
                    self._reserve_asset, pool_custody_address(pool_id), migrator.address, reserve_amount
                )
                self._capabilities[pool_id].mint(migrator.address, token_amount)
                reference = migrator.deposit_liquidity(pool.token_asset, reserve_amount, token_amount)

            pool = pool.with_reserve(pool.curve.reserve_balance - reserve_amount).with_settings(
                dex_pool_reference=reference
            )
            self._pools[pool_id] = pool
            event = self._events.emit(
                MigrationCompleted,
                timestamp=self._clock(),
                pool_id=pool_id,
                dex_pool_reference=reference,
                reserve_amount=reserve_amount,
                token_amount=token_amount,
            )
        logger.info(
            "pool %s migrated to DEX %s: reserve=%d tokens=%d",
            pool_id[:18], reference, reserve_amount, token_amount,
        )
        return event

    # ------------------------------------------------------------------
    # Read-only surface (lock-free)
    # ------------------------------------------------------------------

    @property
    def events(self) -> EventLog:
        return self._events

    def get_pool(self, pool_id: str) -> Pool:
        return self._pool(pool_id)

    def get_pools(self) -> List[str]:
        return self._registry.ids()

    def get_current_supply(self, pool_id: str) -> Amount:
        return self._supply(self._pool(pool_id))

    def get_pool_balance(self, pool_id: str) -> Amount:
        return self._pool(pool_id).curve.reserve_balance

    def get_current_price(self, pool_id: str) -> int:
        pool = self._pool(pool_id)
        return calculate_current_price(self._supply(pool), pool.curve.reserve_balance, pool.curve.reserve_ratio)

    def calculate_purchase_return(self, pool_id: str, deposit_amount: Amount) -> Amount:
        """Tokens a deposit would mint right now, after the buy fee."""
        pool = self._pool(pool_id)
        net = deposit_amount - compute_fee(deposit_amount, self._fees.buy_fee_bps)
        return calculate_purchase_return(
            self._supply(pool), pool.curve.reserve_balance, pool.curve.reserve_ratio, net
        )

    def calculate_sale_return(self, pool_id: str, sell_amount: Amount) -> Amount:
        """Reserve a sale would pay out right now, after the seed lock and the sell fee."""
        pool = self._pool(pool_id)
        gross = calculate_sale_return(
            self._supply(pool), pool.curve.reserve_balance, pool.curve.reserve_ratio, sell_amount
        )
        gross = min(gross, pool.curve.withdrawable)
        return gross - compute_fee(gross, self._fees.sell_fee_bps)

    def quote_buy(self, pool_id: str, deposit_amount: Amount) -> BuyPlan:
        """Dry-run a buy with every guard applied (no slippage bound, no balance requirement)."""
        pool = self._pool(pool_id)
        now = self._clock()
        return plan_buy(
            pool,
            buyer="",
            buyer_balance=deposit_amount,
            supply=self._supply(pool),
            fees=self._fees,
            deposit_amount=deposit_amount,
            min_tokens_out=0,
            deadline=now,
            now=now,
        )

    def quote_sell(self, pool_id: str, sell_amount: Amount) -> SellPlan:
        pool = self._pool(pool_id)
        now = self._clock()
        return plan_sell(
            pool,
            seller="",
            seller_balance=sell_amount,
            supply=self._supply(pool),
            fees=self._fees,
            sell_amount=sell_amount,
            min_deposit_out=0,
            deadline=now,
            now=now,
        )

    def get_fees(self) -> Tuple[int, int]:
        fees = self._fees
        return fees.buy_fee_bps, fees.sell_fee_bps

    def get_admin(self) -> Address:
        return self._fees.admin

    def get_treasury(self) -> Address:
        return self._fees.treasury

    def get_oracle_data(self) -> OracleState:
        return self._oracle

    def is_oracle_fresh(self) -> bool:
        return is_fresh(self._oracle, self._clock())

    def get_liquidity_pool(self) -> LiquidityTotals:
        return self._liquidity.totals()

    def get_available_liquidity(self) -> Amount:
        return self._liquidity.totals().available

    def get_market_cap_usd(self, pool_id: str) -> int:
        """Market cap in USD cents at the current oracle price."""
        pool = self._pool(pool_id)
        return pool_market_cap_cents(pool, self._supply(pool), self._oracle, self._config.reserve_unit)

    def is_migration_threshold_reached(self, pool_id: str) -> bool:
        pool = self._pool(pool_id)
        return self.get_market_cap_usd(pool_id) >= pool.settings.market_cap_threshold_cents

    def __repr__(self) -> str:
        return f"Launchpad({len(self._registry)} pools, admin={self._fees.admin})"
