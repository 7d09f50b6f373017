"""
Buy/sell planning (functional core).

`plan_buy` and `plan_sell` take a pool snapshot plus the ledger readings the
trade depends on and return a fully computed plan, or raise a typed error.
They never touch the ledger or mutate anything; the imperative shell applies
a plan only after it has been produced in full, so a rejected trade leaves
no trace.

Guard order (each a distinct error):
    deadline -> pool active / trading enabled -> amount > 0 -> balance
    -> curve computation -> slippage -> reserve sufficiency
"""

from __future__ import annotations

from dataclasses import dataclass

from ..state.balances import Address, Amount
from ..state.pools import Pool
from .errors import (
    DeadlineExceeded,
    InsufficientBalance,
    InsufficientReserve,
    SlippageExceeded,
    TradingDisabled,
    ValidationError,
)
from .fees import FeeConfig, compute_fee
from .pricing import calculate_current_price, calculate_purchase_return, calculate_sale_return


@dataclass(frozen=True)
class BuyPlan:
    pool_id: str
    buyer: Address
    deposit_amount: Amount
    fee: Amount
    net_deposit: Amount
    tokens_out: Amount
    new_reserve: Amount
    new_supply: Amount
    new_price: int


@dataclass(frozen=True)
class SellPlan:
    pool_id: str
    seller: Address
    sell_amount: Amount
    gross_return: Amount
    fee: Amount
    net_return: Amount
    new_reserve: Amount
    new_supply: Amount
    new_price: int


def _require_positive(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValidationError(f"{name} must be a positive int, got {value!r}")


def _require_uint(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationError(f"{name} must be a non-negative int, got {value!r}")


def check_tradable(pool: Pool, *, now: int, deadline: int) -> None:
    if now > deadline:
        raise DeadlineExceeded(f"deadline {deadline} passed (now={now})")
    if not pool.curve.is_active:
        raise TradingDisabled(f"pool {pool.pool_id} has migrated")
    if not pool.settings.trading_enabled:
        raise TradingDisabled(f"trading is paused for pool {pool.pool_id}")


def plan_buy(
    pool: Pool,
    *,
    buyer: Address,
    buyer_balance: Amount,
    supply: Amount,
    fees: FeeConfig,
    deposit_amount: Amount,
    min_tokens_out: Amount,
    deadline: int,
    now: int,
) -> BuyPlan:
    """
    Plan a buy of curve tokens with `deposit_amount` of reserve asset.

        fee = floor(deposit * buy_fee_bps / 10_000)
        net = deposit - fee                  (goes to the reserve)
        tokens_out = purchase_return(supply, reserve, ratio, net)

    Raises:
        DeadlineExceeded, TradingDisabled, ValidationError,
        InsufficientBalance, SlippageExceeded
    """
    check_tradable(pool, now=now, deadline=deadline)
    _require_positive("deposit_amount", deposit_amount)
    _require_uint("min_tokens_out", min_tokens_out)
    if buyer_balance < deposit_amount:
        raise InsufficientBalance(f"buyer balance {buyer_balance} < deposit {deposit_amount}")

    curve = pool.curve
    fee = compute_fee(deposit_amount, fees.buy_fee_bps)
    net_deposit = deposit_amount - fee
    tokens_out = calculate_purchase_return(supply, curve.reserve_balance, curve.reserve_ratio, net_deposit)

    if tokens_out < min_tokens_out:
        raise SlippageExceeded(f"tokens_out ({tokens_out}) < min_tokens_out ({min_tokens_out})")
    if tokens_out == 0:
        raise ValidationError(f"deposit {deposit_amount} is too small to mint any tokens")

    new_supply = supply + tokens_out
    max_supply = pool.metadata.max_supply
    if max_supply is not None and new_supply > max_supply:
        raise ValidationError(f"buy would exceed max supply: {new_supply} > {max_supply}")

    new_reserve = curve.reserve_balance + net_deposit
    return BuyPlan(
        pool_id=pool.pool_id,
        buyer=buyer,
        deposit_amount=deposit_amount,
        fee=fee,
        net_deposit=net_deposit,
        tokens_out=tokens_out,
        new_reserve=new_reserve,
        new_supply=new_supply,
        new_price=calculate_current_price(new_supply, new_reserve, curve.reserve_ratio),
    )


def plan_sell(
    pool: Pool,
    *,
    seller: Address,
    seller_balance: Amount,
    supply: Amount,
    fees: FeeConfig,
    sell_amount: Amount,
    min_deposit_out: Amount,
    deadline: int,
    now: int,
) -> SellPlan:
    """
    Plan a sale of `sell_amount` curve tokens back to the pool.

    The gross payout is capped at the reserve held above the creator's seed,
    so the seed stays locked in the pool:

        gross = min(sale_return(supply, reserve, ratio, amount), reserve - seed)
        fee = floor(gross * sell_fee_bps / 10_000)
        net = gross - fee

    Raises:
        DeadlineExceeded, TradingDisabled, ValidationError, InsufficientBalance,
        InsufficientSupply, SlippageExceeded, InsufficientReserve
    """
    check_tradable(pool, now=now, deadline=deadline)
    _require_positive("sell_amount", sell_amount)
    _require_uint("min_deposit_out", min_deposit_out)
    if seller_balance < sell_amount:
        raise InsufficientBalance(f"seller balance {seller_balance} < sell_amount {sell_amount}")

    curve = pool.curve
    gross_return = calculate_sale_return(supply, curve.reserve_balance, curve.reserve_ratio, sell_amount)
    gross_return = min(gross_return, curve.withdrawable)
    fee = compute_fee(gross_return, fees.sell_fee_bps)
    net_return = gross_return - fee

    if net_return < min_deposit_out:
        raise SlippageExceeded(f"net_return ({net_return}) < min_deposit_out ({min_deposit_out})")
    if curve.reserve_balance < gross_return:
        raise InsufficientReserve(f"reserve {curve.reserve_balance} < gross_return {gross_return}")

    new_supply = supply - sell_amount
    new_reserve = curve.reserve_balance - gross_return
    return SellPlan(
        pool_id=pool.pool_id,
        seller=seller,
        sell_amount=sell_amount,
        gross_return=gross_return,
        fee=fee,
        net_return=net_return,
        new_reserve=new_reserve,
        new_supply=new_supply,
        new_price=calculate_current_price(new_supply, new_reserve, curve.reserve_ratio),
    )
