"""
Core launchpad algorithms: bonding-curve pricing, fees, oracle, events
"""

from .errors import (
    LaunchpadError,
    ValidationError,
    Unauthorized,
    TradingDisabled,
    SlippageExceeded,
    DeadlineExceeded,
    InsufficientBalance,
    InsufficientReserve,
    InsufficientSupply,
    FeeTooHigh,
    PoolNotFound,
)
from .pricing import (
    PRECISION,
    calculate_purchase_return,
    calculate_sale_return,
    calculate_current_price,
    power_fraction,
)
from .fees import FeeConfig, MAX_FEE_BPS, compute_fee
from .oracle import OracleState, init_oracle_state, is_fresh, update_price
from .events import DomainEvent, Event, EventLog

__all__ = [
    "LaunchpadError",
    "ValidationError",
    "Unauthorized",
    "TradingDisabled",
    "SlippageExceeded",
    "DeadlineExceeded",
    "InsufficientBalance",
    "InsufficientReserve",
    "InsufficientSupply",
    "FeeTooHigh",
    "PoolNotFound",
    "PRECISION",
    "calculate_purchase_return",
    "calculate_sale_return",
    "calculate_current_price",
    "power_fraction",
    "FeeConfig",
    "MAX_FEE_BPS",
    "compute_fee",
    "OracleState",
    "init_oracle_state",
    "is_fresh",
    "update_price",
    "DomainEvent",
    "Event",
    "EventLog",
]
