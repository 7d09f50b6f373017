"""Exception types for the launchpad core.

Every rejection is a typed, synchronous error carrying a stable ``code`` so
callers (and indexers reading logs) can branch on it without parsing
messages. Nothing in the core retries; the caller decides whether to
resubmit with adjusted parameters.
"""

from __future__ import annotations


class LaunchpadError(Exception):
    """Base class for all launchpad rejections."""

    code: str = "launchpad_error"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.code
        super().__init__(self.message)


class ValidationError(LaunchpadError):
    """Raised for malformed inputs: bad ticker, ratio, zero amounts."""

    code = "validation"


class Unauthorized(LaunchpadError):
    """Raised when a non-admin calls an admin operation."""

    code = "unauthorized"


class TradingDisabled(LaunchpadError):
    """Raised when a pool is migrated (inactive) or paused."""

    code = "trading_disabled"


class SlippageExceeded(LaunchpadError):
    """Raised when the trade output is below the caller's minimum."""

    code = "slippage_exceeded"


class DeadlineExceeded(LaunchpadError):
    """Raised when a trade is submitted after its deadline."""

    code = "deadline_exceeded"


class InsufficientBalance(LaunchpadError):
    code = "insufficient_balance"


class InsufficientReserve(LaunchpadError):
    code = "insufficient_reserve"


class InsufficientSupply(LaunchpadError):
    code = "insufficient_supply"


class FeeTooHigh(LaunchpadError):
    """Raised when a fee update exceeds ``MAX_FEE_BPS``."""

    code = "fee_too_high"


class PoolNotFound(LaunchpadError):
    code = "pool_not_found"

    def __init__(self, pool_id: str) -> None:
        self.pool_id = pool_id
        super().__init__(f"pool not found: {pool_id}")
