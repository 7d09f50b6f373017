"""
Launchpad runtime configuration.

Sources, lowest precedence first:
- dataclass defaults,
- a YAML file (`load_config(path)`),
- `LAUNCHPAD_*` environment variables.

Environment integers are clamped to sane bounds rather than rejected, the same
way the container entrypoints treat env input.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from ..core.fees import MAX_FEE_BPS
from ..core.migration import RESERVE_UNIT
from ..state.balances import NATIVE_ASSET

ENV_PREFIX = "LAUNCHPAD_"

DEFAULT_THRESHOLD_CENTS = 7_500_000  # $75,000


@dataclass(frozen=True)
class LaunchpadConfig:
    admin: str
    treasury: str
    reserve_asset: str = NATIVE_ASSET
    reserve_unit: int = RESERVE_UNIT
    buy_fee_bps: int = 100
    sell_fee_bps: int = 100
    default_threshold_cents: int = DEFAULT_THRESHOLD_CENTS
    initial_oracle_price_cents: int = 1_000
    oracle_source: str = ""
    max_oracle_staleness_seconds: int = 300

    def __post_init__(self) -> None:
        for name in ("admin", "treasury", "reserve_asset"):
            v = getattr(self, name)
            if not isinstance(v, str) or not v:
                raise ValueError(f"{name} must be a non-empty string")
        for name in ("buy_fee_bps", "sell_fee_bps"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or not (0 <= v <= MAX_FEE_BPS):
                raise ValueError(f"{name} must be in [0, {MAX_FEE_BPS}]: {v!r}")
        for name in (
            "reserve_unit",
            "default_threshold_cents",
            "initial_oracle_price_cents",
            "max_oracle_staleness_seconds",
        ):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or v <= 0:
                raise ValueError(f"{name} must be a positive int: {v!r}")

    @property
    def effective_oracle_source(self) -> str:
        return self.oracle_source or self.admin


def _env_int(env: Mapping[str, str], name: str, default: int, *, lo: int, hi: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


_INT_BOUNDS: Dict[str, tuple] = {
    "reserve_unit": (1, 10**18),
    "buy_fee_bps": (0, MAX_FEE_BPS),
    "sell_fee_bps": (0, MAX_FEE_BPS),
    "default_threshold_cents": (1, 10**15),
    "initial_oracle_price_cents": (1, 10**12),
    "max_oracle_staleness_seconds": (1, 10**9),
}


def apply_env_overrides(
    config: LaunchpadConfig,
    env: Optional[Mapping[str, str]] = None,
    *,
    prefix: str = ENV_PREFIX,
) -> LaunchpadConfig:
    """Overlay `<prefix><FIELD>` environment variables onto `config`."""
    env = os.environ if env is None else env
    changes: Dict[str, Any] = {}
    for f in fields(LaunchpadConfig):
        key = prefix + f.name.upper()
        current = getattr(config, f.name)
        if f.name in _INT_BOUNDS:
            lo, hi = _INT_BOUNDS[f.name]
            changes[f.name] = _env_int(env, key, current, lo=lo, hi=hi)
        else:
            changes[f.name] = _env_str(env, key, current)
    return replace(config, **changes)


def config_from_env(env: Optional[Mapping[str, str]] = None, *, prefix: str = ENV_PREFIX) -> LaunchpadConfig:
    """
    Build a config purely from the environment.

    `<prefix>ADMIN` is required; the treasury defaults to the admin.
    """
    env = os.environ if env is None else env
    admin = _env_str(env, prefix + "ADMIN", "")
    if not admin:
        raise ValueError(f"{prefix}ADMIN must be set")
    base = LaunchpadConfig(admin=admin, treasury=_env_str(env, prefix + "TREASURY", admin))
    return apply_env_overrides(base, env, prefix=prefix)


def config_from_mapping(obj: Mapping[str, Any]) -> LaunchpadConfig:
    if not isinstance(obj, Mapping):
        raise TypeError("launchpad config must be a mapping")
    known = {f.name for f in fields(LaunchpadConfig)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    return LaunchpadConfig(**dict(obj))


def load_config(
    path: Union[str, Path],
    *,
    env: Optional[Mapping[str, str]] = None,
    prefix: str = ENV_PREFIX,
) -> LaunchpadConfig:
    """Load a YAML config file (top-level `launchpad:` key optional), then apply env overrides."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if isinstance(obj, Mapping) and "launchpad" in obj:
        obj = obj["launchpad"]
    return apply_env_overrides(config_from_mapping(obj), env, prefix=prefix)
