"""
Launchpad service layer: configuration, the stateful service, DEX handover
"""

from .config import LaunchpadConfig, config_from_env, load_config
from .dex_migration import DexMigrator, RecordingDexMigrator
from .launchpad import Launchpad, pool_custody_address

__all__ = [
    "LaunchpadConfig",
    "config_from_env",
    "load_config",
    "DexMigrator",
    "RecordingDexMigrator",
    "Launchpad",
    "pool_custody_address",
]
