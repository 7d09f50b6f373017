from __future__ import annotations

import pytest

from launchpad.integration.config import (
    DEFAULT_THRESHOLD_CENTS,
    LaunchpadConfig,
    apply_env_overrides,
    config_from_env,
    config_from_mapping,
    load_config,
)
from launchpad.integration.launchpad import Launchpad
from launchpad.state.balances import NATIVE_ASSET, InMemoryLedger


class TestLaunchpadConfig:
    def test_defaults(self) -> None:
        cfg = LaunchpadConfig(admin="admin", treasury="treasury")
        assert cfg.reserve_asset == NATIVE_ASSET
        assert cfg.default_threshold_cents == DEFAULT_THRESHOLD_CENTS == 7_500_000
        assert (cfg.buy_fee_bps, cfg.sell_fee_bps) == (100, 100)
        assert cfg.effective_oracle_source == "admin"

    def test_rejects_bad_values(self) -> None:
        with pytest.raises(ValueError):
            LaunchpadConfig(admin="", treasury="treasury")
        with pytest.raises(ValueError):
            LaunchpadConfig(admin="admin", treasury="treasury", buy_fee_bps=1_001)
        with pytest.raises(ValueError):
            LaunchpadConfig(admin="admin", treasury="treasury", initial_oracle_price_cents=0)


class TestEnvironment:
    def test_config_from_env(self) -> None:
        cfg = config_from_env({"LAUNCHPAD_ADMIN": " root ", "LAUNCHPAD_SELL_FEE_BPS": "25"})
        assert cfg.admin == "root"
        assert cfg.treasury == "root"
        assert cfg.sell_fee_bps == 25

    def test_admin_is_required(self) -> None:
        with pytest.raises(ValueError):
            config_from_env({})

    def test_integers_are_clamped(self) -> None:
        cfg = config_from_env({"LAUNCHPAD_ADMIN": "root", "LAUNCHPAD_BUY_FEE_BPS": "5000"})
        assert cfg.buy_fee_bps == 1_000
        cfg = config_from_env({"LAUNCHPAD_ADMIN": "root", "LAUNCHPAD_MAX_ORACLE_STALENESS_SECONDS": "-3"})
        assert cfg.max_oracle_staleness_seconds == 1

    def test_garbage_integers_fall_back(self) -> None:
        cfg = config_from_env({"LAUNCHPAD_ADMIN": "root", "LAUNCHPAD_BUY_FEE_BPS": "lots"})
        assert cfg.buy_fee_bps == 100

    def test_custom_prefix(self) -> None:
        cfg = config_from_env({"BLAZE_ADMIN": "root", "BLAZE_TREASURY": "vault"}, prefix="BLAZE_")
        assert (cfg.admin, cfg.treasury) == ("root", "vault")

    def test_empty_env_keeps_config(self) -> None:
        cfg = LaunchpadConfig(admin="admin", treasury="treasury", buy_fee_bps=7)
        assert apply_env_overrides(cfg, {}) == cfg


class TestYaml:
    def test_load_config_with_env_override(self, tmp_path) -> None:
        path = tmp_path / "launchpad.yaml"
        path.write_text(
            "launchpad:\n"
            "  admin: admin\n"
            "  treasury: treasury\n"
            "  buy_fee_bps: 50\n"
            "  default_threshold_cents: 500000\n",
            encoding="utf-8",
        )
        cfg = load_config(path, env={"LAUNCHPAD_BUY_FEE_BPS": "75"})
        assert cfg.buy_fee_bps == 75
        assert cfg.default_threshold_cents == 500_000
        assert cfg.sell_fee_bps == 100

    def test_flat_file(self, tmp_path) -> None:
        path = tmp_path / "flat.yaml"
        path.write_text("admin: a\ntreasury: t\n", encoding="utf-8")
        assert load_config(path, env={}).admin == "a"

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ValueError):
            config_from_mapping({"admin": "a", "treasury": "t", "fee": 3})

    def test_non_mapping_rejected(self) -> None:
        with pytest.raises(TypeError):
            config_from_mapping(["admin"])  # type: ignore[arg-type]

    def test_loaded_config_drives_service(self, tmp_path) -> None:
        path = tmp_path / "launchpad.yaml"
        path.write_text("admin: admin\ntreasury: treasury\nbuy_fee_bps: 0\nsell_fee_bps: 0\n", encoding="utf-8")
        lp = Launchpad(load_config(path, env={}), InMemoryLedger(), clock=lambda: 0)
        assert lp.get_fees() == (0, 0)
        assert lp.get_admin() == "admin"
