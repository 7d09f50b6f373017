from __future__ import annotations

import pytest

from launchpad.core.errors import ValidationError
from launchpad.core.oracle import init_oracle_state, is_fresh, update_price


def test_init_requires_positive_price() -> None:
    with pytest.raises(ValidationError):
        init_oracle_state(0, "oracle")


def test_update_records_price_source_and_time() -> None:
    state = init_oracle_state(1_000, "oracle", timestamp=10)
    new = update_price(state, 1_250, "feeder", 20)
    assert (new.price_usd_cents, new.source_address, new.last_update_timestamp) == (1_250, "feeder", 20)
    assert state.price_usd_cents == 1_000


def test_update_rejects_non_positive_price() -> None:
    state = init_oracle_state(1_000, "oracle")
    with pytest.raises(ValidationError):
        update_price(state, 0, "oracle", 1)
    with pytest.raises(ValidationError):
        update_price(state, -5, "oracle", 1)


def test_update_rejects_empty_source() -> None:
    with pytest.raises(ValidationError):
        update_price(init_oracle_state(1_000, "oracle"), 1_000, "", 1)


class TestFreshness:
    def test_within_window(self) -> None:
        state = init_oracle_state(1_000, "oracle", timestamp=100, max_staleness_seconds=60)
        assert is_fresh(state, 100)
        assert is_fresh(state, 160)

    def test_stale(self) -> None:
        state = init_oracle_state(1_000, "oracle", timestamp=100, max_staleness_seconds=60)
        assert not is_fresh(state, 161)

    def test_future_update_is_not_fresh(self) -> None:
        state = init_oracle_state(1_000, "oracle", timestamp=500)
        assert not is_fresh(state, 100)
