"""Tests for configuration loading and validation."""

import logging
from dataclasses import replace

import pytest

from assignment_engine.config import (
    ApiConfig,
    AppConfig,
    ResolutionConfig,
    _safe_float,
    _safe_int,
    _validate_config,
)
from assignment_engine.logging_context import CycleIdFilter, get_cycle_id, set_cycle_id


def config_with(**resolution) -> AppConfig:
    return replace(AppConfig(), resolution=replace(ResolutionConfig(), **resolution))


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_default_day_window(self):
        res = ResolutionConfig()
        assert (res.day_start_hour, res.day_end_hour) == (8, 20)

    def test_lookup_timeout_must_be_positive(self):
        with pytest.raises(ValueError, match="LOOKUP_TIMEOUT_SEC"):
            _validate_config(config_with(lookup_timeout_sec=0))

    def test_geocode_timeout_must_be_positive(self):
        with pytest.raises(ValueError, match="GEOCODE_TIMEOUT_SEC"):
            _validate_config(config_with(geocode_timeout_sec=-1.0))

    def test_day_window_must_be_ordered(self):
        with pytest.raises(ValueError, match="DAY_START_HOUR"):
            _validate_config(config_with(day_start_hour=20, day_end_hour=8))

    def test_day_window_within_day(self):
        with pytest.raises(ValueError, match="DAY_END_HOUR"):
            _validate_config(config_with(day_end_hour=25))

    def test_next_available_limit_at_least_one(self):
        with pytest.raises(ValueError, match="NEXT_AVAILABLE_LIMIT"):
            _validate_config(config_with(next_available_limit=0))

    def test_negative_cache_ttl(self):
        with pytest.raises(ValueError, match="BULK_CACHE_TTL_SEC"):
            _validate_config(config_with(bulk_cache_ttl_sec=-5))

    def test_empty_base_url(self):
        config = replace(AppConfig(), api=replace(ApiConfig(), base_url=""))
        with pytest.raises(ValueError, match="AVAILABILITY_API_BASE_URL"):
            _validate_config(config)

    def test_safe_int_parsing(self):
        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_float_parsing(self):
        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)

    def test_safe_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("PA_TEST_BAD_INT", "ten")
        with pytest.raises(ValueError, match="PA_TEST_BAD_INT"):
            _safe_int("PA_TEST_BAD_INT", "1")


class TestCycleLogging:
    def test_filter_attaches_cycle_id(self):
        set_cycle_id("cycle-42")
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
        assert CycleIdFilter().filter(record)
        assert record.cycle_id == "cycle-42"
        assert get_cycle_id() == "cycle-42"
