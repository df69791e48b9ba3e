"""Tests for selection engine configuration.

Covers:
- Default values
- Loading from ZONE_SELECTION_* environment variables
- Type coercion (string env vars → int / bool / optional fields)
- Fail-fast range validation
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from zone_selection.core.config import ConfigValidationError, SelectionConfig


class TestSelectionConfigDefaults:
    """Verify default configuration values."""

    def test_default_mode(self) -> None:
        assert SelectionConfig().mode == "multiple"

    def test_default_unbounded_selections(self) -> None:
        assert SelectionConfig().max_selections is None

    def test_default_history(self) -> None:
        cfg = SelectionConfig()
        assert cfg.enable_history is True
        assert cfg.max_history_size == 50

    def test_default_batching(self) -> None:
        cfg = SelectionConfig()
        assert cfg.batch_updates is True
        assert cfg.debounce_ms == 0
        assert cfg.batching_active is False

    def test_default_persistence_disabled(self) -> None:
        cfg = SelectionConfig()
        assert cfg.persist_key == ""
        assert cfg.store_backend == "memory"
        assert cfg.store_location == ""

    def test_batching_active_needs_both_flags(self) -> None:
        assert SelectionConfig(debounce_ms=100).batching_active is True
        assert SelectionConfig(batch_updates=False, debounce_ms=100).batching_active is False

    def test_frozen_immutability(self) -> None:
        cfg = SelectionConfig()
        with pytest.raises(AttributeError):
            cfg.debounce_ms = 5  # type: ignore[misc]


class TestSelectionConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        """All env vars are read and coerced to correct types."""
        env = {
            "ZONE_SELECTION_MODE": "single",
            "ZONE_SELECTION_MAX_SELECTIONS": "4",
            "ZONE_SELECTION_ENABLE_HISTORY": "false",
            "ZONE_SELECTION_MAX_HISTORY_SIZE": "20",
            "ZONE_SELECTION_PERSIST_KEY": "parcels",
            "ZONE_SELECTION_BATCH_UPDATES": "0",
            "ZONE_SELECTION_DEBOUNCE_MS": "250",
            "ZONE_SELECTION_STORE_BACKEND": "file",
            "ZONE_SELECTION_STORE_LOCATION": "/var/lib/zones",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = SelectionConfig.from_env()

        assert cfg.mode == "single"
        assert cfg.max_selections == 4
        assert cfg.enable_history is False
        assert cfg.max_history_size == 20
        assert cfg.persist_key == "parcels"
        assert cfg.batch_updates is False
        assert cfg.debounce_ms == 250
        assert cfg.store_backend == "file"
        assert cfg.store_location == "/var/lib/zones"

    def test_defaults_when_env_missing(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = SelectionConfig.from_env()
        assert cfg == SelectionConfig()

    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_truthy_booleans(self, raw: str) -> None:
        with patch.dict(os.environ, {"ZONE_SELECTION_ENABLE_HISTORY": raw}, clear=True):
            assert SelectionConfig.from_env().enable_history is True

    def test_empty_boolean_uses_default(self) -> None:
        with patch.dict(os.environ, {"ZONE_SELECTION_BATCH_UPDATES": ""}, clear=True):
            assert SelectionConfig.from_env().batch_updates is True


class TestSelectionConfigValidation:
    """Fail-fast range validation."""

    def test_unknown_mode_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"ZONE_SELECTION_MODE": "lasso"}, clear=True),
            pytest.raises(ConfigValidationError, match="MODE"),
        ):
            SelectionConfig.from_env()

    def test_max_selections_zero_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"ZONE_SELECTION_MAX_SELECTIONS": "0"}, clear=True),
            pytest.raises(ConfigValidationError, match="MAX_SELECTIONS"),
        ):
            SelectionConfig.from_env()

    def test_history_size_zero_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"ZONE_SELECTION_MAX_HISTORY_SIZE": "0"}, clear=True),
            pytest.raises(ConfigValidationError, match="must be >= 1"),
        ):
            SelectionConfig.from_env()

    def test_negative_debounce_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="DEBOUNCE_MS"):
            SelectionConfig(debounce_ms=-5).validate()

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="STORE_BACKEND"):
            SelectionConfig(store_backend="redis").validate()

    def test_validate_returns_self(self) -> None:
        cfg = SelectionConfig(mode="range")
        assert cfg.validate() is cfg

    def test_non_numeric_env_raises_value_error(self) -> None:
        with (
            patch.dict(os.environ, {"ZONE_SELECTION_DEBOUNCE_MS": "abc"}, clear=True),
            pytest.raises(ValueError),
        ):
            SelectionConfig.from_env()

    def test_error_contains_key_and_value(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            SelectionConfig(max_history_size=-2).validate()
        assert exc_info.value.key == "MAX_HISTORY_SIZE"
        assert exc_info.value.value == -2
        assert exc_info.value.code == "CONFIG_VALIDATION_FAILED"
