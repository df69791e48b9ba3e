"""Selection engine configuration loaded from environment variables.

All configuration values have sensible defaults.  Scalar engine options
live here; the zone list, constraints, callbacks and collaborators are
passed to ``SelectionEngine`` directly.

Fail-fast validation:
    ``from_env()`` and ``validate()`` raise ``ConfigValidationError`` if
    any value is out of its valid range, so a bad deployment setting is
    caught at startup rather than on the first selection.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from zone_selection.core.constants import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_MAX_HISTORY_SIZE,
    DEFAULT_STORE_BACKEND,
    ENV_PREFIX,
)
from zone_selection.core.exceptions import ValidationError

VALID_MODES = ("single", "multiple", "range")
VALID_STORE_BACKENDS = ("memory", "file", "blob")

_TRUE_VALUES = ("1", "true", "yes", "on")


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class SelectionConfig:
    """Immutable engine configuration.

    Attributes:
        mode: Initial selection mode (``single``, ``multiple`` or ``range``).
        max_selections: Upper bound on the selection size; ``None`` is
            unbounded.  Overrides ``SelectionConstraints.max_selections``.
        enable_history: Record committed states for undo/redo.
        max_history_size: Snapshot capacity of the history stack.
        persist_key: Store key for the persisted selection order; empty
            disables persistence.
        batch_updates: Coalesce notifications inside the debounce window.
        debounce_ms: Debounce window in milliseconds (0 = immediate).
        store_backend: Store backend name for ``get_store``.
        store_location: Directory (file backend) or container (blob backend).
    """

    mode: str = "multiple"
    max_selections: int | None = None
    enable_history: bool = True
    max_history_size: int = DEFAULT_MAX_HISTORY_SIZE
    persist_key: str = ""
    batch_updates: bool = True
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    store_backend: str = DEFAULT_STORE_BACKEND
    store_location: str = ""

    def validate(self) -> SelectionConfig:
        """Validate ranges and return ``self`` for chaining.

        Raises:
            ConfigValidationError: If any value is out of range.
        """
        _validate(self)
        return self

    @property
    def batching_active(self) -> bool:
        """Whether notifications are deferred through the debounce timer."""
        return self.batch_updates and self.debounce_ms > 0

    @classmethod
    def from_env(cls) -> SelectionConfig:
        """Load and validate configuration from environment variables.

        Every variable is prefixed with ``ZONE_SELECTION_`` (for example
        ``ZONE_SELECTION_DEBOUNCE_MS``).

        Raises:
            ConfigValidationError: If a value is out of range.
            ValueError: If a numeric variable cannot be parsed
                (e.g. ``ZONE_SELECTION_DEBOUNCE_MS=abc``).
        """
        max_selections_raw = _env("MAX_SELECTIONS", "")
        config = cls(
            mode=_env("MODE", "multiple"),
            max_selections=int(max_selections_raw) if max_selections_raw else None,
            enable_history=_env_bool("ENABLE_HISTORY", default=True),
            max_history_size=int(_env("MAX_HISTORY_SIZE", str(DEFAULT_MAX_HISTORY_SIZE))),
            persist_key=_env("PERSIST_KEY", ""),
            batch_updates=_env_bool("BATCH_UPDATES", default=True),
            debounce_ms=int(_env("DEBOUNCE_MS", str(DEFAULT_DEBOUNCE_MS))),
            store_backend=_env("STORE_BACKEND", DEFAULT_STORE_BACKEND),
            store_location=_env("STORE_LOCATION", ""),
        )
        _validate(config)
        return config


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, *, default: bool) -> bool:
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _validate(config: SelectionConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.mode not in VALID_MODES:
        raise ConfigValidationError(
            "MODE",
            config.mode,
            f"must be one of {', '.join(VALID_MODES)}",
        )

    if config.max_selections is not None and config.max_selections < 1:
        raise ConfigValidationError(
            "MAX_SELECTIONS",
            config.max_selections,
            "must be >= 1 when set",
        )

    if config.max_history_size < 1:
        raise ConfigValidationError(
            "MAX_HISTORY_SIZE",
            config.max_history_size,
            "must be >= 1 (snapshots)",
        )

    if config.debounce_ms < 0:
        raise ConfigValidationError(
            "DEBOUNCE_MS",
            config.debounce_ms,
            "must be >= 0 (milliseconds)",
        )

    if config.store_backend not in VALID_STORE_BACKENDS:
        raise ConfigValidationError(
            "STORE_BACKEND",
            config.store_backend,
            f"must be one of {', '.join(VALID_STORE_BACKENDS)}",
        )
