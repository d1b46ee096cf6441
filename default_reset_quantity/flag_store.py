"""Persisted key/value flags.

The service owns ``auto_reset_quantities``, ``drq_should_run`` and
``drq_completed``. ``store_status`` is written by the store-status
owner and only read here, so every store implementation reads through
to its backing storage on each ``get``.

Implementations:
    InMemoryFlagStore   -- dev/testing
    JsonFileFlagStore   -- single JSON object on disk, shared with the
                           process that publishes ``store_status``
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from .models import ResetState, StoreStatus, YesNo

logger = logging.getLogger("drq.flag_store")

AUTO_RESET_KEY = "auto_reset_quantities"
SHOULD_RUN_KEY = "drq_should_run"
COMPLETED_KEY = "drq_completed"
STORE_STATUS_KEY = "store_status"

OWNED_KEYS = (AUTO_RESET_KEY, SHOULD_RUN_KEY, COMPLETED_KEY)


class StorageError(Exception):
    """Raised when the backing storage cannot be read or written."""


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------


class FlagStore(ABC):
    """Abstract interface for string-valued flags."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never written."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Write a value. Writing the current value is a no-op."""
        ...

    def snapshot(self) -> dict[str, str | None]:
        keys = (*OWNED_KEYS, STORE_STATUS_KEY)
        return {key: self.get(key) for key in keys}


# ---------------------------------------------------------------------------
# In-memory implementation (dev/testing)
# ---------------------------------------------------------------------------


class InMemoryFlagStore(FlagStore):
    """Ephemeral flag store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


# ---------------------------------------------------------------------------
# JSON file implementation
# ---------------------------------------------------------------------------


class JsonFileFlagStore(FlagStore):
    """Flags persisted as one JSON object.

    A missing file reads as empty. A file that is not a JSON object
    raises StorageError rather than being silently overwritten, since
    it may hold the externally owned ``store_status``.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read flag file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Flag file {self.path} does not hold a JSON object")
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=".flags-", suffix=".json"
            )
        except OSError as e:
            raise StorageError(f"Cannot write flag file {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            Path(tmp_path).unlink(missing_ok=True)
            raise StorageError(f"Cannot write flag file {self.path}: {e}") from e

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        if data.get(key) == value:
            return
        data[key] = value
        self._write(data)
        logger.debug("Flag %s set to %s in %s", key, value, self.path)


# ---------------------------------------------------------------------------
# Typed access
# ---------------------------------------------------------------------------


def read_state(flags: FlagStore, auto_reset_default: YesNo = YesNo.YES) -> ResetState:
    """Read all four flags into a ResetState. Never writes.

    Only an absent or empty switch takes ``auto_reset_default``; any
    other value but "yes" turns automatic resets off. Unreadable
    ``drq_should_run`` reads as no pending reset and unreadable
    ``drq_completed`` as already completed, so a corrupt flag can never
    arm or run a reset.
    """
    return ResetState(
        auto_reset=YesNo.parse(
            flags.get(AUTO_RESET_KEY) or None, auto_reset_default, invalid=YesNo.NO
        ),
        should_run=YesNo.parse(flags.get(SHOULD_RUN_KEY), invalid=YesNo.NO),
        completed=YesNo.parse(flags.get(COMPLETED_KEY), invalid=YesNo.YES),
        store_status=StoreStatus.parse(flags.get(STORE_STATUS_KEY)),
    )


def write_flag(flags: FlagStore, key: str, value: YesNo) -> bool:
    """Write ``value`` if it differs from what is stored. Returns True on change."""
    if flags.get(key) == value.value:
        return False
    flags.set(key, value.value)
    return True
