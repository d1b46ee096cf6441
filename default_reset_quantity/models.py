"""Domain models for the default reset quantity service.

Flag values live as plain strings in the flag store ("yes"/"no",
"open"/"closed"); inside the service they are always one of the
enumerations below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger("drq.models")

# Catalog attribute names
DEFAULT_RESET_ATTRIBUTE = "default_reset_quantity"
DO_NOT_RESET_ATTRIBUTE = "do_not_reset_quantity"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class YesNo(str, Enum):
    """Two-valued flag."""

    YES = "yes"
    NO = "no"

    @classmethod
    def parse(
        cls,
        raw: str | None,
        default: YesNo | None = None,
        invalid: YesNo | None = None,
    ) -> YesNo | None:
        """Parse a stored flag value.

        Absent values return ``default``. Values other than exactly
        "yes" or "no" return ``invalid`` and are logged.
        """
        if raw is None:
            return default
        try:
            return cls(raw)
        except ValueError:
            logger.warning("Unrecognised yes/no flag value %r, using %s", raw, invalid)
            return invalid


class StoreStatus(str, Enum):
    """Store open/closed signal written by the store-status owner."""

    OPEN = "open"
    CLOSED = "closed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str | None) -> StoreStatus | None:
        """None means the signal is missing; unrecognised text is UNKNOWN."""
        if raw is None:
            return None
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN


class TriggerAction(str, Enum):
    """What a single trigger evaluation did."""

    DISABLED = "disabled"
    INTEGRATION_INACTIVE = "integration_inactive"
    FAIL_CLOSED = "fail_closed"
    ARMED = "armed"
    REARMED = "rearmed"
    RESET = "reset"
    IDLE = "idle"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@dataclass
class Item:
    """A catalog item.

    ``attributes`` holds product attributes by name. The do-not-reset
    marker counts by presence alone; the default reset quantity is the
    attribute's value.
    """

    id: str
    stock: int = 0
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def do_not_reset(self) -> bool:
        return DO_NOT_RESET_ATTRIBUTE in self.attributes


# ---------------------------------------------------------------------------
# Flag state and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResetState:
    """Snapshot of the four flags, read once per evaluation.

    ``should_run`` and ``completed`` are None when the flag has never
    been written.
    """

    auto_reset: YesNo
    should_run: YesNo | None
    completed: YesNo | None
    store_status: StoreStatus | None


@dataclass
class ResetReport:
    """Counts from one reset (or debug set) run."""

    custom: int = 0
    zeroed: int = 0
    set_to_value: int = 0

    @property
    def total(self) -> int:
        return self.custom + self.zeroed + self.set_to_value


@dataclass
class TriggerOutcome:
    action: TriggerAction
    report: ResetReport | None = None

    @property
    def ran_reset(self) -> bool:
        return self.action is TriggerAction.RESET
