"""Quantity reset operations.

Items with a ``default_reset_quantity`` attribute are set to that
value, every other item is set to 0, and items carrying
``do_not_reset_quantity`` are never fetched.
"""

from __future__ import annotations

import logging

from .catalog import Catalog
from .models import DEFAULT_RESET_ATTRIBUTE, ResetReport

logger = logging.getLogger("drq.reset")

DEBUG_SET_QUANTITY = 100


def parse_reset_quantity(raw: str | int | None) -> int | None:
    """Interpret a default reset quantity attribute value.

    Returns a positive integer, or None when the value is missing,
    non-numeric, fractional, or not positive.
    """
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    text = str(raw).strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not value.is_integer() or value <= 0:
        return None
    return int(value)


def reset_quantities(catalog: Catalog) -> ResetReport:
    """Reset stock of every resettable item to its default (or 0)."""
    report = ResetReport()
    for item in list(catalog.iter_resettable()):
        raw = catalog.attribute(item.id, DEFAULT_RESET_ATTRIBUTE)
        quantity = parse_reset_quantity(raw)
        if quantity is not None:
            catalog.set_stock(item.id, quantity)
            report.custom += 1
        else:
            if raw is not None:
                logger.warning(
                    "Item %s has unusable default reset quantity %r, resetting to 0",
                    item.id,
                    raw,
                )
            catalog.set_stock(item.id, 0)
            report.zeroed += 1

    logger.info(
        "Reset quantities: %d to default value, %d to zero", report.custom, report.zeroed
    )
    return report


def set_quantities(catalog: Catalog, quantity: int = DEBUG_SET_QUANTITY) -> ResetReport:
    """Set every item to ``quantity``, ignoring attributes.

    Debug/test only.
    """
    report = ResetReport()
    for item in list(catalog.iter_items()):
        catalog.set_stock(item.id, quantity)
        report.set_to_value += 1
    logger.warning("Debug set: %d items set to quantity %d", report.set_to_value, quantity)
    return report
