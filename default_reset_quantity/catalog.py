"""Catalog access.

The catalog is owned by the commerce host. This module defines the
three queries the reset needs and an in-memory implementation that can
be seeded from a CSV export.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import replace
from pathlib import Path

import pandas as pd

from .models import DEFAULT_RESET_ATTRIBUTE, DO_NOT_RESET_ATTRIBUTE, Item

logger = logging.getLogger("drq.catalog")

# Cell values that do not count as a do-not-reset marker in CSV exports
_FALSE_MARKERS = {"", "0", "no", "false", "n", "nan", "none"}


class Catalog(ABC):
    """Abstract interface over the host's product catalog."""

    @abstractmethod
    def iter_items(self, exclude_marker: str | None = None) -> Iterator[Item]:
        """Yield each item once, skipping items that carry ``exclude_marker``."""
        ...

    @abstractmethod
    def attribute(self, item_id: str, name: str) -> str | None:
        """Return the value of attribute ``name`` on an item, or None."""
        ...

    @abstractmethod
    def set_stock(self, item_id: str, quantity: int) -> None:
        ...

    @abstractmethod
    def get_stock(self, item_id: str) -> int:
        ...

    def iter_resettable(self) -> Iterator[Item]:
        """Items a reset should touch."""
        return self.iter_items(exclude_marker=DO_NOT_RESET_ATTRIBUTE)

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_items())


class InMemoryCatalog(Catalog):
    """Catalog held in a dict keyed by item id.

    Items are copied on the way in and out so stock only changes
    through ``set_stock``.
    """

    def __init__(self, items: Iterable[Item] = ()) -> None:
        self._items: dict[str, Item] = {}
        for item in items:
            self.add(item)

    def add(self, item: Item) -> None:
        if item.id in self._items:
            logger.warning("Duplicate catalog item %s, keeping the last one", item.id)
        self._items[item.id] = replace(item, attributes=dict(item.attributes))

    def iter_items(self, exclude_marker: str | None = None) -> Iterator[Item]:
        for item in list(self._items.values()):
            if exclude_marker and exclude_marker in item.attributes:
                continue
            yield replace(item, attributes=dict(item.attributes))

    def attribute(self, item_id: str, name: str) -> str | None:
        return self._get(item_id).attributes.get(name)

    def set_stock(self, item_id: str, quantity: int) -> None:
        if quantity < 0:
            raise ValueError(f"Stock quantity cannot be negative: {quantity}")
        self._get(item_id).stock = int(quantity)

    def get_stock(self, item_id: str) -> int:
        return self._get(item_id).stock

    def __len__(self) -> int:
        return len(self._items)

    def _get(self, item_id: str) -> Item:
        try:
            return self._items[item_id]
        except KeyError:
            raise KeyError(f"Unknown catalog item: {item_id}") from None


# ---------------------------------------------------------------------------
# CSV seeding
# ---------------------------------------------------------------------------


def load_catalog_csv(path: str | Path) -> InMemoryCatalog:
    """Build an InMemoryCatalog from a CSV export.

    Columns:
        id                      -- required
        stock                   -- optional, defaults to 0
        default_reset_quantity  -- optional, blank means none
        do_not_reset_quantity   -- optional marker, blank/0/no/false means absent

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the id column is missing or a stock value is not an integer.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip().lower() for c in df.columns]
    if "id" not in df.columns:
        raise ValueError(f"Catalog file {path} has no 'id' column")

    items = []
    for row in df.to_dict(orient="records"):
        item_id = row["id"].strip()
        if not item_id:
            continue

        raw_stock = row.get("stock", "").strip()
        try:
            stock = int(float(raw_stock)) if raw_stock else 0
        except ValueError:
            raise ValueError(f"Invalid stock {raw_stock!r} for item {item_id}") from None

        attributes: dict[str, str] = {}
        default_qty = row.get(DEFAULT_RESET_ATTRIBUTE, "").strip()
        if default_qty:
            attributes[DEFAULT_RESET_ATTRIBUTE] = default_qty
        marker = row.get(DO_NOT_RESET_ATTRIBUTE, "").strip()
        if marker.lower() not in _FALSE_MARKERS:
            attributes[DO_NOT_RESET_ATTRIBUTE] = marker

        items.append(Item(id=item_id, stock=stock, attributes=attributes))

    logger.info("Loaded %d catalog items from %s", len(items), path)
    return InMemoryCatalog(items)
