"""
default_reset_quantity - weekly stock reset for a store catalog

Items with a ``default_reset_quantity`` attribute are reset to that
value, items with ``do_not_reset_quantity`` are left alone, and all
other items are reset to 0. Automatic resets follow the store's
open/closed cycle; a settings page allows manual resets.

Example:
    from default_reset_quantity import InMemoryCatalog, InMemoryFlagStore, Item
    from default_reset_quantity import evaluate, reset_quantities

    catalog = InMemoryCatalog([Item("1", stock=3, attributes={"default_reset_quantity": "5"})])
    flags = InMemoryFlagStore({"store_status": "closed"})
    outcome = evaluate(flags, lambda: reset_quantities(catalog))
"""

from .catalog import Catalog, InMemoryCatalog, load_catalog_csv
from .flag_store import FlagStore, InMemoryFlagStore, JsonFileFlagStore, StorageError
from .models import (
    Item,
    ResetReport,
    ResetState,
    StoreStatus,
    TriggerAction,
    TriggerOutcome,
    YesNo,
)
from .reset import reset_quantities, set_quantities
from .trigger import advance, evaluate

__version__ = "1.0.0"

__all__ = [
    "Catalog",
    "FlagStore",
    "InMemoryCatalog",
    "InMemoryFlagStore",
    "Item",
    "JsonFileFlagStore",
    "ResetReport",
    "ResetState",
    "StorageError",
    "StoreStatus",
    "TriggerAction",
    "TriggerOutcome",
    "YesNo",
    "advance",
    "evaluate",
    "load_catalog_csv",
    "reset_quantities",
    "set_quantities",
]
