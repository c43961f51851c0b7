"""Resource catalog and selection.

Classes:
    Catalog: In-memory view of a discovered inventory
    Selector: Walks a catalog and folds chosen records into a DeletionManifest
    Enricher: Best-effort descriptive lookups for records
"""

from __future__ import annotations

__all__ = [
    "Catalog",
    "MalformedInventory",
    "load_inventory",
    "Enricher",
    "Selector",
    "SelectionStrategy",
    "InteractiveStrategy",
    "ForcedStrategy",
    "PredicateStrategy",
]

from .inventory import Catalog, MalformedInventory, load_inventory
from .selector import (
    Enricher,
    ForcedStrategy,
    InteractiveStrategy,
    PredicateStrategy,
    SelectionStrategy,
    Selector,
)
