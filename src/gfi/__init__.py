"""gfi: get file information, then diff or sum the results.

Scans directory trees into inventories (path, size, modification time, mode,
kind) and reconciles two or more inventories, or key/value tables, into
field-level change rows.

Public API:
- InventoryBuilder / TreeWalker
- Reconciler
- ColumnAggregator
- load_inventory / write_inventory
"""

from .config import GfiConfig, load_config
from .models import FileSystemEntry, Inventory, ResultTable
from .reconcile.aggregate import ColumnAggregator
from .reconcile.engine import Reconciler
from .scanner.builder import InventoryBuilder
from .scanner.walker import TreeWalker
from .snapshot import load_inventory, write_inventory

__all__ = [
    "GfiConfig",
    "load_config",
    "FileSystemEntry",
    "Inventory",
    "ResultTable",
    "InventoryBuilder",
    "TreeWalker",
    "Reconciler",
    "ColumnAggregator",
    "load_inventory",
    "write_inventory",
]
