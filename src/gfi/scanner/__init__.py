from .builder import InventoryBuilder, ScanStats
from .pool import WorkerPool
from .walker import TreeWalker

__all__ = ["InventoryBuilder", "ScanStats", "TreeWalker", "WorkerPool"]
