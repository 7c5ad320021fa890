from .aggregate import ColumnAggregator
from .engine import Reconciler
from .sorting import parse_sort_columns, sort_rows

__all__ = ["ColumnAggregator", "Reconciler", "parse_sort_columns", "sort_rows"]
