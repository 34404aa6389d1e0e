"""
Selectors -- read-only query layer of the traceability kernel.
"""

from trace_kernel.selectors.base import BaseSelector
from trace_kernel.selectors.catalog_selector import CatalogSelector
from trace_kernel.selectors.lot_selector import LotSelector

__all__ = [
    "BaseSelector",
    "CatalogSelector",
    "LotSelector",
]
