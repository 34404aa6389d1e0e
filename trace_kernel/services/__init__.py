"""
Services -- write side of the traceability kernel.

Services flush within the caller's session and never commit.
"""

from trace_kernel.services.base import BaseService
from trace_kernel.services.catalog_service import CatalogService
from trace_kernel.services.closure_service import ClosureService
from trace_kernel.services.lot_service import LotService

__all__ = [
    "BaseService",
    "CatalogService",
    "ClosureService",
    "LotService",
]
