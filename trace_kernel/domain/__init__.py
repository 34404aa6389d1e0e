"""
trace_kernel.domain -- Pure types, lot code generation and the clock.

ZERO I/O.  All types are frozen dataclasses.
"""

from trace_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from trace_kernel.domain.lot_code import LotCodeParts, next_lot_code, parse_lot_code
from trace_kernel.domain.types import (
    CompositionEntryInput,
    CompositionEntryRecord,
    CreatedLot,
    ElaborationRecord,
    ElaborationType,
    LotClosureRecord,
    LotData,
    LotRecord,
    ParentResolution,
    ParentStatus,
    parse_composition_entry,
    parse_lot_data,
)

__all__ = [
    "Clock",
    "CompositionEntryInput",
    "CompositionEntryRecord",
    "CreatedLot",
    "DeterministicClock",
    "ElaborationRecord",
    "ElaborationType",
    "LotClosureRecord",
    "LotCodeParts",
    "LotData",
    "LotRecord",
    "ParentResolution",
    "ParentStatus",
    "SystemClock",
    "next_lot_code",
    "parse_composition_entry",
    "parse_lot_code",
    "parse_lot_data",
]
