"""
Typed label configuration (``trace_config.schema``).

All configuration objects are frozen dataclasses.  Printer header and
layout geometry reuse the types their consumers already define
(``LabelHeader`` in the encoder, ``LayoutConstants`` in the layout
engine) so that a parsed config can be handed to them unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from trace_labels.encoder import LabelHeader
from trace_labels.layout import LayoutConstants


@dataclass(frozen=True)
class LabelSettings:
    """Effective label settings after defaults, operator file and environment."""

    registry_number: str
    default_days_valid: int
    default_conservation: str
    printer_device: str
    header: LabelHeader = field(default_factory=LabelHeader)
    layout: LayoutConstants = field(default_factory=LayoutConstants)
    source: str = ""
    checksum: str = ""
