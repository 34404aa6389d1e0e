"""
EZPL protocol encoder -- serializes a label document for GoDEX printers.

Responsibility:
    ``render_label`` combines the printer header settings with the layout
    of a ``LabelContent`` into a ``LabelDocument``; ``encode_label`` turns
    that document into the EZPL text blob sent to the printer.

Document structure (one command per line, ``\\n`` separated, trailing
newline):

    ^XSETCUT,DOUBLECUT,0     cut mode
    ^Q60,3                   label length, gap (mm)
    ^W60                     label width (mm)
    ^H8                      darkness
    ^P1                      copies
    ^S4                      speed
    ^AD ^C1 ^R16 ~Q-16 ^O0 ^D0 ^E18 ~R255
    ^L                       start of label
    Dy2-me-dd / Th:m:s       firmware date/time formats
    Y120,5,Logo.Resize10     stored logo
    A{font},{x},{y},1,1,0,0E,{text}   one per DrawText
    E                        end of label

Invariants enforced:
    - Text is escaped with ``escape_text`` so that user data can never
      terminate a command line or inject a command.
    - The header and preamble order is fixed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from trace_labels.content import LabelContent
from trace_labels.layout import (
    DEFAULT_LAYOUT,
    DEFAULT_REGISTRY_NUMBER,
    DrawText,
    LayoutConstants,
    layout_label,
)

_ESCAPES = str.maketrans({
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "\0": "\\0",
    "\r": "\\r",
    "\n": "\\n",
})

DATE_FORMAT_COMMAND = "Dy2-me-dd"
TIME_FORMAT_COMMAND = "Th:m:s"
END_OF_LABEL = "E"


@dataclass(frozen=True)
class LabelHeader:
    """Printer job settings emitted before the label body."""

    copies: int = 1
    cut_mode: str = "DOUBLECUT"
    cut_offset: int = 0
    label_length: int = 60
    gap: int = 3
    label_width: int = 60
    darkness: int = 8
    speed: int = 4
    left_margin: int = 16
    vertical_offset: int = -16
    stop_position: int = 18
    logo_x: int = 120
    logo_y: int = 5
    logo_name: str | None = "Logo.Resize10"

    def commands(self) -> list[str]:
        return [
            f"^XSETCUT,{self.cut_mode},{self.cut_offset}",
            f"^Q{self.label_length},{self.gap}",
            f"^W{self.label_width}",
            f"^H{self.darkness}",
            f"^P{self.copies}",
            f"^S{self.speed}",
            "^AD",
            "^C1",
            f"^R{self.left_margin}",
            f"~Q{self.vertical_offset}",
            "^O0",
            "^D0",
            f"^E{self.stop_position}",
            "~R255",
            "^L",
        ]

    def preamble(self) -> list[str]:
        lines = [DATE_FORMAT_COMMAND, TIME_FORMAT_COMMAND]
        if self.logo_name:
            lines.append(f"Y{self.logo_x},{self.logo_y},{self.logo_name}")
        lines.extend([DATE_FORMAT_COMMAND, TIME_FORMAT_COMMAND])
        return lines


@dataclass(frozen=True)
class LabelDocument:
    """A complete label: header settings plus text items in print order."""

    header: LabelHeader
    items: tuple[DrawText, ...] = field(default_factory=tuple)


def escape_text(text: str) -> str:
    """Backslash-escape quotes, backslashes, NUL and line breaks."""
    return text.translate(_ESCAPES)


def encode_item(item: DrawText) -> str:
    return f"A{item.font},{item.x},{item.y},1,1,0,0E,{escape_text(item.text)}"


def encode_label(document: LabelDocument) -> str:
    """Serialize a document to EZPL text."""
    lines = document.header.commands()
    lines.extend(document.header.preamble())
    lines.extend(encode_item(item) for item in document.items)
    lines.append(END_OF_LABEL)
    return "\n".join(lines) + "\n"


def render_label(
    content: LabelContent,
    *,
    header: LabelHeader | None = None,
    layout: LayoutConstants = DEFAULT_LAYOUT,
    registry_number: str | None = DEFAULT_REGISTRY_NUMBER,
) -> LabelDocument:
    """Lay out ``content`` under ``header`` settings; the registry line is always present."""
    return LabelDocument(
        header=header or LabelHeader(),
        items=layout_label(content, layout, registry_number=registry_number),
    )
