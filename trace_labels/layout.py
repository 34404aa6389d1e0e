"""
Text layout engine -- positions every text element of a label.

Responsibility:
    Turns a ``LabelContent`` into an ordered tuple of ``DrawText`` items:
    the centred product title (one or two lines), the wrapped ingredient
    block, the allergen line, the conservation block, the type-specific
    footer, the lot code and the registry number.

Architecture position:
    Labels > Layout -- pure functional core, zero I/O.  All geometry comes
    from ``LayoutConstants`` so that a different label stock can be
    configured without code changes.

Invariants enforced:
    - Rounding is half away from zero (Decimal ROUND_HALF_UP), never
      banker's rounding.
    - Wrapped ingredient lines never exceed the wrap width; words longer
      than the width are split into width-sized chunks.
    - Conservation lines each get their own row; the block is anchored so
      its last line sits at ``conservation_y``.
    - Layout never raises on empty or odd text; empty sections emit
      nothing.

Positions are printer dots on the 60 mm stock (8 dots/mm).
"""

from __future__ import annotations

import math
import re
import textwrap
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from trace_kernel.domain.types import ElaborationType
from trace_labels.content import LabelContent

INGREDIENTS_CAPTION = "INGREDIENTES"
ALLERGENS_TEMPLATE = "ALERGENOS: ({allergens})"
BEST_BEFORE_CAPTION = "Consumir preferentemente antes del"
LOT_CAPTION = "Lote"
REGISTRY_TEMPLATE = "Reg Nº {registry}"
DEFAULT_REGISTRY_NUMBER = "RSX-0001-0001"

# (first caption, second caption) for the two-row date footers
DATE_FOOTERS: dict[ElaborationType, tuple[str, str]] = {
    ElaborationType.PACKAGING: ("Fecha de envasado:", "Fecha de caducidad:"),
    ElaborationType.FREEZING: ("Fecha de congelado:", "Fecha de consumo preferente:"),
}

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class DrawText:
    """One text element: font letter, position in dots, raw (unescaped) text."""

    font: str
    x: int
    y: int
    text: str


@dataclass(frozen=True)
class LayoutConstants:
    """Geometry and wrapping heuristics of the label stock."""

    # Title (font D)
    title_char_width: float = 11.5
    title_max_width: float = 220.0
    title_center_x: float = 224.0
    title_glyph_advance: float = 22.5
    title_single_y: int = 175
    title_first_y: int = 150
    title_line_gap: int = 35

    # Body text (font A)
    body_x: int = 10
    row_height: int = 16
    ingredients_width: int = 56
    header_x: int = 162
    header_y: int = 235
    header_fallback_y: int = 215
    header_gap: int = 25
    allergen_gap: int = 5
    allergen_advance: int = 22
    allergen_limit: int = 350
    conservation_width: int = 48
    conservation_y: int = 360

    # Footer
    best_before_y: int = 380
    expiry_x: int = 90
    expiry_y: int = 400
    date_value_x: int = 160
    first_date_y: int = 385
    second_date_y: int = 405

    # Lot code (font B)
    lot_caption_x: int = 350
    lot_caption_y: int = 380
    lot_y: int = 400
    lot_char_width: float = 12.0
    lot_center_x: float = 361.0
    lot_min_x: int = 40
    lot_max_x: int = 350

    registry_x: int = 146
    registry_y: int = 435


DEFAULT_LAYOUT = LayoutConstants()


def _dec(value: float | int) -> Decimal:
    return Decimal(str(value))


def round_half_away(value: Decimal | float | int) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    if not isinstance(value, Decimal):
        value = _dec(value)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_title(title: str, constants: LayoutConstants = DEFAULT_LAYOUT) -> list[str]:
    """
    Break a title into one or two centred lines.

    A title whose estimated width fits goes on one line.  Otherwise it is
    split at the space nearest the middle (the left space wins a tie),
    or exactly at ``ceil(len / 2)`` when it has no space at all.
    """
    if not title.strip():
        return []
    length = len(title)
    if _dec(length) * _dec(constants.title_char_width) <= _dec(constants.title_max_width):
        return [title.strip()]

    half = length // 2
    left = title.rfind(" ", 0, half + 1)
    right = title.find(" ", half)

    if left != -1 and right != -1:
        split_at = left if half - left <= right - half else right
    elif left != -1:
        split_at = left
    elif right != -1:
        split_at = right
    else:
        split_at = math.ceil(length / 2)

    skip = 1 if title[split_at:split_at + 1] == " " else 0
    return [title[:split_at].strip(), title[split_at + skip:].strip()]


def centered_x(text: str, constants: LayoutConstants = DEFAULT_LAYOUT) -> int:
    """Left x of a title line centred on ``title_center_x``; may be negative."""
    offset = _dec(len(text)) / 2 * _dec(constants.title_glyph_advance)
    return round_half_away(_dec(constants.title_center_x) - offset)


def wrap_ingredients(text: str, width: int = 56) -> list[str]:
    """
    Wrap ingredient text into lines of at most ``width`` characters.

    Paragraphs are separated by a blank line; inside a paragraph all
    whitespace collapses to single spaces.  Each paragraph is followed by
    an empty spacer line except the last.
    """
    lines: list[str] = []
    text = text.replace("\r\n", "\n").replace("\r", "\n")

    for paragraph in text.split("\n\n"):
        paragraph = _WHITESPACE.sub(" ", paragraph).strip()
        if not paragraph:
            lines.append("")
            continue

        current = ""
        for word in paragraph.split(" "):
            if len(word) > width:
                if current:
                    lines.append(current)
                    current = ""
                lines.extend(word[pos:pos + width] for pos in range(0, len(word), width))
                continue
            if not current:
                current = word
            elif len(current) + 1 + len(word) <= width:
                current = f"{current} {word}"
            else:
                lines.append(current)
                current = word
        if current:
            lines.append(current)
        lines.append("")

    if lines and lines[-1] == "":
        lines.pop()
    return lines


def wrap_conservation(text: str, width: int = 48) -> list[str]:
    """Greedy word wrap that keeps long words whole and drops blank lines."""
    lines: list[str] = []
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    for segment in text.split("\n"):
        wrapped = textwrap.wrap(
            segment,
            width=width,
            break_long_words=False,
            break_on_hyphens=False,
        )
        lines.extend(line.strip() for line in wrapped if line.strip())
    return lines


def lot_code_x(code: str, constants: LayoutConstants = DEFAULT_LAYOUT) -> int:
    """Left x of the lot code centred on ``lot_center_x``, clamped to the stock."""
    half = _dec(len(code)) * _dec(constants.lot_char_width) / 2
    x = round_half_away(_dec(constants.lot_center_x) - half)
    return max(constants.lot_min_x, min(constants.lot_max_x, x))


def _title_items(title: str, c: LayoutConstants) -> list[DrawText]:
    lines = split_title(title, c)
    if len(lines) == 1:
        return [DrawText("D", centered_x(lines[0], c), c.title_single_y, lines[0])]
    return [
        DrawText("D", centered_x(line, c), c.title_first_y + i * c.title_line_gap, line)
        for i, line in enumerate(lines)
    ]


def _footer_items(content: LabelContent, c: LayoutConstants) -> list[DrawText]:
    captions = DATE_FOOTERS.get(content.footer_type)
    if captions is None:
        return [
            DrawText("A", c.body_x, c.best_before_y, BEST_BEFORE_CAPTION),
            DrawText("B", c.expiry_x, c.expiry_y, content.expiry),
        ]
    first, second = captions
    return [
        DrawText("A", c.body_x, c.first_date_y, first),
        DrawText("A", c.date_value_x, c.first_date_y, content.elaboration_date),
        DrawText("A", c.body_x, c.second_date_y, second),
        DrawText("A", c.date_value_x, c.second_date_y, content.expiry),
    ]


def layout_label(
    content: LabelContent,
    constants: LayoutConstants = DEFAULT_LAYOUT,
    *,
    registry_number: str | None = DEFAULT_REGISTRY_NUMBER,
) -> tuple[DrawText, ...]:
    """
    Compute every text element of a label, in print order.

    Args:
        content: Normalized label content.
        constants: Label stock geometry.
        registry_number: Sanitary registry for the closing "Reg Nº" line;
            None or blank prints ``DEFAULT_REGISTRY_NUMBER``.
    """
    c = constants
    items = _title_items(content.product_name, c)

    ingredient_lines = (
        wrap_ingredients(content.ingredients, c.ingredients_width)
        if content.ingredients
        else []
    )

    # Single static adjustment: raise the header when the allergen line
    # would fall below the allergen limit.
    header_y = c.header_y
    predicted = header_y + c.header_gap + c.row_height * len(ingredient_lines) + c.allergen_gap
    if content.allergens and predicted > c.allergen_limit:
        header_y = c.header_fallback_y

    items.append(DrawText("A", c.header_x, header_y, INGREDIENTS_CAPTION))

    y = header_y + c.header_gap
    for line in ingredient_lines:
        clean = line.strip()
        if clean:
            items.append(DrawText("A", c.body_x, y, clean))
        y += c.row_height

    if content.allergens:
        y += c.allergen_gap
        items.append(
            DrawText("A", c.body_x, y, ALLERGENS_TEMPLATE.format(allergens=content.allergens))
        )
        y += c.allergen_advance

    conservation = wrap_conservation(content.conservation, c.conservation_width)
    last = len(conservation) - 1
    for i, line in enumerate(conservation):
        items.append(
            DrawText("A", c.body_x, c.conservation_y - (last - i) * c.row_height, line)
        )

    items.extend(_footer_items(content, c))

    if content.lot_code:
        items.append(DrawText("A", c.lot_caption_x, c.lot_caption_y, LOT_CAPTION))
        items.append(DrawText("B", lot_code_x(content.lot_code, c), c.lot_y, content.lot_code))

    registry = (registry_number or "").strip() or DEFAULT_REGISTRY_NUMBER
    items.append(
        DrawText("A", c.registry_x, c.registry_y, REGISTRY_TEMPLATE.format(registry=registry))
    )

    return tuple(items)
