"""
trace_labels -- label content, layout and EZPL encoding.

Pipeline:

    build_label_content(request)  -> LabelContent
    layout_label(content)         -> tuple[DrawText, ...]
    render_label(content)         -> LabelDocument
    encode_label(document)        -> EZPL text

``trace_labels.service.LabelService`` ties the pipeline to the lot store,
the configuration and a printer sink.
"""

from trace_labels.content import LabelContent, build_label_content
from trace_labels.encoder import (
    LabelDocument,
    LabelHeader,
    encode_label,
    escape_text,
    render_label,
)
from trace_labels.layout import (
    DrawText,
    LayoutConstants,
    centered_x,
    layout_label,
    lot_code_x,
    round_half_away,
    split_title,
    wrap_conservation,
    wrap_ingredients,
)
from trace_labels.printer import LprPrinterSink, PrinterSink

__all__ = [
    "DrawText",
    "LabelContent",
    "LabelDocument",
    "LabelHeader",
    "LayoutConstants",
    "LprPrinterSink",
    "PrinterSink",
    "build_label_content",
    "centered_x",
    "encode_label",
    "escape_text",
    "layout_label",
    "lot_code_x",
    "render_label",
    "round_half_away",
    "split_title",
    "wrap_conservation",
    "wrap_ingredients",
]
