"""Printing module for barkassa - thermal receipt generation."""

from barkassa.printing.encoder import DRAWER_PULSE, EscPosEncoder
from barkassa.printing.layout import (
    LINE_WIDTH,
    Alignment,
    Cut,
    Feed,
    ReceiptLayout,
    Rule,
    TextLine,
    TextSize,
    columns,
)
from barkassa.printing.manager import PrintManager
from barkassa.printing.preview import render_preview
from barkassa.printing.receipt import ReceiptFormatter, format_amount

__all__ = [
    # Formatter
    "ReceiptFormatter",
    "format_amount",
    "render_preview",
    # Layout
    "LINE_WIDTH",
    "Alignment",
    "Cut",
    "Feed",
    "ReceiptLayout",
    "Rule",
    "TextLine",
    "TextSize",
    "columns",
    # Device
    "DRAWER_PULSE",
    "EscPosEncoder",
    "PrintManager",
]
