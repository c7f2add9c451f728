"""Plain-text receipt preview.

Renders the same directive list the printer receives, for screens and logs.
"""

from typing import Iterable, List

from barkassa.printing.layout import (
    LINE_WIDTH,
    Alignment,
    Cut,
    Directive,
    Feed,
    ReceiptLayout,
    Rule,
    TextLine,
    TextSize,
    separator_text,
)


def preview_lines(directives: Iterable[Directive], width: int = LINE_WIDTH) -> List[str]:
    """Render directives as bordered rows of ``width`` characters."""
    lines = ["+" + "-" * width + "+"]

    for block in directives:
        if isinstance(block, TextLine):
            text = block.text
            if block.size is TextSize.DOUBLE:
                text = text.upper()
            if block.alignment is Alignment.CENTER:
                text = text.center(width)
            elif block.alignment is Alignment.RIGHT:
                text = text.rjust(width)
            else:
                text = text.ljust(width)
            border = "!" if block.flagged else "|"
            lines.append(border + text + border)

        elif isinstance(block, Rule):
            lines.append("|" + separator_text(block.style, width) + "|")

        elif isinstance(block, Feed):
            for _ in range(block.lines):
                lines.append("|" + " " * width + "|")

        elif isinstance(block, Cut):
            lines.append("+" + " 8< ".center(width, "-") + "+")

    if not lines[-1].startswith("+"):
        lines.append("+" + "-" * width + "+")
    return lines


def render_preview(layout: ReceiptLayout) -> str:
    """Generate a text preview of a receipt layout."""
    return "\n".join(preview_lines(layout.blocks, layout.width))
