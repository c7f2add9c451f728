"""Print directives for thermal receipts.

A receipt is an ordered list of directives: styled text lines plus
structural rules, feeds and cuts. The same list drives the text preview
and the ESC/POS encoder.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union


# Characters per line on 58mm paper (font A)
LINE_WIDTH = 32


class Alignment(Enum):
    """Text alignment options."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class TextSize(Enum):
    """Text size options (printer-specific)."""

    NORMAL = 1
    DOUBLE = 2     # Double width + height


@dataclass(frozen=True)
class TextLine:
    """One line of text for the receipt."""

    text: str
    alignment: Alignment = Alignment.LEFT
    size: TextSize = TextSize.NORMAL
    bold: bool = False
    flagged: bool = False  # Highlighted on screen (e.g. negative cash difference)


@dataclass(frozen=True)
class Rule:
    """A full-width separator line."""

    style: str = "line"  # line, double, dashes


@dataclass(frozen=True)
class Feed:
    """Vertical spacing."""

    lines: int = 1


@dataclass(frozen=True)
class Cut:
    """Full paper cut."""


Directive = Union[TextLine, Rule, Feed, Cut]


def columns(left: str, right: str, width: int = LINE_WIDTH) -> str:
    """Put ``left`` and ``right`` on one line of ``width`` characters.

    At least one space separates them. Neither field is truncated, so
    an oversized pair simply runs past the width.
    """
    spaces = max(1, width - len(left) - len(right))
    return f"{left}{' ' * spaces}{right}"


def separator_text(style: str, width: int = LINE_WIDTH) -> str:
    separators = {
        "line": "-" * width,
        "double": "=" * width,
        "dashes": "- " * (width // 2),
    }
    return separators.get(style, separators["line"])


@dataclass
class ReceiptLayout:
    """Complete receipt layout definition."""

    blocks: List[Directive] = field(default_factory=list)
    width: int = LINE_WIDTH

    def add_text(
        self,
        text: str,
        alignment: Alignment = Alignment.LEFT,
        size: TextSize = TextSize.NORMAL,
        bold: bool = False,
        flagged: bool = False,
    ) -> "ReceiptLayout":
        """Add a text line."""
        self.blocks.append(TextLine(
            text=text,
            alignment=alignment,
            size=size,
            bold=bold,
            flagged=flagged,
        ))
        return self

    def add_columns(
        self,
        left: str,
        right: str,
        bold: bool = False,
        flagged: bool = False,
    ) -> "ReceiptLayout":
        """Add a left/right justified line."""
        return self.add_text(columns(left, right, self.width), bold=bold, flagged=flagged)

    def add_separator(self, style: str = "line") -> "ReceiptLayout":
        """Add a separator line."""
        self.blocks.append(Rule(style=style))
        return self

    def add_space(self, lines: int = 1) -> "ReceiptLayout":
        """Add vertical spacing."""
        self.blocks.append(Feed(lines=lines))
        return self

    def add_cut(self) -> "ReceiptLayout":
        """Cut the paper."""
        self.blocks.append(Cut())
        return self

    def text_lines(self) -> List[str]:
        """Plain text of every text line, in order."""
        return [b.text for b in self.blocks if isinstance(b, TextLine)]
