"""ESC/POS encoder for thermal receipt printers.

Compiles a directive list to one contiguous command buffer. Column layout
is already done by the formatter; the encoder only emits style commands
around each line. Chunking is up to the transport.
"""

import logging
from typing import Iterable

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

logger = logging.getLogger(__name__)

# ESC/POS command constants
ESC = b'\x1b'
GS = b'\x1d'
LF = b'\x0a'

INIT = ESC + b'@'
BOLD_ON = ESC + b'E\x01'
BOLD_OFF = ESC + b'E\x00'
ALIGN_LEFT = ESC + b'a\x00'
ALIGN_CENTER = ESC + b'a\x01'
ALIGN_RIGHT = ESC + b'a\x02'
SIZE_DOUBLE = GS + b'!\x11'
SIZE_NORMAL = GS + b'!\x00'
CUT_FULL = GS + b'VA\x00'

# ESC p m t1 t2 - Pulse drawer kick pin 2 (25 x 2ms on, 250 x 2ms off)
DRAWER_PULSE = ESC + b'p\x00\x19\xfa'


class EscPosEncoder:
    """Renders receipt directives to ESC/POS bytes.

    Text is encoded with a fixed single-byte code page; characters the
    code page lacks become '?'.
    """

    def __init__(self, encoding: str = "cp437", width: int = LINE_WIDTH):
        self.encoding = encoding
        self.width = width

    def encode(self, directives: Iterable[Directive]) -> bytes:
        """Render directives to printer commands.

        Args:
            directives: Ordered receipt directives

        Returns:
            ESC/POS command bytes, starting with ESC @
        """
        commands = [INIT]

        for block in directives:
            if isinstance(block, TextLine):
                commands.append(self._render_text(block))
            elif isinstance(block, Rule):
                commands.append(self._render_text(TextLine(separator_text(block.style, self.width))))
            elif isinstance(block, Feed):
                commands.append(LF * block.lines)
            elif isinstance(block, Cut):
                commands.append(CUT_FULL)
            else:
                raise TypeError(f"Unknown print directive: {block!r}")

        data = b''.join(commands)
        logger.debug(f"Encoded receipt: {len(data)} bytes")
        return data

    def encode_layout(self, layout: ReceiptLayout) -> bytes:
        return self.encode(layout.blocks)

    def encode_text(self, text: str) -> bytes:
        return text.encode(self.encoding, errors="replace")

    def _cmd_align(self, alignment: Alignment) -> bytes:
        """Set text alignment."""
        return {
            Alignment.LEFT: ALIGN_LEFT,
            Alignment.CENTER: ALIGN_CENTER,
            Alignment.RIGHT: ALIGN_RIGHT,
        }[alignment]

    def _cmd_text_size(self, size: TextSize) -> bytes:
        """Set text size (GS ! n)."""
        return SIZE_DOUBLE if size is TextSize.DOUBLE else SIZE_NORMAL

    def _cmd_bold(self, enabled: bool) -> bytes:
        """Set bold mode."""
        return BOLD_ON if enabled else BOLD_OFF

    def _render_text(self, block: TextLine) -> bytes:
        """Render a text line to commands."""
        commands = [
            self._cmd_align(block.alignment),
            self._cmd_text_size(block.size),
            self._cmd_bold(block.bold),
            self.encode_text(block.text),
            LF,
        ]

        # Reset formatting
        if block.bold:
            commands.append(BOLD_OFF)
        if block.size is not TextSize.NORMAL:
            commands.append(SIZE_NORMAL)

        return b''.join(commands)
