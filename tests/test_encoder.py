"""Tests for the ESC/POS encoder."""
from __future__ import annotations

import pytest

from barkassa.ledger import CompanyDetails, Product
from barkassa.printing import (
    DRAWER_PULSE,
    Alignment,
    Cut,
    EscPosEncoder,
    Feed,
    ReceiptFormatter,
    ReceiptLayout,
    Rule,
    TextLine,
    TextSize,
)
from tests.conftest import make_tx


@pytest.fixture
def encoder() -> EscPosEncoder:
    return EscPosEncoder()


class TestCommands:
    def test_drawer_pulse(self) -> None:
        assert DRAWER_PULSE == bytes([0x1B, 0x70, 0x00, 0x19, 0xFA])

    def test_empty_job_is_init(self, encoder: EscPosEncoder) -> None:
        assert encoder.encode([]) == b"\x1b@"

    def test_bold_centered_line_and_cut(self, encoder: EscPosEncoder) -> None:
        data = encoder.encode([TextLine("Hi", alignment=Alignment.CENTER, bold=True), Cut()])
        assert data == (
            b"\x1b@"
            b"\x1ba\x01"
            b"\x1d!\x00"
            b"\x1bE\x01"
            b"Hi\n"
            b"\x1bE\x00"
            b"\x1dVA\x00"
        )

    def test_double_size_resets(self, encoder: EscPosEncoder) -> None:
        data = encoder.encode([TextLine("X", alignment=Alignment.RIGHT, size=TextSize.DOUBLE)])
        assert data == b"\x1b@" + b"\x1ba\x02" + b"\x1d!\x11" + b"\x1bE\x00" + b"X\n" + b"\x1d!\x00"

    def test_rule_and_feed(self) -> None:
        encoder = EscPosEncoder(width=4)
        data = encoder.encode([Rule(), Feed(3)])
        assert data == b"\x1b@" + b"\x1ba\x00\x1d!\x00\x1bE\x00" + b"----\n" + b"\n\n\n"

    def test_unknown_directive(self, encoder: EscPosEncoder) -> None:
        with pytest.raises(TypeError):
            encoder.encode(["not a directive"])


class TestText:
    def test_unmappable_characters_replaced(self, encoder: EscPosEncoder) -> None:
        assert encoder.encode_text("Bier €") == b"Bier ?"

    def test_code_page_characters_kept(self, encoder: EscPosEncoder) -> None:
        assert encoder.encode_text("Café") == b"Caf\x82"


class TestReceipts:
    def test_receipt_is_one_buffer(
        self, encoder: EscPosEncoder, company: CompanyDetails, pils: Product
    ) -> None:
        layout = ReceiptFormatter().format_transaction(make_tx([(pils, 2)]), company)
        data = encoder.encode_layout(layout)

        assert data.startswith(b"\x1b@")
        assert data.count(b"\x1b@") == 1
        assert data.endswith(b"\x1dVA\x00")
        assert b"TOTAAL:" in data

    def test_same_layout_same_bytes(self, encoder: EscPosEncoder) -> None:
        layout = ReceiptLayout().add_text("Pils").add_separator("dashes").add_space(2).add_cut()
        assert encoder.encode_layout(layout) == encoder.encode(list(layout.blocks))
