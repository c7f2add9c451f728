"""Receipt formatter for barkassa.

Builds the directive layouts for:
- customer tickets
- session (Z) reports
- the printer test page
- the drawer-open notice

Formatting is pure: the same inputs always give the same layout.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from barkassa.ledger.models import (
    CompanyDetails,
    PaymentMethod,
    SalesSession,
    Transaction,
)
from barkassa.ledger.session import cash_movements, expected_cash
from barkassa.printing.layout import (
    LINE_WIDTH,
    Alignment,
    ReceiptLayout,
    TextSize,
)

logger = logging.getLogger(__name__)

# Longest product name printed in report rows
PRODUCT_NAME_MAX = 24

PAYMENT_LABELS = {
    PaymentMethod.CASH: "CONTANT",
    PaymentMethod.CARD: "KAART",
}


def format_amount(value: Decimal) -> str:
    """``Decimal('-2.5')`` -> ``'-2,50'``."""
    return f"{value:.2f}".replace(".", ",")


def format_rate(rate: Decimal) -> str:
    """``Decimal('21.0')`` -> ``'21'``."""
    return f"{rate.normalize():f}"


class ReceiptFormatter:
    """Turns tickets and sessions into receipt layouts."""

    def __init__(self, width: int = LINE_WIDTH, currency: str = "EUR"):
        self.width = width
        self.currency = currency

    def _money(self, value: Optional[Decimal]) -> str:
        return f"{self.currency} {format_amount(value or Decimal('0'))}"

    def _new_layout(self) -> ReceiptLayout:
        return ReceiptLayout(width=self.width)

    def _section(self, layout: ReceiptLayout, title: str) -> None:
        layout.add_text(title, bold=True)

    def _company_header(self, layout: ReceiptLayout, company: CompanyDetails) -> None:
        layout.add_text(company.name, alignment=Alignment.CENTER, bold=True)
        for line in (company.address, company.address2):
            if line:
                layout.add_text(line, alignment=Alignment.CENTER)
        if company.vat_number:
            layout.add_text(f"BTW: {company.vat_number}", alignment=Alignment.CENTER)
        if company.website:
            layout.add_text(company.website, alignment=Alignment.CENTER)

    def format_transaction(self, tx: Transaction, company: CompanyDetails) -> ReceiptLayout:
        """Customer ticket."""
        layout = self._new_layout()

        self._company_header(layout, company)
        layout.add_separator()

        layout.add_text(f"{tx.date_str} {tx.timestamp:%H:%M}")
        layout.add_text(f"Ticket #: {tx.id}")
        if tx.seller:
            layout.add_text(f"Verkoper: {tx.seller}")
        layout.add_separator()

        for line in tx.lines:
            layout.add_columns(f"{line.quantity}x {line.name}", format_amount(line.total))
            layout.add_text(f"  ({format_amount(line.price)} / st)")

        layout.add_separator()
        layout.add_columns("TOTAAL:", self._money(tx.total), bold=True)
        layout.add_text(f"Betaald via: {PAYMENT_LABELS[tx.payment_method]}")
        layout.add_separator()

        for bucket in tx.vat_buckets:
            if bucket.gross == 0:
                continue
            layout.add_columns(
                f"BTW {format_rate(bucket.rate)}% (basis {format_amount(bucket.base)})",
                format_amount(bucket.vat),
            )

        layout.add_space()
        layout.add_text(company.footer_message or "Bedankt!", alignment=Alignment.CENTER)
        layout.add_space(3)
        layout.add_cut()
        return layout

    def format_session_report(
        self,
        session: SalesSession,
        company: CompanyDetails,
        include_products: bool = True,
    ) -> ReceiptLayout:
        """Session (Z) report with cash control and VAT breakdown."""
        summary = session.summary
        layout = self._new_layout()

        layout.add_text("SESSIE RAPPORT", alignment=Alignment.CENTER, size=TextSize.DOUBLE, bold=True)
        layout.add_text(company.name or "BAR", alignment=Alignment.CENTER)
        layout.add_separator()

        first_id = summary.first_ticket_id or "N/A"
        last_id = summary.last_ticket_id or "N/A"
        layout.add_text(f"Sessie ID: {session.id[:16]}")
        layout.add_text(f"Tickets: {first_id[-4:]} -> {last_id[-4:]}")
        layout.add_text(f"Datum: {session.start_time:%d-%m-%Y}")
        layout.add_text(f"Start: {session.start_time:%H:%M}")
        if session.end_time:
            layout.add_text(f"Einde: {session.end_time:%H:%M}")
        else:
            layout.add_text("Sessie nog actief")
        layout.add_separator()

        self._section(layout, "FINANCIEEL:")
        layout.add_columns("Omzet:", self._money(summary.total_sales))
        layout.add_columns("Kaart:", self._money(summary.card_total))
        layout.add_columns("Cash:", self._money(summary.cash_total))
        layout.add_columns("Tickets:", str(summary.transaction_count))
        layout.add_separator()

        self._section(layout, "KAS CONTROLE:")
        layout.add_columns("Startgeld:", self._money(session.start_cash))
        movements = cash_movements(session)
        if session.cash_entries:
            layout.add_columns("Cash in/uit:", self._money(movements))
        control = session.cash_control
        if control is not None:
            layout.add_columns("Verwacht:", self._money(control.expected))
            layout.add_columns("Geteld:", self._money(control.counted))
            short = control.difference < 0
            layout.add_columns("Verschil:", self._money(control.difference), bold=short, flagged=short)
        else:
            layout.add_columns("Verwacht:", self._money(expected_cash(session)))
            layout.add_columns("Geteld:", "-")
        layout.add_separator()

        self._section(layout, "BTW OVERZICHT:")
        for bucket in summary.vat_buckets:
            rate = format_rate(bucket.rate)
            layout.add_columns(f"BTW {rate}% basis:", self._money(bucket.base))
            layout.add_columns(f"BTW {rate}% totaal:", self._money(bucket.vat))
        layout.add_separator()

        if include_products:
            self._section(layout, "PRODUCT VERKOOP:")
            for tally in summary.product_sales:
                layout.add_columns(
                    f"{tally.name[:PRODUCT_NAME_MAX]} {format_amount(tally.price)}",
                    f"{tally.quantity}x",
                )
            layout.add_separator()
            layout.add_columns("TOTAAL ARTIKELEN:", str(summary.item_count))

        layout.add_space()
        layout.add_text("*** EINDE RAPPORT ***", alignment=Alignment.CENTER)
        layout.add_space(4)
        layout.add_cut()
        return layout

    def format_test_page(self, now: datetime) -> ReceiptLayout:
        """Connection test page."""
        layout = self._new_layout()
        layout.add_space()
        layout.add_text("BAR POS TEST", alignment=Alignment.CENTER, bold=True)
        layout.add_text("Status: Verbonden", alignment=Alignment.CENTER)
        layout.add_text(f"{now:%d-%m-%Y %H:%M:%S}", alignment=Alignment.CENTER)
        layout.add_space()
        layout.add_text("Ready to serve!", alignment=Alignment.CENTER)
        layout.add_space(4)
        layout.add_cut()
        return layout

    def format_drawer_notice(self, company: CompanyDetails, now: datetime) -> ReceiptLayout:
        """Slip shown when the drawer is opened without a sale."""
        layout = self._new_layout()
        layout.add_text(company.name, alignment=Alignment.CENTER, bold=True)
        layout.add_separator()
        layout.add_text(f"{now:%d-%m-%Y %H:%M}", alignment=Alignment.CENTER)
        layout.add_space()
        layout.add_text("* LADE OPEN *", alignment=Alignment.CENTER, size=TextSize.DOUBLE, bold=True)
        layout.add_space()
        return layout
