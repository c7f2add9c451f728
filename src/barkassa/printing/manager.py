"""Print manager for barkassa thermal receipts."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from barkassa.core.events import Event, EventBus, EventType
from barkassa.hardware.base import TransportError
from barkassa.hardware.printer.link import PrinterLink
from barkassa.ledger.models import CompanyDetails, SalesSession, Transaction
from barkassa.printing.encoder import DRAWER_PULSE, EscPosEncoder
from barkassa.printing.layout import ReceiptLayout
from barkassa.printing.preview import render_preview
from barkassa.printing.receipt import ReceiptFormatter

logger = logging.getLogger(__name__)


class PrintManager:
    """Formats, encodes and sends print jobs over the printer link.

    Jobs are not queued: while one is on the wire, the next is rejected
    with ``BusyError`` and the operator re-triggers it. Failed jobs are
    never retried automatically.
    """

    def __init__(
        self,
        link: PrinterLink,
        event_bus: Optional[EventBus] = None,
        formatter: Optional[ReceiptFormatter] = None,
        encoder: Optional[EscPosEncoder] = None,
    ) -> None:
        self._link = link
        self._event_bus = event_bus or EventBus()
        self._formatter = formatter or ReceiptFormatter()
        self._encoder = encoder or EscPosEncoder(width=self._formatter.width)

    @property
    def link(self) -> PrinterLink:
        return self._link

    @property
    def formatter(self) -> ReceiptFormatter:
        return self._formatter

    @property
    def is_connected(self) -> bool:
        return self._link.is_connected

    async def connect(self) -> bool:
        """Connect the printer. A cancelled selection is not an error."""
        try:
            await self._link.connect()
        except TransportError as exc:
            logger.warning(f"Printer connection failed: {exc}")
            return False

        self._event_bus.emit(Event(
            EventType.PRINTER_CONNECTED,
            data={"device": self._link.device_name},
            source="print_manager",
        ))
        return True

    async def disconnect(self) -> None:
        await self._link.disconnect()
        self._event_bus.emit(Event(EventType.PRINTER_DISCONNECTED, source="print_manager"))

    async def _send(self, job: str, data: bytes) -> None:
        self._event_bus.emit(Event(
            EventType.PRINT_START,
            data={"type": job, "bytes": len(data)},
            source="print_manager",
        ))
        try:
            await self._link.send(data)
        except TransportError as exc:
            logger.error(f"Print failed ({job}): {exc}")
            self._event_bus.emit(Event(
                EventType.PRINT_ERROR,
                data={"type": job, "error": str(exc)},
                source="print_manager",
            ))
            raise

        logger.info(f"Printed {job}")
        self._event_bus.emit(Event(
            EventType.PRINT_COMPLETE,
            data={"type": job},
            source="print_manager",
        ))

    async def print_layout(self, job: str, layout: ReceiptLayout) -> None:
        await self._send(job, self._encoder.encode_layout(layout))

    async def print_transaction(self, tx: Transaction, company: CompanyDetails) -> None:
        """Print a customer ticket."""
        await self.print_layout("receipt", self._formatter.format_transaction(tx, company))

    async def print_session_report(
        self,
        session: SalesSession,
        company: CompanyDetails,
        include_products: bool = True,
    ) -> None:
        """Print the session (Z) report."""
        layout = self._formatter.format_session_report(session, company, include_products)
        await self.print_layout("session_report", layout)

    async def print_test_page(self, now: Optional[datetime] = None) -> None:
        await self.print_layout("test_page", self._formatter.format_test_page(now or datetime.now()))

    async def open_drawer(
        self,
        company: Optional[CompanyDetails] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Kick the cash drawer connected to the printer.

        With ``company`` a ``* LADE OPEN *`` slip is printed in the same job.
        """
        data = DRAWER_PULSE
        if company is not None:
            notice = self._formatter.format_drawer_notice(company, now or datetime.now())
            data = self._encoder.encode_layout(notice) + DRAWER_PULSE
        await self._send("drawer", data)

    def preview_transaction(self, tx: Transaction, company: CompanyDetails) -> str:
        return render_preview(self._formatter.format_transaction(tx, company))

    def preview_session_report(self, session: SalesSession, company: CompanyDetails) -> str:
        return render_preview(self._formatter.format_session_report(session, company))
