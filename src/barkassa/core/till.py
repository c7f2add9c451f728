"""
Till: the bar's point-of-sale flow.

Ties the ledger, the store and the print manager together:
open a session, ring up a cart, take payment, move cash, close with a
count and print the report. A ticket is committed before anything is
printed, so a printer problem never loses a sale.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from barkassa.config.settings import Settings
from barkassa.core.events import Event, EventBus, EventType
from barkassa.core.store import ScopedStore, Store
from barkassa.hardware.base import TransportError
from barkassa.ledger import cart as carts
from barkassa.ledger.errors import LedgerError
from barkassa.ledger.models import (
    Cart,
    CashDirection,
    CashEntry,
    CompanyDetails,
    PaymentMethod,
    Product,
    SalesSession,
    Transaction,
)
from barkassa.ledger.session import (
    Reconciliation,
    apply_transaction,
    close_session,
    open_session,
    reconcile,
    record_cash_entry,
)

if TYPE_CHECKING:
    from barkassa.printing.manager import PrintManager

logger = logging.getLogger(__name__)

# Store keys
PRODUCTS = "products"
TRANSACTIONS = "transactions"
SESSIONS = "sessions"
CURRENT_SESSION = "current_session"
SEQUENCE = "seq"
SESSION_SEQUENCE = "session_seq"


class Till:
    """Point-of-sale flow for one register.

    Args:
        store: Host persistence (scoped by ``settings.mode``)
        company: Receipt header/footer details
        print_manager: Printer access, optional
        settings: Application settings
        event_bus: Bus for ledger and print events
        clock: Source of timestamps
    """

    def __init__(
        self,
        store: Store,
        company: CompanyDetails,
        print_manager: Optional[PrintManager] = None,
        settings: Optional[Settings] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings or Settings()
        self._store = ScopedStore(store, self._settings.mode)
        self._company = company
        self._printer = print_manager
        self._event_bus = event_bus or EventBus()
        self._clock = clock
        self._cart: Cart = ()

        self._session: Optional[SalesSession] = None
        session_id = self._store.get(CURRENT_SESSION)
        if session_id:
            self._session = self._find_session(session_id)
        logger.info(f"Till ready ({self._settings.mode} mode)")

    # ── State ──────────────────────────────────────────────────────────

    @property
    def session(self) -> Optional[SalesSession]:
        """The open session, if any."""
        return self._session

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def cart_total(self) -> Decimal:
        return carts.cart_total(self._cart)

    @property
    def products(self) -> list[Product]:
        return list(self._store.get(PRODUCTS) or [])

    def set_products(self, products: Sequence[Product]) -> None:
        self._store.save(PRODUCTS, list(products))

    def _transactions(self) -> list[Transaction]:
        return list(self._store.get(TRANSACTIONS) or [])

    def _sessions(self) -> list[SalesSession]:
        return list(self._store.get(SESSIONS) or [])

    def _find_session(self, session_id: str) -> Optional[SalesSession]:
        for session in self._sessions():
            if session.id == session_id:
                return session
        return None

    def _save_session(self, session: SalesSession) -> None:
        existing = self._find_session(session.id)
        if existing is not None and not existing.is_open:
            raise LedgerError(f"Session {session.id} is closed and cannot be overwritten")
        sessions = [s for s in self._sessions() if s.id != session.id]
        self._store.save(SESSIONS, [session, *sessions])

    def session_transactions(self, session_id: Optional[str] = None) -> list[Transaction]:
        """Tickets of a session (the open one by default)."""
        if session_id is None:
            if self._session is None:
                return []
            session_id = self._session.id
        return [tx for tx in self._transactions() if tx.session_id == session_id]

    def sessions(self) -> list[SalesSession]:
        """All sessions, newest first."""
        return self._sessions()

    def _require_session(self) -> SalesSession:
        if self._session is None:
            raise LedgerError("No open session")
        return self._session

    # ── Session ────────────────────────────────────────────────────────

    def open_session(self, start_cash: Decimal | int | float | str = 0) -> SalesSession:
        """Open the till with a cash float."""
        if self._session is not None:
            raise LedgerError(f"Session {self._session.id} is still open")

        now = self._clock()
        sequence = (self._store.get(SESSION_SEQUENCE) or 0) + 1
        # S + yymmddHHMMSS + session sequence
        session = open_session(f"S{now:%y%m%d%H%M%S}{sequence:03d}", start_cash, now)
        self._save_session(session)
        self._store.save(SESSION_SEQUENCE, sequence)
        self._store.save(CURRENT_SESSION, session.id)
        self._session = session

        self._event_bus.emit(Event(
            EventType.SESSION_OPENED,
            data={"session_id": session.id, "start_cash": str(session.start_cash)},
            source="till",
        ))
        return session

    def record_cash(
        self,
        direction: CashDirection,
        amount: Decimal | int | float | str,
        reason: str = "",
    ) -> CashEntry:
        """Register cash put into or taken out of the drawer."""
        session = self._require_session()
        now = self._clock()
        entry = CashEntry(
            id=f"C{now:%Y%m%d%H%M%S%f}",
            session_id=session.id,
            timestamp=now,
            direction=direction,
            amount=amount,
            reason=reason,
        )
        self._session = record_cash_entry(session, entry)
        self._save_session(self._session)

        self._event_bus.emit(Event(
            EventType.CASH_RECORDED,
            data={"direction": direction.value, "amount": str(entry.amount)},
            source="till",
        ))
        return entry

    def reconcile(self, counted: Decimal | int | float | str) -> Reconciliation:
        """Preview the drawer difference without closing."""
        return reconcile(self._require_session(), counted)

    def close_session(self, counted: Decimal | int | float | str) -> SalesSession:
        """Count the drawer and close the session for good."""
        session = self._require_session()
        closed = close_session(session, counted, self._clock())
        self._save_session(closed)
        self._store.save(CURRENT_SESSION, None)
        self._session = None

        control = closed.cash_control
        self._event_bus.emit(Event(
            EventType.SESSION_CLOSED,
            data={
                "session_id": closed.id,
                "expected": str(control.expected),
                "counted": str(control.counted),
                "difference": str(control.difference),
            },
            source="till",
        ))
        return closed

    # ── Cart ───────────────────────────────────────────────────────────

    def add_to_cart(self, product: Product) -> Cart:
        self._cart = carts.add_line(self._cart, product)
        return self._cart

    def change_quantity(self, product_id: str, delta: int) -> Cart:
        self._cart = carts.change_quantity(self._cart, product_id, delta)
        return self._cart

    def set_quantity(self, product_id: str, quantity: int) -> Cart:
        self._cart = carts.set_quantity(self._cart, product_id, quantity)
        return self._cart

    def clear_cart(self) -> None:
        self._cart = ()

    # ── Payment ────────────────────────────────────────────────────────

    async def finalize_payment(
        self,
        method: PaymentMethod,
        seller: Optional[str] = None,
    ) -> Transaction:
        """Check out the cart, commit the ticket and print it.

        Raises:
            LedgerError: No open session, or the cart was rejected
        """
        session = self._require_session()
        now = self._clock()
        sequence = (self._store.get(SEQUENCE) or 0) + 1
        ledger = self._settings.ledger

        tx = carts.checkout(
            self._cart,
            session.id,
            method,
            now,
            seller=seller or self._company.seller_name,
            ticket_id=carts.ticket_number(ledger.ticket_prefix, now.year, sequence),
            vat_rates=ledger.vat_rates,
        )

        transactions = self._transactions()
        updated = apply_transaction(session, self.session_transactions(), tx)

        # Commit
        self._store.save(TRANSACTIONS, [tx, *transactions])
        self._store.save(SEQUENCE, sequence)
        self._store.save(PRODUCTS, carts.deduct_stock(self.products, tx))
        self._save_session(updated)
        self._session = updated
        self._cart = ()

        self._event_bus.emit(Event(
            EventType.TRANSACTION_COMMITTED,
            data={"ticket_id": tx.id, "total": str(tx.total), "method": method.value},
            source="till",
        ))

        if self._settings.auto_print and self._printer is not None and self._printer.is_connected:
            try:
                await self._printer.print_transaction(tx, self._company)
            except TransportError as exc:
                logger.warning(f"Ticket {tx.id} committed but not printed: {exc}")

        return tx

    # ── Printing ───────────────────────────────────────────────────────

    def _require_printer(self) -> PrintManager:
        if self._printer is None:
            raise TransportError("No printer configured")
        return self._printer

    async def print_receipt(self, tx: Transaction) -> None:
        await self._require_printer().print_transaction(tx, self._company)

    async def print_session_report(self, session: Optional[SalesSession] = None) -> None:
        """Print the report of a session (the open one by default)."""
        session = session or self._require_session()
        await self._require_printer().print_session_report(session, self._company)

    async def open_drawer(self, with_notice: bool = True) -> None:
        """Kick the drawer, printing a notice slip unless told not to."""
        printer = self._require_printer()
        if with_notice:
            await printer.open_drawer(self._company, self._clock())
        else:
            await printer.open_drawer()
