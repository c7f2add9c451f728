"""Tests for the till flow: sessions, payments, persistence and printing."""
from __future__ import annotations

import asyncio
from dataclasses import replace
from decimal import Decimal

import pytest

from barkassa.config.settings import Settings
from barkassa.core import EventBus, EventType, MemoryStore, Till
from barkassa.hardware import TransportError
from barkassa.hardware.printer import MockDevice, MockDiscovery, PrinterLink
from barkassa.ledger import (
    CashDirection,
    CompanyDetails,
    EmptyCartError,
    LedgerError,
    PaymentMethod,
    Product,
    SessionStatus,
)
from barkassa.printing import DRAWER_PULSE, PrintManager
from tests.conftest import NOW, RecordingSleep, SteppingClock


# ─── Helpers ─────────────────────────────────────────────────────────────────


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


def _till(
    store: MemoryStore,
    company: CompanyDetails,
    bus: EventBus,
    printer: PrintManager | None = None,
    **settings,
) -> Till:
    return Till(store, company, printer, Settings(**settings), bus, clock=SteppingClock())


def _printer(device: MockDevice, bus: EventBus) -> PrintManager:
    manager = PrintManager(PrinterLink(MockDiscovery(device), sleep=RecordingSleep()), bus)
    asyncio.run(manager.connect())
    return manager


def _ring_up(till: Till, *products: Product, method: PaymentMethod = PaymentMethod.CASH):
    for product in products:
        till.add_to_cart(product)
    return asyncio.run(till.finalize_payment(method))


# ─── Sessions ────────────────────────────────────────────────────────────────


class TestSessions:
    def test_open_session(self, store: MemoryStore, company: CompanyDetails, bus: EventBus) -> None:
        till = _till(store, company, bus)
        session = till.open_session("100.00")

        assert session.id == "S261019213000001"
        assert session.start_cash == Decimal("100.00")
        assert till.session == session
        assert store.get("live:current_session") == session.id
        assert bus.get_history(EventType.SESSION_OPENED)[-1].data["start_cash"] == "100.00"

    def test_only_one_open_session(self, store: MemoryStore, company: CompanyDetails, bus: EventBus) -> None:
        till = _till(store, company, bus)
        till.open_session()
        with pytest.raises(LedgerError):
            till.open_session()

    def test_session_restored_from_store(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus
    ) -> None:
        session = _till(store, company, bus).open_session("50")
        assert _till(store, company, bus).session == session

    def test_close_with_cash_movement(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus, cocktail: Product
    ) -> None:
        till = _till(store, company, bus)
        till.open_session("100.00")
        _ring_up(till, cocktail, cocktail)
        till.record_cash(CashDirection.OUT, "10.00", "leverancier")

        assert till.reconcile("110.00").difference == Decimal("0.00")
        closed = till.close_session("108.00")

        assert closed.status is SessionStatus.CLOSED
        assert closed.cash_control.expected == Decimal("110.00")
        assert closed.cash_control.difference == Decimal("-2.00")
        assert till.session is None
        assert till.sessions()[0] == closed
        assert store.get("live:current_session") is None
        assert bus.get_history(EventType.SESSION_CLOSED)[-1].data["difference"] == "-2.00"

    def test_sessions_in_the_same_second_stay_apart(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product
    ) -> None:
        till = Till(store, company, None, Settings(), bus, clock=lambda: NOW)

        first = till.open_session("100.00")
        _ring_up(till, pils)
        closed = till.close_session("102.50")
        second = till.open_session("50.00")
        _ring_up(till, pils)

        assert first.id == "S261019213000001"
        assert second.id == "S261019213000002"
        assert till.session.summary.transaction_count == 1
        assert till.reconcile("52.50").expected == Decimal("52.50")
        assert [s.status for s in till.sessions()] == [SessionStatus.OPEN, SessionStatus.CLOSED]
        assert till.sessions()[1] == closed
        assert till.sessions()[1].cash_control.counted == Decimal("102.50")

    def test_closed_session_not_overwritten(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus
    ) -> None:
        till = Till(store, company, None, Settings(), bus, clock=lambda: NOW)
        till.open_session("10.00")
        closed = till.close_session("10.00")

        store.save("live:session_seq", 0)
        with pytest.raises(LedgerError):
            till.open_session()
        assert till.sessions() == [closed]

    def test_no_session(self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product) -> None:
        till = _till(store, company, bus)
        till.add_to_cart(pils)

        with pytest.raises(LedgerError):
            asyncio.run(till.finalize_payment(PaymentMethod.CASH))
        with pytest.raises(LedgerError):
            till.record_cash(CashDirection.IN, "5")
        with pytest.raises(LedgerError):
            till.close_session("0")


# ─── Payments ────────────────────────────────────────────────────────────────


class TestPayments:
    def test_ticket_committed(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product
    ) -> None:
        till = _till(store, company, bus)
        till.set_products([pils])
        till.open_session("100.00")

        tx = _ring_up(till, pils, pils)

        assert tx.id == "AM2026-0001"
        assert tx.total == Decimal("5.00")
        assert till.cart == ()
        assert till.session_transactions() == [tx]
        assert till.session.summary.cash_total == Decimal("5.00")
        assert till.products[0].stock == 8
        assert bus.get_history(EventType.TRANSACTION_COMMITTED)[-1].data["ticket_id"] == "AM2026-0001"

    def test_ticket_numbers_increase(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product, wine: Product
    ) -> None:
        till = _till(store, company, bus)
        till.open_session()

        first = _ring_up(till, pils)
        second = _ring_up(till, wine, method=PaymentMethod.CARD)

        assert [first.id, second.id] == ["AM2026-0001", "AM2026-0002"]
        assert till.session.summary.first_ticket_id == "AM2026-0001"
        assert till.session.summary.last_ticket_id == "AM2026-0002"
        assert till.session.summary.card_total == Decimal("5.50")

    def test_empty_cart_does_not_use_a_number(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product
    ) -> None:
        till = _till(store, company, bus)
        till.open_session()

        with pytest.raises(EmptyCartError):
            asyncio.run(till.finalize_payment(PaymentMethod.CASH))

        assert _ring_up(till, pils).id == "AM2026-0001"

    def test_cart_editing(self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product) -> None:
        till = _till(store, company, bus)
        till.add_to_cart(pils)
        till.change_quantity("pils", 2)
        assert till.cart_total == Decimal("7.50")

        till.set_quantity("pils", 0)
        assert till.cart == ()

        till.add_to_cart(pils)
        till.clear_cart()
        assert till.cart == ()

    def test_default_seller(self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product) -> None:
        till = _till(store, replace(company, seller_name="Jan"), bus)
        till.open_session()

        assert _ring_up(till, pils).seller == "Jan"

    def test_training_mode_is_separate(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product
    ) -> None:
        training = _till(store, company, bus, mode="training")
        training.open_session()
        _ring_up(training, pils)

        assert all(key.startswith("training:") for key in store.keys())
        live = _till(store, company, bus)
        assert live.session is None
        live.open_session()
        assert _ring_up(live, pils).id == "AM2026-0001"


# ─── Printing ────────────────────────────────────────────────────────────────


class TestPrinting:
    def test_auto_print(self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product) -> None:
        device = MockDevice()
        till = _till(store, company, bus, _printer(device, bus))
        till.open_session()

        _ring_up(till, pils)

        assert b"AM2026-0001" in device.received

    def test_auto_print_disabled(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product
    ) -> None:
        device = MockDevice()
        till = _till(store, company, bus, _printer(device, bus), auto_print=False)
        till.open_session()

        _ring_up(till, pils)

        assert device.received == b""

    def test_print_failure_keeps_ticket(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product
    ) -> None:
        till = _till(store, company, bus, _printer(MockDevice(fail_at=0), bus))
        till.open_session()

        tx = _ring_up(till, pils)

        assert till.session_transactions() == [tx]
        assert till.session.summary.transaction_count == 1
        assert bus.get_history(EventType.PRINT_ERROR)

    def test_reprint_and_report(
        self, store: MemoryStore, company: CompanyDetails, bus: EventBus, pils: Product
    ) -> None:
        device = MockDevice()
        till = _till(store, company, bus, _printer(device, bus), auto_print=False)
        till.open_session()
        tx = _ring_up(till, pils)

        asyncio.run(till.print_receipt(tx))
        asyncio.run(till.print_session_report())

        assert b"AM2026-0001" in device.received
        assert b"SESSIE RAPPORT" in device.received

    def test_open_drawer(self, store: MemoryStore, company: CompanyDetails, bus: EventBus) -> None:
        device = MockDevice()
        till = _till(store, company, bus, _printer(device, bus))

        asyncio.run(till.open_drawer())

        assert b"* LADE OPEN *" in device.received
        assert device.received.endswith(DRAWER_PULSE)

    def test_no_printer(self, store: MemoryStore, company: CompanyDetails, bus: EventBus) -> None:
        till = _till(store, company, bus)
        with pytest.raises(TransportError):
            asyncio.run(till.open_drawer())
