"""Tests for session folding, cash movements and reconciliation."""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from barkassa.ledger import (
    CashDirection,
    CashEntry,
    DuplicateTicketError,
    PaymentMethod,
    Product,
    SalesSession,
    SessionClosedError,
    SessionMismatchError,
    SessionStatus,
    apply_transaction,
    close_session,
    expected_cash,
    fold_summary,
    open_session,
    reconcile,
    record_cash_entry,
)
from tests.conftest import NOW, make_tx


# ─── Helpers ─────────────────────────────────────────────────────────────────


def _cash_entry(direction: CashDirection, amount: str, session_id: str = "S1") -> CashEntry:
    return CashEntry(
        id=f"C-{direction.value}-{amount}",
        session_id=session_id,
        timestamp=NOW,
        direction=direction,
        amount=Decimal(amount),
        reason="wisselgeld",
    )


@pytest.fixture
def evening(cocktail: Product) -> SalesSession:
    """Float 100.00 and one cash ticket of 20.00."""
    session = open_session("S1", "100.00", NOW)
    tx = make_tx([(cocktail, 2)], timestamp=NOW + timedelta(minutes=5))
    return apply_transaction(session, [], tx)


# ─── Summary fold ────────────────────────────────────────────────────────────


class TestFoldSummary:
    def test_empty(self) -> None:
        summary = fold_summary([])
        assert summary.transaction_count == 0
        assert summary.total_sales == Decimal("0.00")
        assert summary.first_ticket_id is None
        assert summary.last_ticket_id is None
        assert summary.product_sales == ()

    def test_cash_and_card_add_up(self, pils: Product, wine: Product, voucher: Product) -> None:
        txs = [
            make_tx([(pils, 2)], method=PaymentMethod.CASH, ticket_id="A"),
            make_tx([(wine, 1), (voucher, 1)], method=PaymentMethod.CARD, ticket_id="B"),
            make_tx([(pils, 1)], method=PaymentMethod.CARD, ticket_id="C"),
        ]
        summary = fold_summary(txs)

        assert summary.transaction_count == 3
        assert summary.cash_total == Decimal("5.00")
        assert summary.card_total == Decimal("28.00")
        assert summary.total_sales == Decimal("33.00")
        assert summary.cash_total + summary.card_total == summary.total_sales

    def test_vat_buckets_aggregate(self, pils: Product, voucher: Product) -> None:
        txs = [make_tx([(pils, 2)]), make_tx([(pils, 2), (voucher, 1)])]
        summary = fold_summary(txs)

        rates = [b.rate for b in summary.vat_buckets]
        assert rates == [Decimal("0"), Decimal("21")]
        assert summary.vat_buckets[1].vat == Decimal("1.74")
        assert summary.vat_buckets[1].base == Decimal("8.26")
        assert summary.vat_buckets[0].base == Decimal("20.00")

    def test_ticket_range_follows_timestamps(self, pils: Product) -> None:
        later = make_tx([(pils, 1)], timestamp=NOW + timedelta(minutes=10), ticket_id="AM2026-0002")
        earlier = make_tx([(pils, 1)], timestamp=NOW, ticket_id="AM2026-0001")

        summary = fold_summary([later, earlier])
        assert summary.first_ticket_id == "AM2026-0001"
        assert summary.last_ticket_id == "AM2026-0002"

    def test_equal_timestamps_keep_input_order(self, pils: Product) -> None:
        first = make_tx([(pils, 1)], ticket_id="Y")
        second = make_tx([(pils, 1)], ticket_id="X")

        summary = fold_summary([first, second])
        assert summary.first_ticket_id == "Y"
        assert summary.last_ticket_id == "X"

    def test_product_tallies_sorted(self, pils: Product) -> None:
        dear_pils = Product(id="pils-big", name="Pils", price=Decimal("3.00"))
        cola = Product(id="cola", name="Cola", price=Decimal("2.80"))
        txs = [
            make_tx([(pils, 2), (cola, 1)]),
            make_tx([(dear_pils, 1), (pils, 1)]),
        ]
        tallies = fold_summary(txs).product_sales

        assert [(t.name, t.price, t.quantity) for t in tallies] == [
            ("Cola", Decimal("2.80"), 1),
            ("Pils", Decimal("3.00"), 1),
            ("Pils", Decimal("2.50"), 3),
        ]
        assert fold_summary(txs).item_count == 5


# ─── Applying tickets ────────────────────────────────────────────────────────


class TestApplyTransaction:
    def test_summary_is_fold_of_all(self, pils: Product, wine: Product) -> None:
        session = open_session("S1", 0, NOW)
        first = make_tx([(pils, 1)], ticket_id="A")
        second = make_tx([(wine, 2)], method=PaymentMethod.CARD, ticket_id="B")

        session = apply_transaction(session, [], first)
        session = apply_transaction(session, [first], second)

        assert session.summary == fold_summary([first, second])
        assert session.summary.total_sales == Decimal("13.50")

    def test_input_session_unchanged(self, pils: Product) -> None:
        session = open_session("S1", 0, NOW)
        apply_transaction(session, [], make_tx([(pils, 1)]))
        assert session.summary.transaction_count == 0

    def test_wrong_session(self, pils: Product) -> None:
        session = open_session("S1", 0, NOW)
        with pytest.raises(SessionMismatchError):
            apply_transaction(session, [], make_tx([(pils, 1)], session_id="S2"))

    def test_same_ticket_twice(self, pils: Product) -> None:
        session = open_session("S1", 0, NOW)
        tx = make_tx([(pils, 1)], ticket_id="AM2026-0001")
        session = apply_transaction(session, [], tx)

        with pytest.raises(DuplicateTicketError):
            apply_transaction(session, [tx], tx)
        assert session.summary.transaction_count == 1


# ─── Cash movements ──────────────────────────────────────────────────────────


class TestCashEntries:
    def test_movements_change_expected_cash(self, evening: SalesSession) -> None:
        session = record_cash_entry(evening, _cash_entry(CashDirection.IN, "50.00"))
        session = record_cash_entry(session, _cash_entry(CashDirection.OUT, "30.00"))

        assert len(session.cash_entries) == 2
        assert expected_cash(session) == Decimal("140.00")

    def test_amount_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            _cash_entry(CashDirection.OUT, "0")

    def test_wrong_session(self, evening: SalesSession) -> None:
        with pytest.raises(SessionMismatchError):
            record_cash_entry(evening, _cash_entry(CashDirection.IN, "5.00", session_id="S9"))


# ─── Reconciliation and closing ──────────────────────────────────────────────


class TestReconcile:
    def test_short_drawer(self, evening: SalesSession) -> None:
        result = reconcile(evening, "118.00")

        assert result.expected == Decimal("120.00")
        assert result.counted == Decimal("118.00")
        assert result.difference == Decimal("-2.00")

    def test_repeatable_while_open(self, evening: SalesSession) -> None:
        assert reconcile(evening, 118) == reconcile(evening, Decimal("118.00"))
        assert evening.status is SessionStatus.OPEN
        assert evening.cash_control is None

    def test_surplus(self, evening: SalesSession) -> None:
        assert reconcile(evening, "121.50").difference == Decimal("1.50")


class TestCloseSession:
    def test_close_records_cash_control(self, evening: SalesSession) -> None:
        end = NOW + timedelta(hours=6)
        closed = close_session(evening, "118.00", end)

        assert closed.status is SessionStatus.CLOSED
        assert not closed.is_open
        assert closed.end_time == end
        assert closed.counted_cash == Decimal("118.00")
        assert closed.expected_cash == Decimal("120.00")
        assert closed.cash_control.opening == Decimal("100.00")
        assert closed.cash_control.difference == Decimal("-2.00")

    def test_closed_session_is_final(self, evening: SalesSession, pils: Product) -> None:
        closed = close_session(evening, "120.00", NOW + timedelta(hours=1))

        with pytest.raises(SessionClosedError):
            reconcile(closed, "120.00")
        with pytest.raises(SessionClosedError):
            close_session(closed, "120.00", NOW + timedelta(hours=2))
        with pytest.raises(SessionClosedError):
            apply_transaction(closed, [], make_tx([(pils, 1)]))
        with pytest.raises(SessionClosedError):
            record_cash_entry(closed, _cash_entry(CashDirection.IN, "1.00"))
