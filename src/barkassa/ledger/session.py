"""Till sessions: summary fold, cash movements and reconciliation.

A session's summary is a cache of ``fold_summary`` over its tickets. Every
operation here returns a new session value built from the full ticket set,
so a session is never observed with a summary that disagrees with it.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from barkassa.ledger.errors import DuplicateTicketError, SessionClosedError, SessionMismatchError
from barkassa.ledger.models import (
    ZERO,
    CashControl,
    CashEntry,
    DailySummary,
    PaymentMethod,
    ProductTally,
    SalesSession,
    SessionStatus,
    Transaction,
    VatBucket,
    to_money,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of counting the drawer."""
    expected: Decimal
    counted: Decimal
    difference: Decimal


def fold_summary(transactions: Iterable[Transaction]) -> DailySummary:
    """Derive the session totals from its tickets.

    Tickets are ordered by timestamp first; equal timestamps keep their
    input order.
    """
    ordered = sorted(transactions, key=lambda tx: tx.timestamp)

    total = cash = card = ZERO
    bases: dict[Decimal, Decimal] = defaultdict(lambda: ZERO)
    vats: dict[Decimal, Decimal] = defaultdict(lambda: ZERO)
    tallies: dict[tuple[str, Decimal], int] = defaultdict(int)

    for tx in ordered:
        total += tx.total
        if tx.payment_method is PaymentMethod.CASH:
            cash += tx.total
        else:
            card += tx.total
        for bucket in tx.vat_buckets:
            bases[bucket.rate] += bucket.base
            vats[bucket.rate] += bucket.vat
        for line in tx.lines:
            tallies[(line.name, line.price)] += line.quantity

    products = sorted(
        (ProductTally(name=name, price=price, quantity=qty) for (name, price), qty in tallies.items()),
        key=lambda t: -t.price,
    )
    products.sort(key=lambda t: t.name)

    return DailySummary(
        total_sales=total,
        transaction_count=len(ordered),
        cash_total=cash,
        card_total=card,
        vat_buckets=tuple(
            VatBucket(rate=rate, base=bases[rate], vat=vats[rate]) for rate in sorted(bases)
        ),
        first_ticket_id=ordered[0].id if ordered else None,
        last_ticket_id=ordered[-1].id if ordered else None,
        product_sales=tuple(products),
    )


def open_session(session_id: str, start_cash: Decimal | int | float | str, start_time: datetime) -> SalesSession:
    """Open a till with a cash float."""
    session = SalesSession(
        id=session_id,
        start_time=start_time,
        start_cash=to_money(start_cash),
        updated_at=start_time,
    )
    logger.info(f"Session {session_id} opened with float {session.start_cash}")
    return session


def _require_open(session: SalesSession) -> None:
    if session.status is SessionStatus.CLOSED:
        raise SessionClosedError(session.id)


def apply_transaction(
    session: SalesSession,
    transactions: Sequence[Transaction],
    tx: Transaction,
) -> SalesSession:
    """Add a ticket to a session.

    Args:
        session: Session the ticket was rung up in
        transactions: Tickets already in the session
        tx: The new ticket

    Returns:
        The session with its summary folded over all tickets
    """
    _require_open(session)
    if tx.session_id != session.id:
        raise SessionMismatchError(f"Ticket {tx.id} belongs to session {tx.session_id}, not {session.id}")
    if any(t.id == tx.id for t in transactions):
        raise DuplicateTicketError(f"Ticket {tx.id} is already in session {session.id}")

    summary = fold_summary([*transactions, tx])
    return replace(session, summary=summary, updated_at=tx.timestamp)


def record_cash_entry(session: SalesSession, entry: CashEntry) -> SalesSession:
    """Add a manual cash movement to a session."""
    _require_open(session)
    if entry.session_id != session.id:
        raise SessionMismatchError(f"Cash entry {entry.id} belongs to session {entry.session_id}")

    logger.info(f"Cash {entry.direction.value} {entry.amount} on {session.id}: {entry.reason}")
    return replace(
        session,
        cash_entries=session.cash_entries + (entry,),
        updated_at=entry.timestamp,
    )


def cash_movements(session: SalesSession) -> Decimal:
    """Net manual cash movement (IN minus OUT)."""
    return sum((e.signed_amount for e in session.cash_entries), ZERO)


def expected_cash(session: SalesSession) -> Decimal:
    """Cash that should be in the drawer right now."""
    return session.start_cash + session.summary.cash_total + cash_movements(session)


def reconcile(session: SalesSession, counted: Decimal | int | float | str) -> Reconciliation:
    """Compare the counted drawer with the expected amount.

    Only possible while the session is open.
    """
    _require_open(session)
    counted = to_money(counted)
    expected = expected_cash(session)
    return Reconciliation(expected=expected, counted=counted, difference=counted - expected)


def close_session(
    session: SalesSession,
    counted: Decimal | int | float | str,
    end_time: datetime,
) -> SalesSession:
    """Reconcile and close a session. The returned session is read-only."""
    result = reconcile(session, counted)
    closed = replace(
        session,
        status=SessionStatus.CLOSED,
        end_time=end_time,
        counted_cash=result.counted,
        expected_cash=result.expected,
        cash_control=CashControl(
            opening=session.start_cash,
            expected=result.expected,
            counted=result.counted,
            difference=result.difference,
        ),
        updated_at=end_time,
    )
    if result.difference < 0:
        logger.warning(f"Session {session.id} closed short by {-result.difference}")
    else:
        logger.info(f"Session {session.id} closed, difference {result.difference}")
    return closed
