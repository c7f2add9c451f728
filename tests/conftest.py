"""Shared fixtures for the barkassa test suite."""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from barkassa.ledger import (
    CompanyDetails,
    PaymentMethod,
    Product,
    Transaction,
    add_line,
    checkout,
)

NOW = datetime(2026, 10, 19, 21, 30)


# ─── Helpers ─────────────────────────────────────────────────────────────────


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every pause."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


class SteppingClock:
    """Returns a later time on every call."""

    def __init__(self, start: datetime = NOW, step: timedelta = timedelta(minutes=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


def make_tx(
    products: list[tuple[Product, int]],
    session_id: str = "S1",
    method: PaymentMethod = PaymentMethod.CASH,
    timestamp: datetime = NOW,
    ticket_id: str | None = None,
) -> Transaction:
    cart = ()
    for product, qty in products:
        for _ in range(qty):
            cart = add_line(cart, product)
    return checkout(cart, session_id, method, timestamp, ticket_id=ticket_id)


# ─── Fixtures ────────────────────────────────────────────────────────────────


@pytest.fixture
def pils() -> Product:
    return Product(id="pils", name="Pils", price=Decimal("2.50"), vat_rate=Decimal("21"), stock=10)


@pytest.fixture
def wine() -> Product:
    return Product(id="wine", name="Huiswijn", price=Decimal("5.50"), vat_rate=Decimal("21"))


@pytest.fixture
def voucher() -> Product:
    return Product(id="voucher", name="Cadeaubon", price=Decimal("20.00"), vat_rate=Decimal("0"))


@pytest.fixture
def cocktail() -> Product:
    return Product(id="cocktail", name="Cocktail", price=Decimal("10.00"), vat_rate=Decimal("21"))


@pytest.fixture
def company() -> CompanyDetails:
    return CompanyDetails(
        name="DE GEZELLIGE BAR",
        address="Grote Markt 1",
        address2="1000 Brussel",
        vat_number="BE0123.456.789",
        website="www.degezelligebar.be",
        footer_message="Bedankt en tot ziens!",
    )


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()
