"""
Ledger records.

Everything here is immutable. Transactions are the append-only ledger;
sessions are replaced, never edited, whenever a sale or cash movement
is applied to them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional


CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Convert a number to a Decimal rounded to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class PaymentMethod(Enum):
    """How a ticket was settled."""
    CASH = "CASH"
    CARD = "CARD"


class SessionStatus(Enum):
    """Till session lifecycle. CLOSED is terminal."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class CashDirection(Enum):
    """Direction of a manual drawer movement."""
    IN = "IN"
    OUT = "OUT"


@dataclass(frozen=True)
class Product:
    """A sellable item. Price is VAT inclusive."""

    id: str
    name: str
    price: Decimal
    vat_rate: Decimal = Decimal("21")
    color: str = ""
    stock: Optional[int] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", Decimal(str(self.price)))
        object.__setattr__(self, "vat_rate", Decimal(str(self.vat_rate)))
        if self.price < 0:
            raise ValueError(f"Product {self.id} has a negative price")


@dataclass(frozen=True)
class CartLine:
    """A product in the in-progress cart."""

    product: Product
    quantity: int = 1


Cart = tuple[CartLine, ...]


@dataclass(frozen=True)
class SoldLine:
    """A cart line frozen at sale time, independent of later product edits."""

    product_id: str
    name: str
    price: Decimal
    vat_rate: Decimal
    quantity: int

    @property
    def total(self) -> Decimal:
        return to_money(self.price * self.quantity)


@dataclass(frozen=True)
class VatBucket:
    """Sales grouped by VAT rate."""

    rate: Decimal
    base: Decimal
    vat: Decimal

    @property
    def gross(self) -> Decimal:
        return self.base + self.vat


@dataclass(frozen=True)
class Transaction:
    """One completed sale (ticket)."""

    id: str
    session_id: str
    timestamp: datetime
    date_str: str
    lines: tuple[SoldLine, ...]
    subtotal: Decimal
    vat_buckets: tuple[VatBucket, ...]
    total: Decimal
    payment_method: PaymentMethod
    seller: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def vat_total(self) -> Decimal:
        return sum((b.vat for b in self.vat_buckets), ZERO)

    def bucket(self, rate: Decimal | int) -> Optional[VatBucket]:
        """Get the bucket for a VAT rate, if the ticket has one."""
        rate = Decimal(str(rate))
        for b in self.vat_buckets:
            if b.rate == rate:
                return b
        return None


@dataclass(frozen=True)
class CashEntry:
    """A manual cash movement in or out of the drawer."""

    id: str
    session_id: str
    timestamp: datetime
    direction: CashDirection
    amount: Decimal
    reason: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_money(self.amount))
        if self.amount <= 0:
            raise ValueError("Cash entry amount must be positive")

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.direction is CashDirection.IN else -self.amount


@dataclass(frozen=True)
class ProductTally:
    """Quantity sold of one product/price variant."""

    name: str
    price: Decimal
    quantity: int


@dataclass(frozen=True)
class DailySummary:
    """Derived totals of a session. Always a fold over its transactions."""

    total_sales: Decimal = ZERO
    transaction_count: int = 0
    cash_total: Decimal = ZERO
    card_total: Decimal = ZERO
    vat_buckets: tuple[VatBucket, ...] = ()
    first_ticket_id: Optional[str] = None
    last_ticket_id: Optional[str] = None
    product_sales: tuple[ProductTally, ...] = ()

    @property
    def item_count(self) -> int:
        return sum(t.quantity for t in self.product_sales)


@dataclass(frozen=True)
class CashControl:
    """Audit record written when a session is closed."""

    opening: Decimal
    expected: Decimal
    counted: Decimal
    difference: Decimal


@dataclass(frozen=True)
class SalesSession:
    """Open-to-close period during which tickets accumulate against one float."""

    id: str
    start_time: datetime
    start_cash: Decimal = ZERO
    status: SessionStatus = SessionStatus.OPEN
    end_time: Optional[datetime] = None
    counted_cash: Optional[Decimal] = None
    expected_cash: Optional[Decimal] = None
    summary: DailySummary = field(default_factory=DailySummary)
    cash_entries: tuple[CashEntry, ...] = ()
    cash_control: Optional[CashControl] = None
    updated_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status is SessionStatus.OPEN


@dataclass(frozen=True)
class CompanyDetails:
    """Receipt header and footer data. Read only to the core."""

    name: str
    address: str = ""
    address2: str = ""
    vat_number: str = ""
    website: str = ""
    footer_message: str = "Bedankt!"
    seller_name: Optional[str] = None
    salesmen: tuple[str, ...] = ()
