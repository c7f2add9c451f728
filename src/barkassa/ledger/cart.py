"""Cart operations and checkout.

Prices are VAT inclusive. The VAT of a ticket is derived per bucket from
each line's own rate:

    vat  = gross * rate / (100 + rate)     (rounded to cents)
    base = gross - vat

so ``total == subtotal + sum(vat) == sum(price * quantity)`` holds exactly.
"""

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from barkassa.ledger.errors import EmptyCartError, InvalidLineError
from barkassa.ledger.models import (
    CENT,
    ZERO,
    Cart,
    CartLine,
    PaymentMethod,
    Product,
    SoldLine,
    Transaction,
    VatBucket,
    to_money,
)

logger = logging.getLogger(__name__)

VAT_RATES: tuple[Decimal, ...] = (Decimal("0"), Decimal("6"), Decimal("12"), Decimal("21"))

DATE_FORMAT = "%d-%m-%Y"


def add_line(cart: Cart, product: Product) -> Cart:
    """Add one unit of a product, merging with an existing line."""
    cart = tuple(cart)
    for index, line in enumerate(cart):
        if line.product.id == product.id:
            bumped = CartLine(product=line.product, quantity=line.quantity + 1)
            return cart[:index] + (bumped,) + cart[index + 1:]
    return cart + (CartLine(product=product, quantity=1),)


def set_quantity(cart: Cart, product_id: str, quantity: int) -> Cart:
    """Replace the quantity of a line; zero or less removes it.

    Unknown products leave the cart unchanged.
    """
    cart = tuple(cart)
    for index, line in enumerate(cart):
        if line.product.id != product_id:
            continue
        if quantity <= 0:
            return cart[:index] + cart[index + 1:]
        return cart[:index] + (CartLine(line.product, quantity),) + cart[index + 1:]
    return cart


def change_quantity(cart: Cart, product_id: str, delta: int) -> Cart:
    """Add ``delta`` to a line's quantity."""
    for line in cart:
        if line.product.id == product_id:
            return set_quantity(cart, product_id, line.quantity + delta)
    return tuple(cart)


def cart_total(cart: Cart) -> Decimal:
    """Gross amount due for the cart."""
    return sum((to_money(line.product.price * line.quantity) for line in cart), ZERO)


def ticket_number(prefix: str, year: int, sequence: int) -> str:
    """Human-legible ticket id, e.g. ``AM2026-0042``."""
    return f"{prefix}{year}-{sequence:04d}"


def _snapshot(line: CartLine, vat_rates: Sequence[Decimal]) -> SoldLine:
    product = line.product
    if not isinstance(line.quantity, int) or line.quantity <= 0:
        raise InvalidLineError(f"Quantity for '{product.name}' must be a positive integer")
    if product.price <= 0:
        raise InvalidLineError(f"Price for '{product.name}' must be positive")
    if product.price != product.price.quantize(CENT):
        raise InvalidLineError(f"Price for '{product.name}' has more than 2 decimals")
    if product.vat_rate not in vat_rates:
        raise InvalidLineError(f"VAT rate {product.vat_rate}% of '{product.name}' is not allowed")

    return SoldLine(
        product_id=product.id,
        name=product.name,
        price=to_money(product.price),
        vat_rate=product.vat_rate,
        quantity=line.quantity,
    )


def split_vat(lines: Iterable[SoldLine]) -> tuple[VatBucket, ...]:
    """Group sold lines by VAT rate and back-calculate the VAT of each group."""
    gross: dict[Decimal, Decimal] = defaultdict(lambda: ZERO)
    for line in lines:
        gross[line.vat_rate] += line.total

    buckets = []
    for rate in sorted(gross):
        vat = to_money(gross[rate] * rate / (Decimal(100) + rate))
        buckets.append(VatBucket(rate=rate, base=gross[rate] - vat, vat=vat))
    return tuple(buckets)


def checkout(
    cart: Cart,
    session_id: str,
    payment_method: PaymentMethod,
    timestamp: datetime,
    seller: Optional[str] = None,
    ticket_id: Optional[str] = None,
    vat_rates: Sequence[Decimal] = VAT_RATES,
) -> Transaction:
    """Turn a cart into an immutable ticket.

    Args:
        cart: Lines to sell
        session_id: Session the ticket belongs to
        payment_method: CASH or CARD
        timestamp: Moment of sale
        seller: Optional seller name printed on the ticket
        ticket_id: Id to use; derived from the timestamp when omitted
        vat_rates: Allowed VAT rates in percent

    Returns:
        The new transaction

    Raises:
        EmptyCartError: The cart has no lines
        InvalidLineError: A line has a bad quantity, price or VAT rate
    """
    if not cart:
        raise EmptyCartError()

    allowed = tuple(Decimal(str(r)) for r in vat_rates)
    lines = tuple(_snapshot(line, allowed) for line in cart)
    buckets = split_vat(lines)

    subtotal = sum((b.base for b in buckets), ZERO)
    total = subtotal + sum((b.vat for b in buckets), ZERO)

    tx = Transaction(
        id=ticket_id or f"T{timestamp:%Y%m%d%H%M%S%f}",
        session_id=session_id,
        timestamp=timestamp,
        date_str=timestamp.strftime(DATE_FORMAT),
        lines=lines,
        subtotal=subtotal,
        vat_buckets=buckets,
        total=total,
        payment_method=payment_method,
        seller=seller,
        updated_at=timestamp,
    )
    logger.info(f"Checkout {tx.id}: {len(lines)} lines, {tx.total} {payment_method.value}")
    return tx


def deduct_stock(products: Sequence[Product], tx: Transaction) -> list[Product]:
    """Reduce tracked stock by the quantities sold on a ticket."""
    sold: dict[str, int] = defaultdict(int)
    for line in tx.lines:
        sold[line.product_id] += line.quantity

    updated = []
    for product in products:
        if product.id in sold and product.stock is not None:
            product = replace(
                product,
                stock=product.stock - sold[product.id],
                updated_at=tx.timestamp,
            )
        updated.append(product)
    return updated
