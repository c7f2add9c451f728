"""Ledger model: carts, tickets and till sessions."""

from barkassa.ledger.cart import (
    VAT_RATES,
    add_line,
    cart_total,
    change_quantity,
    checkout,
    deduct_stock,
    set_quantity,
    split_vat,
    ticket_number,
)
from barkassa.ledger.errors import (
    CartValidationError,
    DuplicateTicketError,
    EmptyCartError,
    InvalidLineError,
    LedgerError,
    SessionClosedError,
    SessionMismatchError,
)
from barkassa.ledger.models import (
    Cart,
    CartLine,
    CashControl,
    CashDirection,
    CashEntry,
    CompanyDetails,
    DailySummary,
    PaymentMethod,
    Product,
    ProductTally,
    SalesSession,
    SessionStatus,
    SoldLine,
    Transaction,
    VatBucket,
    to_money,
)
from barkassa.ledger.session import (
    Reconciliation,
    apply_transaction,
    close_session,
    expected_cash,
    fold_summary,
    open_session,
    reconcile,
    record_cash_entry,
)

__all__ = [
    # Cart
    "VAT_RATES",
    "add_line",
    "cart_total",
    "change_quantity",
    "checkout",
    "deduct_stock",
    "set_quantity",
    "split_vat",
    "ticket_number",
    # Session
    "Reconciliation",
    "apply_transaction",
    "close_session",
    "expected_cash",
    "fold_summary",
    "open_session",
    "reconcile",
    "record_cash_entry",
    # Records
    "Cart",
    "CartLine",
    "CashControl",
    "CashDirection",
    "CashEntry",
    "CompanyDetails",
    "DailySummary",
    "PaymentMethod",
    "Product",
    "ProductTally",
    "SalesSession",
    "SessionStatus",
    "SoldLine",
    "Transaction",
    "VatBucket",
    "to_money",
    # Errors
    "CartValidationError",
    "DuplicateTicketError",
    "EmptyCartError",
    "InvalidLineError",
    "LedgerError",
    "SessionClosedError",
    "SessionMismatchError",
]
