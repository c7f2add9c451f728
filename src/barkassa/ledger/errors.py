"""Ledger exceptions."""


class LedgerError(Exception):
    """Base class for ledger failures."""


class CartValidationError(LedgerError):
    """Cart rejected before any transaction was created."""


class EmptyCartError(CartValidationError):
    """Checkout attempted on a cart without lines."""

    def __init__(self) -> None:
        super().__init__("Cart must contain at least one line")


class InvalidLineError(CartValidationError):
    """A cart line has an unusable quantity, price or VAT rate."""


class SessionClosedError(LedgerError):
    """The session is closed and therefore read-only."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} is closed")
        self.session_id = session_id


class SessionMismatchError(LedgerError):
    """A record belongs to a different session."""


class DuplicateTicketError(LedgerError):
    """A ticket with this id is already part of the session."""
