"""barkassa - bar point-of-sale ledger and thermal receipt printing."""

__version__ = "0.1.0"
