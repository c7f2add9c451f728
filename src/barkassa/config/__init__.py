"""Configuration for barkassa."""

from .settings import (
    PRINTER_SERVICE_UUIDS,
    LedgerSettings,
    PrinterSettings,
    Settings,
    get_settings,
)

__all__ = [
    "PRINTER_SERVICE_UUIDS",
    "LedgerSettings",
    "PrinterSettings",
    "Settings",
    "get_settings",
]
