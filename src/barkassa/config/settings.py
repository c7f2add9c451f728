"""
Application settings using Pydantic.

Settings are loaded from environment variables with .env file support.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Candidate GATT services exposed by Bluetooth thermal printers.
PRINTER_SERVICE_UUIDS: list[str] = [
    "000018f0-0000-1000-8000-00805f9b34fb",  # Common thermal printer service
    "0000ff00-0000-1000-8000-00805f9b34fb",
    "0000fee7-0000-1000-8000-00805f9b34fb",
    "49535343-fe7d-4ae5-8fa9-9fafd205e455",
    "e7810a71-73ae-499d-8c15-faa9aef0c3f2",
    "0000ae00-0000-1000-8000-00805f9b34fb",
    "00001101-0000-1000-8000-00805f9b34fb",  # Serial Port Profile
]


class PrinterSettings(BaseSettings):
    """Thermal printer link settings."""

    model_config = SettingsConfigDict(env_prefix="BARKASSA_PRINTER_", extra="ignore")

    backend: Literal["ble", "serial", "mock"] = "ble"

    # BLE selection (first advertising printer wins when both are empty)
    address: str = ""
    name: str = ""
    scan_timeout: float = 8.0
    service_uuids: list[str] = Field(default_factory=lambda: list(PRINTER_SERVICE_UUIDS))

    # Serial port profile (rfcomm-bound printers)
    serial_port: str = "/dev/rfcomm0"
    baudrate: int = 9600

    # Pacing: the printers have no flow control
    chunk_size: int = Field(default=20, gt=0)
    chunk_delay: float = Field(default=0.05, ge=0.0)

    # 58mm paper, font A
    line_width: int = 32
    encoding: str = "cp437"


class LedgerSettings(BaseSettings):
    """Ticket numbering and VAT settings."""

    model_config = SettingsConfigDict(env_prefix="BARKASSA_LEDGER_", extra="ignore")

    ticket_prefix: str = "AM"
    vat_rates: list[Decimal] = Field(
        default_factory=lambda: [Decimal("0"), Decimal("6"), Decimal("12"), Decimal("21")]
    )
    currency: str = "EUR"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="BARKASSA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Operating mode scopes everything the till persists
    mode: Literal["live", "training"] = "live"
    debug: bool = False

    # Print a receipt right after each payment when a printer is connected
    auto_print: bool = True

    # Nested settings
    printer: PrinterSettings = Field(default_factory=PrinterSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)

    @property
    def is_training(self) -> bool:
        """Check if running in training mode."""
        return self.mode == "training"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
