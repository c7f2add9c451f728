"""Printer link and host bindings for barkassa."""

import logging
from typing import Optional

from barkassa.config.settings import PrinterSettings
from barkassa.hardware.base import Discovery
from barkassa.hardware.printer.link import (
    ConnectionState,
    LinkStatus,
    PrinterLink,
    chunk_count,
)
from barkassa.hardware.printer.mock import MockChannel, MockDevice, MockDiscovery

logger = logging.getLogger(__name__)


def create_discovery(settings: PrinterSettings) -> Discovery:
    """Build the device selection for the configured backend."""
    if settings.backend == "mock":
        return MockDiscovery(MockDevice())

    if settings.backend == "serial":
        from barkassa.hardware.printer.spp import SerialDiscovery
        return SerialDiscovery(settings.serial_port, settings.baudrate)

    from barkassa.hardware.printer.ble import BleDiscovery
    return BleDiscovery(
        address=settings.address,
        name=settings.name,
        timeout=settings.scan_timeout,
    )


def create_link(settings: Optional[PrinterSettings] = None, mock: bool = False) -> PrinterLink:
    """Factory function to create the printer link.

    Args:
        settings: Printer settings (defaults from the environment)
        mock: Force the mock backend

    Returns:
        Disconnected printer link
    """
    settings = settings or PrinterSettings()
    if mock:
        settings = settings.model_copy(update={"backend": "mock"})

    logger.info(f"Printer backend: {settings.backend}")
    return PrinterLink(
        create_discovery(settings),
        service_uuids=settings.service_uuids,
        chunk_size=settings.chunk_size,
        chunk_delay=settings.chunk_delay,
    )


__all__ = [
    "ConnectionState",
    "LinkStatus",
    "MockChannel",
    "MockDevice",
    "MockDiscovery",
    "PrinterLink",
    "chunk_count",
    "create_discovery",
    "create_link",
]
