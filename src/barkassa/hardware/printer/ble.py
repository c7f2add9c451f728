"""Bluetooth Low Energy printer binding (bleak).

Most cheap 58mm Bluetooth printers expose ESC/POS over a vendor GATT
service. Which one is unknown ahead of time, so discovery ranks devices
that advertise a candidate service first but accepts any device, and the
print channel is the first writable characteristic found.

Override the device with env vars:
    BARKASSA_PRINTER_ADDRESS=AA:BB:CC:DD:EE:FF
    BARKASSA_PRINTER_NAME=MPT-II
"""

import logging
from typing import Callable, Optional, Sequence

from bleak import BleakClient, BleakScanner
from bleak.backends.device import BLEDevice

from barkassa.hardware.base import (
    CharacteristicInfo,
    Connectable,
    Discovery,
    ServiceInfo,
    WritableChannel,
    select_write_channel,
)

logger = logging.getLogger(__name__)


class GattChannel(WritableChannel):
    """Write channel on one GATT characteristic."""

    def __init__(self, client: BleakClient, characteristic_uuid: str, with_response: bool):
        self._client = client
        self.characteristic_uuid = characteristic_uuid
        self.with_response = with_response

    async def write(self, data: bytes) -> None:
        await self._client.write_gatt_char(self.characteristic_uuid, data, response=self.with_response)


class BleDevice(Connectable):
    """A BLE printer selected during discovery."""

    def __init__(self, device: BLEDevice):
        self._device = device
        self._client: Optional[BleakClient] = None
        self._on_disconnect: Optional[Callable[[], None]] = None

    @property
    def name(self) -> str:
        return self._device.name or self._device.address

    @property
    def address(self) -> str:
        return self._device.address

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected

    def set_disconnect_callback(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_disconnect = callback

    def _handle_disconnect(self, client: BleakClient) -> None:
        logger.debug(f"GATT link to {self.name} dropped")
        if self._on_disconnect is not None:
            self._on_disconnect()

    async def connect(self) -> WritableChannel:
        """Connect the GATT client and pick the print characteristic."""
        if self._client is None:
            self._client = BleakClient(self._device, disconnected_callback=self._handle_disconnect)

        if not self._client.is_connected:
            logger.info(f"Connecting to GATT server on {self.name}...")
            await self._client.connect()

        services = []
        for service in self._client.services:
            services.append(ServiceInfo(
                uuid=service.uuid,
                characteristics=tuple(
                    CharacteristicInfo(uuid=c.uuid, properties=frozenset(c.properties))
                    for c in service.characteristics
                ),
            ))
        logger.debug(f"Found {len(services)} services on {self.name}")

        choice = select_write_channel(services)
        logger.info(
            f"Writable characteristic {choice.characteristic_uuid} "
            f"in service {choice.service_uuid}"
        )
        return GattChannel(self._client, choice.characteristic_uuid, choice.with_response)

    async def disconnect(self) -> None:
        if self._client is not None and self._client.is_connected:
            await self._client.disconnect()
        self._client = None


class BleDiscovery(Discovery):
    """Selects a BLE printer by address, name, advertised service or any device found."""

    def __init__(self, address: str = "", name: str = "", timeout: float = 8.0):
        self._address = address
        self._name = name
        self._timeout = timeout

    async def request_device(self, service_uuids: Sequence[str]) -> Optional[Connectable]:
        """Pick a printer.

        Order of preference: the configured address, the configured name,
        a device advertising one of ``service_uuids``, then any named
        device, then any device at all. Many printers do not advertise
        their GATT service, so the candidate list only ranks devices.
        """
        if self._address:
            device = await BleakScanner.find_device_by_address(self._address, timeout=self._timeout)
            if device is None:
                logger.warning(f"Printer {self._address} not found")
                return None
            return BleDevice(device)

        logger.info(f"Scanning for printers ({self._timeout:.0f}s)...")
        found = list((await BleakScanner.discover(timeout=self._timeout, return_adv=True)).values())
        if not found:
            logger.warning("No Bluetooth devices found during scan")
            return None

        if self._name:
            for device, adv in found:
                if (device.name or adv.local_name) == self._name:
                    return BleDevice(device)
            logger.warning(f"Printer {self._name} not found")
            return None

        wanted = {u.lower() for u in service_uuids}
        for device, adv in found:
            if wanted.intersection(u.lower() for u in adv.service_uuids):
                return BleDevice(device)

        named = [device for device, adv in found if device.name or adv.local_name]
        device = named[0] if named else found[0][0]
        logger.info(f"No advertised printer service, trying {device.name or device.address}")
        return BleDevice(device)

    async def scan(self) -> list[tuple[str, str]]:
        """List nearby devices as (address, name) pairs."""
        devices = await BleakScanner.discover(timeout=self._timeout)
        return [(d.address, d.name or "") for d in devices]
