"""Serial Port Profile printer binding (pyserial).

Classic Bluetooth printers bound with ``rfcomm bind`` show up as a serial
device (``/dev/rfcomm0``). The port itself is the print channel.
"""

import logging
from typing import Callable, Optional, Sequence

import serial

from barkassa.hardware.base import Connectable, Discovery, WritableChannel

logger = logging.getLogger(__name__)


class SerialChannel(WritableChannel):
    """Writes straight to an open serial port."""

    def __init__(self, port: serial.Serial):
        self._port = port

    async def write(self, data: bytes) -> None:
        self._port.write(data)
        self._port.flush()


class SerialDevice(Connectable):
    """An rfcomm-bound printer."""

    def __init__(self, port: str, baudrate: int = 9600):
        self._port_name = port
        self._baudrate = baudrate
        self._serial: Optional[serial.Serial] = None
        self._on_disconnect: Optional[Callable[[], None]] = None

    @property
    def name(self) -> str:
        return self._port_name

    @property
    def is_connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def set_disconnect_callback(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_disconnect = callback

    async def connect(self) -> WritableChannel:
        if not self.is_connected:
            self._serial = serial.Serial(
                port=self._port_name,
                baudrate=self._baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=2.0,
                write_timeout=2.0,
            )
            logger.info(f"Serial printer opened on {self._port_name}")
        return SerialChannel(self._serial)

    async def disconnect(self) -> None:
        if self._serial:
            self._serial.close()
            self._serial = None


class SerialDiscovery(Discovery):
    """Device selection is fixed by configuration for serial printers."""

    def __init__(self, port: str, baudrate: int = 9600):
        self._port = port
        self._baudrate = baudrate

    async def request_device(self, service_uuids: Sequence[str]) -> Optional[Connectable]:
        if not self._port:
            return None
        return SerialDevice(self._port, self._baudrate)
