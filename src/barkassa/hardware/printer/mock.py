"""Mock printer link for development and tests.

Records every chunk instead of talking to hardware. Failures and link
loss can be injected to exercise the transport's error paths.
"""

import logging
from typing import Awaitable, Callable, Optional, Sequence

from barkassa.hardware.base import (
    WRITE,
    WRITE_WITHOUT_RESPONSE,
    CharacteristicInfo,
    ChannelChoice,
    Connectable,
    Discovery,
    ServiceInfo,
    WritableChannel,
    select_write_channel,
)

logger = logging.getLogger(__name__)

MOCK_SERVICES = (
    ServiceInfo(
        uuid="000018f0-0000-1000-8000-00805f9b34fb",
        characteristics=(
            CharacteristicInfo("00002af0-0000-1000-8000-00805f9b34fb", frozenset({"notify"})),
            CharacteristicInfo(
                "00002af1-0000-1000-8000-00805f9b34fb",
                frozenset({WRITE, WRITE_WITHOUT_RESPONSE}),
            ),
        ),
    ),
)


class MockChannel(WritableChannel):
    """Collects written chunks.

    Args:
        choice: Characteristic this channel writes to
        fail_at: Zero-based chunk index whose write raises
        on_write: Awaited before each chunk is recorded
    """

    def __init__(
        self,
        choice: ChannelChoice,
        fail_at: Optional[int] = None,
        on_write: Optional[Callable[[bytes], Awaitable[None]]] = None,
    ):
        self.choice = choice
        self.chunks: list[bytes] = []
        self._fail_at = fail_at
        self._on_write = on_write

    @property
    def received(self) -> bytes:
        return b''.join(self.chunks)

    async def write(self, data: bytes) -> None:
        if self._on_write is not None:
            await self._on_write(data)
        if self._fail_at is not None and len(self.chunks) == self._fail_at:
            raise OSError("Mock write failure")
        self.chunks.append(bytes(data))
        logger.debug(f"Mock write: {len(data)} bytes")


class MockDevice(Connectable):
    """Simulated printer exposing a fixed set of GATT services."""

    def __init__(
        self,
        name: str = "Mock Printer",
        services: Sequence[ServiceInfo] = MOCK_SERVICES,
        fail_at: Optional[int] = None,
        on_write: Optional[Callable[[bytes], Awaitable[None]]] = None,
    ):
        self._name = name
        self._services = tuple(services)
        self._fail_at = fail_at
        self._on_write = on_write
        self._connected = False
        self._on_disconnect: Optional[Callable[[], None]] = None
        self.connect_count = 0
        self.channels: list[MockChannel] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def received(self) -> bytes:
        """Everything written over all channels."""
        return b''.join(c.received for c in self.channels)

    def set_disconnect_callback(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_disconnect = callback

    async def connect(self) -> WritableChannel:
        self.connect_count += 1
        choice = select_write_channel(self._services)
        self._connected = True
        channel = MockChannel(choice, fail_at=self._fail_at, on_write=self._on_write)
        self.channels.append(channel)
        logger.info(f"Mock printer connected: {self._name}")
        return channel

    async def disconnect(self) -> None:
        self._connected = False

    def drop_link(self) -> None:
        """Simulate the printer going out of range."""
        self._connected = False
        if self._on_disconnect is not None:
            self._on_disconnect()


class MockDiscovery(Discovery):
    """Always selects the given device (None simulates a cancelled chooser)."""

    def __init__(self, device: Optional[Connectable] = None):
        self.device = device
        self.requests: list[list[str]] = []

    async def request_device(self, service_uuids: Sequence[str]) -> Optional[Connectable]:
        self.requests.append(list(service_uuids))
        return self.device
