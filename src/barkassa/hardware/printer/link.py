"""Printer link: device selection, channel negotiation and paced delivery.

States:
    DISCONNECTED: No usable channel (a device may still be known)
    CONNECTING: Selecting a device or (re)establishing the channel
    CONNECTED: Channel negotiated, ready to send

Bluetooth thermal printers have small receive buffers and no flow control,
so every job is written in short chunks with a pause between them. Only
one job may be on the wire at a time; a second one is rejected, never
interleaved or queued.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Awaitable, Callable, Optional, Sequence

from barkassa.config.settings import PRINTER_SERVICE_UUIDS
from barkassa.hardware.base import (
    BusyError,
    ChannelWriteError,
    Connectable,
    DeviceNotSelectedError,
    Discovery,
    NoWritableChannelError,
    NotConnectedError,
    WritableChannel,
)

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 20
DEFAULT_CHUNK_DELAY = 0.05  # seconds


class LinkStatus(Enum):
    """Printer link states."""
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()


VALID_TRANSITIONS: set[tuple[LinkStatus, LinkStatus]] = {
    (LinkStatus.DISCONNECTED, LinkStatus.CONNECTING),
    (LinkStatus.CONNECTING, LinkStatus.CONNECTED),
    (LinkStatus.CONNECTING, LinkStatus.DISCONNECTED),  # Cancelled / failed
    (LinkStatus.CONNECTED, LinkStatus.DISCONNECTED),
    (LinkStatus.CONNECTED, LinkStatus.CONNECTING),  # Channel lost, relinking
}


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of the link. Replaced, never mutated."""
    status: LinkStatus = LinkStatus.DISCONNECTED
    device: Optional[Connectable] = None
    channel: Optional[WritableChannel] = None

    @property
    def is_ready(self) -> bool:
        return (
            self.status is LinkStatus.CONNECTED
            and self.channel is not None
            and self.device is not None
            and self.device.is_connected
        )


def chunk_count(size: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Number of writes needed for a buffer of ``size`` bytes."""
    return math.ceil(size / chunk_size)


class PrinterLink:
    """Stateful wireless link to one thermal printer.

    Args:
        discovery: Host device selection
        service_uuids: Candidate printer services to ask for
        chunk_size: Bytes per write
        chunk_delay: Pause between writes, in seconds
        state: Initial connection state (tests start from any state)
        sleep: Pause implementation, ``asyncio.sleep`` by default
    """

    def __init__(
        self,
        discovery: Discovery,
        service_uuids: Sequence[str] = PRINTER_SERVICE_UUIDS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_delay: float = DEFAULT_CHUNK_DELAY,
        state: Optional[ConnectionState] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._discovery = discovery
        self._service_uuids = list(service_uuids)
        self._chunk_size = chunk_size
        self._chunk_delay = chunk_delay
        self._state = state or ConnectionState()
        self._sleep = sleep
        self._busy = False
        self._listeners: list[Callable[[ConnectionState, ConnectionState], None]] = []

        if self._state.device is not None:
            self._state.device.set_disconnect_callback(self.handle_disconnect)

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if a channel is ready for the next send."""
        return self._state.is_ready

    @property
    def is_busy(self) -> bool:
        """Check if a job is on the wire."""
        return self._busy

    @property
    def device_name(self) -> str:
        if self._state.device is None:
            return "Onbekend apparaat"
        return self._state.device.name

    def add_listener(self, callback: Callable[[ConnectionState, ConnectionState], None]) -> None:
        """Add a state change listener."""
        self._listeners.append(callback)

    def _set_state(self, new_state: ConnectionState) -> None:
        old_state = self._state
        if (old_state.status, new_state.status) not in VALID_TRANSITIONS and old_state.status != new_state.status:
            logger.warning(f"Invalid link transition: {old_state.status.name} -> {new_state.status.name}")
        self._state = new_state

        if old_state.status != new_state.status:
            logger.info(f"Link transition: {old_state.status.name} -> {new_state.status.name}")

        for listener in self._listeners:
            try:
                listener(old_state, new_state)
            except Exception as e:
                logger.error(f"Error in link listener: {e}")

    async def connect(self) -> ConnectionState:
        """Select a printer and negotiate its print channel.

        Returns:
            The connected state

        Raises:
            DeviceNotSelectedError: Nothing was selected; link stays down
            BusyError: A job is still being sent to the current device
            NoWritableChannelError: The device has no usable channel
        """
        if self._busy:
            logger.warning("Printer is busy, reconnect rejected")
            raise BusyError()

        self._set_state(replace(self._state, status=LinkStatus.CONNECTING))

        try:
            device = await self._discovery.request_device(self._service_uuids)
        except Exception:
            self._set_state(ConnectionState())
            raise

        if device is None:
            logger.info("No printer selected")
            self._set_state(ConnectionState())
            raise DeviceNotSelectedError("No printer selected")

        logger.info(f"Printer selected: {device.name}")
        previous = self._state.device
        if previous is not None and previous is not device:
            await self._drop_device(previous)
        return await self._establish(device)

    async def _establish(self, device: Connectable) -> ConnectionState:
        """Connect the link and discover the channel of a known device."""
        self._set_state(ConnectionState(status=LinkStatus.CONNECTING, device=device))
        try:
            channel = await device.connect()
        except NoWritableChannelError:
            logger.error(f"No writable channel on {device.name}")
            await self._drop_device(device)
            self._set_state(ConnectionState())
            raise
        except Exception as e:
            logger.error(f"Failed to connect to {device.name}: {e}")
            # Keep the device so the next send can try again
            self._set_state(ConnectionState(device=device))
            raise

        device.set_disconnect_callback(self.handle_disconnect)
        self._set_state(ConnectionState(status=LinkStatus.CONNECTED, device=device, channel=channel))
        logger.info(f"Printer link established: {device.name}")
        return self._state

    async def _drop_device(self, device: Connectable) -> None:
        device.set_disconnect_callback(None)
        try:
            await device.disconnect()
        except Exception as e:
            logger.warning(f"Error while disconnecting {device.name}: {e}")

    async def _ensure_channel(self) -> WritableChannel:
        """Return a ready channel, relinking a known device if needed."""
        if self._state.is_ready:
            return self._state.channel

        device = self._state.device
        if device is None:
            raise NotConnectedError("Not connected to a printer")

        logger.info(f"Reconnecting to {device.name}...")
        state = await self._establish(device)
        return state.channel

    async def send(self, data: bytes) -> int:
        """Deliver a job to the printer in paced chunks.

        Args:
            data: Complete command buffer

        Returns:
            Number of chunk writes issued

        Raises:
            BusyError: Another job is still being sent
            NotConnectedError: No printer known
            ChannelWriteError: A write failed; later chunks were not sent
        """
        if self._busy:
            logger.warning("Printer is busy, job rejected")
            raise BusyError()

        self._busy = True
        try:
            channel = await self._ensure_channel()
            total = chunk_count(len(data), self._chunk_size)
            logger.debug(f"Sending {len(data)} bytes in {total} chunks of {self._chunk_size}")

            for index, offset in enumerate(range(0, len(data), self._chunk_size)):
                if index:
                    await self._sleep(self._chunk_delay)
                chunk = data[offset:offset + self._chunk_size]
                try:
                    await channel.write(chunk)
                except Exception as e:
                    logger.error(f"Chunk {index + 1}/{total} failed: {e}")
                    raise ChannelWriteError(
                        f"Write failed after {offset} of {len(data)} bytes: {e}",
                        sent=offset,
                    ) from e

            logger.info(f"Print data sent: {len(data)} bytes")
            return total

        finally:
            self._busy = False

    def handle_disconnect(self) -> None:
        """Spontaneous link loss: drop the channel, keep the device."""
        if self._state.channel is None and self._state.status is LinkStatus.DISCONNECTED:
            return
        logger.warning(f"Printer disconnected: {self.device_name}")
        self._set_state(replace(self._state, status=LinkStatus.DISCONNECTED, channel=None))

    async def disconnect(self) -> None:
        """Explicit teardown; forgets device and channel."""
        device = self._state.device
        if device is not None:
            await self._drop_device(device)
        self._set_state(ConnectionState())
        logger.info("Printer link closed")
