"""
Abstract base classes for the printer link.

Host wireless bindings (bleak, pyserial) and the mock implement these
narrow interfaces; nothing above the transport sees the host API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence


class TransportError(Exception):
    """Base class for printer link failures. Never fatal to the till."""


class DeviceNotSelectedError(TransportError):
    """No printer was selected (user cancelled or nothing in range)."""


class NoWritableChannelError(TransportError):
    """The device exposes no writable characteristic in any service."""


class NotConnectedError(TransportError):
    """No printer device is known; connect() first."""


class BusyError(TransportError):
    """Another send is still in flight."""

    def __init__(self) -> None:
        super().__init__("Printer is busy with another job")


class ChannelWriteError(TransportError):
    """A chunk write failed; the rest of the job was not sent."""

    def __init__(self, message: str, sent: int = 0) -> None:
        super().__init__(message)
        self.sent = sent


# GATT characteristic properties that accept writes
WRITE = "write"
WRITE_WITHOUT_RESPONSE = "write-without-response"


@dataclass(frozen=True)
class CharacteristicInfo:
    """A characteristic as advertised by the device."""
    uuid: str
    properties: frozenset[str] = field(default_factory=frozenset)

    @property
    def writable(self) -> bool:
        return WRITE in self.properties or WRITE_WITHOUT_RESPONSE in self.properties


@dataclass(frozen=True)
class ServiceInfo:
    """A primary service and its characteristics."""
    uuid: str
    characteristics: tuple[CharacteristicInfo, ...] = ()


@dataclass(frozen=True)
class ChannelChoice:
    """The characteristic picked for printing."""
    service_uuid: str
    characteristic_uuid: str
    with_response: bool


def select_write_channel(services: Sequence[ServiceInfo]) -> ChannelChoice:
    """Pick the print channel from discovered services.

    The first service holding any writable characteristic wins. Inside it,
    a write-without-response characteristic is preferred over one that
    needs an acknowledgement per write.

    Raises:
        NoWritableChannelError: No service has a writable characteristic
    """
    for service in services:
        writable = [c for c in service.characteristics if c.writable]
        if not writable:
            continue
        for char in writable:
            if WRITE_WITHOUT_RESPONSE in char.properties:
                return ChannelChoice(service.uuid, char.uuid, with_response=False)
        return ChannelChoice(service.uuid, writable[0].uuid, with_response=True)

    raise NoWritableChannelError(
        f"No writable characteristic in {len(services)} services; "
        "make sure the printer speaks ESC/POS over Bluetooth"
    )


class WritableChannel(ABC):
    """A negotiated channel that accepts raw printer bytes."""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Write one chunk. Raises on failure."""
        ...


class Connectable(ABC):
    """A selected printer device."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable device name."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the logical link is up."""
        ...

    @abstractmethod
    async def connect(self) -> WritableChannel:
        """
        Establish the link and discover the print channel.

        Raises:
            NoWritableChannelError: No writable characteristic found
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Tear down the link."""
        ...

    @abstractmethod
    def set_disconnect_callback(self, callback: Optional[Callable[[], None]]) -> None:
        """Register a callback for spontaneous link loss."""
        ...


class Discovery(ABC):
    """Device selection from the host stack."""

    @abstractmethod
    async def request_device(self, service_uuids: Sequence[str]) -> Optional[Connectable]:
        """
        Select a printer.

        Args:
            service_uuids: Allow-list of candidate printer services

        Returns:
            The selected device, or None when nothing was selected
        """
        ...
