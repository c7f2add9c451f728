"""Hardware abstraction layer for barkassa."""

from .base import (
    BusyError,
    ChannelWriteError,
    CharacteristicInfo,
    Connectable,
    DeviceNotSelectedError,
    Discovery,
    NoWritableChannelError,
    NotConnectedError,
    ServiceInfo,
    TransportError,
    WritableChannel,
    select_write_channel,
)

__all__ = [
    # Interfaces
    "Connectable",
    "Discovery",
    "WritableChannel",
    "CharacteristicInfo",
    "ServiceInfo",
    "select_write_channel",
    # Errors
    "TransportError",
    "BusyError",
    "ChannelWriteError",
    "DeviceNotSelectedError",
    "NoWritableChannelError",
    "NotConnectedError",
]
