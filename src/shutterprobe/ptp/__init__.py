"""PTP client with Canon EOS and Fujifilm shutter count extensions."""

from .errors import (
    MalformedPacket,
    NoResponse,
    ProtocolError,
    PTPError,
    SessionError,
    TransportUnavailable,
    USBTransportError,
    VendorInitError,
)
from .protocol import DeviceInfo, PTPProtocol
from .session import PTPSession
from .transport import Transport, USBTransport

__all__ = [
    "DeviceInfo",
    "MalformedPacket",
    "NoResponse",
    "PTPError",
    "PTPProtocol",
    "PTPSession",
    "ProtocolError",
    "SessionError",
    "Transport",
    "TransportUnavailable",
    "USBTransport",
    "USBTransportError",
    "VendorInitError",
]
