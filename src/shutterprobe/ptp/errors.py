"""Exceptions raised by the PTP client."""

from __future__ import annotations


class PTPError(Exception):
    """Base class for all PTP client errors."""

    pass


class USBTransportError(PTPError):
    """USB transport layer error."""

    pass


class TransportUnavailable(USBTransportError):
    """No camera with a usable PTP interface and bulk endpoints."""

    pass


class NoResponse(USBTransportError):
    """The camera did not answer within the allowed number of reads."""

    pass


class MalformedPacket(PTPError):
    """A container was too short or of an unexpected type."""

    pass


class ProtocolError(PTPError):
    """The camera answered with a non-OK response code."""

    def __init__(self, message: str, response_code: int | None = None) -> None:
        super().__init__(message)
        self.response_code = response_code


class SessionError(ProtocolError):
    """OpenSession failed again after closing a stale session."""

    pass


class VendorInitError(PTPError):
    """A Canon EOS setup command failed."""

    pass
