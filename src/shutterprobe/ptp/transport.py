"""USB transport layer for PTP communication."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import usb.core
import usb.util

from .constants import PTP_USB_CLASS
from .errors import TransportUnavailable, USBTransportError

if TYPE_CHECKING:
    from usb.core import Device, Endpoint, Interface

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Bidirectional bulk byte channel to a camera's PTP interface."""

    def connect(self) -> None: ...

    def disconnect(self) -> None: ...

    def write(self, buffer: bytes) -> int: ...

    def read(self, max_length: int) -> bytes:
        """Return one bulk transfer; may be shorter than requested or empty."""
        ...


def _is_ptp_device(device: Device) -> bool:
    for cfg in device:
        if usb.util.find_descriptor(cfg, bInterfaceClass=PTP_USB_CLASS) is not None:
            return True
    return False


class USBTransport:
    """pyusb transport bound to the first Still Image interface found."""

    TIMEOUT_MS = 5000

    def __init__(
        self,
        vendor_id: int | None = None,
        product_id: int | None = None,
        timeout_ms: int = TIMEOUT_MS,
    ) -> None:
        self.vendor_id = vendor_id
        self.product_id = product_id
        self.timeout_ms = timeout_ms
        self.device: Device | None = None
        self.interface: Interface | None = None
        self.in_ep: Endpoint | None = None
        self.out_ep: Endpoint | None = None

    def find_device(self) -> Device:
        """Find a USB device exposing a PTP (Still Image) interface."""
        filters = {}
        if self.vendor_id is not None:
            filters["idVendor"] = self.vendor_id
        if self.product_id is not None:
            filters["idProduct"] = self.product_id

        device = usb.core.find(custom_match=_is_ptp_device, **filters)
        if device is None:
            raise TransportUnavailable(
                "No PTP camera found. Ensure the camera is connected, "
                "powered on and set to PTP mode."
            )
        return device

    def connect(self) -> None:
        """Claim the camera's PTP interface and look up its bulk endpoints."""
        self.device = self.find_device()
        logger.info(
            "Found PTP device %04x:%04x", self.device.idVendor, self.device.idProduct
        )

        try:
            cfg = self.device.get_active_configuration()
        except usb.core.USBError:
            cfg = None
        if cfg is None:
            try:
                self.device.set_configuration()
            except usb.core.USBError as e:
                if "Resource busy" in str(e):
                    raise TransportUnavailable(
                        "Camera is busy. Close any other applications using the camera "
                        "(e.g., EOS Utility, gphoto2)."
                    ) from e
                raise TransportUnavailable(f"Failed to configure device: {e}") from e
            cfg = self.device.get_active_configuration()

        intf = usb.util.find_descriptor(cfg, bInterfaceClass=PTP_USB_CLASS)
        if intf is None:
            raise TransportUnavailable("No PTP interface found")

        number = intf.bInterfaceNumber
        try:
            if self.device.is_kernel_driver_active(number):
                self.device.detach_kernel_driver(number)
        except (usb.core.USBError, NotImplementedError):
            # Some platforms don't support this
            pass

        try:
            usb.util.claim_interface(self.device, number)
        except usb.core.USBError as e:
            raise TransportUnavailable(f"Failed to claim PTP interface: {e}") from e
        self.interface = intf

        self.out_ep = usb.util.find_descriptor(
            intf,
            custom_match=lambda e: (
                usb.util.endpoint_direction(e.bEndpointAddress) == usb.util.ENDPOINT_OUT
                and usb.util.endpoint_type(e.bmAttributes) == usb.util.ENDPOINT_TYPE_BULK
            ),
        )

        self.in_ep = usb.util.find_descriptor(
            intf,
            custom_match=lambda e: (
                usb.util.endpoint_direction(e.bEndpointAddress) == usb.util.ENDPOINT_IN
                and usb.util.endpoint_type(e.bmAttributes) == usb.util.ENDPOINT_TYPE_BULK
            ),
        )

        if self.out_ep is None or self.in_ep is None:
            raise TransportUnavailable("Bulk endpoints not found")

    def disconnect(self) -> None:
        """Release the interface and free pyusb resources."""
        if self.device is None:
            return
        try:
            if self.interface is not None:
                usb.util.release_interface(self.device, self.interface.bInterfaceNumber)
        finally:
            usb.util.dispose_resources(self.device)
            self.device = None
            self.interface = None
            self.in_ep = None
            self.out_ep = None

    def write(self, buffer: bytes) -> int:
        if self.out_ep is None:
            raise USBTransportError("Not connected")
        try:
            return self.out_ep.write(buffer, self.timeout_ms)
        except usb.core.USBError as e:
            raise USBTransportError(f"Failed to send: {e}") from e

    def read(self, max_length: int) -> bytes:
        if self.in_ep is None:
            raise USBTransportError("Not connected")
        try:
            return bytes(self.in_ep.read(max_length, self.timeout_ms))
        except usb.core.USBError as e:
            raise USBTransportError(f"Failed to receive: {e}") from e

    def __enter__(self) -> USBTransport:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> bool:
        self.disconnect()
        return False
