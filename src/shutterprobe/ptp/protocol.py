"""Standard PTP operations and DeviceInfo parsing."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .constants import PTPOperation, PTPPacketType, PTPResponse
from .errors import ProtocolError
from .packet import parse_ptp_string, unpack_uint
from .session import PTPSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceInfo:
    """PTP device information (subset we care about)."""

    vendor_extension_id: int
    manufacturer: str
    model: str
    version: str
    serial: str


def _skip_uint16_array(data: bytes, offset: int) -> int:
    """Skip a PTP array of uint16 values, return new offset."""
    if offset + 4 > len(data):
        return len(data)
    count = unpack_uint(data, offset)
    return offset + 4 + count * 2


def parse_device_info(data: bytes) -> DeviceInfo:
    """
    Parse a GetDeviceInfo dataset, extracting the vendor id and identity strings.

    Short datasets are tolerated: anything past the end of ``data`` comes back
    as an empty string.
    """
    vendor_extension_id = unpack_uint(data, 2)
    # Skip: standard_version(2) + vendor_ext_id(4) + vendor_ext_ver(2)
    _, offset = parse_ptp_string(data, 8)  # vendor_extension_desc
    offset += 2  # functional_mode
    for _ in range(5):  # ops, events, props, capture_fmts, image_fmts
        offset = _skip_uint16_array(data, offset)

    manufacturer, offset = parse_ptp_string(data, offset)
    model, offset = parse_ptp_string(data, offset)
    version, offset = parse_ptp_string(data, offset)
    serial, offset = parse_ptp_string(data, offset)

    return DeviceInfo(
        vendor_extension_id=vendor_extension_id,
        manufacturer=manufacturer,
        model=model,
        version=version,
        serial=serial,
    )


class PTPProtocol:
    """PTP protocol implementation."""

    def __init__(self, session: PTPSession) -> None:
        self.session = session

    def get_device_info(self) -> DeviceInfo:
        """Get device information."""
        self.session.send_command(PTPOperation.GET_DEVICE_INFO)
        data = self.session.receive_data()
        if data.type == PTPPacketType.RESPONSE:
            raise ProtocolError(f"GetDeviceInfo failed: {data.code:#06x}", data.code)

        response = self.session.receive_response()
        if response.code != PTPResponse.OK:
            raise ProtocolError(
                f"GetDeviceInfo response not OK: {response.code:#06x}", response.code
            )

        info = parse_device_info(data.payload)
        logger.info("Device info: %s", info)
        return info

    def get_device_prop_value(self, prop_code: int) -> int | None:
        """Read a property as a u32; None if the camera does not support it."""
        logger.debug("GetDevicePropValue %#06x", prop_code)
        self.session.send_command(PTPOperation.GET_DEVICE_PROP_VALUE, [prop_code])

        data = self.session.receive_data()
        if data.type == PTPPacketType.RESPONSE:
            logger.info(
                "GetDevicePropValue %#06x failed with response code %#06x",
                prop_code,
                data.code,
            )
            return None

        response = self.session.receive_response()
        if response.code != PTPResponse.OK:
            logger.info(
                "GetDevicePropValue %#06x response not OK: %#06x", prop_code, response.code
            )
            return None

        logger.debug("GetDevicePropValue %#06x returned %d bytes", prop_code, len(data.payload))
        if len(data.payload) >= 4:
            return unpack_uint(data.payload, 0)
        return None
