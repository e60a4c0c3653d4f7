"""High-level camera query: identity plus shutter count."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from .ptp.canon import CanonShutterStrategy
from .ptp.constants import SHUTTER_COUNT_UNAVAILABLE
from .ptp.protocol import DeviceInfo, PTPProtocol
from .ptp.retry import HEADER_WAIT, RetryPolicy
from .ptp.session import PTPSession
from .ptp.transport import Transport, USBTransport
from .ptp.vendor import detect_vendor, strategy_for

logger = logging.getLogger(__name__)


@dataclass
class CameraInfo:
    """Camera identity and shutter count (-1 when it could not be read)."""

    manufacturer: str
    model: str
    version: str
    serial: str
    shutter_count: int = SHUTTER_COUNT_UNAVAILABLE

    @property
    def shutter_count_available(self) -> bool:
        return self.shutter_count != SHUTTER_COUNT_UNAVAILABLE

    def to_dict(self) -> dict[str, str | int]:
        return asdict(self)


class Camera:
    """One connection to a PTP camera."""

    def __init__(
        self,
        transport: Transport | None = None,
        vendor_id: int | None = None,
        product_id: int | None = None,
        timeout_ms: int = USBTransport.TIMEOUT_MS,
        canon_strategy: CanonShutterStrategy | None = None,
        header_retry: RetryPolicy = HEADER_WAIT,
    ) -> None:
        if transport is None:
            transport = USBTransport(vendor_id, product_id, timeout_ms)
        self.transport = transport
        self.session = PTPSession(transport, header_retry)
        self.protocol = PTPProtocol(self.session)
        self._canon_strategy = canon_strategy

    def connect(self) -> None:
        """Connect to the camera and open a session."""
        logger.info("Connecting...")
        self.transport.connect()
        self.session.open()

    def disconnect(self) -> None:
        """Close the session and release the transport. Never raises."""
        self.session.close()
        try:
            self.transport.disconnect()
        except Exception as e:
            logger.warning("Error releasing transport: %s", e)

    def get_device_info(self) -> DeviceInfo:
        if not self.session.is_open:
            raise RuntimeError("Not connected")
        return self.protocol.get_device_info()

    def get_shutter_count(self, device_info: DeviceInfo) -> int:
        """Shutter count using the strategy for the camera's vendor, or -1."""
        if not self.session.is_open:
            raise RuntimeError("Not connected")

        vendor = detect_vendor(device_info)
        logger.info("Vendor: %s", vendor.value)
        count = strategy_for(vendor, self._canon_strategy).acquire_shutter_count(self.session)
        if count is None:
            logger.info("Failed to retrieve shutter count.")
            return SHUTTER_COUNT_UNAVAILABLE
        return count

    def query(self) -> CameraInfo:
        """Read identity and shutter count."""
        info = self.get_device_info()
        return CameraInfo(
            manufacturer=info.manufacturer,
            model=info.model,
            version=info.version,
            serial=info.serial,
            shutter_count=self.get_shutter_count(info),
        )

    def __enter__(self) -> Camera:
        try:
            self.connect()
        except BaseException:
            self.disconnect()
            raise
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> bool:
        self.disconnect()
        return False


def query_camera(**kwargs) -> CameraInfo:
    """Connect, query and disconnect. Keyword arguments go to :class:`Camera`."""
    with Camera(**kwargs) as camera:
        return camera.query()
