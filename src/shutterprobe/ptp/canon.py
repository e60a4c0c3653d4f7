"""Canon EOS PTP extension implementation."""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass
from typing import Iterator

from .constants import (
    CANON_OLC_INFO_GROUP,
    CANON_PC_HDD_CAPACITY,
    WATCHED_PROPS,
    CanonEOSEvent,
    CanonEOSOperation,
    CanonEOSProperty,
    PTPPacketType,
)
from .errors import PTPError, VendorInitError
from .packet import unpack_uint
from .protocol import PTPProtocol
from .retry import EVENT_DRAIN, PROP_POLL, RetryPolicy
from .session import PTPSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropValueChange:
    """A Canon EOS property value from event data."""

    prop_code: int
    value: int


def iter_prop_changes(
    data: bytes, watched: Collection[int] | None = WATCHED_PROPS
) -> Iterator[PropValueChange]:
    """
    Parse event records. Each: size(4) + type(4) + data, walked by its own size.

    Only PropValueChanged records for ``watched`` codes are kept; pass None
    to keep every property.

    Stops at a record shorter than its own header, at the size=8/type=0
    terminator, or at a record that runs past the end of ``data``.
    """
    offset = 0
    while offset + 8 <= len(data):
        size = unpack_uint(data, offset)
        event_type = unpack_uint(data, offset + 4)

        if size < 8:
            break
        if size == 8 and event_type == 0:
            break
        if offset + size > len(data):
            break

        if event_type == CanonEOSEvent.PROP_VALUE_CHANGED and size >= 16:
            prop_code = unpack_uint(data, offset + 8)
            if watched is None or prop_code in watched:
                yield PropValueChange(prop_code, unpack_uint(data, offset + 12))

        offset += size


class CanonEOSProtocol(PTPProtocol):
    """Canon EOS-specific PTP protocol extension."""

    def _send_canon_command(self, operation: int, params: list[int] | None = None) -> None:
        """Send a Canon command and consume its response without inspecting it."""
        self.session.transact(operation, params or [])

    def initialize(self) -> None:
        """Put the camera in remote/event mode so it reports property changes."""
        logger.info("Detected Canon. Executing initialization sequence...")
        steps = [
            ("SetRemoteMode", CanonEOSOperation.SET_REMOTE_MODE, [1]),
            ("SetEventMode", CanonEOSOperation.SET_EVENT_MODE, [1]),
            (
                "SetRequestOLCInfoGroup",
                CanonEOSOperation.SET_REQUEST_OLC_INFO_GROUP,
                [CANON_OLC_INFO_GROUP],
            ),
            # Some bodies only emit property events once they believe a PC
            # with storage is attached
            ("PCHDDCapacity", CanonEOSOperation.PC_HDD_CAPACITY, list(CANON_PC_HDD_CAPACITY)),
        ]
        for name, operation, params in steps:
            logger.debug("Canon init: %s", name)
            try:
                self._send_canon_command(operation, params)
            except PTPError as e:
                raise VendorInitError(f"Canon {name} failed: {e}") from e

    def exit(self) -> None:
        """Leave event mode. Never raises."""
        logger.info("Exiting Canon session...")
        try:
            self._send_canon_command(CanonEOSOperation.SET_REMOTE_MODE, [1])
        except PTPError as e:
            logger.warning("Error setting RemoteMode(1) during exit: %s", e)

        try:
            self._send_canon_command(CanonEOSOperation.SET_EVENT_MODE, [0])
        except PTPError as e:
            logger.warning("Error setting EventMode(0) during exit: %s", e)

    def get_prop_changes(
        self, watched: Collection[int] | None = WATCHED_PROPS
    ) -> list[PropValueChange]:
        """Fetch pending events and return changes of ``watched`` (None: all) properties."""
        try:
            self.session.send_command(CanonEOSOperation.GET_EVENT)
            data = self.session.receive_data()
            if data.type == PTPPacketType.RESPONSE:
                return []

            self.session.receive_response()
            if not data.payload:
                return []
            return list(iter_prop_changes(data.payload, watched))
        except PTPError as e:
            logger.info("GetEvent error: %s", e)
            return []

    def request_device_prop_value(self, prop_code: int) -> None:
        """Ask the camera to report ``prop_code`` through the event channel."""
        self._send_canon_command(CanonEOSOperation.REQUEST_DEVICE_PROP_VALUE, [prop_code])


class CanonShutterStrategy:
    """Shutter count through Canon EOS events, falling back to direct reads."""

    def __init__(
        self,
        drain_policy: RetryPolicy = EVENT_DRAIN,
        poll_policy: RetryPolicy = PROP_POLL,
    ) -> None:
        self.drain_policy = drain_policy
        self.poll_policy = poll_policy

    def acquire_shutter_count(self, session: PTPSession) -> int | None:
        canon = CanonEOSProtocol(session)
        try:
            canon.initialize()
            return self._shutter_count(canon)
        finally:
            canon.exit()

    def _shutter_count(self, canon: CanonEOSProtocol) -> int | None:
        count = self.drain_events(canon)
        if count is not None:
            return count

        for prop_code in (
            CanonEOSProperty.SHUTTER_COUNTER,
            CanonEOSProperty.SHUTTER_RELEASE_COUNTER,
        ):
            count = self.request_and_poll(canon, prop_code)
            if count is not None:
                return count

            count = self.read_directly(canon, prop_code)
            if count is not None:
                return count
            logger.info("Property %#06x unavailable", prop_code)

        return None

    def drain_events(self, canon: CanonEOSProtocol) -> int | None:
        """Look for a shutter counter among the events already queued."""
        logger.info("Draining events...")
        for _ in self.drain_policy.attempts():
            changes = canon.get_prop_changes()
            if not changes:
                break
            return changes[0].value
        return None

    def request_and_poll(self, canon: CanonEOSProtocol, prop_code: int) -> int | None:
        """Request ``prop_code`` and poll the event channel for its value."""
        logger.info("Querying property %#06x via events...", prop_code)
        try:
            canon.request_device_prop_value(prop_code)
            for _ in self.poll_policy.attempts():
                for change in canon.get_prop_changes():
                    if change.prop_code == prop_code:
                        return change.value
        except PTPError as e:
            logger.info("Request prop %#06x error: %s", prop_code, e)
        return None

    def read_directly(self, canon: CanonEOSProtocol, prop_code: int) -> int | None:
        try:
            return canon.get_device_prop_value(prop_code)
        except PTPError as e:
            logger.info("GetDevicePropValue %#06x error: %s", prop_code, e)
            return None
