"""PTP session: transaction ids, command/data/response exchange, open/close."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Sequence

from .constants import PTP_HEADER_SIZE, PTPOperation, PTPPacketType, PTPResponse
from .errors import MalformedPacket, NoResponse, PTPError, ProtocolError, SessionError
from .packet import Container, decode_container, decode_header, encode_command
from .retry import HEADER_WAIT, RetryPolicy
from .transport import Transport

logger = logging.getLogger(__name__)


class SessionState(Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    CLOSING = "closing"


class PTPSession:
    """
    One PTP session over a connected transport.

    The transaction id is reset to -1 before OpenSession, so OpenSession goes
    out with id 0 and every later command increments it by one.
    """

    RESPONSE_READ_SIZE = 512
    DATA_READ_SIZE = 1024
    # Upper bound per continuation read; the header length is device-supplied
    MAX_CHUNK_SIZE = DATA_READ_SIZE * 64

    def __init__(self, transport: Transport, header_retry: RetryPolicy = HEADER_WAIT) -> None:
        self.transport = transport
        self.header_retry = header_retry
        self.transaction_id = 0
        self.state = SessionState.CLOSED

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    def send_command(self, operation_code: int, params: Sequence[int] = ()) -> int:
        """Send a Command container and return the transaction id it used."""
        self.transaction_id += 1
        packet = encode_command(operation_code, self.transaction_id, params)
        logger.debug(
            "-> %#06x tid=%d params=%s",
            operation_code,
            self.transaction_id,
            [f"{p:#x}" for p in params],
        )
        self.transport.write(packet)
        return self.transaction_id

    def receive_response(self) -> Container:
        """Read one Response container."""
        raw = self.transport.read(self.RESPONSE_READ_SIZE)
        if not raw:
            raise NoResponse("No response packet received")

        container = decode_container(raw)
        if container.type != PTPPacketType.RESPONSE:
            raise MalformedPacket(f"Expected RESPONSE packet, got type {container.type}")
        logger.debug("<- response %#06x tid=%d", container.code, container.transaction_id)
        return container

    def receive_data(self) -> Container:
        """
        Read a Data container, reassembling it from as many transfers as needed.

        If the camera skips the data phase and answers with a Response
        container, that container is returned instead and the caller decides.
        """
        raw = b""
        for _ in self.header_retry.attempts():
            raw = self.transport.read(self.DATA_READ_SIZE)
            if raw:
                break
        if not raw:
            raise NoResponse(
                f"No data packet after {self.header_retry.max_attempts} empty reads"
            )

        header = decode_header(raw)
        if header.type == PTPPacketType.RESPONSE:
            return decode_container(raw)
        if header.type != PTPPacketType.DATA:
            raise MalformedPacket(f"Expected DATA packet, got type {header.type}")

        buffer = bytearray(raw)
        while len(buffer) < header.length:
            more = self.transport.read(min(header.length - len(buffer), self.MAX_CHUNK_SIZE))
            if not more:
                logger.debug(
                    "Data packet truncated at %d of %d bytes", len(buffer), header.length
                )
                break
            buffer += more

        logger.debug(
            "<- data %#06x %d bytes", header.code, len(buffer) - PTP_HEADER_SIZE
        )
        return decode_container(bytes(buffer))

    def transact(self, operation_code: int, params: Sequence[int] = ()) -> Container:
        """Send a command with no data phase and read its response."""
        self.send_command(operation_code, params)
        return self.receive_response()

    def _open_session(self) -> int:
        self.transaction_id = -1
        return self.transact(PTPOperation.OPEN_SESSION, [1]).code

    def _close_session(self) -> None:
        self.transact(PTPOperation.CLOSE_SESSION)

    def open(self) -> None:
        """Open a PTP session, closing a stale one and retrying once if needed."""
        self.state = SessionState.OPENING
        try:
            response_code = self._open_session()
            if response_code == PTPResponse.SESSION_ALREADY_OPENED:
                logger.info("Session already open, closing it and retrying")
                try:
                    self._close_session()
                    response_code = self._open_session()
                except PTPError as e:
                    raise SessionError(f"OpenSession retry failed: {e}") from e
                if response_code != PTPResponse.OK:
                    raise SessionError(
                        f"OpenSession failed after retry: {response_code:#06x}",
                        response_code,
                    )
            elif response_code != PTPResponse.OK:
                raise ProtocolError(f"OpenSession failed: {response_code:#06x}", response_code)
        except BaseException:
            self.state = SessionState.CLOSED
            raise
        self.state = SessionState.OPEN

    def close(self) -> None:
        """Close the session. Never raises."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSING
        try:
            self._close_session()
        except PTPError as e:
            logger.warning("Error closing session: %s", e)
        finally:
            self.state = SessionState.CLOSED

    def __enter__(self) -> PTPSession:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> bool:
        self.close()
        return False
