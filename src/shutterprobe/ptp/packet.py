"""PTP USB container encoding and decoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import NamedTuple, Sequence

from .constants import PTP_HEADER_SIZE, PTPPacketType
from .errors import MalformedPacket

# Format: length (4) + type (2) + code (2) + tid (4)
HEADER_FORMAT = "<IHHI"


class ContainerHeader(NamedTuple):
    length: int
    type: PTPPacketType
    code: int
    transaction_id: int


@dataclass
class Container:
    """One decoded PTP container."""

    length: int
    type: PTPPacketType
    code: int
    transaction_id: int
    payload: bytes = b""

    @property
    def params(self) -> list[int]:
        """Payload of a Command or Response container as 32-bit words."""
        count = len(self.payload) // 4
        return list(struct.unpack_from(f"<{count}I", self.payload))


def encode_command(code: int, transaction_id: int, params: Sequence[int] = ()) -> bytes:
    """Build a Command container."""
    param_data = b"".join(struct.pack("<I", p) for p in params)
    return struct.pack(
        HEADER_FORMAT,
        PTP_HEADER_SIZE + len(param_data),
        PTPPacketType.COMMAND,
        code,
        transaction_id,
    ) + param_data


def decode_header(data: bytes) -> ContainerHeader:
    """Decode the 12-byte container header at the start of ``data``."""
    if len(data) < PTP_HEADER_SIZE:
        raise MalformedPacket(f"Invalid packet: too short ({len(data)} bytes)")

    length, raw_type, code, tid = struct.unpack_from(HEADER_FORMAT, data)
    try:
        pkt_type = PTPPacketType(raw_type)
    except ValueError:
        raise MalformedPacket(f"Unexpected packet type: {raw_type:#06x}") from None
    return ContainerHeader(length, pkt_type, code, tid)


def decode_container(data: bytes) -> Container:
    """Decode a whole container, trimming anything past its declared length."""
    header = decode_header(data)
    end = max(header.length, PTP_HEADER_SIZE)
    return Container(*header, payload=bytes(data[PTP_HEADER_SIZE:end]))


def unpack_uint(data: bytes, offset: int, size: int = 4) -> int:
    """Read a little-endian u16/u32, or 0 if the buffer ends first."""
    if offset < 0 or offset + size > len(data):
        return 0
    return struct.unpack_from("<H" if size == 2 else "<I", data, offset)[0]


def parse_ptp_string(data: bytes, offset: int) -> tuple[str, int]:
    """
    Read a PTP string (length-prefixed UTF-16LE).

    The prefix byte counts characters including the NUL terminator. A string
    cut short by the end of ``data`` is returned truncated; the returned
    offset always reflects the declared length.
    """
    if offset >= len(data):
        return "", offset

    num_chars = data[offset]
    offset += 1

    if num_chars == 0:
        return "", offset

    raw = data[offset : offset + num_chars * 2]
    raw = raw[: len(raw) - len(raw) % 2]
    string = raw.decode("utf-16-le", errors="replace").replace("\x00", "")

    return string, offset + num_chars * 2
