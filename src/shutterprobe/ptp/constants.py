"""PTP, Canon EOS and Fujifilm protocol constants."""

from enum import IntEnum


class PTPOperation(IntEnum):
    """Standard PTP operation codes."""

    GET_DEVICE_INFO = 0x1001
    OPEN_SESSION = 0x1002
    CLOSE_SESSION = 0x1003
    GET_DEVICE_PROP_VALUE = 0x1015


class CanonEOSOperation(IntEnum):
    """Canon EOS vendor operation codes."""

    SET_REMOTE_MODE = 0x9114
    SET_EVENT_MODE = 0x9115
    GET_EVENT = 0x9116
    PC_HDD_CAPACITY = 0x911A
    REQUEST_DEVICE_PROP_VALUE = 0x9127
    SET_REQUEST_OLC_INFO_GROUP = 0x913D


class CanonEOSProperty(IntEnum):
    """Canon EOS property codes."""

    SHUTTER_RELEASE_COUNTER = 0xD167
    SHUTTER_COUNTER = 0xD1AC


class FujiProperty(IntEnum):
    """Fujifilm property codes."""

    TOTAL_SHOT_COUNT = 0xD310


class PTPResponse(IntEnum):
    """PTP response codes."""

    OK = 0x2001
    SESSION_ALREADY_OPENED = 0x201E


class CanonEOSEvent(IntEnum):
    """Canon EOS event codes."""

    PROP_VALUE_CHANGED = 0xC189


class PTPPacketType(IntEnum):
    """PTP USB container types."""

    COMMAND = 1
    DATA = 2
    RESPONSE = 3


class PTPVendor(IntEnum):
    """Vendor extension ids reported in DeviceInfo."""

    CANON = 0x0000000B
    FUJI = 0x0000000E


# USB Still Image class
PTP_USB_CLASS = 6

PTP_HEADER_SIZE = 12

# Properties whose change events are decoded from Canon GetEvent data
WATCHED_PROPS = frozenset(
    {
        CanonEOSProperty.SHUTTER_COUNTER,
        CanonEOSProperty.SHUTTER_RELEASE_COUNTER,
    }
)

# Canon setup parameters
CANON_OLC_INFO_GROUP = 0x1FFF
# Pretend free space (in 4k units), block size and "more to come" flag
CANON_PC_HDD_CAPACITY = (0x0FFFFFFF, 0x1000, 0x1)

# Shutter count value reported when it could not be read
SHUTTER_COUNT_UNAVAILABLE = -1
