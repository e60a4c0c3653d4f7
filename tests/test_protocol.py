import pytest

from ptp_fakes import (
    FakeTransport,
    data,
    device_info_payload,
    ptp_string,
    response,
    sequence,
    with_data,
)
from shutterprobe.ptp.constants import PTPOperation
from shutterprobe.ptp.errors import ProtocolError
from shutterprobe.ptp.protocol import PTPProtocol, parse_device_info
from shutterprobe.ptp.session import PTPSession


def _protocol(transport, header_retry):
    session = PTPSession(transport, header_retry)
    session.open()
    return PTPProtocol(session)


def test_parse_device_info_with_empty_arrays():
    payload = device_info_payload("Canon Inc.", "Canon EOS R7", "3-1.4.0", "0123456789", 0x0B)

    info = parse_device_info(payload)

    assert info.manufacturer == "Canon Inc."
    assert info.model == "Canon EOS R7"
    assert info.version == "3-1.4.0"
    assert info.serial == "0123456789"
    assert info.vendor_extension_id == 0x0B


def test_parse_device_info_skips_arrays_by_count():
    payload = device_info_payload(
        "FUJIFILM", "X-T4", "1.10", "SN1", 0x0E, operations=[0x1001, 0x1002, 0x1003, 0x1015]
    )

    info = parse_device_info(payload)

    assert (info.manufacturer, info.model, info.version, info.serial) == (
        "FUJIFILM",
        "X-T4",
        "1.10",
        "SN1",
    )


def test_parse_device_info_with_vendor_description():
    payload = device_info_payload("Nikon", "Z6", "1.0", "42")
    # Replace the empty extension description with a real one
    desc = ptp_string("microsoft.com: 1.0")
    payload = payload[:8] + desc + payload[9:]

    info = parse_device_info(payload)

    assert info.manufacturer == "Nikon"
    assert info.serial == "42"


def test_parse_device_info_truncated_serial():
    payload = device_info_payload("Canon Inc.", "Canon EOS 5D", "1.0", "ABCDEF")

    info = parse_device_info(payload[:-6])

    assert info.manufacturer == "Canon Inc."
    assert info.model == "Canon EOS 5D"
    assert info.version == "1.0"
    assert info.serial == "ABCD"


def test_parse_device_info_empty_payload():
    info = parse_device_info(b"")
    assert info.manufacturer == ""
    assert info.serial == ""
    assert info.vendor_extension_id == 0


def test_get_device_info(header_retry):
    payload = device_info_payload("FUJIFILM", "X-T4", "1.10", "SN1", 0x0E)
    transport = FakeTransport({PTPOperation.GET_DEVICE_INFO: with_data(payload)})

    info = _protocol(transport, header_retry).get_device_info()

    assert info.model == "X-T4"
    assert transport.commands[-1].transaction_id == 1


def test_get_device_info_response_instead_of_data(header_retry):
    transport = FakeTransport({PTPOperation.GET_DEVICE_INFO: sequence([response(0x2005)])})

    with pytest.raises(ProtocolError) as exc_info:
        _protocol(transport, header_retry).get_device_info()
    assert exc_info.value.response_code == 0x2005


def test_get_device_info_response_not_ok(header_retry):
    payload = device_info_payload("a", "b", "c", "d")
    transport = FakeTransport({PTPOperation.GET_DEVICE_INFO: with_data(payload, code=0x2002)})

    with pytest.raises(ProtocolError):
        _protocol(transport, header_retry).get_device_info()


def test_get_device_prop_value(header_retry):
    transport = FakeTransport(
        {PTPOperation.GET_DEVICE_PROP_VALUE: with_data((12345).to_bytes(4, "little"))}
    )

    value = _protocol(transport, header_retry).get_device_prop_value(0xD310)

    assert value == 12345
    assert transport.commands[-1].params == [0xD310]


def test_get_device_prop_value_unsupported(header_retry):
    transport = FakeTransport({PTPOperation.GET_DEVICE_PROP_VALUE: sequence([response(0x200A)])})

    assert _protocol(transport, header_retry).get_device_prop_value(0xD310) is None


def test_get_device_prop_value_short_payload(header_retry):
    transport = FakeTransport({PTPOperation.GET_DEVICE_PROP_VALUE: with_data(b"\x01\x00")})

    assert _protocol(transport, header_retry).get_device_prop_value(0xD1AC) is None


def test_get_device_prop_value_response_not_ok(header_retry):
    transport = FakeTransport(
        {PTPOperation.GET_DEVICE_PROP_VALUE: sequence([data(0x1015, b"\x01\x00\x00\x00"), response(0x2002)])}
    )

    assert _protocol(transport, header_retry).get_device_prop_value(0xD1AC) is None
