import pytest

from ptp_fakes import FakeTransport, device_info_payload, response, sequence, with_data
from shutterprobe.camera import Camera, CameraInfo, query_camera
from shutterprobe.ptp.constants import CanonEOSOperation, PTPOperation, PTPResponse
from shutterprobe.ptp.errors import NoResponse, ProtocolError, VendorInitError


def _camera_transport(manufacturer, vendor_extension_id=0, handlers=None):
    payload = device_info_payload(manufacturer, "Model X", "1.2.3", "SN0042", vendor_extension_id)
    all_handlers = {PTPOperation.GET_DEVICE_INFO: with_data(payload)}
    all_handlers.update(handlers or {})
    return FakeTransport(all_handlers)


def test_query_fuji(header_retry):
    transport = _camera_transport(
        "FUJIFILM",
        handlers={PTPOperation.GET_DEVICE_PROP_VALUE: with_data((1200).to_bytes(4, "little"))},
    )

    info = query_camera(transport=transport, header_retry=header_retry)

    assert info == CameraInfo("FUJIFILM", "Model X", "1.2.3", "SN0042", 1200)
    assert transport.codes == [
        PTPOperation.OPEN_SESSION,
        PTPOperation.GET_DEVICE_INFO,
        PTPOperation.GET_DEVICE_PROP_VALUE,
        PTPOperation.CLOSE_SESSION,
    ]
    assert [c.transaction_id for c in transport.commands] == [0, 1, 2, 3]
    assert transport.disconnect_calls == 1


def test_query_unknown_vendor_reports_unavailable(header_retry):
    transport = _camera_transport("Nikon Corporation", 0x0A)

    info = query_camera(transport=transport, header_retry=header_retry)

    assert info.shutter_count == -1
    assert not info.shutter_count_available
    assert transport.codes == [
        PTPOperation.OPEN_SESSION,
        PTPOperation.GET_DEVICE_INFO,
        PTPOperation.CLOSE_SESSION,
    ]


def test_query_canon_by_vendor_extension(header_retry, canon_strategy):
    transport = _camera_transport(
        "",
        0x0B,
        handlers={PTPOperation.GET_DEVICE_PROP_VALUE: with_data((88).to_bytes(4, "little"))},
    )

    info = query_camera(transport=transport, header_retry=header_retry, canon_strategy=canon_strategy)

    assert info.shutter_count == 88
    assert CanonEOSOperation.SET_REMOTE_MODE in transport.codes
    assert transport.codes[-1] == PTPOperation.CLOSE_SESSION


def test_canon_init_failure_still_cleans_up(header_retry, canon_strategy):
    transport = _camera_transport(
        "Canon Inc.",
        handlers={CanonEOSOperation.PC_HDD_CAPACITY: sequence([])},
    )

    with pytest.raises(VendorInitError):
        query_camera(transport=transport, header_retry=header_retry, canon_strategy=canon_strategy)

    assert transport.codes[-3:] == [
        CanonEOSOperation.SET_REMOTE_MODE,
        CanonEOSOperation.SET_EVENT_MODE,
        PTPOperation.CLOSE_SESSION,
    ]
    assert transport.disconnect_calls == 1


def test_open_failure_releases_transport(header_retry):
    transport = FakeTransport({PTPOperation.OPEN_SESSION: sequence([response(0x2002)])})

    with pytest.raises(ProtocolError):
        query_camera(transport=transport, header_retry=header_retry)

    assert transport.disconnect_calls == 1
    assert PTPOperation.CLOSE_SESSION not in transport.codes


def test_device_info_failure_is_fatal(header_retry):
    transport = FakeTransport({PTPOperation.GET_DEVICE_INFO: sequence([])})

    with pytest.raises(NoResponse):
        query_camera(transport=transport, header_retry=header_retry)

    assert transport.codes[-1] == PTPOperation.CLOSE_SESSION
    assert transport.disconnect_calls == 1


def test_release_failure_does_not_mask_error(header_retry):
    transport = FakeTransport({PTPOperation.GET_DEVICE_INFO: sequence([response(0x2005)])})
    transport.fail_disconnect = True

    with pytest.raises(ProtocolError):
        query_camera(transport=transport, header_retry=header_retry)


def test_release_failure_after_success_is_ignored(header_retry):
    transport = _camera_transport("Sony")
    transport.fail_disconnect = True

    info = query_camera(transport=transport, header_retry=header_retry)

    assert info.manufacturer == "Sony"


def test_session_recovers_already_open(header_retry):
    transport = _camera_transport(
        "Sony",
        handlers={
            PTPOperation.OPEN_SESSION: sequence(
                [response(PTPResponse.SESSION_ALREADY_OPENED)], [response()]
            )
        },
    )

    info = query_camera(transport=transport, header_retry=header_retry)

    assert info.model == "Model X"
    assert transport.codes[:3] == [
        PTPOperation.OPEN_SESSION,
        PTPOperation.CLOSE_SESSION,
        PTPOperation.OPEN_SESSION,
    ]


def test_methods_require_connection(header_retry):
    camera = Camera(transport=FakeTransport(), header_retry=header_retry)
    with pytest.raises(RuntimeError):
        camera.get_device_info()


def test_camera_info_to_dict():
    info = CameraInfo("Canon Inc.", "Canon EOS R7", "1.4.0", "123", 4000)
    assert info.to_dict() == {
        "manufacturer": "Canon Inc.",
        "model": "Canon EOS R7",
        "version": "1.4.0",
        "serial": "123",
        "shutter_count": 4000,
    }
    assert info.shutter_count_available
