"""Command-line interface for shutterprobe."""

from __future__ import annotations

import json
import logging
import sys
from typing import NoReturn

import click

from .camera import Camera, CameraInfo
from .ptp.canon import CanonEOSProtocol
from .ptp.errors import PTPError, TransportUnavailable
from .ptp.transport import USBTransport
from .ptp.vendor import Vendor, detect_vendor

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _hex_id(ctx: click.Context, param: click.Parameter, value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value, 16)
    except ValueError:
        raise click.BadParameter(f"{value!r} is not a hex USB id") from None


def usb_options(f):
    """Options selecting the camera and the per-transfer timeout."""
    f = click.option(
        "--timeout",
        "timeout_ms",
        type=click.IntRange(min=1),
        default=USBTransport.TIMEOUT_MS,
        envvar="SHUTTERPROBE_TIMEOUT",
        show_default=True,
        help="USB transfer timeout in milliseconds",
    )(f)
    f = click.option(
        "--product-id",
        type=str,
        default=None,
        envvar="SHUTTERPROBE_PRODUCT_ID",
        callback=_hex_id,
        help="USB product ID (hex, e.g., 0x32f7)",
    )(f)
    f = click.option(
        "--vendor-id",
        type=str,
        default=None,
        envvar="SHUTTERPROBE_VENDOR_ID",
        callback=_hex_id,
        help="USB vendor ID (hex, e.g., 0x04a9)",
    )(f)
    return f


def _fail(error: PTPError) -> NoReturn:
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, TransportUnavailable):
        click.echo("\nTroubleshooting:", err=True)
        click.echo("  1. Ensure the camera is connected via USB and switched on", err=True)
        click.echo("  2. Set camera to PTP mode (not Mass Storage)", err=True)
        click.echo("  3. Check USB permissions (may need udev rules on Linux)", err=True)
        click.echo("  4. Close any other apps using the camera (EOS Utility, gphoto2, etc.)", err=True)
    sys.exit(1)


@click.group()
@click.version_option(package_name="shutterprobe")
@click.option("-v", "--verbose", count=True, help="Log progress (-v) or wire traffic (-vv)")
def main(verbose: int) -> None:
    """shutterprobe - camera shutter count over USB.

    Reads identity and shutter count from Canon EOS and Fujifilm cameras.
    """
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", stream=sys.stderr)


@main.command()
@click.option("--json", "output_json", is_flag=True, help="Output in JSON format")
@usb_options
def count(output_json: bool, vendor_id: int | None, product_id: int | None, timeout_ms: int) -> None:
    """Get the camera's shutter count."""
    try:
        with Camera(vendor_id=vendor_id, product_id=product_id, timeout_ms=timeout_ms) as camera:
            info = camera.query()
    except PTPError as e:
        _fail(e)

    if output_json:
        click.echo(json.dumps(info.to_dict(), indent=2))
    else:
        _output_text(info)


def _output_text(info: CameraInfo) -> None:
    """Output results in human-readable format."""
    click.echo(f"Camera: {info.manufacturer} {info.model}")
    click.echo(f"Firmware: {info.version}")
    click.echo(f"Serial: {info.serial}")
    click.echo()
    if info.shutter_count_available:
        click.echo(f"Shutter Count: {info.shutter_count:,}")
    else:
        click.echo("Shutter Count: unavailable")


@main.command()
@usb_options
def info(vendor_id: int | None, product_id: int | None, timeout_ms: int) -> None:
    """Show camera identity."""
    try:
        with Camera(vendor_id=vendor_id, product_id=product_id, timeout_ms=timeout_ms) as camera:
            device_info = camera.get_device_info()
    except PTPError as e:
        _fail(e)

    click.echo(f"Connected: {device_info.manufacturer} {device_info.model}")
    click.echo(f"Firmware: {device_info.version}")
    click.echo(f"Serial: {device_info.serial}")
    click.echo(f"Vendor extension: {device_info.vendor_extension_id:#06x}")


@main.command()
@usb_options
def events(vendor_id: int | None, product_id: int | None, timeout_ms: int) -> None:
    """Dump pending Canon property changes (for debugging)."""
    try:
        with Camera(vendor_id=vendor_id, product_id=product_id, timeout_ms=timeout_ms) as camera:
            device_info = camera.get_device_info()
            if detect_vendor(device_info) is not Vendor.CANON:
                click.echo(f"{device_info.manufacturer} is not a Canon camera", err=True)
                sys.exit(1)

            protocol = CanonEOSProtocol(camera.session)
            try:
                protocol.initialize()
                changes = protocol.get_prop_changes(watched=None)
            finally:
                protocol.exit()
    except PTPError as e:
        _fail(e)

    click.echo(f"Found {len(changes)} property changes:\n")
    for change in sorted(changes, key=lambda c: c.prop_code):
        click.echo(f"  {change.prop_code:#06x}: {change.value}")


if __name__ == "__main__":
    main()
