"""Vendor detection and shutter count strategy selection."""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from .canon import CanonShutterStrategy
from .constants import PTPVendor
from .fuji import FujiShutterStrategy
from .protocol import DeviceInfo
from .session import PTPSession


class Vendor(Enum):
    CANON = "canon"
    FUJI = "fuji"
    UNKNOWN = "unknown"


class VendorStrategy(Protocol):
    def acquire_shutter_count(self, session: PTPSession) -> int | None: ...


class UnsupportedVendorStrategy:
    """No known way to read the shutter count."""

    def acquire_shutter_count(self, session: PTPSession) -> int | None:
        return None


def detect_vendor(info: DeviceInfo) -> Vendor:
    """Manufacturer string first, then the DeviceInfo vendor extension id."""
    manufacturer = info.manufacturer.lower()
    if "canon" in manufacturer:
        return Vendor.CANON
    if "fuji" in manufacturer:
        return Vendor.FUJI
    if info.vendor_extension_id == PTPVendor.CANON:
        return Vendor.CANON
    if info.vendor_extension_id == PTPVendor.FUJI:
        return Vendor.FUJI
    return Vendor.UNKNOWN


def strategy_for(
    vendor: Vendor, canon_strategy: CanonShutterStrategy | None = None
) -> VendorStrategy:
    if vendor is Vendor.CANON:
        return canon_strategy or CanonShutterStrategy()
    if vendor is Vendor.FUJI:
        return FujiShutterStrategy()
    return UnsupportedVendorStrategy()
