"""
Format detection for WRP world files
"""
from enum import Enum
from typing import Tuple

from .base.binary_reader import BinaryReader, WorldParseError

OPRW_SIGNATURE = 'OPRW'
WVR4_SIGNATURE = '4WVR'
WVR1_SIGNATURE = '1WVR'

LEGACY_VERSIONS = (2, 3)
MODERN_MIN_VERSION = 12
MODERN_MAX_VERSION = 25


class UnknownSignatureError(WorldParseError):
    """File does not start with a known world signature"""
    pass


class UnsupportedVersionError(WorldParseError):
    """OPRW version outside the supported ranges"""
    pass


class WorldFormat(Enum):
    """Supported world layouts"""
    OPRW_LEGACY = 'oprw_legacy'
    OPRW_MODERN = 'oprw_modern'
    WVR4 = '4wvr'
    WVR1 = '1wvr'


class FormatDetector:
    """Reads the signature (and OPRW version) and picks a layout"""

    def __init__(self, reader: BinaryReader):
        self.reader = reader

    def detect(self) -> Tuple[WorldFormat, str, int]:
        """
        Detect the world layout

        Leaves the reader positioned right after the header fields
        consumed here (signature, plus version for OPRW).

        Returns:
            Tuple of (WorldFormat, signature, version)

        Raises:
            UnknownSignatureError: Unrecognised signature
            UnsupportedVersionError: OPRW version not 2, 3 or 12-25
        """
        signature = self.reader.read_signature()

        if signature == OPRW_SIGNATURE:
            version = self.reader.read_u32()
            if version in LEGACY_VERSIONS:
                return WorldFormat.OPRW_LEGACY, signature, version
            if MODERN_MIN_VERSION <= version <= MODERN_MAX_VERSION:
                return WorldFormat.OPRW_MODERN, signature, version
            raise UnsupportedVersionError(f"unsupported OPRW version {version}")

        # Grid-only formats carry no version field
        if signature == WVR4_SIGNATURE:
            return WorldFormat.WVR4, signature, 4
        if signature == WVR1_SIGNATURE:
            return WorldFormat.WVR1, signature, 1

        raise UnknownSignatureError(f"unknown WRP signature {signature!r}")
