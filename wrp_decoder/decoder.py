"""
Entry point: detect the world layout and run its parser.
"""
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .base.binary_reader import BinaryReader
from .format_detector import FormatDetector, WorldFormat
from .formats import LegacyOprwParser, ModernOprwParser, Wvr1Parser, Wvr4Parser
from .models import ReadOptions, WorldData
from .utils import get_logger

logger = get_logger(__name__)

PARSERS = {
    WorldFormat.OPRW_LEGACY: LegacyOprwParser,
    WorldFormat.OPRW_MODERN: ModernOprwParser,
    WorldFormat.WVR4: Wvr4Parser,
    WorldFormat.WVR1: Wvr1Parser,
}


def read(stream: Union[BinaryIO, bytes], options: Optional[ReadOptions] = None) -> WorldData:
    """
    Decode a world from a seekable binary stream

    Args:
        stream: Open binary stream (or raw bytes) positioned at the signature
        options: Caller options

    Returns:
        Decoded WorldData

    Raises:
        WorldParseError: On unknown signatures, unsupported versions,
            truncated or corrupt data
    """
    reader = BinaryReader(stream)
    world_format, signature, version = FormatDetector(reader).detect()
    logger.debug(f"Detected {world_format.name} ({signature} v{version})")
    parser = PARSERS[world_format](reader, version, options)
    return parser.parse()


def read_file(path: Union[str, Path], options: Optional[ReadOptions] = None) -> WorldData:
    """Decode a world file from disk"""
    with open(path, 'rb') as f:
        return read(f, options)
