"""
Decoder for WRP world files (OPRW, 4WVR, 1WVR) and forest-shape extraction.
"""
from .base.binary_reader import WorldParseError, TruncatedStreamError
from .compression import CompressionError
from .decoder import read, read_file
from .format_detector import UnknownSignatureError, UnsupportedVersionError, WorldFormat
from .forest import ForestType, Polygon, extract_from_objects
from .models import ObjectRecord, ReadOptions, WorldData, WorldWarning
from .quadtree import QuadTreeError

__version__ = '0.1.0'

__all__ = [
    'read',
    'read_file',
    'ReadOptions',
    'WorldData',
    'ObjectRecord',
    'WorldWarning',
    'WorldFormat',
    'extract_from_objects',
    'ForestType',
    'Polygon',
    'WorldParseError',
    'TruncatedStreamError',
    'UnknownSignatureError',
    'UnsupportedVersionError',
    'CompressionError',
    'QuadTreeError',
]
