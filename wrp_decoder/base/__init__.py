"""
Base classes and primitives for world parsing.
"""
from .binary_reader import BinaryReader, WorldParseError, TruncatedStreamError
from .world_parser import WorldParserBase

__all__ = [
    'BinaryReader',
    'WorldParseError',
    'TruncatedStreamError',
    'WorldParserBase',
]
