"""
Format-specific world parsers.
"""
from .oprw import LegacyOprwParser, ModernOprwParser
from .wvr import Wvr4Parser, Wvr1Parser

__all__ = [
    'LegacyOprwParser',
    'ModernOprwParser',
    'Wvr4Parser',
    'Wvr1Parser',
]
