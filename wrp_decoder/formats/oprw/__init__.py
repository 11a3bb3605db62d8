"""
OPRW world parsers.
"""
from .legacy_parser import LegacyOprwParser
from .modern_parser import ModernOprwParser

__all__ = ['LegacyOprwParser', 'ModernOprwParser']
