"""
Grid-only world parsers.
"""
from .wvr4_parser import Wvr4Parser
from .wvr1_parser import Wvr1Parser

__all__ = ['Wvr4Parser', 'Wvr1Parser']
