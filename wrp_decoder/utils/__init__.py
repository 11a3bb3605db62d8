"""
Utility helpers for the WRP decoder.
"""
from .logging import setup_logging, get_logger, log_exception

__all__ = [
    'setup_logging',
    'get_logger',
    'log_exception',
]
