"""Core module - error taxonomy and logging setup."""

from .errors import ChatError
from .logging_config import setup_logging

__all__ = ['ChatError', 'setup_logging']
