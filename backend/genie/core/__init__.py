"""Core module - logging setup and the shared error taxonomy."""

from .exceptions import (
    GenieError,
    AuthError,
    ValidationError,
    NotFoundError,
    NetworkError,
    StoreError,
    error_for_status,
)
from .logging_config import setup_logging, LoggerAdapter

__all__ = [
    'GenieError', 'AuthError', 'ValidationError', 'NotFoundError', 'NetworkError',
    'StoreError', 'error_for_status', 'setup_logging', 'LoggerAdapter'
]
