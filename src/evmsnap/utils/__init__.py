"""
Utilities module for evmsnap.

Provides exception handling, logging and colors shared by the core and CLI.
"""

from .exceptions import (
    EvmsnapError,
    TransportError,
    TransactionError,
    TransactionNotFoundError,
    DebugTraceUnavailableError,
    MalformedTraceError,
    format_error,
    format_error_json,
    format_exception_message,
)
from .logging import TRACE, setup_logging, get_logger, logger
from .colors import (
    Colors,
    SUPPORTS_COLOR,
    error, success, warning, info,
)

__all__ = [
    # Exceptions
    'EvmsnapError',
    'TransportError',
    'TransactionError',
    'TransactionNotFoundError',
    'DebugTraceUnavailableError',
    'MalformedTraceError',
    # Formatting
    'format_error',
    'format_error_json',
    'format_exception_message',
    # Logging
    'TRACE',
    'setup_logging',
    'get_logger',
    'logger',
    # Colors
    'Colors',
    'SUPPORTS_COLOR',
    'error', 'success', 'warning', 'info',
]
