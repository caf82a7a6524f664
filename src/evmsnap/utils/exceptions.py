"""
Custom exceptions for evmsnap.

This module provides a hierarchy of exceptions for the failure modes of a
state extraction run, along with utilities for formatting errors
consistently on the command line.
"""

import json
from typing import Any, Dict, Optional


class EvmsnapError(Exception):
    """
    Base exception for all evmsnap errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
        error_code: Optional error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": True,
            "type": self.error_code,
            "message": self.message,
            **self.details
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)


# ============================================================================
# Transport Errors
# ============================================================================

class TransportError(EvmsnapError):
    """Raised when an RPC call to the node fails or times out."""

    def __init__(
        self,
        message: str,
        rpc_url: Optional[str] = None,
        method: Optional[str] = None,
        **kwargs
    ):
        details = {}
        if rpc_url:
            details["rpc_url"] = rpc_url
        if method:
            details["method"] = method
        details.update(kwargs)
        super().__init__(message, details, "TransportError")


# ============================================================================
# Transaction Errors
# ============================================================================

class TransactionError(EvmsnapError):
    """Raised when a transaction, its block or its trace is unusable."""

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        **kwargs
    ):
        details = {}
        if tx_hash:
            details["tx_hash"] = tx_hash
        details.update(kwargs)
        super().__init__(message, details, "TransactionError")


class TransactionNotFoundError(TransactionError):
    """Raised when the node does not know the transaction."""

    def __init__(self, tx_hash: str, **kwargs):
        super().__init__(
            f"Transaction not found: {tx_hash}",
            tx_hash=tx_hash,
            **kwargs
        )
        self.error_code = "TransactionNotFoundError"


class DebugTraceUnavailableError(TransactionError):
    """Raised when the node cannot serve debug_traceTransaction."""

    def __init__(
        self,
        tx_hash: str,
        reason: Optional[str] = None,
        **kwargs
    ):
        message = f"debug_traceTransaction unavailable for {tx_hash}"
        if reason:
            message += f": {reason}"
        super().__init__(message, tx_hash=tx_hash, **kwargs)
        self.error_code = "DebugTraceUnavailable"


# ============================================================================
# Trace Errors
# ============================================================================

class MalformedTraceError(EvmsnapError):
    """
    Raised when the struct-log trace cannot be replayed.

    Covers depths below one, owner-stack underflow on a depth drop, and
    stack reads past the words the node reported.
    """

    def __init__(
        self,
        message: str,
        step: Optional[int] = None,
        op: Optional[str] = None,
        **kwargs
    ):
        details = {}
        if step is not None:
            details["step"] = step
        if op:
            details["op"] = op
        details.update(kwargs)
        super().__init__(message, details, "MalformedTraceError")


# ============================================================================
# Error Formatting Utilities
# ============================================================================

def format_error(e: Exception, json_mode: bool = False) -> str:
    """
    Format an exception for display.

    Args:
        e: The exception to format
        json_mode: If True, output as JSON; otherwise use colored text

    Returns:
        Formatted error string
    """
    from .colors import error

    if isinstance(e, EvmsnapError):
        if json_mode:
            return e.to_json()
        return error(e.message)
    if json_mode:
        return json.dumps(format_error_json(format_exception_message(e), type(e).__name__), indent=2)
    return error(format_exception_message(e))


def format_error_json(
    message: str,
    error_type: str = "Error",
    **kwargs
) -> Dict[str, Any]:
    """
    Create a standardized error JSON structure.

    Args:
        message: Error message
        error_type: Error type/code
        **kwargs: Additional fields to include

    Returns:
        Dictionary suitable for JSON output
    """
    return {
        "error": True,
        "type": error_type,
        "message": message,
        **kwargs
    }


def format_exception_message(e: Exception) -> str:
    """
    Extract a clean, user-friendly error message from any exception.

    Args:
        e: Exception instance

    Returns:
        Clean error message string
    """
    # Web3RPCError and similar carry the JSON-RPC error object as args[0]
    if hasattr(e, 'args') and e.args:
        first_arg = e.args[0]

        if isinstance(first_arg, dict):
            # RPC error format: {'code': -32003, 'message': '...'}
            return first_arg.get('message', str(e))
        elif isinstance(first_arg, str):
            return first_arg
        else:
            return str(first_arg)

    return str(e)
