"""
Color utilities for evmsnap terminal output.

Provides ANSI color codes for the CLI and the console log formatter.
"""

import os
import sys

# Check if colors are supported
SUPPORTS_COLOR = (
    hasattr(sys.stderr, 'isatty') and sys.stderr.isatty() and
    os.environ.get('TERM') != 'dumb' and
    not os.environ.get('NO_COLOR')
)


class Colors:
    """ANSI color codes for terminal output."""

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    CYAN = '\033[36m'

    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'

    BOLD = '\033[1m'
    DIM = '\033[2m'

    RESET = '\033[0m'

    @classmethod
    def disable(cls):
        """Disable all colors."""
        for attr in dir(cls):
            if not attr.startswith('_') and attr.isupper():
                setattr(cls, attr, '')


if not SUPPORTS_COLOR:
    Colors.disable()


# Semantic helpers
def error(text: str) -> str:
    """Format error text."""
    return f"{Colors.BRIGHT_RED}{text}{Colors.RESET}"


def success(text: str) -> str:
    """Format success text."""
    return f"{Colors.BRIGHT_GREEN}{text}{Colors.RESET}"


def warning(text: str) -> str:
    """Format warning text."""
    return f"{Colors.BRIGHT_YELLOW}{text}{Colors.RESET}"


def info(text: str) -> str:
    """Format info text."""
    return f"{Colors.BRIGHT_CYAN}{text}{Colors.RESET}"