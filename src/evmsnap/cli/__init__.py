"""
CLI module for evmsnap commands.
"""

from .main import main


def extract_command(args):
    """Execute the extract command."""
    from .extract import extract_command as _extract_command
    return _extract_command(args)


__all__ = [
    'main',
    'extract_command',
]
