"""
Commands module for release-flow CLI
"""

from .resolve import resolve
from .run import run
from .sync import sync

# Registry of all available commands
ALL_COMMANDS = {
    'resolve': resolve,
    'run': run,
    'sync': sync,
}

__all__ = [
    'resolve',
    'run',
    'sync',
    'ALL_COMMANDS'
]
