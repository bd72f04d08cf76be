"""
Infrastructure layer for reposervice.

Contains the pieces that touch the outside world:
- commands: git/ssh/wc command strings (pure)
- ShellRunner: child process execution
- DirectoryManager: repository directory create/empty

These provide clean interfaces that can be mocked for testing.
"""

from . import commands
from .shell import ShellRunner
from .directories import DirectoryManager

__all__ = [
    'commands',
    'ShellRunner',
    'DirectoryManager',
]
