"""
Directory lifecycle for repository working copies.

Existence checks are best effort: another process may create or delete the
directory between the check and the action, and nothing here locks against
that.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from ..domain.operation import OperationName, OperationResult
from .shell import SOURCE

logger = logging.getLogger(__name__)


class DirectoryManager:
    """
    Creates and empties the directories that back repositories.

    Example:
        dirs = DirectoryManager(remove_missing_ok=True)
        dirs.ensure_directory("/data/repos/x/master")
        dirs.remove_directory_contents("/data/repos/x/master")
    """

    def __init__(self, remove_missing_ok: bool = False, log: Optional[logging.Logger] = None):
        """
        Args:
            remove_missing_ok: Treat emptying a missing directory as success
            log: Diagnostics logger (module logger if None)
        """
        self.remove_missing_ok = remove_missing_ok
        self.logger = log or logger

    def _record(self, operation: OperationName, target: Path) -> None:
        self.logger.info(
            f"Running {operation.value}: {target}",
            extra={'source': SOURCE, 'operation': operation.value, 'path': str(target)}
        )

    def _fail(self, operation: OperationName, target: Path, error: str) -> OperationResult:
        self.logger.error(
            f"{operation.value} failed for {target}: {error}",
            extra={'source': SOURCE, 'operation': operation.value, 'path': str(target), 'error': error}
        )
        return OperationResult.failure(operation, error)

    def ensure_directory(self, path: str) -> OperationResult:
        """Create ``path`` (with parents) unless it already exists."""
        operation = OperationName.ENSURE_DIRECTORY
        target = Path(path).expanduser()
        self._record(operation, target)

        if target.is_dir():
            return OperationResult.success(operation, str(target))
        if target.exists():
            return self._fail(operation, target, f"Path '{path}' exists and is not a directory")

        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._fail(operation, target, str(e))

        self.logger.debug(f"Created directory {target}")
        return OperationResult.success(operation, str(target))

    def remove_directory_contents(self, path: str) -> OperationResult:
        """
        Remove everything inside ``path`` but keep the directory itself.

        A missing directory is an error unless ``remove_missing_ok`` is set.
        """
        operation = OperationName.REMOVE_DIRECTORY
        target = Path(path).expanduser()
        self._record(operation, target)

        if not target.exists():
            if self.remove_missing_ok:
                return OperationResult.success(operation, str(target))
            return self._fail(operation, target, f"Directory '{path}' does not exist")

        try:
            for entry in target.iterdir():
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    os.unlink(entry)
        except OSError as e:
            return self._fail(operation, target, str(e))

        self.logger.debug(f"Emptied directory {target}")
        return OperationResult.success(operation, str(target))
