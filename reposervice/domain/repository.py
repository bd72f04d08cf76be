"""
Repository location domain object for reposervice.

A repository is addressed either by a single path or by a base directory
plus a path relative to it (the shape used when cloning into a shared
repos root).
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RepositoryLocation:
    """
    Where a repository lives on disk.

    Example:
        loc = RepositoryLocation(path="/data/repos/ddf--gapminder")
        loc.work_tree  # "/data/repos/ddf--gapminder"
        loc.git_dir    # "/data/repos/ddf--gapminder/.git"

        loc = RepositoryLocation(base_dir="/data", relative_path="repos/x/master")
        loc.resolve()  # "/data/repos/x/master"
    """
    path: Optional[str] = None
    base_dir: Optional[str] = None
    relative_path: Optional[str] = None

    def __post_init__(self):
        if not self.path and not (self.base_dir and self.relative_path):
            raise ValueError(
                "RepositoryLocation needs either 'path' or both 'base_dir' and 'relative_path'"
            )

    @property
    def is_split(self) -> bool:
        """True when addressed as base directory + relative path."""
        return not self.path

    def resolve(self) -> str:
        """Return the single absolute filesystem path of the repository."""
        if self.path:
            raw = self.path
        else:
            raw = os.path.join(self.base_dir, self.relative_path)
        return os.path.abspath(os.path.expanduser(raw))

    @property
    def work_tree(self) -> str:
        return self.resolve()

    @property
    def git_dir(self) -> str:
        return os.path.join(self.resolve(), ".git")

    @property
    def resolved_base_dir(self) -> Optional[str]:
        if not self.base_dir:
            return None
        return os.path.abspath(os.path.expanduser(self.base_dir))

    @classmethod
    def of(cls, value) -> "RepositoryLocation":
        """Coerce a path string (or an existing location) into a location."""
        if isinstance(value, cls):
            return value
        return cls(path=str(value))
