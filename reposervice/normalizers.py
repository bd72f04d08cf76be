"""
Result normalizers.

A normalizer turns the raw stdout of a successful command into the value
handed back to the caller. It is applied once per zero-exit outcome and
never on failures or benign (allowed) outcomes.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List

from .domain.operation import CommitRecord


class Normalizer(ABC):
    """Converts raw command output into a structured value."""

    @abstractmethod
    def normalize(self, raw: str) -> Any:
        """Return a new value derived from ``raw``."""

    def __call__(self, raw: str) -> Any:
        return self.normalize(raw)


class IdentityNormalizer(Normalizer):
    """Returns the raw output unchanged."""

    def normalize(self, raw: str) -> str:
        return raw


class FunctionNormalizer(Normalizer):
    """Adapts a plain callable to the Normalizer interface."""

    def __init__(self, func: Callable[[str], Any]):
        self.func = func

    def normalize(self, raw: str) -> Any:
        return self.func(raw)


class LogNormalizer(Normalizer):
    """
    Parse ``git log --pretty=format:%h%n%at%n%ad%n%s%n%n`` output.

    Each commit is four lines (short hash, unix timestamp, date, subject);
    commits are separated by blank lines.
    """

    def normalize(self, raw: str) -> List[CommitRecord]:
        records = []
        for block in re.split(r'\n\s*\n', raw or ''):
            lines = block.strip('\n').split('\n')
            if len(lines) < 3 or not lines[0].strip():
                continue

            try:
                timestamp = int(lines[1].strip())
            except ValueError:
                continue

            records.append(CommitRecord(
                hash=lines[0].strip(),
                timestamp=timestamp,
                date=lines[2].strip(),
                subject=lines[3].strip() if len(lines) > 3 else '',
            ))
        return records


class DiffStatusNormalizer(Normalizer):
    """
    Parse ``git diff --name-status`` output into ``{filename: status}``.

    Example:
        "A\\tddf--concepts.csv\\nM\\tddf--entities.csv"
        -> {"ddf--concepts.csv": "A", "ddf--entities.csv": "M"}
    """

    def normalize(self, raw: str) -> Dict[str, str]:
        statuses = {}
        for line in (raw or '').splitlines():
            if '\t' not in line:
                continue
            status, filename = line.split('\t', 1)
            statuses[filename.strip()] = status.strip()
        return statuses


class LinesCountNormalizer(Normalizer):
    """Parse the total of ``wc -l`` output (``"  1234 total"`` or ``"0"``)."""

    def normalize(self, raw: str) -> int:
        lines = [line for line in (raw or '').splitlines() if line.strip()]
        if not lines:
            return 0
        match = re.match(r'\s*(\d+)', lines[-1])
        if not match:
            raise ValueError(f"Unexpected line count output: {lines[-1]!r}")
        return int(match.group(1))
