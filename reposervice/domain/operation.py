"""
Operation domain objects for reposervice.

Provides the request, outcome and result types that flow through the
command/execute/classify/normalize pipeline:

    options -> command -> ExecutionOutcome -> OperationResult
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence

from .repository import RepositoryLocation


class OperationName(Enum):
    """Named units of work against a repository or the filesystem."""
    CLONE = "clone"
    CHECKOUT_BRANCH = "checkout-branch"
    CHECKOUT_COMMIT = "checkout-commit"
    FETCH = "fetch"
    RESET = "reset"
    PULL = "pull"
    CLEAN = "clean"
    LOG = "log"
    SHOW = "show"
    DIFF = "diff"
    COUNT_LINES = "count-lines"
    CHECK_CREDENTIALS = "check-credentials"
    ENSURE_DIRECTORY = "ensure-directory"
    REMOVE_DIRECTORY = "remove-directory"

    def __str__(self) -> str:
        return self.value


class ResultStatus(Enum):
    """How an outcome was classified."""
    SUCCESS = "success"
    ALLOWED = "allowed"  # non-zero exit matched a benign rule
    FAILED = "failed"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Exit code and captured output of one process invocation."""
    code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.code == 0


@dataclass(frozen=True)
class ErrorRule:
    """
    A benign condition: when a failing outcome matches, it is reported as
    success carrying ``payload``.

    A rule either names a ``pattern`` searched for in stderr (plain data,
    comparable and loadable from config) or carries a ``predicate`` over the
    whole outcome.
    """
    label: str
    predicate: Optional[Callable[[ExecutionOutcome], bool]] = field(default=None, compare=False)
    payload: Any = None
    pattern: Optional[str] = None

    def matches(self, outcome: ExecutionOutcome) -> bool:
        if self.pattern is not None:
            return self.pattern in (outcome.stderr or "")
        if self.predicate is None:
            return False
        return bool(self.predicate(outcome))

    @classmethod
    def contains(cls, label: str, text: str, payload: Any = None) -> "ErrorRule":
        """Rule matching when ``text`` occurs in stderr (case-sensitive)."""
        return cls(label=label, payload=payload, pattern=text)


@dataclass(frozen=True)
class OperationResult:
    """
    Classified result of one operation.

    Either ``value`` holds the (normalized) output, or ``error`` holds a short
    message naming the operation. ``matched`` names the benign rule that
    turned a non-zero exit into success.
    """
    operation: OperationName
    status: ResultStatus
    value: Any = None
    error: Optional[str] = None
    matched: Optional[str] = None
    code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status != ResultStatus.FAILED

    @classmethod
    def success(cls, operation: OperationName, value: Any = None, code: int = 0) -> "OperationResult":
        return cls(operation=operation, status=ResultStatus.SUCCESS, value=value, code=code)

    @classmethod
    def allowed(cls, operation: OperationName, rule: ErrorRule, code: int) -> "OperationResult":
        return cls(operation=operation, status=ResultStatus.ALLOWED,
                   value=rule.payload, matched=rule.label, code=code)

    @classmethod
    def failure(cls, operation: OperationName, error: str, code: Optional[int] = None) -> "OperationResult":
        return cls(operation=operation, status=ResultStatus.FAILED, error=error, code=code)

    def raise_for_error(self) -> Any:
        """Return ``value``, or raise the exception matching a failed result."""
        if self.ok:
            return self.value

        from ..exit_codes import CredentialsError, DirectoryError, OperationFailedError

        if self.operation == OperationName.CHECK_CREDENTIALS:
            raise CredentialsError(self.error, code=self.code)
        if self.operation in (OperationName.ENSURE_DIRECTORY, OperationName.REMOVE_DIRECTORY):
            raise DirectoryError(self.error)
        raise OperationFailedError(self.error, operation=self.operation.value, code=self.code)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'operation': self.operation.value,
            'status': self.status.value,
        }
        if self.code is not None:
            result['code'] = self.code
        if self.matched:
            result['matched'] = self.matched
        if self.error:
            result['error'] = self.error
        return result


@dataclass(frozen=True)
class CommitRecord:
    """One entry of ``git log --pretty=format:%h%n%at%n%ad%n%s``."""
    hash: str
    timestamp: int
    date: str
    subject: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hash': self.hash,
            'timestamp': self.timestamp,
            'date': self.date,
            'subject': self.subject,
        }


# ---------------------------------------------------------------------------
# Request options
#
# Fields left as None are filled from ServiceConfig by config.with_defaults().
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExecutionFields:
    """Per-call execution settings shared by every request."""
    blocking: Optional[bool] = None
    silent: Optional[bool] = None
    normalizer: Any = None


@dataclass(frozen=True)
class RepoOptions(ExecutionFields):
    """Options for operations scoped to an existing working copy."""
    location: Optional[RepositoryLocation] = None
    branch: Optional[str] = None
    commit: Optional[str] = None


@dataclass(frozen=True)
class CloneOptions(RepoOptions):
    url: Optional[str] = None


@dataclass(frozen=True)
class ShowOptions(RepoOptions):
    relative_file_path: Optional[str] = None


@dataclass(frozen=True)
class DiffOptions(RepoOptions):
    commit_from: Optional[str] = None
    commit_to: Optional[str] = None


@dataclass(frozen=True)
class LinesOptions(ExecutionFields):
    """
    Line counting options.

    ``files=None`` counts every matching file of ``location``; an explicit
    empty list counts nothing and short-circuits to zero.
    """
    location: Optional[RepositoryLocation] = None
    files: Optional[Sequence[str]] = None


@dataclass(frozen=True)
class CredentialsOptions(ExecutionFields):
    host: Optional[str] = None


@dataclass(frozen=True)
class DirOptions:
    path: str = ""


@dataclass(frozen=True)
class ExecOptions:
    """The only settings that reach process spawning."""
    blocking: bool = False
    silent: bool = True
    timeout: Optional[float] = None

    @classmethod
    def from_options(cls, options: ExecutionFields, timeout: Optional[float] = None) -> "ExecOptions":
        return cls(
            blocking=bool(options.blocking),
            silent=True if options.silent is None else bool(options.silent),
            timeout=timeout,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'blocking': self.blocking, 'silent': self.silent, 'timeout': self.timeout}


def describe_options(options) -> Dict[str, Any]:
    """Flatten request options into a log-friendly dict."""
    described: Dict[str, Any] = {}
    for name in getattr(options, '__dataclass_fields__', {}):
        value = getattr(options, name)
        if value is None:
            continue
        if isinstance(value, RepositoryLocation):
            value = value.resolve()
        elif name == 'normalizer':
            value = type(value).__name__
        elif isinstance(value, (list, tuple)):
            value = list(value)
        described[name] = value
    return described


__all__ = [
    'OperationName',
    'ResultStatus',
    'ExecutionOutcome',
    'ErrorRule',
    'OperationResult',
    'CommitRecord',
    'ExecutionFields',
    'RepoOptions',
    'CloneOptions',
    'ShowOptions',
    'DiffOptions',
    'LinesOptions',
    'CredentialsOptions',
    'DirOptions',
    'ExecOptions',
    'describe_options',
]
