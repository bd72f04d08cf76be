"""
reposervice - Clone, synchronize and inspect local copies of data repositories.

reposervice turns declarative repository operations into git/ssh process
invocations, classifies their exit codes (real failure vs. benign
condition) and normalizes their output.

Quick Start:
    from reposervice import (
        ReposService, RepositoryLocation, CloneOptions, DiffOptions,
        DiffStatusNormalizer, load_config,
    )

    with ReposService(load_config()) as repos:
        location = RepositoryLocation(base_dir="/data", relative_path="repos/ddf/master")
        repos.ensure_directory(location.resolve())
        repos.clone(CloneOptions(location=location, url="git@github.com:org/ddf.git"),
                    callback=lambda result: print(result.ok))

        changes = repos.diff(DiffOptions(
            location=location,
            commit_from="HEAD~3",
            commit_to="HEAD",
            normalizer=DiffStatusNormalizer(),
            blocking=True,
        )).result()
        print(changes.value)  # {"ddf--datapoints.csv": "M"}
"""

__version__ = "0.1.0"

from .config import ServiceConfig, load_config, with_defaults, configure_logging

from .domain import (
    RepositoryLocation,
    OperationName,
    ResultStatus,
    ExecutionOutcome,
    ErrorRule,
    OperationResult,
    CommitRecord,
    RepoOptions,
    CloneOptions,
    ShowOptions,
    DiffOptions,
    LinesOptions,
    CredentialsOptions,
    DirOptions,
    ExecOptions,
)

from .normalizers import (
    Normalizer,
    IdentityNormalizer,
    FunctionNormalizer,
    LogNormalizer,
    DiffStatusNormalizer,
    LinesCountNormalizer,
)

from .classifier import classify, classify_credentials

from .infra import ShellRunner, DirectoryManager

from .services import ReposService

__all__ = [
    "__version__",
    # Configuration
    "ServiceConfig",
    "load_config",
    "with_defaults",
    "configure_logging",
    # Domain objects
    "RepositoryLocation",
    "OperationName",
    "ResultStatus",
    "ExecutionOutcome",
    "ErrorRule",
    "OperationResult",
    "CommitRecord",
    "RepoOptions",
    "CloneOptions",
    "ShowOptions",
    "DiffOptions",
    "LinesOptions",
    "CredentialsOptions",
    "DirOptions",
    "ExecOptions",
    # Normalizers
    "Normalizer",
    "IdentityNormalizer",
    "FunctionNormalizer",
    "LogNormalizer",
    "DiffStatusNormalizer",
    "LinesCountNormalizer",
    # Classification
    "classify",
    "classify_credentials",
    # Infrastructure
    "ShellRunner",
    "DirectoryManager",
    # Services
    "ReposService",
]
