"""
Domain layer for reposervice.

Plain data types shared by the command builder, runner, classifier and
service facade. No I/O happens here.
"""

from .repository import RepositoryLocation
from .operation import (
    OperationName,
    ResultStatus,
    ExecutionOutcome,
    ErrorRule,
    OperationResult,
    CommitRecord,
    ExecutionFields,
    RepoOptions,
    CloneOptions,
    ShowOptions,
    DiffOptions,
    LinesOptions,
    CredentialsOptions,
    DirOptions,
    ExecOptions,
    describe_options,
)

__all__ = [
    'RepositoryLocation',
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
