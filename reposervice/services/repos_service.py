"""
Repository operations service for reposervice.

Entry point used by import/orchestration code. Every operation follows the
same pipeline:

    options -> with_defaults -> command -> ShellRunner -> classify -> normalize

and reports through a Future[OperationResult] plus an optional callback
receiving the same OperationResult.
"""

import logging
from concurrent.futures import Future
from typing import Any, Callable, Optional, Sequence, Union

from ..classifier import classify, classify_credentials, diff_overrides, show_overrides
from ..config import ServiceConfig, with_defaults
from ..domain.operation import (
    CloneOptions,
    CredentialsOptions,
    DiffOptions,
    DirOptions,
    ErrorRule,
    ExecOptions,
    ExecutionOutcome,
    LinesOptions,
    OperationName,
    OperationResult,
    RepoOptions,
    ResultStatus,
    ShowOptions,
    describe_options,
)
from ..infra import commands
from ..infra.directories import DirectoryManager
from ..infra.shell import SOURCE, SPAWN_FAILED, ShellRunner
from ..normalizers import FunctionNormalizer, IdentityNormalizer, Normalizer

logger = logging.getLogger(__name__)

ResultCallback = Callable[[OperationResult], Any]


class ReposService:
    """
    Clone, synchronize, inspect and tear down repository working copies.

    Example:
        with ReposService(config) as repos:
            location = RepositoryLocation(path="/data/repos/ddf--gapminder")
            repos.fetch(RepoOptions(location=location))
            future = repos.diff(DiffOptions(
                location=location,
                commit_from="HEAD~3",
                commit_to="HEAD",
                normalizer=DiffStatusNormalizer(),
            ))
            print(future.result().value)  # {"ddf--concepts.csv": "M"}
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        runner: Optional[ShellRunner] = None,
        directories: Optional[DirectoryManager] = None,
        log: Optional[logging.Logger] = None
    ):
        """
        Initialize ReposService.

        Args:
            config: Immutable settings (library defaults if None)
            runner: ShellRunner instance (creates new if None)
            directories: DirectoryManager instance (creates new if None)
            log: Diagnostics logger (module logger if None)
        """
        self.config = config or ServiceConfig()
        self._logger = log or logger
        self.runner = runner or ShellRunner(max_workers=self.config.max_workers, log=self._logger)
        self.directories = directories or DirectoryManager(
            remove_missing_ok=self.config.remove_missing_ok,
            log=self._logger,
        )

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @logger.setter
    def logger(self, value: logging.Logger) -> None:
        self._logger = value
        self.runner.logger = value
        self.directories.logger = value

    def close(self) -> None:
        self.runner.shutdown()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Repository operations
    # ------------------------------------------------------------------

    def clone(self, options: CloneOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        """Clone into an empty directory; an already populated one is not an error."""
        options = with_defaults(options, self.config)
        return self._run(OperationName.CLONE, commands.build_clone(options), options, callback)

    def checkout_branch(self, options: RepoOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        options = with_defaults(options, self.config)
        return self._run(OperationName.CHECKOUT_BRANCH, commands.build_checkout_branch(options), options, callback)

    def checkout_commit(self, options: RepoOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        options = with_defaults(options, self.config)
        return self._run(OperationName.CHECKOUT_COMMIT, commands.build_checkout_commit(options), options, callback)

    def fetch(self, options: RepoOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        options = with_defaults(options, self.config)
        return self._run(OperationName.FETCH, commands.build_fetch(options), options, callback)

    def reset(self, options: RepoOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        """Hard reset the working copy to ``origin/<branch>``."""
        options = with_defaults(options, self.config)
        return self._run(OperationName.RESET, commands.build_reset(options), options, callback)

    def pull(self, options: RepoOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        options = with_defaults(options, self.config)
        return self._run(OperationName.PULL, commands.build_pull(options), options, callback)

    def clean(self, options: RepoOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        """Remove untracked files and directories."""
        options = with_defaults(options, self.config)
        return self._run(OperationName.CLEAN, commands.build_clean(options), options, callback)

    def log(self, options: RepoOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        """Commit history; pass ``LogNormalizer()`` to get CommitRecord objects."""
        options = with_defaults(options, self.config)
        return self._run(OperationName.LOG, commands.build_log(options), options, callback)

    def show(self, options: ShowOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        """
        Content of a file at a revision.

        A file that does not exist at that revision yields an empty string
        rather than an error.
        """
        options = with_defaults(options, self.config)
        overrides = show_overrides(options.relative_file_path, options.commit)
        return self._run(OperationName.SHOW, commands.build_show(options), options, callback, overrides)

    def diff(self, options: DiffOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        """Name/status of files with the configured extension changed between two revisions."""
        options = with_defaults(options, self.config)
        command = commands.build_diff(options, self.config.diff_extension)
        return self._run(OperationName.DIFF, command, options, callback, diff_overrides())

    def count_lines(self, options: LinesOptions, callback: Optional[ResultCallback] = None) -> "Future[OperationResult]":
        """Total line count of the given files, or of the repository's data files."""
        options = with_defaults(options, self.config)
        command = commands.build_count_lines(options, self.config.diff_extension)
        return self._run(OperationName.COUNT_LINES, command, options, callback)

    def check_credentials(
        self,
        options: Optional[CredentialsOptions] = None,
        callback: Optional[ResultCallback] = None
    ) -> "Future[OperationResult]":
        """Check that the SSH host accepts our key."""
        options = with_defaults(options or CredentialsOptions(), self.config)
        return self._run(
            OperationName.CHECK_CREDENTIALS,
            commands.build_check_credentials(options),
            options,
            callback,
        )

    # ------------------------------------------------------------------
    # Directory lifecycle
    # ------------------------------------------------------------------

    def ensure_directory(
        self,
        options: Union[DirOptions, str],
        callback: Optional[ResultCallback] = None
    ) -> "Future[OperationResult]":
        path = options.path if isinstance(options, DirOptions) else str(options)
        return self._deliver(self.directories.ensure_directory(path), callback)

    def remove_directory(
        self,
        options: Union[DirOptions, str],
        callback: Optional[ResultCallback] = None
    ) -> "Future[OperationResult]":
        """Empty the directory; see ``directories.remove_missing_ok`` for missing paths."""
        path = options.path if isinstance(options, DirOptions) else str(options)
        return self._deliver(self.directories.remove_directory_contents(path), callback)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: OperationName,
        command: str,
        options,
        callback: Optional[ResultCallback],
        overrides: Sequence[ErrorRule] = ()
    ) -> "Future[OperationResult]":
        exec_options = ExecOptions.from_options(options, self.config.timeout)
        result_future: Future = Future()

        def on_outcome(done: Future) -> None:
            error = done.exception()
            if error is not None:
                outcome = ExecutionOutcome(code=SPAWN_FAILED, stderr=str(error))
            else:
                outcome = done.result()
            result = self._complete(operation, command, options, outcome, overrides)
            self._deliver(result, callback, result_future)

        self.runner.execute(command, exec_options, operation.value).add_done_callback(on_outcome)
        return result_future

    def _complete(
        self,
        operation: OperationName,
        command: str,
        options,
        outcome: ExecutionOutcome,
        overrides: Sequence[ErrorRule]
    ) -> OperationResult:
        if outcome.code != 0:
            self._logger.error(
                f"{operation.value} exited with code {outcome.code}",
                extra={
                    'source': SOURCE,
                    'operation': operation.value,
                    'code': outcome.code,
                    'command': command,
                    'options': describe_options(options),
                    'stdout': outcome.stdout,
                    'stderr': outcome.stderr,
                    'defaults': self.config.to_dict(),
                }
            )

        if operation == OperationName.CHECK_CREDENTIALS:
            result = classify_credentials(outcome, self.config.ssh_failure_threshold, self.config.ssh_help)
        else:
            result = classify(outcome, self.config.allowed_errors, operation, overrides)

        if result.status != ResultStatus.SUCCESS:
            return result
        return self._normalize(result, options)

    def _normalize(self, result: OperationResult, options) -> OperationResult:
        normalizer = options.normalizer or IdentityNormalizer()
        if not isinstance(normalizer, Normalizer):
            normalizer = FunctionNormalizer(normalizer)

        try:
            value = normalizer.normalize(result.value)
        except Exception:
            self._logger.exception(
                f"Unable to normalize {result.operation.value} output",
                extra={'source': SOURCE, 'operation': result.operation.value},
            )
            return OperationResult.failure(
                result.operation,
                f"Unable to normalize result: {result.operation.value}",
                result.code,
            )

        return OperationResult.success(result.operation, value, code=result.code)

    @staticmethod
    def _deliver(
        result: OperationResult,
        callback: Optional[ResultCallback],
        future: Optional[Future] = None
    ) -> "Future[OperationResult]":
        if future is None:
            future = Future()
        future.set_result(result)
        if callback is not None:
            callback(result)
        return future
