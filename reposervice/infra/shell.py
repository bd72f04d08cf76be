"""
Shell execution infrastructure for reposervice.

ShellRunner spawns exactly one child process per call and reports the
outcome as an ExecutionOutcome. It never raises past its boundary and never
retries: interpreting the exit code is the classifier's job.
"""

import logging
import subprocess
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from ..domain.operation import ExecOptions, ExecutionOutcome

logger = logging.getLogger(__name__)

SOURCE = "repo-service"
SPAWN_FAILED = -1


class ShellRunner:
    """
    Runs shell commands in the foreground or on a worker pool.

    Example:
        runner = ShellRunner(max_workers=4)
        future = runner.execute("git --version", ExecOptions())
        outcome = future.result()
        print(outcome.code, outcome.stdout)
    """

    def __init__(self, max_workers: int = 4, log: Optional[logging.Logger] = None):
        """
        Initialize ShellRunner.

        Args:
            max_workers: Size of the pool used for non-blocking commands
            log: Diagnostics logger (module logger if None)
        """
        self.max_workers = max_workers
        self.logger = log or logger
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    @property
    def executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="reposervice",
                )
            return self._executor

    def execute(
        self,
        command: str,
        exec_options: ExecOptions,
        operation: Optional[str] = None
    ) -> "Future[ExecutionOutcome]":
        """
        Run ``command`` and return a future for its outcome.

        Blocking requests run in the calling thread and return an already
        completed future.
        """
        self.logger.info(
            f"Running {operation or 'command'}: {command}",
            extra={
                'source': SOURCE,
                'operation': operation,
                'command': command,
                'options': exec_options.to_dict(),
            }
        )

        if exec_options.blocking:
            future: Future = Future()
            future.set_result(self._run(command, exec_options))
            return future

        return self.executor.submit(self._run, command, exec_options)

    def _run(self, command: str, exec_options: ExecOptions) -> ExecutionOutcome:
        """Spawn the process and capture its exit code and output."""
        try:
            result = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=exec_options.timeout
            )
            outcome = ExecutionOutcome(
                code=result.returncode,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
            )
        except subprocess.TimeoutExpired:
            outcome = ExecutionOutcome(
                code=SPAWN_FAILED,
                stderr=f"Command timed out after {exec_options.timeout}s: {command}",
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            outcome = ExecutionOutcome(code=SPAWN_FAILED, stderr=str(e))

        if not exec_options.silent:
            self._echo(outcome)

        return outcome

    @staticmethod
    def _echo(outcome: ExecutionOutcome) -> None:
        if outcome.stdout:
            sys.stdout.write(outcome.stdout)
            sys.stdout.flush()
        if outcome.stderr:
            sys.stderr.write(outcome.stderr)
            sys.stderr.flush()

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool (running commands finish first when ``wait``)."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
