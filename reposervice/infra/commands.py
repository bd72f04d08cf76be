"""
Command builder.

Pure functions that map an operation and its (already defaulted) options to
the shell command string run by ShellRunner. Repository-scoped git commands
are bound to an explicit ``--git-dir``/``--work-tree`` pair so they never
depend on the process working directory.
"""

import shlex
from typing import Optional, Sequence

from ..domain.operation import (
    CloneOptions,
    CredentialsOptions,
    DiffOptions,
    LinesOptions,
    OperationName,
    RepoOptions,
    ShowOptions,
)
from ..domain.repository import RepositoryLocation

LOG_FORMAT = "%h%n%at%n%ad%n%s%n%n"
EMPTY_COUNT_COMMAND = "echo 0"


def _q(value) -> str:
    return shlex.quote(str(value))


def _require(value, name: str, operation: OperationName):
    if value is None or value == "":
        raise ValueError(f"'{name}' is required for {operation.value}")
    return value


def wrap_git_command(location: RepositoryLocation, command: str) -> str:
    """Bind a git subcommand to the repository's metadata and data directories."""
    return f"git --git-dir={_q(location.git_dir)} --work-tree={_q(location.work_tree)} {command}"


def _location(options, operation: OperationName) -> RepositoryLocation:
    location = _require(options.location, 'location', operation)
    return RepositoryLocation.of(location)


def build_clone(options: CloneOptions) -> str:
    """
    Clone ``url`` at ``branch``.

    A split location (base_dir + relative_path) clones from inside the base
    directory; a single path binds the clone to that path.
    """
    op = OperationName.CLONE
    url = _require(options.url, 'url', op)
    location = _location(options, op)
    branch = _require(options.branch, 'branch', op)

    if location.is_split:
        return (f"git -C {_q(location.resolved_base_dir)} clone {_q(url)} "
                f"{_q(location.relative_path)} -b {_q(branch)}")

    return wrap_git_command(location, f"clone {_q(url)} {_q(location.work_tree)} -b {_q(branch)}")


def build_checkout_branch(options: RepoOptions) -> str:
    op = OperationName.CHECKOUT_BRANCH
    branch = _require(options.branch, 'branch', op)
    return wrap_git_command(_location(options, op), f"checkout {_q(branch)}")


def build_checkout_commit(options: RepoOptions) -> str:
    op = OperationName.CHECKOUT_COMMIT
    commit = _require(options.commit, 'commit', op)
    return wrap_git_command(_location(options, op), f"checkout {_q(commit)}")


def build_fetch(options: RepoOptions) -> str:
    return wrap_git_command(_location(options, OperationName.FETCH), "fetch --all --prune")


def build_reset(options: RepoOptions) -> str:
    op = OperationName.RESET
    branch = _require(options.branch, 'branch', op)
    return wrap_git_command(_location(options, op), f"reset --hard {_q('origin/' + branch)}")


def build_pull(options: RepoOptions) -> str:
    op = OperationName.PULL
    branch = _require(options.branch, 'branch', op)
    return wrap_git_command(_location(options, op), f"pull origin {_q(branch)}")


def build_clean(options: RepoOptions) -> str:
    return wrap_git_command(_location(options, OperationName.CLEAN), "clean -f -d")


def build_log(options: RepoOptions) -> str:
    return wrap_git_command(_location(options, OperationName.LOG), f"log --pretty=format:{LOG_FORMAT}")


def build_show(options: ShowOptions) -> str:
    op = OperationName.SHOW
    commit = _require(options.commit, 'commit', op)
    file_path = _require(options.relative_file_path, 'relative_file_path', op)
    return wrap_git_command(_location(options, op), f"show {_q(f'{commit}:{file_path}')}")


def build_diff(options: DiffOptions, extension: str = ".csv") -> str:
    op = OperationName.DIFF
    commit_from = _require(options.commit_from, 'commit_from', op)
    commit_to = _require(options.commit_to, 'commit_to', op)
    command = (f"diff {_q(commit_from)} {_q(commit_to)} --name-status --no-renames "
               f'| grep "{extension}$"')
    return wrap_git_command(_location(options, op), command)


def build_count_lines(options: LinesOptions, extension: str = ".csv") -> str:
    """
    Count lines of explicit files, or of every ``*<extension>`` file in the
    repository when no file list is given.

    The glob may match a single file, in which case ``wc`` prints no
    ``total`` line; its last line carries the count either way.
    """
    files: Optional[Sequence[str]] = options.files
    if files is not None:
        files = list(files)
        if not files:
            return EMPTY_COUNT_COMMAND
        quoted = " ".join(_q(f) for f in files)
        if len(files) == 1:
            return f"wc -l {quoted}"
        return f'wc -l {quoted} | grep "total$"'

    location = _location(options, OperationName.COUNT_LINES)
    return f"wc -l {_q(location.work_tree)}/*{extension} | tail -n 1"


def build_check_credentials(options: CredentialsOptions) -> str:
    host = _require(options.host, 'host', OperationName.CHECK_CREDENTIALS)
    return f"ssh -T {_q(host)}"
