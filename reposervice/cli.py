#!/usr/bin/env python3
"""
Command line interface for reposervice.

Every command runs its operation in blocking mode and prints the result as
one JSON line; failures go to stderr with a non-zero exit code.
"""

import json
from pathlib import Path
from typing import Any, Optional

import click

from .config import ServiceConfig, configure_logging, load_config_dict
from .domain import (
    CloneOptions,
    CredentialsOptions,
    DiffOptions,
    LinesOptions,
    OperationResult,
    RepoOptions,
    RepositoryLocation,
    ShowOptions,
)
from .exit_codes import CommandError, get_exit_code_for_exception
from .normalizers import DiffStatusNormalizer, LinesCountNormalizer, LogNormalizer
from .render import render_diff_table, render_log_table
from .services import ReposService


def _value_to_json(value: Any) -> Any:
    if isinstance(value, list):
        return [_value_to_json(item) for item in value]
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    return value


def emit(result: OperationResult, pretty_renderer=None) -> None:
    """Print a successful result, or raise the matching CommandError."""
    value = result.raise_for_error()

    if pretty_renderer is not None:
        pretty_renderer(value if value is not None else [])
        return

    output = result.to_dict()
    output['value'] = _value_to_json(value)
    click.echo(json.dumps(output, ensure_ascii=False))


def _service(ctx: click.Context) -> ReposService:
    return ctx.obj['service']


def _blocking(ctx: click.Context) -> dict:
    return {'blocking': True, 'silent': not ctx.obj['verbose']}


class ReposGroup(click.Group):
    """Maps CommandError (and friends) to exit codes."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except CommandError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(get_exit_code_for_exception(e))
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(get_exit_code_for_exception(e))


@click.group(cls=ReposGroup)
@click.version_option(package_name="reposervice")
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              default=None, help='Config file (JSON, TOML or YAML)')
@click.option('--verbose', '-v', is_flag=True, help='Echo git/ssh output')
@click.pass_context
def cli(ctx, config_path: Optional[Path], verbose: bool):
    """reposervice - clone, synchronize and inspect data repositories."""
    config_dict = load_config_dict(config_path)
    logging_config = config_dict.get('logging', {})
    configure_logging(logging_config.get('level', 'INFO'), logging_config.get('format', '%(levelname)s: %(message)s'))

    config = ServiceConfig.from_dict(config_dict)
    service = ReposService(config)
    ctx.obj = {'config': config, 'service': service, 'verbose': verbose}
    ctx.call_on_close(service.close)


@cli.command('clone')
@click.argument('url')
@click.argument('path')
@click.option('--base-dir', default=None, help='Clone PATH relative to this directory')
@click.option('--branch', '-b', default=None, help='Branch to clone')
@click.pass_context
def clone_cmd(ctx, url, path, base_dir, branch):
    """Clone URL into PATH (a populated PATH is left as is)."""
    if base_dir:
        location = RepositoryLocation(base_dir=base_dir, relative_path=path)
    else:
        location = RepositoryLocation(path=path)
    options = CloneOptions(location=location, url=url, branch=branch, **_blocking(ctx))
    emit(_service(ctx).clone(options).result())


@cli.command('checkout')
@click.argument('path')
@click.option('--branch', '-b', default=None, help='Branch to check out')
@click.option('--commit', '-c', default=None, help='Commit to check out (takes precedence)')
@click.pass_context
def checkout_cmd(ctx, path, branch, commit):
    """Check out a branch or a commit."""
    service = _service(ctx)
    location = RepositoryLocation(path=path)
    if commit:
        future = service.checkout_commit(RepoOptions(location=location, commit=commit, **_blocking(ctx)))
    else:
        future = service.checkout_branch(RepoOptions(location=location, branch=branch, **_blocking(ctx)))
    emit(future.result())


@cli.command('fetch')
@click.argument('path')
@click.pass_context
def fetch_cmd(ctx, path):
    """Fetch all remotes and prune deleted branches."""
    options = RepoOptions(location=RepositoryLocation(path=path), **_blocking(ctx))
    emit(_service(ctx).fetch(options).result())


@cli.command('reset')
@click.argument('path')
@click.option('--branch', '-b', default=None)
@click.pass_context
def reset_cmd(ctx, path, branch):
    """Hard reset to origin/BRANCH."""
    options = RepoOptions(location=RepositoryLocation(path=path), branch=branch, **_blocking(ctx))
    emit(_service(ctx).reset(options).result())


@cli.command('pull')
@click.argument('path')
@click.option('--branch', '-b', default=None)
@click.pass_context
def pull_cmd(ctx, path, branch):
    """Pull BRANCH from origin."""
    options = RepoOptions(location=RepositoryLocation(path=path), branch=branch, **_blocking(ctx))
    emit(_service(ctx).pull(options).result())


@cli.command('clean')
@click.argument('path')
@click.pass_context
def clean_cmd(ctx, path):
    """Remove untracked files and directories."""
    options = RepoOptions(location=RepositoryLocation(path=path), **_blocking(ctx))
    emit(_service(ctx).clean(options).result())


@cli.command('sync')
@click.argument('path')
@click.option('--branch', '-b', default=None)
@click.pass_context
def sync_cmd(ctx, path, branch):
    """Fetch, hard reset to origin/BRANCH and clean, stopping at the first failure."""
    service = _service(ctx)
    options = RepoOptions(location=RepositoryLocation(path=path), branch=branch, **_blocking(ctx))

    for step in (service.fetch, service.reset, service.clean):
        emit(step(options).result())


@cli.command('log')
@click.argument('path')
@click.option('--pretty', is_flag=True, help='Display as formatted table')
@click.pass_context
def log_cmd(ctx, path, pretty):
    """Show commit history."""
    options = RepoOptions(location=RepositoryLocation(path=path), normalizer=LogNormalizer(), **_blocking(ctx))
    emit(_service(ctx).log(options).result(), render_log_table if pretty else None)


@cli.command('show')
@click.argument('path')
@click.argument('file_path')
@click.option('--commit', '-c', default=None, help='Revision (default: HEAD)')
@click.pass_context
def show_cmd(ctx, path, file_path, commit):
    """Print FILE_PATH as of a revision (empty when absent there)."""
    options = ShowOptions(
        location=RepositoryLocation(path=path),
        relative_file_path=file_path,
        commit=commit,
        **_blocking(ctx)
    )
    emit(_service(ctx).show(options).result())


@cli.command('diff')
@click.argument('path')
@click.argument('commit_from')
@click.argument('commit_to')
@click.option('--pretty', is_flag=True, help='Display as formatted table')
@click.pass_context
def diff_cmd(ctx, path, commit_from, commit_to, pretty):
    """List data files changed between two revisions."""
    options = DiffOptions(
        location=RepositoryLocation(path=path),
        commit_from=commit_from,
        commit_to=commit_to,
        normalizer=DiffStatusNormalizer(),
        **_blocking(ctx)
    )
    emit(_service(ctx).diff(options).result(), render_diff_table if pretty else None)


@cli.command('lines')
@click.argument('path', required=False)
@click.option('--file', '-f', 'files', multiple=True, help='Count only these files')
@click.pass_context
def lines_cmd(ctx, path, files):
    """Count lines of data files in PATH, or of the given files."""
    if not path and not files:
        raise click.UsageError("Give a repository PATH or at least one --file")
    options = LinesOptions(
        location=RepositoryLocation(path=path) if path else None,
        files=list(files) if files else None,
        normalizer=LinesCountNormalizer(),
        **_blocking(ctx)
    )
    emit(_service(ctx).count_lines(options).result())


@cli.command('check-credentials')
@click.option('--host', default=None, help='SSH host (default from config)')
@click.pass_context
def check_credentials_cmd(ctx, host):
    """Check that the SSH host accepts your key."""
    options = CredentialsOptions(host=host, **_blocking(ctx))
    emit(_service(ctx).check_credentials(options).result())


@cli.command('ensure-dir')
@click.argument('path')
@click.pass_context
def ensure_dir_cmd(ctx, path):
    """Create PATH (with parents) if it does not exist."""
    emit(_service(ctx).ensure_directory(path).result())


@cli.command('remove-dir')
@click.argument('path')
@click.pass_context
def remove_dir_cmd(ctx, path):
    """Remove the contents of PATH."""
    emit(_service(ctx).remove_directory(path).result())


@cli.group('config')
def config_cmd():
    """Configuration commands."""
    pass


@config_cmd.command('show')
@click.pass_context
def config_show(ctx):
    """Print the effective configuration."""
    click.echo(json.dumps(ctx.obj['config'].to_dict(), indent=2))


def main():
    cli()


if __name__ == "__main__":
    main()
