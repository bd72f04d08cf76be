"""Tests for the command builder."""

import pytest

from reposervice.domain import (
    CloneOptions,
    CredentialsOptions,
    DiffOptions,
    LinesOptions,
    RepoOptions,
    RepositoryLocation,
    ShowOptions,
)
from reposervice.infra import commands

REPO = RepositoryLocation(path="/data/repos/ddf")
GIT = "git --git-dir=/data/repos/ddf/.git --work-tree=/data/repos/ddf"


class TestWrapGitCommand:
    """Repository commands are bound to git-dir/work-tree, not the cwd."""

    def test_wrap(self):
        assert commands.wrap_git_command(REPO, "status") == f"{GIT} status"

    def test_trailing_slash_resolved(self):
        location = RepositoryLocation(path="/data/repos/ddf/")
        assert commands.wrap_git_command(location, "status") == f"{GIT} status"

    def test_path_with_spaces_is_quoted(self):
        location = RepositoryLocation(path="/data/my repos/ddf")
        assert commands.wrap_git_command(location, "status") == (
            "git --git-dir='/data/my repos/ddf/.git' --work-tree='/data/my repos/ddf' status"
        )


class TestBuilders:
    """Exact argument vectors of each operation."""

    def test_clone_split(self):
        location = RepositoryLocation(base_dir="/data", relative_path="repos/ddf/master")
        options = CloneOptions(location=location, url="git@github.com:org/ddf.git", branch="master")
        assert commands.build_clone(options) == (
            "git -C /data clone git@github.com:org/ddf.git repos/ddf/master -b master"
        )

    def test_clone_single(self):
        options = CloneOptions(location=REPO, url="git@github.com:org/ddf.git", branch="dev")
        assert commands.build_clone(options) == (
            f"{GIT} clone git@github.com:org/ddf.git /data/repos/ddf -b dev"
        )

    def test_checkout(self):
        assert commands.build_checkout_branch(RepoOptions(location=REPO, branch="dev")) == f"{GIT} checkout dev"
        assert commands.build_checkout_commit(RepoOptions(location=REPO, commit="abc123")) == f"{GIT} checkout abc123"

    def test_sync_commands(self):
        options = RepoOptions(location=REPO, branch="master")
        assert commands.build_fetch(options) == f"{GIT} fetch --all --prune"
        assert commands.build_reset(options) == f"{GIT} reset --hard origin/master"
        assert commands.build_pull(options) == f"{GIT} pull origin master"
        assert commands.build_clean(options) == f"{GIT} clean -f -d"

    def test_log_format(self):
        assert commands.build_log(RepoOptions(location=REPO)) == (
            f"{GIT} log --pretty=format:%h%n%at%n%ad%n%s%n%n"
        )

    def test_show(self):
        options = ShowOptions(location=REPO, commit="abc123", relative_file_path="lang/nl-nl/a.csv")
        assert commands.build_show(options) == f"{GIT} show abc123:lang/nl-nl/a.csv"

    def test_diff_flag_order(self):
        options = DiffOptions(location=REPO, commit_from="abc", commit_to="def")
        assert commands.build_diff(options) == (
            f'{GIT} diff abc def --name-status --no-renames | grep ".csv$"'
        )

    def test_diff_extension(self):
        options = DiffOptions(location=REPO, commit_from="abc", commit_to="def")
        assert commands.build_diff(options, ".json").endswith('| grep ".json$"')

    def test_check_credentials(self):
        assert commands.build_check_credentials(CredentialsOptions(host="git@github.com")) == "ssh -T git@github.com"


class TestCountLines:
    """Line counting command shapes."""

    def test_directory(self):
        assert commands.build_count_lines(LinesOptions(location=REPO)) == (
            "wc -l /data/repos/ddf/*.csv | tail -n 1"
        )

    def test_empty_list_is_trivial(self):
        assert commands.build_count_lines(LinesOptions(files=[])) == "echo 0"

    def test_empty_list_ignores_location(self):
        assert commands.build_count_lines(LinesOptions(location=REPO, files=())) == "echo 0"

    def test_single_file(self):
        assert commands.build_count_lines(LinesOptions(files=["a.csv"])) == "wc -l a.csv"

    def test_many_files(self):
        assert commands.build_count_lines(LinesOptions(files=["a.csv", "b c.csv"])) == (
            "wc -l a.csv 'b c.csv' | grep \"total$\""
        )


class TestRequiredParameters:
    """Missing required values fail at build time."""

    def test_missing_location(self):
        with pytest.raises(ValueError, match="location"):
            commands.build_fetch(RepoOptions())

    def test_missing_branch(self):
        with pytest.raises(ValueError, match="branch"):
            commands.build_reset(RepoOptions(location=REPO))

    def test_missing_diff_range(self):
        with pytest.raises(ValueError, match="commit_to"):
            commands.build_diff(DiffOptions(location=REPO, commit_from="abc"))

    def test_missing_show_path(self):
        with pytest.raises(ValueError, match="relative_file_path"):
            commands.build_show(ShowOptions(location=REPO, commit="HEAD"))

    def test_string_location_accepted(self):
        assert commands.build_clean(RepoOptions(location="/data/repos/ddf")) == f"{GIT} clean -f -d"
