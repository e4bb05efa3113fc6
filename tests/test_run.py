"""Tests for run.py: argument parsing, startup discovery and exit codes."""

from unittest.mock import MagicMock, patch

import pytest

from brun import __version__
from brun.config import Settings
from brun.errors import (
    APIError,
    BadRemote,
    Dirty,
    MissingToken,
    NoUpstream,
    UserCommandFailed,
)
from brun.remote import RepoCoordinates
from brun.remote.github import GithubRemote
from brun.run import main, parse_args, setup, split_command


class TestSplitCommand:
    def test_splits_at_first_separator(self):
        assert split_command(["-p", "2", "--", "make", "--", "x"]) == (["-p", "2"], ["make", "--", "x"])

    def test_no_separator(self):
        assert split_command(["-p", "2"]) == (["-p", "2"], [])


class TestParseArgs:
    def test_defaults(self):
        s = parse_args(["--", "make", "test"])
        assert s.cmd == ["make", "test"]
        assert s.period == 5.0
        assert s.stop_on_failure is False
        assert s.skip_initial is False

    def test_flags(self):
        s = parse_args(["-p", "0.5", "--stop-on-failure", "--skip-initial", "--", "echo", "hi"])
        assert s.period == 0.5
        assert s.stop_on_failure is True
        assert s.skip_initial is True

    def test_long_period(self):
        assert parse_args(["--period", "10", "--", "true"]).period == 10.0

    def test_command_options_not_parsed(self):
        s = parse_args(["--", "pytest", "-p", "no:cacheprovider"])
        assert s.cmd == ["pytest", "-p", "no:cacheprovider"]
        assert s.period == 5.0

    @pytest.mark.parametrize("period", ["0", "-1", "abc", "nan", "inf"])
    def test_bad_period_rejected(self, period, capsys):
        with pytest.raises(SystemExit) as exc:
            parse_args(["-p", period, "--", "true"])
        assert exc.value.code == 2
        assert "period" in capsys.readouterr().err

    def test_missing_separator(self, capsys):
        with pytest.raises(SystemExit) as exc:
            parse_args(["make"])
        assert exc.value.code == 2
        assert "required after '--'" in capsys.readouterr().err

    def test_empty_command(self):
        with pytest.raises(SystemExit):
            parse_args(["--"])

    def test_repo_override(self):
        s = parse_args(["--repo", "octo/hello", "--branch", "dev", "--", "true"])
        assert s.repo == "octo/hello"
        assert s.branch == "dev"

    def test_bad_repo_override(self):
        with pytest.raises(SystemExit):
            parse_args(["--repo", "hello", "--", "true"])

    def test_config_file_values(self, tmp_path):
        (tmp_path / ".brun.yaml").write_text("period: 1.5\nstop_on_failure: true\n")
        s = parse_args(["--", "true"])
        assert s.period == 1.5
        assert s.stop_on_failure is True

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            parse_args(["--version"])
        assert exc.value.code == 0
        assert __version__ in capsys.readouterr().out


@pytest.fixture
def git():
    """Patch the VCS probe with a clean repository tracking octo/hello."""
    with patch("brun.run.git_utils") as mock_git:
        mock_git.is_work_tree.return_value = True
        mock_git.current_branch.return_value = "main"
        mock_git.upstream_info.return_value = ("octo", "hello")
        mock_git.is_dirty.return_value = False
        yield mock_git


class TestSetup:
    def test_builds_watcher(self, git, monkeypatch):
        monkeypatch.setenv("GH_TOKEN", "tok")
        watcher = setup(Settings(cmd=["true"]))
        try:
            assert isinstance(watcher.remote, GithubRemote)
            assert watcher.remote.coords == RepoCoordinates("octo", "hello", "main")
            assert watcher.remote.last_commit is None
        finally:
            watcher.remote.close()
        git.upstream_info.assert_called_once_with("main")

    def test_token_checked_first(self, git):
        with pytest.raises(MissingToken):
            setup(Settings(cmd=["true"]))
        git.is_work_tree.assert_not_called()

    def test_overrides_skip_discovery(self, git, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "tok")
        watcher = setup(Settings(cmd=["true"], repo="acme/widgets", branch="release"))
        watcher.remote.close()
        assert watcher.remote.coords == RepoCoordinates("acme", "widgets", "release")
        git.current_branch.assert_not_called()
        git.upstream_info.assert_not_called()

    def test_dirty_checked_after_discovery(self, git, monkeypatch):
        monkeypatch.setenv("GH_TOKEN", "tok")
        git.is_dirty.return_value = True
        with pytest.raises(Dirty):
            setup(Settings(cmd=["true"]))
        git.upstream_info.assert_called_once()


class TestMain:
    def test_missing_token(self, git, capsys):
        assert main(["--", "true"]) == 1
        err = capsys.readouterr().err
        assert err.startswith("error: ")
        assert "GH_TOKEN or GITHUB_TOKEN" in err

    def test_not_in_work_tree(self, git, monkeypatch, capsys):
        monkeypatch.setenv("GH_TOKEN", "tok")
        git.is_work_tree.return_value = False
        assert main(["--", "true"]) == 1
        assert "not in a git repository" in capsys.readouterr().err

    def test_dirty_tree(self, git, monkeypatch, capsys):
        monkeypatch.setenv("GH_TOKEN", "tok")
        git.is_dirty.return_value = True
        assert main(["--", "true"]) == 1
        assert "uncommitted changes" in capsys.readouterr().err

    def test_no_upstream(self, git, monkeypatch, capsys):
        monkeypatch.setenv("GH_TOKEN", "tok")
        git.upstream_info.side_effect = NoUpstream(128, "fatal: no upstream")
        assert main(["--", "true"]) == 1
        assert "failed to get upstream branch (code=128)" in capsys.readouterr().err

    def test_bad_remote(self, git, monkeypatch, capsys):
        monkeypatch.setenv("GH_TOKEN", "tok")
        git.upstream_info.side_effect = BadRemote("/srv/git/x.git")
        assert main(["--", "true"]) == 1
        assert "/srv/git/x.git" in capsys.readouterr().err

    def test_user_command_failure_exits_1(self, capsys):
        watcher = MagicMock()
        watcher.run.side_effect = UserCommandFailed(7, "boom")
        with patch("brun.run.setup", return_value=watcher):
            assert main(["--stop-on-failure", "--", "exit", "7"]) == 1
        assert "user command failed (code=7)" in capsys.readouterr().err

    def test_api_error_exits_1(self, capsys):
        watcher = MagicMock()
        watcher.run.side_effect = APIError("HTTP 401 Unauthorized: Bad credentials", status=401)
        with patch("brun.run.setup", return_value=watcher):
            assert main(["--", "true"]) == 1
        assert "Bad credentials" in capsys.readouterr().err

    def test_keyboard_interrupt(self):
        watcher = MagicMock()
        watcher.run.side_effect = KeyboardInterrupt
        with patch("brun.run.setup", return_value=watcher):
            assert main(["--", "true"]) == 130

    def test_invalid_config_file(self, tmp_path, capsys):
        (tmp_path / ".brun.yaml").write_text("period: -3\n")
        assert main(["--", "true"]) == 1
        assert "period must be positive" in capsys.readouterr().err

    @pytest.mark.parametrize("value", [".inf", ".nan"])
    def test_non_finite_period_in_config_file(self, tmp_path, capsys, value):
        (tmp_path / ".brun.yaml").write_text(f"period: {value}\n")
        assert main(["--skip-initial", "--", "true"]) == 1
        assert "period must be positive" in capsys.readouterr().err

    def test_end_to_end_with_fake_remote(self, git, monkeypatch, capsys):
        from tests._helpers import FakeRemote, make_result

        monkeypatch.setenv("GH_TOKEN", "tok")
        remote = FakeRemote(["aaaa", "bbbb"], RepoCoordinates("octo", "hello", "main"))
        git.pull_ff_only.return_value = ""

        def fake_watcher(rem, settings):
            from brun.watcher import Watcher
            return Watcher(
                remote, settings,
                runner=lambda program, args: make_result(0, b"hi\n"),
                pull=git.pull_ff_only, sleep=lambda s: None,
            )

        with patch("brun.run.create_remote", return_value=remote), \
                patch("brun.run.Watcher", side_effect=fake_watcher):
            # Bounded by the remote raising once its script is exhausted
            remote._shas.append(APIError("stop"))
            assert main(["--skip-initial", "--", "echo", "hi"]) == 1

        out = capsys.readouterr().out.splitlines()
        assert out[0] == "Listening for changes from octo/hello/main"
        assert "Remote branch changed: aaaa -> bbbb" in out
        assert "Pulled the latest changes" in out
        assert "hi" in out
