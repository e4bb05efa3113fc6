"""Shared fixtures for brun tests."""

import pytest

from brun.remote.base import RepoCoordinates


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch, tmp_path):
    """Ensure tests never see a real token, config file or color setting."""
    for name in ("GH_TOKEN", "GITHUB_TOKEN", "BRUN_LOG", "BRUN_CONFIG", "BRUN_FORCE_COLOR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def coords():
    return RepoCoordinates("owner", "repo", "main")
