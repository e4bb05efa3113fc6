"""Remote host abstraction layer.

Decouples the watcher from any specific hosting service. GitHub is the only
registered remote today.

Usage:
    from brun.remote import create_remote
    remote = create_remote("github", coords, token)
    previous = remote.refresh()
"""

from typing import Dict, Type

from brun.errors import ConfigError
from brun.remote.base import CommitInfo, Remote, RepoCoordinates

# Remote registry: name -> class
_remotes: Dict[str, Type[Remote]] = {}

# Known remote modules for auto-loading
_REMOTE_MODULES = [
    "brun.remote.github",
]


def register_remote(name: str):
    """Decorator to register a remote class.

    Usage:
        @register_remote("github")
        class GithubRemote(Remote):
            ...
    """
    def decorator(cls: Type[Remote]):
        _remotes[name] = cls
        return cls
    return decorator


def _ensure_remotes_loaded():
    """Import remote modules to trigger registration."""
    if _remotes:
        return
    for module_name in _REMOTE_MODULES:
        __import__(module_name)


def available_remotes():
    _ensure_remotes_loaded()
    return sorted(_remotes)


def create_remote(name: str, coords: RepoCoordinates, token: str, **kwargs) -> Remote:
    """Create a remote instance.

    Args:
        name: Remote identifier (must be registered).
        coords: Repository and branch to watch.
        token: API token, kept by the remote and never logged.
        **kwargs: Remote-specific options (e.g. ``timeout``).

    Raises:
        ConfigError: If no remote is registered under *name*.
    """
    _ensure_remotes_loaded()
    cls = _remotes.get(name.lower().strip())
    if cls is None:
        valid = ", ".join(sorted(_remotes)) or "(none loaded)"
        raise ConfigError(f"unknown remote {name!r}. Valid options: {valid}")
    return cls(coords, token, **kwargs)


__all__ = [
    "CommitInfo",
    "Remote",
    "RepoCoordinates",
    "available_remotes",
    "create_remote",
    "register_remote",
]
