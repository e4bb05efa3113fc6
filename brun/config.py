"""Configuration loading and access.

Settings come from three layers, highest priority first:

1. Command-line flags
2. A YAML config file: $BRUN_CONFIG, else ``.brun.yaml`` in the current
   directory (the work tree root when brun is started there)
3. Built-in defaults

Only behavioural settings live in the file; the user command is always
given on the command line.
"""

import logging
import math
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from brun.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "BRUN_CONFIG"
CONFIG_FILE_NAME = ".brun.yaml"

DEFAULT_PERIOD = 5.0
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_REMOTE = "github"

_FILE_KEYS = ("period", "stop_on_failure", "skip_initial", "http_timeout", "remote")


@dataclass(frozen=True)
class Settings:
    """Everything the watcher needs besides the environment."""
    cmd: List[str] = field(default_factory=list)
    period: float = DEFAULT_PERIOD
    stop_on_failure: bool = False
    skip_initial: bool = False
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    remote: str = DEFAULT_REMOTE
    repo: Optional[str] = None
    branch: Optional[str] = None

    @property
    def user_command(self) -> str:
        """The user command as handed to ``sh -c``."""
        return " ".join(self.cmd)


def resolve_config_path(explicit: Optional[str] = None) -> Optional[Path]:
    """Find the config file to read, or None when there is none.

    Raises:
        ConfigError: If an explicitly requested file does not exist.
    """
    requested = explicit or os.environ.get(CONFIG_ENV_VAR, "")
    if requested:
        path = Path(requested).expanduser()
        if not path.is_file():
            raise ConfigError(f"config file not found: {path}")
        return path
    default = Path.cwd() / CONFIG_FILE_NAME
    return default if default.is_file() else None


def load_config(path: Optional[Path]) -> Dict[str, Any]:
    """Load the YAML config file.

    Returns the parsed mapping, or empty dict if *path* is None.

    Raises:
        ConfigError: On unreadable files, YAML errors or a non-mapping document.
    """
    if path is None:
        return {}
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(f"cannot load {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    logger.debug("loaded config from %s", path)
    return data


def _positive_number(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise ConfigError(f"{key} must be positive, got {value!r}")
    return float(value)


def _boolean(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def settings_from_config(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate config file values and return them as Settings fields."""
    for key in data:
        if key not in _FILE_KEYS:
            logger.debug("ignoring unknown config key: %s", key)

    values: Dict[str, Any] = {}
    if "period" in data:
        values["period"] = _positive_number("period", data["period"])
    if "http_timeout" in data:
        values["http_timeout"] = _positive_number("http_timeout", data["http_timeout"])
    if "stop_on_failure" in data:
        values["stop_on_failure"] = _boolean("stop_on_failure", data["stop_on_failure"])
    if "skip_initial" in data:
        values["skip_initial"] = _boolean("skip_initial", data["skip_initial"])
    if "remote" in data:
        remote = data["remote"]
        if not isinstance(remote, str) or not remote.strip():
            raise ConfigError(f"remote must be a non-empty string, got {remote!r}")
        values["remote"] = remote.strip().lower()
    return values


def build_settings(
    cmd: List[str],
    overrides: Optional[Dict[str, Any]] = None,
    config_path: Optional[str] = None,
) -> Settings:
    """Merge defaults, the config file and command-line overrides.

    Args:
        cmd: User command tokens (must be non-empty).
        overrides: Values given on the command line; None entries are unset.
        config_path: Explicit config file (``--config``).

    Raises:
        ConfigError: On an empty command or invalid configuration.
    """
    if not cmd:
        raise ConfigError("the command to run must not be empty")

    settings = Settings(cmd=list(cmd))
    file_values = settings_from_config(load_config(resolve_config_path(config_path)))
    settings = replace(settings, **file_values)

    cli_values = {k: v for k, v in (overrides or {}).items() if v is not None}
    if "period" in cli_values:
        cli_values["period"] = _positive_number("period", cli_values["period"])
    return replace(settings, **cli_values)
