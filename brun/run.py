"""brun -- pull and run on upstream changes.

Listens for new commits on the upstream of the checked out branch and, when
one shows up, pulls it (fast-forward only) and runs the given command in a
subshell.

Usage:
    brun [-p SECONDS] [--stop-on-failure] [--skip-initial] -- <cmd> [<arg>...]
    python -m brun -- make test

Startup reads the environment once (token, git work tree, upstream) and hands
a fully configured Watcher to the loop. Exit status is 1 on any error.
"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from brun import __version__, git_utils
from brun.config import Settings, build_settings
from brun.errors import BrunError, ConfigError, Dirty, NotInWorkTree
from brun.github_auth import get_gh_token
from brun.remote import RepoCoordinates, create_remote
from brun.run_log import error, setup_logging
from brun.watcher import Watcher

logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not number > 0 or number == float("inf"):
        raise argparse.ArgumentTypeError(f"must be a positive number of seconds: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brun",
        usage="%(prog)s [options] -- <cmd> [<arg>...]",
        description=(
            "Listen for changes on the upstream for the currently checked out "
            "branch, and when a change is found, pull them and run the given command."
        ),
        epilog="The command after '--' is run in a subshell (sh -c).",
    )
    parser.add_argument(
        "-p", "--period", type=_positive_float, default=None,
        help="polling period for upstream changes, in seconds (default: 5)",
    )
    parser.add_argument(
        "--stop-on-failure", action="store_true", default=None,
        help="stop watching when the command exits with an error",
    )
    parser.add_argument(
        "--skip-initial", action="store_true", default=None,
        help="do not pull and run on the first observed commit",
    )
    parser.add_argument(
        "--repo", default=None, metavar="OWNER/NAME",
        help="watch this repository instead of the upstream remote's",
    )
    parser.add_argument(
        "--branch", default=None,
        help="watch this branch instead of the checked out one",
    )
    parser.add_argument(
        "--config", default=None, metavar="PATH",
        help="YAML config file (default: $BRUN_CONFIG or ./.brun.yaml)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def split_command(argv: List[str]) -> Tuple[List[str], List[str]]:
    """Split argv at the first ``--`` into (options, user command)."""
    if "--" not in argv:
        return argv, []
    idx = argv.index("--")
    return argv[:idx], argv[idx + 1:]


def parse_args(argv: Optional[List[str]] = None) -> Settings:
    """Parse command-line arguments into Settings.

    Usage errors (including a missing ``--`` command) exit with status 2.
    """
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    options, cmd = split_command(list(argv))
    args, unknown = parser.parse_known_args(options)
    if not cmd:
        parser.error("the command to run is required after '--'")
    if unknown:
        parser.error(f"unrecognized arguments: {' '.join(unknown)}")

    if args.repo is not None:
        owner, _, name = args.repo.partition("/")
        if not owner or not name or "/" in name:
            parser.error(f"--repo must look like OWNER/NAME, got {args.repo!r}")

    return build_settings(
        cmd,
        overrides={
            "period": args.period,
            "stop_on_failure": args.stop_on_failure,
            "skip_initial": args.skip_initial,
            "repo": args.repo,
            "branch": args.branch,
        },
        config_path=args.config,
    )


def discover_coordinates(settings: Settings) -> RepoCoordinates:
    """Work out owner, repo and branch from git, honouring overrides."""
    branch = settings.branch or git_utils.current_branch()
    logger.debug("found branch=%s", branch)
    if settings.repo:
        owner, _, repo = settings.repo.partition("/")
    else:
        owner, repo = git_utils.upstream_info(branch)
    logger.debug("found owner=%s repo=%s", owner, repo)
    return RepoCoordinates(owner=owner, repo=repo, branch=branch)


def setup(settings: Settings) -> Watcher:
    """Analyze the executing environment and build the watcher.

    Raises:
        MissingToken, NotInWorkTree, Dirty: Environment checks.
        NoHead, NoUpstream, NoRemoteURL, BadRemote: Upstream discovery.
        ConfigError: Unknown remote.
    """
    token = get_gh_token()

    if not git_utils.is_work_tree():
        raise NotInWorkTree()

    coords = discover_coordinates(settings)

    if git_utils.is_dirty():
        raise Dirty()

    remote = create_remote(settings.remote, coords, token, timeout=settings.http_timeout)
    return Watcher(remote, settings)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Only returns on error."""
    setup_logging()
    try:
        settings = parse_args(argv)
    except ConfigError as e:
        error(str(e))
        return EXIT_ERROR
    logger.debug("running with user command: %s", settings.user_command)

    try:
        watcher = setup(settings)
        watcher.run()
    except BrunError as e:
        logger.debug("stopped on %s", e.tag)
        error(str(e))
        return EXIT_ERROR
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
