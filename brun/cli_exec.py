"""Subprocess execution helpers.

One synchronous entry point, :func:`run_command`, used for both ``git`` and
the user command. It captures both output streams, keeps the child away from
our stdin, and turns the two ways a child can fail to produce an exit code
into typed errors:

- :class:`~brun.errors.LaunchFailed` when the program cannot be spawned.
- :class:`~brun.errors.Signaled` when it was killed by a signal.

Exit codes are returned untouched; interpreting them is the caller's job.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from brun.errors import LaunchFailed, Signaled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a child that exited normally."""
    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


def run_command(
    program: str,
    args: Sequence[str] = (),
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> CommandResult:
    """Run *program* with *args* and wait for it to finish.

    Args:
        program: Executable name, resolved through ``PATH``.
        args: Arguments passed after the program name.
        cwd: Working directory for the child.
        env: Full environment for the child (defaults to ours).

    Returns:
        CommandResult with the exit code and the raw captured streams.

    Raises:
        LaunchFailed: If the program could not be started.
        Signaled: If the child terminated without an exit code.
    """
    cmd: List[str] = [program, *args]
    logger.debug("exec: %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            cwd=cwd,
            env=env,
        )
    except OSError as e:
        raise LaunchFailed(program, e.strerror or str(e)) from e

    if proc.returncode < 0:
        raise Signaled(program, -proc.returncode)

    logger.debug("exit: %s -> %d", program, proc.returncode)
    return CommandResult(proc.returncode, proc.stdout or b"", proc.stderr or b"")
