"""External command execution.

Every external tool (PLUMED, the GROMACS trajectory inspector, the analysis
scripts, input generators) is described by a ToolInvocation: an argument
vector plus the artifacts it promises. No shell strings are built.
"""

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from mdrelax.contracts import ConfigurationError, ExternalToolFailure

__all__ = ['ToolInvocation', 'CommandRunner', 'detect_gmx_check', 'split_command', 'format_number']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolInvocation:
    """One external command and the artifacts it must leave behind.

    Parameters
    ----------
    stage : str
        Pipeline stage that owns the invocation, e.g. ``"relaxation"``.
    args : tuple of str
        Full argument vector; ``args[0]`` is the executable.
    outputs : tuple of Path
        Expected output files. All present means the invocation is cached.
    log_path : Path, optional
        If set, the command's stdout and stderr are written here.
    label : str
        Short human-readable tag used in logs and the stage ledger.
    """
    stage: str
    args: tuple[str, ...]
    outputs: tuple[Path, ...]
    log_path: Optional[Path] = None
    label: str = ""

    @property
    def primary_output(self) -> Path:
        return self.outputs[0]

    @property
    def name(self) -> str:
        return f"{self.stage}:{self.label}" if self.label else self.stage

    def command_line(self) -> str:
        return shlex.join(self.args)


def split_command(command: str) -> list[str]:
    """Split a user-supplied command string with shell quoting rules."""
    args = shlex.split(command)
    if not args:
        raise ConfigurationError("Empty command")
    return args


class CommandRunner:
    """Runs ToolInvocations as subprocesses.

    A non-zero exit status, or an executable that cannot be found, raises
    ExternalToolFailure. Stdout and stderr are captured; they go to the
    invocation's log file when it has one and to DEBUG logging otherwise.
    """

    def run(self, invocation: ToolInvocation) -> None:
        logger.info("Running %s: %s", invocation.name, invocation.command_line())
        result = self._execute(invocation.args)

        if invocation.log_path is not None:
            with open(invocation.log_path, 'w') as f:
                f.write(result.stdout)
                f.write(result.stderr)
        else:
            logger.debug("%s stdout: %s", invocation.name, result.stdout)

        if result.returncode != 0:
            where = f" (see {invocation.log_path})" if invocation.log_path else ""
            raise ExternalToolFailure(
                f"{invocation.name} failed with exit status {result.returncode}{where}: "
                f"{result.stderr.strip()[-2000:]}"
            )

    def capture(self, args: Sequence[str]) -> str:
        """Run a read-only query command and return its combined output."""
        logger.debug("Querying: %s", shlex.join(args))
        result = self._execute(tuple(args))
        if result.returncode != 0:
            raise ExternalToolFailure(
                f"{shlex.join(args)} failed with exit status {result.returncode}: "
                f"{result.stderr.strip()[-2000:]}"
            )
        return result.stdout + result.stderr

    @staticmethod
    def _execute(args: Sequence[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(list(args), capture_output=True, text=True)
        except FileNotFoundError as e:
            raise ExternalToolFailure(f"Executable not found: {args[0]}") from e


def detect_gmx_check(
    configured: Optional[str] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> list[str]:
    """Argument prefix of the GROMACS trajectory inspector.

    A configured command wins. Otherwise ``gmx check`` (GROMACS 5 and later)
    is preferred over the 4.x ``gmxcheck`` binary.

    Raises
    ------
    ConfigurationError
        If nothing is configured and neither binary is on PATH.
    """
    if configured:
        return split_command(configured)
    if which("gmx"):
        return ["gmx", "check"]
    if which("gmxcheck"):
        logger.info("Using GROMACS 4.x gmxcheck")
        return ["gmxcheck"]
    raise ConfigurationError(
        "Cannot determine the trajectory time step: set xtc_step or put "
        "gmx / gmxcheck on PATH"
    )


def format_number(value: float) -> str:
    """Render a number for a command line without float noise (100.0 -> '100')."""
    return f"{value:.10g}"
