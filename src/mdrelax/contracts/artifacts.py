"""Artifact contracts.

Enforces that files a stage depends on, or promised to produce, are on disk.
"""

from pathlib import Path
from typing import Iterable

from mdrelax.contracts.base import require
from mdrelax.contracts.failure import ConfigurationError, ExternalToolFailure


def missing_paths(paths: Iterable[Path]) -> list[Path]:
    """Return the subset of ``paths`` that does not exist, in input order."""
    return [Path(p) for p in paths if not Path(p).exists()]


def assert_artifacts(paths: Iterable[Path], stage: str) -> None:
    """Enforce that a stage produced all of its outputs.

    Raises
    ------
    ExternalToolFailure
        If any expected output is absent after the stage ran.
    """
    missing = missing_paths(paths)
    require(
        not missing,
        f"{stage} contract violated: expected output(s) not produced: "
        + ", ".join(str(p) for p in missing),
        ExternalToolFailure,
    )


def assert_inputs(paths: Iterable[Path], stage: str) -> None:
    """Enforce that the inputs a stage needs are present before invoking it.

    Raises
    ------
    ConfigurationError
        If any input is absent (wrong path, or generation was not requested).
    """
    missing = missing_paths(paths)
    require(
        not missing,
        f"{stage}: required input(s) do not exist: "
        + ", ".join(str(p) for p in missing),
        ConfigurationError,
    )
