"""Source-layout contracts.

In multi-source mode every per-source file name is joined onto each folder,
so a name that already starts at the filesystem root cannot be per-source.
"""

from typing import Mapping

from mdrelax.contracts.base import require
from mdrelax.contracts.failure import ConfigurationError


def assert_relative_per_source(names: Mapping[str, str]) -> None:
    """Enforce that per-source file names are relative in multi-source mode.

    Parameters
    ----------
    names : mapping
        Option name -> configured file name, e.g. ``{"sxtc": "solute.xtc"}``.

    Raises
    ------
    ConfigurationError
        If any name is an absolute path.
    """
    absolute = [f"{option}={name}" for option, name in names.items() if name.startswith("/")]
    require(
        not absolute,
        "Absolute paths are incompatible with multi-source mode: "
        + ", ".join(absolute),
        ConfigurationError,
    )
