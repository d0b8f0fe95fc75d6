"""Global-diffusion stage contract.

Enforces the guarantee that the diffusion summary yields a physically
classifiable symmetric top: exactly the long-axis or the short-axis
rhombicity is below one, never neither.
"""

import math

from mdrelax.contracts.base import require
from mdrelax.contracts.failure import DataInconsistency


def assert_finite_fields(values: dict, source: str) -> None:
    """Enforce that every parsed summary field is a finite number."""
    for label, value in values.items():
        require(
            value is not None and math.isfinite(value),
            f"Diffusion contract violated: {label} in {source} is not a finite number ({value})",
            DataInconsistency,
        )


def assert_classifiable(drho_long: float, drho_short: float) -> None:
    """Enforce that at least one rhombicity is below one.

    Raises
    ------
    DataInconsistency
        If neither Drho_L nor Drho_S is below one.
    """
    require(
        drho_long < 1.0 or drho_short < 1.0,
        "Diffusion contract violated: neither Drho value is less than one "
        f"(Drho_L={drho_long}, Drho_S={drho_short}); the global rotational "
        "diffusion cannot be a symmetric top",
        DataInconsistency,
    )
