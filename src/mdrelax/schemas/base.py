"""Base Pydantic model with strict defaults for mdrelax configs.

All config schemas inherit from this base to ensure consistent validation
behavior across parameter, user, CLI, and internal configs.
"""

from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from mdrelax.contracts.failure import ConfigurationError


class MdrelaxBaseModel(BaseModel):
    """Base model for all mdrelax configuration schemas.

    Enforces strict validation:
    - No extra fields allowed
    - Validates assignments after initialization
    - Strips whitespace from strings
    """

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )


def external_overrides(
    d_ext: Optional[Sequence[float]] = None,
    tau_ext_ps: Optional[float] = None,
    q_ext: Optional[Sequence[float]] = None,
) -> dict:
    """Translate ``-D_ext``/``-tau_ext``/``-q_ext`` style inputs to the
    ``external`` section of the internal config.

    ``-D_ext`` takes precedence over ``-tau_ext`` for Diso. A rotational
    correlation time tau maps to Diso = 1 / (6 tau).
    """
    external = {}
    if tau_ext_ps is not None:
        if tau_ext_ps <= 0:
            raise ConfigurationError(f"tau_ext must be positive, got {tau_ext_ps} ps")
        external["diso"] = 1.0 / (6.0 * tau_ext_ps)
    if d_ext:
        if len(d_ext) > 3:
            raise ConfigurationError("D_ext takes at most three values: Diso [Dani] [Drho]")
        for key, value in zip(("diso", "dani", "drho"), d_ext):
            external[key] = float(value)
    if q_ext is not None:
        if len(q_ext) != 4:
            raise ConfigurationError("q_ext takes exactly four values: w x y z")
        external["quaternion"] = tuple(float(v) for v in q_ext)
    return external
