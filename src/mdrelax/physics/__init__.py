"""Physical helpers evaluated by the orchestrator itself.

- units: Time-unit conversion to picoseconds
- temperature: Viscosity / D2O correction of the isotropic diffusion constant
- diffusion_tensor: Diffusion-summary schema, parser and symmetric-top classification
"""

from mdrelax.physics.units import TIME_FACTORS, time_factor, to_picoseconds, parse_time_tokens
from mdrelax.physics.temperature import water_viscosity, d2o_modifier, correction_factor
from mdrelax.physics.diffusion_tensor import (
    DiffusionTensor,
    SymmetryAxis,
    SUMMARY_SCHEMA,
    parse_diffusion_summary,
    read_first_quaternion,
    classify_symmetry_axis,
)

__all__ = [
    "TIME_FACTORS",
    "time_factor",
    "to_picoseconds",
    "parse_time_tokens",
    "water_viscosity",
    "d2o_modifier",
    "correction_factor",
    "DiffusionTensor",
    "SymmetryAxis",
    "SUMMARY_SCHEMA",
    "parse_diffusion_summary",
    "read_first_quaternion",
    "classify_symmetry_axis",
]
