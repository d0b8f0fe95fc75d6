"""Pipeline contracts: fail-fast enforcement of stage invariants.

Contracts fail immediately when a stage does not produce its promised
artifacts or when its output cannot be interpreted.

Key principle:
- Pydantic validates config correctness
- Contracts validate pipeline correctness
- External tools own the numerics
"""

from mdrelax.contracts.failure import (
    PipelineError,
    ConfigurationError,
    ContractViolation,
    ExternalToolFailure,
    DataInconsistency,
)
from mdrelax.contracts.base import require
from mdrelax.contracts.artifacts import assert_artifacts, assert_inputs, missing_paths
from mdrelax.contracts.diffusion import assert_classifiable, assert_finite_fields
from mdrelax.contracts.sources import assert_relative_per_source

__all__ = [
    "PipelineError",
    "ConfigurationError",
    "ContractViolation",
    "ExternalToolFailure",
    "DataInconsistency",
    "require",
    "assert_artifacts",
    "assert_inputs",
    "missing_paths",
    "assert_classifiable",
    "assert_finite_fields",
    "assert_relative_per_source",
]
