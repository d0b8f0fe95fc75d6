"""Centralized failure kinds for the relaxation pipeline.

Every failure is fatal. There is no in-run retry: resumption happens by
re-running the pipeline, which skips every stage whose artifacts exist.
"""


class PipelineError(Exception):
    """Base exception for all pipeline errors."""
    pass


class ConfigurationError(PipelineError):
    """Bad or missing setting, detected before (or instead of) running a stage.

    Examples: unrecognized time unit, absolute trajectory path in
    multi-source mode, fit modes requested without an experimental file.
    """
    pass


class ContractViolation(PipelineError, RuntimeError):
    """Raised when a stage does not deliver what it promised.

    Key distinction:
    - ConfigurationError: the user asked for something impossible
    - ContractViolation: a stage (or its external tool) misbehaved
    """
    pass


class ExternalToolFailure(ContractViolation):
    """External command exited non-zero, or its expected outputs are absent."""
    pass


class DataInconsistency(ContractViolation):
    """Stage output is present but cannot be interpreted.

    Raised for unparsable diffusion-summary fields and for a diffusion
    tensor in which neither rhombicity is below one.
    """
    pass
