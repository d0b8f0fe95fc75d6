"""PipelineConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized and immutable. Fields that are Optional here are genuinely
optional features (an override that was not given, a generator command left
at its default), never values runtime code has to default itself.
"""

from typing import Literal, Optional
from pydantic import ConfigDict, Field
from mdrelax.schemas.base import MdrelaxBaseModel


class FrozenModel(MdrelaxBaseModel):
    """Immutable runtime model."""
    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,
    )


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalFilesConfig(FrozenModel):
    """Runtime file names."""
    qfile: str
    pfile: str
    pfile_template: Optional[str]
    refpdb: str
    sxtc: str
    tpr: str
    exp_file: Optional[str]


class InternalGeneratorConfig(FrozenModel):
    """Runtime input-generation settings."""
    enabled: bool
    command: Optional[str]


class InternalOrientationConfig(FrozenModel):
    """Runtime orientation-stage settings."""
    xtc_step: Optional[float]
    genref: InternalGeneratorConfig
    gentrj: InternalGeneratorConfig


class InternalConditionsConfig(FrozenModel):
    """Runtime simulation/experiment conditions."""
    temp_md: float
    temp_exp: float
    d2o_fraction: float


class InternalDiffusionConfig(FrozenModel):
    """Runtime global-diffusion settings."""
    tau_ps: float = Field(gt=0)
    num_chunks: int = Field(ge=1)


class InternalExternalConfig(FrozenModel):
    """Runtime external overrides."""
    diso: Optional[float]
    dani: Optional[float]
    drho: Optional[float]
    quaternion: Optional[tuple[float, float, float, float]]


class InternalLocalMotionConfig(FrozenModel):
    """Runtime local-motion settings."""
    vec_storage: Literal["Histogram", "PhiTheta", "TextPhiTheta"]
    fit_atoms: Optional[str]


class InternalRelaxationConfig(FrozenModel):
    """Runtime relaxation fan-out."""
    bfields: tuple[str, ...] = Field(min_length=1)
    spectral_density: bool
    fit_modes: tuple[str, ...]
    zeta: Optional[float]
    workers: int = Field(ge=1)
    force: bool


class InternalSourcesConfig(FrozenModel):
    """Runtime source folders."""
    folders: tuple[str, ...]
    multi_ref: bool


class InternalToolsConfig(FrozenModel):
    """Runtime external executables."""
    python: str
    plumed: str
    gmx_check: Optional[str]
    script_dir: str
    genref_default: str
    gentrj_default: str


class InternalLoggingConfig(FrozenModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# =============================================================================
# Main PipelineConfig
# =============================================================================

class PipelineConfig(FrozenModel):
    """Authoritative, immutable runtime configuration for one pipeline run.

    Usage
    -----
    Runtime modules receive PipelineConfig and access fields directly:

        def __init__(self, config: PipelineConfig):
            self.tau_ps = config.diffusion.tau_ps  # NOT .get()

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation in runtime code

    All of that happens during config resolution.
    """

    out: str
    files: InternalFilesConfig
    orientation: InternalOrientationConfig
    conditions: InternalConditionsConfig
    diffusion: InternalDiffusionConfig
    external: InternalExternalConfig
    local_motion: InternalLocalMotionConfig
    relaxation: InternalRelaxationConfig
    sources: InternalSourcesConfig
    tools: InternalToolsConfig
    logging: InternalLoggingConfig
    run_id: Optional[str] = None

    @property
    def multi_source(self) -> bool:
        """True when data from several simulation folders is aggregated."""
        return len(self.sources.folders) > 0

    @property
    def tau_ns(self) -> float:
        return self.diffusion.tau_ps / 1000.0

    @property
    def t100(self) -> float:
        """Sampling interval for the global diffusion fit: 1/100 of the memory time."""
        return self.diffusion.tau_ps / 100.0

    @property
    def output_prefix(self) -> str:
        """Prefix of every derived artifact, e.g. ``rotdif-10ns``."""
        return f"{self.out}-{self.tau_ns:g}ns"
