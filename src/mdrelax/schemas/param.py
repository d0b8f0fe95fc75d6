"""ParamConfig: Expert defaults for the relaxation pipeline.

This module defines the complete default configuration. ALL pipeline
parameters must have defaults here. No runtime code defines fallback values.

Runtime code NEVER reads from ParamConfig directly - it only receives
PipelineConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from mdrelax.schemas.base import MdrelaxBaseModel


# =============================================================================
# Nested Configuration Models
# =============================================================================

class FilesConfig(MdrelaxBaseModel):
    """Per-source file names. Relative names are resolved inside each source folder."""
    qfile: str = "colvar-qorient"
    pfile: str = "plumed-quat.dat"
    pfile_template: Optional[str] = Field(
        None, description="PLUMED script template; None uses the packaged template"
    )
    refpdb: str = "reference.pdb"
    sxtc: str = "solute.xtc"
    tpr: str = "topol.tpr"
    exp_file: Optional[str] = None


class GeneratorConfig(MdrelaxBaseModel):
    """On-demand generation of a missing input file."""
    enabled: bool = False
    command: Optional[str] = Field(
        None, description="Command template; None uses the tool default"
    )


class OrientationConfig(MdrelaxBaseModel):
    """Quaternion-orientation stage."""
    xtc_step: Optional[float] = Field(None, gt=0, description="Time between frames in ps")
    genref: GeneratorConfig = Field(default_factory=GeneratorConfig)
    gentrj: GeneratorConfig = Field(default_factory=GeneratorConfig)


class ConditionsConfig(MdrelaxBaseModel):
    """Simulation and experimental conditions for the Diso correction."""
    temp_md: float = Field(300.0, gt=0, description="Simulation temperature in K")
    temp_exp: float = Field(297.0, gt=0, description="Experimental temperature in K")
    d2o_fraction: float = Field(0.09, ge=0.0, le=1.0)


class DiffusionConfig(MdrelaxBaseModel):
    """Global rotational diffusion."""
    tau_ps: float = Field(10000.0, gt=0, description="Memory time in ps")
    num_chunks: int = Field(4, ge=1)


class ExternalConfig(MdrelaxBaseModel):
    """Values that replace simulation-derived ones when given."""
    diso: Optional[float] = Field(None, gt=0, description="Diso in ps^-1")
    dani: Optional[float] = Field(None, gt=0)
    drho: Optional[float] = None
    quaternion: Optional[tuple[float, float, float, float]] = None


class LocalMotionConfig(MdrelaxBaseModel):
    """Local-frame auto-correlation and vector distribution."""
    vec_storage: Literal["Histogram", "PhiTheta", "TextPhiTheta"] = "Histogram"
    fit_atoms: Optional[str] = None


class RelaxationConfig(MdrelaxBaseModel):
    """Relaxation-rate fan-out over fields and fit modes."""
    bfields: list[str] = Field(default_factory=lambda: ["600.133"], min_length=1)
    spectral_density: bool = False
    fit_modes: list[str] = Field(default_factory=list)
    zeta: Optional[float] = None
    workers: int = Field(1, ge=1)
    force: bool = False

    @field_validator("bfields", mode="before")
    @classmethod
    def coerce_fields_to_str(cls, v):
        """Field strengths name output files, so keep them as given."""
        if isinstance(v, (list, tuple)):
            return [str(b) for b in v]
        return v


class SourcesConfig(MdrelaxBaseModel):
    """Simulation sources. An empty folder list means the current directory."""
    folders: list[str] = Field(default_factory=list)
    multi_ref: bool = False


class ToolsConfig(MdrelaxBaseModel):
    """External executables and analysis-script location."""
    python: str = "python"
    plumed: str = "plumed"
    gmx_check: Optional[str] = Field(None, description="None auto-detects gmx / gmxcheck")
    script_dir: str = "."
    genref_default: str = "create-reference-pdb.bash {output} {tpr}"
    gentrj_default: str = "center-solute-gromacs.bash {output} {tpr}"


class LoggingConfig(MdrelaxBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(MdrelaxBaseModel):
    """Complete expert configuration with all defaults.

    This is the single source of truth for all pipeline parameters and the
    base layer in config resolution:

        config = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    out: str = "rotdif"
    files: FilesConfig = Field(default_factory=FilesConfig)
    orientation: OrientationConfig = Field(default_factory=OrientationConfig)
    conditions: ConditionsConfig = Field(default_factory=ConditionsConfig)
    diffusion: DiffusionConfig = Field(default_factory=DiffusionConfig)
    external: ExternalConfig = Field(default_factory=ExternalConfig)
    local_motion: LocalMotionConfig = Field(default_factory=LocalMotionConfig)
    relaxation: RelaxationConfig = Field(default_factory=RelaxationConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
