"""UserConfig: Forgiving, minimal user-facing configuration.

Loaded from the ``CONFIG`` dict of a Python file. Keys may be given in the
uppercase form used in the example config (``T_MEM``, ``BFIELDS``, ...) or as
field names. Users only specify what they want to override from the expert
defaults.
"""

from typing import Literal, Optional, Union
from pydantic import Field, field_validator
from mdrelax.physics.units import parse_time_tokens
from mdrelax.schemas.base import MdrelaxBaseModel, external_overrides


def _time_to_ps(v):
    """Accept 2500 (ps), "10 ns", or ["10", "ns"]."""
    if v is None or isinstance(v, (int, float)):
        return v
    if isinstance(v, str):
        return parse_time_tokens(v.split())
    return parse_time_tokens([str(t) for t in v])


class UserConfig(MdrelaxBaseModel):
    """User-facing configuration schema.

    Usage
    -----
        user_cfg = UserConfig.model_validate({
            "T_MEM": "20 ns",
            "BFIELDS": [600.133, 850.2],
            "FOLDERS": ["run1", "run2"],
        })

        config = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Output
    out: Optional[str] = Field(None, alias="OUT")

    # Sources and files
    folders: Optional[list[str]] = Field(None, alias="FOLDERS")
    multi_ref: Optional[bool] = Field(None, alias="MULTIREF")
    qfile: Optional[str] = Field(None, alias="QFILE")
    pfile: Optional[str] = Field(None, alias="PFILE")
    pfile_template: Optional[str] = Field(None, alias="PFILE_TEMPLATE")
    refpdb: Optional[str] = Field(None, alias="REFPDB")
    sxtc: Optional[str] = Field(None, alias="SXTC")
    tpr: Optional[str] = Field(None, alias="TPR")
    exp_file: Optional[str] = Field(None, alias="EXPFILE")

    # Orientation
    xtc_step: Optional[float] = Field(None, alias="XTC_STEP")
    genref: Optional[Union[bool, str]] = Field(None, alias="GENREF")
    gentrj: Optional[Union[bool, str]] = Field(None, alias="GENTRJ")

    # Conditions
    t_mem: Optional[float] = Field(None, alias="T_MEM")
    temp_md: Optional[float] = Field(None, alias="TEMP_MD")
    temp_exp: Optional[float] = Field(None, alias="TEMP_EXP")
    d2o_fraction: Optional[float] = Field(None, alias="D2O_EXP")
    num_chunks: Optional[int] = Field(None, alias="NUM_CHUNKS")

    # External overrides
    d_ext: Optional[list[float]] = Field(None, alias="D_EXT")
    tau_ext: Optional[float] = Field(None, alias="TAU_EXT")
    q_ext: Optional[list[float]] = Field(None, alias="Q_EXT")

    # Local motion and relaxation
    vec_storage: Optional[str] = Field(None, alias="VEC_STORAGE")
    fit_atoms: Optional[str] = Field(None, alias="FIT_ATOMS")
    bfields: Optional[list[str]] = Field(None, alias="BFIELDS")
    fit_modes: Optional[list[str]] = Field(None, alias="FIT")
    zeta: Optional[float] = Field(None, alias="ZETA")
    spectral_density: Optional[bool] = Field(None, alias="JW")
    workers: Optional[int] = Field(None, alias="WORKERS")
    force: Optional[bool] = Field(None, alias="FORCE")

    # Tools
    python: Optional[str] = Field(None, alias="PYTHON")
    plumed: Optional[str] = Field(None, alias="PLUMED")
    gmx_check: Optional[str] = Field(None, alias="GMX_CHECK")
    script_dir: Optional[str] = Field(None, alias="SCRIPT_DIR")

    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(
        None, alias="LOG_LEVEL"
    )

    model_config = MdrelaxBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("t_mem", "tau_ext", mode="before")
    @classmethod
    def coerce_time(cls, v):
        """Convert times with an optional unit to ps."""
        return _time_to_ps(v)

    @field_validator("bfields", mode="before")
    @classmethod
    def coerce_fields(cls, v):
        """Accept a single field or numbers."""
        if isinstance(v, (int, float, str)):
            v = [v]
        if v is not None:
            return [str(b) for b in v]
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.upper().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to the nested PipelineConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching PipelineConfig structure
        """
        overrides = {}

        if self.out is not None:
            overrides["out"] = self.out

        sections = {
            "files": {
                "qfile": self.qfile,
                "pfile": self.pfile,
                "pfile_template": self.pfile_template,
                "refpdb": self.refpdb,
                "sxtc": self.sxtc,
                "tpr": self.tpr,
                "exp_file": self.exp_file,
            },
            "orientation": {"xtc_step": self.xtc_step},
            "conditions": {
                "temp_md": self.temp_md,
                "temp_exp": self.temp_exp,
                "d2o_fraction": self.d2o_fraction,
            },
            "diffusion": {"tau_ps": self.t_mem, "num_chunks": self.num_chunks},
            "local_motion": {"vec_storage": self.vec_storage, "fit_atoms": self.fit_atoms},
            "relaxation": {
                "bfields": self.bfields,
                "spectral_density": self.spectral_density,
                "fit_modes": self.fit_modes,
                "zeta": self.zeta,
                "workers": self.workers,
                "force": self.force,
            },
            "sources": {"folders": self.folders, "multi_ref": self.multi_ref},
            "tools": {
                "python": self.python,
                "plumed": self.plumed,
                "gmx_check": self.gmx_check,
                "script_dir": self.script_dir,
            },
            "logging": {"level": self.log_level},
        }
        for name, values in sections.items():
            section = {k: v for k, v in values.items() if v is not None}
            if section:
                overrides[name] = section

        for name in ("genref", "gentrj"):
            value = getattr(self, name)
            if value is None or value is False:
                continue
            generator = {"enabled": True}
            if isinstance(value, str) and value:
                generator["command"] = value
            overrides.setdefault("orientation", {})[name] = generator

        external = external_overrides(self.d_ext, self.tau_ext, self.q_ext)
        if external:
            overrides["external"] = external

        return overrides
