"""CLIConfig: Command-line overrides.

Holds the settings given on the command line, already split into typed
values by argparse. Highest priority in config resolution. Only fields that
were actually given are set; everything else stays None.
"""

from typing import Literal, Optional
from pydantic import field_validator
from mdrelax.physics.units import parse_time_tokens
from mdrelax.schemas.base import MdrelaxBaseModel, external_overrides


class CLIConfig(MdrelaxBaseModel):
    """Command-line configuration overrides.

    Notes
    -----
    Time arguments arrive as token lists (``["10", "ns"]``) and are converted
    to picoseconds here. A generator flag given without a command
    (``-genref``) arrives as an empty string and enables the default command.

    Usage
    -----
        cli_cfg = CLIConfig(t_mem=["20", "ns"], bfields=["600.133", "850.2"])
        config = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    out: Optional[str] = None
    folders: Optional[list[str]] = None
    multi_ref: Optional[bool] = None
    qfile: Optional[str] = None
    pfile: Optional[str] = None
    refpdb: Optional[str] = None
    sxtc: Optional[str] = None
    tpr: Optional[str] = None
    exp_file: Optional[str] = None
    xtc_step: Optional[float] = None
    genref: Optional[str] = None
    gentrj: Optional[str] = None
    python: Optional[str] = None
    plumed: Optional[str] = None
    script_dir: Optional[str] = None
    t_mem: Optional[float] = None
    temp_md: Optional[float] = None
    temp_exp: Optional[float] = None
    d2o_fraction: Optional[float] = None
    bfields: Optional[list[str]] = None
    fit_atoms: Optional[str] = None
    fit_modes: Optional[list[str]] = None
    zeta: Optional[float] = None
    d_ext: Optional[list[float]] = None
    tau_ext: Optional[float] = None
    q_ext: Optional[list[float]] = None
    num_chunks: Optional[int] = None
    vec_storage: Optional[str] = None
    spectral_density: Optional[bool] = None
    force: Optional[bool] = None
    workers: Optional[int] = None
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    @field_validator("t_mem", "tau_ext", mode="before")
    @classmethod
    def convert_time_tokens(cls, v):
        """``["10", "ns"]`` -> 10000.0 ps."""
        if isinstance(v, (list, tuple)):
            return parse_time_tokens([str(t) for t in v])
        return v

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to the nested PipelineConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching PipelineConfig structure
        """
        overrides = {}

        if self.out is not None:
            overrides["out"] = self.out

        files = {}
        for name in ("qfile", "pfile", "refpdb", "sxtc", "tpr", "exp_file"):
            value = getattr(self, name)
            if value is not None:
                files[name] = value
        if files:
            overrides["files"] = files

        orientation = {}
        if self.xtc_step is not None:
            orientation["xtc_step"] = self.xtc_step
        for name in ("genref", "gentrj"):
            value = getattr(self, name)
            if value is not None:
                orientation[name] = {"enabled": True, "command": value or None}
        if orientation:
            overrides["orientation"] = orientation

        conditions = {}
        if self.temp_md is not None:
            conditions["temp_md"] = self.temp_md
        if self.temp_exp is not None:
            conditions["temp_exp"] = self.temp_exp
        if self.d2o_fraction is not None:
            conditions["d2o_fraction"] = self.d2o_fraction
        if conditions:
            overrides["conditions"] = conditions

        diffusion = {}
        if self.t_mem is not None:
            diffusion["tau_ps"] = self.t_mem
        if self.num_chunks is not None:
            diffusion["num_chunks"] = self.num_chunks
        if diffusion:
            overrides["diffusion"] = diffusion

        external = external_overrides(self.d_ext, self.tau_ext, self.q_ext)
        if external:
            overrides["external"] = external

        local_motion = {}
        if self.vec_storage is not None:
            local_motion["vec_storage"] = self.vec_storage
        if self.fit_atoms is not None:
            local_motion["fit_atoms"] = self.fit_atoms
        if local_motion:
            overrides["local_motion"] = local_motion

        relaxation = {}
        if self.bfields is not None:
            relaxation["bfields"] = self.bfields
        if self.fit_modes is not None:
            relaxation["fit_modes"] = self.fit_modes
        if self.zeta is not None:
            relaxation["zeta"] = self.zeta
        if self.spectral_density is not None:
            relaxation["spectral_density"] = self.spectral_density
        if self.force is not None:
            relaxation["force"] = self.force
        if self.workers is not None:
            relaxation["workers"] = self.workers
        if relaxation:
            overrides["relaxation"] = relaxation

        sources = {}
        if self.folders is not None:
            sources["folders"] = self.folders
        if self.multi_ref is not None:
            sources["multi_ref"] = self.multi_ref
        if sources:
            overrides["sources"] = sources

        tools = {}
        for name in ("python", "plumed", "script_dir"):
            value = getattr(self, name)
            if value is not None:
                tools[name] = value
        if tools:
            overrides["tools"] = tools

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
