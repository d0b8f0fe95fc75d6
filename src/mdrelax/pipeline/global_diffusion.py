"""Global rotational diffusion: the fit, and what the pipeline takes from it.

GlobalDiffusionStage runs the quaternion-based diffusion estimator once over
the (possibly aggregated) orientation trajectory. SymmetryAxisResolver then
combines its summary with external overrides into the orientation and the
symmetric-top diffusion constants used downstream.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from mdrelax.physics import (
    SymmetryAxis,
    classify_symmetry_axis,
    correction_factor,
    parse_diffusion_summary,
    read_first_quaternion,
)
from mdrelax.pipeline.artifact_cache import ArtifactCache
from mdrelax.pipeline.commands import ToolInvocation, format_number
from mdrelax.pipeline.sources import SourcePlan
from mdrelax.schemas.internal import PipelineConfig

__all__ = [
    'DiffusionArtifacts',
    'GlobalDiffusionStage',
    'ResolvedOrientation',
    'ResolvedDiffusion',
    'SymmetryAxisResolver',
]

logger = logging.getLogger(__name__)

STAGE = "global_diffusion"
SINGLE_SOURCE_SCRIPT = "calculate-dq-distribution.py"
MULTI_SOURCE_SCRIPT = "calculate-dq-distribution-multi.py"

SIMULATION = "simulation"
EXTERNAL = "external"


@dataclass(frozen=True)
class DiffusionArtifacts:
    quaternion_summary: Path
    tensor_summary: Path


@dataclass(frozen=True)
class ResolvedOrientation:
    """Principal-axis-frame quaternion ``(w, x, y, z)`` and where it came from."""
    quaternion: tuple[float, float, float, float]
    source: str

    @property
    def vec_rot(self) -> str:
        return " ".join(format_number(q) for q in self.quaternion)


@dataclass(frozen=True)
class ResolvedDiffusion:
    """Symmetric-top diffusion constants at experimental conditions.

    ``diso`` is in ps^-1. Each component records whether it came from the
    simulation or an external override.
    """
    diso: float
    dani: float
    diso_source: str
    dani_source: str

    @property
    def d_argument(self) -> str:
        return f"{format_number(self.diso)} {format_number(self.dani)}"


class GlobalDiffusionStage:
    """Runs the global rotational-diffusion estimator."""

    def __init__(self, config: PipelineConfig, cache: ArtifactCache):
        self.config = config
        self.cache = cache

    def outputs(self) -> DiffusionArtifacts:
        prefix = self.config.output_prefix
        return DiffusionArtifacts(
            quaternion_summary=Path(f"{prefix}-aniso_q.dat"),
            tensor_summary=Path(f"{prefix}-aniso2.dat"),
        )

    def run(self, plan: SourcePlan) -> DiffusionArtifacts:
        config = self.config
        artifacts = self.outputs()
        script = MULTI_SOURCE_SCRIPT if plan.multi_source else SINGLE_SOURCE_SCRIPT
        t100 = format_number(config.t100)

        self.cache.ensure(ToolInvocation(
            stage=STAGE,
            args=(
                config.tools.python, str(Path(config.tools.script_dir) / script),
                "--iso", "--aniso",
                "-f", str(plan.diffusion_input),
                "-o", config.output_prefix,
                "--mindt", t100, "--skip", t100,
                "--maxdt", format_number(config.diffusion.tau_ps),
                "--num_chunk", str(config.diffusion.num_chunks),
            ),
            outputs=(artifacts.quaternion_summary, artifacts.tensor_summary),
            label=script,
        ))
        return artifacts


class SymmetryAxisResolver:
    """Combines the diffusion summary with external overrides.

    External values always win and are never merged with simulation values.
    Summary files are only read for the components that are not overridden.
    The temperature/D2O correction applies to the simulation Diso only.
    """

    def __init__(self, config: PipelineConfig):
        self.config = config
        conditions = config.conditions
        self.factor = correction_factor(
            1.0, conditions.temp_md, conditions.temp_exp, conditions.d2o_fraction
        )
        logger.info(
            "Diso conversion factor from simulation (%s K) to experiment (%s K, D2O %s): %s",
            conditions.temp_md, conditions.temp_exp, conditions.d2o_fraction, self.factor,
        )

    def resolve_orientation(self, artifacts: DiffusionArtifacts) -> ResolvedOrientation:
        external = self.config.external.quaternion
        if external is not None:
            logger.info("Ignoring simulation quaternion in %s; using external q = %s",
                        artifacts.quaternion_summary, external)
            return ResolvedOrientation(quaternion=tuple(external), source=EXTERNAL)

        quaternion = read_first_quaternion(artifacts.quaternion_summary)
        logger.info("Using quaternion from the first time interval as PAF: %s", quaternion)
        return ResolvedOrientation(quaternion=quaternion, source=SIMULATION)

    def resolve_diffusion(self, artifacts: DiffusionArtifacts) -> tuple[ResolvedDiffusion, Optional[SymmetryAxis]]:
        """Final (Diso, Dani) and, when it was needed, the symmetric-top axis."""
        external = self.config.external
        need_diso = external.diso is None
        need_dani = external.dani is None

        axis = None
        diso = external.diso
        dani = external.dani
        if need_diso or need_dani:
            tensor = parse_diffusion_summary(artifacts.tensor_summary)
            if need_diso:
                diso = tensor.diso * self.factor
            if need_dani:
                axis = classify_symmetry_axis(tensor)
                dani = axis.dani
                logger.info("%s detected", axis.description.capitalize())

        resolved = ResolvedDiffusion(
            diso=diso,
            dani=dani,
            diso_source=SIMULATION if need_diso else EXTERNAL,
            dani_source=SIMULATION if need_dani else EXTERNAL,
        )
        logger.info("Global symmetric-top diffusion: Diso = %s ps^-1 (%s), Dani = %s (%s)",
                    resolved.diso, resolved.diso_source, resolved.dani, resolved.dani_source)
        return resolved, axis
