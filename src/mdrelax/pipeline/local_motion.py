"""Local motion: vector distributions and auto-correlations in the PAF.

LocalMotionStage computes the bond-vector distribution and the internal
auto-correlation C(t) over all source trajectories at once, rotated into the
principal-axis frame. CorrelationFitStage fits C(t) for the relaxation stage.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from mdrelax.pipeline.artifact_cache import ArtifactCache
from mdrelax.pipeline.commands import ToolInvocation, format_number
from mdrelax.pipeline.global_diffusion import ResolvedOrientation
from mdrelax.pipeline.sources import SourcePlan
from mdrelax.schemas.internal import PipelineConfig

__all__ = ['VECTOR_STORAGE', 'LocalMotionArtifacts', 'LocalMotionStage', 'CorrelationFitStage']

logger = logging.getLogger(__name__)

CORRELATION_SCRIPT = "calculate-Ct-from-traj.py"
FIT_SCRIPT = "calculate-fitted-Ct.py"

# storage mode -> (distribution file suffix, estimator flags)
VECTOR_STORAGE = {
    "Histogram": ("_vecHistogram.npz", ("--vecHist", "--binary")),
    "PhiTheta": ("_vecPhiTheta.npz", ("--vecDist", "--binary")),
    "TextPhiTheta": ("_vecPhiTheta.dat", ("--vecDist",)),
}


@dataclass(frozen=True)
class LocalMotionArtifacts:
    distribution: Path
    correlation: Path


class LocalMotionStage:
    """Runs the vector-distribution / auto-correlation estimator."""

    def __init__(self, config: PipelineConfig, cache: ArtifactCache):
        self.config = config
        self.cache = cache

    def outputs(self) -> LocalMotionArtifacts:
        prefix = self.config.output_prefix
        suffix, _ = VECTOR_STORAGE[self.config.local_motion.vec_storage]
        return LocalMotionArtifacts(
            distribution=Path(prefix + suffix),
            correlation=Path(f"{prefix}_Ctint.dat"),
        )

    def run(self, plan: SourcePlan, orientation: ResolvedOrientation) -> LocalMotionArtifacts:
        config = self.config
        artifacts = self.outputs()
        _, storage_flags = VECTOR_STORAGE[config.local_motion.vec_storage]

        args = [
            config.tools.python, str(Path(config.tools.script_dir) / CORRELATION_SCRIPT),
            "-s", *(str(p) for p in plan.references),
            "-f", *(str(p) for p in plan.trajectories),
            "--tau", format_number(config.diffusion.tau_ps),
            "-o", config.output_prefix,
            "--vecRot", orientation.vec_rot,
        ]
        if config.local_motion.fit_atoms is not None:
            args += ["--fitsel", config.local_motion.fit_atoms]
        args += [*storage_flags, "--vecAvg", "--S2", "--Ct"]

        self.cache.ensure(ToolInvocation(
            stage="local_motion",
            args=tuple(args),
            outputs=(artifacts.distribution, artifacts.correlation),
            label=config.local_motion.vec_storage,
        ))
        return artifacts


class CorrelationFitStage:
    """Fits the local-frame auto-correlation."""

    def __init__(self, config: PipelineConfig, cache: ArtifactCache):
        self.config = config
        self.cache = cache

    def output(self) -> Path:
        return Path(f"{self.config.output_prefix}_fittedCt.dat")

    def run(self, correlation: Path) -> Path:
        config = self.config
        fitted = self.output()
        self.cache.ensure(ToolInvocation(
            stage="correlation_fit",
            args=(
                config.tools.python, str(Path(config.tools.script_dir) / FIT_SCRIPT),
                "-f", str(correlation),
                "-o", config.output_prefix,
            ),
            outputs=(fitted,),
        ))
        return fitted
