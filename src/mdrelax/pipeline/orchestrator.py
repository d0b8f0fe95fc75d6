"""Staged pipeline orchestration.

Runs the relaxation workflow end to end: orientation quaternions, global
rotational diffusion, symmetric-top parameters, local motion, C(t) fit and
the per-field relaxation fan-out. Every external invocation is gated by the
artifact cache, so re-running after a failure resumes where it stopped.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from mdrelax.physics import SymmetryAxis
from mdrelax.pipeline.artifact_cache import ArtifactCache, StalenessPolicy
from mdrelax.pipeline.commands import CommandRunner
from mdrelax.pipeline.global_diffusion import (
    GlobalDiffusionStage, ResolvedDiffusion, ResolvedOrientation, SymmetryAxisResolver,
)
from mdrelax.pipeline.local_motion import CorrelationFitStage, LocalMotionStage
from mdrelax.pipeline.orientation import OrientationStage
from mdrelax.pipeline.relaxation import RelaxationStage
from mdrelax.pipeline.sources import SourceResolver
from mdrelax.pipeline.stage_ledger import StageLedger
from mdrelax.schemas.initialization import generate_run_id
from mdrelax.schemas.internal import PipelineConfig

__all__ = ['PipelineOrchestrator', 'PipelineResult']

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """What one run derived and produced."""
    run_id: str
    output_prefix: str
    orientation: ResolvedOrientation
    diffusion: ResolvedDiffusion
    symmetry_axis: Optional[SymmetryAxis]
    relaxation_artifacts: list[Path] = field(default_factory=list)
    statistics: dict = field(default_factory=dict)


class PipelineOrchestrator:
    """Runs the staged MD to NMR relaxation pipeline.

    **Stages** (strictly sequential):

    1. **Orientation**: per-source quaternion trajectories via PLUMED,
       concatenated into an aggregate in multi-source mode.
    2. **Global diffusion**: quaternion-based fit of the rotational
       diffusion tensor.
    3. **Symmetry axis**: symmetric-top classification, temperature/D2O
       correction and external overrides.
    4. **Local motion**: vector distribution and internal C(t).
    5. **Correlation fit**: fitted C(t).
    6. **Relaxation**: R1/R2/NOE (and optionally J(w) and fits) per field.

    **Caching:**

    An invocation whose expected outputs all exist is skipped. A second run
    with unchanged inputs therefore invokes no external tool. The ``force``
    setting only re-runs the fit-mode relaxation invocations.

    **Logging:**

    Console and ``<prefix>-pipeline.log``, at the configured level. Each
    gated invocation is also recorded in the ``<prefix>-stages.db`` ledger.

    Example usage::

        config = init_runtime_config(args)
        result = PipelineOrchestrator(config).run()
    """

    def __init__(self, config: PipelineConfig,
                 runner: Optional[CommandRunner] = None,
                 policy: Optional[StalenessPolicy] = None,
                 configure_logging: bool = True):
        """Initialize orchestrator.

        Parameters
        ----------
        config : PipelineConfig
            Resolved runtime configuration.
        runner : CommandRunner, optional
            Executes external commands (default: subprocess-based runner).
        policy : StalenessPolicy, optional
            Artifact freshness test (default: existence).
        configure_logging : bool
            If True, install console and file handlers on the root logger.
        """
        self.config = config
        self.runner = runner or CommandRunner()
        self.policy = policy
        self.configure_logging = configure_logging
        self.run_id = config.run_id or generate_run_id()

    def _setup_logging(self):
        """Configure the root logger with file and console handlers."""
        log_level = getattr(logging, self.config.logging.level, logging.INFO)
        log_path = Path(f"{self.config.output_prefix}-pipeline.log")

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()

        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        logger.info("Logging: level=%s, file=%s", self.config.logging.level, log_path)

    def run(self) -> PipelineResult:
        """Run every stage in order.

        Returns
        -------
        PipelineResult

        Raises
        ------
        ConfigurationError
            Inconsistent paths or missing inputs, detected before the stage
            that needs them runs.
        ExternalToolFailure
            An external command failed or did not produce its outputs.
        DataInconsistency
            A diffusion summary could not be interpreted.
        """
        if self.configure_logging:
            self._setup_logging()

        config = self.config
        resolver = SourceResolver(config)

        logger.info("=" * 60)
        logger.info("MD to NMR relaxation pipeline, run %s", self.run_id)
        logger.info("Output prefix: %s", config.output_prefix)
        logger.info("=" * 60)

        with StageLedger(f"{config.output_prefix}-stages.db") as ledger:
            cache = ArtifactCache(self.runner, self.policy, ledger, self.run_id)
            plan = resolver.resolve()

            logger.info("Step 1: quaternion orientation trajectories")
            OrientationStage(config, cache, self.runner).run(plan)

            logger.info("Step 2: global rotational diffusion")
            diffusion_artifacts = GlobalDiffusionStage(config, cache).run(plan)

            symmetry = SymmetryAxisResolver(config)
            orientation = symmetry.resolve_orientation(diffusion_artifacts)
            diffusion, axis = symmetry.resolve_diffusion(diffusion_artifacts)

            logger.info("Step 3: local motion")
            local = LocalMotionStage(config, cache).run(plan, orientation)
            fitted = CorrelationFitStage(config, cache).run(local.correlation)

            logger.info("Step 4: relaxation")
            artifacts = RelaxationStage(config, cache).run(fitted, local.distribution, diffusion)

            stats = ledger.get_statistics(self.run_id)

        logger.info("Pipeline complete: %d invocation(s) computed, %d skipped",
                    stats.get("computed", 0), stats.get("skipped", 0))

        return PipelineResult(
            run_id=self.run_id,
            output_prefix=config.output_prefix,
            orientation=orientation,
            diffusion=diffusion,
            symmetry_axis=axis,
            relaxation_artifacts=artifacts,
            statistics=stats,
        )
