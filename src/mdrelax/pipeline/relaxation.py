"""Relaxation-rate fan-out over magnetic fields and fit modes.

Per field: R1/R2/NOE, optionally spectral densities J(w), and one
optimisation against experimental data per fit mode. Fields are independent
and may run on a bounded pool of worker threads; work inside a field is
sequential.
"""

import logging
import threading
from multiprocessing import cpu_count
from multiprocessing.pool import ThreadPool
from pathlib import Path

from mdrelax.pipeline.artifact_cache import ArtifactCache
from mdrelax.pipeline.commands import ToolInvocation, format_number
from mdrelax.pipeline.global_diffusion import ResolvedDiffusion
from mdrelax.schemas.internal import PipelineConfig

__all__ = ['RelaxationStage', 'field_tag']

logger = logging.getLogger(__name__)

STAGE = "relaxation"
RELAXATION_SCRIPT = "calculate-relaxations-from-Ct.py"


def field_tag(bfield: str) -> str:
    """Output tag of a field: everything before the last dot (600.133 -> 600)."""
    head, dot, _ = bfield.rpartition(".")
    return head if dot else bfield


class RelaxationStage:
    """Computes relaxation observables for every configured field.

    Parameters
    ----------
    config : PipelineConfig
    cache : ArtifactCache
        Shared by all worker threads; the ledger it writes to is locked.
    """

    def __init__(self, config: PipelineConfig, cache: ArtifactCache):
        self.config = config
        self.cache = cache
        # Set by the first failing field; queued fields then start nothing.
        self.abort = threading.Event()

    def invocations(self, bfield: str, fitted: Path, distribution: Path,
                    diffusion: ResolvedDiffusion) -> list[tuple[ToolInvocation, bool]]:
        """Every gated invocation for one field, with its force flag, in run order."""
        config = self.config
        relaxation = config.relaxation
        tag = field_tag(bfield)
        prefix = f"{config.output_prefix}-{tag}"
        script = str(Path(config.tools.script_dir) / RELAXATION_SCRIPT)
        zeta = ["--zeta", format_number(relaxation.zeta)] if relaxation.zeta is not None else []

        def command(out: str, *extra: str) -> tuple[str, ...]:
            return (
                config.tools.python, script,
                "-f", str(fitted),
                "-o", out,
                "--distfn", str(distribution),
                "-F", f"{bfield}e6",
                "--tu", "ps",
                *zeta,
                "--D", diffusion.d_argument,
                *extra,
            )

        jobs = [(ToolInvocation(
            stage=STAGE,
            args=command(prefix),
            outputs=(Path(f"{prefix}_R2.dat"),),
            label=f"{tag}:rates",
        ), False)]

        if relaxation.spectral_density:
            jobs.append((ToolInvocation(
                stage=STAGE,
                args=command(prefix, "--Jomega"),
                outputs=(Path(f"{prefix}_Jw.dat"),),
                label=f"{tag}:Jw",
            ), False))

        for mode in relaxation.fit_modes:
            out = f"{prefix}-opt{mode}"
            jobs.append((ToolInvocation(
                stage=STAGE,
                args=command(out, "--expfn", str(config.files.exp_file), "--opt", mode),
                outputs=(Path(f"{out}_R2.dat"),),
                label=f"{tag}:opt{mode}",
            ), relaxation.force))

        return jobs

    def run(self, fitted: Path, distribution: Path, diffusion: ResolvedDiffusion) -> list[Path]:
        """Run every field and return the artifacts in field order.

        Raises
        ------
        ExternalToolFailure
            The first failing field task aborts the stage. Fields still
            waiting for a worker invoke nothing after that.
        """
        self.abort.clear()
        bfields = self.config.relaxation.bfields
        workers = max(1, min(self.config.relaxation.workers, cpu_count(), len(bfields)))
        logger.info("Computing relaxations for B = %s MHz with %d worker(s)",
                    " ".join(bfields), workers)

        def task(bfield: str) -> list[Path]:
            return self._run_field(bfield, fitted, distribution, diffusion)

        if workers == 1:
            results = [task(b) for b in bfields]
        else:
            with ThreadPool(processes=workers) as pool:
                results = pool.map(task, bfields)

        return [path for paths in results for path in paths]

    def _run_field(self, bfield: str, fitted: Path, distribution: Path,
                   diffusion: ResolvedDiffusion) -> list[Path]:
        artifacts = []
        for invocation, force in self.invocations(bfield, fitted, distribution, diffusion):
            if self.abort.is_set():
                logger.info("Field %s MHz cancelled after an earlier failure", bfield)
                return artifacts
            try:
                self.cache.ensure(invocation, force=force)
            except Exception:
                self.abort.set()
                raise
            artifacts.extend(invocation.outputs)
        logger.info("Field %s MHz done", bfield)
        return artifacts
