"""Quaternion-orientation stage.

For every source without a quaternion file: generate missing inputs on
request, write the PLUMED driver script from its template, determine the
trajectory time step and run ``plumed driver``. In multi-source mode the
per-source quaternion files are then concatenated into the aggregate file.
"""

import logging
import shutil
from importlib.resources import files
from pathlib import Path
from typing import Optional

from mdrelax.contracts import ExternalToolFailure, assert_inputs
from mdrelax.pipeline.artifact_cache import ArtifactCache
from mdrelax.pipeline.commands import (
    CommandRunner, ToolInvocation, detect_gmx_check, format_number, split_command,
)
from mdrelax.pipeline.sources import SourcePathSet, SourcePlan
from mdrelax.schemas.internal import InternalGeneratorConfig, PipelineConfig

__all__ = ['OrientationStage', 'render_driver_script', 'parse_time_step']

logger = logging.getLogger(__name__)

STAGE = "orientation"
TEMPLATE_RESOURCE = "plumed-quat-template.dat"


def render_driver_script(template: str, quaternion_file: Path, reference: Path) -> str:
    """Substitute the per-source placeholders of the PLUMED template."""
    return (template
            .replace("VAR_QFILE", str(quaternion_file))
            .replace("VAR_REFFILE", str(reference)))


def parse_time_step(report: str) -> float:
    """Time between frames from a ``gmx check`` report.

    The last field of the first line mentioning ``Step`` holds the value.

    Raises
    ------
    ExternalToolFailure
        If no such line exists or the field is not numeric.
    """
    line = next((l for l in report.splitlines() if "Step" in l), None)
    if line is None or not line.split():
        raise ExternalToolFailure(
            "Trajectory inspector did not report the time between frames; set xtc_step"
        )
    try:
        return float(line.split()[-1])
    except ValueError:
        raise ExternalToolFailure(
            f"Cannot read the time between frames from: {line.strip()}; set xtc_step"
        ) from None


class OrientationStage:
    """Derives quaternion orientation trajectories for every source.

    Parameters
    ----------
    config : PipelineConfig
    cache : ArtifactCache
        Gates the generators and PLUMED.
    runner : CommandRunner
        Used directly for the time-step query, which produces no artifact.
    """

    def __init__(self, config: PipelineConfig, cache: ArtifactCache, runner: CommandRunner):
        self.config = config
        self.cache = cache
        self.runner = runner
        self._gmx_check: Optional[list[str]] = None
        self._template: Optional[str] = None

    def run(self, plan: SourcePlan) -> None:
        for source in plan.sources:
            self._derive(source)

        if plan.aggregate_qfile is not None:
            self._aggregate(plan)

    def _derive(self, source: SourcePathSet) -> None:
        if self.cache.policy.is_fresh([source.quaternion_file]):
            logger.info("Pre-existing quaternion file %s found, skipping derivation",
                        source.quaternion_file)
            return

        logger.info("%s not found, constructing it", source.quaternion_file)
        orientation = self.config.orientation
        self._generate("genref", orientation.genref, self.config.tools.genref_default,
                       source.reference, source)
        self._generate("gentrj", orientation.gentrj, self.config.tools.gentrj_default,
                       source.trajectory, source)

        if not source.driver_script.exists():
            logger.info("PLUMED script %s is absent, writing it from the template",
                        source.driver_script)
            source.driver_script.write_text(
                render_driver_script(self._load_template(), source.quaternion_file, source.reference)
            )

        assert_inputs([source.trajectory, source.driver_script, source.reference], STAGE)

        step = orientation.xtc_step
        if step is None:
            step = self._detect_time_step(source.trajectory)
        else:
            logger.info("Time step between frames of %s set to %s ps", source.trajectory, step)

        self.cache.ensure(ToolInvocation(
            stage=STAGE,
            args=(
                self.config.tools.plumed, "driver",
                "--mf_xtc", str(source.trajectory),
                "--plumed", str(source.driver_script),
                "--timestep", format_number(step),
            ),
            outputs=(source.quaternion_file,),
            log_path=source.plumed_log,
            label=f"plumed:{source.folder}",
        ))

    def _generate(self, name: str, generator: InternalGeneratorConfig, default: str,
                  target: Path, source: SourcePathSet) -> None:
        if not generator.enabled:
            logger.debug("%s: not generating %s", name, target)
            return
        if target.exists():
            logger.info("%s: %s already exists", name, target)
            return

        if generator.command is None:
            args = split_command(default)
            args[0] = str(Path(self.config.tools.script_dir) / args[0])
        else:
            args = split_command(generator.command)
        args = [a.format(output=target, tpr=source.topology) for a in args]

        logger.info("%s: generating %s", name, target)
        self.cache.ensure(ToolInvocation(
            stage=STAGE,
            args=tuple(args),
            outputs=(target,),
            label=f"{name}:{source.folder}",
        ))

    def _detect_time_step(self, trajectory: Path) -> float:
        if self._gmx_check is None:
            self._gmx_check = detect_gmx_check(self.config.tools.gmx_check)
        logger.info("Using GROMACS to detect the time step of %s; set xtc_step to skip this",
                    trajectory)
        report = self.runner.capture([*self._gmx_check, "-f", str(trajectory)])
        step = parse_time_step(report)
        logger.info("Time step between frames of %s: %s ps", trajectory, step)
        return step

    def _load_template(self) -> str:
        if self._template is None:
            configured = self.config.files.pfile_template
            if configured is not None:
                self._template = Path(configured).read_text()
            else:
                self._template = files("mdrelax.templates").joinpath(TEMPLATE_RESOURCE).read_text()
        return self._template

    def _aggregate(self, plan: SourcePlan) -> None:
        """Rebuild the aggregate quaternion file in source order."""
        with open(plan.aggregate_qfile, 'w') as out:
            for source in plan.sources:
                with open(source.quaternion_file) as f:
                    shutil.copyfileobj(f, out)
        logger.info("Aggregated %d quaternion file(s) into %s",
                    len(plan.sources), plan.aggregate_qfile)
