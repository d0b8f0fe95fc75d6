"""Per-source input/output path resolution.

Single-source runs read everything from the working directory. Multi-source
runs join each per-source file name onto every folder of the folder list and
additionally feed an aggregate quaternion file to the global-diffusion fit.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from mdrelax.contracts import assert_relative_per_source
from mdrelax.schemas.internal import PipelineConfig

__all__ = ['SourcePathSet', 'SourcePlan', 'SourceResolver']

logger = logging.getLogger(__name__)

AGGREGATE_SUFFIX = "-aggregate"


@dataclass(frozen=True)
class SourcePathSet:
    """Resolved file locations for one simulation folder."""
    folder: Path
    trajectory: Path
    reference: Path
    topology: Path
    driver_script: Path
    quaternion_file: Path

    @property
    def plumed_log(self) -> Path:
        return self.folder / "plumed.log"


@dataclass(frozen=True)
class SourcePlan:
    """Ordered sources plus the inputs derived from all of them together.

    ``aggregate_qfile`` is set only in multi-source mode.
    """
    sources: tuple[SourcePathSet, ...]
    aggregate_qfile: Optional[Path]
    trajectories: tuple[Path, ...]
    references: tuple[Path, ...]

    @property
    def multi_source(self) -> bool:
        return self.aggregate_qfile is not None

    @property
    def diffusion_input(self) -> Path:
        """Quaternion file consumed by the global-diffusion fit."""
        if self.aggregate_qfile is not None:
            return self.aggregate_qfile
        return self.sources[0].quaternion_file


def _per_source(folder: Path, name: str) -> Path:
    path = Path(name)
    if path.is_absolute():
        return path
    return folder / path


class SourceResolver:
    """Builds the SourcePlan for a configuration.

    Parameters
    ----------
    config : PipelineConfig
        Resolved configuration. An empty folder list means the working
        directory is the only source.

    Raises
    ------
    ConfigurationError
        On construction, if multi-source mode is combined with an absolute
        trajectory or quaternion file name.
    """

    def __init__(self, config: PipelineConfig):
        self.config = config
        if config.multi_source:
            assert_relative_per_source({"sxtc": config.files.sxtc, "qfile": config.files.qfile})

    def resolve(self) -> SourcePlan:
        files = self.config.files
        multi_ref = self.config.sources.multi_ref
        folders = self.config.sources.folders or (".",)

        sources = []
        for name in folders:
            folder = Path(name)
            reference = _per_source(folder, files.refpdb) if multi_ref else Path(files.refpdb)
            sources.append(SourcePathSet(
                folder=folder,
                trajectory=_per_source(folder, files.sxtc),
                reference=reference,
                topology=_per_source(folder, files.tpr),
                driver_script=_per_source(folder, files.pfile),
                quaternion_file=_per_source(folder, files.qfile),
            ))

        if multi_ref:
            references = tuple(s.reference for s in sources)
        else:
            references = (Path(files.refpdb),)

        aggregate = None
        if self.config.multi_source:
            aggregate = Path(files.qfile + AGGREGATE_SUFFIX)

        plan = SourcePlan(
            sources=tuple(sources),
            aggregate_qfile=aggregate,
            trajectories=tuple(s.trajectory for s in sources),
            references=references,
        )
        logger.info(
            "Resolved %d source(s)%s", len(plan.sources),
            f", aggregate quaternions in {aggregate}" if aggregate else "",
        )
        for source in plan.sources:
            logger.debug("Source %s: %s", source.folder, source)
        return plan
