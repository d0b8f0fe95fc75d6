"""Pipeline modules.

- orchestrator: Main pipeline controller
- sources: Per-source path resolution
- commands: External command execution
- artifact_cache: Existence-keyed stage gating
- stage_ledger: SQLite record of gated invocations
- orientation, global_diffusion, local_motion, relaxation: The stages
"""

from mdrelax.pipeline.orchestrator import PipelineOrchestrator, PipelineResult
from mdrelax.pipeline.sources import SourcePathSet, SourcePlan, SourceResolver
from mdrelax.pipeline.commands import CommandRunner, ToolInvocation
from mdrelax.pipeline.artifact_cache import ArtifactCache, ExistencePolicy, StalenessPolicy
from mdrelax.pipeline.stage_ledger import StageLedger

__all__ = [
    "PipelineOrchestrator",
    "PipelineResult",
    "SourcePathSet",
    "SourcePlan",
    "SourceResolver",
    "CommandRunner",
    "ToolInvocation",
    "ArtifactCache",
    "ExistencePolicy",
    "StalenessPolicy",
    "StageLedger",
]
