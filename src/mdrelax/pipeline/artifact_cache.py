"""Existence-keyed artifact cache wrapping every external invocation.

A stage invocation is skipped when all of its expected outputs are already
on disk. After running, every expected output must exist.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from mdrelax.contracts import assert_artifacts
from mdrelax.pipeline.commands import CommandRunner, ToolInvocation
from mdrelax.pipeline.stage_ledger import StageLedger

__all__ = ['StalenessPolicy', 'ExistencePolicy', 'ArtifactCache']

logger = logging.getLogger(__name__)


class StalenessPolicy:
    """Decides whether a set of existing artifacts can be reused."""

    def is_fresh(self, paths: Iterable[Path]) -> bool:
        raise NotImplementedError


class ExistencePolicy(StalenessPolicy):
    """Artifacts are fresh when they all exist. No hashing, no timestamps."""

    def is_fresh(self, paths: Iterable[Path]) -> bool:
        return all(Path(p).exists() for p in paths)


class ArtifactCache:
    """Gatekeeper between stages and the command runner.

    Parameters
    ----------
    runner : CommandRunner
        Executes invocations that are not cached.
    policy : StalenessPolicy, optional
        Freshness test for expected outputs (default ExistencePolicy).
    ledger : StageLedger, optional
        Records skipped / computed / failed outcomes.
    run_id : str, optional
        Run identifier written to the ledger.
    """

    def __init__(self, runner: CommandRunner,
                 policy: Optional[StalenessPolicy] = None,
                 ledger: Optional[StageLedger] = None,
                 run_id: Optional[str] = None):
        self.runner = runner
        self.policy = policy or ExistencePolicy()
        self.ledger = ledger
        self.run_id = run_id

    def ensure(self, invocation: ToolInvocation, force: bool = False) -> bool:
        """Make sure the outputs of ``invocation`` exist.

        Returns
        -------
        bool
            True if the command was run, False if it was skipped.

        Raises
        ------
        ExternalToolFailure
            If the command fails or does not produce every expected output.
        """
        if not force and self.policy.is_fresh(invocation.outputs):
            logger.info("%s: %s pre-existing, skipping", invocation.name, invocation.primary_output)
            self._record(invocation, "skipped")
            return False

        if force:
            logger.info("%s: forced recomputation", invocation.name)

        started = datetime.now(timezone.utc)
        try:
            self.runner.run(invocation)
            assert_artifacts(invocation.outputs, invocation.name)
        except Exception as e:
            self._record(invocation, "failed", error=str(e), started_at=started)
            raise

        self._record(invocation, "computed", started_at=started)
        return True

    def _record(self, invocation: ToolInvocation, status: str, **kwargs):
        if self.ledger is None:
            return
        self.ledger.record(
            self.run_id, invocation.stage, invocation.label,
            invocation.primary_output, status, **kwargs
        )
