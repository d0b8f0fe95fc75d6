import pytest

from mdrelax.pipeline.artifact_cache import ArtifactCache
from mdrelax.pipeline.stage_ledger import StageLedger


@pytest.fixture
def ledger(tmp_path):
    with StageLedger(tmp_path / "stages.db") as ledger:
        yield ledger


@pytest.fixture
def cache(fake_runner, ledger):
    """Artifact cache over the fake runner, recording into a temp ledger."""
    return ArtifactCache(fake_runner, ledger=ledger, run_id="test-run")
