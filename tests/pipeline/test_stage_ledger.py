import threading
from pathlib import Path

import pytest

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]


def test_record_and_statistics(ledger):
    ledger.record("run1", "orientation", "plumed:.", Path("colvar-qorient"), "computed")
    ledger.record("run1", "global_diffusion", "dq", Path("x-aniso_q.dat"), "skipped")
    ledger.record("run2", "relaxation", "600:rates", Path("x-600_R2.dat"), "failed", error="boom")

    assert ledger.get_statistics("run1") == {"total": 2, "skipped": 1, "computed": 1, "failed": 0}
    assert ledger.get_statistics()["total"] == 3


def test_statistics_of_unknown_run(ledger):
    assert ledger.get_statistics("nope") == {"total": 0, "skipped": 0, "computed": 0, "failed": 0}


def test_stage_history(ledger):
    ledger.record("run1", "relaxation", "600:rates", Path("a_R2.dat"), "failed", error="boom")
    ledger.record("run2", "relaxation", "600:rates", Path("a_R2.dat"), "computed")

    history = ledger.get_stage_history("relaxation")
    assert [h["status"] for h in history] == ["failed", "computed"]
    assert history[0]["error_message"] == "boom"
    assert history[0]["artifact"] == "a_R2.dat"


def test_invalid_status(ledger):
    with pytest.raises(ValueError, match="Invalid status"):
        ledger.record("run1", "relaxation", "x", None, "done")


def test_concurrent_records(ledger):
    def work(i):
        ledger.record("run1", "relaxation", f"{i}:rates", Path(f"{i}_R2.dat"), "computed")

    threads = [threading.Thread(target=work, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert ledger.get_statistics("run1")["computed"] == 8


def test_close_is_idempotent(tmp_path):
    from mdrelax.pipeline.stage_ledger import StageLedger

    ledger = StageLedger(tmp_path / "sub" / "stages.db")
    ledger.close()
    ledger.close()
    assert (tmp_path / "sub" / "stages.db").exists()
