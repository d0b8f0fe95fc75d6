import logging
from pathlib import Path

import pytest

from mdrelax.contracts import ConfigurationError, DataInconsistency, ExternalToolFailure
from mdrelax.pipeline.orchestrator import PipelineOrchestrator
from mdrelax.pipeline.stage_ledger import StageLedger

pytestmark = [pytest.mark.pipeline]


def run(config, runner):
    return PipelineOrchestrator(config, runner=runner, configure_logging=False).run()


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestFullRun:

    def test_stages_in_order(self, single_source, make_config, fake_runner):
        result = run(make_config(XTC_STEP=2.0), fake_runner)

        assert [i.stage for i in fake_runner.invocations] == [
            "orientation", "global_diffusion", "local_motion", "correlation_fit", "relaxation",
        ]
        assert result.output_prefix == "rotdif-10ns"
        assert result.orientation.source == "simulation"
        assert result.orientation.quaternion == (0.5, 0.5, 0.5, 0.5)
        assert result.symmetry_axis.axis == "z"
        assert result.diffusion.dani == 1.3
        assert result.relaxation_artifacts == [Path("rotdif-10ns-600_R2.dat")]
        assert result.statistics == {"total": 5, "skipped": 0, "computed": 5, "failed": 0}

    def test_second_run_invokes_nothing(self, single_source, make_config, make_runner):
        config = make_config(XTC_STEP=2.0, JW=True, BFIELDS=["600.133", "850.2"])
        run(config, make_runner())

        again = make_runner()
        result = run(config, again)

        assert again.invocations == []
        assert again.queries == []
        assert result.statistics["computed"] == 0
        assert result.statistics["skipped"] == 7

    def test_time_step_detected_when_not_configured(self, single_source, make_config, fake_runner):
        run(make_config(GMX_CHECK="gmx check"), fake_runner)

        assert fake_runner.queries == [("gmx", "check", "-f", "solute.xtc")]
        plumed = fake_runner.invocations[0]
        assert plumed.args[-2:] == ("--timestep", "10")

    def test_run_id_is_recorded(self, single_source, make_config, fake_runner):
        config = make_config(XTC_STEP=2.0).model_copy(update={"run_id": "run-42"})
        result = run(config, fake_runner)

        assert result.run_id == "run-42"
        with StageLedger("rotdif-10ns-stages.db") as ledger:
            assert ledger.get_statistics("run-42")["computed"] == 5


class TestOverrides:

    def test_external_diffusion_and_orientation(self, single_source, make_config, make_runner):
        runner = make_runner(tensor={"drho_long": 3.0, "drho_short": 3.0})
        config = make_config(XTC_STEP=2.0, D_EXT=[1.5e-5, 1.2], Q_EXT=[1, 0, 0, 0])

        result = run(config, runner)

        assert result.symmetry_axis is None
        assert result.orientation.source == "external"
        assert (result.diffusion.diso, result.diffusion.dani) == (1.5e-5, 1.2)

        local = next(i for i in runner.invocations if i.stage == "local_motion")
        assert local.args[local.args.index("--vecRot") + 1] == "1 0 0 0"
        rates = next(i for i in runner.invocations if i.stage == "relaxation")
        assert rates.args[rates.args.index("--D") + 1] == "1.5e-05 1.2"

    def test_unclassifiable_tensor_stops_before_local_motion(self, single_source, make_config, make_runner):
        runner = make_runner(tensor={"drho_long": 3.0, "drho_short": 3.0})

        with pytest.raises(DataInconsistency):
            run(make_config(XTC_STEP=2.0), runner)

        assert runner.labels("local_motion") == []


class TestMultiSource:

    def test_aggregate_feeds_global_diffusion(self, multi_source, make_config, make_runner):
        runner = make_runner(quaternion_rows=2)
        config = make_config(FOLDERS=["runA", "runB"], XTC_STEP=2.0)

        run(config, runner)

        assert runner.labels("orientation") == ["plumed:runA", "plumed:runB"]
        assert len(Path("colvar-qorient-aggregate").read_text().splitlines()) == 4
        diffusion = next(i for i in runner.invocations if i.stage == "global_diffusion")
        assert diffusion.args[1] == "calculate-dq-distribution-multi.py"
        local = next(i for i in runner.invocations if i.stage == "local_motion")
        assert "runB/solute.xtc" in local.args

    def test_absolute_trajectory_rejected_before_any_work(self, multi_source, make_config, fake_runner):
        config = make_config(XTC_STEP=2.0)
        config = config.model_copy(update={
            "sources": config.sources.model_copy(update={"folders": ("runA", "runB")}),
            "files": config.files.model_copy(update={"sxtc": "/data/solute.xtc"}),
        })

        with pytest.raises(ConfigurationError, match="Absolute paths"):
            run(config, fake_runner)

        assert fake_runner.invocations == []


class TestRecovery:

    def test_force_reruns_fits_only(self, single_source, make_config, make_runner):
        Path("exp.dat").write_text("exp\n")
        base = dict(XTC_STEP=2.0, FIT=["new"], EXPFILE="exp.dat")
        run(make_config(**base), make_runner())

        again = make_runner()
        run(make_config(FORCE=True, **base), again)

        assert again.labels() == ["600:optnew"]

    def test_resume_after_failure(self, single_source, make_config, make_runner):
        config = make_config(XTC_STEP=2.0, BFIELDS=["600.133", "850.2"])

        with pytest.raises(ExternalToolFailure):
            run(config, make_runner(fail_labels=["850:"]))

        resumed = make_runner()
        result = run(config, resumed)

        assert resumed.labels() == ["850:rates"]
        assert result.statistics["failed"] == 0

    def test_missing_trajectory(self, workdir, make_config, fake_runner):
        Path("reference.pdb").write_text("pdb\n")

        with pytest.raises(ConfigurationError, match="solute.xtc"):
            run(make_config(XTC_STEP=2.0), fake_runner)


@pytest.mark.usefixtures("restore_logging")
def test_setup_logging_writes_log_file(workdir, internal_config):
    orchestrator = PipelineOrchestrator(internal_config)
    orchestrator._setup_logging()
    logging.getLogger("mdrelax.test").info("hello from the pipeline")

    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello from the pipeline" in Path("rotdif-10ns-pipeline.log").read_text()
