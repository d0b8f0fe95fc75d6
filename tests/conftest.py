"""Root-level pytest fixtures for the mdrelax test suite.

Provides shared configuration fixtures and a fake command runner so that no
test ever calls PLUMED, GROMACS or the analysis scripts.
"""

import pytest
from pathlib import Path

from mdrelax.contracts import ExternalToolFailure
from mdrelax.pipeline.commands import CommandRunner
from mdrelax.schemas import ParamConfig, UserConfig, resolve_config


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides)."""
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Accepts UserConfig-compatible kwargs (field names or uppercase keys).

    Examples
    --------
    >>> def test_prefix(make_config):
    ...     config = make_config(out="ubq", T_MEM="20 ns")
    ...     assert config.output_prefix == "ubq-20ns"
    """
    def _make(**user_overrides):
        if user_overrides:
            user = UserConfig.model_validate(user_overrides)
            return resolve_config(param_config, user, None)
        return resolve_config(param_config, None, None)

    return _make


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run the test inside an empty temporary working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def single_source(workdir):
    """Working directory holding the inputs of a single-source run."""
    (workdir / "solute.xtc").write_text("xtc\n")
    (workdir / "reference.pdb").write_text("pdb\n")
    return workdir


@pytest.fixture
def multi_source(workdir):
    """Two simulation folders plus a shared reference and a folder list."""
    for name in ("runA", "runB"):
        folder = workdir / name
        folder.mkdir()
        (folder / "solute.xtc").write_text("xtc\n")
        (folder / "reference.pdb").write_text("pdb\n")
    (workdir / "reference.pdb").write_text("pdb\n")
    (workdir / "folders.txt").write_text("runA\nrunB\n\n")
    return workdir


# =============================================================================
# Stage output fixtures
# =============================================================================

def aniso2_text(diso=2.0e10, dani_long=1.3, drho_long=0.8, dani_short=0.7, drho_short=1.4):
    """Diffusion summary header: Diso at field -4, the others at field -3."""
    return (
        "# Global rotational diffusion, quaternion fit\n"
        "# Diso_err is reported separately\n"
        f"Diso {diso} 1.0e8 s^-1 fit\n"
        f"Dani_L {dani_long} 0.01 fit\n"
        f"Drho_L {drho_long} 0.01 fit\n"
        f"Dani_S {dani_short} 0.01 fit\n"
        f"Drho_S {drho_short} 0.01 fit\n"
    )


def aniso_q_text(quaternion=(0.5, 0.5, 0.5, 0.5)):
    w, x, y, z = quaternion
    return (
        "# dt w x y z\n"
        f"100.0 {w} {x} {y} {z}\n"
        "200.0 1.0 0.0 0.0 0.0\n"
    )


@pytest.fixture
def write_aniso2():
    def _write(path, **values):
        Path(path).write_text(aniso2_text(**values))
        return Path(path)
    return _write


@pytest.fixture
def write_aniso_q():
    def _write(path, quaternion=(0.5, 0.5, 0.5, 0.5)):
        Path(path).write_text(aniso_q_text(quaternion))
        return Path(path)
    return _write


class FakeRunner(CommandRunner):
    """Records invocations and materializes their expected outputs.

    Diffusion summaries are written with realistic content; quaternion
    files from PLUMED get ``quaternion_rows`` rows; anything else gets a
    one-line placeholder.
    """

    def __init__(self, tensor=None, quaternion=(0.5, 0.5, 0.5, 0.5), quaternion_rows=3,
                 time_step_report="Step      1001     10\n", fail_labels=(), produce=True):
        self.tensor = tensor or {}
        self.quaternion = quaternion
        self.quaternion_rows = quaternion_rows
        self.time_step_report = time_step_report
        self.fail_labels = tuple(fail_labels)
        self.produce = produce
        self.invocations = []
        self.queries = []

    def run(self, invocation):
        self.invocations.append(invocation)
        if any(invocation.label.startswith(l) for l in self.fail_labels):
            raise ExternalToolFailure(f"{invocation.name} failed with exit status 1")
        if not self.produce:
            return
        for path in invocation.outputs:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.name.endswith("-aniso2.dat"):
                path.write_text(aniso2_text(**self.tensor))
            elif path.name.endswith("-aniso_q.dat"):
                path.write_text(aniso_q_text(self.quaternion))
            elif invocation.label.startswith("plumed:"):
                path.write_text("".join(
                    f"{i}.0 1.0 0.0 0.0 0.0\n" for i in range(self.quaternion_rows)
                ))
            else:
                path.write_text("fake\n")

    def capture(self, args):
        self.queries.append(tuple(args))
        return self.time_step_report

    def labels(self, stage=None):
        return [i.label for i in self.invocations if stage is None or i.stage == stage]


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def make_runner():
    """Factory for FakeRunner with custom outputs or failures."""
    return FakeRunner
