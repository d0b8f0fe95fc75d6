import pytest

from mdrelax.contracts import ConfigurationError
from mdrelax.schemas import ParamConfig, PipelineConfig, deep_merge, resolve_config

pytestmark = pytest.mark.unit


def test_defaults(internal_config):
    config = internal_config
    assert isinstance(config, PipelineConfig)
    assert config.out == "rotdif"
    assert config.diffusion.tau_ps == 10000.0
    assert config.conditions.temp_md == 300.0
    assert config.conditions.temp_exp == 297.0
    assert config.conditions.d2o_fraction == 0.09
    assert config.relaxation.bfields == ("600.133",)
    assert config.diffusion.num_chunks == 4
    assert config.local_motion.vec_storage == "Histogram"
    assert config.files.qfile == "colvar-qorient"
    assert config.files.pfile == "plumed-quat.dat"
    assert config.files.refpdb == "reference.pdb"
    assert config.files.sxtc == "solute.xtc"
    assert config.files.tpr == "topol.tpr"
    assert config.multi_source is False


def test_derived_properties(make_config):
    config = make_config(T_MEM="20 ns", OUT="ubq")
    assert config.tau_ns == 20.0
    assert config.t100 == 200.0
    assert config.output_prefix == "ubq-20ns"


def test_output_prefix_fractional_memory_time(make_config):
    assert make_config(T_MEM=2500).output_prefix == "rotdif-2.5ns"


def test_config_is_frozen(internal_config):
    with pytest.raises(Exception):
        internal_config.out = "other"


def test_deep_merge_nested():
    base = {"a": 1, "b": {"c": 2, "d": 3}}
    merged = deep_merge(base, {"b": {"d": 4, "e": 5}, "f": 6})
    assert merged == {"a": 1, "b": {"c": 2, "d": 4, "e": 5}, "f": 6}
    assert base == {"a": 1, "b": {"c": 2, "d": 3}}


def test_invalid_value_is_configuration_error():
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        resolve_config(ParamConfig(), {"TEMP_MD": "warm"})


def test_invalid_vec_storage_rejected():
    with pytest.raises(ConfigurationError):
        resolve_config(ParamConfig(), {"VEC_STORAGE": "Binned"})


def test_fit_without_experimental_file():
    with pytest.raises(ConfigurationError, match="expfile"):
        resolve_config(ParamConfig(), {"FIT": ["DisoS2"]})


def test_fit_with_experimental_file(make_config):
    config = make_config(FIT=["Diso", "DisoS2"], EXPFILE="exp.dat")
    assert config.relaxation.fit_modes == ("Diso", "DisoS2")
    assert config.files.exp_file == "exp.dat"


@pytest.mark.parametrize("option", ["SXTC", "QFILE"])
def test_absolute_paths_rejected_with_folders(option):
    with pytest.raises(ConfigurationError, match="multi-source"):
        resolve_config(ParamConfig(), {"FOLDERS": ["a", "b"], option: "/data/file"})


def test_absolute_paths_allowed_for_single_source(make_config):
    config = make_config(SXTC="/data/solute.xtc")
    assert config.files.sxtc == "/data/solute.xtc"


def test_unknown_time_unit_rejected():
    with pytest.raises(ConfigurationError, match="Unrecognized time unit"):
        resolve_config(ParamConfig(), {"T_MEM": "10 fortnights"})


def test_workers_must_be_positive():
    with pytest.raises(ConfigurationError):
        resolve_config(ParamConfig(), {"WORKERS": 0})
