import pytest

from mdrelax.contracts import DataInconsistency
from mdrelax.physics.diffusion_tensor import (
    DiffusionTensor,
    classify_symmetry_axis,
    parse_diffusion_summary,
    read_first_quaternion,
)

pytestmark = pytest.mark.unit


def tensor(drho_long, drho_short):
    return DiffusionTensor(diso=1.0e-5, dani_long=1.3, drho_long=drho_long,
                           dani_short=0.7, drho_short=drho_short)


class TestClassification:

    def test_long_axis(self):
        axis = classify_symmetry_axis(tensor(0.8, 1.4))
        assert axis.axis == "z"
        assert axis.dani == 1.3
        assert "Dz" in axis.description

    def test_short_axis(self):
        axis = classify_symmetry_axis(tensor(1.2, 0.6))
        assert axis.axis == "x"
        assert axis.dani == 0.7

    def test_long_axis_wins_when_both_below_one(self):
        assert classify_symmetry_axis(tensor(0.5, 0.6)).axis == "z"

    def test_neither_below_one_is_fatal(self):
        with pytest.raises(DataInconsistency, match="neither Drho value"):
            classify_symmetry_axis(tensor(1.0, 1.1))


class TestSummaryParser:

    def test_parses_fields_and_converts_diso(self, tmp_path, write_aniso2):
        path = write_aniso2(tmp_path / "x-aniso2.dat", diso=2.0e10, dani_long=1.25,
                            drho_long=0.9, dani_short=0.75, drho_short=1.5)
        t = parse_diffusion_summary(path)
        assert t.diso == pytest.approx(0.02)
        assert t.dani_long == 1.25
        assert t.drho_long == 0.9
        assert t.dani_short == 0.75
        assert t.drho_short == 1.5

    def test_label_must_be_whole_word(self, tmp_path):
        path = tmp_path / "x-aniso2.dat"
        path.write_text(
            "Diso_err 9 9 9 9 9\n"
            "Diso 3.0e10 1 s^-1 fit\n"
            "Dani_L 1.1 0 fit\nDrho_L 0.5 0 fit\nDani_S 0.9 0 fit\nDrho_S 2.0 0 fit\n"
        )
        assert parse_diffusion_summary(path).diso == pytest.approx(0.03)

    def test_only_header_is_searched(self, tmp_path):
        path = tmp_path / "x-aniso2.dat"
        filler = "".join(f"# line {i}\n" for i in range(20))
        path.write_text(filler + "Diso 3.0e10 1 s^-1 fit\n")
        with pytest.raises(DataInconsistency, match="'Diso' not found"):
            parse_diffusion_summary(path)

    def test_missing_label(self, tmp_path):
        path = tmp_path / "x-aniso2.dat"
        path.write_text("Diso 3.0e10 1 s^-1 fit\nDani_L 1.1 0 fit\n")
        with pytest.raises(DataInconsistency, match="Drho_L"):
            parse_diffusion_summary(path)

    def test_non_numeric_field(self, tmp_path):
        path = tmp_path / "x-aniso2.dat"
        path.write_text(
            "Diso 3.0e10 1 s^-1 fit\nDani_L n/a 0 fit\nDrho_L 0.5 0 fit\n"
            "Dani_S 0.9 0 fit\nDrho_S 2.0 0 fit\n"
        )
        with pytest.raises(DataInconsistency, match="Dani_L"):
            parse_diffusion_summary(path)

    def test_non_finite_field(self, tmp_path):
        path = tmp_path / "x-aniso2.dat"
        path.write_text(
            "Diso 3.0e10 1 s^-1 fit\nDani_L nan 0 fit\nDrho_L 0.5 0 fit\n"
            "Dani_S 0.9 0 fit\nDrho_S 2.0 0 fit\n"
        )
        with pytest.raises(DataInconsistency, match="not a finite number"):
            parse_diffusion_summary(path)


class TestQuaternion:

    def test_first_data_row(self, tmp_path, write_aniso_q):
        path = write_aniso_q(tmp_path / "x-aniso_q.dat", (0.5, -0.5, 0.5, 0.5))
        assert read_first_quaternion(path) == (0.5, -0.5, 0.5, 0.5)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "x-aniso_q.dat"
        path.write_text("# header only\n@ legend\n")
        with pytest.raises(DataInconsistency, match="No data rows"):
            read_first_quaternion(path)

    def test_short_row(self, tmp_path):
        path = tmp_path / "x-aniso_q.dat"
        path.write_text("100.0 1.0 0.0\n")
        with pytest.raises(DataInconsistency, match="4 quaternion fields"):
            read_first_quaternion(path)

    def test_unnormalised_quaternion_warns(self, tmp_path, caplog):
        path = tmp_path / "x-aniso_q.dat"
        path.write_text("100.0 1.0 1.0 0.0 0.0\n")
        with caplog.at_level("WARNING"):
            q = read_first_quaternion(path)
        assert q == (1.0, 1.0, 0.0, 0.0)
        assert "not normalised" in caplog.text
