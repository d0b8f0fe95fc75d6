import pytest

from mdrelax.physics.temperature import correction_factor, d2o_modifier, water_viscosity

pytestmark = pytest.mark.unit


def test_identity_conditions_give_unit_factor():
    assert correction_factor(1.0, 300, 300, 0.0) == 1.0


def test_viscosity_at_reference_temperature():
    # t = 0 C leaves only the constant term
    assert water_viscosity(273) == pytest.approx(1.7753)


def test_viscosity_polynomial():
    t = 25.0
    expected = 1.7753 - 5.65e-2 * t + 1.0751e-3 * t**2 - 9.222e-6 * t**3
    assert water_viscosity(298) == pytest.approx(expected)


def test_viscosity_decreases_with_temperature():
    assert water_viscosity(310) < water_viscosity(290)


def test_d2o_modifier_endpoints():
    assert d2o_modifier(0.0) == 1.0
    assert d2o_modifier(1.0) == pytest.approx(1.23)
    assert d2o_modifier(0.09) == pytest.approx(1.0207)


def test_default_conditions_factor():
    expected = (297 / 300) * (water_viscosity(300) / water_viscosity(297)) * d2o_modifier(0.09)
    assert correction_factor(1.0, 300, 297, 0.09) == pytest.approx(expected)


def test_factor_scales_linearly_with_d():
    assert correction_factor(2.5, 300, 297, 0.09) == pytest.approx(
        2.5 * correction_factor(1.0, 300, 297, 0.09)
    )
