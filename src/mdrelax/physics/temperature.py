"""Correction of the simulated isotropic diffusion constant to experiment.

Rotational diffusion scales as T/eta(T). Heavy water is more viscous than
light water by a factor of about 1.23, applied linearly in the D2O fraction.
See Garcia de la Torre et al., J Magn Reson (2000) and Wong & Case,
J Phys Chem B (2008).
"""

import numpy as np

# Water viscosity polynomial in Celsius, highest order first (mPa s).
VISCOSITY_COEFFS = (-9.222e-6, 1.0751e-3, -5.65e-2, 1.7753)
D2O_VISCOSITY_RATIO = 1.23


def water_viscosity(temperature: float) -> float:
    """Viscosity of water at ``temperature`` Kelvin."""
    celsius = temperature - 273
    return float(np.polyval(VISCOSITY_COEFFS, celsius))


def d2o_modifier(ratio: float) -> float:
    """Viscosity multiplier for a D2O mole fraction ``ratio``."""
    return D2O_VISCOSITY_RATIO * ratio + (1.0 - ratio)


def correction_factor(d_sim: float, temp_sim: float, temp_exp: float, d2o_ratio: float) -> float:
    """Map a diffusion constant from simulation to experimental conditions.

    Parameters
    ----------
    d_sim : float
        Diffusion constant at simulation conditions. Pass 1.0 to obtain the
        scalar multiplier.
    temp_sim, temp_exp : float
        Simulation and experimental temperatures in Kelvin.
    d2o_ratio : float
        D2O fraction of the experimental solvent.

    Returns
    -------
    float
        ``d_sim * (T_exp / T_sim) * (eta(T_sim) / eta(T_exp)) * D2Omod(ratio)``
    """
    return (
        d_sim
        * (temp_exp / temp_sim)
        * (water_viscosity(temp_sim) / water_viscosity(temp_exp))
        * d2o_modifier(d2o_ratio)
    )
