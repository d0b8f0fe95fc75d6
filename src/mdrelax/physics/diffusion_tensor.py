"""Global rotational-diffusion summary: schema, parser, symmetric-top classification.

The global-diffusion estimator writes two files per output prefix:

- ``<prefix>-aniso2.dat``: a short header of labelled lines (``Diso``,
  ``Dani_L``, ``Drho_L``, ``Dani_S``, ``Drho_S``) whose value sits at a fixed
  offset from the end of the line.
- ``<prefix>-aniso_q.dat``: one row per time interval; fields 2-5 of each row
  are the principal-axis-frame quaternion ``w x y z``.

All label strings and field offsets live in ``SUMMARY_SCHEMA``.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from mdrelax.contracts import DataInconsistency, assert_classifiable, assert_finite_fields

logger = logging.getLogger(__name__)

# label -> field index counted from the end of the matching line
SUMMARY_SCHEMA = {
    "Diso": -4,
    "Dani_L": -3,
    "Drho_L": -3,
    "Dani_S": -3,
    "Drho_S": -3,
}
SUMMARY_HEADER_LINES = 20
# The summary reports Diso in s^-1; the pipeline uses ps^-1.
DISO_TO_PER_PS = 1.0e-12
QUATERNION_FIELDS = slice(1, 5)


@dataclass(frozen=True)
class DiffusionTensor:
    """Symmetric-top views of a fitted global rotational-diffusion tensor.

    ``diso`` is in ps^-1 at simulation conditions (no temperature correction).
    """
    diso: float
    dani_long: float
    drho_long: float
    dani_short: float
    drho_short: float


@dataclass(frozen=True)
class SymmetryAxis:
    """Outcome of classifying the tensor as a long- or short-axis symmetric top."""
    axis: str
    dani: float

    @property
    def description(self) -> str:
        if self.axis == "z":
            return "long axis ellipsoid, pointing along Dz"
        return "short axis ellipsoid, pointing along Dx"


def _label_pattern(label: str) -> re.Pattern:
    return re.compile(rf"(?<![\w]){re.escape(label)}(?![\w])")


def parse_diffusion_summary(path: Path | str) -> DiffusionTensor:
    """Parse the labelled header of a diffusion summary into a DiffusionTensor.

    Only the first ``SUMMARY_HEADER_LINES`` lines are searched. For each label
    the first line that contains it as a whole word is used.

    Raises
    ------
    DataInconsistency
        If a label is missing or its field is not numeric.
    """
    path = Path(path)
    with open(path) as f:
        header = [line for _, line in zip(range(SUMMARY_HEADER_LINES), f)]

    values = {}
    for label, offset in SUMMARY_SCHEMA.items():
        pattern = _label_pattern(label)
        line = next((l for l in header if pattern.search(l)), None)
        if line is None:
            raise DataInconsistency(f"Label '{label}' not found in the header of {path}")
        fields = line.split()
        try:
            values[label] = float(fields[offset])
        except (IndexError, ValueError):
            raise DataInconsistency(
                f"Cannot read a number for '{label}' at field {offset} of line: {line.strip()}"
            ) from None

    assert_finite_fields(values, str(path))
    logger.debug("Parsed diffusion summary %s: %s", path, values)

    return DiffusionTensor(
        diso=values["Diso"] * DISO_TO_PER_PS,
        dani_long=values["Dani_L"],
        drho_long=values["Drho_L"],
        dani_short=values["Dani_S"],
        drho_short=values["Drho_S"],
    )


def read_first_quaternion(path: Path | str) -> tuple[float, float, float, float]:
    """Quaternion ``(w, x, y, z)`` of the first time interval in ``path``.

    Comment lines starting with ``#`` or ``@`` are skipped.

    Raises
    ------
    DataInconsistency
        If the file has no data row or the row has fewer than five numeric fields.
    """
    path = Path(path)
    with open(path) as f:
        row = next((l for l in f if l.strip() and l.lstrip()[0] not in "#@"), None)
    if row is None:
        raise DataInconsistency(f"No data rows in quaternion summary {path}")

    try:
        q = np.array([float(v) for v in row.split()[QUATERNION_FIELDS]])
    except ValueError:
        raise DataInconsistency(f"Non-numeric quaternion in {path}: {row.strip()}") from None
    if q.shape != (4,):
        raise DataInconsistency(f"Expected 4 quaternion fields in {path}, got: {row.strip()}")

    norm = np.linalg.norm(q)
    if abs(norm - 1.0) > 1.0e-3:
        logger.warning("Quaternion from %s is not normalised (|q| = %.4f)", path, norm)

    return tuple(float(v) for v in q)


def classify_symmetry_axis(tensor: DiffusionTensor) -> SymmetryAxis:
    """Pick the symmetric-top approximation of ``tensor``.

    With D_x < D_y < D_z, a long-axis top (Drho_L < 1) has its unique axis
    along z; otherwise a short-axis top (Drho_S < 1) has it along x. The
    quaternion frame is never permuted; the relaxation calculator accounts
    for the axis through the anisotropy value.

    Raises
    ------
    DataInconsistency
        If neither rhombicity is below one.
    """
    assert_classifiable(tensor.drho_long, tensor.drho_short)
    if tensor.drho_long < 1.0:
        return SymmetryAxis(axis="z", dani=tensor.dani_long)
    return SymmetryAxis(axis="x", dani=tensor.dani_short)
