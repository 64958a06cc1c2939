"""
Shared fixtures: synthetic coefficient tables and patient profiles.

The synthetic tables use simple coefficients so expected results can be
reconstructed by hand in each test.
"""
import pandas as pd
import pytest

from app.data.formula_loader import REQUIRED_COLUMNS, FormulaTable, load_formula_table
from app.models.patient import EggSource, PatientProfile, PriorIvfCycles


def _formula_row(own: str, attempted: str, known: str, label: str,
                 coeffs: dict | None = None) -> dict:
    row = {col: "0" for col in REQUIRED_COLUMNS}
    row["param_using_own_eggs"] = own
    row["param_attempted_ivf_previously"] = attempted
    row["param_is_reason_for_infertility_known"] = known
    row["cdc_formula"] = label
    row["formula_age_power_factor"] = "1"
    row["formula_bmi_power_factor"] = "1"
    for col, value in (coeffs or {}).items():
        row[col] = str(value)
    return row


@pytest.fixture
def formula_row():
    """Factory for one CSV row; every coefficient defaults to 0."""
    return _formula_row


@pytest.fixture
def full_coverage_rows():
    """One row per patient category, told apart by label and intercept."""
    return [
        _formula_row("TRUE", "FALSE", "TRUE", "own-first-known", {"formula_intercept": 0.1}),
        _formula_row("TRUE", "FALSE", "FALSE", "own-first-unknown", {"formula_intercept": 0.2}),
        _formula_row("TRUE", "TRUE", "TRUE", "own-repeat-known", {"formula_intercept": 0.3}),
        _formula_row("TRUE", "TRUE", "FALSE", "own-repeat-unknown", {"formula_intercept": 0.4}),
        _formula_row("FALSE", "", "TRUE", "donor-known", {"formula_intercept": 0.5}),
        _formula_row("FALSE", "N/A", "FALSE", "donor-unknown", {"formula_intercept": 0.6}),
    ]


@pytest.fixture
def write_formulas(tmp_path):
    """Write rows to a CSV file and return its path."""
    def _write(rows, name="ivf_success_formulas.csv"):
        path = tmp_path / name
        pd.DataFrame(rows, columns=REQUIRED_COLUMNS).to_csv(path, index=False)
        return path
    return _write


@pytest.fixture
def formula_table(full_coverage_rows, write_formulas) -> FormulaTable:
    return load_formula_table(write_formulas(full_coverage_rows))


@pytest.fixture
def make_profile():
    """Factory for a 32 year old, 5'6", 141 lbs patient; override any field."""
    def _make(**overrides) -> PatientProfile:
        fields = dict(
            age=32,
            weight_lbs=141,
            height_feet=5,
            height_inches=6,
            prior_ivf_cycles=PriorIvfCycles.NO,
            prior_pregnancies=1,
            prior_live_births=1,
            reasons=frozenset({"endometriosis"}),
            egg_source=EggSource.OWN,
        )
        fields.update(overrides)
        return PatientProfile(**fields)
    return _make
