"""
Unit Tests for the Formula Loader

CSV parsing rules and FormulaTable invariants.
"""
import logging

import pytest
from pydantic import ValidationError

from app.calculator.errors import TableLoadFailure
from app.data.formula_loader import EXPECTED_KEYS, FormulaTable, load_formula_table
from app.models.formula import Formula


class TestLoadFormulaTable:

    def test_rows_kept_in_file_order(self, formula_table, full_coverage_rows):
        labels = [f.label for f in formula_table.all_models()]
        assert labels == [row["cdc_formula"] for row in full_coverage_rows]
        assert len(formula_table) == 6

    def test_full_table_has_no_gaps(self, formula_table):
        assert formula_table.missing_keys() == []

    def test_numeric_columns_parsed(self, formula_row, write_formulas):
        row = formula_row("TRUE", "FALSE", "TRUE", "1-3", {
            "formula_intercept": "-6.8392",
            "formula_age_power_factor": "2.763",
            "formula_tubal_factor_true_value": "0.15",
            "formula_tubal_factor_false_value": "-0.05",
            "formula_prior_pregnancies_2+_value": "0.07",
            "formula_prior_live_births_1_value": "0.3",
        })
        formula = load_formula_table(write_formulas([row])).all_models()[0]

        assert formula.intercept == pytest.approx(-6.8392)
        assert formula.age_power_exponent == pytest.approx(2.763)
        assert formula.tubal_factor.true_value == pytest.approx(0.15)
        assert formula.tubal_factor.false_value == pytest.approx(-0.05)
        assert formula.prior_pregnancies.two_plus == pytest.approx(0.07)
        assert formula.prior_live_births.one == pytest.approx(0.3)
        assert formula.label == "1-3"

    @pytest.mark.parametrize("raw,expected", [
        ("TRUE", True),
        ("true", True),
        (" True ", True),
        ("FALSE", False),
        ("yes", False),
        ("1", False),
    ])
    def test_booleans_compare_against_literal_true(self, formula_row, write_formulas, raw, expected):
        row = formula_row("TRUE", "FALSE", raw, "x")
        formula = load_formula_table(write_formulas([row])).all_models()[0]
        assert formula.is_reason_known is expected

    @pytest.mark.parametrize("raw", ["", "N/A", "n/a", "  "])
    def test_donor_row_without_ivf_flag_is_not_applicable(self, formula_row, write_formulas, raw):
        row = formula_row("FALSE", raw, "TRUE", "donor")
        formula = load_formula_table(write_formulas([row])).all_models()[0]
        assert formula.attempted_ivf_previously is None
        assert formula.key == (False, None, True)

    def test_own_egg_false_flag_stays_false(self, formula_table):
        first = formula_table.all_models()[0]
        assert first.attempted_ivf_previously is False

    def test_unparsable_number_defaults_to_zero(self, formula_row, write_formulas, caplog):
        row = formula_row("TRUE", "FALSE", "TRUE", "x", {
            "formula_intercept": "not-a-number",
            "formula_age_linear_coefficient": "",
            "formula_bmi_linear_coefficient": "0.5",
        })
        with caplog.at_level(logging.WARNING, logger="app.data.formula_loader"):
            formula = load_formula_table(write_formulas([row])).all_models()[0]

        assert formula.intercept == 0.0
        assert formula.age_linear_coeff == 0.0
        assert formula.bmi_linear_coeff == pytest.approx(0.5)
        assert "formula_intercept" in caplog.text

    def test_missing_file_fails(self, tmp_path):
        with pytest.raises(TableLoadFailure, match="not found"):
            load_formula_table(tmp_path / "nope.csv")

    def test_empty_file_fails(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(TableLoadFailure):
            load_formula_table(path)

    def test_header_only_fails(self, write_formulas):
        with pytest.raises(TableLoadFailure, match="empty"):
            load_formula_table(write_formulas([]))

    def test_missing_column_fails(self, tmp_path):
        path = tmp_path / "partial.csv"
        path.write_text(
            "param_using_own_eggs,param_attempted_ivf_previously,cdc_formula\n"
            "TRUE,FALSE,1-3\n"
        )
        with pytest.raises(TableLoadFailure, match="formula_intercept"):
            load_formula_table(path)

    def test_truncated_row_fails(self, full_coverage_rows, write_formulas):
        path = write_formulas(full_coverage_rows[:1])
        with open(path, "a") as f:
            f.write("FALSE\n")
        with pytest.raises(TableLoadFailure, match="line 3 has 1 fields"):
            load_formula_table(path)

    def test_row_with_extra_fields_fails(self, full_coverage_rows, write_formulas):
        path = write_formulas(full_coverage_rows[:1])
        with open(path) as f:
            first_row = f.read().splitlines()[1]
        with open(path, "a") as f:
            f.write(first_row + ",0.5\n")
        with pytest.raises(TableLoadFailure):
            load_formula_table(path)

    def test_blank_lines_are_ignored(self, full_coverage_rows, write_formulas):
        path = write_formulas(full_coverage_rows)
        with open(path, "a") as f:
            f.write("\n\n")
        assert len(load_formula_table(path)) == 6

    def test_duplicate_key_fails(self, formula_row, write_formulas):
        rows = [
            formula_row("TRUE", "FALSE", "TRUE", "a"),
            formula_row("true", "false", "true", "b"),
        ]
        with pytest.raises(TableLoadFailure, match="duplicate"):
            load_formula_table(write_formulas(rows))

    def test_gaps_are_reported(self, full_coverage_rows, write_formulas, caplog):
        with caplog.at_level(logging.WARNING, logger="app.data.formula_loader"):
            table = load_formula_table(write_formulas(full_coverage_rows[:4]))
        assert table.missing_keys() == [(False, None, True), (False, None, False)]
        assert "No formula covers" in caplog.text


class TestFormulaTable:

    def test_empty_table_rejected(self):
        with pytest.raises(TableLoadFailure):
            FormulaTable([])

    def test_find_by_key(self, formula_table):
        assert formula_table.find((True, True, False)).label == "own-repeat-unknown"
        assert formula_table.find((False, False, True)) is None

    def test_all_models_is_read_only(self, formula_table):
        models = formula_table.all_models()
        assert isinstance(models, tuple)
        with pytest.raises(ValidationError):
            models[0].intercept = 99.0

    def test_expected_keys_cover_six_categories(self):
        assert len(set(EXPECTED_KEYS)) == 6

    def test_accepts_formulas_built_in_code(self):
        table = FormulaTable([
            Formula(using_own_eggs=False, attempted_ivf_previously=None, is_reason_known=True),
        ])
        assert len(table) == 1
        assert len(table.missing_keys()) == 5
