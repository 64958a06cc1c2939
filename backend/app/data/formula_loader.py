"""
IVF Success Formula Loader

Loads ivf_success_formulas.csv (one row of published logistic-regression
coefficients per patient category) into an immutable FormulaTable.

The table is built once at startup and only read afterwards. Any problem
with the file is raised as TableLoadFailure; there is no fallback formula.
"""

import csv
import logging
from types import MappingProxyType

import pandas as pd

from app.calculator.errors import TableLoadFailure
from app.models.formula import CountBuckets, FactorPair, Formula, SelectorKey

logger = logging.getLogger(__name__)

_BOOL_COLUMNS = {
    "using_own_eggs": "param_using_own_eggs",
    "is_reason_known": "param_is_reason_for_infertility_known",
}
_ATTEMPTED_IVF_COLUMN = "param_attempted_ivf_previously"
_LABEL_COLUMN = "cdc_formula"

_SCALAR_COLUMNS = {
    "intercept": "formula_intercept",
    "age_linear_coeff": "formula_age_linear_coefficient",
    "age_power_coeff": "formula_age_power_coefficient",
    "age_power_exponent": "formula_age_power_factor",
    "bmi_linear_coeff": "formula_bmi_linear_coefficient",
    "bmi_power_coeff": "formula_bmi_power_coefficient",
    "bmi_power_exponent": "formula_bmi_power_factor",
}

# Formula attribute → CSV column stem (formula_<stem>_true_value / _false_value)
_FACTOR_COLUMNS = {
    "tubal_factor": "tubal_factor",
    "male_factor_infertility": "male_factor_infertility",
    "endometriosis": "endometriosis",
    "ovulatory_disorder": "ovulatory_disorder",
    "diminished_ovarian_reserve": "diminished_ovarian_reserve",
    "uterine_factor": "uterine_factor",
    "other_reason": "other_reason",
    "unexplained_infertility": "unexplained_infertility",
}

# Formula attribute → CSV column stem (formula_<stem>_{0,1,2+}_value)
_BUCKET_COLUMNS = {
    "prior_pregnancies": "prior_pregnancies",
    "prior_live_births": "prior_live_births",
}

# Every category the published table is expected to cover.
EXPECTED_KEYS: tuple[SelectorKey, ...] = (
    (True, False, True),
    (True, False, False),
    (True, True, True),
    (True, True, False),
    (False, None, True),
    (False, None, False),
)


def _numeric_columns() -> list[str]:
    cols = list(_SCALAR_COLUMNS.values())
    for stem in _FACTOR_COLUMNS.values():
        cols += [f"formula_{stem}_true_value", f"formula_{stem}_false_value"]
    for stem in _BUCKET_COLUMNS.values():
        cols += [f"formula_{stem}_0_value", f"formula_{stem}_1_value", f"formula_{stem}_2+_value"]
    return cols


NUMERIC_COLUMNS = _numeric_columns()
REQUIRED_COLUMNS = (
    list(_BOOL_COLUMNS.values()) + [_ATTEMPTED_IVF_COLUMN, _LABEL_COLUMN] + NUMERIC_COLUMNS
)


class FormulaTable:
    """Immutable, ordered collection of formulas with at most one per selector key."""

    def __init__(self, formulas):
        formulas = tuple(formulas)
        if not formulas:
            raise TableLoadFailure("formula table is empty")

        by_key: dict[SelectorKey, Formula] = {}
        for index, formula in enumerate(formulas):
            if formula.key in by_key:
                raise TableLoadFailure(
                    f"duplicate formula for key {formula.key} "
                    f"(row {index + 1}, label {formula.label!r})"
                )
            by_key[formula.key] = formula

        self._formulas = formulas
        self._by_key = MappingProxyType(by_key)

    def all_models(self) -> tuple[Formula, ...]:
        return self._formulas

    def find(self, key: SelectorKey) -> Formula | None:
        return self._by_key.get(key)

    def missing_keys(self) -> list[SelectorKey]:
        return [key for key in EXPECTED_KEYS if key not in self._by_key]

    def __len__(self) -> int:
        return len(self._formulas)

    def __iter__(self):
        return iter(self._formulas)


def _parse_bool(val: str) -> bool:
    """CSV booleans are the literal TRUE, compared case-insensitively."""
    return val.strip().upper() == "TRUE"


def _parse_attempted_ivf(val: str) -> bool | None:
    """Blank or N/A means the dimension does not apply (donor eggs)."""
    val = val.strip()
    if val == "" or val.upper() == "N/A":
        return None
    return _parse_bool(val)


def _check_field_counts(path) -> None:
    """Every record must have exactly as many fields as the header.

    pandas pads short rows with empty strings, which would then load as
    zero coefficients.
    """
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)
        header = next(reader, [])
        for record in reader:
            if not record:
                continue
            if len(record) != len(header):
                raise TableLoadFailure(
                    f"formula table {path} line {reader.line_num} has {len(record)} "
                    f"fields, expected {len(header)}"
                )


def _read_csv(path) -> pd.DataFrame:
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
        _check_field_counts(path)
    except FileNotFoundError as e:
        raise TableLoadFailure(f"formula table not found at {path}") from e
    except (pd.errors.EmptyDataError, pd.errors.ParserError, csv.Error,
            UnicodeDecodeError, OSError) as e:
        raise TableLoadFailure(f"could not read formula table {path}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise TableLoadFailure(f"formula table {path} is missing columns: {', '.join(missing)}")
    return df


def _coerce_numeric(df: pd.DataFrame) -> pd.DataFrame:
    """Parse coefficient columns as floats; unparsable cells become 0.0."""
    df = df.copy()
    for col in NUMERIC_COLUMNS:
        raw = df[col].str.strip()
        parsed = pd.to_numeric(raw, errors="coerce")
        bad = parsed.isna() & (raw.str.upper() != "NAN")
        for row in df.index[bad]:
            logger.warning(
                "Unparsable value %r in column %s (row %d); using 0.0",
                df.at[row, col], col, row + 1,
            )
        df[col] = parsed.where(~bad, 0.0).astype(float)
    return df


def _row_to_formula(row: pd.Series) -> Formula:
    using_own_eggs = _parse_bool(row[_BOOL_COLUMNS["using_own_eggs"]])
    attempted = _parse_attempted_ivf(row[_ATTEMPTED_IVF_COLUMN])
    if attempted is None and using_own_eggs:
        logger.warning(
            "Own-egg formula %r has no attempted-IVF value and can never be selected",
            row[_LABEL_COLUMN],
        )

    fields = {name: float(row[col]) for name, col in _SCALAR_COLUMNS.items()}
    for name, stem in _FACTOR_COLUMNS.items():
        fields[name] = FactorPair(
            true_value=float(row[f"formula_{stem}_true_value"]),
            false_value=float(row[f"formula_{stem}_false_value"]),
        )
    for name, stem in _BUCKET_COLUMNS.items():
        fields[name] = CountBuckets(
            zero=float(row[f"formula_{stem}_0_value"]),
            one=float(row[f"formula_{stem}_1_value"]),
            two_plus=float(row[f"formula_{stem}_2+_value"]),
        )

    return Formula(
        using_own_eggs=using_own_eggs,
        attempted_ivf_previously=attempted,
        is_reason_known=_parse_bool(row[_BOOL_COLUMNS["is_reason_known"]]),
        label=row[_LABEL_COLUMN].strip(),
        **fields,
    )


def load_formula_table(path) -> FormulaTable:
    """Load and validate the coefficient CSV at `path`."""
    df = _coerce_numeric(_read_csv(path))
    table = FormulaTable(_row_to_formula(row) for _, row in df.iterrows())

    logger.info("Loaded %d IVF success formulas from %s", len(table), path)
    for key in table.missing_keys():
        logger.warning("No formula covers selector key %s", key)
    return table
