"""
IVF Success Calculation Engine

Selects the published formula for a patient's category and evaluates its
logistic model:

    logit = intercept
          + a1 * age + a2 * age^ae
          + b1 * bmi + b2 * bmi^be
          + one coefficient per infertility factor (present / absent)
          + prior pregnancies bucket (0, 1, 2+)
          + prior live births bucket (0, 1, 2+)
    p     = 1 / (1 + e^-logit)

The result is reported as a percentage rounded UP to two decimals.
Everything here is pure and safe to call concurrently.
"""

import math

from app.calculator.errors import InvalidNumericResult, NoMatchingModel
from app.data.formula_loader import FormulaTable
from app.models.formula import CalculationResult, Formula, SelectorKey
from app.models.patient import EggSource, PatientProfile, PriorIvfCycles

# Reason tag → Formula factor attribute
REASON_FACTORS: dict[str, str] = {
    "tubal_factor": "tubal_factor",
    "male_factor_infertility": "male_factor_infertility",
    "endometriosis": "endometriosis",
    "ovulatory_disorder": "ovulatory_disorder",
    "diminished_ovarian_reserve": "diminished_ovarian_reserve",
    "uterine_factor": "uterine_factor",
    "other": "other_reason",
}

# Either tag switches on the unexplained-infertility coefficient
_UNEXPLAINED_TAGS = frozenset({"unexplained", "unknown"})

# lbs / in^2 → kg / m^2
_BMI_FACTOR = 703.0


def selector_key(profile: PatientProfile) -> SelectorKey:
    """Derive (using_own_eggs, attempted_ivf_previously, is_reason_known)."""
    using_own_eggs = profile.egg_source == EggSource.OWN
    if using_own_eggs:
        attempted = profile.prior_ivf_cycles == PriorIvfCycles.YES
    else:
        attempted = None
    # "unexplained" is a known cause; only "unknown" selects the unknown-reason formula
    is_reason_known = "unknown" not in profile.reasons
    return (using_own_eggs, attempted, is_reason_known)


def select_formula(profile: PatientProfile, table: FormulaTable) -> Formula:
    key = selector_key(profile)
    formula = table.find(key)
    if formula is None:
        raise NoMatchingModel(key)
    return formula


def compute_bmi(weight_lbs: float, height_feet: int, height_inches: int) -> float:
    total_inches = height_feet * 12 + height_inches
    return weight_lbs / total_inches ** 2 * _BMI_FACTOR


def _linear_plus_power(value: float, linear: float, power: float, exponent: float) -> float:
    return linear * value + power * math.pow(value, exponent)


def compute_logit(formula: Formula, profile: PatientProfile) -> float:
    """Linear predictor of the formula for this patient.

    Raises ZeroDivisionError, ValueError or OverflowError on undefined
    arithmetic; evaluate() turns those into InvalidNumericResult.
    """
    bmi = compute_bmi(profile.weight_lbs, profile.height_feet, profile.height_inches)
    age = float(profile.age)

    logit = formula.intercept
    logit += _linear_plus_power(
        age, formula.age_linear_coeff, formula.age_power_coeff, formula.age_power_exponent
    )
    logit += _linear_plus_power(
        bmi, formula.bmi_linear_coeff, formula.bmi_power_coeff, formula.bmi_power_exponent
    )

    for tag, attr in REASON_FACTORS.items():
        logit += getattr(formula, attr).pick(tag in profile.reasons)
    logit += formula.unexplained_infertility.pick(
        not _UNEXPLAINED_TAGS.isdisjoint(profile.reasons)
    )

    logit += formula.prior_pregnancies.pick(profile.prior_pregnancies)
    logit += formula.prior_live_births.pick(profile.prior_live_births)
    return logit


def logistic(logit: float) -> float:
    if logit >= 0:
        return 1.0 / (1.0 + math.exp(-logit))
    z = math.exp(logit)
    return z / (1.0 + z)


def round_up_percent(probability: float) -> float:
    """Probability → percent, rounded up (never to nearest) to 2 decimals."""
    return math.ceil(probability * 10000.0) / 100.0


def evaluate(formula: Formula, profile: PatientProfile) -> CalculationResult:
    try:
        logit = compute_logit(formula, profile)
    except (ZeroDivisionError, ValueError, OverflowError) as e:
        raise InvalidNumericResult(
            f"formula {formula.label!r} is undefined for this patient: {e}"
        ) from e
    if not math.isfinite(logit):
        raise InvalidNumericResult(f"formula {formula.label!r} produced logit {logit}")

    probability = logistic(logit)
    if not math.isfinite(probability):
        raise InvalidNumericResult(f"formula {formula.label!r} produced probability {probability}")

    return CalculationResult(cumulative_chance_percent=round_up_percent(probability))


def calculate(profile: PatientProfile, table: FormulaTable) -> CalculationResult:
    """Select the patient's formula and evaluate it.

    Raises NoMatchingModel or InvalidNumericResult; never substitutes a value.
    """
    return evaluate(select_formula(profile, table), profile)
