from pydantic import BaseModel, ConfigDict, Field

# (using_own_eggs, attempted_ivf_previously, is_reason_known)
SelectorKey = tuple[bool, bool | None, bool]


class FactorPair(BaseModel):
    """Coefficient added when a diagnosis is present (true) or absent (false)."""

    model_config = ConfigDict(frozen=True)

    true_value: float = 0.0
    false_value: float = 0.0

    def pick(self, present: bool) -> float:
        return self.true_value if present else self.false_value


class CountBuckets(BaseModel):
    """Coefficients for a count bucketed into 0, 1 and 2+."""

    model_config = ConfigDict(frozen=True)

    zero: float = 0.0
    one: float = 0.0
    two_plus: float = 0.0

    def pick(self, count: int) -> float:
        if count == 0:
            return self.zero
        elif count == 1:
            return self.one
        return self.two_plus


class Formula(BaseModel):
    """One row of the published success-rate coefficient table."""

    model_config = ConfigDict(frozen=True)

    using_own_eggs: bool
    attempted_ivf_previously: bool | None  # None for donor-egg formulas
    is_reason_known: bool
    label: str = ""

    intercept: float = 0.0
    age_linear_coeff: float = 0.0
    age_power_coeff: float = 0.0
    age_power_exponent: float = 0.0
    bmi_linear_coeff: float = 0.0
    bmi_power_coeff: float = 0.0
    bmi_power_exponent: float = 0.0

    tubal_factor: FactorPair = FactorPair()
    male_factor_infertility: FactorPair = FactorPair()
    endometriosis: FactorPair = FactorPair()
    ovulatory_disorder: FactorPair = FactorPair()
    diminished_ovarian_reserve: FactorPair = FactorPair()
    uterine_factor: FactorPair = FactorPair()
    other_reason: FactorPair = FactorPair()
    unexplained_infertility: FactorPair = FactorPair()

    prior_pregnancies: CountBuckets = CountBuckets()
    prior_live_births: CountBuckets = CountBuckets()

    @property
    def key(self) -> SelectorKey:
        return (self.using_own_eggs, self.attempted_ivf_previously, self.is_reason_known)


class CalculationResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    cumulative_chance_percent: float = Field(alias="cumulativeChancePercent")
