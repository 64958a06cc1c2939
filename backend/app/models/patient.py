from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EggSource(str, Enum):
    OWN = "own"
    DONOR = "donor"


class PriorIvfCycles(str, Enum):
    YES = "yes"
    NO = "no"
    NOT_APPLICABLE = "not_applicable"  # donor eggs only


# Reason tags accepted on the wire. "unknown" means no cause was identified;
# "unexplained" is a diagnosed cause of its own.
INFERTILITY_REASONS = frozenset({
    "tubal_factor",
    "male_factor_infertility",
    "endometriosis",
    "ovulatory_disorder",
    "diminished_ovarian_reserve",
    "uterine_factor",
    "other",
    "unexplained",
    "unknown",
})


class PatientProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    age: int
    weight_lbs: float
    height_feet: int
    height_inches: int = 0
    prior_ivf_cycles: PriorIvfCycles
    prior_pregnancies: int = 0
    prior_live_births: int = 0
    reasons: frozenset[str]
    egg_source: EggSource


class CalculateRequest(BaseModel):
    """Body of POST /api/calculate. Range checks live in app.validation."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "age": 32,
                "weightLbs": 141,
                "heightFt": 5,
                "heightIn": 6,
                "priorIvfCycles": "no",
                "priorPregnancies": 1,
                "priorBirths": 1,
                "reasons": ["endometriosis", "ovulatory_disorder"],
                "eggSource": "own",
            }
        },
    )

    age: int
    weight_lbs: float = Field(alias="weightLbs", allow_inf_nan=False)
    height_ft: int = Field(alias="heightFt")
    height_in: int = Field(0, alias="heightIn")
    prior_ivf_cycles: str | None = Field(None, alias="priorIvfCycles")
    prior_pregnancies: int = Field(0, alias="priorPregnancies")
    prior_births: int = Field(0, alias="priorBirths")
    reasons: list[str]
    egg_source: str = Field(alias="eggSource")
