from app.models.patient import (
    INFERTILITY_REASONS,
    CalculateRequest,
    EggSource,
    PatientProfile,
    PriorIvfCycles,
)

AGE_RANGE = (20, 50)
WEIGHT_LBS_RANGE = (80, 300)
HEIGHT_FT_RANGE = (4, 6)
HEIGHT_IN_RANGE = (0, 11)


def _out_of_range(value, bounds: tuple[int, int]) -> bool:
    low, high = bounds
    return value < low or value > high


def _normalize_ivf_cycles(val: str | None) -> str:
    if val is None or val.strip() == "":
        return PriorIvfCycles.NOT_APPLICABLE.value
    return val.strip()


def validate_calculate_request(req: CalculateRequest) -> dict[str, str]:
    """Return field → message for every invalid field; empty when valid."""
    errors: dict[str, str] = {}

    if _out_of_range(req.age, AGE_RANGE):
        errors["age"] = "must be between %d and %d" % AGE_RANGE
    if _out_of_range(req.weight_lbs, WEIGHT_LBS_RANGE):
        errors["weightLbs"] = "must be between %d and %d" % WEIGHT_LBS_RANGE
    if _out_of_range(req.height_ft, HEIGHT_FT_RANGE):
        errors["heightFt"] = "must be between %d and %d" % HEIGHT_FT_RANGE
    if _out_of_range(req.height_in, HEIGHT_IN_RANGE):
        errors["heightIn"] = "must be between %d and %d" % HEIGHT_IN_RANGE

    if req.prior_pregnancies < 0:
        errors["priorPregnancies"] = "must be 0 or more"
    birth_errors = []
    if req.prior_births < 0:
        birth_errors.append("must be 0 or more")
    if req.prior_births > req.prior_pregnancies:
        birth_errors.append(
            "cannot exceed the number of prior pregnancies (even in the case of twins)"
        )
    if birth_errors:
        errors["priorBirths"] = "; ".join(birth_errors)

    egg_sources = {e.value for e in EggSource}
    if req.egg_source not in egg_sources:
        errors["eggSource"] = "must be 'own' or 'donor'"

    ivf_cycles = _normalize_ivf_cycles(req.prior_ivf_cycles)
    if req.egg_source == EggSource.OWN.value:
        if ivf_cycles not in (PriorIvfCycles.YES.value, PriorIvfCycles.NO.value):
            errors["priorIvfCycles"] = "must be 'yes' or 'no' when planning to use 'own' eggs"
    elif ivf_cycles not in {c.value for c in PriorIvfCycles}:
        errors["priorIvfCycles"] = "must be 'yes', 'no' or 'not_applicable'"

    if not req.reasons:
        errors["reasons"] = "at least one reason must be selected"
    else:
        for reason in req.reasons:
            if reason not in INFERTILITY_REASONS:
                errors["reasons"] = "invalid reason: " + reason
                break

    return errors


def to_patient_profile(req: CalculateRequest) -> PatientProfile:
    """Build the calculator input from a request that passed validation."""
    return PatientProfile(
        age=req.age,
        weight_lbs=req.weight_lbs,
        height_feet=req.height_ft,
        height_inches=req.height_in,
        prior_ivf_cycles=PriorIvfCycles(_normalize_ivf_cycles(req.prior_ivf_cycles)),
        prior_pregnancies=req.prior_pregnancies,
        prior_live_births=req.prior_births,
        reasons=frozenset(req.reasons),
        egg_source=EggSource(req.egg_source),
    )
