"""Error types raised while loading formulas or computing a success estimate."""


class CalculatorError(Exception):
    pass


class TableLoadFailure(CalculatorError):
    """The coefficient table could not be built. Fatal at startup."""


class CalculationError(CalculatorError):
    pass


class NoMatchingModel(CalculationError):
    """No formula exists for the patient's selector key."""

    def __init__(self, key):
        self.key = key
        using_own_eggs, attempted_ivf_previously, is_reason_known = key
        super().__init__(
            "no formula for using_own_eggs="
            f"{using_own_eggs}, attempted_ivf_previously={attempted_ivf_previously}, "
            f"is_reason_known={is_reason_known}"
        )


class InvalidNumericResult(CalculationError):
    """An intermediate or final value was NaN, infinite or undefined."""
