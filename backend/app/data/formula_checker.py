"""
IVF Success Formula Checker

Loads a coefficient CSV the same way the API does at startup and prints
which patient categories it covers. Use it to vet a new table before
deploying it.

Run directly:
    python -m app.data.formula_checker [path/to/ivf_success_formulas.csv]
"""

import sys

from app.calculator.errors import TableLoadFailure
from app.config import FORMULAS_CSV_PATH
from app.data.formula_loader import FormulaTable, load_formula_table


def _describe_key(key) -> str:
    using_own_eggs, attempted, is_reason_known = key
    eggs = "own eggs" if using_own_eggs else "donor eggs"
    if attempted is None:
        ivf = "IVF history n/a"
    else:
        ivf = "prior IVF" if attempted else "no prior IVF"
    reason = "known reason" if is_reason_known else "unknown reason"
    return f"{eggs:10s} | {ivf:15s} | {reason}"


def check_table(table: FormulaTable) -> list:
    """Print the table's coverage and return the missing selector keys."""
    for formula in table.all_models():
        print(f"  {_describe_key(formula.key)}  →  {formula.label or '(no label)'}")

    missing = table.missing_keys()
    if missing:
        print(f"\n{len(missing)} categories without a formula:")
        for key in missing:
            print(f"  {_describe_key(key)}")
    else:
        print("\nAll patient categories covered.")
    return missing


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    path = argv[0] if argv else FORMULAS_CSV_PATH

    print("IVF Success Formula Checker")
    print(f"  Table: {path}")
    print()

    try:
        table = load_formula_table(path)
    except TableLoadFailure as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Loaded {len(table)} formulas")
    missing = check_table(table)
    return 1 if missing else 0


if __name__ == "__main__":
    sys.exit(main())
