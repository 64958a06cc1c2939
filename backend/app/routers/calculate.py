import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.calculator.engine import calculate
from app.calculator.errors import InvalidNumericResult, NoMatchingModel
from app.data.formula_loader import FormulaTable
from app.models.formula import CalculationResult
from app.models.patient import CalculateRequest
from app.validation.calculate_request import to_patient_profile, validate_calculate_request

logger = logging.getLogger(__name__)

router = APIRouter()


def get_formula_table(request: Request) -> FormulaTable:
    return request.app.state.formula_table


@router.post(
    "/calculate",
    response_model=CalculationResult,
    responses={400: {"description": "Invalid request"},
               422: {"description": "No applicable formula"},
               500: {"description": "Calculation failed"}},
)
async def post_calculate(
    body: CalculateRequest,
    table: FormulaTable = Depends(get_formula_table),
):
    """Estimate the cumulative chance of a live birth for the given patient."""
    errors = validate_calculate_request(body)
    if errors:
        return JSONResponse(status_code=400, content={"errors": errors})

    profile = to_patient_profile(body)
    try:
        return calculate(profile, table)
    except NoMatchingModel as e:
        logger.warning("No applicable formula: %s", e)
        return JSONResponse(
            status_code=422,
            content={"error": "no applicable formula", "details": str(e)},
        )
    except InvalidNumericResult as e:
        logger.error("Calculation failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={"error": "calculation failed", "details": str(e)},
        )
