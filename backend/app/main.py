import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import CORS_ORIGINS, FORMULAS_CSV_PATH, HOST, LOG_LEVEL, PORT
from app.data.formula_loader import FormulaTable, load_formula_table
from app.routers import calculate

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    formula_table: FormulaTable | None = None,
    formulas_path: str | None = None,
) -> FastAPI:
    """Build the API. Pass `formula_table` to skip loading from disk."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # TableLoadFailure propagates and aborts startup
        table = formula_table
        if table is None:
            table = load_formula_table(formulas_path or FORMULAS_CSV_PATH)
        app.state.formula_table = table
        logger.info("IVF calculator ready with %d formulas", len(table))
        yield

    app = FastAPI(title="IVF Success Calculator API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request_format(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "invalid request format",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    app.include_router(calculate.router, prefix="/api", tags=["calculate"])

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("Server starting on port %d", PORT)
    uvicorn.run(app, host=HOST, port=PORT)
