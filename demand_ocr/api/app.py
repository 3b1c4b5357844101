"""FastAPI application for the demand sheet OCR service.

Exposes the submission endpoint used by the store form, plus catalog
listing and health checks. Configuration and the Google clients are built
once per process. The Sheets sink keeps one discovery service per worker
thread, since its transport is not thread-safe.
"""

from collections.abc import Sequence
from functools import lru_cache

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from demand_ocr import __version__
from demand_ocr.extraction.catalog import Catalog
from demand_ocr.submission import (
    FAILURE_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    SubmissionFailed,
    SubmissionOrchestrator,
    SubmissionRejected,
    SubmissionRequest,
    SubmissionResult,
    SubmissionSucceeded,
    SubmissionWarning,
)
from demand_ocr.utils.config import AppConfig, load_config
from demand_ocr.utils.logger import get_logger

from .schemas import (
    CatalogResponse,
    ErrorResponse,
    HealthResponse,
    SubmitRequest,
    SuccessResponse,
    ValidationErrorResponse,
    WarningResponse,
)

logger = get_logger(__name__)

_RESPONSE_MAP = (
    (SubmissionSucceeded, SuccessResponse, 200),
    (SubmissionWarning, WarningResponse, 200),
    (SubmissionRejected, ValidationErrorResponse, 400),
    (SubmissionFailed, ErrorResponse, 500),
)

INVALID_FIELDS_MESSAGE = "Invalid type for {fields} in request body."
_BODY_FIELDS = frozenset(
    field.alias or name for name, field in SubmitRequest.model_fields.items()
)


@lru_cache(maxsize=1)
def _get_config() -> AppConfig:
    return load_config()


@lru_cache(maxsize=1)
def _get_catalog() -> Catalog:
    return Catalog.from_config(_get_config().catalog)


@lru_cache(maxsize=1)
def _get_orchestrator() -> SubmissionOrchestrator:
    """Build the shared orchestrator and its Google clients."""
    return SubmissionOrchestrator.from_config(_get_config())


app = FastAPI(
    title="Demand Sheet OCR API",
    description="Extract store demand rows from photographed sheets into Google Sheets",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_config().api.allowed_origins,
    allow_methods=["POST", "GET"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render routing errors (404, 405) in the ``{error}`` client-error shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ValidationErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


def validation_error_message(errors: Sequence[dict]) -> str:
    """Describe a rejected body: missing fields, or fields of the wrong type."""
    wrong_type = sorted(
        {
            str(err["loc"][1])
            for err in errors
            if err.get("type") != "missing"
            and len(err.get("loc", ())) > 1
            and err["loc"][1] in _BODY_FIELDS
        }
    )
    if wrong_type:
        return INVALID_FIELDS_MESSAGE.format(fields=", ".join(wrong_type))
    return MISSING_FIELDS_MESSAGE


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed bodies as a 400 with an ``{error}`` body."""
    errors = exc.errors()
    logger.info("Malformed submission body: %s", errors)
    return JSONResponse(
        status_code=400,
        content=ValidationErrorResponse(
            error=validation_error_message(errors)
        ).model_dump(),
    )


def to_response(result: SubmissionResult) -> JSONResponse:
    """Map a tagged submission result to its HTTP status and body."""
    for result_type, schema, status_code in _RESPONSE_MAP:
        if isinstance(result, result_type):
            body = schema(**result.payload())
            return JSONResponse(status_code=status_code, content=body.model_dump())
    raise TypeError(f"Unknown submission result: {type(result).__name__}")


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return service health and the active configuration summary."""
    config = _get_config()
    return HealthResponse(
        status="healthy",
        version=__version__,
        staging_mode=config.staging.mode.value,
        catalog_size=len(_get_catalog()),
    )


@app.get("/api/catalog", response_model=CatalogResponse)
def list_catalog() -> CatalogResponse:
    """List the item names the extractor recognizes, in sheet order."""
    catalog = _get_catalog()
    return CatalogResponse(items=list(catalog.items), count=len(catalog))


@app.post(
    "/api/submit",
    responses={
        200: {"model": SuccessResponse},
        400: {"model": ValidationErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def submit_demand(body: SubmitRequest) -> JSONResponse:
    """Run OCR on a demand sheet and append the recognized rows.

    Args:
        body: Store id, date and base64 image from the form.

    Returns:
        Success, warning, validation-error or server-error response.
    """
    try:
        orchestrator = _get_orchestrator()
    except Exception as exc:
        logger.error("Service is not configured: %s", exc)
        return to_response(SubmissionFailed(details=str(exc), message=FAILURE_MESSAGE))

    result = orchestrator.submit(
        SubmissionRequest(
            store_id=body.store_id,
            date=body.date,
            image=body.image,
            mime_type=body.mime_type,
            filename=body.filename,
        )
    )
    return to_response(result)
