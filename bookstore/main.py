"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookstore.api.routes import health_router
from bookstore.api.routes import router as api_router
from bookstore.core.config import settings
from bookstore.core.exceptions import BookstoreError
from bookstore.core.gate import enforce_gate
from bookstore.core.logging import configure_logging
from bookstore.schemas.common import ApiResponse
from bookstore.services.filtering import build_sort_field_table

configure_logging()
logger = logging.getLogger(__name__)

INVALID_REQUEST_MESSAGE = "Invalid request."
INTERNAL_ERROR_MESSAGE = "An internal server error occurred."

app = FastAPI(
    title="Bookstore API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    dependencies=[Depends(enforce_gate)],
)

# Read-only for the process lifetime; injected into each BookQueryEngine.
app.state.sort_fields = build_sort_field_table()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %s (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


def _envelope(status_code: int, message: str, data=None) -> JSONResponse:
    body = ApiResponse.error(message, data).model_dump(by_alias=True)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


@app.exception_handler(BookstoreError)
async def handle_bookstore_error(request: Request, exc: BookstoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning(
            "%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message
        )
    return _envelope(exc.status_code, exc.message, exc.field_errors)


def _field_name(loc: tuple) -> str:
    # Drop the "body"/"query"/"path" source marker.
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors: dict[str, str] = {}
    for error in exc.errors():
        field_errors.setdefault(_field_name(tuple(error.get("loc", ()))), error.get("msg", ""))
    logger.warning("Request validation failed for %s: %s", request.url.path, field_errors)
    message = next(iter(field_errors.values())) if len(field_errors) == 1 else INVALID_REQUEST_MESSAGE
    return _envelope(400, message, field_errors)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = f"{INTERNAL_ERROR_MESSAGE} {exc}" if settings.DEBUG else INTERNAL_ERROR_MESSAGE
    return _envelope(500, message)


app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(health_router, prefix="/health", tags=["health"])


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Bookstore API"}
