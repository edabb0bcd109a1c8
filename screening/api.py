"""FastAPI app exposing the spreadsheet-backed screening endpoints.

Endpoints:
- GET  /fetch-sheet     raw dashboard grid (consumed by the record normalizer)
- POST /validate-login  login name/password check against the login sheet
- GET  /candidates      normalized, filtered, sorted and paged candidates
- GET  /health
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from .config import Settings, get_settings
from .gateway.sheets import SheetsGateway
from .gateway.tokens import TokenCache, get_token_cache
from .logging_config import setup_logging
from .pipelines.dashboard import DashboardState
from .pipelines.query import DEGREE_OR_ABOVE, QUALIFICATION_ALL, SortDirection, SortSpec
from .pipelines.records import CandidateRecord
from .pipelines.workflows import load_candidates, validate_login

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch sheet"
INTERNAL_ERROR_MESSAGE = "Internal server error"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


# Pydantic request/response models
class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str


class LoginRequest(BaseModel):
    """Login validation request.

    Fields accept any JSON value; anything but a string never matches a row.
    """
    loginName: Any = None
    password: Any = None


class SheetValuesResponse(BaseModel):
    """Upstream values shape: header row followed by data rows."""
    values: list[list[str]] = Field(default_factory=list)


class MetricsDTO(BaseModel):
    """Key metrics over the filtered set."""
    total: int
    avg_matching_score: int | None
    avg_years_experience: int | None


class CandidatesResponse(BaseModel):
    """One page of candidates."""
    candidates: list[CandidateRecord]
    page: int
    page_count: int
    page_size: int
    total: int
    metrics: MetricsDTO


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown logic."""
    config = get_settings()
    setup_logging(config.logging)
    app.state.http_client = httpx.AsyncClient(timeout=config.google.request_timeout)
    logger.info("Application starting up")

    yield

    await app.state.http_client.aclose()
    logger.info("Application shutting down")


app = FastAPI(
    title="Candidate Screening Gateway",
    version="0.1.0",
    description="Service-account spreadsheet gateway for login validation and candidate data",
    lifespan=lifespan,
)


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Permissive CORS: preflights get an empty 200, everything else gets the headers."""
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


# Dependencies
def get_http_client(request: Request) -> httpx.AsyncClient:
    """Process-wide HTTP client created in the lifespan."""
    return request.app.state.http_client


def get_gateway(
    client: httpx.AsyncClient = Depends(get_http_client),
    config: Settings = Depends(get_settings),
    token_cache: TokenCache = Depends(get_token_cache),
) -> SheetsGateway:
    """Gateway per request; only the token cache outlives it."""
    cache = token_cache if config.google.token_cache_enabled else None
    return SheetsGateway(client, config.google, cache)


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and query parameters."""
    logger.warning(f"Request validation failed on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error="Invalid request").model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Last resort: never leak partial bodies or tracebacks."""
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=INTERNAL_ERROR_MESSAGE).model_dump(),
        headers=CORS_HEADERS,
    )


@app.get("/health", response_model=HealthResponse)
async def health(config: Settings = Depends(get_settings)) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", version=config.version)


@app.get(
    "/fetch-sheet",
    response_model=SheetValuesResponse,
    responses={500: {"model": ErrorResponse}},
)
async def fetch_sheet(
    gateway: SheetsGateway = Depends(get_gateway),
    config: Settings = Depends(get_settings),
):
    """Return the dashboard sheet as a raw values grid."""
    result = await gateway.read_range(
        config.sheets.dashboard_spreadsheet_id,
        config.sheets.dashboard_range,
    )
    if not result.ok:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=FETCH_FAILED_MESSAGE).model_dump(),
        )
    return SheetValuesResponse(values=result.value)


async def read_login_request(request: Request) -> LoginRequest | None:
    """Decode the login body; None when it is not JSON or is JSON null."""
    try:
        body = await request.json()
    except ValueError as e:
        logger.warning(f"Unreadable login body: {e}")
        return None
    if body is None:
        return None
    if not isinstance(body, dict):
        return LoginRequest()
    return LoginRequest.model_validate(body)


@app.post(
    "/validate-login",
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": LoginRequest.model_json_schema()}},
        }
    },
)
async def validate_login_endpoint(
    request: Request,
    gateway: SheetsGateway = Depends(get_gateway),
    config: Settings = Depends(get_settings),
) -> JSONResponse:
    """Validate a login name/password pair.

    Returns 200 with ``valid`` true/false for business outcomes and 500 with
    ``error`` for configuration or upstream failures and unreadable bodies.
    """
    login = await read_login_request(request)
    if login is None:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=INTERNAL_ERROR_MESSAGE).model_dump(),
        )

    outcome = await validate_login(gateway, config.sheets, login.loginName, login.password)
    if outcome.error is not None:
        logger.error(f"Login validation failed: {outcome.error}")
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_body())


@app.get(
    "/candidates",
    response_model=CandidatesResponse,
    responses={500: {"model": ErrorResponse}},
)
async def list_candidates(
    min_experience: float | None = Query(None, ge=0),
    max_experience: float | None = Query(None, ge=0),
    min_score: float | None = Query(None, ge=0),
    max_score: float | None = Query(None, ge=0),
    qualification: str = Query(QUALIFICATION_ALL, description=f"Exact value, '{QUALIFICATION_ALL}' or '{DEGREE_OR_ABOVE}'"),
    keyword: str = Query(""),
    sort: str = Query("matching_score"),
    direction: SortDirection = Query(SortDirection.DESC),
    page: int = Query(1),
    page_size: int | None = Query(None, ge=1, le=500),
    gateway: SheetsGateway = Depends(get_gateway),
    config: Settings = Depends(get_settings),
):
    """Candidates from the dashboard sheet, filtered, sorted and paged.

    Omitted bounds take the dashboard defaults: experience 0 to 30 years
    (DASHBOARD_DEFAULT_MAX_EXPERIENCE) and score 0 to the larger of 100 and
    the highest score in the data.
    """
    try:
        sort_spec = SortSpec(sort, direction)
    except ValueError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error=str(e)).model_dump(),
        )

    result = await load_candidates(gateway, config.sheets)
    if not result.ok:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=FETCH_FAILED_MESSAGE).model_dump(),
        )

    state = DashboardState.from_settings(config.dashboard, page_size=page_size or config.dashboard.page_size)
    state.load(result.value)
    state.narrow(min_experience, max_experience, min_score, max_score, qualification)
    state.set_keyword(keyword, settle=True)
    state.set_sort(sort_spec)
    state.go_to_page(page)
    view = state.view()
    page_result, metrics = view.page, view.metrics

    return CandidatesResponse(
        candidates=page_result.items,
        page=page_result.page,
        page_count=page_result.page_count,
        page_size=page_result.page_size,
        total=page_result.total,
        metrics=MetricsDTO(
            total=metrics.total,
            avg_matching_score=metrics.avg_matching_score,
            avg_years_experience=metrics.avg_years_experience,
        ),
    )


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": "Candidate Screening Gateway",
        "version": "0.1.0",
        "endpoints": {
            "health": "/health",
            "fetch_sheet": "/fetch-sheet",
            "validate_login": "/validate-login",
            "candidates": "/candidates",
            "docs": "/docs",
        },
    }
