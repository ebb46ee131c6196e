import traceback
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..application.handlers import HANDLER_SPECS
from ..application.services.analysis_service import AnalysisService
from ..domain.enums import AnalysisKind
from ..domain.errors import UpstreamError, ValidationError
from ..infra.config import AppConfig, get_config
from ..infra.llm import build_text_client
from ..observability.logging_utils import (
    init_logging,
    log_error_event,
    log_event,
    reset_trace_id,
    set_trace_id,
)
from ..observability.otel import init_otel, instrument_fastapi
from ..prompts.input_validation import MALFORMED_BODY_MESSAGE
from ..schemas import ErrorResponse, HealthResponse, ResponseEnvelope


UPSTREAM_ERROR_MESSAGE = "AI service is temporarily unavailable. Please try again later."
INTERNAL_ERROR_MESSAGE = "Internal server error"
REQUEST_ID_HEADER = "X-Request-ID"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(message=message).model_dump()
    )


def get_analysis_service(request: Request) -> AnalysisService:
    service = getattr(request.app.state, "analysis_service", None)
    if service is None:
        raise RuntimeError("analysis service is not initialised")
    return service


def _make_endpoint(kind: AnalysisKind):
    async def endpoint(
        payload: Any = Body(default=None),
        service: AnalysisService = Depends(get_analysis_service),
    ):
        return await service.handle(kind, {} if payload is None else payload)

    endpoint.__name__ = f"{kind.value}_endpoint"
    return endpoint


def build_analysis_router() -> APIRouter:
    router = APIRouter()
    for kind, spec in HANDLER_SPECS.items():
        router.add_api_route(
            spec.route,
            _make_endpoint(kind),
            methods=["POST"],
            response_model=ResponseEnvelope,
            responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
            summary=spec.title,
            name=kind.value,
        )

    @router.get("/health", response_model=HealthResponse)
    async def health(service: AnalysisService = Depends(get_analysis_service)):
        status = await service.health()
        body = HealthResponse(
            success=status.available,
            message=(
                "AI service is reachable"
                if status.available
                else "AI service is unavailable"
            ),
            data=status,
        )
        return JSONResponse(
            status_code=200 if status.available else 503,
            content=body.model_dump(mode="json"),
        )

    return router


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation_error_handler(request: Request, exc: ValidationError):
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _malformed_body_handler(request: Request, exc: RequestValidationError):
        log_event(
            "http.malformed_body",
            path=request.url.path,
            errors=[error.get("type") for error in exc.errors()],
        )
        return _error(400, MALFORMED_BODY_MESSAGE)

    @app.exception_handler(UpstreamError)
    async def _upstream_error_handler(request: Request, exc: UpstreamError):
        # cause stays in the server log; the client only sees the generic text
        log_error_event(
            "http.upstream_error",
            path=request.url.path,
            backend=exc.backend,
            reason=exc.reason,
            status_code=exc.status_code,
            error=str(exc),
        )
        return _error(500, UPSTREAM_ERROR_MESSAGE)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        log_error_event(
            "http.unhandled_error",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
            traceback=traceback.format_exc(),
        )
        return _error(500, INTERNAL_ERROR_MESSAGE)


def create_app(
    service: Optional[AnalysisService] = None,
    config: Optional[AppConfig] = None,
) -> FastAPI:
    cfg = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_logging(log_path=cfg.log_path)
        owned = None
        if app.state.analysis_service is None:
            owned = AnalysisService(build_text_client(cfg))
            app.state.analysis_service = owned
        log_event(
            "app.startup",
            backend=cfg.llm_backend,
            model=app.state.analysis_service.client.default_model,
            api_prefix=cfg.api_prefix,
        )
        try:
            yield
        finally:
            if owned is not None:
                await owned.client.aclose()
                app.state.analysis_service = None

    app = FastAPI(title="AnnDataAI Advisory API", version=__version__, lifespan=lifespan)
    app.state.config = cfg
    app.state.analysis_service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def trace_id_middleware(request: Request, call_next):
        trace_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = set_trace_id(trace_id)
        try:
            response = await call_next(request)
        finally:
            reset_trace_id(token)
        response.headers[REQUEST_ID_HEADER] = trace_id
        return response

    _register_exception_handlers(app)

    @app.get("/")
    async def root():
        return {
            "success": True,
            "message": "AnnDataAI advisory API is running",
            "backend": cfg.llm_backend,
            "api_prefix": cfg.api_prefix,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    app.include_router(build_analysis_router(), prefix=cfg.api_prefix)

    if init_otel():
        instrument_fastapi(app)
    return app


app = create_app()
