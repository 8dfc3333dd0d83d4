"""
FastAPI Application
===================

Main FastAPI application for the data quality analysis service.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.middleware.telemetry import TelemetryMiddleware
from api.routes.analysis import router as analysis_router
from api.routes.health import router as health_router
from api.schemas import ErrorResponse
from dq_analysis.analyzer import TableAnalyzer
from dq_analysis.config import Settings
from dq_analysis.llm import GeminiLLM, LLMInterface, MockLLM, RetryingLLM
from dq_analysis.llm.mock import EMPTY_ANALYSIS
from dq_analysis.orchestrator import AnalysisOrchestrator
from dq_analysis.rule_mapper import GlobalRuleMapper
from observability.logging_config import get_logger, setup_logging
from observability.metrics import metrics_endpoint, setup_metrics
from observability.tracing import setup_tracing


def create_llm(settings: Settings) -> LLMInterface:
    """
    Create the remote model client.

    Raises:
        ConfigurationError: If a real client is requested without an API key
    """
    if settings.use_mock_llm:
        # Demo mode: every table comes back clean, rule mapping maps nothing
        llm: LLMInterface = MockLLM(
            responses={"GLOBAL RULE MAPPING": ["[]"]},
            default=EMPTY_ANALYSIS,
        )
    else:
        llm = GeminiLLM(api_key=settings.require_api_key(), model=settings.model)

    return RetryingLLM(
        llm,
        max_attempts=settings.retry_attempts,
        base_delay=settings.retry_base_delay,
        timeout=settings.request_timeout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    settings: Settings = app.state.settings
    setup_logging(level=settings.log_level)
    logger = get_logger(__name__)
    logger.info(
        "service_starting",
        version=__version__,
        model=settings.model,
        mock_llm=settings.use_mock_llm,
        max_concurrency=settings.max_concurrency,
    )

    llm = create_llm(settings)
    app.state.llm = llm
    app.state.orchestrator = AnalysisOrchestrator(
        llm,
        analyzer=TableAnalyzer(llm, model=settings.model, seed=settings.seed),
        max_concurrency=settings.max_concurrency,
    )
    app.state.rule_mapper = GlobalRuleMapper(llm, model=settings.model, seed=settings.seed)

    yield

    logger.info("service_stopping")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="Data Quality Analysis API",
        description=(
            "Analyzes database table metadata, statistics, samples and business rules "
            "for data quality issues, one model call per table."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(analysis_router)

    setup_metrics(app, version=__version__, environment=settings.environment)
    app.add_route("/metrics", metrics_endpoint)
    setup_tracing(app, version=__version__)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        request_id = getattr(request.state, "request_id", None)
        get_logger(__name__).exception("unhandled_error", request_id=request_id)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="InternalServerError",
                message="An unexpected error occurred",
                request_id=request_id,
            ).model_dump(),
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
