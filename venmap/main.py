# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Venmap server application.

Exposes the AI router behind ``/api`` so provider credentials stay on the
server. The router, settings and health checker are built once in
``create_app`` and reached from handlers through ``app.state``.
"""

import argparse
import time
from contextlib import asynccontextmanager
from typing import Any

import httpx
import pydantic
import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import AuthenticationError, RateLimitError, ValidationError, VenmapError
from .models import (
    ConfigResponse,
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    LivenessResponse,
)
from .monitoring.health_checker import HealthChecker
from .router import AIRouter
from .settings import Settings
from .telemetry.logging import configure_json_logging
from .telemetry.metrics import HTTP_LATENCY, HTTP_REQUESTS_TOTAL

logger = structlog.get_logger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_router(request: Request) -> AIRouter:
    return request.app.state.router


def get_health_checker(request: Request) -> HealthChecker:
    return request.app.state.health_checker


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    router: AIRouter = app.state.router
    logger.info(
        "venmap_starting",
        active_provider=router.active_provider(),
        provider_order=router.provider_order,
        use_backend_keys=app.state.settings.features.use_backend_api_keys,
    )

    yield

    try:
        await router.aclose()
        health_client = app.state.health_checker.client
        if not health_client.is_closed:
            await health_client.aclose()
        logger.info("venmap_shutdown_complete")
    except Exception as e:
        # Log but don't fail shutdown
        logger.warning("venmap_shutdown_cleanup_failed", error=str(e))


def create_app(settings: Settings | None = None, router: AIRouter | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted.
        router: Pre-built router (tests inject one); built from ``settings`` otherwise.
    """
    settings = settings or Settings()
    configure_json_logging(settings.observability.log_level)

    client = httpx.AsyncClient(timeout=settings.providers.timeout_ms / 1000)
    if router is None:
        router = AIRouter.from_settings(settings, client=client)

    app = FastAPI(
        title="Venmap - AI Provider Router",
        description="Proxies business-plan generation requests to configured AI providers",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.router = router
    app.state.health_checker = HealthChecker(
        router.configs, client, timeout_s=settings.providers.health_timeout_ms / 1000
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.server.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    _register_middleware(app)
    _register_exception_handlers(app, settings)
    _register_routes(app, settings)
    return app


def _register_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_observability_middleware(request: Request, call_next):
        method = request.method
        start_ts = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            route = request.scope.get("route")
            route_path = route.path if route is not None else "unmatched"
            elapsed_ms = (time.perf_counter() - start_ts) * 1000
            HTTP_REQUESTS_TOTAL.labels(route_path, method, status).inc()
            HTTP_LATENCY.labels(route_path, method).observe(elapsed_ms)


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    debug = settings.server.debug

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse.create("Invalid request", exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse.create("Invalid request", f"Invalid request: {exc}"),
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        logger.error("ai_generation_auth_failed", provider=exc.provider)
        return JSONResponse(
            status_code=401,
            content=ErrorResponse.create("Authentication failed", "Invalid or missing API key"),
        )

    @app.exception_handler(RateLimitError)
    async def rate_limit_error_handler(request: Request, exc: RateLimitError) -> JSONResponse:
        logger.warning("ai_generation_rate_limited", provider=exc.provider)
        return JSONResponse(
            status_code=429,
            content=ErrorResponse.create(
                "Rate limit exceeded", "Too many requests, please try again later"
            ),
        )

    @app.exception_handler(VenmapError)
    async def venmap_error_handler(request: Request, exc: VenmapError) -> JSONResponse:
        logger.error("ai_generation_failed", error=exc.message, code=exc.error_code)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse.create(
                "AI generation failed", exc.message if debug else "Failed to generate response"
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content=ErrorResponse.create("Route not found", path=request.url.path),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse.create(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse.create(
                "Internal server error", str(exc) if debug else "Something went wrong"
            ),
        )


def _register_routes(app: FastAPI, settings: Settings) -> None:
    @app.get("/health", response_model=LivenessResponse)
    async def liveness() -> LivenessResponse:
        return LivenessResponse(env=settings.server.environment)

    @app.post("/api/generate", response_model=GenerateResponse)
    async def generate(
        request: Request,
        settings: Settings = Depends(get_settings),
        router: AIRouter = Depends(get_router),
    ) -> Any:
        """Generate an answer with the server-held credentials."""
        if not settings.features.use_backend_api_keys:
            return JSONResponse(
                status_code=403,
                content=ErrorResponse.create(
                    "Backend API keys disabled",
                    "Backend API keys are disabled. Please use frontend API keys.",
                    useBackendKeys=False,
                ),
            )

        try:
            body = await request.json()
        except ValueError:
            body = None
        try:
            payload = GenerateRequest.model_validate(body)
        except pydantic.ValidationError as e:
            failed = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
            if failed == {"context"}:
                raise ValidationError("Context must be a string", field="context") from e
            raise ValidationError(
                "Prompt is required and must be a string", field="prompt"
            ) from e

        result = await router.generate(payload.prompt, payload.context)
        return GenerateResponse(response=result.text, provider=result.provider)

    @app.get("/api/config", response_model=ConfigResponse)
    async def get_config(
        settings: Settings = Depends(get_settings),
        router: AIRouter = Depends(get_router),
    ) -> ConfigResponse:
        """Configuration summary without secrets."""
        return ConfigResponse(
            config=router.config_info(),
            activeProvider=router.active_provider(),
            isConfigured=router.is_configured(),
            useBackendKeys=settings.features.use_backend_api_keys,
        )

    @app.get("/api/health", response_model=HealthResponse)
    async def get_health(
        health_checker: HealthChecker = Depends(get_health_checker),
    ) -> HealthResponse:
        return HealthResponse(health=await health_checker.check())

    if settings.observability.prometheus_enabled:

        @app.get("/metrics/prometheus", include_in_schema=False)
        async def prometheus_metrics() -> Response:
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def main() -> None:
    """Main entry point for the Venmap server."""
    import uvicorn

    settings = Settings()
    parser = argparse.ArgumentParser(description="Venmap AI provider router")
    parser.add_argument("--host", default=settings.server.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.server.port, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    uvicorn.run(
        "venmap.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.observability.log_level,
    )


if __name__ == "__main__":
    main()
