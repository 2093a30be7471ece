"""FastAPI application factory for the resource lookup and orchestration probes."""

import inspect
import logging
from dataclasses import dataclass

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .config import Settings
from .errors import ServiceUnavailableError
from .models import ProblemDetail, ServiceResponse
from .processor import BaseProcessor

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json;charset=utf-8"
PROBLEM_MEDIA_TYPE = "application/problem+json;charset=utf-8"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Expires": "-1",
}

# Orchestrators may probe with any verb.
PROBE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@dataclass
class ServiceConfig:
    """
    Configuration for building the service application.

    Args:
        name: Override service name (defaults to processor.name)
        version: Override service version (defaults to processor.version)
        description: Short description for generated docs
    """

    name: str | None = None
    version: str | None = None
    description: str | None = None


def _empty(status_code: int) -> Response:
    return Response(status_code=status_code, media_type=JSON_MEDIA_TYPE)


def apply_standard_headers(response: Response, content_language: str) -> Response:
    """Set the language, no-cache and charset headers every response carries."""
    response.headers["Content-Language"] = content_language
    response.headers.update(NO_CACHE_HEADERS)
    content_type = response.headers.get("content-type")
    if not content_type:
        response.headers["Content-Type"] = JSON_MEDIA_TYPE
    elif "charset=" not in content_type.lower():
        response.headers["Content-Type"] = f"{content_type};charset=utf-8"
    return response


def create_app(
    processor: BaseProcessor,
    config: ServiceConfig | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Create a FastAPI application around a processor.

    Args:
        processor: The processor instance implementing the resource lookup
        config: Optional service configuration
        settings: Optional runtime settings (defaults are read from the environment)
    """

    config = config or ServiceConfig()
    settings = settings or Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    service_name = config.name or processor.name
    service_version = config.version or processor.version
    service_description = config.description or f"{service_name} resource lookup API"

    app = FastAPI(
        title=f"{service_name.title()} API",
        description=service_description,
        version=service_version,
    )

    app.state.processor = processor
    app.state.service_config = config
    app.state.settings = settings
    # Cleared by the lifecycle coordinator once draining starts.
    app.state.accepting = True

    @app.middleware("http")
    async def standard_headers(request: Request, call_next):
        response = await call_next(request)
        return apply_standard_headers(response, settings.content_language)

    @app.exception_handler(ServiceUnavailableError)
    async def service_unavailable_handler(request: Request, exc: ServiceUnavailableError):
        """Render the failure as an RFC 7807 problem document."""
        logger.warning("Request %s failed: %s", request.url.path, exc.detail)
        problem = ProblemDetail(
            type=settings.problem_type,
            title=exc.title,
            status=int(exc.status),
            detail=exc.detail,
            instance=request.url.path,
        )
        return JSONResponse(
            status_code=problem.status,
            content=problem.model_dump(),
            media_type=PROBLEM_MEDIA_TYPE,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        # Runs in ServerErrorMiddleware, outside standard_headers, so headers are set here.
        logger.exception("Unhandled error serving %s", request.url.path)
        problem = ProblemDetail(
            type=settings.problem_type,
            title="Internal server error",
            status=500,
            detail="The service encountered an unexpected error.",
            instance=request.url.path,
        )
        response = JSONResponse(
            status_code=problem.status,
            content=problem.model_dump(),
            media_type=PROBLEM_MEDIA_TYPE,
        )
        return apply_standard_headers(response, settings.content_language)

    # Probes are registered before the lookup route so "/{resource_id}" never captures them.
    @app.api_route("/live", methods=PROBE_METHODS, summary="Liveness probe")
    async def liveness_probe():
        return _empty(200)

    @app.api_route("/ready", methods=PROBE_METHODS, summary="Readiness probe")
    async def readiness_probe(request: Request):
        if not request.app.state.accepting:
            return _empty(503)
        failing = await processor.check_dependencies()
        if failing:
            logger.warning("Not ready, failing dependencies: %s", ", ".join(failing))
            return _empty(503)
        return _empty(200)

    @app.get(
        "/{resource_id}",
        response_model=ServiceResponse,
        summary="Look up a resource",
        responses={500: {"model": ProblemDetail, "content": {"application/problem+json": {}}}},
    )
    async def lookup(resource_id: str):
        result = processor.perform_request(resource_id)
        if inspect.isawaitable(result):
            result = await result
        return JSONResponse(
            content=result.model_dump(by_alias=True),
            media_type=JSON_MEDIA_TYPE,
        )

    logger.info("Registered lookup and probe routes for %s", service_name)

    return app
