from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from api.routes.router import api_router
from common.core.context import OperatorContext
from common.core.exceptions import AppException, InvalidRequest
from common.core.telemetry import get_logger
from internal.routes.router import internal_router
from packages.tasks.models.schemas.invocation import ErrorResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting HTTP API...")
    yield
    # Shutdown
    logger.info("Shutting down HTTP API...")


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    body = ErrorResponse(error=exc.message, details=str(exc))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )
    return await app_exception_handler(request, InvalidRequest(messages))


def create_app(context: OperatorContext) -> FastAPI:
    """Build the HTTP app around an already-connected operator context."""
    settings = context.settings

    # Only expose OpenAPI docs in local development
    app = FastAPI(
        title=settings.app_name,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        openapi_url="/openapi.json" if settings.docs_enabled else None,
    )
    app.state.context = context

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Instrument FastAPI with OpenTelemetry
    FastAPIInstrumentor.instrument_app(app)

    app.include_router(internal_router)
    app.include_router(api_router)
    return app
