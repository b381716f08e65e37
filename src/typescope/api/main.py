"""TypeScope FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from typescope import __version__
from typescope.api.error_model import ERROR_RESPONSES
from typescope.api.errors import (
    TypeScopeHttpError,
    generic_exception_handler,
    http_exception_handler,
    request_validation_error_handler,
    typescope_error_handler,
    typescope_http_error_handler,
)
from typescope.api.middleware.request_id import RequestIdMiddleware
from typescope.api.routes.audit import router as audit_router
from typescope.api.routes.config import router as config_router
from typescope.api.routes.health import router as health_router
from typescope.api.routes.integral import router as integral_router
from typescope.api.routes.profiles import router as profiles_router
from typescope.config.store import ConfigOverrideStore, get_config_store
from typescope.errors import TypeScopeError
from typescope.integral.llm.client import LLMClient, build_question_client
from typescope.observability.tracing import configure_tracing, instrument_fastapi


def create_app(
    config_store: ConfigOverrideStore | None = None,
    llm_client: LLMClient | None = None,
) -> FastAPI:
    """Create and configure the TypeScope FastAPI application.

    This factory:
    - Creates a FastAPI app with TypeScope metadata
    - Configures tracing (no-op unless TYPESCOPE_OTEL_ENABLED=1)
    - Registers the request id middleware and the exception handlers
    - Mounts the health router and the /v1 routers

    Args:
        config_store: Store to serve; defaults to the process-wide store.
        llm_client: Clarification-question client; defaults to the one
            selected by TYPESCOPE_LLM_BACKEND.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="TypeScope API",
        description="Personality assessment scoring and scoring configuration",
        version=__version__,
    )

    app.state.config_store = config_store if config_store is not None else get_config_store()
    app.state.llm_client = llm_client if llm_client is not None else build_question_client()

    configure_tracing()
    instrument_fastapi(app)

    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(TypeScopeHttpError, typescope_http_error_handler)
    app.add_exception_handler(TypeScopeError, typescope_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health_router)
    app.include_router(profiles_router, responses=ERROR_RESPONSES)
    app.include_router(config_router, responses=ERROR_RESPONSES)
    app.include_router(audit_router, responses=ERROR_RESPONSES)
    app.include_router(integral_router, responses=ERROR_RESPONSES)

    return app
