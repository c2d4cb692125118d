"""Main FastAPI application for Meishi Exchange."""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from . import __version__
from .api import contacts, links
from .api.dependencies import get_container
from .api.middleware import (
    ProblemDetailsMiddleware,
    RequestSizeLimitMiddleware,
    install_problem_handlers,
)
from .config import get_config
from .core.errors import NotFoundError
from .services import ServiceContainer
from .utils.logging_config import get_logger

logger = get_logger("main")

SERVICE_NAME = "meishi-exchange"


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create the API application.

    Args:
        container: Prebuilt services. When omitted they are built from the
            global configuration on first use.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        current = getattr(app.state, "container", None)
        if current is not None:
            current.close()

    config = container.config if container else get_config()

    app = FastAPI(
        title=config.app.app_name,
        description=config.app.description,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.container = container

    install_problem_handlers(app)

    # Middleware added last runs first
    app.add_middleware(RequestSizeLimitMiddleware, limit=config.server.max_request_bytes)
    app.add_middleware(ProblemDetailsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
    )

    app.include_router(contacts.router)
    app.include_router(links.router)

    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse(url="/docs")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": SERVICE_NAME, "version": __version__}

    @app.get("/ready")
    def readiness_check(request: Request):
        """Readiness check that validates encrypted storage can be read."""
        start_time = time.time()
        checks = {"storage": False, "config": False}
        errors = []

        services = get_container(request)
        checks["config"] = services.config is not None

        loaded = services.store.load_all()
        if loaded.is_success or isinstance(loaded.error, NotFoundError):
            checks["storage"] = True
        else:
            errors.append(f"Storage check failed: {loaded.error.message}")

        all_ready = all(checks.values())
        response = {
            "status": "ready" if all_ready else "not_ready",
            "service": SERVICE_NAME,
            "version": __version__,
            "checks": checks,
            "contacts": len(services.repository.contacts),
            "response_time_ms": round((time.time() - start_time) * 1000, 2),
        }
        if errors:
            response["errors"] = errors

        return JSONResponse(content=response, status_code=200 if all_ready else 503)

    logger.info(f"API application created ({config.app.app_name} {__version__})")
    return app


app = create_app()
