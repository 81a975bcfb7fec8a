"""
Modifier — Demo Application Factory
=====================================

What:  Builds a FastAPI echo service wrapped in the transformation
       middleware, for trying templates out locally.
How:   create_app() assembles middleware, exception handlers and routes;
       `app` is the module-level instance uvicorn serves:

           MODIFIER_CONFIG_FILE=examples/modifier.json uvicorn modifier.main:app

Application Layout:
    ┌─────────────────────────────────────────────────────┐
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌─────────────────────┐  │
    │  │  Req ID  │→│ Logging  │→│ Modifier (templates)│  │
    │  └──────────┘ └──────────┘ └─────────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────────┐ ┌─────────┐  │
    │  │ POST /chat   │ │ POST /api/{name} │ │ /health │  │
    │  └──────────────┘ └──────────────────┘ └─────────┘  │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from modifier import __version__
from modifier.config import ModifierConfig, settings
from modifier.middleware import (
    ModifierMiddleware,
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    request_id_var,
)
from modifier.routes import echo, health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Level:  Settings.log_level (LOG_LEVEL env var)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("%s %s starting up...", settings.service_name, __version__)

    config: ModifierConfig = app.state.modifier_config
    if config.is_empty:
        logger.info("No templates configured; requests pass through unchanged")
    else:
        logger.info(
            "Templates: request=%s response=%s headers=%s query=%s",
            "yes" if config.request else "no",
            sorted(config.response) or "-",
            sorted(config.headers) or "-",
            sorted(config.query) or "-",
        )

    logger.info("Server ready at http://%s:%d", settings.service_host, settings.service_port)
    logger.info("=" * 60)

    yield

    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Catch-all for errors raised by the demo routes themselves.

    Transformation errors never reach here: ModifierMiddleware turns them
    into 400/500 responses on its own.
    """

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(config: Optional[ModifierConfig] = None) -> FastAPI:
    """
    Create the demo service.

    Args:
        config: Template configuration. Defaults to the file named by
                Settings.modifier_config_file (empty if unset).

    Raises:
        ConfigurationError: the configuration file is missing or invalid.

    A body template that does not compile raises TemplateCompileError when
    Starlette builds the middleware stack, i.e. at startup.
    """
    if config is None:
        config = settings.load_modifier_config()

    app = FastAPI(
        title="Modifier Echo Service",
        description="Echo service wrapped in the template-driven transformation middleware.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.modifier_config = config

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → Modifier → routes
    app.add_middleware(ModifierMiddleware, config=config, logger=logging.getLogger("modifier"))
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(echo.router)
    app.include_router(health.router)

    return app


app = create_app()
