"""
Partner Portal - FastAPI application
Entry point
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from partner_portal.core.config import Settings, settings as default_settings
from partner_portal.core.database import Database
from partner_portal.core.errors import BadRequest, PortalError
from partner_portal.core.security import configure_hashing
from partner_portal.api import auth_api, dealers_api, pages_api

# ============================================================================
# LOGGING
# ============================================================================

logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: Settings to use (defaults to the environment)
        database: Database handle (defaults to one built from settings.DATABASE_URL)
    """
    settings = settings or default_settings
    database = database or Database(settings.DATABASE_URL, echo=settings.DEBUG)
    configure_hashing(settings.BCRYPT_ROUNDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # STARTUP
        logger.info(f"🚀 Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info(f"🌍 Environment: {settings.ENVIRONMENT}")

        logger.info("📊 Initialising database...")
        database.init_db()

        logger.info("✅ Application started")

        yield

        # SHUTDOWN
        logger.info("🛑 Stopping application...")
        database.dispose()
        logger.info("✅ Application stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Partner and dealer network management",
        lifespan=lifespan,
        debug=settings.DEBUG,
    )

    app.state.settings = settings
    app.state.database = database

    # ------------------------------------------------------------------------
    # CORS (frontend served from another origin during development)
    # ------------------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------------
    # ERRORS
    # ------------------------------------------------------------------------

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"⚠️ Invalid request on {request.url.path}: {len(exc.errors())} error(s)")
        return JSONResponse(
            status_code=BadRequest.status_code,
            content={"success": False, "message": BadRequest.default_message},
        )

    # ------------------------------------------------------------------------
    # ROUTERS
    # ------------------------------------------------------------------------

    app.include_router(pages_api.router)
    app.include_router(auth_api.router)
    app.include_router(dealers_api.router)

    return app


app = create_app()


# ============================================================================
# RUN (dev mode)
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "partner_portal.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        log_level=default_settings.LOG_LEVEL.lower(),
    )
