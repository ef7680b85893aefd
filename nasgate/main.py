"""FastAPI application factory. No business logic; only wiring, middleware and lifecycle."""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import timedelta
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from nasgate import __version__
from nasgate.api import router as api_router
from nasgate.core.config import Settings, get_settings
from nasgate.core.database import build_engine, build_session_factory
from nasgate.core.logging_config import configure_logging, log_error, log_system
from nasgate.core.security import generate_session_secret
from nasgate.core.sessions import SessionManager
from nasgate.gate.outcomes import GateRejected
from nasgate.gate.path_guard import PathGuard
from nasgate.gate.pipeline import (
    AccessGateMiddleware,
    gate_rejected_handler,
    http_error_handler,
    read_snapshot,
    unhandled_error_handler,
    validation_error_handler,
)
from nasgate.gate.rate_limiter import RateLimiter
from nasgate.gate.setup_gate import SetupGate, SetupState
from nasgate.models import Base
from nasgate.services.i18n import Translator
from nasgate.services.session_store import purge_expired_sessions
from nasgate.services.settings_store import seed_default_settings

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"

# localhost, private IPv4 ranges and Tailscale hostnames
ALLOWED_ORIGIN_REGEX = (
    r"^https?://("
    r"localhost|127\.0\.0\.1|192\.168\.\d+\.\d+|10\.\d+\.\d+\.\d+"
    r"|172\.(1[6-9]|2\d|3[0-1])\.\d+\.\d+|[\w.-]+\.ts\.net"
    r")(:\d+)?$"
)


def _purge_sessions(session_factory: sessionmaker[Session]) -> int:
    with session_factory() as db:
        return purge_expired_sessions(db)


async def _sweep_expired(app: FastAPI, interval: float) -> None:
    """Drop expired rate windows and login sessions every interval."""
    while True:
        await asyncio.sleep(interval)
        app.state.rate_limiter.sweep()
        try:
            purged = await run_in_threadpool(_purge_sessions, app.state.session_factory)
        except SQLAlchemyError as e:
            log_error(e, "Session purge failed")
        else:
            if purged:
                logger.info("Purged %s expired session(s)", purged)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and default settings, start the expiry sweeper; dispose the engine on shutdown."""
    settings: Settings = app.state.settings
    engine = app.state.engine

    Base.metadata.create_all(bind=engine)
    with app.state.session_factory() as db:
        seed_default_settings(db)

    log_system("Server started", port=settings.PORT, share_root=settings.SHARE_ROOT)
    try:
        state = app.state.setup_gate.state(lambda: read_snapshot(app.state.session_factory))
    except SQLAlchemyError as e:
        log_error(e, "Server startup error: setup state unavailable")
    else:
        if state is SetupState.SETUP_REQUIRED:
            logger.warning("SETUP REQUIRED: open /setup to create the administrator account")
            log_system("Setup required - no admin user found")
        else:
            logger.info("Setup completed - ready to use")

    sweeper = asyncio.create_task(
        _sweep_expired(app, settings.RATE_SWEEP_INTERVAL_SEC)
    )
    try:
        yield
    finally:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
        log_system("Server shutdown initiated")
        engine.dispose()
        logger.info("Database connection closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build an application with its own store, limiter, gates and session manager."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="NAS Gate",
        version=__version__,
        docs_url="/docs" if settings.APP_ENV == "dev" else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    secret = settings.SESSION_SECRET.get_secret_value() if settings.SESSION_SECRET else None
    if secret is None:
        logger.warning("SESSION_SECRET is not set; sessions will not survive a restart")
        secret = generate_session_secret()

    app.state.settings = settings
    app.state.engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.sessions = SessionManager(
        secret,
        settings.SESSION_COOKIE_NAME,
        timedelta(hours=settings.SESSION_MAX_AGE_HOURS),
        secure=settings.SESSION_COOKIE_SECURE,
    )
    app.state.rate_limiter = RateLimiter.from_settings(settings)
    app.state.setup_gate = SetupGate()
    app.state.path_guard = PathGuard(settings.SHARE_ROOT, settings.INSTALL_DIR)
    app.state.translator = Translator(settings.DEFAULT_LANGUAGE)

    # Added last so it runs first: CORS preflights never reach the gate.
    app.add_middleware(AccessGateMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=ALLOWED_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    app.add_exception_handler(GateRejected, gate_rejected_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.mount("/assets", StaticFiles(directory=STATIC_DIR), name="assets")
    app.include_router(api_router)
    return app
