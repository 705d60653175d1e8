"""FastAPI application for the CoupleSwipe service."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from coupleswipe.clients.tmdb_client import TMDBClient
from coupleswipe.errors import InvalidIntentError, SessionNotFoundError
from coupleswipe.session.registry import SessionRegistry
from coupleswipe.store.settings_store import JsonFileStore

from .config import get_settings
from .routes.health import router as health_router
from .routes.sessions import router as sessions_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared TMDB client and session registry at startup, close at shutdown."""
    settings = get_settings()

    logger.info("lifespan.startup", state_file=settings.COUPLESWIPE_STATE_FILE)

    store = JsonFileStore(settings.COUPLESWIPE_STATE_FILE)
    stored_token = store.load().api_token
    tmdb = TMDBClient(
        api_token=settings.TMDB_API_TOKEN or stored_token,
        timeout=settings.TMDB_TIMEOUT_SECONDS,
    )
    if not tmdb.has_token:
        logger.warning("lifespan.tmdb_token_missing")

    app.state.tmdb = tmdb
    app.state.registry = SessionRegistry(client=tmdb, store=store)

    logger.info("lifespan.ready")
    yield

    logger.info("lifespan.shutdown")
    await tmdb.close()


app = FastAPI(
    title="coupleswipe",
    description="Two-person movie picker: swipe, agree, review trailers, pick a winner",
    lifespan=lifespan,
)


async def session_not_found(request: Request, exc: SessionNotFoundError):
    return JSONResponse(status_code=404, content={"error": exc.message, **exc.context})


async def invalid_intent(request: Request, exc: InvalidIntentError):
    return JSONResponse(status_code=409, content={"error": exc.message, **exc.context})


def register_exception_handlers(app: FastAPI) -> None:
    """Map session errors onto HTTP status codes."""
    app.add_exception_handler(SessionNotFoundError, session_not_found)
    app.add_exception_handler(InvalidIntentError, invalid_intent)


register_exception_handlers(app)
app.include_router(health_router)
app.include_router(sessions_router)
