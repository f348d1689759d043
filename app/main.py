"""FastAPI application entry point with lifespan, logging, and middleware."""

import logging
import time
from contextlib import asynccontextmanager
from urllib.parse import parse_qsl, urlencode

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.models import ActionResult, HealthResponse
from app.routers import events, movies
from app.services.database import DatabaseService
from app.services.events import ChangeNotifier
from app.services.movie_query import MovieQueryService
from app.services.movie_writer import MovieWriteService

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = DatabaseService(settings.db_path)
    db.initialise()
    notifier = ChangeNotifier(
        bus_url=settings.event_bus_url,
        timeout=settings.event_timeout,
        retries=settings.event_retries,
        retry_backoff=settings.event_retry_backoff,
    )
    await notifier.start()

    movies.init_router(MovieQueryService(db), MovieWriteService(db, notifier))

    app.state.db = db
    app.state.notifier = notifier

    logger.info(
        "Application started: db=%s  event_bus=%s",
        settings.db_path, settings.event_bus_url,
    )
    yield
    await notifier.aclose()
    logger.info("Application shutting down")


app = FastAPI(
    title="Movie Catalog API",
    description=(
        "CRUD API for movies with their director and actors: search with "
        "filtering, sorting and paging, plus change notifications on update. "
        "Failures use the same envelope: 400 for validation, duplicates and id "
        "mismatches, 404 when the movie does not exist (get, update, delete)."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Pagination"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s -> %d  (%.0f ms)",
        request.method, request.url.path, response.status_code, elapsed,
    )
    return response


_QUERY_KEYS = {key.lower(): key for key in movies.QUERY_KEYS}


@app.middleware("http")
async def canonical_query_keys(request: Request, call_next):
    """Rewrite ``pagesize``, ``SORTBY`` and friends to the spelling the routes bind."""
    pairs = parse_qsl(request.url.query, keep_blank_values=True)
    canonical = [(_QUERY_KEYS.get(key.lower(), key), value) for key, value in pairs]
    if canonical != pairs:
        request.scope["query_string"] = urlencode(canonical).encode("latin-1")
    return await call_next(request)


def _validation_message(error: dict) -> str:
    field = ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path"))
    return f"{field}: {error['msg']}" if field else error["msg"]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [_validation_message(e) for e in exc.errors()]
    logger.info("Rejected %s %s: %s", request.method, request.url.path, messages)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ActionResult(status=False, messages=messages).to_content(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ActionResult(status=False, messages=[str(exc)]).to_content(),
    )


@app.get("/health", response_model=HealthResponse, tags=["system"])
async def health():
    """Check database connectivity and event bus availability."""
    db: DatabaseService = app.state.db
    notifier: ChangeNotifier = app.state.notifier

    db_ok = db.health_check()
    bus_status = await notifier.health_check()

    healthy = db_ok and (bus_status["reachable"] or not bus_status["configured"])
    return HealthResponse(status="healthy" if healthy else "degraded", database=db_ok, event_bus=bus_status)


app.include_router(movies.router)
app.include_router(events.router)
