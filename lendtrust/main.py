# lendtrust/main.py
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI, Request, status as fastapi_status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from lendtrust.api.v1.api import api_router_v1
from lendtrust.core.config import REMINDER_INTERVAL_MINUTES, STORAGE_BACKEND, setup_logging
from lendtrust.core.rate_limiter import get_rate_limiter, rate_limit_exception_handler
from lendtrust.db.database import init_db
from lendtrust.db.repositories import PersistenceError
from lendtrust.middleware.authentication import AuthMiddleware
from lendtrust.middleware.logging import RequestLoggingMiddleware
from lendtrust.scheduler.jobs import send_due_reminders
from lendtrust.services import build_services

setup_logging()

# --- Scheduler Instance ---
scheduler = AsyncIOScheduler(timezone="UTC")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup...")
    repos = await init_db()
    app.state.services = build_services(repos)
    logger.info("Database and services initialized.")

    scheduler.add_job(
        send_due_reminders,
        trigger=IntervalTrigger(minutes=REMINDER_INTERVAL_MINUTES),
        args=[app.state.services],
        id="due_reminders_job",
        name="Send due-date reminders",
        replace_existing=True,
        misfire_grace_time=60 * REMINDER_INTERVAL_MINUTES,
    )
    scheduler.start()
    logger.info(f"Scheduler started, reminders every {REMINDER_INTERVAL_MINUTES} minutes.")
    yield
    logger.info("Application shutdown...")
    if scheduler.running: scheduler.shutdown()


app = FastAPI(
    title="LendTrust API",
    description="Peer-to-peer item lending with negotiated terms and trust scores.",
    version="1.0.0",
    lifespan=lifespan,
)

# --- Error handling ---
app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation Error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=fastapi_status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": {"error": "validation-error", "message": "Validation Error"}, "errors": exc.errors()},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(f"HTTP Exception: Status={exc.status_code}, Detail={exc.detail}")
    return JSONResponse(
        status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None),
    )


@app.exception_handler(PersistenceError)
async def persistence_exception_handler(request: Request, exc: PersistenceError):
    logger.error(f"Database error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=fastapi_status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": {"error": "database-error", "message": "Database error"}},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled Exception: {exc}")
    return JSONResponse(
        status_code=fastapi_status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": {"error": "internal-error", "message": "An internal server error occurred."}},
    )


# --- Middleware ---
app.add_middleware(AuthMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.state.limiter = get_rate_limiter()
app.add_middleware(GZipMiddleware, minimum_size=500)

app.include_router(api_router_v1)


@app.get("/")
async def read_root():
    return {"message": "Welcome to LendTrust!"}


@app.get("/health")
async def health():
    return {"status": "ok", "storage": STORAGE_BACKEND}
