import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text

from .config import settings
from .database import SessionLocal, init_db
from .redis_client import redis_client
from .routers import (
    appointments,
    availability,
    blocks,
    locations,
    shifts,
    worker_services,
    workers,
)
from .services.scheduling.errors import BookingValidationError, SchedulingError

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Schema ready")
    yield


app = FastAPI(title="Salon Scheduling API", lifespan=lifespan)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} → {exc.code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} → {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # same body shape as SchedulingError; only the first problem is reported
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "header")]
    error = BookingValidationError(first.get("msg", "Invalid request."), field=".".join(loc) or None)
    return await scheduling_error_handler(request, error)


# Public
app.include_router(availability.router)
app.include_router(shifts.router)
app.include_router(appointments.router)

# Admin
app.include_router(locations.router)
app.include_router(workers.router)
app.include_router(workers.admin_router)
app.include_router(worker_services.router)
app.include_router(appointments.admin_router)
app.include_router(blocks.router)


@app.get("/health")
def health():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    finally:
        db.close()

    try:
        redis_ok = bool(redis_client.ping())
    except RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        redis_ok = False

    return {"status": "ok", "redis": redis_ok}
