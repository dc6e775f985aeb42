import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from .database import init_db
from .errors import (
    BookingNotFound,
    ConfigurationConflict,
    ConfigurationError,
    ServiceUnavailable,
    SlotConflict,
)
from .redis_client import redis_client
from .routers import bookings, recurring_sessions, schedule_overrides, slots

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    logger.info("Dispensary slot engine started")
    yield


app = FastAPI(title="Dispensary Appointment API", lifespan=lifespan)

app.include_router(recurring_sessions.router)
app.include_router(schedule_overrides.router)
app.include_router(slots.router)
app.include_router(bookings.router)


# ===== Error mapping =====

ERROR_STATUS = {
    BookingNotFound: status.HTTP_404_NOT_FOUND,
    ConfigurationError: 422,
    ConfigurationConflict: status.HTTP_409_CONFLICT,
    SlotConflict: status.HTTP_409_CONFLICT,
    ServiceUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error_handler(status_code: int):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


for error_type, error_status in ERROR_STATUS.items():
    app.add_exception_handler(error_type, _error_handler(error_status))


@app.get("/health")
def health():
    if redis_client is None:
        return {"redis": None}
    try:
        return {"redis": redis_client.ping()}
    except RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return {"redis": False}
