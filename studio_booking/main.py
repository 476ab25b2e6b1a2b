import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from studio_booking.config import LOG_LEVEL, SLOT_REFRESH_ENABLED
from studio_booking.db import init_database
from studio_booking.exceptions import StudioBookingError
from studio_booking.routers import bookings, packages, slots, studios
from studio_booking.utils.scheduler import slot_refresh_loop

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    "lifespan for initing database and the slot refresh task"
    init_database()
    refresher = asyncio.create_task(slot_refresh_loop()) if SLOT_REFRESH_ENABLED else None
    yield
    if refresher:
        refresher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await refresher


app = FastAPI(
    lifespan=lifespan,
    title="Studio booker",
    description="Photo studio booking API: studios, packages, time slots and bookings.",
    version="0.1.0",
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT",
    },
)


@app.exception_handler(StudioBookingError)
async def studio_booking_error_handler(_: Request, exc: StudioBookingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(studios.router)
app.include_router(packages.router)
app.include_router(slots.router)
app.include_router(bookings.router)
