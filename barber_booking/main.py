# barber_booking/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .config import DATABASE_URL, LOG_LEVEL, SLOT_WIDTH
from .db import init_db, make_engine
from .ledger import SlotLedger
from .routers.barbers_routes import router as barbers_router
from .routers.bookings_routes import router as bookings_router

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(database_url: Optional[str] = None, slot_width: int = SLOT_WIDTH) -> FastAPI:
    engine = make_engine(database_url or DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting up...")
        init_db(engine)
        yield
        engine.dispose()
        logger.info("Application shut down")

    app = FastAPI(title="Barbershop Booking API", lifespan=lifespan)
    # one ledger per process: it owns the per-(barber, date) locks
    app.state.engine = engine
    app.state.ledger = SlotLedger(slot_width=slot_width)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(barbers_router)
    app.include_router(bookings_router)
    return app


app = create_app()
