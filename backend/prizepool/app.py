from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from prizepool.config import config
from prizepool.database import database
from prizepool.logic.events import event_bus
from prizepool.logic.scheduling.lock import enforce_tournament_locks
from prizepool.routes import events, matches, payments, payouts, season, tournaments
from prizepool.utils.alembic import alembic_run_migrations
from prizepool.utils.errors import SettlementError
from prizepool.utils.logging import logger


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    if config.auto_run_migrations:
        alembic_run_migrations()

    await database.connect()
    locked = await enforce_tournament_locks()
    if len(locked) > 0:
        logger.info(f"Applied registration lock to {len(locked)} tournaments at startup")

    yield

    await event_bus.close()
    await database.disconnect()


routers = {
    "Tournaments": tournaments.router,
    "Matches": matches.router,
    "Payouts": payouts.router,
    "Payments": payments.router,
    "Season": season.router,
    "Events": events.router,
}

app = FastAPI(
    title="Prize Pool API",
    docs_url="/docs",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in config.cors_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SettlementError)
async def settlement_error_handler(_: Request, exc: SettlementError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "reason": exc.reason},
        headers=exc.headers,
    )


for tag, router in routers.items():
    app.include_router(router, tags=[tag])
