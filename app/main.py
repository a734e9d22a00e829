"""Civic Simulation Engine - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import Settings, get_settings
from app.core.errors import EngineError
from app.db.base import Base
from app.db.session import AsyncSessionLocal, engine
from app.routers import api
from app.services.catalog import ScenarioCatalog, load_catalog
from app.services.notifier import CompletionNotifier, make_notifier
from app.services.progress_store import ProgressStore
from app.services.rewards import RewardLedger
from app.services.simulations import SimulationService

logger = logging.getLogger(__name__)


def build_service(
    settings: Settings,
    sessionmaker,
    catalog: ScenarioCatalog,
    notifier: CompletionNotifier | None = None,
    clock=None,
) -> SimulationService:
    """Wire catalog, store, ledger and notifier into one service."""
    clock_kwargs = {"clock": clock} if clock is not None else {}
    ledger = RewardLedger(
        sessionmaker,
        points_per_level=settings.points_per_level,
        streak_reset_on_gap=settings.streak_reset_on_gap,
        timeout=settings.store_timeout_seconds,
        max_retries=settings.max_write_retries,
        **clock_kwargs,
    )
    return SimulationService(
        catalog,
        ProgressStore(sessionmaker, timeout=settings.store_timeout_seconds),
        ledger,
        notifier or make_notifier(settings.notifier_webhook_url, settings.notifier_timeout_seconds),
        max_retries=settings.max_write_retries,
        lesson_points=settings.lesson_completion_points,
        **clock_kwargs,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # catalog first: a malformed definition aborts start-up
    catalog = load_catalog(settings.catalog_path)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app.state.simulations = build_service(settings, AsyncSessionLocal, catalog)
    logger.info("%s ready with %d simulations", settings.app_name, len(catalog))

    yield
    await engine.dispose()


settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Civic Simulation Engine",
    description="Branching civic simulations with rewards and achievements",
    lifespan=lifespan,
)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.kind, "detail": exc.message},
    )


app.include_router(api.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
