from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import settings
from app.core.database import AsyncSessionLocal, init_db
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging
from app.core.middleware import RequestContextMiddleware
from app.services.eod_snapshot import EodSnapshotJob, EodSnapshotScheduler
from app.web.routes import api, health

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and run the end-of-day snapshot scheduler while the app is up."""
    await init_db()

    scheduler = None
    if settings.EOD_SNAPSHOT_ENABLED:
        scheduler = EodSnapshotScheduler(EodSnapshotJob(AsyncSessionLocal))
        scheduler.start()
    app.state.eod_scheduler = scheduler

    yield

    if scheduler is not None:
        await scheduler.stop()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Eligibility and lifecycle of deposit accounts and credit products",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)
register_exception_handlers(app)

# Include routers
app.include_router(api.router, prefix="/api", tags=["api"])
app.include_router(health.router, tags=["health"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
