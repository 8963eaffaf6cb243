import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.middleware.exceptions import register_exception_handlers
from app.routers import (
    batches, costs, gate_passes, harvest, health, inspections, inventory, reports, sales, vendors,
)
from app.utils.cache import close_redis

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("bananatrack")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("BananaTrack starting (environment=%s)", settings.environment)
    yield
    await close_redis()
    logger.info("BananaTrack stopped")


app = FastAPI(
    title="BananaTrack",
    description="Banana export batch lifecycle, box accounting and cost roll-up",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(inspections.farms_router, prefix="/api/farms", tags=["farms"])
app.include_router(inspections.router, prefix="/api/inspections", tags=["inspections"])
app.include_router(batches.router, prefix="/api/batches", tags=["batches"])
app.include_router(harvest.router, prefix="/api/harvest", tags=["harvest"])
app.include_router(gate_passes.router, prefix="/api/gate-passes", tags=["gate-passes"])
app.include_router(costs.router, prefix="/api/costs", tags=["costs"])
app.include_router(costs.transport_router, prefix="/api/transport", tags=["costs"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["inventory"])
app.include_router(vendors.router, prefix="/api/vendors", tags=["vendors"])
app.include_router(sales.router, prefix="/api/sales", tags=["sales"])
app.include_router(reports.router, prefix="/api/reports", tags=["reports"])
