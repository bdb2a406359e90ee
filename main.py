"""Main application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.api.error_handlers import validation_exception_handler
from src.api.routes import router
from src.services.market_data_aggregator import MarketSnapshotAggregator
from src.utils.config import config
from src.utils.event_store import EventStore
from src.utils.logger import StructuredLogger
from src.utils.metrics import MetricsCalculator

logger = StructuredLogger("App", config.logging.log_file)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    # Startup
    try:
        config.validate()
    except ValueError as e:
        logger.critical("Configuration error", exception=e)
        raise

    event_store = EventStore()
    app.state.event_store = event_store
    app.state.metrics_calculator = MetricsCalculator(event_store)
    app.state.aggregator = MarketSnapshotAggregator(config, event_store=event_store)
    logger.info(
        "Market snapshot service started",
        context={"api_url": config.coingecko.api_url, "assets": config.snapshot.assets},
    )
    yield
    # Shutdown
    await app.state.aggregator.aclose()


# Create FastAPI app
app = FastAPI(
    title="Market Snapshot",
    description="Cryptocurrency price summaries with 30-day daily-median trends",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Summaries are consumed by dashboards hosted on other origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router, prefix="/api", tags=["snapshot"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
