"""Entry point for the market correlation dashboard.

Wires the price source, policy guard, asset catalog and analysis
orchestrator together and serves them through the FastAPI dashboard on a
single asyncio event loop via uvicorn's programmatic API. The price source
is opened and closed by FastAPI's lifespan context manager.

Component wiring order (in _build_components):
1. PriceSource (HttpPriceSource or ExchangePriceSource, per AppSettings.source)
2. QueryPolicyGuard (pre-flight checks)
3. AssetCatalog (sorted asset list)
4. AnalysisOrchestrator (fetch, align, correlate, classify)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from marketcorr.config import AppSettings
from marketcorr.exceptions import RetrievalFailure
from marketcorr.logging import get_logger, setup_logging
from marketcorr.orchestrator import AnalysisOrchestrator
from marketcorr.policy import QueryPolicyGuard
from marketcorr.sources import AssetCatalog, ExchangePriceSource, HttpPriceSource


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all dashboard components from settings.

    Does NOT open the price source; that happens in the lifespan.

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    if settings.source == "exchange":
        source = ExchangePriceSource(settings.exchange)
    else:
        source = HttpPriceSource(settings.price_api)

    guard = QueryPolicyGuard()
    catalog = AssetCatalog(source)
    orchestrator = AnalysisOrchestrator(source=source, guard=guard)

    return {
        "source": source,
        "guard": guard,
        "catalog": catalog,
        "orchestrator": orchestrator,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the price source on startup and close it on shutdown.

    Components are stored on app.state for the route handlers.
    """
    logger = get_logger("marketcorr.main")
    settings = app.state.settings
    components = app.state.components

    app.state.orchestrator = components["orchestrator"]
    app.state.catalog = components["catalog"]
    app.state.guard = components["guard"]

    # Sources connect lazily on first use if this fails
    try:
        await components["source"].connect()
    except RetrievalFailure as e:
        logger.warning("price_source_connect_failed", source=settings.source, error=str(e))
    logger.info("lifespan_started", source=settings.source)

    try:
        yield
    finally:
        await components["source"].close()
        logger.info("market_correlation_dashboard_stopped")


async def run() -> None:
    """Load settings, set up logging and serve the dashboard until interrupted."""
    settings = AppSettings()

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("marketcorr.main")

    components = _build_components(settings)

    from marketcorr.dashboard.app import create_dashboard_app

    app = create_dashboard_app(title=settings.dashboard.title, lifespan=lifespan)
    app.state.settings = settings
    app.state.components = components

    logger.info(
        "starting_dashboard",
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        source=settings.source,
    )

    config = uvicorn.Config(
        app,
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
