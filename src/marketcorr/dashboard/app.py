"""FastAPI dashboard application factory with Jinja2 templates."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from marketcorr.dashboard.routes import api, pages

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _format_decimal(value: Any, places: int = 2) -> str:
    """Format a price with a fixed number of decimals, "-" for missing values."""
    if value is None:
        return "-"
    return f"{value:.{places}f}"


def _format_coefficient(value: float | None) -> str:
    """Round a correlation coefficient for display. Rounding happens only here."""
    if value is None:
        return "n/a"
    return f"{value:.2f}"


def _format_datetime(value: datetime | None) -> str:
    """Render a timestamp as 'dd-mm-yyyy HH:MM:SS' in UTC."""
    if value is None:
        return "N/A"
    return value.astimezone(timezone.utc).strftime("%d-%m-%Y %H:%M:%S")


def create_dashboard_app(title: str = "Market Correlation Dashboard", lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI dashboard application.

    Args:
        title: Page and OpenAPI title.
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to open and close the price source.

    Returns:
        Configured FastAPI application with templates and routes. Route
        handlers expect app.state.orchestrator, app.state.catalog and
        app.state.guard to be set by the caller.
    """
    app = FastAPI(title=title, lifespan=lifespan)

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.filters["format_decimal"] = _format_decimal
    templates.env.filters["format_coefficient"] = _format_coefficient
    templates.env.filters["format_datetime"] = _format_datetime
    app.state.templates = templates
    app.state.title = title

    app.include_router(pages.router)
    app.include_router(api.router, prefix="/api")

    return app
