"""Page routes serving the dashboard HTML template."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from marketcorr.analysis import describe
from marketcorr.dashboard.routes.api import outcome_payload
from marketcorr.exceptions import RetrievalFailure
from marketcorr.models import Interval, QueryRequest, Timeframe
from marketcorr.orchestrator import (
    AnalysisFailure,
    AnalysisOutcome,
    AnalysisSuccess,
    FailureKind,
)

log = structlog.get_logger(__name__)

router = APIRouter()


async def _render(
    request: Request,
    selection: dict[str, str],
    outcome: AnalysisOutcome | None,
) -> HTMLResponse:
    """Render index.html with the catalog, the form selection and an optional outcome.

    A catalog failure still renders the page, with the error shown instead.
    """
    templates: Jinja2Templates = request.app.state.templates
    catalog = request.app.state.catalog
    guard = request.app.state.guard

    assets = []
    error = ""
    try:
        assets = await catalog.list_assets()
    except RetrievalFailure as e:
        log.warning("asset_catalog_failed", error=str(e))
        error = str(e)

    allowed_intervals = {
        timeframe.value: [i.value for i in guard.allowed_intervals(timeframe)]
        for timeframe in Timeframe
    }

    success = outcome if isinstance(outcome, AnalysisSuccess) else None
    if isinstance(outcome, AnalysisFailure):
        error = outcome.reason

    description = None
    chart_data = None
    if success is not None:
        if success.correlation is not None and success.correlation.coefficient is not None:
            description = describe(success.correlation.coefficient)
        payload = outcome_payload(success)
        chart_data = {
            "asset_a": payload["asset_a"],
            "asset_b": payload["asset_b"],
            "series_a": payload["series_a"],
            "rows": payload["rows"],
        }

    context = {
        "request": request,
        "title": request.app.state.title,
        "assets": assets,
        "timeframes": list(Timeframe),
        "intervals": list(Interval),
        "allowed_intervals": allowed_intervals,
        "selection": selection,
        "result": success,
        "description": description,
        "chart_data": chart_data,
        "error": error,
    }
    return templates.TemplateResponse(request, "index.html", context)


@router.get("/", response_class=HTMLResponse)
async def dashboard_index(request: Request) -> HTMLResponse:
    """Main dashboard page: asset pickers, timeframe and interval selects, last result."""
    orchestrator = request.app.state.orchestrator
    selection = {
        "asset_a": "",
        "asset_b": "",
        "timeframe": Timeframe.LAST_30_DAYS.value,
        "interval": Interval.ONE_HOUR.value,
    }
    outcome = orchestrator.last_outcome
    if isinstance(outcome, AnalysisSuccess):
        selection["asset_a"] = outcome.asset_a
        selection["asset_b"] = outcome.asset_b or ""
    return await _render(request, selection, outcome)


@router.post("/", response_class=HTMLResponse)
async def submit_analysis(request: Request) -> HTMLResponse:
    """Run the analysis for the submitted form and render the page with its outcome.

    Rejections and fetch failures render as the page's error message.
    """
    orchestrator = request.app.state.orchestrator
    form = await request.form()

    selection = {
        "asset_a": str(form.get("asset_a", "")).strip(),
        "asset_b": str(form.get("asset_b", "")).strip(),
        "timeframe": str(form.get("timeframe", Timeframe.LAST_30_DAYS.value)),
        "interval": str(form.get("interval", Interval.ONE_HOUR.value)),
    }

    try:
        query = QueryRequest(
            asset_a=selection["asset_a"] or None,
            asset_b=selection["asset_b"] or None,
            timeframe=Timeframe(selection["timeframe"]),
            interval=Interval(selection["interval"]),
        )
    except ValueError as e:
        log.warning("analysis_form_invalid", error=str(e))
        invalid = AnalysisFailure(reason=f"Invalid value: {e}", kind=FailureKind.POLICY)
        return await _render(request, selection, invalid)

    outcome = await orchestrator.run_analysis(query)
    return await _render(request, selection, outcome)
