"""JSON API endpoints: asset catalog, pre-flight policy check and analysis runs."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from marketcorr.analysis import describe
from marketcorr.exceptions import RetrievalFailure
from marketcorr.models import Interval, MergedRow, PriceSeries, QueryRequest, Timeframe
from marketcorr.orchestrator import (
    AnalysisFailure,
    AnalysisOutcome,
    FailureKind,
)

log = structlog.get_logger(__name__)

router = APIRouter()

_FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.POLICY: 422,
    FailureKind.RETRIEVAL: 502,
    FailureKind.SUPERSEDED: 409,
}


class AnalysisRequestBody(BaseModel):
    """Form selection posted by the dashboard page."""

    asset_a: str | None = None
    asset_b: str | None = None
    timeframe: Timeframe = Timeframe.LAST_30_DAYS
    interval: Interval = Interval.ONE_HOUR

    def to_query(self) -> QueryRequest:
        return QueryRequest(
            asset_a=self.asset_a or None,
            asset_b=self.asset_b or None,
            timeframe=self.timeframe,
            interval=self.interval,
        )


def _decimal_to_str(value: Decimal | None) -> str | None:
    """Decimal prices travel as strings to keep their precision."""
    return str(value) if value is not None else None


def _iso(value: datetime) -> str:
    return value.isoformat()


def _series_payload(series: PriceSeries) -> list[dict[str, Any]]:
    return [{"datetime": _iso(p.timestamp), "close": str(p.close)} for p in series]


def _rows_payload(rows: list[MergedRow]) -> list[dict[str, Any]]:
    return [
        {
            "datetime": _iso(row.timestamp),
            "asset_a": _decimal_to_str(row.value_a),
            "asset_b": _decimal_to_str(row.value_b),
        }
        for row in rows
    ]


def outcome_payload(outcome: AnalysisOutcome) -> dict[str, Any]:
    """Serialize an analysis outcome for the dashboard page."""
    if isinstance(outcome, AnalysisFailure):
        return {"status": "failure", "kind": outcome.kind.value, "error": outcome.reason}

    correlation = None
    if outcome.correlation is not None:
        description = describe(outcome.correlation.coefficient)
        correlation = {
            "coefficient": outcome.correlation.coefficient,
            "sample_count": outcome.correlation.sample_count,
            "label": outcome.label.value,
            "description": description.text,
            "css_class": description.css_class,
            "bar_percent": description.bar_percent,
            "positive": description.positive,
        }

    return {
        "status": "success",
        "asset_a": outcome.asset_a,
        "asset_b": outcome.asset_b,
        "series_a": _series_payload(outcome.series_a),
        "series_b": _series_payload(outcome.series_b),
        "rows": _rows_payload(outcome.rows),
        "correlation": correlation,
    }


@router.get("/assets")
async def get_assets(request: Request) -> JSONResponse:
    """Asset catalog sorted by display name."""
    catalog = request.app.state.catalog
    try:
        assets = await catalog.list_assets()
    except RetrievalFailure as e:
        log.warning("asset_catalog_failed", error=str(e))
        return JSONResponse(status_code=502, content={"error": str(e)})

    return JSONResponse(content=[
        {"id": a.id, "symbol": a.symbol, "name": a.name, "type": a.type}
        for a in assets
    ])


@router.get("/policy")
async def get_policy(
    request: Request,
    timeframe: Timeframe = Timeframe.LAST_30_DAYS,
    interval: Interval = Interval.ONE_HOUR,
    asset_a: str | None = None,
) -> JSONResponse:
    """Pre-flight check of the current selection, without fetching anything."""
    guard = request.app.state.guard
    decision = guard.validate(
        QueryRequest(asset_a=asset_a, asset_b=None, timeframe=timeframe, interval=interval)
    )
    return JSONResponse(content={
        "accepted": decision.accepted,
        "reason": decision.reason,
        "allowed_intervals": [i.value for i in guard.allowed_intervals(timeframe)],
    })


@router.post("/analysis")
async def run_analysis(request: Request, body: AnalysisRequestBody) -> JSONResponse:
    """Run an analysis for the posted selection.

    200 with series and correlation on success; 422 for a policy rejection,
    502 for a failed price fetch, 409 when a newer request superseded this one.
    """
    orchestrator = request.app.state.orchestrator
    outcome = await orchestrator.run_analysis(body.to_query())

    status_code = 200
    if isinstance(outcome, AnalysisFailure):
        status_code = _FAILURE_STATUS[outcome.kind]
    return JSONResponse(status_code=status_code, content=outcome_payload(outcome))


@router.get("/analysis")
async def get_analysis_state(request: Request) -> JSONResponse:
    """Current lifecycle phase and the last published outcome, if any."""
    orchestrator = request.app.state.orchestrator
    state = orchestrator.state
    return JSONResponse(content={
        "phase": state.phase.value,
        "generation": state.generation,
        "busy": orchestrator.is_busy,
        "outcome": outcome_payload(state.outcome) if state.outcome is not None else None,
    })
