"""Analysis orchestrator -- runs one correlation analysis per user request.

Each run walks a fixed pipeline:
  1. VALIDATE: pre-flight policy check, no I/O
  2. FETCH A: price history of the primary asset
  3. FETCH B: price history of the second asset, only after A completed
  4. ALIGN: merge both series onto one timeline with forward-fill
  5. CORRELATE: Pearson's r over the valid pairs
  6. CLASSIFY: strength/direction label

The lifecycle is held as a single immutable AnalysisState (phase,
generation, outcome) and moved only along the edges in _TRANSITIONS, so a
run can never be "loading" while also holding a result.

A new request supersedes the one in flight: the generation counter is
bumped, the old task is cancelled, and an old run that still reaches a
transition is ignored because its generation is no longer current.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum

from marketcorr.analysis import align, classify, correlate
from marketcorr.exceptions import InvalidStateTransition, PolicyRejection, RetrievalFailure
from marketcorr.logging import bind_analysis_context, get_logger
from marketcorr.models import (
    CorrelationLabel,
    CorrelationResult,
    MergedRow,
    PriceSeries,
    QueryRequest,
)
from marketcorr.policy.guard import QueryPolicyGuard
from marketcorr.sources.client import PriceSource

logger = get_logger(__name__)

SUPERSEDED_REASON = "Superseded by a newer analysis request."


class AnalysisPhase(str, Enum):
    """Where an analysis run currently is."""

    IDLE = "idle"
    VALIDATING = "validating"
    REJECTED = "rejected"
    FETCHING_A = "fetching_a"
    FETCHING_B = "fetching_b"
    ALIGNING = "aligning"
    CORRELATING = "correlating"
    CLASSIFYING = "classifying"
    FETCH_FAILED = "fetch_failed"


_TRANSITIONS: dict[AnalysisPhase, frozenset[AnalysisPhase]] = {
    AnalysisPhase.IDLE: frozenset({AnalysisPhase.VALIDATING}),
    AnalysisPhase.VALIDATING: frozenset({AnalysisPhase.REJECTED, AnalysisPhase.FETCHING_A}),
    AnalysisPhase.REJECTED: frozenset({AnalysisPhase.IDLE}),
    # IDLE straight from FETCHING_A: no second asset, correlation skipped
    AnalysisPhase.FETCHING_A: frozenset(
        {AnalysisPhase.FETCHING_B, AnalysisPhase.IDLE, AnalysisPhase.FETCH_FAILED}
    ),
    AnalysisPhase.FETCHING_B: frozenset({AnalysisPhase.ALIGNING, AnalysisPhase.FETCH_FAILED}),
    AnalysisPhase.ALIGNING: frozenset({AnalysisPhase.CORRELATING}),
    AnalysisPhase.CORRELATING: frozenset({AnalysisPhase.CLASSIFYING}),
    AnalysisPhase.CLASSIFYING: frozenset({AnalysisPhase.IDLE}),
    AnalysisPhase.FETCH_FAILED: frozenset({AnalysisPhase.IDLE}),
}


class FailureKind(str, Enum):
    """Why an analysis produced no result."""

    POLICY = "policy"
    RETRIEVAL = "retrieval"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class AnalysisSuccess:
    """Series, alignment and correlation of a completed run.

    With no second asset, series_b and rows are empty and correlation is None.
    """

    asset_a: str
    asset_b: str | None
    series_a: PriceSeries
    series_b: PriceSeries = field(default_factory=list)
    rows: list[MergedRow] = field(default_factory=list)
    correlation: CorrelationResult | None = None
    label: CorrelationLabel = CorrelationLabel.NONE


@dataclass(frozen=True)
class AnalysisFailure:
    """A run that ended without a result. reason is user-facing."""

    reason: str
    kind: FailureKind


AnalysisOutcome = AnalysisSuccess | AnalysisFailure


@dataclass(frozen=True)
class AnalysisState:
    """Tagged lifecycle state. outcome is only set when phase is IDLE."""

    phase: AnalysisPhase = AnalysisPhase.IDLE
    generation: int = 0
    outcome: AnalysisOutcome | None = None


class AnalysisOrchestrator:
    """Sequences retrieval, alignment, correlation and classification.

    Args:
        source: Price history collaborator.
        guard: Pre-flight policy guard.
    """

    def __init__(self, source: PriceSource, guard: QueryPolicyGuard) -> None:
        self._source = source
        self._guard = guard
        self._state = AnalysisState()
        self._generation = 0
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def state(self) -> AnalysisState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_busy(self) -> bool:
        """Whether a run is between VALIDATING and its final IDLE."""
        return self._state.phase is not AnalysisPhase.IDLE

    @property
    def last_outcome(self) -> AnalysisOutcome | None:
        """Outcome of the newest finished run, None while one is in flight or after a reset."""
        return self._state.outcome

    async def run_analysis(self, request: QueryRequest) -> AnalysisOutcome:
        """Run the full pipeline for a request and return its outcome.

        Previously held results are cleared before the new run starts. If a
        newer request arrives while this one is in flight, this run is
        cancelled and returns an AnalysisFailure of kind SUPERSEDED without
        touching the held state.
        """
        self._generation += 1
        generation = self._generation

        previous = self._task
        if previous is not None and not previous.done():
            previous.cancel()
            logger.info("analysis_superseded", superseded_by=generation)

        # Stale series/correlation must never sit next to the new run's error
        self._state = AnalysisState(generation=generation)

        task = asyncio.create_task(self._pipeline(request, generation))
        self._task = task
        try:
            return await task
        except asyncio.CancelledError:
            if generation != self._generation:
                return AnalysisFailure(reason=SUPERSEDED_REASON, kind=FailureKind.SUPERSEDED)
            self._reset(generation)
            raise
        except Exception:
            self._reset(generation)
            raise
        finally:
            if self._task is task:
                self._task = None

    async def _pipeline(self, request: QueryRequest, generation: int) -> AnalysisOutcome:
        """One analysis run. Executes inside its own task, so bound context stays local."""
        bind_analysis_context(generation, request.asset_a, request.asset_b)
        logger.info(
            "analysis_started",
            timeframe=request.timeframe.value,
            interval=request.interval.value,
        )

        self._transition(generation, AnalysisPhase.VALIDATING)
        try:
            self._guard.enforce(request)
        except PolicyRejection as e:
            self._transition(generation, AnalysisPhase.REJECTED)
            logger.info("analysis_rejected", reason=e.reason)
            return self._finish(
                generation, AnalysisFailure(reason=e.reason, kind=FailureKind.POLICY)
            )

        # Sequential on purpose: B is only requested once A has resolved
        try:
            self._transition(generation, AnalysisPhase.FETCHING_A)
            series_a = await self._source.fetch_prices(
                request.asset_a, request.timeframe, request.interval
            )
            logger.info("series_fetched", leg="a", points=len(series_a))

            if not request.has_secondary:
                return self._finish(
                    generation,
                    AnalysisSuccess(asset_a=request.asset_a, asset_b=None, series_a=series_a),
                )

            self._transition(generation, AnalysisPhase.FETCHING_B)
            series_b = await self._source.fetch_prices(
                request.asset_b, request.timeframe, request.interval
            )
            logger.info("series_fetched", leg="b", points=len(series_b))
        except RetrievalFailure as e:
            self._transition(generation, AnalysisPhase.FETCH_FAILED)
            logger.warning("price_fetch_failed", error=str(e))
            return self._finish(
                generation, AnalysisFailure(reason=str(e), kind=FailureKind.RETRIEVAL)
            )

        self._transition(generation, AnalysisPhase.ALIGNING)
        rows = align(series_a, series_b)

        self._transition(generation, AnalysisPhase.CORRELATING)
        correlation = correlate(rows)

        self._transition(generation, AnalysisPhase.CLASSIFYING)
        label = classify(correlation.coefficient)

        logger.info(
            "analysis_completed",
            rows=len(rows),
            sample_count=correlation.sample_count,
            coefficient=correlation.coefficient,
            label=label.value,
        )
        return self._finish(
            generation,
            AnalysisSuccess(
                asset_a=request.asset_a,
                asset_b=request.asset_b,
                series_a=series_a,
                series_b=series_b,
                rows=rows,
                correlation=correlation,
                label=label,
            ),
        )

    def _transition(
        self,
        generation: int,
        phase: AnalysisPhase,
        outcome: AnalysisOutcome | None = None,
    ) -> bool:
        """Move to ``phase`` if ``generation`` is still current.

        Returns:
            False when the run was superseded and the state was left alone.

        Raises:
            InvalidStateTransition: the edge is not in _TRANSITIONS.
        """
        if generation != self._generation:
            return False
        current = self._state.phase
        if phase not in _TRANSITIONS[current]:
            raise InvalidStateTransition(f"{current.value} -> {phase.value}")
        self._state = AnalysisState(phase=phase, generation=generation, outcome=outcome)
        return True

    def _finish(self, generation: int, outcome: AnalysisOutcome) -> AnalysisOutcome:
        """Return to IDLE holding the outcome. Superseded runs publish nothing."""
        if not self._transition(generation, AnalysisPhase.IDLE, outcome):
            logger.info("analysis_result_discarded", generation=generation)
        return outcome

    def _reset(self, generation: int) -> None:
        """Drop back to an empty IDLE after a crashed or cancelled current run."""
        if generation == self._generation:
            self._state = AnalysisState(generation=generation)
