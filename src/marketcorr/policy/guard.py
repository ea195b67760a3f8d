"""Pre-flight query policy.

Runs synchronously against the current selection, before any network call.
Two rules only:
  - a primary asset must be selected (the second asset is optional)
  - the estimated record count must stay under the sample ceiling, which
    for the offered timeframes and intervals rules out 365 days at 1 hour
"""

from __future__ import annotations

from dataclasses import dataclass

from marketcorr.exceptions import PolicyRejection
from marketcorr.logging import get_logger
from marketcorr.models import Interval, QueryRequest, Timeframe

logger = get_logger(__name__)

MISSING_ASSET_REASON = "Select at least one asset."

# Fixed ceiling: only 365 days at 1 hour (8760 samples) exceeds it.
MAX_SAMPLES = 5000


def volume_limit_reason(max_samples: int) -> str:
    """User-facing explanation for a request that would return too many records."""
    return (
        f"This timeframe and interval return too many ({max_samples}+) records. "
        "Choose a shorter timeframe (90 or 30 days) or a larger interval (4 hours or 1 day)."
    )


def estimated_samples(timeframe: Timeframe, interval: Interval) -> int:
    """Number of price points a timeframe/interval combination yields at most."""
    return timeframe.hours // interval.hours


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of a pre-flight check. reason is "" when accepted."""

    accepted: bool
    reason: str = ""


class QueryPolicyGuard:
    """Validates analysis requests before any price data is fetched."""

    def exceeds_volume_limit(self, timeframe: Timeframe, interval: Interval) -> bool:
        return estimated_samples(timeframe, interval) > MAX_SAMPLES

    def validate(self, request: QueryRequest) -> PolicyDecision:
        """Check a request against the selection and volume rules.

        Args:
            request: The user's current selection.

        Returns:
            PolicyDecision; rejected decisions carry a user-facing reason.
        """
        if not request.has_primary:
            return PolicyDecision(accepted=False, reason=MISSING_ASSET_REASON)

        if self.exceeds_volume_limit(request.timeframe, request.interval):
            logger.info(
                "query_rejected_volume_limit",
                timeframe=request.timeframe.value,
                interval=request.interval.value,
                estimated_samples=estimated_samples(request.timeframe, request.interval),
            )
            return PolicyDecision(
                accepted=False,
                reason=volume_limit_reason(MAX_SAMPLES),
            )

        return PolicyDecision(accepted=True)

    def enforce(self, request: QueryRequest) -> None:
        """Raise instead of returning a decision.

        Raises:
            PolicyRejection: the request failed validate().
        """
        decision = self.validate(request)
        if not decision.accepted:
            raise PolicyRejection(decision.reason)

    def allowed_intervals(self, timeframe: Timeframe) -> list[Interval]:
        """Intervals the guard accepts for a timeframe, for disabling form options."""
        return [
            interval
            for interval in Interval
            if not self.exceeds_volume_limit(timeframe, interval)
        ]
