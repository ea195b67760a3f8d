"""Pre-flight validation of analysis requests."""

from marketcorr.policy.guard import PolicyDecision, QueryPolicyGuard, estimated_samples

__all__ = ["PolicyDecision", "QueryPolicyGuard", "estimated_samples"]
