"""
Human-readable reasoning for routing decisions.

Produces a single ``"; "``-joined sentence list from a scoring result.  The
output depends only on its inputs, so identical requests against identical
reputation state always explain themselves identically.
"""

from typing import List

from .models import MatchKind, TrackingContext, UserTier
from .registry import ProviderRegistry
from .scoring import ScoringResult


class ReasoningGenerator:
    """Renders the ``reasoning`` string of a routing decision."""

    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    def generate(self, context: TrackingContext, result: ScoringResult) -> str:
        reasons: List[str] = []

        carrier = result.suggested_carrier
        if carrier is not None:
            shape = (
                "container format" if result.match.kind == MatchKind.EXACT
                else "carrier prefix"
            )
            reasons.append(
                f"Detected {carrier.value.upper()} {shape} "
                f"({int(round(result.confidence * 100))}% confidence), "
                f"carrier {carrier.value}"
            )

        if context.cost_optimization or context.user_tier == UserTier.FREE:
            reasons.append("Prioritizing cost-effective providers")

        if context.reliability_optimization:
            reasons.append("Prioritizing high-reliability providers")

        if context.previous_failures:
            reasons.append(
                "Avoiding recently failed providers: "
                + ", ".join(context.previous_failures)
            )

        top = result.prioritized_providers[0]
        profile = self.registry.get_provider(top)
        if profile is not None:
            cost = "free" if profile.is_free else f"{profile.base_cost_cents}¢"
            reasons.append(
                f"Top choice: {top} ({cost}, "
                f"{int(round(profile.base_reliability * 100))}% reliable)"
            )
        else:
            reasons.append(f"Top choice: {top}")

        return "; ".join(reasons)
