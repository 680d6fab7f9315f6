"""
Main routing interface for Container Router.

Combines carrier detection, strategy selection, provider scoring and
reasoning into a single decision about which tracking providers to query
and in what order.  Callers perform the lookups themselves and report each
outcome back through :meth:`Router.record_failure` /
:meth:`Router.record_success`, which feeds future decisions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .config import Config
from .models import (
    Carrier,
    FallbackStrategy,
    MatchKind,
    TrackingContext,
)
from .patterns import PatternMatcher
from .reasoning import ReasoningGenerator
from .registry import ProviderRegistry
from .reputation import ReputationTracker
from .scoring import ProviderScore, ScoringEngine, ScoringWeights
from .strategy import StrategySelector

_log = logging.getLogger(__name__)


# ── RoutingDecision ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RoutingDecision:
    """Which providers to query, in order, and why."""

    suggested_carrier: Optional[Carrier]
    confidence: float
    prioritized_providers: Tuple[str, ...]
    fallback_strategy: FallbackStrategy
    reasoning: str

    match_kind: MatchKind = MatchKind.NONE
    """How the carrier was recognised from the tracking number."""

    scores: Tuple[ProviderScore, ...] = field(default_factory=tuple)
    """Per-provider score breakdown, in ``prioritized_providers`` order."""

    @property
    def top_provider(self) -> str:
        return self.prioritized_providers[0]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "suggested_carrier": (
                self.suggested_carrier.value if self.suggested_carrier else None
            ),
            "confidence": self.confidence,
            "prioritized_providers": list(self.prioritized_providers),
            "fallback_strategy": self.fallback_strategy.value,
            "reasoning": self.reasoning,
            "match_kind": self.match_kind.value,
            "scores": [s.to_dict() for s in self.scores],
        }


# ── Router ────────────────────────────────────────────────────────────────────

class Router:
    """Facade over the provider-selection engine.

    The reputation store is the only mutable state.  Pass your own
    :class:`ReputationTracker` to share learned reputation between routers
    or to isolate it per tenant; by default each router owns a fresh one.

    Example::

        router = Router()
        decision = router.analyze_routing(
            TrackingContext("MAEU1234567", user_tier="premium")
        )
        for provider in decision.prioritized_providers:
            ...  # call the provider
            router.record_success(provider)
    """

    def __init__(
        self,
        config_path: str = None,
        reputation: Optional[ReputationTracker] = None,
        config: Optional[Config] = None,
    ):
        """Initialize the router.

        Args:
            config_path: Path to configuration directory.
            reputation: Reputation store to read and update. A new one using
                the configured recovery rule is created when omitted.
            config: Pre-built :class:`Config`; takes precedence over
                *config_path*.
        """
        self.config = config if config is not None else Config(config_path)
        self.registry = ProviderRegistry(self.config)
        self.matcher = PatternMatcher(self.config)
        self.selector = StrategySelector(self.config)
        if reputation is None:
            settings = self.config.get_reputation_settings()
            reputation = ReputationTracker(
                recovery=settings.get("recovery", "halve"),
                failure_window_hours=settings.get("failure_window_hours"),
            )
        self.reputation = reputation
        self.engine = ScoringEngine(
            self.registry, self.reputation, ScoringWeights.from_config(self.config)
        )
        self.reasoning = ReasoningGenerator(self.registry)

    # ── Public routing interface ──────────────────────────────────────────

    def analyze_routing(
        self, context: Union[TrackingContext, Dict[str, Any]]
    ) -> RoutingDecision:
        """Decide which providers to query for a tracking request.

        Reads reputation but never changes it and never consults the clock,
        so repeated calls with no intervening outcome reports return equal
        decisions.

        Args:
            context: :class:`TrackingContext`, or a dict accepted by
                :meth:`TrackingContext.from_dict`.

        Returns:
            :class:`RoutingDecision` with a non-empty provider ordering.
        """
        if not isinstance(context, TrackingContext):
            context = TrackingContext.from_dict(context)

        match = self.matcher.detect_carrier(context.tracking_number)
        strategy = self.selector.select_strategy(context)
        result = self.engine.score(context, match, strategy)
        reasoning = self.reasoning.generate(context, result)

        decision = RoutingDecision(
            suggested_carrier=result.suggested_carrier,
            confidence=result.confidence,
            prioritized_providers=tuple(result.prioritized_providers),
            fallback_strategy=strategy,
            reasoning=reasoning,
            match_kind=match.kind,
            scores=result.scores,
        )
        _log.debug(
            "Routed %r: carrier=%s confidence=%.2f strategy=%s top=%s",
            context.tracking_number,
            decision.suggested_carrier.value if decision.suggested_carrier else None,
            decision.confidence,
            strategy.value,
            decision.top_provider,
        )
        return decision

    # ── Outcome reporting ─────────────────────────────────────────────────

    def record_failure(self, provider_id: str, error: Any = None) -> None:
        """Record a failed lookup against *provider_id*.

        Args:
            provider_id: Any provider id, including ad-hoc ones.
            error: Optional error details (``ProviderError``, dict with
                ``provider`` / ``errorType`` / ``message``, or exception).
        """
        if provider_id not in self.registry:
            _log.debug("Failure reported for unregistered provider %r", provider_id)
        self.reputation.record_failure(provider_id, error)

    def record_success(self, provider_id: str) -> None:
        """Record a successful lookup against *provider_id*."""
        self.reputation.record_success(provider_id)

    # ── Observability ─────────────────────────────────────────────────────

    def get_provider_stats(self) -> List[Dict[str, Any]]:
        """Return cost, reliability and reputation for every registered provider.

        Returns a list of dicts with keys:
            provider, cost, reliability, recent_failures, last_failure,
            last_success
        """
        return [self._stats_dict(p.id) for p in self.registry.list_providers()]

    def get_provider_stats_including_unknown(
        self, provider_id: str
    ) -> Optional[Dict[str, Any]]:
        """Return stats for a registered id or any id with reported outcomes.

        Unregistered providers report cost and reliability as 0.  Returns
        *None* for an id that is neither registered nor ever reported.
        """
        if provider_id not in self.registry and (
            self.reputation.stats_including_unknown(provider_id) is None
        ):
            return None
        return self._stats_dict(provider_id)

    def _stats_dict(self, provider_id: str) -> Dict[str, Any]:
        profile = self.registry.get_provider(provider_id)
        rep = self.reputation.stats_of(provider_id)
        return {
            "provider": provider_id,
            "cost": profile.base_cost_cents if profile else 0,
            "reliability": profile.base_reliability if profile else 0.0,
            "recent_failures": rep.recent_failures,
            "last_failure": rep.last_failure,
            "last_success": rep.last_success,
        }

    # ── Explainability ────────────────────────────────────────────────────

    def explain(self, decision: RoutingDecision) -> str:
        """Generate a multi-line explanation of a routing decision.

        Args:
            decision: The :class:`RoutingDecision` to explain.

        Returns:
            Explanation with the chosen provider, strategy, reasoning and the
            score breakdown of every candidate.
        """
        conf_pct = int(round(decision.confidence * 100))
        carrier = decision.suggested_carrier.value if decision.suggested_carrier else "unknown"
        lines: List[str] = [
            f"Provider selected: {decision.top_provider}",
            f"Carrier: {carrier} ({decision.match_kind.value} match, {conf_pct}% confidence)",
            f"Strategy: {decision.fallback_strategy.value.replace('_', ' ')}",
            f"Reasoning: {decision.reasoning}",
        ]
        if decision.scores:
            lines.append("Scores:")
            for s in decision.scores:
                parts = [
                    f"reliability {s.reliability:.1f}",
                    f"cost {s.cost:.1f}",
                ]
                if s.free_bonus:
                    parts.append(f"free +{s.free_bonus:.1f}")
                if s.carrier_bonus:
                    parts.append(f"carrier +{s.carrier_bonus:.1f}")
                if s.failure_penalty:
                    parts.append(f"failures -{s.failure_penalty:.1f}")
                lines.append(f"  • {s.provider}: {s.total:.1f} ({', '.join(parts)})")
        return "\n".join(lines)
