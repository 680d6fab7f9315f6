"""
Multi-criteria provider scoring for Container Router.

Combines static provider metadata, the carrier match, learned reputation
and the fallback strategy into a deterministic provider ordering.

Score for each eligible provider::

    reliability_weight * base_reliability * reliability_scale
  + cost_weight * max(0, cost_ceiling_cents - base_cost_cents)
  + free_bonus                              (zero-cost providers only)
  + carrier_match_bonus * match.confidence  (detected carrier only)
  - min(cap, per_failure * recent_failures)
  - previous_failure_penalty                (ids the caller already tried)

The penalty depends only on stored reputation, never on the clock, so
scoring is a pure read.  All constants come from the ``scoring`` section of
the configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .config import Config
from .models import Carrier, FallbackStrategy, TrackingContext
from .patterns import CarrierMatch
from .registry import ProviderProfile, ProviderRegistry
from .reputation import ProviderReputation, ReputationTracker

_log = logging.getLogger(__name__)


# ── Weights ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StrategyWeights:
    """Relative weights applied under one fallback strategy."""
    reliability: float
    cost: float
    free_bonus: float = 0.0


@dataclass(frozen=True)
class ScoringWeights:
    """All numeric constants used by :class:`ScoringEngine`."""

    strategies: Dict[FallbackStrategy, StrategyWeights]
    reliability_scale: float = 100.0
    cost_ceiling_cents: int = 100
    carrier_match_bonus: float = 100.0
    suggestion_threshold: float = 0.5
    failure_penalty_per_failure: float = 15.0
    failure_penalty_cap: float = 60.0
    previous_failure_penalty: float = 40.0

    def __post_init__(self) -> None:
        """Validate all fields on construction."""
        missing = [s.value for s in FallbackStrategy if s not in self.strategies]
        if missing:
            raise ValueError(f"scoring weights missing for strategies: {missing}")
        for strategy, w in self.strategies.items():
            if w.reliability < 0 or w.cost < 0 or w.free_bonus < 0:
                raise ValueError(
                    f"weights for {strategy.value} must be >= 0, got {w}"
                )
        for name in (
            "reliability_scale", "cost_ceiling_cents", "carrier_match_bonus",
            "failure_penalty_per_failure", "failure_penalty_cap",
            "previous_failure_penalty",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if not (0.0 <= self.suggestion_threshold <= 1.0):
            raise ValueError(
                f"suggestion_threshold must be 0.0–1.0, got {self.suggestion_threshold}"
            )

    @classmethod
    def from_config(cls, config: Config) -> "ScoringWeights":
        scoring = config.get_scoring()
        strategies = {
            FallbackStrategy(name): StrategyWeights(
                reliability=float(w.get("reliability", 1.0)),
                cost=float(w.get("cost", 1.0)),
                free_bonus=float(w.get("free_bonus", 0.0)),
            )
            for name, w in scoring.get("strategies", {}).items()
        }
        scalars = {
            key: scoring[key]
            for key in (
                "reliability_scale", "cost_ceiling_cents", "carrier_match_bonus",
                "suggestion_threshold", "failure_penalty_per_failure",
                "failure_penalty_cap", "previous_failure_penalty",
            )
            if key in scoring
        }
        return cls(strategies=strategies, **scalars)


# ── Results ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProviderScore:
    """Score breakdown for a single provider."""
    provider: str
    total: float
    reliability: float
    cost: float
    free_bonus: float = 0.0
    carrier_bonus: float = 0.0
    failure_penalty: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "total": round(self.total, 4),
            "reliability": round(self.reliability, 4),
            "cost": round(self.cost, 4),
            "free_bonus": round(self.free_bonus, 4),
            "carrier_bonus": round(self.carrier_bonus, 4),
            "failure_penalty": round(self.failure_penalty, 4),
        }


@dataclass(frozen=True)
class ScoringResult:
    """Ordered provider scores plus the carrier suggestion."""
    strategy: FallbackStrategy
    scores: Tuple[ProviderScore, ...]
    suggested_carrier: Optional[Carrier]
    confidence: float
    match: CarrierMatch = field(default_factory=CarrierMatch.no_match)

    @property
    def prioritized_providers(self) -> List[str]:
        return [s.provider for s in self.scores]


# ── Engine ────────────────────────────────────────────────────────────────────

class ScoringEngine:
    """Ranks eligible providers for a tracking request."""

    def __init__(
        self,
        registry: ProviderRegistry,
        reputation: ReputationTracker,
        weights: ScoringWeights,
    ) -> None:
        self.registry = registry
        self.reputation = reputation
        self.weights = weights

    def score(
        self,
        context: TrackingContext,
        match: CarrierMatch,
        strategy: FallbackStrategy,
    ) -> ScoringResult:
        """Score and order every provider eligible for *context*.

        Args:
            context: Caller request.
            match: Carrier detected from the tracking number.
            strategy: Fallback strategy chosen for the request.

        Returns:
            :class:`ScoringResult` with providers sorted by descending score;
            ties keep registry declaration order.
        """
        previous = set(context.previous_failures)
        candidates = self.registry.providers_supporting(context.tracking_type)

        scores = [
            self._score_provider(provider, match, strategy, previous)
            for provider in candidates
        ]
        # sorted() is stable, so equal totals keep declaration order
        ordered = tuple(sorted(scores, key=lambda s: -s.total))

        suggested = (
            match.carrier_id
            if match.carrier_id is not None
            and match.confidence > self.weights.suggestion_threshold
            else None
        )

        if _log.isEnabledFor(logging.DEBUG):
            _log.debug(
                "Scores for %r (%s): %s",
                context.tracking_number, strategy.value,
                ", ".join(f"{s.provider}={s.total:.1f}" for s in ordered),
            )

        return ScoringResult(
            strategy=strategy,
            scores=ordered,
            suggested_carrier=suggested,
            confidence=match.confidence,
            match=match,
        )

    def _score_provider(
        self,
        provider: ProviderProfile,
        match: CarrierMatch,
        strategy: FallbackStrategy,
        previous_failures: set,
    ) -> ProviderScore:
        w = self.weights
        sw = w.strategies[strategy]

        reliability = sw.reliability * provider.base_reliability * w.reliability_scale
        cost = sw.cost * max(0, w.cost_ceiling_cents - provider.base_cost_cents)
        free_bonus = sw.free_bonus if provider.is_free else 0.0

        carrier_bonus = 0.0
        if match.carrier_id is not None and provider.id == match.carrier_id.value:
            carrier_bonus = w.carrier_match_bonus * match.confidence

        penalty = self._reputation_penalty(self.reputation.stats_of(provider.id))
        if provider.id in previous_failures:
            penalty += w.previous_failure_penalty

        total = reliability + cost + free_bonus + carrier_bonus - penalty
        return ProviderScore(
            provider=provider.id,
            total=total,
            reliability=reliability,
            cost=cost,
            free_bonus=free_bonus,
            carrier_bonus=carrier_bonus,
            failure_penalty=penalty,
        )

    def _reputation_penalty(self, rep: ProviderReputation) -> float:
        """Capped penalty for the provider's stored failure count."""
        w = self.weights
        return min(
            w.failure_penalty_cap,
            w.failure_penalty_per_failure * max(0, rep.recent_failures),
        )
