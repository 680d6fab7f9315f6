"""
Tests for Router.analyze_routing and outcome reporting.

Covers:
  1. Carrier detection drives the top provider
  2. Fallback strategy selection and its effect on ordering
  3. BOL filtering
  4. Failure penalties and recovery
  5. Reasoning text
  6. Provider statistics
  7. Edge cases and determinism
"""

from __future__ import annotations

from datetime import datetime
from typing import List

import pytest

from container_router import (
    Carrier,
    Config,
    FallbackStrategy,
    MatchKind,
    ReputationTracker,
    Router,
    RoutingDecision,
    ScoringWeights,
    StrategyWeights,
    TrackingContext,
)


NINE_CARRIERS = [
    ("MAEU1234567", "maersk"),
    ("MSCU7654321", "msc"),
    ("CMAU9876543", "cma-cgm"),
    ("COSU1111111", "cosco"),
    ("HLXU2222222", "hapag-lloyd"),
    ("EGLV3333333", "evergreen"),
    ("ONEU4444444", "one-line"),
    ("YMLU5555555", "yang-ming"),
    ("ZIMU6666666", "zim"),
]

LOW_COST = {"track-trace", "shipsgo", "searates"}
BOL_CAPABLE = {"maersk", "msc", "cosco", "project44"}


class FakeClock:
    """Manually advanced unix clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, hours: float) -> None:
        self.now += hours * 3600


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def router() -> Router:
    return Router()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clocked_router(clock: FakeClock) -> Router:
    return Router(reputation=ReputationTracker(clock=clock, failure_window_hours=24))


def route(router: Router, number: str = "TEST1234567", **kwargs) -> RoutingDecision:
    return router.analyze_routing(TrackingContext(tracking_number=number, **kwargs))


# ---------------------------------------------------------------------------
# 1. Carrier detection
# ---------------------------------------------------------------------------

class TestCarrierDetection:

    @pytest.mark.parametrize("number,carrier", NINE_CARRIERS)
    def test_known_carrier_is_top_choice(self, router, number, carrier):
        decision = route(router, number)
        assert decision.suggested_carrier == carrier
        assert decision.confidence > 0.9
        assert decision.match_kind == MatchKind.EXACT
        assert decision.prioritized_providers[0] == carrier

    def test_unknown_format(self, router):
        decision = route(router, "UNKN1234567")
        assert decision.confidence < 0.5
        assert decision.suggested_carrier is None

    def test_heuristic_prefix(self, router):
        decision = route(router, "MAE123456789")
        assert 0.5 < decision.confidence < 0.9
        assert decision.suggested_carrier == Carrier.MAERSK
        assert decision.match_kind == MatchKind.HEURISTIC

    def test_empty_tracking_number(self, router):
        decision = route(router, "")
        assert decision.confidence == 0
        assert decision.suggested_carrier is None
        assert len(decision.prioritized_providers) > 0


# ---------------------------------------------------------------------------
# 2. Strategies
# ---------------------------------------------------------------------------

class TestStrategies:

    def test_cost_optimization_prefers_cheap(self, router):
        decision = route(router, cost_optimization=True)
        assert decision.fallback_strategy == FallbackStrategy.FREE_FIRST
        assert LOW_COST & set(decision.prioritized_providers[:5])
        assert decision.prioritized_providers[0] == "track-trace"

    def test_free_tier_prefers_cheap(self, router):
        decision = route(router, user_tier="free")
        assert decision.fallback_strategy == "free_first"
        assert LOW_COST & set(decision.prioritized_providers[:5])

    def test_enterprise_prefers_reliability(self, router):
        decision = route(router, "MAEU1234567", user_tier="enterprise")
        assert decision.fallback_strategy == FallbackStrategy.RELIABILITY_FIRST
        assert decision.prioritized_providers[0] == "maersk"

    def test_reliability_optimization(self, router):
        decision = route(router, "MAEU1234567", reliability_optimization=True)
        assert decision.fallback_strategy == FallbackStrategy.RELIABILITY_FIRST
        assert decision.prioritized_providers[0] == "maersk"
        assert decision.suggested_carrier == "maersk"

    def test_reliability_without_carrier(self, router):
        decision = route(router, reliability_optimization=True)
        assert "maersk" in decision.prioritized_providers[:3]

    def test_premium_not_cheapest_first(self, router):
        decision = route(router, user_tier="premium")
        assert decision.fallback_strategy == FallbackStrategy.PAID_FIRST
        assert decision.prioritized_providers[0] != "track-trace"

    def test_default_strategy(self, router):
        assert route(router).fallback_strategy == FallbackStrategy.PAID_FIRST


# ---------------------------------------------------------------------------
# 3. Tracking types
# ---------------------------------------------------------------------------

class TestTrackingTypes:

    def test_bol_only_capable_providers(self, router):
        decision = route(router, "BOL123456789", tracking_type="bol")
        assert set(decision.prioritized_providers) <= BOL_CAPABLE
        assert not LOW_COST & set(decision.prioritized_providers)

    def test_bol_with_cost_optimization_still_filtered(self, router):
        decision = route(router, "BOL123456789", tracking_type="bol", user_tier="free")
        assert set(decision.prioritized_providers) <= BOL_CAPABLE

    @pytest.mark.parametrize("tracking_type", ["container", "booking", "bol"])
    def test_all_types_non_empty(self, router, tracking_type):
        decision = route(router, tracking_type=tracking_type)
        assert len(decision.prioritized_providers) > 0

    def test_unknown_type_uses_every_provider(self, router):
        decision = route(router, tracking_type="vessel")
        assert len(decision.prioritized_providers) == len(router.registry)

    def test_providers_unique(self, router):
        decision = route(router, "MAEU1234567")
        assert len(set(decision.prioritized_providers)) == len(decision.prioritized_providers)


# ---------------------------------------------------------------------------
# 4. Failures and recovery
# ---------------------------------------------------------------------------

class TestFailureHandling:

    def test_record_failures_counted(self, router):
        error = {"provider": "maersk", "errorType": "TIMEOUT", "message": "Request timeout"}
        router.record_failure("maersk", error)
        router.record_failure("maersk", error)
        stats = {s["provider"]: s for s in router.get_provider_stats()}
        assert stats["maersk"]["recent_failures"] == 2
        assert isinstance(stats["maersk"]["last_failure"], datetime)

    def test_success_recovers(self, router):
        router.record_failure("maersk")
        router.record_failure("maersk")
        router.record_success("maersk")
        stats = {s["provider"]: s for s in router.get_provider_stats()}
        assert stats["maersk"]["recent_failures"] == 1
        assert isinstance(stats["maersk"]["last_success"], datetime)

    def test_single_failure_fully_recovered(self, router):
        router.record_failure("msc", {"errorType": "RATE_LIMIT"})
        router.record_success("msc")
        stats = {s["provider"]: s for s in router.get_provider_stats()}
        assert stats["msc"]["recent_failures"] == 0

    def test_failures_demote_provider(self, router):
        assert route(router).prioritized_providers[0] == "maersk"
        for _ in range(4):
            router.record_failure("maersk")
        assert route(router).prioritized_providers[0] != "maersk"

    def test_previous_failures_demote_provider(self, router):
        baseline = route(router).prioritized_providers
        decision = route(router, previous_failures=["maersk"])
        assert decision.prioritized_providers.index("maersk") > baseline.index("maersk")

    def test_carrier_match_survives_one_previous_failure(self, router):
        router.record_failure("maersk")
        router.record_failure("maersk")
        decision = route(router, "MAEU1234567", previous_failures=["maersk"])
        assert decision.suggested_carrier == "maersk"
        assert "maersk" in decision.prioritized_providers

    def test_all_penalised_still_non_empty(self, router):
        for provider in BOL_CAPABLE:
            for _ in range(10):
                router.record_failure(provider)
        decision = route(
            router, "BOL1", tracking_type="bol", previous_failures=sorted(BOL_CAPABLE)
        )
        assert set(decision.prioritized_providers) == BOL_CAPABLE

    def test_decision_unchanged_across_hour_mark(self, clocked_router, clock):
        for _ in range(4):
            clocked_router.record_failure("maersk")
        ctx = TrackingContext("TEST1234567")
        clock.now += 3599.5
        first = clocked_router.analyze_routing(ctx)
        clock.now += 1
        second = clocked_router.analyze_routing(ctx)
        assert first == second
        penalties = {s.provider: s.failure_penalty for s in second.scores}
        assert penalties["maersk"] == 60.0

    def test_penalty_ignores_elapsed_time_between_reports(self, clocked_router, clock):
        for _ in range(4):
            clocked_router.record_failure("maersk")
        clock.advance(30)
        assert route(clocked_router).prioritized_providers[0] != "maersk"

    def test_stale_failures_dropped_on_success(self, clocked_router, clock):
        for _ in range(4):
            clocked_router.record_failure("maersk")
        clock.advance(12)
        clocked_router.record_success("maersk")
        stats = clocked_router.get_provider_stats_including_unknown("maersk")
        assert stats["recent_failures"] == 2
        clock.advance(25)
        clocked_router.record_success("maersk")
        stats = clocked_router.get_provider_stats_including_unknown("maersk")
        assert stats["recent_failures"] == 0
        assert route(clocked_router).prioritized_providers[0] == "maersk"

    def test_stale_failures_restart_count(self, clocked_router, clock):
        for _ in range(4):
            clocked_router.record_failure("maersk")
        clock.advance(24)
        clocked_router.record_failure("maersk")
        stats = clocked_router.get_provider_stats_including_unknown("maersk")
        assert stats["recent_failures"] == 1

    def test_unknown_provider_stats(self, router):
        error = {"provider": "test-provider", "errorType": "NOT_FOUND", "message": "Not found"}
        router.record_failure("test-provider", error)
        router.record_failure("test-provider", error)
        stats = router.get_provider_stats_including_unknown("test-provider")
        assert stats is not None
        assert stats["recent_failures"] == 2
        assert isinstance(stats["last_failure"], datetime)
        assert stats["cost"] == 0

    def test_never_seen_provider_is_none(self, router):
        assert router.get_provider_stats_including_unknown("nobody") is None

    def test_registered_provider_without_history(self, router):
        stats = router.get_provider_stats_including_unknown("maersk")
        assert stats["recent_failures"] == 0
        assert stats["last_failure"] is None

    def test_unregistered_not_in_registered_stats(self, router):
        router.record_failure("ad-hoc")
        assert "ad-hoc" not in {s["provider"] for s in router.get_provider_stats()}

    def test_shared_reputation(self):
        shared = ReputationTracker()
        a = Router(reputation=shared)
        b = Router(reputation=shared)
        a.record_failure("zim")
        assert b.get_provider_stats_including_unknown("zim")["recent_failures"] == 1

    def test_routers_isolated_by_default(self):
        a, b = Router(), Router()
        a.record_failure("zim")
        assert b.get_provider_stats_including_unknown("zim")["recent_failures"] == 0


# ---------------------------------------------------------------------------
# 5. Reasoning
# ---------------------------------------------------------------------------

class TestReasoning:

    def test_carrier_clause(self, router):
        reasoning = route(router, "MAEU1234567").reasoning
        assert "MAERSK" in reasoning
        assert "confidence" in reasoning
        assert "maersk" in reasoning
        assert "95%" in reasoning

    def test_cost_clause(self, router):
        assert "cost-effective" in route(router, cost_optimization=True).reasoning

    def test_reliability_clause(self, router):
        assert "reliability" in route(router, reliability_optimization=True).reasoning

    def test_failed_providers_clause(self, router):
        reasoning = route(router, previous_failures=["provider1", "provider2"]).reasoning
        assert "failed providers" in reasoning
        assert "provider1" in reasoning
        assert "provider2" in reasoning

    def test_single_failed_provider_from_dict(self, router):
        decision = router.analyze_routing({
            "trackingNumber": "TEST1234567", "previousFailures": "maersk",
        })
        assert "failed providers: maersk" in decision.reasoning
        penalties = {s.provider: s.failure_penalty for s in decision.scores}
        assert penalties["maersk"] == 40.0

    def test_top_choice_clause(self, router):
        decision = route(router)
        assert f"Top choice: {decision.prioritized_providers[0]}" in decision.reasoning

    def test_free_top_choice(self, router):
        decision = route(router, cost_optimization=True)
        assert "Top choice: track-trace (free" in decision.reasoning

    def test_no_carrier_clause_when_unknown(self, router):
        assert "Detected" not in route(router, "UNKN1234567").reasoning

    def test_clause_order(self, router):
        reasoning = route(
            router, "MAEU1234567", cost_optimization=True, previous_failures=["x"]
        ).reasoning
        assert reasoning.index("Detected") < reasoning.index("cost-effective")
        assert reasoning.index("cost-effective") < reasoning.index("failed providers")
        assert reasoning.index("failed providers") < reasoning.index("Top choice")


# ---------------------------------------------------------------------------
# 6. Statistics
# ---------------------------------------------------------------------------

class TestProviderStats:

    def test_all_registered_listed(self, router):
        stats = router.get_provider_stats()
        assert len(stats) == 13
        keys = {"provider", "cost", "reliability", "recent_failures", "last_failure"}
        assert keys <= set(stats[0])

    @pytest.mark.parametrize("provider,cost,reliability", [
        ("maersk", 25, 0.95),
        ("track-trace", 0, 0.68),
        ("shipsgo", 5, 0.88),
    ])
    def test_static_values(self, router, provider, cost, reliability):
        stats = {s["provider"]: s for s in router.get_provider_stats()}
        assert stats[provider]["cost"] == cost
        assert stats[provider]["reliability"] == reliability
        assert stats[provider]["recent_failures"] == 0


# ---------------------------------------------------------------------------
# 7. Edge cases and determinism
# ---------------------------------------------------------------------------

class TestEdgeCases:

    @pytest.mark.parametrize("number", [
        "VERYLONGTRACKINGNUM123456789012345678901234567890",
        "TEST-123_456",
        "   ",
        "?!*",
    ])
    def test_degenerate_numbers(self, router, number):
        decision = route(router, number)
        assert 0.0 <= decision.confidence <= 1.0
        assert len(decision.prioritized_providers) > 0
        assert "Top choice" in decision.reasoning

    def test_idempotent(self, router):
        ctx = TrackingContext("MAEU1234567", user_tier="premium", previous_failures=["msc"])
        router.record_failure("msc")
        assert router.analyze_routing(ctx) == router.analyze_routing(ctx)

    def test_analyze_does_not_mutate_reputation(self, router):
        route(router, previous_failures=["maersk"])
        assert router.reputation.known_providers() == []

    def test_dict_context(self, router):
        decision = router.analyze_routing({
            "trackingNumber": "MSCU7654321",
            "trackingType": "container",
            "userTier": "premium",
        })
        assert decision.suggested_carrier == "msc"

    def test_to_dict(self, router):
        d = route(router, "MAEU1234567").to_dict()
        assert d["suggested_carrier"] == "maersk"
        assert d["fallback_strategy"] == "paid_first"
        assert d["match_kind"] == "exact"
        assert isinstance(d["prioritized_providers"], list)
        assert d["scores"][0]["provider"] == "maersk"

    def test_ties_follow_declaration_order(self):
        def twin(provider_id: str) -> dict:
            return {
                "id": provider_id, "base_cost_cents": 10, "base_reliability": 0.8,
                "supported_types": ["container"], "supports_bol": False,
            }

        config = Config()
        config.config["providers"] = [twin("alpha"), twin("beta")]
        assert route(Router(config=config)).prioritized_providers == ("alpha", "beta")

        config = Config()
        config.config["providers"] = [twin("beta"), twin("alpha")]
        assert route(Router(config=config)).prioritized_providers == ("beta", "alpha")

    def test_explain(self, router):
        decision = route(router, "MAEU1234567")
        text = router.explain(decision)
        lines: List[str] = text.splitlines()
        assert lines[0] == "Provider selected: maersk"
        assert "exact match" in text
        assert "carrier +95.0" in text


class TestScoringWeights:

    def test_from_default_config(self):
        weights = ScoringWeights.from_config(Config())
        assert weights.strategies[FallbackStrategy.FREE_FIRST].free_bonus == 100.0
        assert weights.suggestion_threshold == 0.5

    def test_missing_strategy_rejected(self):
        with pytest.raises(ValueError):
            ScoringWeights(strategies={
                FallbackStrategy.FREE_FIRST: StrategyWeights(1.0, 2.0, 100.0),
            })

    def test_negative_weight_rejected(self):
        strategies = {s: StrategyWeights(1.0, 1.0) for s in FallbackStrategy}
        strategies[FallbackStrategy.PAID_FIRST] = StrategyWeights(-1.0, 1.0)
        with pytest.raises(ValueError):
            ScoringWeights(strategies=strategies)

    def test_threshold_range(self):
        strategies = {s: StrategyWeights(1.0, 1.0) for s in FallbackStrategy}
        with pytest.raises(ValueError):
            ScoringWeights(strategies=strategies, suggestion_threshold=1.5)
