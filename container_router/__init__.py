"""
Container Router — provider selection for shipment-tracking lookups.

Given a tracking number and caller preferences, decides which tracking data
providers (carrier APIs and aggregators) to query and in what order, and
learns from reported successes and failures.
Zero external dependencies. All state is in-process.

Usage:
    from container_router import Router, TrackingContext

    router = Router()
    decision = router.analyze_routing(TrackingContext(
        tracking_number="MAEU1234567",
        tracking_type="container",
        user_tier="premium",
    ))
    print(decision.prioritized_providers, decision.reasoning)

    # Report outcomes so later decisions avoid flaky providers
    router.record_failure("maersk", {"errorType": "TIMEOUT", "message": "timed out"})
    router.record_success("msc")
"""

__version__ = "1.0.0"

from .models import (
    TrackingType,
    UserTier,
    FallbackStrategy,
    MatchKind,
    Carrier,
    ErrorType,
    TrackingContext,
    ProviderError,
)
from .config import Config
from .registry import ProviderRegistry, ProviderProfile
from .patterns import PatternMatcher, CarrierMatch
from .reputation import (
    ReputationTracker,
    ProviderReputation,
    RECOVERY_HALVE,
    RECOVERY_DECREMENT,
)
from .strategy import StrategySelector
from .scoring import (
    ScoringEngine,
    ScoringWeights,
    StrategyWeights,
    ScoringResult,
    ProviderScore,
)
from .reasoning import ReasoningGenerator
from .router import Router, RoutingDecision

__all__ = [
    # Types
    "TrackingType",
    "UserTier",
    "FallbackStrategy",
    "MatchKind",
    "Carrier",
    "ErrorType",
    "TrackingContext",
    "ProviderError",

    # Components
    "Config",
    "ProviderRegistry",
    "ProviderProfile",
    "PatternMatcher",
    "CarrierMatch",
    "ReputationTracker",
    "ProviderReputation",
    "RECOVERY_HALVE",
    "RECOVERY_DECREMENT",
    "StrategySelector",
    "ScoringEngine",
    "ScoringWeights",
    "StrategyWeights",
    "ScoringResult",
    "ProviderScore",
    "ReasoningGenerator",

    # Facade
    "Router",
    "RoutingDecision",
]
