"""Fallback strategy selection for Container Router."""

from .config import Config
from .models import FallbackStrategy, TrackingContext, UserTier


class StrategySelector:
    """Maps caller preferences to a :class:`FallbackStrategy`.

    Precedence, first match wins:

    1. reliability optimization or enterprise tier → ``reliability_first``
    2. cost optimization or free tier → ``free_first``
    3. premium tier → ``paid_first``
    4. otherwise the configured default (``paid_first`` out of the box)
    """

    def __init__(self, config: Config):
        self.default_strategy = FallbackStrategy(config.get_default_strategy())

    def select_strategy(self, context: TrackingContext) -> FallbackStrategy:
        if context.reliability_optimization or context.user_tier == UserTier.ENTERPRISE:
            return FallbackStrategy.RELIABILITY_FIRST
        if context.cost_optimization or context.user_tier == UserTier.FREE:
            return FallbackStrategy.FREE_FIRST
        if context.user_tier == UserTier.PREMIUM:
            return FallbackStrategy.PAID_FIRST
        return self.default_strategy
