"""
Provider registry for Container Router.

Read-only catalog of tracking data sources (carrier APIs and third-party
aggregators) with their cost, reliability and capability metadata.
"""

from typing import Dict, List, Any, Optional, FrozenSet
from dataclasses import dataclass

from .config import Config
from .models import TrackingType


@dataclass(frozen=True)
class ProviderProfile:
    """Static metadata for a tracking data provider."""
    id: str
    display_name: str
    base_cost_cents: int
    base_reliability: float
    supported_types: FrozenSet[TrackingType]
    supports_bol: bool

    def __post_init__(self):
        if self.base_cost_cents < 0:
            raise ValueError(
                f"base_cost_cents must be >= 0 for {self.id!r}, got {self.base_cost_cents}"
            )
        if not (0.0 <= self.base_reliability <= 1.0):
            raise ValueError(
                f"base_reliability must be 0.0–1.0 for {self.id!r}, got {self.base_reliability}"
            )

    @property
    def is_free(self) -> bool:
        return self.base_cost_cents == 0

    def supports(self, tracking_type: TrackingType) -> bool:
        """Check if provider can look up a given tracking type.

        BOL lookups additionally require ``supports_bol``.

        Args:
            tracking_type: Tracking type to check

        Returns:
            True if the provider handles the type
        """
        if tracking_type not in self.supported_types:
            return False
        if tracking_type == TrackingType.BOL:
            return self.supports_bol
        return True


class ProviderRegistry:
    """Registry of known tracking providers, fixed at construction."""

    def __init__(self, config: Config):
        """Initialize provider registry.

        Args:
            config: Configuration instance with provider definitions
        """
        self._providers = self._load_providers(config)

    def _load_providers(self, config: Config) -> Dict[str, ProviderProfile]:
        """Load providers from configuration, keeping declaration order.

        Returns:
            Dictionary mapping provider ids to ProviderProfile objects
        """
        providers = {}
        for provider_def in config.get_providers():
            profile = ProviderProfile(
                id=provider_def['id'],
                display_name=provider_def.get('display_name', provider_def['id']),
                base_cost_cents=int(provider_def['base_cost_cents']),
                base_reliability=float(provider_def['base_reliability']),
                supported_types=frozenset(
                    TrackingType(t) for t in provider_def.get('supported_types', [])
                ),
                supports_bol=bool(provider_def.get('supports_bol', False)),
            )
            providers[profile.id] = profile
        return providers

    def get_provider(self, provider_id: str) -> Optional[ProviderProfile]:
        """Get provider by id.

        Args:
            provider_id: Provider id

        Returns:
            ProviderProfile if found, None otherwise
        """
        return self._providers.get(provider_id)

    def __contains__(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def list_providers(self) -> List[ProviderProfile]:
        """Get all registered providers in declaration order."""
        return list(self._providers.values())

    def provider_ids(self) -> List[str]:
        return list(self._providers.keys())

    def providers_supporting(self, tracking_type: Optional[TrackingType]) -> List[ProviderProfile]:
        """Get providers that can look up a tracking type.

        Args:
            tracking_type: Requested tracking type, or None for any type

        Returns:
            Matching providers in declaration order. When *tracking_type* is
            None, or nothing supports it, every registered provider.
        """
        if tracking_type is None:
            return self.list_providers()
        suitable = [p for p in self._providers.values() if p.supports(tracking_type)]
        return suitable or self.list_providers()

    def free_providers(self) -> List[ProviderProfile]:
        """Get zero-cost providers."""
        return [p for p in self._providers.values() if p.is_free]

    def provider_comparison(self, tracking_type: Optional[TrackingType] = None) -> List[Dict[str, Any]]:
        """Get a comparison table for providers supporting a tracking type.

        Args:
            tracking_type: Tracking type filter, or None for all providers

        Returns:
            List of dictionaries with provider comparison data
        """
        comparison = []
        for provider in self.providers_supporting(tracking_type):
            comparison.append({
                'id': provider.id,
                'display_name': provider.display_name,
                'cost_cents': provider.base_cost_cents,
                'reliability': provider.base_reliability,
                'supported_types': sorted(t.value for t in provider.supported_types),
                'supports_bol': provider.supports_bol,
            })
        return comparison
