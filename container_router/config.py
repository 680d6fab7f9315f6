"""
Configuration management for Container Router.

Loads the provider catalog, carrier signatures, scoring weights and
reputation tuning from JSON configuration files.
"""

import copy
import json
import os
from pathlib import Path
from typing import Dict, Any, List


class Config:
    """Configuration manager for provider metadata and routing constants."""

    def __init__(self, config_path: str = None):
        """Initialize configuration.

        Args:
            config_path: Path to config directory. If None, uses defaults.

        Raises:
            ValueError: If ``config.json`` exists but is not valid JSON.
        """
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file or defaults."""
        if self.config_path and os.path.exists(os.path.join(self.config_path, 'config.json')):
            config_file = os.path.join(self.config_path, 'config.json')
        else:
            config_file = str(Path(__file__).parent / 'defaults.json')
        try:
            with open(config_file, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(
                f"Router config at {config_file} is corrupt (invalid JSON): {exc}"
            ) from exc

    def get_providers(self) -> List[Dict[str, Any]]:
        """Get provider definitions in declaration order."""
        return self.config.get('providers', [])

    def get_carrier_patterns(self) -> List[Dict[str, Any]]:
        """Get exact carrier prefix signatures."""
        return self.config.get('carrier_patterns', [])

    def get_heuristic_prefixes(self) -> List[Dict[str, Any]]:
        """Get three-letter prefixes used when no signature matches."""
        return self.config.get('heuristic_prefixes', [])

    def get_generic_pattern(self) -> Dict[str, Any]:
        """Get the shape of a plausible but unrecognised container number."""
        return self.config.get('generic_pattern', {})

    def get_default_strategy(self) -> str:
        """Get the strategy used when no tier or optimization flag is set."""
        return self.config.get('default_strategy', 'paid_first')

    def get_scoring(self) -> Dict[str, Any]:
        """Get scoring weights and penalty constants."""
        return self.config.get('scoring', {})

    def get_reputation_settings(self) -> Dict[str, Any]:
        """Get reputation recovery settings."""
        return self.config.get('reputation', {})

    def save_config(self, config_path: str) -> None:
        """Save current configuration to file.

        Args:
            config_path: Path to config directory
        """
        os.makedirs(config_path, exist_ok=True)
        config_file = os.path.join(config_path, 'config.json')
        from .utils import atomic_write_json
        atomic_write_json(config_file, self.config)

    def update_scoring(self, overrides: Dict[str, Any]) -> None:
        """Merge scoring overrides into the current configuration.

        Nested ``strategies`` entries are merged per strategy, so overriding
        one weight keeps the others.

        Args:
            overrides: Partial ``scoring`` section
        """
        scoring = copy.deepcopy(self.config.get('scoring', {}))
        for key, value in overrides.items():
            if key == 'strategies' and isinstance(value, dict):
                strategies = scoring.setdefault('strategies', {})
                for name, weights in value.items():
                    strategies.setdefault(name, {}).update(weights)
            else:
                scoring[key] = value
        self.config['scoring'] = scoring

    def set_default_strategy(self, strategy: str) -> None:
        """Change the strategy used when the context expresses no preference."""
        self.config['default_strategy'] = strategy
