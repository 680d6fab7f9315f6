"""
Carrier detection for Container Router.

Maps a raw tracking number to the ocean carrier that most likely issued it,
using exact ISO 6346 owner-prefix signatures first and three-letter prefix
heuristics as a fallback.  Deterministic and never raises.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from .config import Config
from .models import Carrier, MatchKind

_SEPARATORS = re.compile(r"[\s\-_./]+")


@dataclass(frozen=True)
class CarrierMatch:
    """Result of carrier detection."""
    carrier_id: Optional[Carrier]
    confidence: float
    kind: MatchKind

    @classmethod
    def no_match(cls, confidence: float = 0.0) -> "CarrierMatch":
        return cls(carrier_id=None, confidence=confidence, kind=MatchKind.NONE)


@dataclass(frozen=True)
class _Signature:
    carrier: Optional[Carrier]
    pattern: Pattern
    confidence: float


class PatternMatcher:
    """Detects carriers from tracking-number formats using configured rules."""

    def __init__(self, config: Config):
        """Initialize matcher with configuration.

        Args:
            config: Configuration instance with carrier signatures
        """
        self._signatures = self._compile_signatures(config)
        self._heuristics: List[Tuple[str, Carrier, float]] = [
            (h['prefix'].upper(), Carrier(h['carrier']), float(h['confidence']))
            for h in config.get_heuristic_prefixes()
        ]
        generic = config.get_generic_pattern()
        self._generic: Optional[_Signature] = None
        if generic:
            self._generic = _Signature(
                carrier=None,
                pattern=re.compile(
                    rf"^[A-Z]{{{int(generic['letters'])}}}[0-9]{{{int(generic['digits'])}}}$"
                ),
                confidence=float(generic['confidence']),
            )

    def _compile_signatures(self, config: Config) -> List[_Signature]:
        signatures = []
        for sig in config.get_carrier_patterns():
            prefix = re.escape(sig['prefix'].upper())
            signatures.append(_Signature(
                carrier=Carrier(sig['carrier']),
                pattern=re.compile(rf"^{prefix}[0-9]{{{int(sig.get('digits', 7))}}}$"),
                confidence=float(sig['confidence']),
            ))
        return signatures

    @staticmethod
    def normalize(tracking_number: str) -> str:
        """Uppercase and drop whitespace and common separators."""
        if not isinstance(tracking_number, str):
            return ""
        return _SEPARATORS.sub("", tracking_number).upper()

    def detect_carrier(self, tracking_number: str) -> CarrierMatch:
        """Detect the carrier behind a tracking number.

        Args:
            tracking_number: Raw tracking number, any case or length

        Returns:
            CarrierMatch with carrier, confidence and match kind. Empty input
            yields confidence 0.0.
        """
        clean = self.normalize(tracking_number)
        if not clean:
            return CarrierMatch.no_match()

        best = CarrierMatch.no_match()
        for sig in self._signatures:
            if sig.confidence > best.confidence and sig.pattern.match(clean):
                best = CarrierMatch(
                    carrier_id=sig.carrier,
                    confidence=sig.confidence,
                    kind=MatchKind.EXACT,
                )

        if best.confidence >= 0.5:
            return best

        heuristic = self._apply_heuristics(clean)
        if heuristic.confidence > best.confidence:
            return heuristic

        if self._generic and self._generic.confidence > best.confidence:
            if self._generic.pattern.match(clean):
                return CarrierMatch.no_match(self._generic.confidence)

        return best

    def _apply_heuristics(self, clean: str) -> CarrierMatch:
        """Match a known three-letter carrier abbreviation at the start."""
        for prefix, carrier, confidence in self._heuristics:
            if clean.startswith(prefix):
                return CarrierMatch(
                    carrier_id=carrier,
                    confidence=confidence,
                    kind=MatchKind.HEURISTIC,
                )
        return CarrierMatch.no_match()
