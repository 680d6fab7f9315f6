"""
Core types for Container Router.

Closed enums for tracking types, user tiers, fallback strategies and carrier
ids, plus the immutable ``TrackingContext`` input record and the
``ProviderError`` outcome record reported back by callers.

Zero external dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

_log = logging.getLogger(__name__)


# ── Enums ─────────────────────────────────────────────────────────────────────

class TrackingType(str, Enum):
    """Kind of identifier being tracked."""

    CONTAINER = "container"
    BOOKING = "booking"
    BOL = "bol"


class UserTier(str, Enum):
    """Subscription tier of the caller."""

    NONE = "none"
    FREE = "free"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class FallbackStrategy(str, Enum):
    """Ordering policy applied when scoring providers."""

    FREE_FIRST = "free_first"
    RELIABILITY_FIRST = "reliability_first"
    PAID_FIRST = "paid_first"


class MatchKind(str, Enum):
    """How a carrier was recognised from a tracking number."""

    EXACT = "exact"
    HEURISTIC = "heuristic"
    NONE = "none"


class Carrier(str, Enum):
    """Ocean carriers recognisable from tracking-number prefixes."""

    MAERSK = "maersk"
    MSC = "msc"
    CMA_CGM = "cma-cgm"
    COSCO = "cosco"
    HAPAG_LLOYD = "hapag-lloyd"
    EVERGREEN = "evergreen"
    ONE_LINE = "one-line"
    YANG_MING = "yang-ming"
    ZIM = "zim"


class ErrorType(str, Enum):
    """Failure categories reported by provider clients."""

    TIMEOUT = "TIMEOUT"
    RATE_LIMIT = "RATE_LIMIT"
    NOT_FOUND = "NOT_FOUND"
    AUTH_ERROR = "AUTH_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


def parse_tracking_type(value: Any) -> Optional[TrackingType]:
    """Coerce *value* to a :class:`TrackingType`.

    Returns ``None`` for anything unrecognised; routing treats ``None`` as
    "any type" and considers the broadest provider set.
    """
    if isinstance(value, TrackingType):
        return value
    if isinstance(value, str):
        try:
            return TrackingType(value.strip().lower())
        except ValueError:
            pass
    _log.warning("Unknown tracking type %r, routing over all providers", value)
    return None


def parse_user_tier(value: Any) -> UserTier:
    """Coerce *value* to a :class:`UserTier`.

    ``None`` and the empty string mean no tier.

    Raises:
        ValueError: If *value* names no known tier.
    """
    if isinstance(value, UserTier):
        return value
    if value is None or value == "":
        return UserTier.NONE
    if isinstance(value, str):
        try:
            return UserTier(value.strip().lower())
        except ValueError:
            pass
    raise ValueError(
        f"user_tier must be one of {[t.value for t in UserTier]}, got {value!r}"
    )


# ── TrackingContext ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TrackingContext:
    """Caller input for a routing decision.

    Attributes:
        tracking_number: Raw identifier as typed by the user.
        tracking_type: Identifier kind; ``None`` when the caller passed an
            unrecognised value.
        cost_optimization: Caller prefers cheap providers.
        reliability_optimization: Caller prefers reliable providers.
        user_tier: Subscription tier of the caller.
        previous_failures: Provider ids the caller already tried without
            success, in the order they were tried (duplicates dropped).
    """

    tracking_number: str
    tracking_type: Optional[TrackingType] = TrackingType.CONTAINER
    cost_optimization: bool = False
    reliability_optimization: bool = False
    user_tier: UserTier = UserTier.NONE
    previous_failures: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Normalise and validate all fields on construction."""
        number = self.tracking_number
        if number is None:
            number = ""
        if not isinstance(number, str):
            raise ValueError(
                f"tracking_number must be a string, got {type(number).__name__}"
            )
        object.__setattr__(self, "tracking_number", number)
        object.__setattr__(self, "tracking_type", parse_tracking_type(self.tracking_type))
        object.__setattr__(self, "user_tier", parse_user_tier(self.user_tier))
        object.__setattr__(self, "cost_optimization", bool(self.cost_optimization))
        object.__setattr__(
            self, "reliability_optimization", bool(self.reliability_optimization)
        )
        failures = self.previous_failures or ()
        if isinstance(failures, str):
            # a lone id, not a sequence of one-letter ids
            failures = (failures,)
        object.__setattr__(self, "previous_failures", _dedupe(failures))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackingContext":
        """Build a context from a plain dict.

        Accepts both snake_case and camelCase keys (``trackingNumber``,
        ``userTier``, ...).
        """
        def pick(snake: str, camel: str, default: Any = None) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        return cls(
            tracking_number=pick("tracking_number", "trackingNumber", ""),
            tracking_type=pick("tracking_type", "trackingType", TrackingType.CONTAINER),
            cost_optimization=pick("cost_optimization", "costOptimization", False),
            reliability_optimization=pick(
                "reliability_optimization", "reliabilityOptimization", False
            ),
            user_tier=pick("user_tier", "userTier"),
            previous_failures=pick("previous_failures", "previousFailures", ()),
        )


def _dedupe(items: Iterable[Any]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for item in items:
        seen.setdefault(str(item), None)
    return tuple(seen)


# ── ProviderError ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProviderError:
    """Outcome record for a failed provider lookup."""

    provider: str
    error_type: str = ErrorType.UNKNOWN.value
    message: str = ""

    @classmethod
    def coerce(cls, provider: str, error: Any) -> "ProviderError":
        """Build a ``ProviderError`` from whatever the caller reported.

        *error* may be a ``ProviderError``, a dict with ``errorType`` /
        ``error_type`` and ``message`` keys, an exception, or ``None``.
        Never raises.
        """
        if isinstance(error, ProviderError):
            return error
        if isinstance(error, dict):
            error_type = error.get("error_type", error.get("errorType"))
            return cls(
                provider=str(error.get("provider") or provider),
                error_type=_error_type_label(error_type),
                message=str(error.get("message") or ""),
            )
        if isinstance(error, BaseException):
            return cls(
                provider=provider,
                error_type=type(error).__name__,
                message=str(error),
            )
        return cls(provider=provider)


def _error_type_label(value: Any) -> str:
    if isinstance(value, ErrorType):
        return value.value
    if value is None or value == "":
        return ErrorType.UNKNOWN.value
    return str(value)
