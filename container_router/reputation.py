"""
Provider reputation tracking for Container Router.

Counts recent failures per provider and lets successes pay them back.  All
state is in-process and lost on restart; inject a fresh
:class:`ReputationTracker` per tenant or test to isolate state.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .models import ProviderError

_log = logging.getLogger(__name__)

# ── Recovery rules ────────────────────────────────────────────────────────────
RECOVERY_HALVE     = "halve"
RECOVERY_DECREMENT = "decrement"

VALID_RECOVERY_RULES = {RECOVERY_HALVE, RECOVERY_DECREMENT}


@dataclass(frozen=True)
class ProviderReputation:
    """Snapshot of a provider's recent track record."""
    provider: str
    recent_failures: int = 0
    last_failure: Optional[datetime] = None
    last_success: Optional[datetime] = None
    last_error_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "recent_failures": self.recent_failures,
            "last_failure": self.last_failure.isoformat() if self.last_failure else None,
            "last_success": self.last_success.isoformat() if self.last_success else None,
            "last_error_type": self.last_error_type,
        }


class ReputationTracker:
    """Thread-safe store of per-provider failure counters.

    ``record_failure`` and ``record_success`` are the only mutators; every
    read returns an immutable snapshot.  Entries are created lazily for any
    provider id, registered or not.

    Args:
        recovery: ``"halve"`` floors the failure count to half on each
            success; ``"decrement"`` removes one failure per success.
        clock: Returns the current unix time; defaults to :func:`time.time`.
        failure_window_hours: Failures older than this many hours are
            forgotten when the next failure is recorded; ``None`` keeps them
            until successes pay them back.
    """

    def __init__(
        self,
        recovery: str = RECOVERY_HALVE,
        clock: Optional[Callable[[], float]] = None,
        failure_window_hours: Optional[float] = None,
    ) -> None:
        if recovery not in VALID_RECOVERY_RULES:
            raise ValueError(
                f"recovery must be one of {sorted(VALID_RECOVERY_RULES)}, got {recovery!r}"
            )
        if failure_window_hours is not None and failure_window_hours <= 0:
            raise ValueError(
                f"failure_window_hours must be > 0, got {failure_window_hours}"
            )
        self.recovery = recovery
        self.failure_window_hours = failure_window_hours
        self._clock = clock or time.time
        self._entries: Dict[str, ProviderReputation] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_failure(self, provider_id: str, error: Any = None) -> None:
        """Count one failed lookup against *provider_id*.

        Args:
            provider_id: Any provider id, registered or not.
            error: Optional :class:`ProviderError`, dict or exception
                describing the failure.
        """
        provider_id = str(provider_id)
        details = ProviderError.coerce(provider_id, error)
        now = self._now()
        with self._lock:
            current = self._entries.get(provider_id) or ProviderReputation(provider_id)
            carried = current.recent_failures
            if self._is_stale(current, now):
                carried = 0
            updated = replace(
                current,
                recent_failures=carried + 1,
                last_failure=now,
                last_error_type=details.error_type,
            )
            self._entries[provider_id] = updated
        _log.info(
            "Provider %s failed (%s): %d recent failure(s)",
            provider_id, details.error_type, updated.recent_failures,
        )

    def record_success(self, provider_id: str) -> None:
        """Record a successful lookup, paying back recent failures.

        A success on a provider with no failures only stamps ``last_success``;
        failures outside the failure window are dropped entirely.
        """
        provider_id = str(provider_id)
        now = self._now()
        with self._lock:
            current = self._entries.get(provider_id) or ProviderReputation(provider_id)
            updated = replace(
                current,
                recent_failures=(
                    0 if self._is_stale(current, now)
                    else self._recover(current.recent_failures)
                ),
                last_success=now,
            )
            self._entries[provider_id] = updated
        if current.recent_failures != updated.recent_failures:
            _log.info(
                "Provider %s recovered: %d -> %d recent failure(s)",
                provider_id, current.recent_failures, updated.recent_failures,
            )

    def _is_stale(self, rep: ProviderReputation, now: datetime) -> bool:
        if self.failure_window_hours is None or rep.last_failure is None:
            return False
        elapsed = (now - rep.last_failure).total_seconds()
        return elapsed >= self.failure_window_hours * 3600

    def _recover(self, failures: int) -> int:
        if self.recovery == RECOVERY_DECREMENT:
            return max(0, failures - 1)
        return failures // 2

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def stats_of(self, provider_id: str) -> ProviderReputation:
        """Return the reputation of *provider_id*, or a zeroed record."""
        with self._lock:
            entry = self._entries.get(provider_id)
        return entry if entry is not None else ProviderReputation(provider_id)

    def stats_including_unknown(self, provider_id: str) -> Optional[ProviderReputation]:
        """Return the reputation of any id ever reported, else *None*."""
        with self._lock:
            return self._entries.get(provider_id)

    def known_providers(self) -> List[str]:
        """Return ids with at least one recorded outcome."""
        with self._lock:
            return list(self._entries.keys())

    def now(self) -> datetime:
        """Current time according to the tracker's clock."""
        return self._now()

    def reset(self) -> None:
        """Forget every recorded outcome."""
        with self._lock:
            self._entries.clear()

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)
