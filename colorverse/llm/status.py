"""Per-provider health tracking.

Each manager owns one ``ProviderStatusTracker``. A provider is marked
unavailable after ``failure_threshold`` consecutive failures and becomes
available again on its next success, or lazily once ``recovery_window``
seconds have passed since its last failure.

Concurrent completions share the tracker without locking: every field is an
independent scalar updated with set/increment semantics, so a stale read
costs at most one extra doomed attempt.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_THRESHOLD = 3
DEFAULT_RECOVERY_WINDOW = 10 * 60.0  # seconds


@dataclass
class ProviderStatus:
    """Mutable health record for a single provider."""
    available: bool = True
    last_success_at: Optional[float] = None
    last_failure_at: Optional[float] = None
    consecutive_failures: int = 0
    model_success_counts: Dict[str, int] = field(default_factory=dict)

    def record_success(self, model_id: str, now: float) -> None:
        """Record a success."""
        self.last_success_at = now
        self.consecutive_failures = 0
        self.available = True
        self.model_success_counts[model_id] = self.model_success_counts.get(model_id, 0) + 1

    def record_failure(self, now: float, threshold: int) -> None:
        """Record a failure."""
        self.last_failure_at = now
        self.consecutive_failures += 1
        if self.consecutive_failures >= threshold:
            self.available = False


class ProviderStatusTracker:
    """Availability and success history for a fixed set of providers."""

    def __init__(
        self,
        provider_ids: Iterable[str],
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        recovery_window: float = DEFAULT_RECOVERY_WINDOW,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize the tracker.

        Args:
            provider_ids: Providers to track
            failure_threshold: Consecutive failures before a provider is benched
            recovery_window: Seconds after the last failure before it is retried
            clock: Time source in epoch seconds, ``time.time`` by default
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.failure_threshold = failure_threshold
        self.recovery_window = recovery_window
        self._clock = clock or time.time
        self._statuses: Dict[str, ProviderStatus] = {
            provider_id: ProviderStatus() for provider_id in provider_ids
        }

    def now(self) -> float:
        return self._clock()

    def get(self, provider_id: str) -> ProviderStatus:
        """Return the live status record for a provider.

        Raises:
            KeyError: If the provider is not tracked
        """
        try:
            return self._statuses[provider_id]
        except KeyError:
            raise KeyError(f"Unknown provider: {provider_id}") from None

    def provider_ids(self) -> List[str]:
        return list(self._statuses.keys())

    def is_available(self, provider_id: str, now: Optional[float] = None) -> bool:
        """Check availability, applying the recovery window.

        A benched provider whose last failure is older than the recovery
        window is reset to available with a cleared failure count.
        """
        status = self.get(provider_id)
        if status.available:
            return True

        now = self.now() if now is None else now
        if (
            status.last_failure_at is not None
            and now - status.last_failure_at > self.recovery_window
        ):
            status.available = True
            status.consecutive_failures = 0
            logger.info(f"Resetting '{provider_id}' availability after recovery period")
            return True

        return False

    def record_success(self, provider_id: str, model_id: str) -> None:
        self.get(provider_id).record_success(model_id, self.now())

    def record_failure(self, provider_id: str) -> None:
        status = self.get(provider_id)
        was_available = status.available
        status.record_failure(self.now(), self.failure_threshold)
        if was_available and not status.available:
            logger.warning(
                f"Marking '{provider_id}' as temporarily unavailable after "
                f"{status.consecutive_failures} consecutive failures"
            )

    def reset(self, provider_id: str) -> None:
        """Restore one provider to its initial state."""
        self.get(provider_id)
        self._statuses[provider_id] = ProviderStatus()

    def reset_all(self) -> None:
        for provider_id in self._statuses:
            self._statuses[provider_id] = ProviderStatus()
        logger.info("Reset all provider statuses")

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Copy of every status, safe to hand to callers."""
        return {
            provider_id: {
                "available": status.available,
                "last_success": status.last_success_at,
                "last_failure": status.last_failure_at,
                "consecutive_failures": status.consecutive_failures,
                "model_successes": dict(status.model_success_counts),
            }
            for provider_id, status in self._statuses.items()
        }
