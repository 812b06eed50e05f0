from datetime import datetime, timedelta
from threading import Lock

from sculp.adapters.clock import SystemClock
from sculp.components.auth.ports import TimePort
from sculp.rules.models import RateLimitRules, RateLimitWindow


class RateLimiter:
    """Sliding-window limiter over the windows named in ``rate_limits``."""

    def __init__(self, rules: RateLimitRules, time_port: TimePort | None = None):
        self.rules = rules
        self._time: TimePort = time_port if time_port is not None else SystemClock()
        self._history: dict[str, list[datetime]] = {}
        self._lock = Lock()

    def _cleanup(self, key: str, window: int) -> None:
        cutoff = self._time.now_utc() - timedelta(seconds=window)
        if key in self._history:
            self._history[key] = [t for t in self._history[key] if t > cutoff]
            if not self._history[key]:
                del self._history[key]

    def allow_request(self, key: str, window: int, limit: int) -> bool:
        """
        Check if request is allowed.
        If allowed, records the attempt and returns True.
        If denied, returns False.
        """
        if limit <= 0:
            return False

        with self._lock:
            self._cleanup(key, window)
            if len(self._history.get(key, [])) >= limit:
                return False

            self._history.setdefault(key, []).append(self._time.now_utc())
            return True

    def check(self, rule: str, client: str) -> bool:
        """Apply the named rule (e.g. ``sign_in``) to one client."""
        window: RateLimitWindow = getattr(self.rules, rule)
        key = f"{window.key_prefix or rule}:{client}"
        return self.allow_request(key, window.window_seconds, window.max_attempts)
