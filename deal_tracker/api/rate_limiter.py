# deal_tracker/api/rate_limiter.py

"""Per-client sliding-window request limiting."""

import logging
import time
from collections.abc import Callable

from deal_tracker.config.settings import Settings

logger = logging.getLogger("deal_tracker.api")


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per client in any ``window`` seconds.

    Clients with no request inside the window are forgotten.
    """

    def __init__(
        self,
        max_requests: int = Settings.PROXY_MAX_REQUESTS,
        window: float = Settings.PROXY_RATE_LIMIT_WINDOW,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._requests: dict[str, list[float]] = {}

    @property
    def tracked_clients(self) -> int:
        return len(self._requests)

    def _forget_idle(self, window_start: float) -> None:
        idle = [
            client_id for client_id, times in self._requests.items()
            if not times or times[-1] <= window_start
        ]
        for client_id in idle:
            del self._requests[client_id]

    def allow(self, client_id: str, now: float | None = None) -> bool:
        """Record a request for *client_id*; False when over the limit.

        Rejected requests are not recorded.
        """
        now = self._clock() if now is None else now
        window_start = now - self.window
        self._forget_idle(window_start)
        recent = [
            t for t in self._requests.get(client_id, []) if t > window_start
        ]
        if len(recent) >= self.max_requests:
            self._requests[client_id] = recent
            logger.warning("Rate limit exceeded for %s", client_id)
            return False
        recent.append(now)
        self._requests[client_id] = recent
        return True
