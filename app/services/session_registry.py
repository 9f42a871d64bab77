import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from app import config
from app.services.search_controller import AnalyzeFn, GenerateFn, SearchController

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    In-memory map of browser sessions to their search controllers.

    Controllers are kept in least-recently-used order. A controller that has
    not been touched for `ttl` seconds is evicted, and the oldest ones are
    evicted once more than `max_sessions` exist. Evicted controllers have
    their in-flight pipeline cancelled.
    """

    def __init__(
        self,
        generate: GenerateFn,
        analyze: AnalyzeFn,
        phrase_interval: float | None = None,
        max_sessions: int = config.MAX_SESSIONS,
        ttl: float = config.SESSION_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._generate = generate
        self._analyze = analyze
        self._phrase_interval = phrase_interval
        self._max_sessions = max_sessions
        self._ttl = ttl
        self._clock = clock
        # session id -> (controller, last used)
        self._controllers: OrderedDict[str, tuple[SearchController, float]] = (
            OrderedDict()
        )

    async def get(self, session_id: str) -> SearchController:
        """Return the session's controller, creating it on first use."""
        now = self._clock()
        entry = self._controllers.pop(session_id, None)
        if entry is None:
            kwargs = {}
            if self._phrase_interval is not None:
                kwargs["phrase_interval"] = self._phrase_interval
            controller = SearchController(self._generate, self._analyze, **kwargs)
            logger.debug("Created controller for session %s", session_id)
        else:
            controller = entry[0]
        self._controllers[session_id] = (controller, now)

        await self._evict(now)
        return controller

    def __len__(self) -> int:
        return len(self._controllers)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._controllers

    async def _evict(self, now: float) -> None:
        expired: list[tuple[str, SearchController]] = []
        for session_id, (controller, last_used) in self._controllers.items():
            if now - last_used < self._ttl:
                # ordered by last use, the rest are fresher
                break
            expired.append((session_id, controller))
        overflow = len(self._controllers) - len(expired) - self._max_sessions
        if overflow > 0:
            for session_id, (controller, _) in list(self._controllers.items())[
                len(expired) : len(expired) + overflow
            ]:
                expired.append((session_id, controller))

        for session_id, controller in expired:
            del self._controllers[session_id]
            logger.debug("Evicted controller for session %s", session_id)
            await controller.aclose()

    async def aclose(self) -> None:
        """Cancel every in-flight pipeline."""
        for controller, _ in self._controllers.values():
            await controller.aclose()
        self._controllers.clear()
