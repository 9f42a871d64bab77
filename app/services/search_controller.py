import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager, suppress

from app import config
from app.models import state as transitions
from app.models.schemas import AnalysisResult, GeneratedImage
from app.models.state import AppState, AppStatus

logger = logging.getLogger(__name__)

GenerateFn = Callable[[str], Awaitable[GeneratedImage]]
AnalyzeFn = Callable[[str, str], Awaitable[AnalysisResult]]


class SearchController:
    """Sequences image generation and region analysis for one browser session."""

    def __init__(
        self,
        generate: GenerateFn,
        analyze: AnalyzeFn,
        phrase_interval: float = config.PHRASE_INTERVAL,
    ) -> None:
        self._generate = generate
        self._analyze = analyze
        self._phrase_interval = phrase_interval
        self._state = AppState()
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> AppState:
        return self._state

    def submit(self, query: str) -> AppState:
        """
        Start a search and return the resulting state.

        The state is already `generating` when this returns; the pipeline runs
        as a background task on the current event loop. Any pipeline still in
        flight is cancelled and its late results are ignored.
        """
        next_state = transitions.submit(self._state, query)
        if next_state is self._state:
            return self._state

        self._cancel_pipeline()
        self._state = next_state
        logger.info("Search %d submitted: %r", next_state.epoch, next_state.query)
        self._task = asyncio.get_running_loop().create_task(
            self._run(next_state.query, next_state.epoch)
        )
        return self._state

    def reset(self) -> AppState:
        """Discard everything and return to idle."""
        self._cancel_pipeline()
        self._state = transitions.reset(self._state)
        return self._state

    async def join(self) -> None:
        """Wait for the in-flight pipeline, if any, to finish."""
        task = self._task
        if task is not None:
            with suppress(asyncio.CancelledError):
                await task

    async def aclose(self) -> None:
        self._cancel_pipeline()
        await self.join()

    def _cancel_pipeline(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self, query: str, epoch: int) -> None:
        """
        Generate the image, show it, then analyze it.

        Process flow:
        1. Generate the infographic for the query
        2. Store it and enter `analyzing` (the image is shown while scanning)
        3. Analyze regions of that image while the status phrases rotate
        4. Store the segments and enter `complete`

        Any failure returns the session to `idle` with a message.
        """
        try:
            image = await self._generate(query)
        except Exception as e:
            logger.warning("Image generation failed for search %d: %s", epoch, e)
            self._state = transitions.generation_failed(
                self._state, epoch, transitions.error_message(e)
            )
            return

        self._state = transitions.generation_succeeded(self._state, epoch, image)
        if self._state.epoch != epoch or self._state.status is not AppStatus.ANALYZING:
            return

        try:
            async with self._phrase_rotation(epoch):
                analysis = await self._analyze(query, image.base64)
        except Exception as e:
            logger.warning("Region analysis failed for search %d: %s", epoch, e)
            self._state = transitions.analysis_failed(
                self._state, epoch, transitions.error_message(e)
            )
            return

        self._state = transitions.analysis_succeeded(self._state, epoch, analysis)
        logger.info(
            "Search %d complete with %d segments", epoch, len(analysis.segments)
        )

    @asynccontextmanager
    async def _phrase_rotation(self, epoch: int) -> AsyncIterator[None]:
        """Rotate the status phrase for as long as the block runs."""
        ticker = asyncio.create_task(self._rotate_phrases(epoch))
        try:
            yield
        finally:
            ticker.cancel()
            with suppress(asyncio.CancelledError):
                await ticker

    async def _rotate_phrases(self, epoch: int) -> None:
        while True:
            await asyncio.sleep(self._phrase_interval)
            self._state = transitions.advance_phrase(self._state, epoch)
