"""
Application state and its transitions.

The state is an immutable record. Every transition is a pure function that
takes the current state and returns the next one, so the whole lifecycle
(idle -> generating -> analyzing -> complete) can be exercised without an
event loop. Completions of async work carry the epoch they were started
with; a completion whose epoch or expected status no longer matches is
stale and leaves the state untouched.
"""

from enum import Enum

from app.models.schemas import AnalysisResult, FrozenModel, GeneratedImage

FALLBACK_ERROR = "Something went wrong. Please check your network and try again."

ANALYSIS_PHRASES = (
    "Scanning visual topography...",
    "Identifying key data nodes...",
    "Synthesizing contextual widgets...",
    "Cross-referencing knowledge bases...",
    "Generating immersive annotations...",
)


class AppStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    ANALYZING = "analyzing"
    COMPLETE = "complete"


class ResultData(FrozenModel):
    """Generated image plus its analysis, once available."""

    image: GeneratedImage
    analysis: AnalysisResult | None = None


class AppState(FrozenModel):
    status: AppStatus = AppStatus.IDLE
    query: str = ""
    data: ResultData | None = None
    error: str | None = None
    epoch: int = 0
    phrase_index: int = 0

    @property
    def phrase(self) -> str:
        return ANALYSIS_PHRASES[self.phrase_index % len(ANALYSIS_PHRASES)]

    @property
    def is_scanning(self) -> bool:
        return self.status is AppStatus.ANALYZING

    @property
    def is_busy(self) -> bool:
        return self.status in (AppStatus.GENERATING, AppStatus.ANALYZING)


def error_message(error: BaseException | None) -> str:
    """Human-readable message for a failed attempt."""
    message = str(error).strip() if error is not None else ""
    return message or FALLBACK_ERROR


def _is_current(state: AppState, epoch: int, status: AppStatus) -> bool:
    return state.epoch == epoch and state.status is status


def submit(state: AppState, query: str) -> AppState:
    """Start a new search. Blank queries are ignored."""
    if not query or not query.strip():
        return state
    return AppState(status=AppStatus.GENERATING, query=query, epoch=state.epoch + 1)


def generation_succeeded(
    state: AppState, epoch: int, image: GeneratedImage
) -> AppState:
    if not _is_current(state, epoch, AppStatus.GENERATING):
        return state
    return state.model_copy(
        update={
            "status": AppStatus.ANALYZING,
            "data": ResultData(image=image),
            "phrase_index": 0,
        }
    )


def generation_failed(state: AppState, epoch: int, message: str) -> AppState:
    if not _is_current(state, epoch, AppStatus.GENERATING):
        return state
    return AppState(error=message, epoch=state.epoch)


def analysis_succeeded(
    state: AppState, epoch: int, analysis: AnalysisResult
) -> AppState:
    if not _is_current(state, epoch, AppStatus.ANALYZING) or state.data is None:
        return state
    return state.model_copy(
        update={
            "status": AppStatus.COMPLETE,
            "data": ResultData(image=state.data.image, analysis=analysis),
        }
    )


def analysis_failed(state: AppState, epoch: int, message: str) -> AppState:
    # The generated image is discarded together with everything else
    if not _is_current(state, epoch, AppStatus.ANALYZING):
        return state
    return AppState(error=message, epoch=state.epoch)


def reset(state: AppState) -> AppState:
    return AppState(epoch=state.epoch + 1)


def advance_phrase(state: AppState, epoch: int) -> AppState:
    if not _is_current(state, epoch, AppStatus.ANALYZING):
        return state
    return state.model_copy(
        update={"phrase_index": (state.phrase_index + 1) % len(ANALYSIS_PHRASES)}
    )
