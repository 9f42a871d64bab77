from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from app.models.schemas import AnalysisResult, GeneratedImage, SearchRequest
from app.models.state import AppState, AppStatus
from app.services.canvas_composer import CanvasView, canvas_composer
from app.services.search_controller import SearchController
from app.services.session_registry import SessionRegistry
from app.services.widget_engine import TEMPLATES_DIR

router = APIRouter()

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

SUGGESTIONS = [
    "Ecosystem of a Cloud City",
    "Hidden Geometry of a Fairy Ring",
    "Anatomy of a Dragon",
]


class StateSnapshot(BaseModel):
    """Public view of a session's state."""

    status: AppStatus
    query: str
    error: str | None
    phrase: str | None
    image: GeneratedImage | None
    analysis: AnalysisResult | None

    @classmethod
    def from_state(cls, state: AppState) -> "StateSnapshot":
        return cls(
            status=state.status,
            query=state.query,
            error=state.error,
            phrase=state.phrase if state.is_scanning else None,
            image=state.data.image if state.data else None,
            analysis=state.data.analysis if state.data else None,
        )


class StatusSnapshot(BaseModel):
    """Lightweight progress view polled by the page while a search runs."""

    status: AppStatus
    phrase: str | None
    epoch: int

    @classmethod
    def from_state(cls, state: AppState) -> "StatusSnapshot":
        return cls(
            status=state.status,
            phrase=state.phrase if state.is_scanning else None,
            epoch=state.epoch,
        )


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


async def get_controller(
    request: Request, registry: SessionRegistry = Depends(get_registry)
) -> SearchController:
    return await registry.get(request.state.session_id)


def _view_context(state: AppState) -> dict:
    canvas = None
    if state.data is not None:
        canvas = canvas_composer.compose(
            state.data.image, state.data.analysis, state.is_scanning
        )
    return {"state": state, "canvas": canvas, "suggestions": SUGGESTIONS}


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request, controller: SearchController = Depends(get_controller)
) -> HTMLResponse:
    """Serve the full page for the caller's session."""
    return templates.TemplateResponse(
        request, "index.html", _view_context(controller.state)
    )


@router.get("/view", response_class=HTMLResponse)
async def view(
    request: Request, controller: SearchController = Depends(get_controller)
) -> HTMLResponse:
    """Serve the main view fragment; the page polls it while a search runs."""
    return templates.TemplateResponse(
        request, "partials/view.html", _view_context(controller.state)
    )


@router.post("/search")
async def search_form(
    query: str = Form(""), controller: SearchController = Depends(get_controller)
) -> RedirectResponse:
    controller.submit(query)
    return RedirectResponse("/", status_code=303)


@router.post("/reset")
async def reset_form(
    controller: SearchController = Depends(get_controller),
) -> RedirectResponse:
    controller.reset()
    return RedirectResponse("/", status_code=303)


@router.get("/api/state", response_model=StateSnapshot)
async def get_state(
    controller: SearchController = Depends(get_controller),
) -> StateSnapshot:
    return StateSnapshot.from_state(controller.state)


@router.get("/api/status", response_model=StatusSnapshot)
async def get_status(
    controller: SearchController = Depends(get_controller),
) -> StatusSnapshot:
    return StatusSnapshot.from_state(controller.state)


@router.post("/api/search", response_model=StateSnapshot)
async def search(
    body: SearchRequest, controller: SearchController = Depends(get_controller)
) -> StateSnapshot:
    """
    Submit a query.

    Returns the `generating` state immediately; blank queries leave the state
    unchanged.
    """
    return StateSnapshot.from_state(controller.submit(body.query))


@router.post("/api/reset", response_model=StateSnapshot)
async def reset(
    controller: SearchController = Depends(get_controller),
) -> StateSnapshot:
    return StateSnapshot.from_state(controller.reset())


@router.get("/api/canvas", response_model=CanvasView)
async def get_canvas(
    controller: SearchController = Depends(get_controller),
) -> CanvasView:
    state = controller.state
    if state.data is None:
        raise HTTPException(status_code=404, detail="No image has been generated")
    return canvas_composer.compose(
        state.data.image, state.data.analysis, state.is_scanning
    )
