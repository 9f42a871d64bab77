import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app import config
from app.api.middleware import SessionCookieMiddleware
from app.api.routes import router
from app.services.gemini_service import gemini_service
from app.services.gpt_service import gpt_service
from app.services.search_controller import AnalyzeFn
from app.services.session_registry import SessionRegistry

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

BASE_DIR = Path(__file__).resolve().parent


def region_analyzer() -> AnalyzeFn:
    """Pick the region analysis backend from ANALYSIS_PROVIDER."""
    if config.ANALYSIS_PROVIDER == "openai":
        return gpt_service.analyze_image_regions
    return gemini_service.analyze_image_regions


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await app.state.sessions.aclose()


app = FastAPI(
    title="Augmented Infographic Explorer",
    description="Generate an infographic for any topic and overlay interactive widgets on its regions",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.sessions = SessionRegistry(
    generate=gemini_service.generate_infographic,
    analyze=region_analyzer(),
)

app.add_middleware(SessionCookieMiddleware)
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
app.include_router(router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=config.HOST, port=config.PORT, reload=True)
