"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import base64
import io

import pytest
from PIL import Image

from app.models.schemas import AnalysisResult, GeneratedImage, Segment


def make_png(width: int = 200, height: int = 100) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "navy").save(buffer, format="PNG")
    return buffer.getvalue()


def make_segment(**overrides) -> Segment:
    data = {
        "label": "Wing Membrane",
        "format": "compact",
        "description": "Thin skin stretched between elongated finger bones.",
        "category": "concept",
        "icon": "🐉",
        "bounds": {"x": 10, "y": 20, "width": 30, "height": 40},
    }
    data.update(overrides)
    return Segment.model_validate(data)


class GatedCalls:
    """Async callable whose calls block until the test resolves them."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.futures: list[asyncio.Future] = []

    async def __call__(self, *args):
        future = asyncio.get_running_loop().create_future()
        self.calls.append(args)
        self.futures.append(future)
        return await future

    def resolve(self, value, index: int = -1) -> None:
        self.futures[index].set_result(value)

    def fail(self, error: Exception, index: int = -1) -> None:
        self.futures[index].set_exception(error)


async def settle(rounds: int = 20) -> None:
    """Let background tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def image(png_bytes) -> GeneratedImage:
    return GeneratedImage(
        base64=base64.b64encode(png_bytes).decode("utf-8"),
        mime_type="image/png",
        grounding_urls=[{"title": "Dragon lore", "uri": "https://example.org/dragons"}],
    )


@pytest.fixture
def other_image() -> GeneratedImage:
    return GeneratedImage(
        base64=base64.b64encode(make_png(64, 64)).decode("utf-8"),
        mime_type="image/png",
    )


@pytest.fixture
def segments() -> list[Segment]:
    return [
        make_segment(label="Fire Gland", format="detailed", category="process"),
        make_segment(
            label="Wingspan",
            format="stats",
            category="data",
            stats=[{"label": "Span", "value": "24 m"}, {"label": "Beats", "value": 3}],
            bounds={"x": 55, "y": 5, "width": 40, "height": 25},
        ),
    ]


@pytest.fixture
def analysis(segments) -> AnalysisResult:
    return AnalysisResult(segments=segments)


@pytest.fixture
def generate() -> GatedCalls:
    return GatedCalls()


@pytest.fixture
def analyze() -> GatedCalls:
    return GatedCalls()


@pytest.fixture
def segment_factory():
    return make_segment
