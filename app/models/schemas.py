from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

SegmentFormat = Literal["compact", "stats", "detailed", "mini"]

WEB_SCHEMES = frozenset(("http", "https"))


def web_url(value: str | None) -> str | None:
    """Return the URL if it is an absolute http(s) link, otherwise None."""
    if not value:
        return None
    url = value.strip()
    parsed = urlparse(url)
    if parsed.scheme.lower() not in WEB_SCHEMES or not parsed.netloc:
        return None
    return url


class FrozenModel(BaseModel):
    """Immutable model accepting both wire (camelCase) and Python names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class BoundingBox(FrozenModel):
    """Region of the image in percentages (0-100) of its rendered size."""

    x: float
    y: float
    width: float
    height: float

    @field_validator("x", "y", "width", "height")
    @classmethod
    def clamp_percentage(cls, value: float) -> float:
        return min(max(value, 0.0), 100.0)

    @field_validator("width")
    @classmethod
    def fit_width(cls, value: float, info: ValidationInfo) -> float:
        return min(value, 100.0 - info.data.get("x", 0.0))

    @field_validator("height")
    @classmethod
    def fit_height(cls, value: float, info: ValidationInfo) -> float:
        return min(value, 100.0 - info.data.get("y", 0.0))

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


class StatItem(FrozenModel):
    """A labeled metric shown inside stats and detailed widgets."""

    label: str
    value: str
    icon: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, value: object) -> object:
        if isinstance(value, (int, float)):
            return str(value)
        return value


class ActionItem(FrozenModel):
    """Optional call-to-action link."""

    label: str
    url: str | None = None

    @field_validator("url", mode="before")
    @classmethod
    def keep_web_url(cls, value: object) -> object:
        return web_url(value) if isinstance(value, str) else value


class Segment(FrozenModel):
    """An annotated region of the generated image."""

    label: str
    # Free string so unknown formats survive parsing and render as compact
    format: str = "compact"
    description: str = ""
    category: str = ""
    icon: str = ""
    stats: list[StatItem] | None = None
    source_url: str | None = Field(default=None, alias="sourceUrl")
    source_name: str | None = Field(default=None, alias="sourceName")
    actions: list[ActionItem] | None = None
    bounds: BoundingBox

    @field_validator("source_url", mode="before")
    @classmethod
    def keep_web_url(cls, value: object) -> object:
        return web_url(value) if isinstance(value, str) else value


class AnalysisResult(FrozenModel):
    """Output of the region analysis step."""

    segments: list[Segment] = Field(default_factory=list)


class GroundingUrl(FrozenModel):
    """Citation returned alongside a generated image."""

    title: str = ""
    uri: str

    @field_validator("uri")
    @classmethod
    def require_web_url(cls, value: str) -> str:
        url = web_url(value)
        if url is None:
            raise ValueError("citation must be an http(s) URL")
        return url


class GeneratedImage(FrozenModel):
    """Infographic returned by the image generation step."""

    base64: str
    mime_type: str = Field(default="image/png", alias="mimeType")
    grounding_urls: list[GroundingUrl] = Field(
        default_factory=list, alias="groundingUrls"
    )

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


class SearchRequest(BaseModel):
    """Body of POST /api/search."""

    query: str
