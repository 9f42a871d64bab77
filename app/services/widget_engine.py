from pathlib import Path
from urllib.parse import urlparse

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from app.models.schemas import Segment, SegmentFormat

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

# Unknown formats fall back to compact
WIDGET_TEMPLATES: dict[SegmentFormat, str] = {
    "mini": "widgets/mini.html",
    "compact": "widgets/compact.html",
    "stats": "widgets/stats.html",
    "detailed": "widgets/detailed.html",
}
FALLBACK_FORMAT = "compact"

DEFAULT_ICONS: dict[str, str] = {
    "mini": "✨",
    "compact": "🔍",
    "stats": "📊",
    "detailed": "🚀",
}

DEFAULT_CATEGORIES: dict[str, str] = {
    "compact": "Concept",
    "detailed": "Deep Dive",
}

STATS_PLACEHOLDER = "Detailed metrics unavailable."


class WidgetEngine:
    """Renders a segment as one of four self-contained HTML widgets."""

    def __init__(self, templates_dir: Path = TEMPLATES_DIR) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def resolve_format(self, segment: Segment) -> str:
        if segment.format in WIDGET_TEMPLATES:
            return segment.format
        return FALLBACK_FORMAT

    def render(self, segment: Segment) -> Markup:
        widget_format = self.resolve_format(segment)
        template = self.env.get_template(WIDGET_TEMPLATES[widget_format])
        html = template.render(
            segment=segment,
            widget_format=widget_format,
            icon=segment.icon or DEFAULT_ICONS[widget_format],
            category=segment.category or DEFAULT_CATEGORIES.get(widget_format, ""),
            stats=segment.stats or [],
            actions=segment.actions or [],
            source_label=self._source_label(segment),
            stats_placeholder=STATS_PLACEHOLDER,
        )
        return Markup(html)

    def _source_label(self, segment: Segment) -> str | None:
        """Attribution text for the segment's source link, if it has one."""
        if not segment.source_url:
            return None
        if segment.source_name:
            return segment.source_name
        return urlparse(segment.source_url).netloc or segment.source_url


widget_engine = WidgetEngine()
