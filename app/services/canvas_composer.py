from functools import lru_cache

from pydantic import BaseModel

from app.models.schemas import AnalysisResult, GeneratedImage, GroundingUrl
from app.services.image_processor import image_processor
from app.services.widget_engine import WidgetEngine, widget_engine


class DisplayBox(BaseModel):
    """Pixel rectangle the image occupies inside its container."""

    left: float
    top: float
    width: float
    height: float


class WidgetPlacement(BaseModel):
    """A segment's widget positioned in percentages of the displayed image."""

    index: int
    label: str
    format: str
    left: float
    top: float
    width: float
    height: float
    anchor_x: float
    anchor_y: float
    z_index: int
    html: str

    def project(self, box: DisplayBox) -> DisplayBox:
        """Convert the placement's bounds into pixels inside `box`'s container."""
        return DisplayBox(
            left=box.left + box.width * self.left / 100,
            top=box.top + box.height * self.top / 100,
            width=box.width * self.width / 100,
            height=box.height * self.height / 100,
        )


class CanvasView(BaseModel):
    """Everything the page needs to draw the image and its widgets."""

    image_src: str
    image_width: int
    image_height: int
    is_scanning: bool
    placements: list[WidgetPlacement]
    grounding_urls: list[GroundingUrl]

    @property
    def aspect_ratio(self) -> float:
        return self.image_width / self.image_height


@lru_cache(maxsize=32)
def image_dimensions(image_base64: str) -> tuple[int, int]:
    """Pixel size of an encoded image, remembered across page polls."""
    return image_processor.get_image_dimensions(image_processor.decode(image_base64))


def fit_image(
    container_width: float,
    container_height: float,
    image_width: float,
    image_height: float,
) -> DisplayBox:
    """
    Letterbox an image into a container, preserving its aspect ratio.

    Mirrors CSS `object-fit: contain`: the image is scaled to the largest size
    that fits, then centred, leaving bars on the two sides that do not touch.
    """
    if image_width <= 0 or image_height <= 0:
        return DisplayBox(left=0, top=0, width=0, height=0)

    scale = min(container_width / image_width, container_height / image_height)
    width = image_width * scale
    height = image_height * scale
    return DisplayBox(
        left=(container_width - width) / 2,
        top=(container_height - height) / 2,
        width=width,
        height=height,
    )


class CanvasComposer:
    """Composes the generated image and its widgets into one coordinate space."""

    def __init__(self, engine: WidgetEngine = widget_engine) -> None:
        self.engine = engine

    def compose(
        self,
        image: GeneratedImage,
        analysis: AnalysisResult | None,
        is_scanning: bool,
    ) -> CanvasView:
        """
        Build the canvas for an image and its analysis.

        Args:
            image: The generated infographic
            analysis: Segments to overlay, or None while analysis is pending
            is_scanning: True while the analysis is running; widgets are withheld

        Returns:
            CanvasView with one placement per segment, in segment order
        """
        width, height = image_dimensions(image.base64)

        placements: list[WidgetPlacement] = []
        if analysis is not None and not is_scanning:
            for index, segment in enumerate(analysis.segments):
                bounds = segment.bounds
                anchor_x, anchor_y = bounds.center
                placements.append(
                    WidgetPlacement(
                        index=index,
                        label=segment.label,
                        format=self.engine.resolve_format(segment),
                        left=bounds.x,
                        top=bounds.y,
                        width=bounds.width,
                        height=bounds.height,
                        anchor_x=anchor_x,
                        anchor_y=anchor_y,
                        z_index=index + 1,
                        html=str(self.engine.render(segment)),
                    )
                )

        return CanvasView(
            image_src=image.data_uri,
            image_width=width,
            image_height=height,
            is_scanning=is_scanning,
            placements=placements,
            grounding_urls=list(image.grounding_urls),
        )


canvas_composer = CanvasComposer()
