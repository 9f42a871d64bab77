import base64
import binascii
import io

from PIL import Image, UnidentifiedImageError

DEFAULT_MIME_TYPE = "image/png"


class ImageProcessor:
    """Helpers for the base64 image payloads passed between services."""

    def decode(self, image_base64: str) -> bytes:
        """Decode a base64 payload, accepting an optional data URI prefix."""
        if image_base64.startswith("data:") and "," in image_base64:
            image_base64 = image_base64.split(",", 1)[1]
        try:
            return base64.b64decode(image_base64, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 image data: {e}") from e

    def encode(self, image_data: bytes) -> str:
        return base64.b64encode(image_data).decode("utf-8")

    def detect_mime_type(self, image_data: bytes) -> str:
        """Sniff the MIME type from the image header, defaulting to PNG."""
        try:
            image = Image.open(io.BytesIO(image_data))
        except UnidentifiedImageError:
            return DEFAULT_MIME_TYPE
        return Image.MIME.get(image.format or "", DEFAULT_MIME_TYPE)

    def get_image_dimensions(self, image_data: bytes) -> tuple[int, int]:
        """Get the width and height of an image."""
        image = Image.open(io.BytesIO(image_data))
        return image.size


image_processor = ImageProcessor()
