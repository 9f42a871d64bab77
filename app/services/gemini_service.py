import logging

import httpx
from google import genai
from google.genai import errors, types
from pydantic import ValidationError

from app import config
from app.models.schemas import AnalysisResult, GeneratedImage, GroundingUrl, web_url
from app.services.errors import AnalysisError, GenerationError
from app.services.image_processor import image_processor
from app.services.prompts import (
    ANALYSIS_RESPONSE_SCHEMA,
    INFOGRAPHIC_PROMPT,
    REGION_ANALYSIS_PROMPT,
)

logger = logging.getLogger(__name__)


class GeminiService:
    """Service for generating infographics and analyzing their regions with Gemini."""

    def __init__(self) -> None:
        self._client: genai.Client | None = None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=config.GEMINI_API_KEY)
        return self._client

    async def generate_infographic(self, query: str) -> GeneratedImage:
        """Paint an infographic for the query, grounded with Google Search."""
        prompt = INFOGRAPHIC_PROMPT.format(query=query)
        logger.info("Generating infographic with %s", config.GEMINI_IMAGE_MODEL)

        try:
            response = await self.client.aio.models.generate_content(
                model=config.GEMINI_IMAGE_MODEL,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_modalities=["TEXT", "IMAGE"],
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                ),
            )
        except errors.APIError as e:
            raise GenerationError(e.message or str(e)) from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Could not reach Gemini API: {e}") from e

        # Handle null response cases
        if not response.candidates:
            raise GenerationError("Gemini API returned no candidates")

        candidate = response.candidates[0]
        if candidate.content is None:
            finish_reason = getattr(candidate, "finish_reason", "UNKNOWN")
            raise GenerationError(
                f"Gemini API returned no content. Finish reason: {finish_reason}"
            )

        for part in candidate.content.parts or []:
            if part.inline_data is not None and part.inline_data.data:
                return GeneratedImage(
                    base64=image_processor.encode(part.inline_data.data),
                    mime_type=part.inline_data.mime_type
                    or image_processor.detect_mime_type(part.inline_data.data),
                    grounding_urls=self._grounding_urls(candidate),
                )

        raise GenerationError("No image returned from Gemini API")

    async def analyze_image_regions(
        self, query: str, image_base64: str
    ) -> AnalysisResult:
        """Ask Gemini for annotated regions of the infographic as JSON."""
        try:
            image_data = image_processor.decode(image_base64)
        except ValueError as e:
            raise AnalysisError(str(e)) from e

        prompt = REGION_ANALYSIS_PROMPT.format(query=query)
        logger.info("Analyzing image regions with %s", config.GEMINI_ANALYSIS_MODEL)

        try:
            response = await self.client.aio.models.generate_content(
                model=config.GEMINI_ANALYSIS_MODEL,
                contents=[
                    types.Part.from_bytes(
                        data=image_data,
                        mime_type=image_processor.detect_mime_type(image_data),
                    ),
                    prompt,
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=ANALYSIS_RESPONSE_SCHEMA,
                ),
            )
        except errors.APIError as e:
            raise AnalysisError(e.message or str(e)) from e
        except httpx.HTTPError as e:
            raise AnalysisError(f"Could not reach Gemini API: {e}") from e

        content = response.text
        if not content:
            raise AnalysisError("Gemini API returned an empty analysis")

        try:
            return AnalysisResult.model_validate_json(content)
        except ValidationError as e:
            logger.warning("Malformed analysis payload: %s", e)
            raise AnalysisError("Gemini API returned malformed regions") from e

    def _grounding_urls(self, candidate: types.Candidate) -> list[GroundingUrl]:
        """Collect web citations from the candidate, de-duplicated by URI."""
        metadata = candidate.grounding_metadata
        if metadata is None or not metadata.grounding_chunks:
            return []

        seen: set[str] = set()
        urls: list[GroundingUrl] = []
        for chunk in metadata.grounding_chunks:
            web = chunk.web
            uri = web_url(web.uri) if web is not None else None
            if uri is None or uri in seen:
                continue
            seen.add(uri)
            urls.append(GroundingUrl(title=web.title or uri, uri=uri))
        return urls


gemini_service = GeminiService()
