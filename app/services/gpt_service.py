import json
import logging

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from app import config
from app.models.schemas import AnalysisResult
from app.services.errors import AnalysisError
from app.services.image_processor import image_processor
from app.services.prompts import OPENAI_JSON_INSTRUCTION, REGION_ANALYSIS_PROMPT

logger = logging.getLogger(__name__)


class GPTService:
    """Region analysis backed by an OpenAI vision model."""

    def __init__(self) -> None:
        self._client: AsyncOpenAI | None = None
        self.model = config.OPENAI_ANALYSIS_MODEL

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=config.OPENAI_API_KEY)
        return self._client

    async def analyze_image_regions(
        self, query: str, image_base64: str
    ) -> AnalysisResult:
        """Analyze an infographic and return its annotated regions."""
        try:
            mime_type = image_processor.detect_mime_type(
                image_processor.decode(image_base64)
            )
        except ValueError as e:
            raise AnalysisError(str(e)) from e

        prompt = REGION_ANALYSIS_PROMPT.format(query=query) + OPENAI_JSON_INSTRUCTION
        logger.info("Analyzing image regions with %s", self.model)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {
                                "type": "image_url",
                                "image_url": {
                                    "url": f"data:{mime_type};base64,{image_base64}",
                                },
                            },
                        ],
                    }
                ],
                response_format={"type": "json_object"},
                max_completion_tokens=4096,
            )
        except OpenAIError as e:
            raise AnalysisError(str(e)) from e

        content = response.choices[0].message.content
        if not content:
            raise AnalysisError("OpenAI API returned an empty analysis")

        try:
            data = json.loads(content)
            # Handle a bare list of segments
            if isinstance(data, list):
                data = {"segments": data}
            return AnalysisResult.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Malformed analysis payload: %s", e)
            raise AnalysisError("OpenAI API returned malformed regions") from e


gpt_service = GPTService()
