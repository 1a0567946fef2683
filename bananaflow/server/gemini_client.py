"""
Gemini generation client.

Implements IGenerationClient on top of the google-genai SDK (async surface,
`client.aio`). Every remote failure is logged and converted to a
GenerationResult carrying a display message; nothing raises past this
boundary.

Environment variable:
    GEMINI_API_KEY  (read through Settings).
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from bananaflow.core.Interface import GenerationResult, IGenerationClient
from bananaflow.server.config import IMAGE_MODEL_NAME, TEXT_MODEL_NAME, Settings

logger = logging.getLogger(__name__)

TEXT_TO_IMAGE_FAILED = "Image generation failed."
IMAGE_TO_IMAGE_FAILED = "Image remix failed."
NO_CANDIDATES = "No candidates returned."
NO_CONTENT_PARTS = "No content parts found."
NO_IMAGE_DATA = "No image data found in response. The model may have returned text only."

OPTIMIZE_INSTRUCTION = """You are an expert prompt engineer for AI image generation.
Rewrite the user's input into a highly detailed, creative and descriptive prompt optimized for the Gemini image generation model.

Guidelines:
1. Keep the prompt in the same language as the user's input.
2. Focus on visual details: lighting, composition, artistic style, texture and mood.
3. Expansion: if the input is simple (e.g. "banana"), expand it into a full scene.
4. Output ONLY the raw optimized prompt text, no explanations.

User Input: "{prompt}"
"""


def strip_data_url(data: str) -> str:
    """Drop a `data:image/png;base64,` style header if present."""
    head, sep, tail = data.partition(",")
    if sep and head.startswith("data:"):
        return tail
    return data


def parse_image_response(response: Any) -> GenerationResult:
    """Pull the first inline image out of a generate_content response."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return GenerationResult.failure(NO_CANDIDATES)

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not parts:
        return GenerationResult.failure(NO_CONTENT_PARTS)

    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return GenerationResult.success(inline.data, inline.mime_type or "image/png")

    # a text-only answer is usually the model explaining why it refused
    text = getattr(parts[0], "text", None)
    if text:
        return GenerationResult.failure(f"Generation failed: {text}")

    return GenerationResult.failure(NO_IMAGE_DATA)


class GeminiClient(IGenerationClient):
    def __init__(self, settings: Optional[Settings] = None, client: Optional[Any] = None) -> None:
        self.settings = settings or Settings()
        self.image_model = self.settings.image_model or IMAGE_MODEL_NAME
        self.text_model = self.settings.text_model or TEXT_MODEL_NAME
        self._client = client

    @property
    def client(self) -> Any:
        # built on first use so a missing key only fails the call that needs it
        if self._client is None:
            self._client = genai.Client(api_key=self.settings.api_key)
        return self._client

    async def _generate_image(self, parts: list, fallback: str) -> GenerationResult:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.image_model,
                contents=types.Content(role="user", parts=parts),
                config=types.GenerateContentConfig(
                    response_modalities=[types.Modality.TEXT, types.Modality.IMAGE],
                ),
            )
        except Exception as exc:
            logger.exception("%s (model=%s)", fallback, self.image_model)
            return GenerationResult.failure(str(exc) or fallback)
        return parse_image_response(response)

    async def generate_from_text(self, prompt: str) -> GenerationResult:
        return await self._generate_image(
            [types.Part.from_text(text=prompt)],
            TEXT_TO_IMAGE_FAILED,
        )

    async def generate_from_image_and_text(
        self,
        prompt: str,
        source_image: bytes,
        mime_type: str = "image/png",
    ) -> GenerationResult:
        return await self._generate_image(
            [
                types.Part.from_text(text=prompt),
                types.Part.from_bytes(data=source_image, mime_type=mime_type),
            ],
            IMAGE_TO_IMAGE_FAILED,
        )

    async def optimize_prompt(self, prompt: str) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.text_model,
                contents=OPTIMIZE_INSTRUCTION.format(prompt=prompt),
            )
            optimized = (response.text or "").strip()
        except Exception as exc:
            logger.warning("prompt optimization failed, keeping original: %s", exc)
            return prompt
        return optimized or prompt
