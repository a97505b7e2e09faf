"""Image-to-image transformation via the Gemini image model."""
import base64
import json
import logging
from typing import Any, Optional

import httpx
from google import genai  # type: ignore[import-untyped]
from google.genai import errors as genai_errors  # type: ignore[import-untyped]
from google.genai import types  # type: ignore[import-untyped]

from toytown.core.errors import ConfigError, NoImageInResponseError, TransformError
from toytown.models.image import DEFAULT_MIME_TYPE, EncodedImage
from toytown.services import image_codec

logger = logging.getLogger(__name__)

# Appended to every style prompt so the toy itself stays recognisable.
_PRESERVATION_NOTES = (
    "- 被写体は入力画像の玩具\n"
    "- 不自然な改変は避け、玩具の特徴は保持\n"
    "- 子ども向けに明るく楽しい雰囲気"
)

_DIAG_TEXT_LIMIT = 120


class ImageTransformService:
    """Restyles an existing toy photo with a single multimodal request."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str = "",
        model: str = "gemini-2.5-flash-image",
    ) -> None:
        self.http = http
        self.api_key = api_key
        self.model = model
        self._client: Optional[genai.Client] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def transform_image(self, source_image: str, style_prompt: str) -> EncodedImage:
        """Transform `source_image` (data URL or http(s) URL) using `style_prompt`.

        Raises:
            ConfigError: No Gemini API key configured.
            MalformedDataUrlError / FetchError: Source image could not be loaded.
            TransformError: The API rejected the request.
            NoImageInResponseError: The response carried no inline image.
        """
        if not self.api_key:
            raise ConfigError("GEMINI_API_KEY is not set")

        mime_type, image_bytes = await image_codec.decode_to_bytes(source_image, self.http)
        response = await self._call_transform_api(
            f"{style_prompt}\n{_PRESERVATION_NOTES}", mime_type, image_bytes
        )
        return extract_image(response)

    async def _call_transform_api(
        self, prompt: str, mime_type: str, image_bytes: bytes
    ) -> types.GenerateContentResponse:
        """Send prompt + inline image, requesting an image-only square result.

        Without the explicit IMAGE modality the model may answer with text only.
        """
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)

        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part(text=prompt),
                    types.Part(inline_data=types.Blob(data=image_bytes, mime_type=mime_type)),
                ],
            )
        ]
        try:
            return await self._client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE"],
                    image_config=types.ImageConfig(aspect_ratio="1:1"),
                ),
            )
        except genai_errors.APIError as exc:
            raise TransformError("Gemini", exc.code, str(exc)) from exc


def extract_image(response: types.GenerateContentResponse) -> EncodedImage:
    """Return the first inline image part of the first candidate.

    Raises:
        NoImageInResponseError: With any text, finish reason and safety
            ratings found, since silent image omission is the common failure.
    """
    candidate = response.candidates[0] if response.candidates else None
    parts = candidate.content.parts if candidate and candidate.content and candidate.content.parts else []

    for part in parts:
        if part.inline_data is not None and part.inline_data.data:
            return EncodedImage(
                mime_type=part.inline_data.mime_type or DEFAULT_MIME_TYPE,
                data=base64.b64encode(part.inline_data.data).decode("ascii"),
            )

    diag = ""
    text = next((p.text for p in parts if isinstance(p.text, str)), None)
    if text:
        diag += f' text="{text[:_DIAG_TEXT_LIMIT]}..."'
    if candidate is not None and candidate.finish_reason:
        diag += f" finishReason={_enum_value(candidate.finish_reason)}"
    if candidate is not None and candidate.safety_ratings:
        diag += f" safety={json.dumps(_dump(candidate.safety_ratings), ensure_ascii=False)}"
    raise NoImageInResponseError(f"No image in Gemini response{diag}")


def _enum_value(value: Any) -> str:
    return str(getattr(value, "value", value))


def _dump(ratings: list[Any]) -> list[Any]:
    return [r.model_dump(mode="json", exclude_none=True) for r in ratings]
