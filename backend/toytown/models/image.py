"""Image data models: the normalized encoded image and provider result shapes."""
import json
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_MIME_TYPE = "image/png"

JobStatus = Literal["starting", "processing", "succeeded", "failed", "canceled"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"succeeded", "failed", "canceled"})


class EncodedImage(BaseModel):
    """MIME type plus base64 payload; interchangeable with a data URL string."""

    mime_type: str = DEFAULT_MIME_TYPE
    data: str

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    @classmethod
    def from_data_url(cls, source: str) -> "EncodedImage":
        """Build from `data:<mime>;base64,<payload>`.

        Raises:
            MalformedDataUrlError: Pattern mismatch or invalid base64 payload.
        """
        from toytown.services.image_codec import encode_image, parse_data_url

        mime_type, data = parse_data_url(source)
        return encode_image(mime_type, data)


class ImageDatum(BaseModel):
    b64_json: Optional[str] = None
    url: Optional[str] = None


class ImagesResult(BaseModel):
    """Body of the primary provider's create-image endpoint."""

    data: list[ImageDatum] = Field(default_factory=list)


class PredictionJob(BaseModel):
    """Asynchronous job on the fallback provider. Never persisted."""

    id: str
    status: JobStatus
    output: Any = None
    # Usually a message string; some models report a structured payload.
    error: Any = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def error_detail(self) -> str:
        if isinstance(self.error, str):
            return self.error
        return json.dumps(self.error, ensure_ascii=False, default=str)

    def output_reference(self) -> Optional[str]:
        """First string output, whether the model returns a scalar or a list."""
        if isinstance(self.output, str):
            return self.output
        if isinstance(self.output, list):
            for item in self.output:
                if isinstance(item, str):
                    return item
        return None


class ImageGenerationRequest(BaseModel):
    """Request body for the standalone text-to-image endpoint."""

    prompt: str = Field(..., min_length=1, max_length=4000)


class ImageGenerationResponse(BaseModel):
    image_data_url: str
