"""Request and result shapes for the text-generation (Responses API) boundary."""
from typing import Literal, Optional

from pydantic import BaseModel, Field


class ContentBlock(BaseModel):
    """A text or image block of a model message."""

    type: Literal["input_text", "input_image"]
    text: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def of_text(cls, text: str) -> "ContentBlock":
        return cls(type="input_text", text=text)

    @classmethod
    def of_image(cls, image_url: str) -> "ContentBlock":
        return cls(type="input_image", image_url=image_url)


class ModelMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: list[ContentBlock]


class OutputContent(BaseModel):
    text: Optional[str] = None


class OutputItem(BaseModel):
    content: list[OutputContent] = Field(default_factory=list)


class ResponsesResult(BaseModel):
    """Minimal view of a Responses API result; every field is optional."""

    output: list[OutputItem] = Field(default_factory=list)
    output_text: Optional[str] = None

    def first_text(self) -> Optional[str]:
        for item in self.output:
            for content in item.content:
                if content.text:
                    return content.text
        return self.output_text or None
