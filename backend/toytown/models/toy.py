"""Toy and personality data models."""
from typing import Optional

from pydantic import BaseModel, Field


class Personality(BaseModel):
    """Persona generated from the toy's photo at registration time."""

    traits: list[str] = Field(default_factory=list)
    speaking_style: str = ""
    favorite_topics: Optional[list[str]] = None


DEFAULT_PERSONALITY = Personality(
    traits=["やさしい", "あかるい"],
    speaking_style="ですます口調",
    favorite_topics=[],
)


class Toy(BaseModel):
    """A registered toy. Read-only to the round orchestration."""

    id: str
    name: str
    image_url: str
    personality: Personality
    voice_style: Optional[str] = None
    created_at: str = ""

    def persona_line(self) -> str:
        """One-line persona prompt: name, speaking style and traits."""
        traits = "、".join(self.personality.traits or [])
        return f"あなたは {self.name}。口調: {self.personality.speaking_style}。性格: {traits}"
