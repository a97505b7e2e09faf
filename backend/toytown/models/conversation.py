"""Chat message and round request/response models."""
from typing import Literal, Optional

from pydantic import BaseModel, Field

from toytown.models.toy import Toy

# Autonomous toy-to-toy rounds stop once the caller's counter reaches this value.
MAX_ROUNDS = 5

Role = Literal["system", "user", "assistant", "toy"]


class ChatMessage(BaseModel):
    """One entry of the append-only chat history, or one generated reply."""

    role: Role
    name: Optional[str] = None
    content: str
    toy_id: Optional[str] = None
    image_data_url: Optional[str] = None


class RoundRequest(BaseModel):
    """Request body for generating a round, or a single reply to the user.

    `round` is owned by the caller; `first_round_image` / `first_toy_id` are
    only honoured on round zero.
    """

    toys: list[Toy] = Field(..., min_length=1)
    history: list[ChatMessage] = Field(default_factory=list)
    round: int = Field(0, ge=0)
    user_input: Optional[str] = Field(None, max_length=2000)
    first_round_image: Optional[str] = None
    first_toy_id: Optional[str] = None


class RoundResponse(BaseModel):
    """Replies for one round plus the counter value the caller should store next."""

    replies: list[ChatMessage]
    round: int
