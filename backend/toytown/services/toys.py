"""Toy registration and persistence.

Registration stores the photo under `images_dir/toys/`, asks the vision model
for a personality (strict JSON), and writes the Toy to Cloud Firestore.
A personality that does not parse falls back to DEFAULT_PERSONALITY instead
of failing the registration.
"""
import asyncio
import logging
import mimetypes
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from google.cloud import firestore
from pydantic import ValidationError

from toytown.models.provider import ContentBlock, ModelMessage
from toytown.models.toy import DEFAULT_PERSONALITY, Personality, Toy
from toytown.services.image_codec import encode_to_data_url

if TYPE_CHECKING:
    from toytown.services.chat_model import ChatModelClient

logger = logging.getLogger(__name__)

TOYS_COLLECTION = "toys"
TRIGGERS_COLLECTION = "cleanup_triggers"
DEFAULT_TOY_NAME = "ななし"

VISION_PROMPT = "次の画像は子どものおもちゃです。性格traits(3-5個)と、しゃべり口調speaking_styleをJSONで返して。日本語。"
VISION_FORMAT_INSTRUCTION = '出力は {"traits":[],"speaking_style":"...","favorite_topics":[]} のみ。説明不要。'


class ToyRepository:
    """Firestore-backed storage for toys and cleanup triggers."""

    def __init__(self, db: Optional[Any] = None, project_id: Optional[str] = None) -> None:
        self._db = db if db is not None else firestore.Client(project=project_id)

    def add(self, toy: Toy) -> Toy:
        self._db.collection(TOYS_COLLECTION).document(toy.id).set(toy.model_dump())
        return toy

    def list_toys(self) -> list[Toy]:
        """Return all toys, oldest first."""
        docs = self._db.collection(TOYS_COLLECTION).order_by("created_at").stream()
        return [Toy.model_validate(doc.to_dict()) for doc in docs]

    def record_cleanup_trigger(self) -> None:
        """Insert the signal the realtime listener uses to start round zero."""
        self._db.collection(TRIGGERS_COLLECTION).add(
            {"created_at": datetime.now(timezone.utc).isoformat()}
        )


def parse_personality(raw: Optional[str]) -> Personality:
    """Parse the vision model's JSON, or return the default personality."""
    if not raw:
        return DEFAULT_PERSONALITY.model_copy(deep=True)
    try:
        return Personality.model_validate_json(raw)
    except ValidationError:
        logger.warning("personality-parse-fallback: %.200s", raw)
        return DEFAULT_PERSONALITY.model_copy(deep=True)


class ToyRegistrationService:
    """Creates Toy records from an uploaded photo and a display name."""

    def __init__(
        self,
        chat_model: "ChatModelClient",
        repository: ToyRepository,
        images_dir: Path,
        public_base_url: str = "",
    ) -> None:
        self.chat_model = chat_model
        self.repository = repository
        self.images_dir = Path(images_dir)
        self.public_base_url = public_base_url.rstrip("/")

    async def register(self, name: str, image_bytes: bytes, content_type: Optional[str]) -> Toy:
        """Register a toy.

        Args:
            name: Display name (blank becomes DEFAULT_TOY_NAME).
            image_bytes: Raw photo bytes.
            content_type: Declared MIME type of the photo.

        Returns:
            The persisted Toy.

        Raises:
            ProviderError / TransportError / ConfigError: The vision call failed.
        """
        mime_type = content_type or "image/jpeg"
        image_url = await asyncio.to_thread(self._save_photo, image_bytes, mime_type)

        raw = await self.chat_model.invoke(
            [
                ModelMessage(
                    role="user",
                    content=[
                        ContentBlock.of_text(VISION_PROMPT),
                        ContentBlock.of_image(encode_to_data_url(mime_type, image_bytes)),
                    ],
                ),
                ModelMessage(role="system", content=[ContentBlock.of_text(VISION_FORMAT_INSTRUCTION)]),
            ],
            text_format={"type": "json_object"},
        )

        toy = Toy(
            id=str(uuid.uuid4()),
            name=name.strip() or DEFAULT_TOY_NAME,
            image_url=image_url,
            personality=parse_personality(raw),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        await asyncio.to_thread(self.repository.add, toy)
        logger.info("Registered toy %s (%s)", toy.name, toy.id)
        return toy

    def _save_photo(self, image_bytes: bytes, mime_type: str) -> str:
        """Write the photo to images_dir/toys/ and return its public URL."""
        toys_dir = self.images_dir / "toys"
        toys_dir.mkdir(parents=True, exist_ok=True)
        ext = mimetypes.guess_extension(mime_type) or ".jpg"
        filename = f"{uuid.uuid4()}{ext}"
        (toys_dir / filename).write_bytes(image_bytes)
        return f"{self.public_base_url}/images/toys/{filename}"
