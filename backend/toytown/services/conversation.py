"""ConversationService: orchestrates one round of toy chat, or one reply to the user."""
from typing import TYPE_CHECKING, Optional

from toytown.core.errors import ConfigError, RoundLimitError
from toytown.core.logging import setup_logging
from toytown.models.conversation import MAX_ROUNDS, ChatMessage, RoundRequest, RoundResponse
from toytown.models.provider import ContentBlock, ModelMessage
from toytown.models.toy import Toy

if TYPE_CHECKING:
    from toytown.services.chat_model import ChatModelClient
    from toytown.services.image import ImageGenerationService
    from toytown.services.image_transform import ImageTransformService

logger = setup_logging("conversation")

SYSTEM_PROMPT = "あなたは子どものおもちゃ。各おもちゃは自分のキャラを守って短い発言。1発言は40字以内。"

REPRESENTATIVE_IMAGE_INTRO = "次の画像はあなた（おもちゃ）の姿です。"
REPRESENTATIVE_INSTRUCTION = "最初のラリーでは「おもちゃタウンで遊ぶ自分」を想像して、ワクワク感のある一言を。"
ORDINARY_INSTRUCTION = "短くチャットの文脈に沿った一言を。"

USER_REPLY_FALLBACK = "うんうん！"
REPRESENTATIVE_FALLBACK = "おもちゃタウンであそぼう！"
ORDINARY_FALLBACK = "ピカピカでうれしい！"

SCENE_PROMPT = (
    "おもちゃタウンで遊んでいるおもちゃの様子。"
    "玩具の見た目は入力画像を忠実に維持。"
    "背景はカラフルで活気のある街並み。"
    "光は明るくポップ、広告風。"
    "正方形で高精細。"
)


def to_model_history(history: list[ChatMessage]) -> list[ModelMessage]:
    """Map chat history onto model messages (user stays user, everyone else is assistant)."""
    return [
        ModelMessage(
            role="user" if m.role == "user" else "assistant",
            content=[ContentBlock.of_text(f"【{m.name}】{m.content}" if m.name else m.content)],
        )
        for m in history
    ]


class ConversationService:
    """Orchestrates the replies for one round.

    Modes:
    - user_input present: exactly one reply from the first toy.
    - otherwise: one reply per toy in roster order. On round zero the
      representative toy also sees its photo and gets a transformed image.

    The service holds no round state; the caller passes `round` in and
    stores the returned value. Text failures fall back to canned lines and
    image failures leave the image out, so every toy always answers.
    """

    def __init__(
        self,
        chat_model: "ChatModelClient",
        image_service: "ImageGenerationService",
        transform_service: "ImageTransformService",
    ) -> None:
        self.chat_model = chat_model
        self.image_service = image_service
        self.transform_service = transform_service

    async def generate_round(self, request: RoundRequest) -> RoundResponse:
        """Generate the replies for one round, or a single reply to the user.

        Raises:
            RoundLimitError: Autonomous round requested at or past MAX_ROUNDS.
            ConfigError: The text model is not configured.
        """
        base = [self._system_message(), *to_model_history(request.history)]

        if request.user_input:
            reply = await self._reply_to_user(request.toys[0], base, request.user_input)
            return RoundResponse(replies=[reply], round=request.round)

        if request.round >= MAX_ROUNDS:
            raise RoundLimitError(f"Round limit reached ({request.round}/{MAX_ROUNDS})")

        replies: list[ChatMessage] = []
        for toy in request.toys:
            representative_image = self._representative_image(request, toy)
            replies.append(await self._toy_turn(toy, base, representative_image))

        logger.info("round %d: %d replies", request.round, len(replies))
        return RoundResponse(replies=replies, round=request.round + 1)

    @staticmethod
    def _system_message() -> ModelMessage:
        return ModelMessage(role="system", content=[ContentBlock.of_text(SYSTEM_PROMPT)])

    @staticmethod
    def _representative_image(request: RoundRequest, toy: Toy) -> Optional[str]:
        if (
            request.round == 0
            and request.first_round_image
            and request.first_toy_id
            and toy.id == request.first_toy_id
        ):
            return request.first_round_image
        return None

    async def _reply_to_user(self, toy: Toy, base: list[ModelMessage], user_input: str) -> ChatMessage:
        prompt = [
            *base,
            ModelMessage(
                role="user",
                content=[
                    ContentBlock.of_text(f"ユーザー: {user_input}"),
                    ContentBlock.of_text(toy.persona_line()),
                ],
            ),
        ]
        text = await self._generate_text(prompt, USER_REPLY_FALLBACK, toy)
        return ChatMessage(role="toy", name=toy.name, content=text, toy_id=toy.id)

    async def _toy_turn(
        self,
        toy: Toy,
        base: list[ModelMessage],
        representative_image: Optional[str],
    ) -> ChatMessage:
        is_representative = representative_image is not None
        content = [
            ContentBlock.of_text(toy.persona_line()),
            ContentBlock.of_text(REPRESENTATIVE_INSTRUCTION if is_representative else ORDINARY_INSTRUCTION),
        ]
        if representative_image is not None:
            content = [
                ContentBlock.of_text(REPRESENTATIVE_IMAGE_INTRO),
                ContentBlock.of_image(representative_image),
                *content,
            ]

        fallback = REPRESENTATIVE_FALLBACK if is_representative else ORDINARY_FALLBACK
        text = await self._generate_text(
            [*base, ModelMessage(role="user", content=content)], fallback, toy
        )

        image_data_url: Optional[str] = None
        if representative_image is not None:
            image_data_url = await self._render_scene(toy, representative_image)

        return ChatMessage(
            role="toy",
            name=toy.name,
            content=text,
            toy_id=toy.id,
            image_data_url=image_data_url,
        )

    async def _generate_text(self, prompt: list[ModelMessage], fallback: str, toy: Toy) -> str:
        try:
            text = await self.chat_model.invoke(prompt)
        except ConfigError:
            raise
        except Exception as exc:
            logger.warning(
                "Text generation failed for %s, using fallback line: %s",
                toy.name,
                exc,
                extra={"toy_id": toy.id, "error_type": type(exc).__name__},
            )
            return fallback
        return text.strip() if text and text.strip() else fallback

    async def _render_scene(self, toy: Toy, source_image: str) -> Optional[str]:
        """Best-effort scene image for the representative toy.

        Uses the transform model when configured, otherwise text-to-image.
        Returns a data URL or None.
        """
        try:
            if self.transform_service.is_configured:
                image = await self.transform_service.transform_image(source_image, SCENE_PROMPT)
            else:
                image = await self.image_service.generate_image(f"{SCENE_PROMPT} 主役のおもちゃ: {toy.name}")
        except Exception as exc:
            logger.warning(
                "image transform failed: %s",
                exc,
                extra={"toy_id": toy.id, "error_type": type(exc).__name__},
            )
            return None
        return image.to_data_url()
