"""Tests for toy, chat message and round models."""
from typing import Callable

import pytest
from pydantic import ValidationError

from toytown.models.conversation import MAX_ROUNDS, ChatMessage, RoundRequest, RoundResponse
from toytown.models.toy import DEFAULT_PERSONALITY, Personality, Toy


class TestPersonality:
    def test_favorite_topics_optional(self) -> None:
        p = Personality(traits=["げんき"], speaking_style="元気な口調")
        assert p.favorite_topics is None

    def test_parses_vision_json(self) -> None:
        p = Personality.model_validate_json(
            '{"traits":["やさしい"],"speaking_style":"ですます口調","favorite_topics":["おやつ"]}'
        )
        assert p.traits == ["やさしい"]
        assert p.favorite_topics == ["おやつ"]

    def test_default_personality(self) -> None:
        assert DEFAULT_PERSONALITY.traits == ["やさしい", "あかるい"]
        assert DEFAULT_PERSONALITY.speaking_style == "ですます口調"


class TestToy:
    def test_persona_line(self, make_toy: Callable[..., Toy]) -> None:
        line = make_toy(name="ロボくん").persona_line()
        assert line == "あなたは ロボくん。口調: のんびり口調。性格: やさしい、ねぼすけ"

    def test_persona_line_without_traits(self) -> None:
        toy = Toy(id="t", name="ぬい", image_url="u", personality=Personality(speaking_style="s"))
        assert toy.persona_line().endswith("性格: ")


class TestChatMessage:
    @pytest.mark.parametrize("role", ["system", "user", "assistant", "toy"])
    def test_accepts_known_roles(self, role: str) -> None:
        assert ChatMessage(role=role, content="hi").role == role

    def test_rejects_unknown_role(self) -> None:
        with pytest.raises(ValidationError):
            ChatMessage(role="narrator", content="hi")

    def test_optional_fields_default_none(self) -> None:
        msg = ChatMessage(role="toy", content="やあ")
        assert msg.name is None
        assert msg.toy_id is None
        assert msg.image_data_url is None


class TestRoundRequest:
    def test_requires_at_least_one_toy(self) -> None:
        with pytest.raises(ValidationError):
            RoundRequest(toys=[])

    def test_defaults(self, make_toy: Callable[..., Toy]) -> None:
        req = RoundRequest(toys=[make_toy()])
        assert req.history == []
        assert req.round == 0
        assert req.user_input is None
        assert req.first_round_image is None

    def test_negative_round_rejected(self, make_toy: Callable[..., Toy]) -> None:
        with pytest.raises(ValidationError):
            RoundRequest(toys=[make_toy()], round=-1)

    def test_round_may_reach_ceiling(self, make_toy: Callable[..., Toy]) -> None:
        """The ceiling is enforced by the service, not the model."""
        assert RoundRequest(toys=[make_toy()], round=MAX_ROUNDS).round == MAX_ROUNDS


def test_max_rounds_is_five() -> None:
    assert MAX_ROUNDS == 5


def test_round_response_shape() -> None:
    resp = RoundResponse(replies=[ChatMessage(role="toy", content="a")], round=1)
    assert resp.model_dump()["round"] == 1
