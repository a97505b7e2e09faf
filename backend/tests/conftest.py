"""Shared test fixtures and configuration."""
from typing import Callable

import httpx
import pytest

from toytown.models.toy import Personality, Toy


@pytest.fixture(autouse=True)
def set_required_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set required environment variables for all tests."""
    monkeypatch.setenv("GCP_PROJECT_ID", "test-project")


@pytest.fixture
def make_toy() -> Callable[..., Toy]:
    def _make(toy_id: str = "toy-a", name: str = "くまちゃん") -> Toy:
        return Toy(
            id=toy_id,
            name=name,
            image_url=f"https://example.com/{toy_id}.png",
            personality=Personality(
                traits=["やさしい", "ねぼすけ"],
                speaking_style="のんびり口調",
                favorite_topics=["はちみつ"],
            ),
        )

    return _make


def mock_http(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
