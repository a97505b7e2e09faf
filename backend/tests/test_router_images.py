"""Tests for the standalone image generation router."""
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import mock_http
from toytown.core.errors import ConfigError, JobTimeoutError
from toytown.models.image import EncodedImage
from toytown.services.image import ImageGenerationService

CDN_URL = "https://cdn.example.com/out.webp"


@pytest.fixture
def mock_service() -> MagicMock:
    svc = MagicMock()
    svc.generate_image = AsyncMock(return_value=EncodedImage(data="QQ=="))
    return svc


def _client_with(monkeypatch: pytest.MonkeyPatch, service: object) -> TestClient:
    from toytown.main import app

    monkeypatch.setattr(app.state, "image_service", service, raising=False)
    return TestClient(app)


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, mock_service: MagicMock) -> TestClient:
    return _client_with(monkeypatch, mock_service)


class TestGenerateImage:
    def test_returns_data_url(self, client: TestClient, mock_service: MagicMock) -> None:
        resp = client.post("/api/images/generate", json={"prompt": "おもちゃタウン"})
        assert resp.json() == {"image_data_url": "data:image/png;base64,QQ=="}
        mock_service.generate_image.assert_awaited_once_with("おもちゃタウン")

    def test_job_timeout_is_502(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.generate_image = AsyncMock(side_effect=JobTimeoutError("slow"))
        assert client.post("/api/images/generate", json={"prompt": "x"}).status_code == 502

    def test_unconfigured_is_503(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.generate_image = AsyncMock(side_effect=ConfigError("REPLICATE_API_TOKEN is not set"))
        assert client.post("/api/images/generate", json={"prompt": "x"}).status_code == 503

    def test_empty_prompt_is_422(self, client: TestClient) -> None:
        assert client.post("/api/images/generate", json={"prompt": ""}).status_code == 422


def test_unreachable_fallback_output_is_502(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url.endswith("/predictions") and request.method == "POST":
            return httpx.Response(201, json={"id": "job-1", "status": "succeeded", "output": CDN_URL})
        if url == CDN_URL:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(500, text="down")

    service = ImageGenerationService(http=mock_http(handler), openai_api_key="sk-test", replicate_api_token="r8-test")
    resp = _client_with(monkeypatch, service).post("/api/images/generate", json={"prompt": "x"})
    assert resp.status_code == 502


def test_returns_503_when_service_missing() -> None:
    from toytown.main import app

    if hasattr(app.state, "image_service"):
        del app.state.image_service
    resp = TestClient(app).post("/api/images/generate", json={"prompt": "x"})
    assert resp.status_code == 503
