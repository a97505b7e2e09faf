"""Tests for image data models."""
import pytest
from pydantic import ValidationError

from toytown.core.errors import MalformedDataUrlError
from toytown.models.image import EncodedImage, ImagesResult, PredictionJob
from toytown.models.provider import ResponsesResult


class TestEncodedImage:
    def test_to_data_url(self) -> None:
        img = EncodedImage(mime_type="image/jpeg", data="QUJD")
        assert img.to_data_url() == "data:image/jpeg;base64,QUJD"

    def test_mime_defaults_to_png(self) -> None:
        assert EncodedImage(data="QUJD").mime_type == "image/png"

    def test_from_data_url(self) -> None:
        img = EncodedImage.from_data_url("data:image/webp;base64,QUJD")
        assert img == EncodedImage(mime_type="image/webp", data="QUJD")
        assert img.to_data_url() == "data:image/webp;base64,QUJD"

    @pytest.mark.parametrize("source", ["data:image/png,QUJD", "https://cdn/x.png", "data:image/png;base64,***"])
    def test_from_data_url_malformed(self, source: str) -> None:
        with pytest.raises(MalformedDataUrlError):
            EncodedImage.from_data_url(source)


class TestPredictionJob:
    @pytest.mark.parametrize("status", ["succeeded", "failed", "canceled"])
    def test_terminal_statuses(self, status: str) -> None:
        assert PredictionJob(id="j", status=status).is_terminal

    @pytest.mark.parametrize("status", ["starting", "processing"])
    def test_non_terminal_statuses(self, status: str) -> None:
        assert not PredictionJob(id="j", status=status).is_terminal

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PredictionJob(id="j", status="queued")

    def test_scalar_output(self) -> None:
        job = PredictionJob(id="j", status="succeeded", output="https://cdn/x.png")
        assert job.output_reference() == "https://cdn/x.png"

    def test_sequence_output_takes_first_string(self) -> None:
        job = PredictionJob(id="j", status="succeeded", output=[None, "https://cdn/a.png", "https://cdn/b.png"])
        assert job.output_reference() == "https://cdn/a.png"

    def test_missing_output(self) -> None:
        assert PredictionJob(id="j", status="succeeded").output_reference() is None

    def test_structured_error_detail(self) -> None:
        job = PredictionJob(id="j", status="failed", error={"code": "nsfw"})
        assert job.error_detail() == '{"code": "nsfw"}'

    def test_string_error_detail(self) -> None:
        assert PredictionJob(id="j", status="failed", error="boom").error_detail() == "boom"


class TestImagesResult:
    def test_empty_body(self) -> None:
        assert ImagesResult.model_validate({}).data == []

    def test_ignores_unknown_fields(self) -> None:
        result = ImagesResult.model_validate({"created": 1, "data": [{"b64_json": "QQ=="}]})
        assert result.data[0].b64_json == "QQ=="
        assert result.data[0].url is None


class TestResponsesResult:
    def test_first_text_from_output(self) -> None:
        result = ResponsesResult.model_validate(
            {"output": [{"content": [{"text": "こんにちは"}, {"text": "second"}]}]}
        )
        assert result.first_text() == "こんにちは"

    def test_skips_items_without_text(self) -> None:
        result = ResponsesResult.model_validate(
            {"output": [{"type": "reasoning"}, {"content": [{"type": "refusal"}, {"text": "ok"}]}]}
        )
        assert result.first_text() == "ok"

    def test_falls_back_to_output_text(self) -> None:
        assert ResponsesResult.model_validate({"output_text": "fallback"}).first_text() == "fallback"

    def test_none_when_no_text(self) -> None:
        assert ResponsesResult.model_validate({"output": []}).first_text() is None
