"""ChatModelClient: thin wrapper around the OpenAI Responses API."""
import logging
import time
from typing import Any, Optional

import httpx

from toytown.core.errors import ConfigError, ProviderError, TransportError
from toytown.models.provider import ModelMessage, ResponsesResult

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "gpt-4o-mini"


class ChatModelClient:
    """Sends role-tagged content blocks to the text model and returns its text.

    Only transport and HTTP failures raise; a successful response without any
    text yields None so callers can pick a context-appropriate fallback.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        default_model: str = DEFAULT_MODEL_ID,
    ) -> None:
        self.http = http
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model

    async def invoke(
        self,
        messages: list[ModelMessage],
        model: Optional[str] = None,
        text_format: Optional[dict[str, Any]] = None,
    ) -> Optional[str]:
        """Call the Responses API once.

        Args:
            messages: Ordered role-tagged messages.
            model: Model id; the configured default when omitted.
            text_format: Optional `text.format` block (e.g. JSON mode).

        Returns:
            The first textual content block, or None if the response has none.

        Raises:
            ConfigError: No API key configured.
            TransportError: The API could not be reached.
            ProviderError: Non-success HTTP status (body truncated) or a body
                that is not a Responses API result.
        """
        if not self.api_key:
            raise ConfigError("OPENAI_API_KEY is not set")

        payload: dict[str, Any] = {
            "model": model or self.default_model,
            "input": [m.model_dump(exclude_none=True) for m in messages],
        }
        if text_format is not None:
            payload["text"] = {"format": text_format}

        _t0 = time.perf_counter()
        try:
            resp = await self.http.post(
                f"{self.base_url}/responses",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.TransportError as exc:
            raise TransportError(f"OpenAI API unreachable: {exc}") from exc

        if not resp.is_success:
            raise ProviderError("OpenAI", resp.status_code, resp.text)

        logger.info("Responses API call: %.2fs (model=%s)", time.perf_counter() - _t0, payload["model"])
        try:
            result = ResponsesResult.model_validate(resp.json())
        except ValueError as exc:
            raise ProviderError("OpenAI", resp.status_code, f"unreadable response body: {exc}") from exc
        return result.first_text()
