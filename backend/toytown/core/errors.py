"""Error taxonomy shared by the provider clients and orchestrators."""
from typing import Optional

# Provider bodies are truncated before they end up in exception messages.
ERROR_BODY_LIMIT = 300


class ToyTownError(Exception):
    """Base class for every error raised by the toytown services."""


class ConfigError(ToyTownError):
    """A required credential or setting is missing."""


class TransportError(ToyTownError):
    """A provider could not be reached at all."""


class ProviderError(ToyTownError):
    """A provider answered with a non-success HTTP status."""

    body_limit = ERROR_BODY_LIMIT

    def __init__(self, provider: str, status_code: Optional[int], body: str = "") -> None:
        self.provider = provider
        self.status_code = status_code
        self.body = body[: self.body_limit]
        super().__init__(f"{provider} API error ({status_code}): {self.body}")


class TransformError(ProviderError):
    """The image transformation request was rejected."""

    body_limit = 800


class NoImageInResponseError(ToyTownError):
    """The provider answered successfully but returned no usable image."""


class MalformedDataUrlError(ToyTownError):
    """A `data:` URL did not match `data:<mime>;base64,<payload>`."""


class FetchError(ToyTownError):
    """Fetching a remote image reference failed."""

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"fetch input image failed: {status_code}")


class JobFailedError(ToyTownError):
    """The fallback generation job ended in `failed` or `canceled`."""


class JobTimeoutError(ToyTownError):
    """The fallback generation job did not finish within the polling budget."""


class RoundLimitError(ToyTownError):
    """An autonomous round was requested after the round ceiling was reached."""
