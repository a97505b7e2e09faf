"""Image generation service: primary synchronous provider with async-job fallback."""
import asyncio
import logging
from typing import Optional

import httpx

from toytown.core.errors import (
    ConfigError,
    JobFailedError,
    JobTimeoutError,
    ProviderError,
    TransportError,
)
from toytown.models.image import EncodedImage, ImagesResult, PredictionJob
from toytown.services import image_codec

logger = logging.getLogger(__name__)

IMAGE_SIZE = 1024
POLL_INTERVAL_SECONDS = 1.0
MAX_POLL_ATTEMPTS = 40

PROVIDER_OPENAI = "openai"
PROVIDER_REPLICATE = "replicate"


class ImageGenerationService:
    """Turns a text prompt into a single EncodedImage.

    Strategy:
    1. `_try_primary()` calls the OpenAI Images endpoint and returns None on
       any failure or unusable body (never raises).
    2. Only on None, `_run_fallback()` creates a Replicate prediction and polls
       it to a terminal status. Its failures propagate to the caller.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        openai_api_key: str = "",
        openai_base_url: str = "https://api.openai.com/v1",
        image_model: str = "gpt-image-1",
        replicate_api_token: str = "",
        replicate_base_url: str = "https://api.replicate.com/v1",
        replicate_model: str = "black-forest-labs/flux-schnell",
        provider: str = PROVIDER_OPENAI,
    ) -> None:
        self.http = http
        self.openai_api_key = openai_api_key
        self.openai_base_url = openai_base_url.rstrip("/")
        self.image_model = image_model
        self.replicate_api_token = replicate_api_token
        self.replicate_base_url = replicate_base_url.rstrip("/")
        self.replicate_model = replicate_model
        self.provider = provider
        self.poll_interval = POLL_INTERVAL_SECONDS
        self.max_poll_attempts = MAX_POLL_ATTEMPTS

    async def generate_image(self, prompt: str) -> EncodedImage:
        """Generate one square image for `prompt`.

        Raises:
            ConfigError: Fallback needed but no Replicate token configured.
            JobFailedError / JobTimeoutError: Fallback job did not succeed.
            ProviderError / TransportError / FetchError: Fallback HTTP failures.
        """
        if self.provider != PROVIDER_REPLICATE:
            image = await self._try_primary(prompt)
            if image is not None:
                return image
        return await self._run_fallback(prompt)

    async def _try_primary(self, prompt: str) -> Optional[EncodedImage]:
        try:
            result = await self._call_primary_api(prompt)
            if result.data:
                datum = result.data[0]
                if datum.b64_json:
                    return EncodedImage(mime_type="image/png", data=datum.b64_json)
                if datum.url:
                    return await image_codec.fetch_encoded(datum.url, self.http)
            logger.warning(
                "Primary image provider returned no image payload, using fallback",
                extra={"provider": PROVIDER_OPENAI},
            )
        except Exception as exc:
            logger.warning(
                "Primary image provider failed (%s: %s), using fallback",
                type(exc).__name__,
                exc,
                extra={"provider": PROVIDER_OPENAI, "error_type": type(exc).__name__},
            )
        return None

    async def _call_primary_api(self, prompt: str) -> ImagesResult:
        if not self.openai_api_key:
            raise ConfigError("OPENAI_API_KEY is not set")
        try:
            resp = await self.http.post(
                f"{self.openai_base_url}/images/generations",
                json={
                    "model": self.image_model,
                    "prompt": prompt,
                    "size": f"{IMAGE_SIZE}x{IMAGE_SIZE}",
                    "n": 1,
                },
                headers={"Authorization": f"Bearer {self.openai_api_key}"},
            )
        except httpx.TransportError as exc:
            raise TransportError(f"OpenAI Images API unreachable: {exc}") from exc
        if not resp.is_success:
            raise ProviderError("OpenAI Images", resp.status_code, resp.text)
        return ImagesResult.model_validate(resp.json())

    async def _run_fallback(self, prompt: str) -> EncodedImage:
        if not self.replicate_api_token:
            raise ConfigError("REPLICATE_API_TOKEN is not set")

        job = await self._create_job(prompt)
        logger.info("Fallback job created: id=%s status=%s", job.id, job.status)
        if not job.is_terminal:
            job = await self._wait_for_job(job.id)

        if job.status != "succeeded":
            detail = f": {job.error_detail()}" if job.error else ""
            raise JobFailedError(f"Replicate job {job.id} {job.status}{detail}")

        reference = job.output_reference()
        if not reference:
            raise JobFailedError(f"Replicate job {job.id} succeeded without output")
        return await image_codec.fetch_encoded(reference, self.http)

    async def _create_job(self, prompt: str) -> PredictionJob:
        resp = await self._replicate_request(
            "POST",
            "/predictions",
            json={
                "version": self.replicate_model,
                "input": {"prompt": prompt, "width": IMAGE_SIZE, "height": IMAGE_SIZE},
            },
        )
        return _parse_job(resp)

    async def _wait_for_job(self, job_id: str) -> PredictionJob:
        """Poll the job at a fixed cadence until it reaches a terminal status."""
        for attempt in range(self.max_poll_attempts):
            await asyncio.sleep(self.poll_interval)
            resp = await self._replicate_request("GET", f"/predictions/{job_id}")
            job = _parse_job(resp)
            logger.debug("Fallback job %s poll %d: %s", job_id, attempt + 1, job.status)
            if job.is_terminal:
                return job
        raise JobTimeoutError(
            f"Replicate job {job_id} not finished after {self.max_poll_attempts} polls"
        )

    async def _replicate_request(self, method: str, path: str, **kwargs: object) -> httpx.Response:
        try:
            resp = await self.http.request(
                method,
                f"{self.replicate_base_url}{path}",
                headers={"Authorization": f"Bearer {self.replicate_api_token}"},
                **kwargs,  # type: ignore[arg-type]
            )
        except httpx.TransportError as exc:
            raise TransportError(f"Replicate API unreachable: {exc}") from exc
        if not resp.is_success:
            raise ProviderError("Replicate", resp.status_code, resp.text)
        return resp


def _parse_job(resp: httpx.Response) -> PredictionJob:
    try:
        return PredictionJob.model_validate(resp.json())
    except ValueError as exc:
        raise ProviderError("Replicate", resp.status_code, f"unreadable prediction body: {exc}") from exc
