"""Standalone text-to-image route."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from toytown.core.errors import ConfigError, ToyTownError
from toytown.models.image import ImageGenerationRequest, ImageGenerationResponse
from toytown.services.image import ImageGenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images", tags=["images"])


def get_image_service(request: Request) -> ImageGenerationService:
    svc: ImageGenerationService | None = getattr(request.app.state, "image_service", None)
    if svc is None:
        raise HTTPException(status_code=503, detail="Image service not initialized.")
    return svc


@router.post("/generate", response_model=ImageGenerationResponse)
async def generate_image(
    body: ImageGenerationRequest,
    service: ImageGenerationService = Depends(get_image_service),
) -> ImageGenerationResponse:
    """Generate a square image for `prompt` and return it as a data URL."""
    try:
        image = await service.generate_image(body.prompt)
    except ConfigError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ToyTownError as exc:
        logger.error(
            "image generation failed: %s",
            exc,
            extra={"service": "ImageRouter", "error_type": type(exc).__name__},
        )
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return ImageGenerationResponse(image_data_url=image.to_data_url())
