"""Toy registration, listing and cleanup-trigger routes."""
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from toytown.core.errors import ConfigError, ToyTownError
from toytown.models.toy import Toy
from toytown.services.toys import ToyRegistrationService, ToyRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["toys"])


def get_registration_service(request: Request) -> ToyRegistrationService:
    svc: ToyRegistrationService | None = getattr(
        request.app.state, "registration_service", None
    )
    if svc is None:
        raise HTTPException(status_code=503, detail="Toy registration not initialized.")
    return svc


def get_toy_repository(request: Request) -> ToyRepository:
    repo: ToyRepository | None = getattr(request.app.state, "toy_repository", None)
    if repo is None:
        raise HTTPException(status_code=503, detail="Toy storage not initialized.")
    return repo


@router.post("/toys", response_model=Toy)
async def register_toy(
    image: UploadFile = File(...),
    name: str = Form(""),
    service: ToyRegistrationService = Depends(get_registration_service),
) -> Toy:
    """Register a toy from an uploaded photo and display name.

    Raises:
        HTTPException 400: Empty image upload.
        HTTPException 502: Vision model call failed.
        HTTPException 503: Vision model not configured.
    """
    data = await image.read()
    if not data:
        raise HTTPException(status_code=400, detail="image required")
    try:
        return await service.register(name, data, image.content_type)
    except ConfigError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ToyTownError as exc:
        logger.error(
            "toy registration failed: %s",
            exc,
            extra={"service": "ToyRouter", "error_type": type(exc).__name__},
        )
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/toys", response_model=list[Toy])
async def list_toys(repo: ToyRepository = Depends(get_toy_repository)) -> list[Toy]:
    """Return all registered toys, oldest first."""
    return repo.list_toys()


@router.post("/trigger")
async def fire_trigger(repo: ToyRepository = Depends(get_toy_repository)) -> dict:
    """Record a cleanup trigger; the realtime listener starts round zero from it."""
    try:
        repo.record_cleanup_trigger()
    except Exception as exc:
        logger.error(
            "cleanup trigger insert failed",
            exc_info=True,
            extra={"service": "ToyRouter", "error_type": type(exc).__name__},
        )
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"ok": True}
