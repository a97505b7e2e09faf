"""Chat round API router."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from toytown.core.errors import ConfigError, RoundLimitError
from toytown.models.conversation import RoundRequest, RoundResponse
from toytown.services.conversation import ConversationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


def get_conversation_service(request: Request) -> ConversationService:
    """FastAPI dependency: retrieve ConversationService from app.state.

    Returns HTTP 503 if the service was not initialized at startup.
    """
    svc: ConversationService | None = getattr(
        request.app.state, "conversation_service", None
    )
    if svc is None:
        raise HTTPException(status_code=503, detail="Chat service not initialized.")
    return svc


@router.post("/generate", response_model=RoundResponse, response_model_exclude_none=True)
async def generate_round(
    body: RoundRequest,
    service: ConversationService = Depends(get_conversation_service),
) -> RoundResponse:
    """Generate one round of toy replies, or one reply to `user_input`.

    Raises:
        HTTPException 409: Round limit reached for an autonomous round.
        HTTPException 503: Text model not configured.
        HTTPException 500: Any other failure; no partial replies are returned.
        HTTPException 422: Validation error (handled by FastAPI automatically).
    """
    try:
        return await service.generate_round(body)
    except RoundLimitError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ConfigError as exc:
        logger.error("generate_round misconfigured: %s", exc, extra={"error_type": "ConfigError"})
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(
            "generate_round failed",
            exc_info=True,
            extra={"service": "ChatRouter", "error_type": type(exc).__name__},
        )
        raise HTTPException(status_code=500, detail=str(exc)) from exc
