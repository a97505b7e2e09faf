"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from toytown.core.config import get_settings
from toytown.core.logging import setup_logging

# Setup logging
logger = setup_logging("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize services at startup, close the shared HTTP client at shutdown."""
    from toytown.services.chat_model import ChatModelClient
    from toytown.services.conversation import ConversationService
    from toytown.services.image import ImageGenerationService
    from toytown.services.image_transform import ImageTransformService

    settings = get_settings()
    http = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    chat_model = ChatModelClient(
        http=http,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        default_model=settings.openai_model,
    )
    image_service = ImageGenerationService(
        http=http,
        openai_api_key=settings.openai_api_key,
        openai_base_url=settings.openai_base_url,
        image_model=settings.image_model,
        replicate_api_token=settings.replicate_api_token,
        replicate_base_url=settings.replicate_base_url,
        replicate_model=settings.replicate_model,
        provider=settings.image_provider,
    )
    transform_service = ImageTransformService(
        http=http,
        api_key=settings.gemini_api_key,
        model=settings.gemini_image_model,
    )
    app.state.image_service = image_service
    app.state.conversation_service = ConversationService(
        chat_model=chat_model,
        image_service=image_service,
        transform_service=transform_service,
    )

    try:
        from toytown.services.toys import ToyRegistrationService, ToyRepository

        repository = ToyRepository(project_id=settings.gcp_project_id)
        app.state.toy_repository = repository
        app.state.registration_service = ToyRegistrationService(
            chat_model=chat_model,
            repository=repository,
            images_dir=settings.images_dir,
            public_base_url=settings.public_base_url,
        )
        logger.info("Services initialized successfully")
    except Exception as exc:
        logger.error(
            "Firestore initialization failed, toy storage unavailable",
            exc_info=True,
            extra={"service": "main", "error_type": type(exc).__name__},
        )
        # Chat keeps working; /api/toys and /api/trigger return 503 until fixed

    yield
    await http.aclose()


# Create FastAPI app
app = FastAPI(
    title="Toy Town Chat",
    description="Toy registration and multi-toy chat rounds backed by hosted AI models",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[f"http://localhost:{settings.frontend_port}"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
from toytown.api.conversation import router as conversation_router  # noqa: E402
from toytown.api.images import router as images_router  # noqa: E402
from toytown.api.toys import router as toys_router  # noqa: E402

app.include_router(conversation_router)
app.include_router(toys_router)
app.include_router(images_router)

# Serve stored toy photos from images_dir at /images
settings.images_dir.mkdir(parents=True, exist_ok=True)
app.mount("/images", StaticFiles(directory=str(settings.images_dir)), name="images")


@app.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint.

    Always returns HTTP 200; check `services` for actual status.
    """
    state = request.app.state
    chat_ok = getattr(state, "conversation_service", None) is not None
    storage_ok = getattr(state, "toy_repository", None) is not None

    logger.info("Health check requested")
    return {
        "status": "ok",
        "version": app.version,
        "services": {
            "chat": "ok" if chat_ok else "unavailable",
            "toy_storage": "ok" if storage_ok else "unavailable",
        },
    }
