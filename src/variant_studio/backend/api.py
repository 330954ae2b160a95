"""FastAPI application for the Food Variant Studio web interface."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from variant_studio import __version__
from variant_studio.backend.generation_service import VariantGenerationService
from variant_studio.backend.image_handler import ImageHandler
from variant_studio.backend.schemas import (
    BrainstormRequest,
    ErrorResponse,
    FoodVariantRequest,
    FoodVariantResponse,
    SessionInfo,
    SessionResponse,
    VariantItem,
    VariantResponse,
)
from variant_studio.backend.session_manager import Session, SessionManager
from variant_studio.core.agents import (
    COMMON_INGREDIENTS,
    RecipeBrainstormAgent,
    VariantOrchestrator,
)
from variant_studio.core.agents.orchestrator import build_orchestrator
from variant_studio.core.config import (
    ServiceSettings,
    get_brainstorm_max_retries,
    get_brainstorm_model_id,
    get_session_max_age_hours,
    load_service_settings,
)
from variant_studio.core.errors import BrainstormError, VariantError
from variant_studio.core.image_normalizer import source_from_data_uri
from variant_studio.core.schemas import (
    ErrorKind,
    GeneratedVariant,
    VariantFailure,
    VariantResult,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.DECODE: 422,
    ErrorKind.ANALYSIS: 502,
    ErrorKind.GENERATION: 502,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.CANCELLED: 499,
    ErrorKind.INTERNAL: 500,
}


# ============================================================================
# Helper Functions
# ============================================================================


def get_session_or_404(request: Request, session_id: str) -> Session:
    """Get session or raise 404."""
    session = request.app.state.session_manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def failure_response(failure: VariantFailure) -> JSONResponse:
    """Convert a pipeline failure into an HTTP error response."""
    body = ErrorResponse(
        error=failure.message,
        kind=failure.kind,
        stage=failure.stage,
        status_code=failure.status_code,
    )
    return JSONResponse(
        status_code=ERROR_STATUS.get(failure.kind, 500),
        content=body.model_dump(mode="json"),
    )


def error_response(error: VariantError) -> JSONResponse:
    return failure_response(
        VariantFailure(
            kind=error.kind, message=error.message, status_code=error.status_code
        )
    )


def variant_item(index: int, variant: GeneratedVariant) -> VariantItem:
    return VariantItem(
        index=index,
        variant_id=variant.variant_id,
        image_url=variant.image_url,
        mime_type=variant.mime_type,
        prompt=variant.prompt,
        created_at=variant.created_at,
    )


def variant_response(session: Session, result: VariantResult) -> VariantResponse:
    variant = result.variant
    index = session.gallery.index_of(variant.variant_id)
    return VariantResponse(
        request_id=result.request_id, variant=variant_item(index, variant)
    )


# ============================================================================
# Application Factory
# ============================================================================


def create_app(
    settings: ServiceSettings | None = None,
    orchestrator: VariantOrchestrator | None = None,
    brainstorm_agent: RecipeBrainstormAgent | None = None,
    session_manager: SessionManager | None = None,
) -> FastAPI:
    """Create the API application.

    Service credentials are checked when the application starts, so a
    missing key stops startup with ConfigurationError instead of failing
    the first request.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active_orchestrator = orchestrator
        active_agent = brainstorm_agent
        if active_orchestrator is None or active_agent is None:
            service_settings = settings or load_service_settings()
            if active_orchestrator is None:
                active_orchestrator = build_orchestrator(service_settings)
            if active_agent is None:
                active_agent = RecipeBrainstormAgent(
                    service_settings,
                    model_id=get_brainstorm_model_id(),
                    max_retries=get_brainstorm_max_retries(),
                )

        app.state.generation_service = VariantGenerationService(active_orchestrator)
        app.state.brainstorm_agent = active_agent
        app.state.session_manager = session_manager or SessionManager()
        app.state.image_handler = ImageHandler()
        app.state.default_session = app.state.session_manager.create_session()
        logger.info("Food Variant Studio API ready")
        yield

    app = FastAPI(
        title="Food Variant Studio API",
        description="AI-powered product photography backgrounds and recipe ideas",
        version=__version__,
        lifespan=lifespan,
    )
    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    # ========================================================================
    # Session Endpoints
    # ========================================================================

    @app.post("/sessions", response_model=SessionResponse)
    async def create_session(request: Request):
        """Create a new session."""
        manager: SessionManager = request.app.state.session_manager
        manager.cleanup_old_sessions(get_session_max_age_hours())
        session = manager.create_session()
        return SessionResponse(
            session_id=session.session_id,
            created_at=session.created_at.isoformat(),
        )

    @app.get("/sessions/{session_id}", response_model=SessionInfo)
    async def get_session(request: Request, session_id: str):
        """Get session info."""
        session = get_session_or_404(request, session_id)
        return SessionInfo(
            session_id=session.session_id,
            created_at=session.created_at.isoformat(),
            variant_count=len(session.gallery),
        )

    @app.delete("/sessions/{session_id}")
    async def delete_session(request: Request, session_id: str):
        """Delete a session and its gallery."""
        if request.app.state.session_manager.cleanup_session(session_id):
            return {"status": "deleted"}
        raise HTTPException(status_code=404, detail="Session not found")

    # ========================================================================
    # Variant Endpoints
    # ========================================================================

    @app.post(
        "/sessions/{session_id}/variants",
        response_model=VariantResponse,
        responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    )
    async def generate_variant(
        request: Request,
        session_id: str,
        file: Annotated[UploadFile | None, File()] = None,
        scene_description: Annotated[str, Form()] = "",
    ):
        """Generate a variant from an uploaded image."""
        session = get_session_or_404(request, session_id)
        try:
            source = await request.app.state.image_handler.read_upload(file)
        except VariantError as e:
            return error_response(e)

        service: VariantGenerationService = request.app.state.generation_service
        result = await service.generate(session, source, scene_description)
        if result.failure is not None:
            return failure_response(result.failure)
        return variant_response(session, result)

    @app.post("/sessions/{session_id}/variants_stream")
    async def generate_variant_stream(
        request: Request,
        session_id: str,
        file: Annotated[UploadFile | None, File()] = None,
        scene_description: Annotated[str, Form()] = "",
    ):
        """Generate a variant with streaming stage updates."""
        session = get_session_or_404(request, session_id)
        try:
            source = await request.app.state.image_handler.read_upload(file)
        except VariantError as e:
            return error_response(e)

        service: VariantGenerationService = request.app.state.generation_service
        return StreamingResponse(
            service.generate_variant_stream(session, source, scene_description),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    @app.post(
        "/generate-food-variant",
        response_model=FoodVariantResponse,
        responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    )
    async def generate_food_variant(request: Request, body: FoodVariantRequest):
        """Generate a variant from a data-URI image into the default session."""
        try:
            source = source_from_data_uri(body.image or "")
        except VariantError as e:
            return error_response(e)

        session: Session = request.app.state.default_session
        service: VariantGenerationService = request.app.state.generation_service
        result = await service.generate(session, source, body.sceneDescription)
        if result.failure is not None:
            return failure_response(result.failure)
        return FoodVariantResponse(imageUrl=result.variant.image_url)

    # ========================================================================
    # Gallery Endpoints
    # ========================================================================

    @app.get("/sessions/{session_id}/gallery", response_model=list[VariantItem])
    async def list_gallery(request: Request, session_id: str):
        """List generated variants, oldest first."""
        session = get_session_or_404(request, session_id)
        return [
            variant_item(index, variant)
            for index, variant in enumerate(session.gallery.list())
        ]

    @app.get("/sessions/{session_id}/gallery/{index}/download")
    async def download_variant(request: Request, session_id: str, index: int):
        """Download one generated variant."""
        session = get_session_or_404(request, session_id)
        try:
            variant = session.gallery.get(index)
        except IndexError:
            raise HTTPException(status_code=404, detail="Variant not found")

        suggested = f"food-variant-{index + 1}"
        filename = session.gallery.export_filename(variant, suggested)
        return StreamingResponse(
            session.gallery.export(variant, suggested),
            media_type=variant.mime_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    # ========================================================================
    # Recipe Endpoints
    # ========================================================================

    @app.get("/ingredients")
    async def list_ingredients():
        """Common ingredients offered by the ingredient picker."""
        return {"ingredients": COMMON_INGREDIENTS}

    @app.post("/brainstorm-recipe")
    async def brainstorm_recipe(request: Request, body: BrainstormRequest):
        """Generate one seasonal recipe idea."""
        agent: RecipeBrainstormAgent = request.app.state.brainstorm_agent
        loop = asyncio.get_running_loop()
        try:
            idea = await loop.run_in_executor(
                None, lambda: agent.brainstorm(body.ingredients)
            )
        except BrainstormError as e:
            logger.error("Recipe brainstorm failed: %s", e)
            raise HTTPException(status_code=502, detail=str(e))
        except VariantError as e:
            return error_response(e)
        return {"idea": idea.model_dump(by_alias=True)}

    # ========================================================================
    # Health Check
    # ========================================================================

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Food Variant Studio API",
            "docs": "/docs",
        }


app = create_app()
