"""Orchestrator that runs the product-variant generation pipeline."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, TypeVar

from variant_studio.core.config import (
    ServiceSettings,
    get_jpeg_quality,
    get_max_edge,
    get_output_format,
)
from variant_studio.core.errors import (
    AnalysisError,
    InvalidInputError,
    VariantCancelledError,
    VariantError,
)
from variant_studio.core.image_normalizer import DEFAULT_MAX_EDGE, ImageNormalizer
from variant_studio.core.model_provider import create_openai_client
from variant_studio.core.observers import (
    CompositeObserver,
    LoggingObserver,
    NullObserver,
    PipelineObserver,
    notify,
)
from variant_studio.core.prompts.prompt_templates import (
    DEFAULT_SETTING,
    GENERATION_PROMPT,
)
from variant_studio.core.schemas import (
    ErrorKind,
    GeneratedVariant,
    NormalizedImage,
    PipelineStage,
    SourceImage,
    VariantFailure,
    VariantResult,
)
from variant_studio.core.services import (
    AnalysisService,
    GenerationService,
    OpenAIAnalysisService,
    OpenAIGenerationService,
)

if TYPE_CHECKING:
    from variant_studio.core.gallery import ResultGallery

logger = logging.getLogger(__name__)

T = TypeVar("T")

GENERATED_MIME_TYPE = "image/png"


def compose_generation_prompt(product_description: str, scene: str | None) -> str:
    """Build the generation prompt from the analysis text and the scene.

    An empty or whitespace-only scene selects the default setting phrase;
    any other scene is used verbatim.
    """
    setting = scene if scene and scene.strip() else DEFAULT_SETTING
    return GENERATION_PROMPT.format(
        product_description=product_description,
        setting=setting,
    )


class VariantOrchestrator:
    """Sequences normalize -> analyze -> compose -> generate for one request.

    The orchestrator keeps no state between requests. Every failure is
    returned as a VariantFailure; nothing is retried.
    """

    def __init__(
        self,
        analysis: AnalysisService,
        generation: GenerationService,
        normalizer: ImageNormalizer | None = None,
        max_edge: int = DEFAULT_MAX_EDGE,
        observer: PipelineObserver | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            analysis: Service that describes the product image
            generation: Service that synthesizes the new image
            normalizer: Image normalizer (defaults to canonical JPEG settings)
            max_edge: Longest allowed edge of the normalized image
            observer: Receives stage transitions; never affects results
        """
        self.analysis = analysis
        self.generation = generation
        self.normalizer = normalizer or ImageNormalizer()
        self.max_edge = max_edge
        self.observer = observer or NullObserver()

    async def generate_variant(
        self,
        source: SourceImage | None,
        scene: str | None = "",
        *,
        cancel_event: asyncio.Event | None = None,
        observer: PipelineObserver | None = None,
        gallery: ResultGallery | None = None,
    ) -> VariantResult:
        """Generate one product variant.

        Args:
            source: The uploaded image (None counts as "no image supplied")
            scene: Optional scene description
            cancel_event: When set, the request stops and reports CANCELLED
            observer: Extra observer for this request only
            gallery: Receives the variant if, and only if, the request succeeds

        Returns:
            VariantResult holding either the variant or a structured failure
        """
        request_id = uuid.uuid4().hex[:12]
        active = (
            CompositeObserver(self.observer, observer) if observer else self.observer
        )
        stage = PipelineStage.IDLE
        prompt: str | None = None

        def enter(next_stage: PipelineStage, **detail: Any) -> None:
            nonlocal stage
            stage = next_stage
            notify(active, request_id, stage, detail)

        try:
            enter(PipelineStage.NORMALIZING, has_scene=bool(scene and scene.strip()))
            if source is None:
                raise InvalidInputError("Please upload a product image first")
            normalized: NormalizedImage = await self._run(
                asyncio.to_thread(self.normalizer.normalize, source, self.max_edge),
                cancel_event,
            )

            enter(
                PipelineStage.ANALYZING,
                width=normalized.width,
                height=normalized.height,
            )
            description = await self._run(
                self.analysis.describe(normalized), cancel_event
            )
            if not description or not description.strip():
                raise AnalysisError(
                    "Failed to analyze product image - no description returned"
                )

            enter(PipelineStage.COMPOSING_PROMPT, description_chars=len(description))
            prompt = compose_generation_prompt(description.strip(), scene)

            enter(PipelineStage.GENERATING, prompt=prompt)
            payload = await self._run(self.generation.generate(prompt), cancel_event)

            variant = GeneratedVariant(
                image_url=f"data:{GENERATED_MIME_TYPE};base64,{payload}",
                mime_type=GENERATED_MIME_TYPE,
                prompt=prompt,
            )
        except VariantError as e:
            failure = VariantFailure(
                kind=e.kind,
                message=e.message,
                stage=stage,
                status_code=e.status_code,
            )
            return self._fail(request_id, active, failure, prompt)
        except asyncio.CancelledError:
            # The awaiting task itself was cancelled; report and propagate.
            self._fail(
                request_id,
                active,
                VariantFailure(
                    kind=ErrorKind.CANCELLED,
                    message="Request task cancelled",
                    stage=stage,
                ),
                prompt,
            )
            raise
        except Exception as e:
            logger.exception("Unexpected failure in variant request %s", request_id)
            failure = VariantFailure(
                kind=ErrorKind.INTERNAL,
                message=f"Internal error: {e}",
                stage=stage,
            )
            return self._fail(request_id, active, failure, prompt)

        if gallery is not None:
            gallery.append(variant)

        notify(
            active,
            request_id,
            PipelineStage.SUCCEEDED,
            {"variant_id": variant.variant_id},
        )
        return VariantResult(request_id=request_id, variant=variant, prompt=prompt)

    def _fail(
        self,
        request_id: str,
        observer: PipelineObserver,
        failure: VariantFailure,
        prompt: str | None,
    ) -> VariantResult:
        notify(
            observer,
            request_id,
            PipelineStage.FAILED,
            {
                "kind": failure.kind.value,
                "message": failure.message,
                "stage": failure.stage.value if failure.stage else None,
                "status_code": failure.status_code,
            },
        )
        return VariantResult(request_id=request_id, failure=failure, prompt=prompt)

    @staticmethod
    async def _run(awaitable: Awaitable[T], cancel_event: asyncio.Event | None) -> T:
        """Await one step, abandoning it as soon as cancel_event is set."""
        if cancel_event is None:
            return await awaitable
        if cancel_event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise VariantCancelledError("Request cancelled")

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            return task.result()
        raise VariantCancelledError("Request cancelled")


def build_orchestrator(settings: ServiceSettings) -> VariantOrchestrator:
    """Wire the OpenAI-backed services into an orchestrator using config.yaml."""
    client = create_openai_client(settings)
    return VariantOrchestrator(
        analysis=OpenAIAnalysisService(client, settings),
        generation=OpenAIGenerationService(client, settings),
        normalizer=ImageNormalizer(
            output_format=get_output_format(), jpeg_quality=get_jpeg_quality()
        ),
        max_edge=get_max_edge(),
        observer=LoggingObserver(),
    )
