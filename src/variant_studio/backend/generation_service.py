"""Generation service that wraps VariantOrchestrator for web execution."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, AsyncGenerator

from variant_studio.core.schemas import PipelineStage, SourceImage, VariantResult

if TYPE_CHECKING:
    from variant_studio.backend.session_manager import Session
    from variant_studio.core.agents.orchestrator import VariantOrchestrator

logger = logging.getLogger(__name__)


def make_event(event_type: str, **data: Any) -> str:
    """Create SSE-formatted event."""
    payload = {"event": event_type, **data}
    return f"data: {json.dumps(payload, default=str)}\n\n"


class _QueueObserver:
    """Forwards stage transitions into an asyncio queue."""

    def __init__(self, queue: asyncio.Queue):
        self.queue = queue

    def on_stage(
        self, request_id: str, stage: PipelineStage, detail: dict[str, Any]
    ) -> None:
        self.queue.put_nowait((request_id, stage, detail))


class VariantGenerationService:
    """Runs variant requests for a session and appends successes to its gallery."""

    def __init__(self, orchestrator: VariantOrchestrator):
        self.orchestrator = orchestrator

    async def generate(
        self, session: Session, source: SourceImage | None, scene: str | None = ""
    ) -> VariantResult:
        """Run one request to completion."""
        return await self.orchestrator.generate_variant(
            source, scene, gallery=session.gallery
        )

    async def generate_variant_stream(
        self, session: Session, source: SourceImage | None, scene: str | None = ""
    ) -> AsyncGenerator[str, None]:
        """Run one request, yielding an SSE event per stage.

        If the consumer goes away before the request finishes, the request
        is cancelled and nothing is added to the gallery.

        Yields:
            SSE-formatted strings with progress events
        """
        queue: asyncio.Queue = asyncio.Queue()
        cancel_event = asyncio.Event()

        task = asyncio.create_task(
            self.orchestrator.generate_variant(
                source,
                scene,
                cancel_event=cancel_event,
                observer=_QueueObserver(queue),
                gallery=session.gallery,
            )
        )
        task.add_done_callback(lambda _: queue.put_nowait(None))

        try:
            while True:
                item = await queue.get()
                if item is None:
                    break
                request_id, stage, detail = item
                if stage in (PipelineStage.SUCCEEDED, PipelineStage.FAILED):
                    continue
                yield make_event(
                    "stage", request_id=request_id, stage=stage.value, **detail
                )

            result = task.result()
            if result.variant is not None:
                yield make_event(
                    "variant_complete",
                    request_id=result.request_id,
                    index=session.gallery.index_of(result.variant.variant_id),
                    variant_id=result.variant.variant_id,
                    image_url=result.variant.image_url,
                )
            else:
                yield make_event(
                    "variant_error",
                    request_id=result.request_id,
                    **result.failure.model_dump(mode="json"),
                )
        finally:
            if not task.done():
                logger.info("Stream consumer left; cancelling variant request")
                cancel_event.set()
                await asyncio.gather(task, return_exceptions=True)

        yield "data: [DONE]\n\n"
