"""Stage observers for the variant pipeline.

Observers are a side channel: the orchestrator reports each stage
transition to them, and nothing they do can change a request's outcome.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol

from variant_studio.core.schemas import PipelineStage

logger = logging.getLogger(__name__)


class PipelineObserver(Protocol):
    """Receives stage transitions for each variant request."""

    def on_stage(
        self, request_id: str, stage: PipelineStage, detail: dict[str, Any]
    ) -> None: ...


class NullObserver:
    """Default observer; ignores everything."""

    def on_stage(
        self, request_id: str, stage: PipelineStage, detail: dict[str, Any]
    ) -> None:
        return None


class LoggingObserver:
    """Logs each transition with the time elapsed since the request started."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger
        self._started: dict[str, float] = {}

    def on_stage(
        self, request_id: str, stage: PipelineStage, detail: dict[str, Any]
    ) -> None:
        now = time.monotonic()
        start = self._started.setdefault(request_id, now)
        elapsed_ms = int((now - start) * 1000)

        level = logging.WARNING if stage == PipelineStage.FAILED else logging.INFO
        self.log.log(
            level,
            "variant %s -> %s (+%dms) %s",
            request_id,
            stage.value,
            elapsed_ms,
            detail,
        )

        if stage in (PipelineStage.SUCCEEDED, PipelineStage.FAILED):
            self._started.pop(request_id, None)


class CompositeObserver:
    """Fans a transition out to several observers."""

    def __init__(self, *observers: PipelineObserver):
        self.observers = list(observers)

    def on_stage(
        self, request_id: str, stage: PipelineStage, detail: dict[str, Any]
    ) -> None:
        for observer in self.observers:
            notify(observer, request_id, stage, detail)


def notify(
    observer: PipelineObserver,
    request_id: str,
    stage: PipelineStage,
    detail: dict[str, Any],
) -> None:
    """Deliver one transition, logging and discarding observer failures."""
    try:
        observer.on_stage(request_id, stage, detail)
    except Exception:
        logger.exception(
            "Observer %s failed on stage %s", type(observer).__name__, stage.value
        )
