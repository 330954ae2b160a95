"""Tests for the web generation service and its SSE stream."""

import asyncio
import json

import pytest

from variant_studio.backend.generation_service import (
    VariantGenerationService,
    make_event,
)
from variant_studio.backend.session_manager import SessionManager
from variant_studio.core.agents.orchestrator import VariantOrchestrator


def parse_events(chunks):
    events = []
    for chunk in chunks:
        payload = chunk.removeprefix("data: ").strip()
        events.append(payload if payload == "[DONE]" else json.loads(payload))
    return events


@pytest.fixture
def session():
    return SessionManager().create_session()


def test_make_event_formats_sse():
    event = make_event("stage", stage="analyzing", width=10)

    assert event.startswith("data: ")
    assert event.endswith("\n\n")
    assert json.loads(event[6:]) == {"event": "stage", "stage": "analyzing", "width": 10}


@pytest.mark.asyncio
async def test_generate_appends_to_session_gallery(
    analysis, generation, session, image_factory
):
    service = VariantGenerationService(VariantOrchestrator(analysis, generation))

    result = await service.generate(session, image_factory(), "beach")

    assert result.succeeded
    assert session.gallery.list() == [result.variant]


@pytest.mark.asyncio
async def test_stream_reports_stages_then_variant(
    analysis, generation, session, image_factory
):
    service = VariantGenerationService(VariantOrchestrator(analysis, generation))

    chunks = [
        chunk
        async for chunk in service.generate_variant_stream(
            session, image_factory(), "beach"
        )
    ]

    events = parse_events(chunks)
    assert [e["stage"] for e in events if isinstance(e, dict) and e["event"] == "stage"] == [
        "normalizing",
        "analyzing",
        "composing_prompt",
        "generating",
    ]
    complete = events[-2]
    assert complete["event"] == "variant_complete"
    assert complete["index"] == 0
    assert complete["variant_id"] == session.gallery.get(0).variant_id
    assert events[-1] == "[DONE]"


@pytest.mark.asyncio
async def test_stream_reports_failure(
    analysis, generation, session, image_factory, analysis_error
):
    analysis.error = analysis_error
    service = VariantGenerationService(VariantOrchestrator(analysis, generation))

    chunks = [
        chunk
        async for chunk in service.generate_variant_stream(session, image_factory())
    ]

    error = parse_events(chunks)[-2]
    assert error["event"] == "variant_error"
    assert error["kind"] == "analysis"
    assert error["stage"] == "analyzing"
    assert error["status_code"] == 500
    assert len(session.gallery) == 0


@pytest.mark.asyncio
async def test_closing_stream_cancels_request(analysis, session, image_factory):
    class NeverFinishes:
        async def generate(self, prompt):
            await asyncio.sleep(30)

    service = VariantGenerationService(VariantOrchestrator(analysis, NeverFinishes()))
    stream = service.generate_variant_stream(session, image_factory())

    first = await stream.__anext__()
    assert json.loads(first[6:])["stage"] == "normalizing"

    await asyncio.wait_for(stream.aclose(), timeout=5)

    assert len(session.gallery) == 0
