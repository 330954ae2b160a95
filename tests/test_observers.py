"""Tests for pipeline stage observers."""

import logging

from variant_studio.core.observers import (
    CompositeObserver,
    LoggingObserver,
    NullObserver,
    notify,
)
from variant_studio.core.schemas import PipelineStage


class Recorder:
    def __init__(self):
        self.stages = []

    def on_stage(self, request_id, stage, detail):
        self.stages.append(stage)


class Broken:
    def on_stage(self, request_id, stage, detail):
        raise ValueError("boom")


def test_notify_swallows_observer_errors(caplog):
    with caplog.at_level(logging.ERROR, logger="variant_studio.core.observers"):
        notify(Broken(), "req-1", PipelineStage.ANALYZING, {})

    assert "Broken failed on stage analyzing" in caplog.text


def test_composite_keeps_going_after_a_broken_observer():
    recorder = Recorder()
    composite = CompositeObserver(Broken(), recorder)

    composite.on_stage("req-1", PipelineStage.GENERATING, {})

    assert recorder.stages == [PipelineStage.GENERATING]


def test_null_observer_accepts_everything():
    assert NullObserver().on_stage("req-1", PipelineStage.IDLE, {}) is None


def test_logging_observer_levels(caplog):
    observer = LoggingObserver()

    with caplog.at_level(logging.INFO, logger="variant_studio.core.observers"):
        observer.on_stage("req-1", PipelineStage.NORMALIZING, {})
        observer.on_stage("req-1", PipelineStage.FAILED, {"kind": "decode"})

    normalizing, failed = caplog.records
    assert normalizing.levelno == logging.INFO
    assert "req-1 -> normalizing" in normalizing.getMessage()
    assert failed.levelno == logging.WARNING
    assert "decode" in failed.getMessage()
    assert observer._started == {}
