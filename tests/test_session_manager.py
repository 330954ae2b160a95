"""Tests for in-memory session management."""

from datetime import datetime, timedelta

from variant_studio.backend.session_manager import SessionManager


def test_create_and_get_session():
    manager = SessionManager()

    session = manager.create_session()

    assert manager.get_session(session.session_id) is session
    assert len(session.gallery) == 0
    assert len(manager) == 1


def test_sessions_have_separate_galleries():
    manager = SessionManager()

    first = manager.create_session()
    second = manager.create_session()

    assert first.session_id != second.session_id
    assert first.gallery is not second.gallery


def test_get_unknown_session_returns_none():
    assert SessionManager().get_session("nope") is None


def test_cleanup_session():
    manager = SessionManager()
    session = manager.create_session()

    assert manager.cleanup_session(session.session_id) is True
    assert manager.cleanup_session(session.session_id) is False
    assert manager.get_session(session.session_id) is None


def test_cleanup_old_sessions_keeps_recent_ones():
    manager = SessionManager()
    old = manager.create_session()
    recent = manager.create_session()
    old.created_at = datetime.now() - timedelta(hours=30)

    removed = manager.cleanup_old_sessions(max_age_hours=24)

    assert removed == 1
    assert manager.get_session(old.session_id) is None
    assert manager.get_session(recent.session_id) is recent
