"""
Tests for the logging module.
"""

from unittest.mock import MagicMock

import pytest

from coupleswipe.logging import current_session_context, log_duration, session_context


class TestSessionContext:
    """Test session key binding."""

    def test_binds_values(self):
        with session_context(session_id="s-1", user="You", phase="round1"):
            assert current_session_context() == {
                "session_id": "s-1",
                "user": "You",
                "phase": "round1",
            }

        assert current_session_context() == {}

    def test_nested_context_restores_outer(self):
        with session_context(session_id="outer"):
            with session_context(session_id="inner", phase="swap"):
                assert current_session_context() == {"session_id": "inner", "phase": "swap"}

            assert current_session_context() == {"session_id": "outer"}

    def test_none_values_are_skipped(self):
        with session_context(session_id="s-2", user=None):
            assert "user" not in current_session_context()

    def test_unknown_keys_rejected(self):
        with pytest.raises(TypeError, match="tenant"):
            with session_context(tenant="acme"):
                pass

    def test_unbound_after_exception(self):
        with pytest.raises(RuntimeError):
            with session_context(session_id="s-3"):
                raise RuntimeError("boom")

        assert current_session_context() == {}


class TestLogDuration:
    """Test duration logging."""

    def test_logs_event_with_fields(self):
        logger = MagicMock()
        with log_duration(logger, "deck.built", target_size=10) as summary:
            summary["size"] = 7

        logger.info.assert_called_once()
        assert logger.info.call_args.args == ("deck.built",)
        kwargs = logger.info.call_args.kwargs
        assert kwargs["target_size"] == 10
        assert kwargs["size"] == 7
        assert kwargs["duration_ms"] >= 0

    def test_nothing_logged_when_block_raises(self):
        logger = MagicMock()
        with pytest.raises(ValueError):
            with log_duration(logger, "deck.built"):
                raise ValueError("bad page")

        logger.info.assert_not_called()
