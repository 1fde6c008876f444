"""
Unit Tests for Logging Configuration

Tests that credentials and student text never reach rendered logs.
"""

from unmute.config.logging_config import _redact_sensitive_data, text_digest


class TestRedaction:
    """Tests for the scrubbing processor."""

    def test_credentials_redacted(self) -> None:
        """Keys containing credential fragments are blanked."""
        event = _redact_sensitive_data(None, "info", {
            "event": "Sink configured",
            "resend_api_key": "re_123",
            "auth_token": "abc",
        })

        assert event["resend_api_key"] == "[REDACTED]"
        assert event["auth_token"] == "[REDACTED]"
        assert event["event"] == "Sink configured"

    def test_message_text_replaced_by_digest(self) -> None:
        """Raw text becomes a digest that still correlates."""
        event = _redact_sensitive_data(None, "info", {"event": "x", "text": "I want to die"})

        assert event["text"] == text_digest("I want to die")
        assert "die" not in str(event)

    def test_nested_values_scrubbed(self) -> None:
        """Dicts and lists are walked."""
        event = _redact_sensitive_data(None, "info", {
            "event": "x",
            "payload": {"content": "help me", "password": "p"},
            "items": [{"text": "hi"}],
        })

        assert event["payload"]["content"]["chars"] == 7
        assert event["payload"]["password"] == "[REDACTED]"
        assert event["items"][0]["text"]["chars"] == 2

    def test_other_keys_untouched(self) -> None:
        """Identifiers and matched terms stay readable."""
        event = _redact_sensitive_data(None, "info", {
            "event": "x",
            "user_id": "u-1",
            "matched_terms": ["want to die"],
        })

        assert event["user_id"] == "u-1"
        assert event["matched_terms"] == ["want to die"]

    def test_digest_is_stable(self) -> None:
        """The same text always gives the same digest."""
        assert text_digest("same") == text_digest("same")
        assert text_digest("same") != text_digest("different")
