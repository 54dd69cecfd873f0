"""Unit tests for structured logging helpers."""

from semantix.observability.logging import add_app_context, get_logger


class TestLogging:
    """Test logging helpers."""

    def test_app_context_added(self):
        """Test every event is tagged with the application name."""
        event = add_app_context(None, "info", {"event": "x"})
        assert event == {"event": "x", "app": "semantix"}

    def test_events_are_structured(self, log_output):
        """Test key-value pairs are kept on the event."""
        get_logger("semantix.test").info("collection_created", collection="lore")

        assert log_output == [
            {"event": "collection_created", "collection": "lore", "log_level": "info"}
        ]
