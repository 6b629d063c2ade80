"""Tests for autodep.shared.infrastructure.logging"""

import io
import logging

from autodep.shared.infrastructure.logging import configure_logging, get_logger


class TestConfigureLogging:
    """Test structlog wiring."""

    def test_events_reach_configured_stream(self):
        stream = io.StringIO()
        configure_logging(stream=stream, level="INFO")

        get_logger("autodep.tests").info("dependency_discovered", name="chalk")

        output = stream.getvalue()
        assert "dependency_discovered" in output
        assert "chalk" in output

    def test_level_filters_events(self):
        stream = io.StringIO()
        configure_logging(stream=stream, level="WARNING")

        get_logger("autodep.tests").info("quiet_event")

        assert "quiet_event" not in stream.getvalue()
        assert logging.getLogger().level == logging.WARNING
