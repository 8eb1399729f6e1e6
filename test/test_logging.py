"""
Tests for structured logging.
"""

import json
import logging

import pytest

from contactbook.config import Settings
from contactbook.main import create_app
from contactbook.shared.database import DatabaseManager
from contactbook.shared.logging import StructuredFormatter, correlation_id_var, setup_logging


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="contactbook.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_extra_fields_are_top_level(self) -> None:
        output = json.loads(StructuredFormatter().format(_record("Contact created", contact_id=7)))

        assert output["message"] == "Contact created"
        assert output["level"] == "INFO"
        assert output["logger"] == "contactbook.test"
        assert output["contact_id"] == 7
        assert "correlation_id" not in output

    def test_correlation_id_included(self) -> None:
        token = correlation_id_var.set("req-42")
        try:
            output = json.loads(StructuredFormatter().format(_record("hello")))
        finally:
            correlation_id_var.reset(token)

        assert output["correlation_id"] == "req-42"

    def test_colliding_extra_key_is_prefixed(self) -> None:
        output = json.loads(StructuredFormatter().format(_record("hello", level="custom")))

        assert output["level"] == "INFO"
        assert output["extra_level"] == "custom"


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        level, handlers = root.level, root.handlers[:]
        yield
        root.setLevel(level)
        root.handlers = handlers

    def test_uses_given_settings(self) -> None:
        setup_logging(Settings(log_level="debug"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    @pytest.mark.asyncio
    async def test_lifespan_uses_app_settings(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"log_level": "WARNING"})
        app = create_app(settings=settings, db=DatabaseManager(settings.database_url, echo=False))

        async with app.router.lifespan_context(app):
            assert logging.getLogger().level == logging.WARNING
