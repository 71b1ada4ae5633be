"""
Unit Tests for Logging Configuration
Tests loguru setup and routing of standard library records
"""

import logging

import pytest
from loguru import logger

from src.core.config import SubmissionSettings
from src.services.factory import build_services
from src.utils import logging as logging_utils
from src.utils.logging import InterceptHandler, setup_logging, setup_logging_from_settings


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    """Each test starts unconfigured and leaves the root logger as it found it."""
    monkeypatch.setattr(logging_utils, "_configured", False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestSetupLogging:
    """Test loguru sink configuration"""

    def test_stdlib_records_reach_loguru(self):
        setup_logging(level="DEBUG")
        messages = []
        sink_id = logger.add(messages.append, format="{extra[name]} {message}")
        try:
            logging.getLogger("src.services.edi.x12_837_generator").warning(
                "Billing NPI failed check digit"
            )
        finally:
            logger.remove(sink_id)

        assert "src.services.edi.x12_837_generator Billing NPI failed check digit" in [
            m.strip() for m in messages
        ]

    def test_intercept_installed_once(self):
        setup_logging()
        setup_logging(level="WARNING")

        handlers = [h for h in logging.getLogger().handlers if isinstance(h, InterceptHandler)]
        assert len(handlers) == 1
        assert logging.getLogger().level == logging.WARNING
        assert logging_utils.is_logging_configured()

    def test_from_settings_runs_once(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging_utils, "setup_logging", lambda **kw: calls.append(kw))
        monkeypatch.setattr(logging_utils, "_configured", True)

        setup_logging_from_settings(SubmissionSettings(_env_file=None))

        assert calls == []


@pytest.mark.unit
class TestServiceFactoryLogging:
    """build_services installs logging from settings"""

    @pytest.mark.asyncio
    async def test_build_services_configures_logging(
        self, monkeypatch, data_provider, session_factory, transport
    ):
        calls = []
        monkeypatch.setattr(logging_utils, "setup_logging", lambda **kw: calls.append(kw))
        settings = SubmissionSettings(_env_file=None, LOG_LEVEL="DEBUG", LOG_JSON=True)

        build_services(
            data_provider, session_factory=session_factory, transport=transport, settings=settings
        )

        assert calls == [{"level": "DEBUG", "log_file": None, "json_logs": True}]

    @pytest.mark.asyncio
    async def test_logging_setup_can_be_skipped(
        self, monkeypatch, data_provider, session_factory, transport
    ):
        calls = []
        monkeypatch.setattr(logging_utils, "setup_logging", lambda **kw: calls.append(kw))

        build_services(
            data_provider,
            session_factory=session_factory,
            transport=transport,
            settings=SubmissionSettings(_env_file=None),
            configure_logging=False,
        )

        assert calls == []
