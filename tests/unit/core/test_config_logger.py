"""Tests for settings and logging setup."""

import logging
import uuid

import pytest

from docgov.core.config import Settings, get_settings
from docgov.core.errors import (
    DependencyFailureError,
    InvalidStateError,
    NoEligibleApproversError,
    NotFoundError,
    ValidationError,
)
from docgov.core.logger import configure_from_settings, setup_logger


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DOCGOV_DATABASE_URL", raising=False)
        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite:///./docgov.db"
        assert settings.is_sqlite
        assert settings.recent_activity_limit == 20
        assert settings.log_level == "INFO"

    def test_environment_override(self, monkeypatch):
        """Test settings read DOCGOV_-prefixed variables."""
        monkeypatch.setenv("DOCGOV_DATABASE_URL", "postgresql://db/docgov")
        monkeypatch.setenv("DOCGOV_STORE_BACKEND", "memory")

        settings = Settings(_env_file=None)

        assert settings.database_url == "postgresql://db/docgov"
        assert settings.store_backend == "memory"
        assert not settings.is_sqlite

    def test_memory_roles_from_environment(self, monkeypatch):
        monkeypatch.setenv("DOCGOV_MEMORY_ROLES", '{"1": "admin", "4": "analyst"}')

        settings = Settings(_env_file=None)

        assert settings.memory_roles == {1: "admin", 4: "analyst"}

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestSetupLogger:

    def test_console_logger(self):
        name = f"docgov-test-{uuid.uuid4().hex}"
        logger = setup_logger(name, level="debug")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_no_duplicate_handlers(self):
        name = f"docgov-test-{uuid.uuid4().hex}"
        setup_logger(name)
        logger = setup_logger(name)

        assert len(logger.handlers) == 1

    def test_file_logging(self, tmp_path):
        """Test the rotating file handler writes under log_dir."""
        name = f"docgov-test-{uuid.uuid4().hex}"
        logger = setup_logger(name, log_dir=str(tmp_path), file_logging=True, console_logging=False)
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        assert (tmp_path / f"{name}.log").read_text().strip().endswith("hello")

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            setup_logger(f"docgov-test-{uuid.uuid4().hex}", level="LOUD")

    def test_configure_from_settings(self):
        package_logger = logging.getLogger("docgov")
        saved_level, saved_handlers = package_logger.level, list(package_logger.handlers)
        settings = Settings(_env_file=None, log_level="WARNING")

        try:
            logger = configure_from_settings(settings)

            assert logger is package_logger
            assert logger.level == logging.WARNING
        finally:
            package_logger.setLevel(saved_level)
            package_logger.handlers[:] = saved_handlers


class TestErrors:

    def test_status_codes(self):
        assert NotFoundError("document", 3).status_code == 404
        assert InvalidStateError("x").status_code == 409
        assert ValidationError("x").status_code == 400
        assert DependencyFailureError("x").status_code == 503

    def test_not_found_message(self):
        error = NotFoundError("document", 3)
        assert error.message == "Document 3 not found"
        assert error.resource == "document"
        assert error.resource_id == 3

    def test_no_eligible_approvers_is_invalid_state(self):
        error = NoEligibleApproversError("nobody")
        assert isinstance(error, InvalidStateError)
        assert error.status_code == 409
        assert error.kind == "no_eligible_approvers"
