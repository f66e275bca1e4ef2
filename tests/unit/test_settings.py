"""Unit tests for settings, logging setup and the service factory."""

from unittest.mock import patch

import pytest
import structlog

from lemmy_service import create_service
from lemmy_service.collectors.lemmy.collector import LemmyService
from lemmy_service.config.settings import Settings, get_settings
from lemmy_service.core.exceptions import ConfigurationError, PermanentError
from lemmy_service.core.logging import configure_logging
from tests.factories import make_settings


@pytest.fixture
def clean_env(monkeypatch):
    """Environment without any LEMMY_ variables and a fresh settings cache."""
    for key in (
        "LEMMY_DEFAULT_INSTANCE",
        "LEMMY_KBIN_DEFAULT_INSTANCE",
        "LEMMY_READ_LIMITED_INSTANCE",
        "LEMMY_FRONTEND_URL",
        "LOG_LEVEL",
        "LOG_JSON",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = make_settings()

        assert settings.lemmy_read_limited_instance == "kbin.social"
        assert settings.lemmy_frontend_url == "https://lemmy.z.gripe"
        assert settings.lemmy_request_timeout == 30.0
        assert settings.lemmy_max_retries == 3
        assert settings.log_level == "INFO"

    def test_scheme_stripped(self):
        """Instances may be configured as URLs."""
        settings = make_settings(lemmy_default_instance="https://lemmy.world/")

        assert settings.lemmy_default_instance == "lemmy.world"

    def test_alternate_instance(self):
        """The alternate falls back to the default instance."""
        assert make_settings().alternate_default_instance == "lemmy.ml"
        assert make_settings(lemmy_kbin_default_instance=None).alternate_default_instance == "lemmy.world"

    def test_read_limited(self):
        assert make_settings(lemmy_default_instance="kbin.social").is_read_limited is True
        assert make_settings().is_read_limited is False

    def test_loaded_from_environment(self, clean_env):
        """Variable names are case-insensitive field names."""
        clean_env.setenv("LEMMY_DEFAULT_INSTANCE", "beehaw.org")
        clean_env.setenv("LEMMY_MAX_RETRIES", "5")

        settings = Settings(_env_file=None)

        assert settings.lemmy_default_instance == "beehaw.org"
        assert settings.lemmy_max_retries == 5


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_renderer(self):
        with patch("structlog.configure") as configure:
            configure_logging("DEBUG", json_output=True)

        processors = configure.call_args.kwargs["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert configure.call_args.kwargs["wrapper_class"] is structlog.stdlib.BoundLogger

    def test_console_renderer(self):
        with patch("structlog.configure") as configure:
            configure_logging("INFO", json_output=False)

        processors = configure.call_args.kwargs["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


class TestCreateService:
    """Tests for create_service."""

    def test_with_settings(self):
        """Explicit settings are used as given and logging is configured from them."""
        settings = make_settings(log_level="DEBUG", log_json=False)

        with patch("lemmy_service.core.logging.configure_logging") as configure:
            service = create_service(settings)

        assert isinstance(service, LemmyService)
        assert service.settings is settings
        configure.assert_called_once_with("DEBUG", json_output=False)

    def test_from_environment(self, clean_env):
        clean_env.setenv("LEMMY_DEFAULT_INSTANCE", "lemmy.ml")

        with patch("lemmy_service.core.logging.configure_logging"):
            service = create_service()

        assert service.settings.lemmy_default_instance == "lemmy.ml"

    def test_missing_default_instance(self, clean_env):
        """A missing default instance is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            create_service()

        assert exc_info.value.config_key == "lemmy_default_instance"
        assert isinstance(exc_info.value, PermanentError)
