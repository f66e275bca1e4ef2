"""
Lemmy service adapter - presents Lemmy content in the aggregation host's schema.

This package contains:
- collectors: The Lemmy backend (HTTP client, normalizers, comment trees, search)
- config: Pydantic settings
- core: Exceptions and logging setup
- models: Canonical records handed to the host
"""

__version__ = "0.1.0"


def create_service(settings=None, enrich_metadata=None):
    """Build a LemmyService from environment settings.

    Args:
        settings: Settings to use; loaded from the environment when omitted.
        enrich_metadata: Host hook awaited on every mapped post.

    Returns:
        A LemmyService that connects with LemmyHttp.

    Raises:
        ConfigurationError: If the environment does not hold valid settings.
    """
    from pydantic import ValidationError

    from lemmy_service.collectors.lemmy.collector import LemmyService
    from lemmy_service.config.settings import get_settings
    from lemmy_service.core.exceptions import ConfigurationError
    from lemmy_service.core.logging import configure_logging

    if settings is None:
        try:
            settings = get_settings()
        except ValidationError as e:
            error = e.errors()[0]
            config_key = ".".join(str(part) for part in error["loc"])
            raise ConfigurationError(f"Invalid settings: {error['msg']}", config_key) from e

    configure_logging(settings.log_level, json_output=settings.log_json)
    return LemmyService(settings, enrich_metadata=enrich_metadata)
