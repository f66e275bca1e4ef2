"""
Backend Integrations.

This module contains the services the aggregation host talks to:

- base: Operation surface every backend implements
- registry: Search category behaviors
- lemmy: Lemmy (federated link aggregator) backend

Services follow a common interface with async methods returning canonical
records, or ``Unimplemented`` when an operation does not apply.

Example:
    from lemmy_service.collectors import LemmyService

    service = LemmyService(settings)
    listing = await service.get_posts("technology", limit=25, sort="hot")
"""

from lemmy_service.collectors.base import BaseService
from lemmy_service.collectors.lemmy import LemmyHttp, LemmyService
from lemmy_service.collectors.registry import SearchCategory

__all__ = [
    "BaseService",
    "LemmyHttp",
    "LemmyService",
    "SearchCategory",
]
