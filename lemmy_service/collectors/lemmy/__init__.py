"""Lemmy backend module.

Provides LemmyHttp for talking to an instance, LemmyService implementing
the host's operations, and the normalizer, comment tree and search pieces
it is built from.
"""

from lemmy_service.collectors.lemmy.client import LemmyHttp
from lemmy_service.collectors.lemmy.collector import LemmyService, sort_overview
from lemmy_service.collectors.lemmy.comment_tree import build_comment_tree
from lemmy_service.collectors.lemmy.connection import (
    ConnectionResolver,
    InputContext,
    qualify,
    split_identifier,
)
from lemmy_service.collectors.lemmy.filters import (
    estimate_broad_limit,
    normalize_comment_filters,
    normalize_page_filters,
)
from lemmy_service.collectors.lemmy.normalizer import LemmyNormalizer
from lemmy_service.collectors.lemmy.search import SearchDispatcher

__all__ = [
    "LemmyHttp",
    "LemmyService",
    "sort_overview",
    "build_comment_tree",
    "ConnectionResolver",
    "InputContext",
    "qualify",
    "split_identifier",
    "estimate_broad_limit",
    "normalize_comment_filters",
    "normalize_page_filters",
    "LemmyNormalizer",
    "SearchDispatcher",
]
