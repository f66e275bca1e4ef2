"""Base service interface consumed by the aggregation host.

Every backend network implements the same operations; the host calls them
without knowing which network answers. Each operation returns either a
canonical result or ``Unimplemented``.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Union

from lemmy_service.collectors.registry import SearchCategory
from lemmy_service.config.settings import Settings
from lemmy_service.models.schemas import (
    CanonicalGroup,
    CanonicalPost,
    CanonicalUser,
    Listing,
    Unimplemented,
    UserDetail,
)

Categories = Union[SearchCategory, Iterable[SearchCategory]]


class BaseService(ABC):
    """Abstract base class for backend services.

    Concrete services translate these calls into requests against their own
    network and map the answers to canonical records.
    """

    def __init__(self, settings: Settings):
        """Initialize service with configuration.

        Args:
            settings: Deployment settings, injected rather than read globally.
        """
        self.settings = settings

    @abstractmethod
    async def get_group(self, subreddit: str) -> Union[CanonicalGroup, Unimplemented]:
        ...

    @abstractmethod
    async def get_posts(
        self,
        subreddit: Optional[str],
        limit: int,
        page: Optional[str] = None,
        sort: Optional[str] = None,
        secondary_sort: Optional[str] = None,
    ) -> Union[Listing, Unimplemented]:
        ...

    @abstractmethod
    async def get_post(self, id: str, subreddit: Optional[str] = None) -> Union[CanonicalPost, Unimplemented]:
        ...

    @abstractmethod
    async def get_nested_comments(
        self,
        post_id: str,
        comment_id: Optional[str],
        subreddit: Optional[str],
        limit: int,
        depth: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> Union[list[Listing], Unimplemented]:
        ...

    @abstractmethod
    async def get_user(self, username: str) -> Union[CanonicalUser, Unimplemented]:
        ...

    @abstractmethod
    async def get_user_details(
        self,
        username: str,
        user_detail: Union[UserDetail, str],
        limit: int,
        page: Optional[str] = None,
        sort: Optional[str] = None,
        secondary_sort: Optional[str] = None,
    ) -> Union[Listing, Unimplemented]:
        ...

    @abstractmethod
    async def search(
        self,
        query: str,
        categories: Categories,
        *,
        subreddit: Optional[str] = None,
        exact: bool = False,
        limit: int = 25,
        page: Optional[str] = None,
        sort: Optional[str] = None,
        secondary_sort: Optional[str] = None,
        search_within_group: bool = False,
    ) -> Union[Listing, Unimplemented]:
        ...

    @abstractmethod
    async def autocomplete(
        self,
        query: str,
        limit: int,
        categories: Categories,
    ) -> Union[Listing, Unimplemented]:
        ...
