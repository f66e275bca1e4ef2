"""Lemmy service implementing the host's operation surface.

Every operation resolves its own ``InputContext``, opens its own connection
to the resolved instance, and maps the answer to canonical records. Nothing
about a call is stored on the service, so overlapping calls against
different instances cannot see each other's state.
"""

from typing import Callable, Optional, Union

import structlog

from lemmy_service.collectors.base import BaseService, Categories
from lemmy_service.collectors.lemmy.client import LemmyHttp
from lemmy_service.collectors.lemmy.comment_tree import build_comment_tree
from lemmy_service.collectors.lemmy.connection import ConnectionResolver, InputContext, split_identifier
from lemmy_service.collectors.lemmy.filters import normalize_comment_filters, normalize_page_filters
from lemmy_service.collectors.lemmy.normalizer import LemmyNormalizer, MetadataEnricher
from lemmy_service.collectors.lemmy.search import AUTOCOMPLETE_SORT, SearchDispatcher
from lemmy_service.collectors.registry import SearchCategory
from lemmy_service.config.settings import Settings
from lemmy_service.core.concurrency import gather_or_cancel
from lemmy_service.models.schemas import (
    CanonicalComment,
    CanonicalGroup,
    CanonicalPost,
    CanonicalUser,
    Listing,
    Unimplemented,
    UserDetail,
)

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[InputContext], LemmyHttp]

Record = Union[CanonicalPost, CanonicalComment]

# Client-side ordering of a merged overview: (sort key, descending)
OVERVIEW_ORDERINGS: dict[str, tuple[Callable[[Record], float], bool]] = {
    "New": (lambda record: record.created_utc, True),
    "Old": (lambda record: record.created_utc, False),
    "Top": (lambda record: record.score, True),
    "Hot": (lambda record: record.hot_rank, True),
}


def sort_overview(details: list[Record], primary_sort: Optional[str]) -> list[Record]:
    """Order merged posts and comments by the coarse sort, ``New`` by default.

    Sorts without a client-side rule keep the upstream order.
    """
    ordering = OVERVIEW_ORDERINGS.get(primary_sort or "New")
    if ordering is None:
        return details
    key, descending = ordering
    return sorted(details, key=key, reverse=descending)


def _local_int(value: Optional[str]) -> Optional[int]:
    """Numeric id without its ``@host`` suffix, None when not numeric."""
    local_id, _ = split_identifier(value)
    try:
        return int(local_id)
    except ValueError:
        return None


class LemmyService(BaseService):
    """Lemmy backend for the aggregation host.

    Example:
        service = LemmyService(get_settings())
        listing = await service.get_posts("technology@lemmy.world", limit=25, sort="top", secondary_sort="week")
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client_factory: Optional[ClientFactory] = None,
        enrich_metadata: Optional[MetadataEnricher] = None,
    ):
        """Initialize the Lemmy service.

        Args:
            settings: Deployment settings (default instance, read-limited host, ...).
            client_factory: Builds the connection for a resolved context.
                Defaults to a LemmyHttp against ``context.base_url``.
            enrich_metadata: Host hook awaited on every mapped post.
        """
        super().__init__(settings)
        self._resolver = ConnectionResolver(settings)
        self._normalizer = LemmyNormalizer(settings.lemmy_frontend_url, enrich_metadata)
        self._search = SearchDispatcher(self._normalizer)
        self._client_factory = client_factory or self._default_client
        logger.info(
            "lemmy_service_initialized",
            default_instance=settings.lemmy_default_instance,
            read_limited=settings.is_read_limited,
        )

    def _default_client(self, context: InputContext) -> LemmyHttp:
        return LemmyHttp(
            context.base_url,
            timeout=self.settings.lemmy_request_timeout,
            max_retries=self.settings.lemmy_max_retries,
        )

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    async def get_group(self, subreddit: str) -> Union[CanonicalGroup, Unimplemented]:
        """Fetch one community, keeping the name exactly as the user typed it."""
        context = self._resolver.resolve(subreddit)
        if not context.qualified_input_name:
            return Unimplemented("community name required")

        async with self._client_factory(context) as client:
            response = await client.get_community(name=context.qualified_input_name)

        logger.info("lemmy_group_fetched", community=context.qualified_input_name)
        return self._normalizer.transform_group(
            response.community_view, context, original_display_name=subreddit
        )

    async def get_groups_query(self, query: str, limit: int) -> Union[Listing, Unimplemented]:
        """Look up communities by name for the host's community picker.

        A qualified query (``tech@lemmy.ml``) searches that instance's local
        communities; a bare one searches everything the default instance knows.
        """
        if self.settings.is_read_limited:
            return Unimplemented("search is not available on this deployment")

        context = self._resolver.resolve(query)
        if not context.primary_input_name:
            return Unimplemented("query required")

        async with self._client_factory(context) as client:
            groups = await self._search.search(
                client,
                context,
                context.primary_input_name,
                SearchCategory.GROUP,
                limit=limit,
                sort=AUTOCOMPLETE_SORT,
                listing_type="Local" if context.resolved_instance else "All",
            )

        return Listing(dist=len(groups), children=groups)

    # -------------------------------------------------------------------------
    # Posts
    # -------------------------------------------------------------------------

    async def get_posts(
        self,
        subreddit: Optional[str],
        limit: int,
        page: Optional[str] = None,
        sort: Optional[str] = None,
        secondary_sort: Optional[str] = None,
    ) -> Union[Listing, Unimplemented]:
        """List a community's posts, or the front page when no community is given."""
        filters = normalize_page_filters(limit, page, sort, secondary_sort)

        context = self._resolver.resolve(subreddit)
        if self.settings.is_read_limited and not context.qualified_input_name:
            return Unimplemented("front page is not available on this deployment")

        async with self._client_factory(context) as client:
            response = await client.get_posts(
                community_name=context.qualified_input_name,
                type_="All",
                sort=filters.sort,
                page=filters.page,
                limit=filters.limit,
            )

        posts = await gather_or_cancel(
            *(self._normalizer.transform_post(view, context) for view in response.posts)
        )

        logger.info(
            "lemmy_posts_fetched",
            community=context.qualified_input_name,
            instance=context.connection_instance,
            page=filters.page,
            sort=filters.sort,
            count=len(posts),
        )
        return Listing.page(list(posts), filters.page)

    async def get_post(self, id: str, subreddit: Optional[str] = None) -> Union[CanonicalPost, Unimplemented]:
        """Fetch one post by its (possibly qualified) id."""
        context = self._resolver.resolve(subreddit, post_id=id)
        post_id = _local_int(context.anchor_post_local_id)
        if post_id is None:
            return Unimplemented("numeric post id required")

        async with self._client_factory(context) as client:
            response = await client.get_post(id=post_id)

        return await self._normalizer.transform_post(response.post_view, context)

    async def get_nested_comments(
        self,
        post_id: str,
        comment_id: Optional[str],
        subreddit: Optional[str],
        limit: int,
        depth: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> Union[list[Listing], Unimplemented]:
        """Fetch a post and its reply tree.

        Returns:
            ``[Listing([post]), Listing(root comments)]``. With ``comment_id``
            the tree is rooted at that comment's level.
        """
        filters = normalize_comment_filters(limit, sort)

        post = await self.get_post(post_id, subreddit)
        if isinstance(post, Unimplemented):
            return post

        context = self._resolver.resolve(subreddit, post_id=post_id)
        parent_id = _local_int(comment_id) if comment_id else None

        async with self._client_factory(context) as client:
            response = await client.get_comments(
                post_id=_local_int(context.anchor_post_local_id),
                parent_id=parent_id,
                type_="All",
                max_depth=depth,
                sort=filters.sort,
                limit=filters.limit,
            )

        nested = build_comment_tree(response.comments, context, self._normalizer, comment_id)

        logger.info(
            "lemmy_comments_fetched",
            post_id=post.id,
            focused_comment_id=comment_id,
            fetched=len(response.comments),
            roots=len(nested),
        )
        return [
            Listing(dist=1, children=[post]),
            Listing(children=nested),
        ]

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def get_user(self, username: str) -> Union[CanonicalUser, Unimplemented]:
        """Fetch a person's profile."""
        context = self._resolver.resolve(username)
        if not context.qualified_input_name:
            return Unimplemented("username required")

        async with self._client_factory(context) as client:
            response = await client.get_person_details(username=context.qualified_input_name, limit=0)

        return self._normalizer.transform_user(response.person_view, context)

    async def get_user_details(
        self,
        username: str,
        user_detail: Union[UserDetail, str],
        limit: int,
        page: Optional[str] = None,
        sort: Optional[str] = None,
        secondary_sort: Optional[str] = None,
    ) -> Union[Listing, Unimplemented]:
        """List a person's comments, submissions, or both merged (overview)."""
        filters = normalize_page_filters(limit, page, sort, secondary_sort)

        try:
            detail = UserDetail(user_detail.lower())
        except ValueError:
            return Unimplemented(f"unknown user detail: {user_detail}")

        context = self._resolver.resolve(username)
        if not context.qualified_input_name:
            return Unimplemented("username required")

        async with self._client_factory(context) as client:
            response = await client.get_person_details(
                username=context.qualified_input_name,
                sort=filters.sort,
                page=filters.page,
                limit=limit,
            )

        comments = [self._normalizer.transform_comment(view, context) for view in response.comments]

        if detail is UserDetail.COMMENTS:
            return Listing.page(comments, filters.page)

        posts = list(
            await gather_or_cancel(
                *(self._normalizer.transform_post(view, context) for view in response.posts)
            )
        )
        if detail is UserDetail.SUBMITTED:
            return Listing.page(posts, filters.page)

        details = sort_overview([*posts, *comments], filters.primary_sort)
        return Listing.page(details, filters.page)

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

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
        """Search communities, people and/or posts.

        ``subreddit`` picks the instance to search on; with
        ``search_within_group`` it also restricts results to that community.
        """
        if self.settings.is_read_limited:
            return Unimplemented("search is not available on this deployment")

        filters = normalize_page_filters(limit, page, sort, secondary_sort)

        context = self._resolver.resolve(subreddit)
        if search_within_group and not context.qualified_input_name:
            return Unimplemented("community required to search within")

        async with self._client_factory(context) as client:
            results = await self._search.search(
                client,
                context,
                query,
                categories,
                limit=limit,
                exact=exact,
                page=filters.page,
                sort=filters.sort,
                community_name=context.qualified_input_name if search_within_group else None,
            )

        return Listing.page(results, filters.page)

    async def autocomplete(
        self,
        query: str,
        limit: int,
        categories: Categories,
    ) -> Union[Listing, Unimplemented]:
        """Suggest names starting with ``query``; ``name@host`` narrows to that instance."""
        if self.settings.is_read_limited:
            return Unimplemented("search is not available on this deployment")

        context = self._resolver.resolve(query)

        async with self._client_factory(context) as client:
            results = await self._search.autocomplete(
                client,
                context,
                context.primary_input_name,
                categories,
                limit=limit,
                listing_type="Local" if context.resolved_instance else "All",
            )

        return Listing(dist=len(results), children=results)
