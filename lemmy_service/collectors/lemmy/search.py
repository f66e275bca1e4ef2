"""Multi-category search and autocomplete.

One query fans out into one Lemmy search request per requested category.
Raw results are filtered on the upstream name field (exact match for exact
search, prefix match for autocomplete), mapped, and concatenated in the order
the categories were requested.
"""

from typing import Any, Callable, Iterable, Optional, Union

import structlog

from lemmy_service.collectors.lemmy.client import LemmyHttp
from lemmy_service.collectors.lemmy.connection import InputContext
from lemmy_service.collectors.lemmy.filters import MAX_QUERY_LIMIT, estimate_broad_limit
from lemmy_service.collectors.lemmy.normalizer import LemmyNormalizer
from lemmy_service.collectors.registry import (
    CategoryBehavior,
    SearchCategory,
    get_category_behavior,
    normalize_categories,
    register_category,
)
from lemmy_service.core.concurrency import gather_or_cancel

logger = structlog.get_logger(__name__)

AUTOCOMPLETE_SORT = "TopAll"

Predicate = Callable[[str], bool]


# =============================================================================
# Category behaviors
# =============================================================================


@register_category(
    SearchCategory.GROUP,
    search_type="Communities",
    results=lambda response: response.communities,
    name_of=lambda view: view.community.name,
)
async def _transform_group(normalizer: LemmyNormalizer, view, context: InputContext):
    return normalizer.transform_group(view, context)


@register_category(
    SearchCategory.USER,
    search_type="Users",
    results=lambda response: response.users,
    name_of=lambda view: view.person.name,
)
async def _transform_user(normalizer: LemmyNormalizer, view, context: InputContext):
    return normalizer.transform_user(view, context)


@register_category(
    SearchCategory.POST,
    search_type="Posts",
    results=lambda response: response.posts,
    name_of=lambda view: view.post.name,
)
async def _transform_post(normalizer: LemmyNormalizer, view, context: InputContext):
    return await normalizer.transform_post(view, context)


def exact_match(query: str) -> Predicate:
    needle = query.lower()
    return lambda name: name.lower() == needle


def prefix_match(query: str) -> Predicate:
    needle = query.lower()
    return lambda name: name.lower().startswith(needle)


# =============================================================================
# Dispatcher
# =============================================================================


class SearchDispatcher:
    """Runs a query across one or more result categories.

    Example:
        dispatcher = SearchDispatcher(normalizer)
        results = await dispatcher.autocomplete(client, context, "tech", [SearchCategory.GROUP], limit=5)
    """

    def __init__(self, normalizer: LemmyNormalizer):
        self._normalizer = normalizer

    async def search(
        self,
        client: LemmyHttp,
        context: InputContext,
        query: str,
        categories: Union[SearchCategory, Iterable[SearchCategory]],
        *,
        limit: int,
        exact: bool = False,
        page: int = 1,
        sort: Optional[str] = None,
        listing_type: str = "All",
        community_name: Optional[str] = None,
    ) -> list[Any]:
        """Search every requested category.

        Args:
            client: Connection opened for this call.
            context: Context of the current call.
            query: Text sent upstream as ``q``.
            categories: One category or an ordered collection of them.
            limit: Results wanted per category.
            exact: Keep only results whose name equals the query
                (case-insensitive). A wider upstream page is requested to
                make up for the discarded results.
            page: Upstream page.
            sort: Accepted Lemmy sort, or None for the instance default.
            listing_type: ``All`` or ``Local``.
            community_name: Restrict the search to one community.

        Returns:
            Canonical records, category by category in request order.
        """
        if exact:
            upstream_limit = min(estimate_broad_limit(limit, query), MAX_QUERY_LIMIT)
            predicate: Optional[Predicate] = exact_match(query)
        else:
            upstream_limit = min(limit, MAX_QUERY_LIMIT)
            predicate = None

        params = {
            "q": query,
            "listing_type": listing_type,
            "sort": sort,
            "limit": upstream_limit,
            "page": page,
            "community_name": community_name,
        }
        return await self._dispatch(client, context, categories, params, predicate, limit)

    async def autocomplete(
        self,
        client: LemmyHttp,
        context: InputContext,
        query: str,
        categories: Union[SearchCategory, Iterable[SearchCategory]],
        *,
        limit: int,
        listing_type: str = "All",
    ) -> list[Any]:
        """Suggest names starting with ``query`` in every requested category."""
        upstream_limit = min(estimate_broad_limit(limit, query), MAX_QUERY_LIMIT)
        params = {
            "q": query,
            "listing_type": listing_type,
            "sort": AUTOCOMPLETE_SORT,
            "limit": upstream_limit,
        }
        return await self._dispatch(client, context, categories, params, prefix_match(query), limit)

    async def _dispatch(
        self,
        client: LemmyHttp,
        context: InputContext,
        categories: Union[SearchCategory, Iterable[SearchCategory]],
        params: dict[str, Any],
        predicate: Optional[Predicate],
        limit: int,
    ) -> list[Any]:
        behaviors = [get_category_behavior(category) for category in normalize_categories(categories)]

        per_category = await gather_or_cancel(
            *(
                self._search_category(client, context, behavior, params, predicate, limit)
                for behavior in behaviors
            )
        )

        merged: list[Any] = []
        for results in per_category:
            merged.extend(results)
        return merged

    async def _search_category(
        self,
        client: LemmyHttp,
        context: InputContext,
        behavior: CategoryBehavior,
        params: dict[str, Any],
        predicate: Optional[Predicate],
        limit: int,
    ) -> list[Any]:
        response = await client.search(type_=behavior.search_type, **params)
        raw_results = behavior.results(response)

        if predicate is not None:
            raw_results = [view for view in raw_results if predicate(behavior.name_of(view))]
            raw_results = raw_results[:limit]

        records = await gather_or_cancel(
            *(behavior.transform(self._normalizer, view, context) for view in raw_results)
        )

        logger.info(
            "lemmy_search_category_results",
            category=behavior.category.value,
            query=params["q"],
            upstream_limit=params["limit"],
            count=len(records),
        )
        return list(records)
