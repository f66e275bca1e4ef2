"""Sort and paging normalization.

The host passes whatever the user typed (``top`` + ``month``, ``HOT``, a page
number as a string). Lemmy accepts a closed vocabulary, so everything is
mapped onto it here; anything unknown is dropped and the instance applies its
own default.
"""

import math
from dataclasses import dataclass
from typing import Optional, Union

MAX_QUERY_LIMIT = 50

# Length at which a query is considered specific enough to need no boost
BROAD_LIMIT_QUERY_LENGTH = 25

SORT_TYPES = frozenset(
    {
        "Active",
        "Hot",
        "New",
        "Old",
        "TopDay",
        "TopWeek",
        "TopMonth",
        "TopYear",
        "TopAll",
        "MostComments",
        "NewComments",
        "TopHour",
        "TopSixHour",
        "TopTwelveHour",
        "TopThreeMonths",
        "TopSixMonths",
        "TopNineMonths",
    }
)

COMMENT_SORT_TYPES = frozenset({"Hot", "Top", "New", "Old"})


@dataclass(frozen=True)
class PageFilters:
    limit: Optional[int]
    page: int
    sort: Optional[str] = None
    primary_sort: Optional[str] = None


@dataclass(frozen=True)
class CommentFilters:
    limit: int
    sort: Optional[str] = None


def capitalize_first_letter(value: str) -> str:
    """``tOP`` -> ``Top``."""
    value = value.lower()
    return value[:1].upper() + value[1:]


def _parse_page(page: Union[str, int, None]) -> int:
    if page is None or page == "":
        return 1
    try:
        return int(page)
    except (TypeError, ValueError):
        return 1


def normalize_page_filters(
    limit: Optional[int],
    page: Union[str, int, None],
    sort: Optional[str],
    secondary_sort: Optional[str] = None,
) -> PageFilters:
    """Validate paging and sort input for post listings.

    The primary and secondary sort are first combined (``Top`` + ``Month`` ->
    ``TopMonth``); if that is not a Lemmy sort the bare primary is tried, and
    failing both the sort is left unset.

    Args:
        limit: Page size, passed through unchanged.
        page: Page number; defaults to 1 when missing or not numeric.
        sort: Primary sort as typed by the user.
        secondary_sort: Time range refinement such as ``month``.

    Returns:
        PageFilters with the accepted sort and the coarse ``primary_sort``
        (``Top``, ``New``, ...) for client-side ordering.
    """
    page_number = _parse_page(page)

    if not sort:
        return PageFilters(limit=limit, page=page_number)

    primary = capitalize_first_letter(sort)
    secondary = capitalize_first_letter(secondary_sort) if secondary_sort else ""
    compound = f"{primary}{secondary}"

    if compound in SORT_TYPES:
        accepted = compound
    elif primary in SORT_TYPES:
        accepted = primary
    else:
        accepted = None

    primary_sort = primary if primary in SORT_TYPES or primary in COMMENT_SORT_TYPES else None

    return PageFilters(limit=limit, page=page_number, sort=accepted, primary_sort=primary_sort)


def normalize_comment_filters(limit: int, sort: Optional[str]) -> CommentFilters:
    """Clamp the comment limit and validate the comment sort."""
    limit = min(limit, MAX_QUERY_LIMIT)

    accepted = None
    if sort:
        candidate = capitalize_first_letter(sort)
        accepted = candidate if candidate in COMMENT_SORT_TYPES else None

    return CommentFilters(limit=limit, sort=accepted)


def estimate_broad_limit(requested_limit: int, query: str, scaling_factor: float = 8) -> int:
    """Upstream limit to request when results will be filtered client-side.

    Short queries match more noise, so they get a proportionally bigger
    upstream page; queries of 25 characters or more get no boost. The caller
    clamps the result to ``MAX_QUERY_LIMIT``.
    """
    normalized_query_length = len(query) / BROAD_LIMIT_QUERY_LENGTH
    inverse = 1 - normalized_query_length
    boosted = math.floor(requested_limit * (1 + inverse * scaling_factor) + 0.5)
    return max(requested_limit, boosted)
