"""Search category registry.

Each result category (communities, people, posts) is described by one
``CategoryBehavior`` record: which upstream search type to ask for, where the
raw results live in the response, which raw field the client-side filters
match against, and how a raw result becomes a canonical record. Behaviors are
registered with a decorator on their mapping function.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Union

Transform = Callable[[Any, Any, Any], Awaitable[Any]]


class SearchCategory(str, Enum):
    """Supported search result categories."""

    GROUP = "group"
    USER = "user"
    POST = "post"


@dataclass(frozen=True)
class CategoryBehavior:
    """How one category is searched, filtered and mapped.

    Attributes:
        category: The category this record describes.
        search_type: Lemmy ``type_`` for the search request.
        results: Pulls this category's raw views out of a search response.
        name_of: The raw view's name field used by exact/prefix filters.
        transform: ``(normalizer, view, context) -> canonical record``.
    """

    category: SearchCategory
    search_type: str
    results: Callable[[Any], list[Any]]
    name_of: Callable[[Any], str]
    transform: Transform


_categories: dict[SearchCategory, CategoryBehavior] = {}


def register_category(
    category: SearchCategory,
    *,
    search_type: str,
    results: Callable[[Any], list[Any]],
    name_of: Callable[[Any], str],
):
    """Decorator to register the mapping function of a category.

    Args:
        category: The SearchCategory being described.
        search_type: Lemmy search ``type_`` value.
        results: Extractor for the raw result list.
        name_of: Accessor for the raw name field.

    Returns:
        Decorator function that registers the behavior and returns the
        function unchanged.

    Example:
        @register_category(
            SearchCategory.USER,
            search_type="Users",
            results=lambda response: response.users,
            name_of=lambda view: view.person.name,
        )
        async def transform_user(normalizer, view, context):
            ...
    """

    def decorator(func: Transform) -> Transform:
        _categories[category] = CategoryBehavior(
            category=category,
            search_type=search_type,
            results=results,
            name_of=name_of,
            transform=func,
        )
        return func

    return decorator


def get_category_behavior(category: SearchCategory) -> CategoryBehavior:
    """Look up the behavior of a category.

    Raises:
        ValueError: If the category is not registered.
    """
    if category not in _categories:
        raise ValueError(f"Unknown search category: {category}")
    return _categories[category]


def list_categories() -> list[SearchCategory]:
    """List all registered categories."""
    return list(_categories.keys())


def normalize_categories(
    categories: Union[SearchCategory, str, Iterable[Union[SearchCategory, str]]],
) -> list[SearchCategory]:
    """Accept one category or an ordered collection; drop repeats, keep order."""
    if isinstance(categories, (SearchCategory, str)):
        categories = [categories]

    ordered: list[SearchCategory] = []
    for category in categories:
        category = SearchCategory(category.lower())
        if category not in ordered:
            ordered.append(category)
    return ordered
