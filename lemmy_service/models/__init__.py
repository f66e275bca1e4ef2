"""Canonical record models handed to the aggregation host."""

from lemmy_service.models.schemas import (
    CanonicalComment,
    CanonicalGroup,
    CanonicalPost,
    CanonicalRecord,
    CanonicalUser,
    Kind,
    Listing,
    Unimplemented,
    UserDetail,
    UserSubreddit,
)

__all__ = [
    "CanonicalComment",
    "CanonicalGroup",
    "CanonicalPost",
    "CanonicalRecord",
    "CanonicalUser",
    "Kind",
    "Listing",
    "Unimplemented",
    "UserDetail",
    "UserSubreddit",
]
