"""Canonical records consumed by the aggregation host.

The host speaks a Reddit-shaped schema: posts, comments, subreddits (groups)
and users wrapped in listings with ``after``/``before`` cursors. Field names
follow that schema verbatim.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Kind(str, Enum):
    """Fullname prefixes used by the host schema."""

    COMMENT = "t1"
    USER = "t2"
    POST = "t3"
    GROUP = "t5"


class UserDetail(str, Enum):
    """Tabs of a user's profile page."""

    COMMENTS = "comments"
    SUBMITTED = "submitted"
    OVERVIEW = "overview"


# =============================================================================
# Base Models
# =============================================================================


class CanonicalRecord(BaseModel):
    """Base model for records handed to the host."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def to_record(self) -> dict[str, Any]:
        """Serialize for the host, leaving out unset optional slots."""
        return self.model_dump(exclude_none=True)


class Unimplemented:
    """Returned when an operation is not available for the given input.

    This is an expected outcome (for example searching on a deployment that
    has no search), never an error.
    """

    def __init__(self, reason: str = ""):
        self.reason = reason

    def __repr__(self) -> str:
        return f"Unimplemented({self.reason!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Unimplemented)

    def __hash__(self) -> int:
        return hash(Unimplemented)


class Listing(CanonicalRecord):
    """Paged list container."""

    after: Optional[str] = None
    before: Optional[str] = None
    dist: Optional[int] = None
    children: list[Any] = Field(default_factory=list)

    @classmethod
    def page(cls, children: list[Any], page: int) -> "Listing":
        """Build a listing with ``page±1`` cursors.

        ``after`` is only set when this page returned something, ``before``
        only when there is a previous page.
        """
        return cls(
            after=str(page + 1) if children else None,
            before=str(page - 1) if page > 1 else None,
            dist=len(children),
            children=children,
        )


# =============================================================================
# Content Models
# =============================================================================


class CanonicalPost(CanonicalRecord):
    """A submission."""

    id: str
    name: str = Field(..., description="Fullname, t3_{id}")
    title: str = ""
    url: str
    subreddit: str
    subreddit_name_prefixed: str
    num_comments: int = 0
    permalink: str
    author: str
    author_fullname: str
    ups: int = 0
    downs: int = 0
    score: int = 0
    created: int
    created_utc: int
    is_self: bool = False
    selftext: str = ""
    selftext_html: str = ""
    pinned: bool = False
    stickied: bool = False
    domain: str
    thumbnail: Optional[str] = None
    over_18: bool = False

    # Only used for client-side ordering; never sent to the host
    hot_rank: float = Field(default=0, exclude=True)


class CanonicalComment(CanonicalRecord):
    """A comment, optionally carrying its nested replies."""

    id: str
    name: str = Field(..., description="Fullname, t1_{id}")
    link_id: str
    parent_id: str
    subreddit: str
    subreddit_name_prefixed: str
    author: str
    author_fullname: str
    ups: int = 0
    downs: int = 0
    score: int = 0
    created: int
    created_utc: int
    body: str = ""
    body_html: str = ""
    depth: int = 0
    permalink: str
    stickied: bool = False
    replies: Optional[Listing] = None

    hot_rank: float = Field(default=0, exclude=True)


class CanonicalGroup(CanonicalRecord):
    """A community, presented as a subreddit."""

    id: str
    name: str = Field(..., description="Fullname, t5_{id}")
    display_name: str
    display_name_prefixed: str
    title: str
    subscribers: int = 0
    accounts_active: int = 0
    active_user_count: int = 0
    created: int
    created_utc: int
    community_icon: Optional[str] = None
    icon_img: Optional[str] = None
    banner_img: Optional[str] = None
    banner_background_image: Optional[str] = None
    mobile_banner_image: Optional[str] = None
    description: Optional[str] = None
    description_html: Optional[str] = None
    public_description: Optional[str] = None
    public_description_html: Optional[str] = None
    over18: bool = False


class UserSubreddit(CanonicalRecord):
    """The personal ``u_{name}`` namespace embedded in a user record."""

    name: str
    display_name: str
    display_name_prefixed: str
    description: Optional[str] = None
    public_description: Optional[str] = None
    subreddit_type: str = "user"
    url: str
    icon_img: Optional[str] = None
    title: Optional[str] = None
    banner_img: Optional[str] = None


class CanonicalUser(CanonicalRecord):
    """A person."""

    id: str
    name: str
    icon_img: Optional[str] = None
    total_karma: int = 0
    link_karma: int = 0
    comment_karma: int = 0
    created: int
    created_utc: int
    subreddit: UserSubreddit
