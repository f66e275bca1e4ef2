"""Pydantic models for the Lemmy API v3 responses we consume.

Only the fields the normalizer reads are declared; everything else in the
payload is ignored so newer instances keep parsing.
"""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


class LemmyModel(BaseModel):
    """Base for upstream payloads."""

    model_config = ConfigDict(extra="ignore")


def _as_utc(value: datetime) -> datetime:
    # Lemmy 0.18 sends naive UTC timestamps, 0.19 sends an explicit offset
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


# =============================================================================
# Entities
# =============================================================================


class Community(LemmyModel):
    id: int
    name: str
    title: str = ""
    actor_id: str
    description: str | None = None
    icon: str | None = None
    banner: str | None = None
    nsfw: bool = False
    published: UtcDatetime | None = None


class Person(LemmyModel):
    id: int
    name: str
    display_name: str | None = None
    actor_id: str
    avatar: str | None = None
    banner: str | None = None
    bio: str | None = None
    published: UtcDatetime


class Post(LemmyModel):
    id: int
    name: str = ""
    url: str | None = None
    body: str | None = None
    thumbnail_url: str | None = None
    nsfw: bool = False
    published: UtcDatetime
    featured_local: bool = False
    featured_community: bool = False


class Comment(LemmyModel):
    id: int
    content: str = ""
    path: str
    distinguished: bool = False
    published: UtcDatetime


# =============================================================================
# Aggregates
# =============================================================================


class CommunityAggregates(LemmyModel):
    subscribers: int = 0
    users_active_day: int = 0
    users_active_month: int = 0
    published: UtcDatetime | None = None


class PersonAggregates(LemmyModel):
    post_score: int = 0
    comment_score: int = 0


class PostAggregates(LemmyModel):
    comments: int = 0
    upvotes: int = 0
    downvotes: int = 0
    score: int = 0
    hot_rank: float = 0


class CommentAggregates(LemmyModel):
    upvotes: int = 0
    downvotes: int = 0
    score: int = 0
    hot_rank: float = 0


# =============================================================================
# Views
# =============================================================================


class CommunityView(LemmyModel):
    community: Community
    counts: CommunityAggregates = Field(default_factory=CommunityAggregates)


class PersonView(LemmyModel):
    person: Person
    counts: PersonAggregates = Field(default_factory=PersonAggregates)


class PostView(LemmyModel):
    post: Post
    creator: Person
    community: Community
    counts: PostAggregates = Field(default_factory=PostAggregates)


class CommentView(LemmyModel):
    comment: Comment
    creator: Person
    post: Post
    community: Community
    counts: CommentAggregates = Field(default_factory=CommentAggregates)


# =============================================================================
# Responses
# =============================================================================


class GetCommunityResponse(LemmyModel):
    community_view: CommunityView


class GetPostsResponse(LemmyModel):
    posts: list[PostView] = Field(default_factory=list)


class GetPostResponse(LemmyModel):
    post_view: PostView


class GetCommentsResponse(LemmyModel):
    comments: list[CommentView] = Field(default_factory=list)


class GetPersonDetailsResponse(LemmyModel):
    person_view: PersonView
    posts: list[PostView] = Field(default_factory=list)
    comments: list[CommentView] = Field(default_factory=list)


class SearchResponse(LemmyModel):
    type_: str = "All"
    communities: list[CommunityView] = Field(default_factory=list)
    users: list[PersonView] = Field(default_factory=list)
    posts: list[PostView] = Field(default_factory=list)
    comments: list[CommentView] = Field(default_factory=list)
