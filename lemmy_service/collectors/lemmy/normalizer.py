"""Lemmy view normalizers.

Transforms Lemmy post, comment, community and person views into the host's
canonical records. Identifiers are qualified with ``@host`` whenever the
entity does not live on the default instance.
"""

import math
from datetime import datetime
from typing import Awaitable, Callable, Optional
from urllib.parse import urlsplit

from lemmy_service.collectors.lemmy.connection import InputContext, actor_host
from lemmy_service.collectors.lemmy.views import CommentView, CommunityView, PersonView, PostView
from lemmy_service.models.schemas import (
    CanonicalComment,
    CanonicalGroup,
    CanonicalPost,
    CanonicalUser,
    Kind,
    UserSubreddit,
)

PATH_DELIMITER = "."
ROOT_PARENT_ID = "0"

MetadataEnricher = Callable[[CanonicalPost], Awaitable[Optional[CanonicalPost]]]


def to_epoch(value: Optional[datetime]) -> int:
    """Whole seconds since the epoch, floored."""
    if value is None:
        return 0
    return math.floor(value.timestamp())


def get_parent_id(path: str) -> str:
    """Parent comment id from an ancestor path; ``"0"`` means top-level."""
    segments = path.split(PATH_DELIMITER)
    if len(segments) < 2:
        return ROOT_PARENT_ID
    return segments[-2]


def get_depth(path: str) -> int:
    """Nesting depth from an ancestor path (``0.5`` is depth 0)."""
    return max(len(path.split(PATH_DELIMITER)) - 2, 0)


class LemmyNormalizer:
    """Maps Lemmy views to canonical records.

    Stateless apart from its configuration, so it is safe to run concurrently
    over every item of a page.

    Example:
        normalizer = LemmyNormalizer("https://lemmy.z.gripe")
        post = await normalizer.transform_post(post_view, context)
    """

    def __init__(self, frontend_url: str, enrich_metadata: Optional[MetadataEnricher] = None):
        """Initialize the normalizer.

        Args:
            frontend_url: Base URL used as the url of self posts.
            enrich_metadata: Host hook awaited on every post before it is returned.
        """
        self._frontend_url = frontend_url.rstrip("/")
        self._enrich_metadata = enrich_metadata

    async def transform_post(self, view: PostView, context: InputContext) -> CanonicalPost:
        """Transform a post view to a CanonicalPost.

        Args:
            view: Post view from the instance.
            context: Context of the current call; the post id is qualified by
                the instance this call resolved to.

        Returns:
            CanonicalPost after the host's metadata hook ran.
        """
        post_id = context.qualify_local(str(view.post.id))
        subreddit = context.qualify(view.community.name, actor_host(view.community.actor_id))
        permalink = f"/r/{subreddit}/comments/{post_id}"
        author = context.qualify(view.creator.name, actor_host(view.creator.actor_id))
        created_utc = to_epoch(view.post.published)
        pinned = view.post.featured_local or view.post.featured_community
        selftext = view.post.body or ""

        if view.post.url:
            url = view.post.url
            domain = urlsplit(url).hostname or ""
        else:
            url = f"{self._frontend_url}{permalink}"
            domain = f"self.{subreddit}"

        post = CanonicalPost(
            id=post_id,
            name=f"{Kind.POST.value}_{post_id}",
            title=view.post.name or "",
            url=url,
            subreddit=subreddit,
            subreddit_name_prefixed=f"r/{subreddit}",
            num_comments=view.counts.comments,
            permalink=permalink,
            author=author,
            author_fullname=f"{Kind.USER.value}_{view.creator.id}",
            ups=view.counts.upvotes,
            downs=view.counts.downvotes,
            score=view.counts.score,
            created=created_utc,
            created_utc=created_utc,
            is_self=bool(selftext),
            selftext=selftext,
            selftext_html=selftext,
            pinned=pinned,
            stickied=pinned,
            domain=domain,
            thumbnail=view.post.thumbnail_url,
            over_18=view.post.nsfw,
            hot_rank=view.counts.hot_rank,
        )

        if self._enrich_metadata is not None:
            enriched = await self._enrich_metadata(post)
            if enriched is not None:
                post = enriched

        return post

    def transform_comment(self, view: CommentView, context: InputContext) -> CanonicalComment:
        """Transform a comment view to a CanonicalComment (without replies)."""
        comment_id = str(view.comment.id)
        parent_id = get_parent_id(view.comment.path)
        post_id = context.qualify_local(str(view.post.id))
        subreddit = context.qualify(view.community.name, actor_host(view.community.actor_id))
        author = context.qualify(view.creator.name, actor_host(view.creator.actor_id))
        created_utc = to_epoch(view.comment.published)
        link_id = f"{Kind.POST.value}_{post_id}"

        return CanonicalComment(
            id=comment_id,
            name=f"{Kind.COMMENT.value}_{comment_id}",
            link_id=link_id,
            parent_id=f"{Kind.COMMENT.value}_{parent_id}" if parent_id != ROOT_PARENT_ID else link_id,
            subreddit=subreddit,
            subreddit_name_prefixed=f"r/{subreddit}",
            author=author,
            author_fullname=f"{Kind.USER.value}_{view.creator.id}",
            ups=view.counts.upvotes,
            downs=view.counts.downvotes,
            score=view.counts.score,
            created=created_utc,
            created_utc=created_utc,
            body=view.comment.content,
            body_html=view.comment.content,
            depth=get_depth(view.comment.path),
            permalink=f"/r/{subreddit}/comments/{post_id}/_/{comment_id}/",
            stickied=view.comment.distinguished,
            hot_rank=view.counts.hot_rank,
        )

    def transform_group(
        self,
        view: CommunityView,
        context: InputContext,
        original_display_name: Optional[str] = None,
    ) -> CanonicalGroup:
        """Transform a community view to a CanonicalGroup.

        Args:
            view: Community view from the instance.
            context: Context of the current call.
            original_display_name: What the user typed, kept verbatim as the
                display name when given.
        """
        community = view.community
        created_utc = to_epoch(view.counts.published or community.published)
        display_name = original_display_name or context.qualify(
            community.name, actor_host(community.actor_id)
        )

        return CanonicalGroup(
            id=str(community.id),
            name=f"{Kind.GROUP.value}_{community.id}",
            display_name=display_name,
            display_name_prefixed=f"r/{display_name}",
            title=community.title or community.name,
            subscribers=view.counts.subscribers,
            accounts_active=view.counts.users_active_day,
            active_user_count=view.counts.users_active_month,
            created=created_utc,
            created_utc=created_utc,
            community_icon=community.icon,
            icon_img=community.icon,
            banner_img=community.banner,
            banner_background_image=community.banner,
            mobile_banner_image=community.banner,
            description=community.description,
            description_html=community.description,
            public_description=community.description,
            public_description_html=community.description,
            over18=community.nsfw,
        )

    def transform_user(self, view: PersonView, context: InputContext) -> CanonicalUser:
        """Transform a person view to a CanonicalUser with its ``u_`` namespace."""
        person = view.person
        created_utc = to_epoch(person.published)
        display_name = context.qualify(person.name, actor_host(person.actor_id))

        return CanonicalUser(
            id=str(person.id),
            name=display_name,
            icon_img=person.avatar,
            total_karma=view.counts.post_score + view.counts.comment_score,
            link_karma=view.counts.post_score,
            comment_karma=view.counts.comment_score,
            created=created_utc,
            created_utc=created_utc,
            subreddit=UserSubreddit(
                name=f"{Kind.GROUP.value}_{person.id}",
                display_name=f"u_{display_name}",
                display_name_prefixed=f"u/{display_name}",
                description=person.bio,
                public_description=person.bio,
                url=f"/user/{display_name}",
                icon_img=person.avatar,
                title=person.display_name,
                banner_img=person.banner,
            ),
        )
