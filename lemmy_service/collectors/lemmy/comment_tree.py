"""Rebuild reply trees from Lemmy's flat comment lists.

Lemmy returns comments flat, each carrying its ancestor path (``0.5.7``).
Comments are bucketed by parent id in one pass, then each comment picks up
the bucket keyed by its own id as its replies.
"""

from typing import Optional

import structlog

from lemmy_service.collectors.lemmy.connection import InputContext, split_identifier
from lemmy_service.collectors.lemmy.normalizer import ROOT_PARENT_ID, LemmyNormalizer, get_parent_id
from lemmy_service.collectors.lemmy.views import CommentView
from lemmy_service.models.schemas import CanonicalComment, Listing

logger = structlog.get_logger(__name__)


def build_comment_tree(
    flat_comments: list[CommentView],
    context: InputContext,
    normalizer: LemmyNormalizer,
    focused_comment_id: Optional[str] = None,
) -> list[CanonicalComment]:
    """Nest a flat comment list under its anchor.

    Args:
        flat_comments: Comments in the order the instance returned them.
        context: Context of the current call.
        normalizer: Used to map every comment exactly once.
        focused_comment_id: When set and fetched, the tree is rooted at that
            comment's level instead of at the post.

    Returns:
        Root comments in upstream order, each with ``replies`` set only when
        it has children. Empty when nothing hangs off the root.
    """
    fetched_ids = {str(view.comment.id) for view in flat_comments}
    focused_id, _ = split_identifier(focused_comment_id)

    buckets: dict[str, list[CanonicalComment]] = {}
    root_key = ROOT_PARENT_ID

    for view in flat_comments:
        parent_id = get_parent_id(view.comment.path)
        # Orphans hang off the anchor
        bucket_key = parent_id if parent_id in fetched_ids else ROOT_PARENT_ID
        buckets.setdefault(bucket_key, []).append(normalizer.transform_comment(view, context))

        if focused_id and str(view.comment.id) == focused_id:
            root_key = bucket_key

    for comments in buckets.values():
        for comment in comments:
            replies = buckets.get(comment.id)
            if replies:
                comment.replies = Listing(children=replies)

    roots = buckets.get(root_key, [])
    logger.debug(
        "lemmy_comment_tree_built",
        fetched=len(flat_comments),
        roots=len(roots),
        focused_comment_id=focused_id or None,
    )
    return roots
