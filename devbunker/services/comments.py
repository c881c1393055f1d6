"""
Comment threads.

Comments nest one level: a top-level comment may have replies, and a
reply cannot itself be replied to. The API returns nested data, but the
tree is rebuilt here so that deeper replies or flat lists still render
as a single level.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from devbunker.models import Comment


MAX_COMMENT_LENGTH = 2000

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class CommentValidationError(ValueError):
    """Raised when a comment or reply cannot be posted."""
    pass


def _flatten(comments: Iterable[Comment]) -> List[Comment]:
    flat = []
    for comment in comments:
        flat.append(comment)
        flat.extend(_flatten(comment.replies))
    return flat


def _sort_key(comment: Comment):
    return comment.created_at or _EPOCH


def build_comment_tree(comments: Iterable[Comment]) -> List[Comment]:
    """
    Arrange comments as top-level comments with one level of replies.

    - Replies to replies are attached to their top-level ancestor
    - Replies whose parent is missing are shown as top-level comments
    - Both levels are ordered oldest first

    Returns:
        New Comment objects; the input is not modified.
    """
    flat = _flatten(comments)
    by_id: Dict[str, Comment] = {}
    for c in flat:
        by_id[c.id] = Comment(
            id=c.id, text=c.text, user_id=c.user_id, content_id=c.content_id,
            parent_id=c.parent_id, author_email=c.author_email,
            author_avatar=c.author_avatar, created_at=c.created_at,
        )

    def root_of(comment: Comment) -> Optional[Comment]:
        visited = set()
        current = comment
        while current.parent_id and current.parent_id in by_id:
            if current.id in visited:
                return None
            visited.add(current.id)
            current = by_id[current.parent_id]
        return current

    roots: List[Comment] = []
    for comment in by_id.values():
        root = root_of(comment)
        if root is None or root.id == comment.id:
            comment.parent_id = None
            roots.append(comment)
        else:
            comment.parent_id = root.id
            root.replies.append(comment)

    roots.sort(key=_sort_key)
    for root in roots:
        root.replies.sort(key=_sort_key)
    return roots


def count_comments(tree: Iterable[Comment]) -> int:
    return sum(1 + len(root.replies) for root in tree)


def find_top_level(tree: Iterable[Comment], comment_id: str) -> Optional[Comment]:
    for root in tree:
        if root.id == comment_id:
            return root
    return None


def validate_comment(text: Optional[str], parent_id: Optional[str] = None,
                     tree: Optional[Iterable[Comment]] = None) -> str:
    """
    Check a new comment or reply before it is sent to the API.

    Args:
        text: Comment text as typed
        parent_id: Id of the comment being replied to, if any
        tree: Current comment tree for the content item

    Returns:
        The stripped text

    Raises:
        CommentValidationError: empty or too long text, or a reply to
            something other than an existing top-level comment
    """
    text = (text or '').strip()
    if not text:
        raise CommentValidationError('Comment text is required')
    if len(text) > MAX_COMMENT_LENGTH:
        raise CommentValidationError(f'Comments are limited to {MAX_COMMENT_LENGTH} characters')
    if parent_id:
        if find_top_level(tree or [], parent_id) is None:
            raise CommentValidationError('Replies can only be added to top-level comments')
    return text
