"""Comment tree.

Note: Router is not exported here to avoid circular imports.
Import directly from forum.comments.router when needed.
"""

from .models import COMMENTS_TABLES_CQL, Comment, QuotedComment
from .service import CommentService, sanitize_content


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Comment",
    "CommentService",
    "QuotedComment",
    "sanitize_content",
]
