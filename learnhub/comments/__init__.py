"""Course comment module.

A flat, chronological discussion thread per course.
"""

from .models import COMMENTS_TABLES_CQL, Comment
from .service import CommentService


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Comment",
    "CommentService",
]
