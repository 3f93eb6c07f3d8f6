"""Threads, bookmarks and watchers.

Note: Router is not exported here to avoid circular imports.
Import directly from forum.threads.router when needed.
"""

from .models import THREADS_TABLES_CQL, SearchSort, Thread
from .service import ThreadService


__all__ = ["THREADS_TABLES_CQL", "SearchSort", "Thread", "ThreadService"]
