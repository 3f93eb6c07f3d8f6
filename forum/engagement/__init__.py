"""Vote/reaction ledger.

Note: Router is not exported here to avoid circular imports.
Import directly from forum.engagement.router when needed.
"""

from .models import (
    ENGAGEMENT_TABLES_CQL,
    ReactionType,
    Target,
    TargetKind,
    VoteType,
)
from .service import EngagementService, resolve_target


__all__ = [
    "ENGAGEMENT_TABLES_CQL",
    "EngagementService",
    "ReactionType",
    "Target",
    "TargetKind",
    "VoteType",
    "resolve_target",
]
