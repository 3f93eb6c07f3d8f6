"""Member profiles, roles and the follow graph.

Note: Router is not exported here to avoid circular imports.
Import directly from forum.profiles.router when needed.
"""

from .models import PROFILES_TABLES_CQL, Profile
from .service import ProfileService


__all__ = ["PROFILES_TABLES_CQL", "Profile", "ProfileService"]
