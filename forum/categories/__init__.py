"""Forum categories."""

from .models import CATEGORIES_TABLES_CQL, Category
from .service import CategoryService


__all__ = ["CATEGORIES_TABLES_CQL", "Category", "CategoryService"]
