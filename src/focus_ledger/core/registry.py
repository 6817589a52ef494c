"""Category registry: create, rename and guarded delete of categories."""

import logging
from typing import List, Optional

from focus_ledger.core.errors import ConflictError, NotFoundError
from focus_ledger.core.store import SessionStore, find_by_id
from focus_ledger.models.category import Category

logger = logging.getLogger(__name__)


class CategoryRegistry:
    """Named buckets that sessions are tagged with."""

    def __init__(self, store: SessionStore):
        self.store = store

    def list(self) -> List[Category]:
        return self.store.list_categories()

    def get(self, category_id: str) -> Category:
        category = self.store.get_category(category_id)
        if category is None:
            raise NotFoundError(f"category not found: {category_id}")
        return category

    def create(self, name: str) -> Optional[Category]:
        """Create a category. Blank names are ignored and return None."""
        name = (name or "").strip()
        if not name:
            logger.debug("Ignoring category with blank name")
            return None

        category = Category(name=name)
        with self.store.transaction() as state:
            state.categories.append(category)

        logger.info("Created category %s (%s)", category.name, category.id)
        return category.model_copy()

    def rename(self, category_id: str, name: str) -> Category:
        """Rename in place. A blank name leaves the category unchanged."""
        name = (name or "").strip()
        with self.store.transaction() as state:
            category = find_by_id(state.categories, category_id)
            if category is None:
                raise NotFoundError(f"category not found: {category_id}")
            if name:
                category.name = name
                logger.info("Renamed category %s to %s", category_id, name)
            return category.model_copy()

    def delete(self, category_id: str) -> None:
        """Delete a category that no completed session references."""
        with self.store.transaction() as state:
            category = find_by_id(state.categories, category_id)
            if category is None:
                raise NotFoundError(f"category not found: {category_id}")

            in_use = self.store.sessions_for_category(category_id)
            if in_use:
                logger.warning(
                    "Refusing to delete category %s: %d sessions reference it",
                    category.name,
                    len(in_use),
                )
                raise ConflictError("cannot delete category with existing sessions")

            state.categories.remove(category)

        logger.info("Deleted category %s (%s)", category.name, category_id)
