"""Category Index

Lookup structures over the category forest: records by id, parent and
children of each category, and the root-to-leaf name path used when
enriching catalog attributes.
"""

from typing import Dict, List, Optional, Tuple, Iterable
import logging

from .. import ROOT_CATEGORY_SENTINEL, ROOT_CATEGORY_DISPLAY
from ..core.models import Category

logger = logging.getLogger(__name__)


class CategoryIndex:
    """Read-only index over one snapshot of the category list"""

    PATH_SEPARATOR = "/"

    def __init__(self, categories: Iterable[Category]):
        self._by_id: Dict[int, Category] = {}
        self._parent_of: Dict[int, Optional[int]] = {}
        self._children_of: Dict[int, List[int]] = {}

        for category in categories:
            if category.record_id in self._by_id:
                logger.warning(f"Duplicate category {category.record_id}, keeping the first entry")
                continue
            self._by_id[category.record_id] = category

        for category in self._by_id.values():
            parent_id = category.parent_category or None
            # A parent missing from the snapshot makes the node its own root
            if parent_id is not None and parent_id not in self._by_id:
                parent_id = None
            self._parent_of[category.record_id] = parent_id
            if parent_id is not None:
                self._children_of.setdefault(parent_id, []).append(category.record_id)

        self._paths: Dict[int, str] = {
            category_id: self._build_path(category_id) for category_id in self._by_id
        }

        logger.debug(f"Category index built over {len(self._by_id)} categories")

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, category_id: int) -> bool:
        return category_id in self._by_id

    def get(self, category_id: int) -> Optional[Category]:
        return self._by_id.get(category_id)

    def parent_of(self, category_id: int) -> Optional[int]:
        return self._parent_of.get(category_id)

    def children_of(self, category_id: int) -> List[int]:
        """Child ids in snapshot order"""
        return list(self._children_of.get(category_id, ()))

    def roots(self) -> List[int]:
        return [cid for cid, parent in self._parent_of.items() if parent is None]

    def path_of(self, category_id: int) -> str:
        """Root-to-leaf name path, empty for unknown ids"""
        return self._paths.get(category_id, "")

    def taxonomy(self, category_id: int) -> Tuple[str, str, str]:
        """(family, category, line) names for a product's category.

        The line is the category itself, the category its parent and the
        family its grandparent.
        """
        line = self.get(category_id)
        if line is None:
            return "", "", ""

        parent = self.get(self.parent_of(category_id)) if self.parent_of(category_id) else None
        family = None
        if parent is not None and self.parent_of(parent.record_id):
            family = self.get(self.parent_of(parent.record_id))

        return (
            family.name if family else "",
            parent.name if parent else "",
            line.name
        )

    def _display_name(self, category: Category) -> str:
        if category.name == ROOT_CATEGORY_SENTINEL:
            return ROOT_CATEGORY_DISPLAY
        return category.name

    def _build_path(self, category_id: int) -> str:
        names = []
        seen = set()
        current = category_id

        while current is not None:
            if current in seen:
                logger.warning(f"Category hierarchy cycle at {current} while building path for {category_id}")
                break
            seen.add(current)
            names.append(self._display_name(self._by_id[current]))
            current = self._parent_of.get(current)

        names.reverse()
        return self.PATH_SEPARATOR.join(names)
