"""
Knowledge Admin Service - category and entry maintenance
Entries are soft-disabled, never deleted
"""
import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from campusbot.models.knowledge import KnowledgeCategory, KnowledgeItem
from campusbot.utils.tokenizer import parse_keywords

logger = logging.getLogger(__name__)


def join_keywords(keywords: Union[str, Iterable[str], None]) -> str:
    """Store keywords in their comma-joined column form"""
    return ",".join(parse_keywords(keywords))


class KnowledgeAdminService:
    """CRUD for the knowledge base tables"""

    def __init__(self, db: Session):
        self.db = db

    # ---------- categories ----------

    def list_categories(self, include_inactive: bool = False) -> List[KnowledgeCategory]:
        query = self.db.query(KnowledgeCategory)
        if not include_inactive:
            query = query.filter(KnowledgeCategory.is_active == True)
        return query.order_by(KnowledgeCategory.id).all()

    def create_category(self, name: str, description: Optional[str] = None) -> KnowledgeCategory:
        category = KnowledgeCategory(name=name, description=description, is_active=True)
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        logger.info("Created knowledge category %s (%s)", category.id, name)
        return category

    def get_category(self, category_id: int) -> Optional[KnowledgeCategory]:
        return self.db.get(KnowledgeCategory, category_id)

    # ---------- entries ----------

    def list_entries(self, category_id: Optional[int] = None) -> List[KnowledgeItem]:
        """Active entries of active categories, highest priority first"""
        query = (
            self.db.query(KnowledgeItem)
            .join(KnowledgeCategory, KnowledgeItem.category_id == KnowledgeCategory.id)
            .filter(KnowledgeItem.is_active == True, KnowledgeCategory.is_active == True)
        )
        if category_id is not None:
            query = query.filter(KnowledgeItem.category_id == category_id)
        return query.order_by(
            KnowledgeCategory.id, KnowledgeItem.priority.desc(), KnowledgeItem.id
        ).all()

    def get_entry(self, entry_id: int) -> Optional[KnowledgeItem]:
        return self.db.get(KnowledgeItem, entry_id)

    def create_entry(
        self,
        category_id: int,
        keywords: Union[str, Iterable[str]],
        question: str,
        answer: str,
        priority: int = 1
    ) -> KnowledgeItem:
        item = KnowledgeItem(
            category_id=category_id,
            keywords=join_keywords(keywords),
            question=question,
            answer=answer,
            priority=priority,
            is_active=True
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info("Created knowledge entry %s in category %s", item.id, category_id)
        return item

    def update_entry(self, entry_id: int, **changes) -> Optional[KnowledgeItem]:
        """Apply the given field changes; None when the entry does not exist"""
        item = self.get_entry(entry_id)
        if item is None:
            return None

        for field_name in ("category_id", "question", "answer", "priority", "is_active"):
            value = changes.get(field_name)
            if value is not None:
                setattr(item, field_name, value)
        if changes.get("keywords") is not None:
            item.keywords = join_keywords(changes["keywords"])

        self.db.commit()
        self.db.refresh(item)
        logger.info("Updated knowledge entry %s", entry_id)
        return item

    def deactivate_entry(self, entry_id: int) -> bool:
        item = self.get_entry(entry_id)
        if item is None:
            return False
        item.is_active = False
        self.db.commit()
        logger.info("Deactivated knowledge entry %s", entry_id)
        return True
