"""
Knowledge models - categories and canned question/answer entries
"""
from sqlalchemy import Column, String, Text, Integer, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from campusbot.core.database import Base


class KnowledgeCategory(Base):
    """
    Groups knowledge entries (admissions, majors, campus life, ...).
    Soft-disabled through is_active, never hard-deleted.
    """
    __tablename__ = "knowledge_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    items = relationship("KnowledgeItem", back_populates="category")

    def __repr__(self):
        return f"<KnowledgeCategory(id={self.id}, name='{self.name}', active={self.is_active})>"


class KnowledgeItem(Base):
    """
    One canned answer. Keywords are stored comma-joined ("안녕,hello,hi")
    and parsed into a keyword set when the snapshot is loaded.
    """
    __tablename__ = "knowledge_base"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(Integer, ForeignKey("knowledge_categories.id"), nullable=False)

    # Matching content
    keywords = Column(Text, nullable=False, default="")
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)

    # Higher wins ties
    priority = Column(Integer, default=1, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("KnowledgeCategory", back_populates="items")

    def __repr__(self):
        return f"<KnowledgeItem(id={self.id}, question='{self.question[:30]}', priority={self.priority})>"
