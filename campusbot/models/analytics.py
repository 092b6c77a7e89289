"""
Analytics model - one row per chatbot query for response-quality tracking
"""
from sqlalchemy import Column, Text, Integer, DateTime, ForeignKey
from datetime import datetime

from campusbot.core.database import Base


class QueryRecord(Base):
    """
    Tracks a user message, the reply sent back and which entry produced it.
    matched_knowledge_id is NULL exactly when the fallback reply was used.
    """
    __tablename__ = "chat_analytics"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Exchange
    user_message = Column(Text, nullable=False)
    bot_response = Column(Text, nullable=False)

    # Matching
    matched_knowledge_id = Column(
        Integer, ForeignKey("knowledge_base.id", ondelete="SET NULL"), nullable=True
    )
    response_time_ms = Column(Integer, default=0, nullable=False)

    # User feedback (optional, set later)
    user_feedback = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<QueryRecord(id={self.id}, matched={self.matched_knowledge_id}, ms={self.response_time_ms})>"
