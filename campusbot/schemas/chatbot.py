"""
Chatbot schemas for the message API
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from campusbot.core.config import settings


class ChatbotMessageRequest(BaseModel):
    """A user message sent to the chatbot"""
    message: str = Field(..., min_length=1, max_length=settings.MAX_MESSAGE_LENGTH)
    chat_room_id: Optional[int] = None  # passed through for logging only


class ChatbotTestRequest(BaseModel):
    """Development probe, nothing is recorded"""
    message: str = Field(..., min_length=1, max_length=settings.MAX_MESSAGE_LENGTH)


class MatchedKnowledge(BaseModel):
    """The knowledge entry that produced the reply"""
    id: int
    category_id: int
    category: Optional[str] = None
    question: str
    priority: int
    score: int
    stage: str


class MatchedKnowledgeDetail(MatchedKnowledge):
    keywords: List[str]


class ChatbotReply(BaseModel):
    """Reply to a chat message"""
    response: str
    matched_knowledge: Optional[MatchedKnowledge] = None
    response_time_ms: int
    degraded: bool = False


class ChatbotTestReply(BaseModel):
    user_message: str
    bot_response: str
    matched_knowledge: Optional[MatchedKnowledgeDetail] = None
    response_time_ms: int
    timestamp: datetime
