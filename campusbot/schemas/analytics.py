"""
Analytics schemas
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class QueryRecordResponse(BaseModel):
    """One logged exchange with its matched entry (if any)"""
    id: int
    user_message: str
    bot_response: str
    matched_knowledge_id: Optional[int] = None
    response_time_ms: int
    user_feedback: Optional[str] = None
    created_at: Optional[datetime] = None
    matched_question: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None


class FeedbackRequest(BaseModel):
    feedback: str = Field(..., min_length=1, max_length=2000)


class ResponseTimeStats(BaseModel):
    avg_response_time: float
    min_response_time: int
    max_response_time: int
    total_queries: int
    matched_queries: int
    match_rate: float


class CategoryStats(BaseModel):
    category_id: int
    category_name: str
    question_count: int
    avg_response_time: float


class AnalyticsStatsResponse(BaseModel):
    window_days: int
    response_times: ResponseTimeStats
    categories: List[CategoryStats]
