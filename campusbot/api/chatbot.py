"""
Chatbot API - message endpoint, knowledge maintenance and analytics
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from campusbot.core.config import settings
from campusbot.core.database import get_db_dependency
from campusbot.schemas.analytics import (
    AnalyticsStatsResponse,
    CategoryStats,
    FeedbackRequest,
    QueryRecordResponse,
    ResponseTimeStats,
)
from campusbot.schemas.chatbot import (
    ChatbotMessageRequest,
    ChatbotReply,
    ChatbotTestReply,
    ChatbotTestRequest,
    MatchedKnowledge,
    MatchedKnowledgeDetail,
)
from campusbot.schemas.knowledge import (
    CategoryCreate,
    CategoryResponse,
    KnowledgeCreate,
    KnowledgeResponse,
    KnowledgeUpdate,
)
from campusbot.services.analytics_service import AnalyticsQueries
from campusbot.services.chatbot_service import ChatbotAnswer, ChatbotService, get_chatbot_service
from campusbot.services.knowledge_admin_service import KnowledgeAdminService


router = APIRouter(tags=["Chatbot"])


def _matched(answer: ChatbotAnswer) -> Optional[MatchedKnowledge]:
    entry = answer.matched
    if entry is None:
        return None
    return MatchedKnowledge(
        id=entry.id,
        category_id=entry.category_id,
        category=entry.category_name,
        question=entry.question,
        priority=entry.priority,
        score=answer.score,
        stage=answer.stage.value if answer.stage else ""
    )


@router.post("/message", response_model=ChatbotReply)
def send_message(
    request: ChatbotMessageRequest,
    service: ChatbotService = Depends(get_chatbot_service)
):
    """
    Answer a chat message from the knowledge base.
    Always returns a reply; unmatched messages get a canned fallback.
    """
    answer = service.answer(request.message, chat_room_context=request.chat_room_id)

    return ChatbotReply(
        response=answer.response,
        matched_knowledge=_matched(answer),
        response_time_ms=answer.response_time_ms,
        degraded=answer.degraded
    )


@router.post("/test", response_model=ChatbotTestReply)
def test_message(
    request: ChatbotTestRequest,
    service: ChatbotService = Depends(get_chatbot_service)
):
    """Try the matcher without recording analytics (development probe)"""
    answer = service.answer(request.message, record=False)

    detail = None
    matched = _matched(answer)
    if matched is not None:
        detail = MatchedKnowledgeDetail(
            **matched.model_dump(),
            keywords=list(answer.matched.keywords)
        )

    return ChatbotTestReply(
        user_message=request.message,
        bot_response=answer.response,
        matched_knowledge=detail,
        response_time_ms=answer.response_time_ms,
        timestamp=datetime.utcnow()
    )


# ---------- knowledge maintenance ----------

@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db_dependency)):
    """Active knowledge categories"""
    try:
        return KnowledgeAdminService(db).list_categories()
    except SQLAlchemyError as e:
        raise HTTPException(status_code=503, detail=f"Knowledge store unavailable: {e}")


@router.post("/categories", response_model=CategoryResponse, status_code=201)
def create_category(
    request: CategoryCreate,
    db: Session = Depends(get_db_dependency)
):
    try:
        return KnowledgeAdminService(db).create_category(request.name, request.description)
    except SQLAlchemyError as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create category: {e}")


@router.get("/knowledge", response_model=List[KnowledgeResponse])
def list_knowledge(
    category_id: Optional[int] = None,
    db: Session = Depends(get_db_dependency)
):
    """Active knowledge entries, optionally restricted to one category"""
    try:
        return KnowledgeAdminService(db).list_entries(category_id)
    except SQLAlchemyError as e:
        raise HTTPException(status_code=503, detail=f"Knowledge store unavailable: {e}")


@router.post("/knowledge", response_model=KnowledgeResponse, status_code=201)
def create_knowledge(
    request: KnowledgeCreate,
    db: Session = Depends(get_db_dependency),
    service: ChatbotService = Depends(get_chatbot_service)
):
    """Add a knowledge entry (admin)"""
    admin = KnowledgeAdminService(db)
    if admin.get_category(request.category_id) is None:
        raise HTTPException(status_code=404, detail="Category not found")

    try:
        item = admin.create_entry(
            category_id=request.category_id,
            keywords=request.keywords,
            question=request.question,
            answer=request.answer,
            priority=request.priority
        )
    except SQLAlchemyError as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to add knowledge: {e}")

    service.invalidate_cache()
    return item


@router.put("/knowledge/{entry_id}", response_model=KnowledgeResponse)
def update_knowledge(
    entry_id: int,
    request: KnowledgeUpdate,
    db: Session = Depends(get_db_dependency),
    service: ChatbotService = Depends(get_chatbot_service)
):
    """Update a knowledge entry (admin)"""
    admin = KnowledgeAdminService(db)
    if request.category_id is not None and admin.get_category(request.category_id) is None:
        raise HTTPException(status_code=404, detail="Category not found")

    try:
        item = admin.update_entry(entry_id, **request.model_dump(exclude_unset=True))
    except SQLAlchemyError as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to update knowledge: {e}")
    if item is None:
        raise HTTPException(status_code=404, detail="Knowledge entry not found")

    service.invalidate_cache()
    return item


@router.delete("/knowledge/{entry_id}", status_code=204)
def deactivate_knowledge(
    entry_id: int,
    db: Session = Depends(get_db_dependency),
    service: ChatbotService = Depends(get_chatbot_service)
):
    """Soft-disable a knowledge entry (admin)"""
    if not KnowledgeAdminService(db).deactivate_entry(entry_id):
        raise HTTPException(status_code=404, detail="Knowledge entry not found")
    service.invalidate_cache()


# ---------- analytics ----------

@router.get("/analytics", response_model=List[QueryRecordResponse])
def list_analytics(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db_dependency)
):
    """Logged exchanges, newest first"""
    try:
        return AnalyticsQueries(db).list_records(limit=limit, offset=offset)
    except SQLAlchemyError as e:
        raise HTTPException(status_code=503, detail=f"Analytics store unavailable: {e}")


@router.get("/analytics/stats", response_model=AnalyticsStatsResponse)
def analytics_stats(
    days: int = Query(settings.ANALYTICS_STATS_WINDOW_DAYS, ge=1, le=365),
    db: Session = Depends(get_db_dependency)
):
    """Response time and per-category statistics over the last N days"""
    queries = AnalyticsQueries(db)
    try:
        response_times = queries.response_time_stats(days)
        categories = queries.category_stats(days)
    except SQLAlchemyError as e:
        raise HTTPException(status_code=503, detail=f"Analytics store unavailable: {e}")

    return AnalyticsStatsResponse(
        window_days=days,
        response_times=ResponseTimeStats(**response_times),
        categories=[CategoryStats(**row) for row in categories]
    )


@router.patch("/analytics/{record_id}/feedback", status_code=204)
def update_feedback(
    record_id: int,
    request: FeedbackRequest,
    db: Session = Depends(get_db_dependency)
):
    """Attach user feedback to a logged exchange"""
    if not AnalyticsQueries(db).update_feedback(record_id, request.feedback):
        raise HTTPException(status_code=404, detail="Analytics record not found")
