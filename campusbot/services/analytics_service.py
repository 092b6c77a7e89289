"""
Analytics Service - best-effort query logging and reporting
Writes never block or fail the reply path
"""
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campusbot.core.config import settings
from campusbot.core.database import SessionLocal
from campusbot.core.errors import StoreUnavailableError
from campusbot.models.analytics import QueryRecord
from campusbot.models.knowledge import KnowledgeCategory, KnowledgeItem

logger = logging.getLogger(__name__)


class AnalyticsSink(ABC):
    """Append-only destination for query records"""

    @abstractmethod
    def save(self, record: QueryRecord) -> None:
        ...


class SqlAnalyticsSink(AnalyticsSink):
    """Persists records to the chat_analytics table, one session per write"""

    def __init__(self, session_factory: Callable = SessionLocal):
        self.session_factory = session_factory

    def save(self, record: QueryRecord) -> None:
        db = self.session_factory()
        try:
            db.add(record)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailableError(f"Analytics store unavailable: {e}") from e
        finally:
            db.close()


class InMemoryAnalyticsSink(AnalyticsSink):
    """Keeps records in a list; safe for concurrent writers"""

    def __init__(self):
        self.records: List[QueryRecord] = []
        self._lock = threading.Lock()

    def save(self, record: QueryRecord) -> None:
        with self._lock:
            record.id = len(self.records) + 1
            self.records.append(record)


class AnalyticsRecorder:
    """
    Records one QueryRecord per answered message.
    In async mode writes go to a small thread pool and record() returns
    immediately. Failures are logged and dropped, never retried.
    """

    def __init__(
        self,
        sink: AnalyticsSink,
        enabled: Optional[bool] = None,
        asynchronous: Optional[bool] = None,
        max_workers: Optional[int] = None
    ):
        self.sink = sink
        self.enabled = settings.ANALYTICS_ENABLED if enabled is None else enabled
        asynchronous = settings.ANALYTICS_ASYNC if asynchronous is None else asynchronous

        self._executor: Optional[ThreadPoolExecutor] = None
        if self.enabled and asynchronous:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers or settings.ANALYTICS_MAX_WORKERS,
                thread_name_prefix="analytics"
            )

    def record(
        self,
        query: str,
        response: str,
        matched_id: Optional[int],
        elapsed: timedelta
    ) -> Optional[Future]:
        """
        Log one exchange. Returns the pending write in async mode, else None.
        """
        if not self.enabled:
            return None

        record = self.build_record(query, response, matched_id, elapsed)

        if self._executor is None:
            self._write(record)
            return None
        try:
            return self._executor.submit(self._write, record)
        except RuntimeError as e:
            # Executor already shut down
            logger.error("Analytics write dropped: %s", e)
            return None

    @staticmethod
    def build_record(
        query: str,
        response: str,
        matched_id: Optional[int],
        elapsed: timedelta
    ) -> QueryRecord:
        elapsed_ms = max(0, round(elapsed.total_seconds() * 1000))
        return QueryRecord(
            user_message=query,
            bot_response=response,
            matched_knowledge_id=matched_id,
            response_time_ms=elapsed_ms,
            created_at=datetime.utcnow()
        )

    def _write(self, record: QueryRecord):
        try:
            self.sink.save(record)
        except Exception:
            logger.exception("Failed to log analytics")

    def shutdown(self, wait: bool = True):
        """Stop accepting writes; optionally drain pending ones"""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


class AnalyticsQueries:
    """Reporting queries over chat_analytics"""

    def __init__(self, db: Session):
        self.db = db

    def list_records(self, limit: int = 100, offset: int = 0) -> List[Dict[str, Any]]:
        """Newest first, joined with the matched question and its category"""
        rows = (
            self.db.query(
                QueryRecord,
                KnowledgeItem.question,
                KnowledgeItem.category_id,
                KnowledgeCategory.name
            )
            .outerjoin(KnowledgeItem, QueryRecord.matched_knowledge_id == KnowledgeItem.id)
            .outerjoin(KnowledgeCategory, KnowledgeItem.category_id == KnowledgeCategory.id)
            .order_by(QueryRecord.created_at.desc(), QueryRecord.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return [
            {
                "id": record.id,
                "user_message": record.user_message,
                "bot_response": record.bot_response,
                "matched_knowledge_id": record.matched_knowledge_id,
                "response_time_ms": record.response_time_ms,
                "user_feedback": record.user_feedback,
                "created_at": record.created_at,
                "matched_question": question,
                "category_id": category_id,
                "category_name": category_name,
            }
            for record, question, category_id, category_name in rows
        ]

    def update_feedback(self, record_id: int, feedback: str) -> bool:
        """Attach user feedback; False when the record does not exist"""
        record = self.db.get(QueryRecord, record_id)
        if record is None:
            return False
        record.user_feedback = feedback
        self.db.commit()
        return True

    def response_time_stats(self, days: Optional[int] = None) -> Dict[str, Any]:
        since = self._window_start(days)
        avg_ms, min_ms, max_ms, total, matched = (
            self.db.query(
                func.avg(QueryRecord.response_time_ms),
                func.min(QueryRecord.response_time_ms),
                func.max(QueryRecord.response_time_ms),
                func.count(QueryRecord.id),
                func.count(QueryRecord.matched_knowledge_id)
            )
            .filter(QueryRecord.created_at >= since)
            .one()
        )
        return {
            "avg_response_time": float(avg_ms) if avg_ms is not None else 0.0,
            "min_response_time": min_ms or 0,
            "max_response_time": max_ms or 0,
            "total_queries": total,
            "matched_queries": matched,
            "match_rate": matched / total if total > 0 else 0.0,
        }

    def category_stats(self, days: Optional[int] = None) -> List[Dict[str, Any]]:
        """Questions answered per category, busiest first"""
        since = self._window_start(days)
        rows = (
            self.db.query(
                KnowledgeCategory.id,
                KnowledgeCategory.name,
                func.count(QueryRecord.id),
                func.avg(QueryRecord.response_time_ms)
            )
            .select_from(QueryRecord)
            .join(KnowledgeItem, QueryRecord.matched_knowledge_id == KnowledgeItem.id)
            .join(KnowledgeCategory, KnowledgeItem.category_id == KnowledgeCategory.id)
            .filter(QueryRecord.created_at >= since)
            .group_by(KnowledgeCategory.id, KnowledgeCategory.name)
            .order_by(func.count(QueryRecord.id).desc())
            .all()
        )
        return [
            {
                "category_id": cat_id,
                "category_name": name,
                "question_count": count,
                "avg_response_time": float(avg_ms or 0.0),
            }
            for cat_id, name, count, avg_ms in rows
        ]

    @staticmethod
    def _window_start(days: Optional[int]) -> datetime:
        days = settings.ANALYTICS_STATS_WINDOW_DAYS if days is None else days
        return datetime.utcnow() - timedelta(days=days)
