"""
Chatbot Service - the entry point used by the API layer
message -> normalize -> match -> (answer | fallback) -> analytics
"""
import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional, Sequence

from campusbot.core.errors import StoreUnavailableError
from campusbot.services.analytics_service import AnalyticsRecorder, SqlAnalyticsSink
from campusbot.services.fallback_service import FallbackResponder
from campusbot.services.knowledge_store import (
    CachedKnowledgeStore,
    KnowledgeEntry,
    KnowledgeStore,
    SqlKnowledgeStore,
)
from campusbot.services.match_engine import MatchEngine, MatchResult, MatchStage
from campusbot.utils.tokenizer import normalize

logger = logging.getLogger(__name__)


@dataclass
class ChatbotAnswer:
    """Reply to one user message"""
    response: str
    matched: Optional[KnowledgeEntry]
    elapsed: timedelta
    score: int = 0
    stage: Optional[MatchStage] = None
    degraded: bool = False  # knowledge store was unavailable

    @property
    def matched_entry_id(self) -> Optional[int]:
        return self.matched.id if self.matched is not None else None

    @property
    def response_time_ms(self) -> int:
        return max(0, round(self.elapsed.total_seconds() * 1000))


class ChatbotService:
    """
    Answers chat messages from the knowledge base.
    Always returns a non-empty reply: store outages and unmatched
    messages fall back to canned responses, analytics never interferes.
    """

    def __init__(
        self,
        store: KnowledgeStore,
        engine: Optional[MatchEngine] = None,
        fallback: Optional[FallbackResponder] = None,
        recorder: Optional[AnalyticsRecorder] = None
    ):
        self.store = store
        self.engine = engine or MatchEngine(store)
        self.fallback = fallback or FallbackResponder()
        self.recorder = recorder

    def answer(
        self,
        raw_message: str,
        chat_room_context: Any = None,
        record: bool = True
    ) -> ChatbotAnswer:
        started = time.perf_counter()
        if chat_room_context is not None:
            logger.info("Message received for chat room %s", chat_room_context)

        normalized = normalize(raw_message)
        entries, degraded = self._load_entries() if normalized else ((), False)

        result: Optional[MatchResult] = None
        try:
            result = self.engine.search(raw_message, entries)
        except Exception:
            logger.exception("Matching failed for %r", normalized)
            degraded = True

        if result is not None and result.entry.answer.strip():
            response = result.entry.answer
        else:
            result = None
            if degraded:
                response = self.fallback.unavailable_response()
            else:
                response = self.fallback.respond(normalized)

        answer = ChatbotAnswer(
            response=response,
            matched=result.entry if result else None,
            elapsed=timedelta(seconds=time.perf_counter() - started),
            score=result.score if result else 0,
            stage=result.stage if result else None,
            degraded=degraded
        )

        if record and self.recorder is not None:
            self.recorder.record(
                raw_message,
                answer.response,
                answer.matched_entry_id,
                answer.elapsed
            )

        return answer

    def _load_entries(self) -> tuple[Sequence[KnowledgeEntry], bool]:
        try:
            return self.store.active_entries(), False
        except StoreUnavailableError as e:
            logger.error("Knowledge store unavailable, using fallback: %s", e)
            return (), True

    def invalidate_cache(self):
        """Drop the cached knowledge snapshot after administrative writes"""
        if isinstance(self.store, CachedKnowledgeStore):
            self.store.invalidate()

    def shutdown(self):
        if self.recorder is not None:
            self.recorder.shutdown(wait=True)


# Singleton instances
knowledge_cache = CachedKnowledgeStore(SqlKnowledgeStore())
chatbot_service = ChatbotService(
    store=knowledge_cache,
    recorder=AnalyticsRecorder(SqlAnalyticsSink())
)


def get_chatbot_service() -> ChatbotService:
    """FastAPI dependency"""
    return chatbot_service
