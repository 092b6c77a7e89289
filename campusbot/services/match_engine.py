"""
Match Engine - cascading keyword/question matching over the knowledge base
Stages run from most specific to most permissive; the first stage with a
candidate wins.
"""
import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from campusbot.core.errors import StoreUnavailableError
from campusbot.services.knowledge_store import KnowledgeEntry, KnowledgeStore
from campusbot.utils.scoring import (
    EXACT_MATCH_SCORE,
    keyword_match_count,
    keyword_score,
    select_best,
    substring_reason_score,
)
from campusbot.utils.tokenizer import normalize, tokenize

logger = logging.getLogger(__name__)


class MatchStage(str, enum.Enum):
    """Which strategy produced the match"""
    EXACT_QUESTION = "exact_question"
    KEYWORD = "keyword"
    SUBSTRING = "substring"
    WHOLE_FIELD = "whole_field"


@dataclass(frozen=True)
class MatchResult:
    """The winning entry with its score and originating stage"""
    entry: KnowledgeEntry
    score: int
    stage: MatchStage


Candidates = List[Tuple[KnowledgeEntry, int]]


class MatchEngine:
    """
    Deterministic four-stage matcher:
    1. Exact question match (after normalization)
    2. Individual keyword hits (count * 10 + priority)
    3. Substring match on question / keyword / answer
    4. Message inside the whole keywords+question+answer text

    Ties break on higher priority, then lower id.
    """

    def __init__(self, store: Optional[KnowledgeStore] = None):
        self.store = store

    def match(
        self,
        raw_message: str,
        entries: Optional[Sequence[KnowledgeEntry]] = None
    ) -> Tuple[Optional[KnowledgeEntry], int]:
        """Best entry and its score, or (None, 0)"""
        result = self.search(raw_message, entries)
        if result is None:
            return None, 0
        return result.entry, result.score

    def search(
        self,
        raw_message: str,
        entries: Optional[Sequence[KnowledgeEntry]] = None
    ) -> Optional[MatchResult]:
        """
        Run the stages in order.
        When entries are not supplied they are read from the store; an
        unavailable store counts as an empty knowledge base.
        """
        message = normalize(raw_message)
        if not message:
            return None

        if entries is None:
            entries = self._load_entries()
        if not entries:
            return None

        stages = (
            (MatchStage.EXACT_QUESTION, self._exact_question_stage),
            (MatchStage.KEYWORD, self._keyword_stage),
            (MatchStage.SUBSTRING, self._substring_stage),
            (MatchStage.WHOLE_FIELD, self._whole_field_stage),
        )
        for stage, run in stages:
            best = select_best(run(message, entries))
            if best is not None:
                entry, score = best
                logger.info(
                    "Matched entry %s via %s (score=%d): %s",
                    entry.id, stage.value, score, entry.question
                )
                return MatchResult(entry=entry, score=score, stage=stage)
            logger.debug("No candidates in stage %s for %r", stage.value, message)

        logger.info("No knowledge match for %r", message)
        return None

    def _load_entries(self) -> Sequence[KnowledgeEntry]:
        if self.store is None:
            return ()
        try:
            return self.store.active_entries()
        except StoreUnavailableError as e:
            logger.warning("Knowledge store unavailable, matching against nothing: %s", e)
            return ()

    def _exact_question_stage(
        self,
        message: str,
        entries: Sequence[KnowledgeEntry]
    ) -> Candidates:
        return [
            (entry, EXACT_MATCH_SCORE + entry.priority)
            for entry in entries
            if entry.normalized_question == message
        ]

    def _keyword_stage(
        self,
        message: str,
        entries: Sequence[KnowledgeEntry]
    ) -> Candidates:
        # Messages made only of 1-character tokens carry no usable keywords
        if not tokenize(message):
            return []

        candidates = []
        for entry in entries:
            count = keyword_match_count(entry.keywords, message)
            if count:
                candidates.append((entry, keyword_score(count, entry.priority)))
        return candidates

    def _substring_stage(
        self,
        message: str,
        entries: Sequence[KnowledgeEntry]
    ) -> Candidates:
        candidates = []
        for entry in entries:
            reason = substring_reason_score(
                in_question=message in entry.normalized_question,
                has_keyword=any(k in message for k in entry.keywords),
                in_answer=message in entry.normalized_answer
            )
            if reason:
                candidates.append((entry, reason + entry.priority))
        return candidates

    def _whole_field_stage(
        self,
        message: str,
        entries: Sequence[KnowledgeEntry]
    ) -> Candidates:
        return [
            (entry, entry.priority)
            for entry in entries
            if message in entry.search_blob
        ]
