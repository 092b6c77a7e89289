"""
Scoring utilities for knowledge matching and ranking
"""
from typing import List, Optional, Tuple, TypeVar


# Stage scores
EXACT_MATCH_SCORE = 100
KEYWORD_HIT_SCORE = 10

# Substring stage: strongest applicable reason wins
QUESTION_SUBSTRING_SCORE = 20
KEYWORD_SUBSTRING_SCORE = 10
ANSWER_SUBSTRING_SCORE = 1


T = TypeVar("T")


def keyword_match_count(keywords: Tuple[str, ...], normalized_message: str) -> int:
    """Number of keywords that occur as substrings of the message"""
    return sum(1 for k in keywords if k and k in normalized_message)


def keyword_score(match_count: int, priority: int) -> int:
    """Score for the individual-keyword stage"""
    return match_count * KEYWORD_HIT_SCORE + priority


def substring_reason_score(
    in_question: bool,
    has_keyword: bool,
    in_answer: bool
) -> int:
    """
    Reason score for the substring stage.
    Returns 0 when nothing applies.
    """
    if in_question:
        return QUESTION_SUBSTRING_SCORE
    if has_keyword:
        return KEYWORD_SUBSTRING_SCORE
    if in_answer:
        return ANSWER_SUBSTRING_SCORE
    return 0


def rank_key(score: int, priority: int, entry_id: int) -> Tuple[int, int, int]:
    """
    Total ordering for candidates: higher score, then higher priority,
    then lower id. Larger key wins.
    """
    return (score, priority, -entry_id)


def select_best(candidates: List[Tuple[T, int]]) -> Optional[Tuple[T, int]]:
    """
    Pick the winning (entry, score) pair.
    Entries must expose `priority` and `id`.
    """
    if not candidates:
        return None
    return max(
        candidates,
        key=lambda c: rank_key(c[1], c[0].priority, c[0].id)
    )
