"""
Tests for candidate scoring and ranking helpers.
"""

from collections import namedtuple

from campusbot.utils.scoring import (
    ANSWER_SUBSTRING_SCORE,
    KEYWORD_SUBSTRING_SCORE,
    QUESTION_SUBSTRING_SCORE,
    keyword_match_count,
    keyword_score,
    select_best,
    substring_reason_score,
)

Entry = namedtuple("Entry", ["id", "priority"])


def test_keyword_match_count_counts_substring_hits():
    assert keyword_match_count(("입학", "장학금", "기숙사"), "입학 장학금 문의") == 2
    assert keyword_match_count((), "입학") == 0


def test_keyword_score():
    assert keyword_score(2, 3) == 23


def test_substring_reason_prefers_question_then_keyword_then_answer():
    assert substring_reason_score(True, True, True) == QUESTION_SUBSTRING_SCORE
    assert substring_reason_score(False, True, True) == KEYWORD_SUBSTRING_SCORE
    assert substring_reason_score(False, False, True) == ANSWER_SUBSTRING_SCORE
    assert substring_reason_score(False, False, False) == 0


def test_select_best_highest_score_wins():
    a, b = Entry(1, 9), Entry(2, 0)
    assert select_best([(a, 10), (b, 11)]) == (b, 11)


def test_select_best_ties_on_priority_then_lowest_id():
    low, high = Entry(1, 2), Entry(2, 5)
    assert select_best([(low, 10), (high, 10)]) == (high, 10)

    first, second = Entry(3, 4), Entry(8, 4)
    assert select_best([(second, 7), (first, 7)]) == (first, 7)


def test_select_best_empty():
    assert select_best([]) is None
