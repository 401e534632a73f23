"""
Title similarity scoring and the duplicate decision.

Two measures are computed and the smaller one is the score, so a pair has
to agree both word by word and character by character:

- token overlap, a Jaccard ratio over title words where two long words
  also count as shared when they differ only by a small typo. Words that
  appear on one side only lower it, so "case competition" and "deloitte
  case competition" stay apart;
- token-sort ratio, robust to word reordering and to small spelling and
  formatting differences.

Titles whose numeric words differ ("ai hackathon 2023" and "ai hackathon
2024") are different editions and always score 0.

A pair is a duplicate when the score reaches PRIMARY_THRESHOLD, or when it
reaches SECONDARY_THRESHOLD and both records name the same host.
All functions here are pure and operate on already-normalized titles.
"""

from __future__ import annotations

from dataclasses import dataclass

from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

PRIMARY_THRESHOLD = 0.85
SECONDARY_THRESHOLD = 0.70

# Pairs whose shorter title is under half the longer one are never compared.
MIN_LENGTH_RATIO = 0.5

# Two different words count as shared only at this similarity or above.
TOKEN_MATCH_THRESHOLD = 0.8
MIN_FUZZY_TOKEN_LENGTH = 4


@dataclass(frozen=True)
class SimilarityResult:
    """
    Scores for one title pair and the resulting duplicate decision.
    """

    score: float
    token_score: float
    edit_score: float
    host_match: bool
    is_duplicate: bool


def length_ratio(title_a: str, title_b: str) -> float:
    longest = max(len(title_a), len(title_b))
    if longest == 0:
        return 0.0
    return min(len(title_a), len(title_b)) / longest


def numeric_tokens(title: str) -> frozenset[str]:
    return frozenset(token for token in title.split() if any(char.isdigit() for char in token))


def _tokens_match(left: str, right: str) -> bool:
    if left == right:
        return True
    if min(len(left), len(right)) < MIN_FUZZY_TOKEN_LENGTH:
        return False
    if numeric_tokens(left) or numeric_tokens(right):
        return False
    return Levenshtein.normalized_similarity(left, right) >= TOKEN_MATCH_THRESHOLD


def token_overlap(title_a: str, title_b: str) -> float:
    """
    Jaccard ratio over words, pairing each word at most once.

    Exact pairs are taken first, then remaining words are paired with the
    first unused word on the other side that passes ``_tokens_match``.
    """

    left = sorted(title_a.split())
    right = sorted(title_b.split())
    if not left or not right:
        return 0.0

    unmatched = list(right)
    pending: list[str] = []
    shared = 0
    for token in left:
        if token in unmatched:
            unmatched.remove(token)
            shared += 1
        else:
            pending.append(token)

    for token in pending:
        for candidate in unmatched:
            if _tokens_match(token, candidate):
                unmatched.remove(candidate)
                shared += 1
                break

    return shared / (len(left) + len(right) - shared)


def _component_scores(title_a: str, title_b: str) -> tuple[float, float]:
    if not title_a or not title_b:
        return 0.0, 0.0
    if length_ratio(title_a, title_b) < MIN_LENGTH_RATIO:
        return 0.0, 0.0
    if numeric_tokens(title_a) != numeric_tokens(title_b):
        return 0.0, 0.0

    # Fixed argument order keeps the score independent of call order.
    first, second = sorted((title_a, title_b))
    token_score = token_overlap(first, second)
    edit_score = fuzz.token_sort_ratio(first, second) / 100.0
    return token_score, edit_score


def title_similarity(title_a: str, title_b: str) -> float:
    """
    Combined similarity in [0, 1] for two normalized titles.
    """

    return min(_component_scores(title_a, title_b))


def hosts_match(host_a: str | None, host_b: str | None) -> bool:
    if not host_a or not host_b:
        return False
    left = host_a.strip()
    return bool(left) and left == host_b.strip()


def is_duplicate_score(score: float, *, host_match: bool) -> bool:
    if score >= PRIMARY_THRESHOLD:
        return True
    return host_match and score >= SECONDARY_THRESHOLD


def compare(
    title_a: str,
    title_b: str,
    *,
    host_a: str | None = None,
    host_b: str | None = None,
) -> SimilarityResult:
    token_score, edit_score = _component_scores(title_a, title_b)
    score = min(token_score, edit_score)
    host_match = hosts_match(host_a, host_b)
    return SimilarityResult(
        score=score,
        token_score=token_score,
        edit_score=edit_score,
        host_match=host_match,
        is_duplicate=is_duplicate_score(score, host_match=host_match),
    )


def is_duplicate(
    title_a: str,
    title_b: str,
    *,
    host_a: str | None = None,
    host_b: str | None = None,
) -> bool:
    return compare(title_a, title_b, host_a=host_a, host_b=host_b).is_duplicate
