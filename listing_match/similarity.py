"""String similarity measures over already-normalized address text.

All functions are pure. Any ratio whose denominator would be zero is 0.
"""
from __future__ import annotations
from typing import Iterable, Set

from rapidfuzz.distance import LCSseq, Levenshtein


def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def normalized_levenshtein(a: str, b: str) -> float:
    # rapidfuzz rates two empty strings as identical
    if not a and not b:
        return 0.0
    return Levenshtein.normalized_similarity(a, b)


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    A, B = set(a), set(b)
    union = A | B
    if not union:
        return 0.0
    return len(A & B) / len(union)


def char_ngrams(s: str, n: int) -> Set[str]:
    return {s[i:i+n] for i in range(len(s) - n + 1)}


def ngram_similarity(a: str, b: str, n: int) -> float:
    return jaccard(char_ngrams(a, n), char_ngrams(b, n))


def lcs_length(a: str, b: str) -> int:
    return LCSseq.similarity(a, b)


def lcs_ratio(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return lcs_length(a, b) / longest


def tokens_are_similar(a: str, b: str) -> bool:
    """Equal, or one edit apart with lengths differing by at most one."""
    if a == b:
        return True
    if abs(len(a) - len(b)) > 1:
        return False
    return levenshtein_distance(a, b) <= 1


def fuzzy_word_match(a: str, b: str, min_len: int = 3, min_similarity: float = 0.7) -> float:
    """Share of words that have a close counterpart in the other string.

    Words of the shorter string (by word count) are matched against the other
    string; only words of at least `min_len` characters take part. The count is
    divided by the word count of the longer string.
    """
    words_a = a.split()
    words_b = b.split()
    if not words_a or not words_b:
        return 0.0
    shorter, other = (words_a, words_b) if len(words_a) <= len(words_b) else (words_b, words_a)
    candidates = [w for w in other if len(w) >= min_len]
    matched = 0
    for w in shorter:
        if len(w) < min_len:
            continue
        if any(normalized_levenshtein(w, o) >= min_similarity for o in candidates):
            matched += 1
    return matched / max(len(words_a), len(words_b))
