"""Edit distance and longest-common-subsequence helpers."""

from __future__ import annotations

from typing import Sequence


def levenshtein(a: str, b: str) -> int:
    """Simple Levenshtein distance."""
    if a == b:
        return 0
    if len(a) < len(b):
        return levenshtein(b, a)
    if len(b) == 0:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a):
        curr = [i + 1]
        for j, cb in enumerate(b):
            cost = 0 if ca == cb else 1
            curr.append(min(curr[j] + 1, prev[j + 1] + 1, prev[j] + cost))
        prev = curr
    return prev[len(b)]


def similarity_ratio(a: str, b: str, distance: int | None = None) -> float:
    """``1 - distance / longest length``; two empty strings are identical."""
    if distance is None:
        distance = levenshtein(a, b)
    return 1 - distance / max(len(a), len(b), 1)


def distance_limit(a: str, b: str) -> int:
    """Maximum edit distance tolerated between two words, by the longer length."""
    max_len = max(len(a), len(b))
    if max_len <= 3:
        return 1
    if max_len <= 6:
        return 2
    if max_len <= 10:
        return 3
    return 4


def lcs_diff(expected: Sequence[str], actual: Sequence[str]) -> list[tuple[str, str]]:
    """Classic LCS diff between two token sequences.

    Returns ``(token, type)`` pairs in rendering order where type is
    "match" (in both), "missing" (expected only) or "extra" (actual only).
    On ties a missing expected token is emitted before an extra one.
    """
    n, m = len(expected), len(actual)
    # suffix table: lcs[i][j] = LCS length of expected[i:] and actual[j:]
    lcs = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        for j in range(m - 1, -1, -1):
            if expected[i] == actual[j]:
                lcs[i][j] = lcs[i + 1][j + 1] + 1
            else:
                lcs[i][j] = max(lcs[i + 1][j], lcs[i][j + 1])

    out: list[tuple[str, str]] = []
    i = j = 0
    while i < n and j < m:
        if expected[i] == actual[j]:
            out.append((expected[i], "match"))
            i += 1
            j += 1
        elif lcs[i + 1][j] >= lcs[i][j + 1]:
            out.append((expected[i], "missing"))
            i += 1
        else:
            out.append((actual[j], "extra"))
            j += 1
    out.extend((token, "missing") for token in expected[i:])
    out.extend((token, "extra") for token in actual[j:])
    return out
