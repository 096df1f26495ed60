"""Edit-distance similarity used by duplicate detection."""

from __future__ import annotations


def levenshtein_distance(left: str, right: str) -> int:
    """Minimum number of single-character insertions, deletions or substitutions."""

    if len(left) < len(right):
        left, right = right, left
    if not right:
        return len(left)

    previous_row = list(range(len(right) + 1))
    for i, left_char in enumerate(left):
        current_row = [i + 1]
        for j, right_char in enumerate(right):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (left_char != right_char)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row
    return previous_row[-1]


def string_similarity(left: str, right: str) -> float:
    """Return ``(max_len - distance) / max_len`` in [0, 1].

    Case-sensitive; callers normalize before comparing. Two empty strings
    are identical.
    """

    max_len = max(len(left), len(right))
    if max_len == 0:
        return 1.0
    return (max_len - levenshtein_distance(left, right)) / max_len
