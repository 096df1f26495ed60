"""Duplicate detection package."""

from identity_dedup.detection.normalize import normalize_email, normalize_phone
from identity_dedup.detection.similarity import levenshtein_distance, string_similarity

__all__ = [
    "normalize_email",
    "normalize_phone",
    "levenshtein_distance",
    "string_similarity",
]
