"""Deterministic reclassification of incident logs from free text. Pure, no I/O."""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Tuple

EJECTION_CATEGORY = "Ejection"

# Phrases signalling that a person was removed from the premises.
DEFAULT_EJECTION_PHRASES: Tuple[str, ...] = (
    "ejection",
    "ejected",
    "eject",
    "escorted out",
    "escorted off",
    "removed from site",
    "removed from the site",
    "removed from the venue",
    "removed from premises",
    "removed from the premises",
    "kicked out",
    "thrown out",
    "banned",
)


@dataclass(frozen=True)
class Classification:
    category: str
    matched_phrase: str


class ClassificationPolicy(Protocol):
    """Maps free text to a category, or None when the text implies no reclassification."""

    def classify(self, text: str) -> Optional[Classification]:
        ...


class KeywordEjectionPolicy:
    """
    Whole-word, case-insensitive phrase match. Phrases are tried in the order given,
    so the same text always reports the same matched phrase.
    """

    def __init__(
        self,
        category: str = EJECTION_CATEGORY,
        phrases: Iterable[str] = DEFAULT_EJECTION_PHRASES,
    ) -> None:
        self._category = category
        self._patterns = tuple(
            (phrase, re.compile(r"\b" + r"\s+".join(map(re.escape, phrase.split())) + r"\b"))
            for phrase in (p.strip().lower() for p in phrases)
            if phrase
        )
        if not self._patterns:
            raise ValueError("KeywordEjectionPolicy needs at least one phrase")

    @property
    def category(self) -> str:
        return self._category

    def classify(self, text: str) -> Optional[Classification]:
        if not isinstance(text, str) or not text.strip():
            return None
        normalized = " ".join(text.lower().split())
        for phrase, pattern in self._patterns:
            if pattern.search(normalized):
                return Classification(category=self._category, matched_phrase=phrase)
        return None
