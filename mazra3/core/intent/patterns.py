"""Keyword-bank intent scoring for mazra3.

Each intent owns an ordered bank of trigger words. A message scores one point
per token found in a bank, plus a small bonus that favors tokens near the
start of the message:

    score(intent) = sum(1 + (len(tokens) - i) * position_weight
                        for i, token in enumerate(tokens) if token in bank)

The best intent is selected only with at least one hit. Confidence is the raw
score divided by a saturation constant, capped at 1.0. Ties keep bank order.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from ..text import DEFAULT_MIN_STEM_LENGTH, term_key
from .taxonomy import IntentClassification, IntentConfidence, LexiconError

logger = logging.getLogger(__name__)


class IntentClassifier:
    """Score tokens against per-intent keyword banks.

    Attributes:
        banks: Intent label -> frozenset of keys in analysis-token form
        saturation: Raw score at which confidence reaches 1.0
        position_weight: Per-position bonus for earlier hits
    """

    def __init__(
        self,
        keywords: Mapping[str, Sequence[str]],
        saturation: float = IntentConfidence.SATURATION,
        position_weight: float = IntentConfidence.POSITION_WEIGHT,
        min_length: int = DEFAULT_MIN_STEM_LENGTH,
    ) -> None:
        """Build the banks.

        Keywords are reduced with ``term_key`` so they compare equal to the
        affix-stripped analysis tokens. Multi-word keywords can never equal a
        single token and are dropped with a warning.

        Raises:
            LexiconError: If a keyword normalizes to empty or saturation <= 0
        """
        if saturation <= 0:
            raise LexiconError(f"Intent saturation must be positive, got {saturation}")

        self.saturation = saturation
        self.position_weight = position_weight
        self.banks: dict[str, frozenset[str]] = {}

        for intent, words in keywords.items():
            bank: set[str] = set()
            for word in words:
                key = term_key(word, min_length)
                if not key:
                    raise LexiconError(f"Keyword {word!r} of intent '{intent}' normalizes to empty")
                if " " in key:
                    logger.warning(f"Skipping multi-word keyword {word!r} of intent '{intent}'")
                    continue
                bank.add(key)
            self.banks[intent] = frozenset(bank)

    @property
    def intents(self) -> list[str]:
        return list(self.banks)

    def score(self, tokens: Sequence[str]) -> list[tuple[str, float]]:
        """Raw score for every intent, in bank order."""
        n = len(tokens)
        scores = []
        for intent, bank in self.banks.items():
            s = 0.0
            for i, token in enumerate(tokens):
                if token in bank:
                    s += 1 + (n - i) * self.position_weight
            scores.append((intent, s))
        return scores

    def classify(self, tokens: Sequence[str]) -> IntentClassification:
        """Select the best-supported intent.

        Args:
            tokens: Analysis tokens (normalized, stopwords removed, stripped)

        Returns:
            IntentClassification with intent None when no keyword matched
        """
        # sorted() is stable, so equal scores keep bank order
        ranked = tuple(sorted(self.score(tokens), key=lambda pair: pair[1], reverse=True))
        if not ranked:
            return IntentClassification(intent=None, confidence=0.0)

        top_intent, raw = ranked[0]
        return IntentClassification(
            intent=top_intent if raw >= IntentConfidence.MIN_RAW_SCORE else None,
            confidence=min(raw / self.saturation, 1.0),
            ranked=ranked,
        )


__all__ = ["IntentClassifier"]
