"""Intent taxonomy, entity categories and confidence thresholds for mazra3.

This module defines the intent labels, the entity categories recognized in
farmer messages, and the result types produced by the analysis pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LexiconError(ValueError):
    """Raised when vocabulary tables are inconsistent or malformed."""


class IntentType(str, Enum):
    """Intents the advisory selector knows how to answer."""

    PLANTING_TIME = "planting_time"  # When to sow/transplant a crop
    IRRIGATION = "irrigation"  # Watering advice
    DISEASE_TREAT = "disease_treat"  # Disease prevention/treatment
    PEST_CONTROL = "pest_control"  # Integrated pest management
    FERTILIZATION = "fertilization"  # Fertilizer/compost advice
    SPACING = "spacing"  # Plant and row spacing
    HARVEST_TIME = "harvest_time"  # Days to maturity
    GREETING = "greeting"
    THANKS = "thanks"

    @classmethod
    def parse(cls, label: str | None) -> "IntentType | None":
        """Map a classifier label to an IntentType, or None if unknown."""
        if label is None:
            return None
        try:
            return cls(label)
        except ValueError:
            return None


class EntityCategory(str, Enum):
    """Gazetteer-backed entity categories."""

    CROP = "crop"
    DISEASE = "disease"
    PEST = "pest"


class IntentConfidence:
    """Default thresholds used across the pipeline.

    All of them are overridable through AppConfig:
    - FUZZY_FLOOR (0.78): lowest similarity accepted as a fuzzy entity match
    - CLARIFY (0.45): below this overall confidence, offer clarification buttons
    - SATURATION (3.0): raw keyword score at which intent confidence reaches 1.0
    - POSITION_WEIGHT (0.02): per-position bonus for earlier keyword hits
    - MIN_RAW_SCORE (1.0): at least one keyword hit to select an intent
    """

    FUZZY_FLOOR = 0.78
    CLARIFY = 0.45
    SATURATION = 3.0
    POSITION_WEIGHT = 0.02
    MIN_RAW_SCORE = 1.0


@dataclass(frozen=True)
class EntityMatch:
    """A recognized gazetteer entity.

    Attributes:
        value: Canonical name, or None when nothing was recognized
        score: Confidence 0.0-1.0 (1.0 for exact matches)
        matched: Normalized surface form that matched
        method: "exact" or "fuzzy" (None when nothing matched)
    """

    value: str | None = None
    score: float = 0.0
    matched: str | None = None
    method: str | None = None

    @classmethod
    def none(cls) -> "EntityMatch":
        return cls()

    @property
    def found(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class Quantity:
    """A number followed by a unit, e.g. 5 لتر."""

    value: float
    unit: str


@dataclass(frozen=True)
class IntentClassification:
    """Output of keyword-bank scoring.

    Attributes:
        intent: Best-supported intent label, or None without any keyword hit
        confidence: min(raw_score / saturation, 1.0)
        ranked: Every (intent, raw_score) pair, best first
    """

    intent: str | None
    confidence: float
    ranked: tuple[tuple[str, float], ...] = ()

    @property
    def raw_score(self) -> float:
        return self.ranked[0][1] if self.ranked else 0.0


@dataclass
class AnalysisResult:
    """Everything extracted from one message.

    Attributes:
        text: Normalized message text
        tokens: Analysis tokens (stopwords removed, affixes stripped)
        region: Region profile the message is analyzed for
        classification: Intent classification with ranked scores
        crop: Recognized crop
        disease: Recognized disease
        pest: Recognized pest
        quantity: Extracted quantity (value + unit)
        month: Extracted month number 1-12
    """

    text: str
    tokens: list[str]
    region: str
    classification: IntentClassification
    crop: EntityMatch = field(default_factory=EntityMatch)
    disease: EntityMatch = field(default_factory=EntityMatch)
    pest: EntityMatch = field(default_factory=EntityMatch)
    quantity: Quantity | None = None
    month: int | None = None

    @property
    def intent(self) -> str | None:
        return self.classification.intent

    @property
    def intent_confidence(self) -> float:
        return self.classification.confidence

    @property
    def ranked(self) -> tuple[tuple[str, float], ...]:
        return self.classification.ranked

    @property
    def confidence(self) -> float:
        """Overall confidence: the best of the individual confidences."""
        return max(
            self.classification.confidence,
            self.crop.score,
            self.disease.score,
            self.pest.score,
        )

    def to_dict(self) -> dict[str, Any]:
        """Flatten to plain values for logging and display."""
        return {
            "text": self.text,
            "tokens": list(self.tokens),
            "region": self.region,
            "intent": self.intent,
            "intent_confidence": self.intent_confidence,
            "ranked": [list(pair) for pair in self.ranked],
            "crop": self.crop.value,
            "crop_score": self.crop.score,
            "disease": self.disease.value,
            "disease_score": self.disease.score,
            "pest": self.pest.value,
            "pest_score": self.pest.score,
            "quantity": (
                {"value": self.quantity.value, "unit": self.quantity.unit}
                if self.quantity
                else None
            ),
            "month": self.month,
            "confidence": self.confidence,
        }


__all__ = [
    "AnalysisResult",
    "EntityCategory",
    "EntityMatch",
    "IntentClassification",
    "IntentConfidence",
    "IntentType",
    "LexiconError",
    "Quantity",
]
