"""Message analysis orchestrator for mazra3.

This module runs the analysis pipeline on one message:
1. Normalize and tokenize (stopwords removed, affixes stripped)
2. Recognize crop, disease and pest (exact n-gram/token, then fuzzy)
3. Extract quantity and month from the normalized text
4. Classify the intent from keyword banks

Analysis is pure: gazetteers and keyword banks are built once in the
constructor and only read afterwards, so one analyzer can serve many
threads at once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..text import DEFAULT_MIN_STEM_LENGTH, normalize, tokenize
from .entities import PatternExtractor, SimilarityBackend, build_recognizers
from .patterns import IntentClassifier
from .taxonomy import AnalysisResult, EntityCategory, IntentConfidence

if TYPE_CHECKING:
    from ..lexicon import Lexicon

logger = logging.getLogger(__name__)

# Messages are short; anything longer is cut before matching
MAX_INPUT_LENGTH = 10_000


class MessageAnalyzer:
    """Turn a raw message into an AnalysisResult.

    Example:
        >>> analyzer = MessageAnalyzer()
        >>> result = analyzer.analyze("متى ازرع الطماطم؟")
        >>> result.intent, result.crop.value
        ('planting_time', 'طماطم')
    """

    def __init__(
        self,
        lexicon: Lexicon | None = None,
        similarity: SimilarityBackend | None = None,
        fuzzy_threshold: float = IntentConfidence.FUZZY_FLOOR,
        saturation: float = IntentConfidence.SATURATION,
        position_weight: float = IntentConfidence.POSITION_WEIGHT,
        min_length: int = DEFAULT_MIN_STEM_LENGTH,
        strict: bool = True,
    ) -> None:
        """Build every index up front.

        Args:
            lexicon: Vocabulary tables (built-in tables if None)
            similarity: Fuzzy similarity backend (rapidfuzz if None)
            fuzzy_threshold: Lowest accepted fuzzy entity score
            saturation: Raw intent score giving confidence 1.0
            position_weight: Per-position bonus for early keyword hits
            min_length: Affix stripping guard
            strict: Reject synonyms shared by two canonical forms

        Raises:
            LexiconError: If the vocabulary is inconsistent
        """
        if lexicon is None:
            from ..lexicon import Lexicon

            lexicon = Lexicon.default()

        self.lexicon = lexicon
        self.min_length = min_length
        self.recognizers = build_recognizers(
            lexicon,
            similarity=similarity,
            threshold=fuzzy_threshold,
            min_length=min_length,
            strict=strict,
        )
        self.extractor = PatternExtractor(lexicon.months, lexicon.units)
        self.classifier = IntentClassifier(
            lexicon.intents,
            saturation=saturation,
            position_weight=position_weight,
            min_length=min_length,
        )

    def analyze(self, text: object, region: str | None = None) -> AnalysisResult:
        """Analyze one message.

        Never raises for any input: None and empty text produce an empty
        result with confidence 0.

        Args:
            text: Raw message text
            region: Region profile id (unknown ids fall back to the default)

        Returns:
            AnalysisResult
        """
        raw = "" if text is None else str(text)
        if len(raw) > MAX_INPUT_LENGTH:
            logger.warning(f"Message truncated from {len(raw)} to {MAX_INPUT_LENGTH} chars")
            raw = raw[:MAX_INPUT_LENGTH]

        normalized = normalize(raw)
        tokens = tokenize(normalized, remove_stopwords=True, strip=True, min_length=self.min_length)

        result = AnalysisResult(
            text=normalized,
            tokens=tokens,
            region=self.lexicon.resolve_region(region),
            classification=self.classifier.classify(tokens),
            crop=self.recognizers[EntityCategory.CROP].detect(tokens),
            disease=self.recognizers[EntityCategory.DISEASE].detect(tokens),
            pest=self.recognizers[EntityCategory.PEST].detect(tokens),
            quantity=self.extractor.quantity(normalized),
            month=self.extractor.month(normalized),
        )

        logger.debug(
            f"Analyzed {normalized!r}: intent={result.intent} "
            f"crop={result.crop.value} disease={result.disease.value} "
            f"pest={result.pest.value} confidence={result.confidence:.2f}"
        )
        return result


__all__ = ["MAX_INPUT_LENGTH", "MessageAnalyzer"]
