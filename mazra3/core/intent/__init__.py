"""Message analysis for mazra3.

This package turns a farmer's free-form Arabic message into an intent,
recognized entities (crop, disease, pest, quantity, month) and a confidence
score.

The pipeline has four parts:
1. Normalization and tokenization (mazra3.core.text)
2. Gazetteer entity recognition - exact first, fuzzy above a floor
3. Quantity and month extraction
4. Keyword-bank intent classification

Example usage:
    ```python
    from mazra3.core.intent import MessageAnalyzer

    analyzer = MessageAnalyzer()
    result = analyzer.analyze("متى ازرع البندورة؟", region="med")
    assert result.intent == "planting_time"
    assert result.crop.value == "طماطم"
    assert result.crop.score == 1.0
    ```
"""

from .entities import (
    EditDistanceSimilarity,
    EntityRecognizer,
    GazetteerIndex,
    PatternExtractor,
    RapidfuzzSimilarity,
    SimilarityBackend,
    build_recognizers,
    create_similarity,
    extract_month,
    extract_quantity,
)
from .parser import MessageAnalyzer
from .patterns import IntentClassifier
from .taxonomy import (
    AnalysisResult,
    EntityCategory,
    EntityMatch,
    IntentClassification,
    IntentConfidence,
    IntentType,
    LexiconError,
    Quantity,
)

__all__ = [
    # Orchestrator
    "MessageAnalyzer",
    # Intent classification
    "IntentClassifier",
    "IntentClassification",
    # Taxonomy
    "IntentType",
    "EntityCategory",
    "IntentConfidence",
    "EntityMatch",
    "Quantity",
    "AnalysisResult",
    "LexiconError",
    # Entity recognition
    "GazetteerIndex",
    "EntityRecognizer",
    "build_recognizers",
    "PatternExtractor",
    "extract_quantity",
    "extract_month",
    # Similarity
    "SimilarityBackend",
    "RapidfuzzSimilarity",
    "EditDistanceSimilarity",
    "create_similarity",
]
