"""Tests for mazra3 keyword-bank intent classification."""

from __future__ import annotations

import pytest

from mazra3.core.intent import IntentClassifier, LexiconError
from mazra3.core.lexicon import INTENT_KEYWORDS
from mazra3.core.text import tokenize


def analysis_tokens(text: str) -> list[str]:
    return tokenize(text, remove_stopwords=True, strip=True)


class TestIntentClassifier:
    """Tests for IntentClassifier.classify()."""

    @pytest.fixture
    def classifier(self) -> IntentClassifier:
        return IntentClassifier(INTENT_KEYWORDS)

    def test_planting_question(self, classifier: IntentClassifier) -> None:
        """Two planting keywords in a three-token message."""
        result = classifier.classify(analysis_tokens("متى ازرع الطماطم"))
        assert result.intent == "planting_time"
        # (1 + 3 * 0.02) + (1 + 2 * 0.02)
        assert result.raw_score == pytest.approx(2.10)
        assert result.confidence == pytest.approx(0.70)

    def test_position_weight(self, classifier: IntentClassifier) -> None:
        """Earlier hits weigh slightly more."""
        early = classifier.classify(["ري", "خيار", "طماطم"])
        late = classifier.classify(["خيار", "طماطم", "ري"])
        assert early.raw_score == pytest.approx(1.06)
        assert late.raw_score == pytest.approx(1.02)

    def test_no_keyword(self, classifier: IntentClassifier) -> None:
        """Without a keyword hit the intent is None and confidence 0."""
        result = classifier.classify(analysis_tokens("السيارة سريعة"))
        assert result.intent is None
        assert result.confidence == 0.0
        assert len(result.ranked) == len(INTENT_KEYWORDS)

    def test_empty_tokens(self, classifier: IntentClassifier) -> None:
        """An empty message is not an error."""
        result = classifier.classify([])
        assert result.intent is None
        assert result.confidence == 0.0

    def test_ranked_descending(self, classifier: IntentClassifier) -> None:
        """Ranked scores are sorted best first."""
        result = classifier.classify(analysis_tokens("مكافحة المن"))
        scores = [score for _, score in result.ranked]
        assert scores == sorted(scores, reverse=True)
        assert result.intent == "pest_control"

    def test_stripped_keywords_match(self, classifier: IntentClassifier) -> None:
        """Keywords with the definite article match stripped tokens."""
        result = classifier.classify(analysis_tokens("اللفحة"))
        assert result.intent == "disease_treat"

    def test_tie_keeps_bank_order(self) -> None:
        """Equal scores resolve to the first bank."""
        classifier = IntentClassifier({"first": ["ري"], "second": ["ري"]})
        assert classifier.classify(["ري"]).intent == "first"

        reversed_banks = IntentClassifier({"second": ["ري"], "first": ["ري"]})
        assert reversed_banks.classify(["ري"]).intent == "second"

    def test_monotonic_and_saturating(self) -> None:
        """Confidence never drops as hits increase and caps at 1.0."""
        classifier = IntentClassifier({"irrigation": ["ري"]})
        previous = 0.0
        for hits in range(1, 7):
            result = classifier.classify(["ري"] * hits)
            assert result.confidence >= previous
            previous = result.confidence
            if result.raw_score >= 3:
                assert result.confidence == 1.0
        assert previous == 1.0

    def test_saturation_configurable(self) -> None:
        """A higher saturation lowers confidence for the same hits."""
        classifier = IntentClassifier({"irrigation": ["ري"]}, saturation=6.0, position_weight=0.0)
        assert classifier.classify(["ري", "ري", "ري"]).confidence == pytest.approx(0.5)

    def test_multi_word_keyword_skipped(self) -> None:
        """Keywords that cannot equal a single token are left out."""
        classifier = IntentClassifier({"harvest_time": ["كم يوم", "حصاد"]})
        assert classifier.banks["harvest_time"] == frozenset({"حصاد"})

    def test_empty_keyword_rejected(self) -> None:
        """Keywords that normalize to nothing are a build error."""
        with pytest.raises(LexiconError, match="normalizes to empty"):
            IntentClassifier({"fertilization": ["npk"]})

    def test_invalid_saturation(self) -> None:
        """Saturation must be positive."""
        with pytest.raises(LexiconError):
            IntentClassifier(INTENT_KEYWORDS, saturation=0)
