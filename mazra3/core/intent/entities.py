"""Entity recognition for mazra3.

This module handles:
- Gazetteer lookup of crops, diseases and pests (exact, then fuzzy)
- Regex extraction of quantities (number + unit)
- Month extraction (dictionary names, then bare 1-12 integers)

Exact matches always win. Fuzzy matching runs only when no token (or token
n-gram) equals a cataloged synonym, and its best candidate is accepted only
at or above the fuzzy floor.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import TYPE_CHECKING, Mapping, Sequence

from rapidfuzz.distance import Levenshtein

from ..text import DEFAULT_MIN_STEM_LENGTH, ngrams, normalize, term_key
from .taxonomy import EntityCategory, EntityMatch, IntentConfidence, LexiconError, Quantity

if TYPE_CHECKING:
    from ..lexicon import Lexicon

logger = logging.getLogger(__name__)


# =============================================================================
# Similarity backends
# =============================================================================


class SimilarityBackend(ABC):
    """String similarity in [0, 1], monotonic in edit distance."""

    name: str = "base"

    @abstractmethod
    def score(self, a: str, b: str) -> float:
        """Similarity between two normalized strings (0.0 when either is empty)."""

    def __call__(self, a: str, b: str) -> float:
        return self.score(a, b)


class RapidfuzzSimilarity(SimilarityBackend):
    """Normalized Levenshtein similarity computed by rapidfuzz."""

    name = "rapidfuzz"

    def score(self, a: str, b: str) -> float:
        if not a or not b:
            return 0.0
        return float(Levenshtein.normalized_similarity(a, b))


def levenshtein(a: str, b: str) -> int:
    """Edit distance (insert/delete/substitute, unit costs)."""
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


class EditDistanceSimilarity(SimilarityBackend):
    """``1 - levenshtein(a, b) / max(len(a), len(b))`` in pure Python."""

    name = "levenshtein"

    def score(self, a: str, b: str) -> float:
        if not a or not b:
            return 0.0
        if a == b:
            return 1.0
        return 1.0 - levenshtein(a, b) / max(len(a), len(b))


SIMILARITY_BACKENDS: dict[str, type[SimilarityBackend]] = {
    RapidfuzzSimilarity.name: RapidfuzzSimilarity,
    EditDistanceSimilarity.name: EditDistanceSimilarity,
}


def create_similarity(name: str = "rapidfuzz") -> SimilarityBackend:
    """Instantiate a similarity backend by name.

    Raises:
        ValueError: If the backend name is unknown
    """
    try:
        return SIMILARITY_BACKENDS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown similarity backend '{name}'. Available: {sorted(SIMILARITY_BACKENDS)}"
        ) from None


# =============================================================================
# Gazetteer index
# =============================================================================


class GazetteerIndex:
    """Reverse lookup (normalized synonym -> canonical) for one category.

    Every synonym is indexed twice: as normalized text and as the
    affix-stripped key analysis tokens reduce to. Multi-word synonyms are
    kept as space-joined keys and matched against token n-grams.
    """

    def __init__(
        self,
        category: EntityCategory,
        reverse: Mapping[str, str],
        entries: Sequence[tuple[str, str]],
    ) -> None:
        self.category = category
        self._reverse = dict(reverse)
        self.entries: tuple[tuple[str, str], ...] = tuple(entries)
        sizes = {len(key.split()) for key in self._reverse}
        # Longest phrases first; single tokens are handled separately
        self.phrase_sizes: tuple[int, ...] = tuple(
            sorted((n for n in sizes if n > 1), reverse=True)
        )

    @classmethod
    def build(
        cls,
        category: EntityCategory,
        table: Mapping[str, Sequence[str]],
        min_length: int = DEFAULT_MIN_STEM_LENGTH,
        strict: bool = True,
    ) -> GazetteerIndex:
        """Build the index from a canonical -> synonyms table.

        The canonical name itself is always indexed as a synonym.

        Args:
            category: Entity category this index serves
            table: Canonical name -> surface forms
            min_length: Affix stripping guard (must match the tokenizer's)
            strict: Raise on a synonym claimed by two canonicals; otherwise
                log a warning and keep the last mapping

        Returns:
            GazetteerIndex

        Raises:
            LexiconError: On empty normalized synonyms, or conflicts in strict mode
        """
        reverse: dict[str, str] = {}
        entries: list[tuple[str, str]] = []
        seen: set[tuple[str, str]] = set()

        for canonical, synonyms in table.items():
            for surface in (canonical, *synonyms):
                normalized = normalize(surface)
                if not normalized:
                    raise LexiconError(
                        f"{category.value} synonym {surface!r} of {canonical!r} normalizes to empty"
                    )
                for key in dict.fromkeys((normalized, term_key(surface, min_length))):
                    owner = reverse.get(key)
                    if owner is not None and owner != canonical:
                        message = (
                            f"{category.value} synonym {key!r} maps to both "
                            f"{owner!r} and {canonical!r}"
                        )
                        if strict:
                            raise LexiconError(message)
                        logger.warning(f"{message}; keeping {canonical!r}")
                    reverse[key] = canonical
                    if (canonical, key) not in seen:
                        seen.add((canonical, key))
                        entries.append((canonical, key))

        logger.debug(f"Built {category.value} gazetteer: {len(table)} entries, {len(reverse)} keys")
        return cls(category, reverse, entries)

    def lookup(self, key: str) -> str | None:
        """Canonical name for an exact key, or None."""
        return self._reverse.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._reverse

    def __len__(self) -> int:
        return len(self._reverse)


# =============================================================================
# Entity recognizer
# =============================================================================


class EntityRecognizer:
    """Match analysis tokens against one gazetteer.

    Attributes:
        index: Gazetteer index for the category
        similarity: Similarity backend used by the fuzzy pass
        threshold: Lowest fuzzy score accepted
    """

    def __init__(
        self,
        index: GazetteerIndex,
        similarity: SimilarityBackend | None = None,
        threshold: float = IntentConfidence.FUZZY_FLOOR,
    ) -> None:
        self.index = index
        self.similarity = similarity or RapidfuzzSimilarity()
        self.threshold = threshold

    @property
    def category(self) -> EntityCategory:
        return self.index.category

    def detect(self, tokens: Sequence[str]) -> EntityMatch:
        """Recognize the category's entity in a token sequence.

        Args:
            tokens: Analysis tokens

        Returns:
            EntityMatch (value None and score 0.0 when nothing qualifies)
        """
        exact = self._exact(tokens)
        if exact is not None:
            return exact
        return self._fuzzy(tokens)

    def _exact(self, tokens: Sequence[str]) -> EntityMatch | None:
        tokens = list(tokens)
        for gram in ngrams(tokens, self.index.phrase_sizes):
            canonical = self.index.lookup(gram)
            if canonical is not None:
                return EntityMatch(canonical, 1.0, gram, "exact")
        for token in tokens:
            canonical = self.index.lookup(token)
            if canonical is not None:
                return EntityMatch(canonical, 1.0, token, "exact")
        return None

    def _fuzzy(self, tokens: Sequence[str]) -> EntityMatch:
        best = EntityMatch.none()
        for token in tokens:
            for canonical, key in self.index.entries:
                s = self.similarity(token, key)
                if s > best.score:
                    best = EntityMatch(canonical, s, key, "fuzzy")

        if best.found and best.score >= self.threshold:
            return best
        return EntityMatch.none()


# =============================================================================
# Pattern extractors
# =============================================================================


class PatternExtractor:
    """Regex/dictionary extraction of quantities and months.

    Both extractors work on normalized text and return the leftmost (or first
    dictionary) hit only.
    """

    _NUMBER = r"(\d+(?:\.\d+)?)"
    _BARE_MONTH = re.compile(r"(?<![\d.])(1[0-2]|[1-9])(?![\d.])")
    # Glued proclitics allowed before a month name (بمارس, والمارس)
    _PROCLITIC = "[وف]?[بلك]?"
    _ARTICLE = "(?:ال)?"

    def __init__(self, months: Mapping[str, int], units: Sequence[str]) -> None:
        """Compile the unit alternation and normalize the month dictionary.

        Args:
            months: Month name/phrase -> month number
            units: Unit tokens
        """
        unit_forms = [u for u in dict.fromkeys(normalize(u) for u in units) if u]
        if not unit_forms:
            raise LexiconError("At least one quantity unit is required")
        # Longest first so "ملليلتر" is not cut short at "مل"
        unit_forms.sort(key=len, reverse=True)
        alternation = "|".join(re.escape(u) for u in unit_forms)
        self._quantity_re = re.compile(rf"{self._NUMBER}\s*({alternation})")
        self._unit_after_re = re.compile(rf"\s*(?:{alternation})")

        # Longest first so "شهر 1" cannot claim the text of "شهر 10"
        names = sorted(months.items(), key=lambda item: len(normalize(item[0])), reverse=True)
        self._months: list[tuple[re.Pattern[str], int]] = []
        for name, number in names:
            normalized = normalize(name)
            if not normalized:
                raise LexiconError(f"Month name {name!r} normalizes to empty")
            self._months.append((self._month_pattern(normalized), int(number)))

    @classmethod
    def _month_pattern(cls, name: str) -> re.Pattern[str]:
        """Name at a token start, after optional proclitics; the rest of the token is free.

        Short names ("اب") take no article and must end the token, and
        numbered phrases ("شهر 1") must not run into another digit.
        """
        body = re.escape(name)
        if len(name) < 3:
            return re.compile(rf"(?<!\S){cls._PROCLITIC}{body}(?!\S)")
        end = r"(?!\d)" if name[-1].isdigit() else ""
        return re.compile(rf"(?<!\S){cls._PROCLITIC}{cls._ARTICLE}{body}{end}")

    def quantity(self, text: str) -> Quantity | None:
        """Extract the leftmost number + unit from normalized text."""
        match = self._quantity_re.search(text)
        if not match:
            return None
        return Quantity(value=float(match.group(1)), unit=match.group(2))

    def month(self, text: str) -> int | None:
        """Extract a month from normalized text.

        Dictionary names are tried first, longest name first, each matched
        as a substring starting a token (glued proclitics allowed). Otherwise the first bare 1-12 integer that is not a quantity
        is taken.
        """
        for pattern, number in self._months:
            if pattern.search(text):
                return number
        for match in self._BARE_MONTH.finditer(text):
            if self._unit_after_re.match(text, match.end()):
                continue
            return int(match.group(1))
        return None


@lru_cache(maxsize=1)
def _default_extractor() -> PatternExtractor:
    from ..lexicon import Lexicon

    lexicon = Lexicon.default()
    return PatternExtractor(lexicon.months, lexicon.units)


def extract_quantity(text: str) -> Quantity | None:
    """Extract a quantity from raw text using the built-in units."""
    return _default_extractor().quantity(normalize(text))


def extract_month(text: str) -> int | None:
    """Extract a month from raw text using the built-in month names."""
    return _default_extractor().month(normalize(text))


def build_recognizers(
    lexicon: "Lexicon",
    similarity: SimilarityBackend | None = None,
    threshold: float = IntentConfidence.FUZZY_FLOOR,
    min_length: int = DEFAULT_MIN_STEM_LENGTH,
    strict: bool = True,
) -> dict[EntityCategory, EntityRecognizer]:
    """One recognizer per entity category, sharing a similarity backend."""
    similarity = similarity or RapidfuzzSimilarity()
    return {
        category: EntityRecognizer(
            GazetteerIndex.build(category, lexicon.gazetteer(category), min_length, strict),
            similarity,
            threshold,
        )
        for category in EntityCategory
    }


__all__ = [
    "EditDistanceSimilarity",
    "EntityRecognizer",
    "GazetteerIndex",
    "PatternExtractor",
    "RapidfuzzSimilarity",
    "SIMILARITY_BACKENDS",
    "SimilarityBackend",
    "build_recognizers",
    "create_similarity",
    "extract_month",
    "extract_quantity",
    "levenshtein",
]
