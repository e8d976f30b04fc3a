"""Arabic text normalization and tokenization for mazra3.

Every string that takes part in a comparison (user messages, gazetteer
synonyms, intent keywords, month names) goes through ``normalize()`` first,
so spelling variation collapses to one form before anything is matched.

Normalization pipeline (order matters):
1. Case-fold, fold Arabic-Indic digits to ASCII
2. Arabizi digits -> Arabic letters (only inside Latin-bearing words)
3. Strip diacritics (tashkeel)
4. Remove tatweel
5. Unify letter variants (alif, ya/alif maqsura, hamza carriers, ta marbuta)
6. Drop anything that is not an Arabic letter, a digit or whitespace
   (a decimal point survives only between two digits)
7. De-elongate runs of 3+ identical letters
8. Collapse whitespace and trim
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable

# =============================================================================
# Character tables
# =============================================================================

# Arabizi: digits used as stand-ins for Arabic letters in Latin-script chat
ARABIZI: dict[str, str] = {
    "2": "ء",
    "3": "ع",
    "4": "غ",
    "5": "خ",
    "6": "ط",
    "7": "ح",
    "8": "ق",
    "9": "ص",
}

# Arabic-Indic and Eastern Arabic-Indic digits, Arabic decimal separator
_DIGIT_FOLD = str.maketrans("٠١٢٣٤٥٦٧٨٩۰۱۲۳۴۵۶۷۸۹\u066b", "01234567890123456789.")

_LETTER_UNIFY = str.maketrans(
    {
        "إ": "ا",
        "أ": "ا",
        "آ": "ا",
        "ٱ": "ا",
        "ى": "ي",
        "ی": "ي",
        "ئ": "ي",
        "ؤ": "و",
        "ة": "ه",
        "ک": "ك",
    }
)

_DIACRITICS_RE = re.compile(r"[\u0610-\u061A\u064B-\u065F\u0670\u06D6-\u06ED]")
_TATWEEL = "\u0640"
_LATIN_WORD_RE = re.compile(r"\S*[a-z]\S*")
_ARABIZI_DIGIT_RE = re.compile(r"[2-9]")
_DISALLOWED_RE = re.compile(r"[^\u0621-\u064A0-9\s.]")
_STRAY_POINT_RE = re.compile(r"(?<!\d)\.|\.(?!\d)")
_ELONGATION_RE = re.compile(r"([^\W\d_])\1{2,}")
_SPACE_RE = re.compile(r"\s+")

# =============================================================================
# Stopwords and affixes
# =============================================================================

# Function words that carry no topic signal (normalized at import time)
_RAW_STOPWORDS = (
    "في", "على", "عن", "مع", "الى", "إلى", "من", "ال", "و", "يا", "هل",
    "ما", "ماذا", "كيف", "وين", "هو", "هي", "هم", "هذا", "هذه", "ذلك",
    "تلك", "هناك", "هنا", "انا", "انت", "انتي", "انتِ", "كان", "كانت",
    "يكون", "يكونوا", "ثم", "اي", "أو", "او", "لا", "نعم",
)

# Longest first; single-letter clitics are left alone (they eat short roots)
PREFIXES: tuple[str, ...] = ("وال", "بال", "كال", "فال", "لل", "ال")
SUFFIXES: tuple[str, ...] = ("هما", "كما", "ها", "هم", "هن", "كم", "كن", "نا", "ات", "ين", "ون", "ان")

DEFAULT_MIN_STEM_LENGTH = 3


def _arabizi_word(match: re.Match[str]) -> str:
    return _ARABIZI_DIGIT_RE.sub(lambda d: ARABIZI[d.group()], match.group())


def normalize(text: object) -> str:
    """Canonicalize raw text into normalized Arabic script.

    Total over any input: ``None`` becomes ``""`` and non-strings are
    stringified. Idempotent: ``normalize(normalize(x)) == normalize(x)``.

    Args:
        text: Raw message text

    Returns:
        Normalized text (may be empty)
    """
    if text is None:
        return ""
    x = unicodedata.normalize("NFKC", str(text)).casefold().translate(_DIGIT_FOLD)
    x = _LATIN_WORD_RE.sub(_arabizi_word, x)
    x = _DIACRITICS_RE.sub("", x)
    x = x.replace(_TATWEEL, "")
    x = x.translate(_LETTER_UNIFY)
    x = _DISALLOWED_RE.sub(" ", x)
    x = _STRAY_POINT_RE.sub(" ", x)
    x = _ELONGATION_RE.sub(r"\1", x)
    return _SPACE_RE.sub(" ", x).strip()


STOPWORDS: frozenset[str] = frozenset(normalize(w) for w in _RAW_STOPWORDS)


def strip_affixes(token: str, min_length: int = DEFAULT_MIN_STEM_LENGTH) -> str:
    """Strip one known prefix and one known suffix from a token.

    Each strip is applied only if at least ``min_length`` characters remain.

    Args:
        token: A normalized token
        min_length: Shortest stem that may be left behind

    Returns:
        The stripped token (unchanged if nothing applied)
    """
    for prefix in PREFIXES:
        if token.startswith(prefix) and len(token) - len(prefix) >= min_length:
            token = token[len(prefix):]
            break
    for suffix in SUFFIXES:
        if token.endswith(suffix) and len(token) - len(suffix) >= min_length:
            token = token[: -len(suffix)]
            break
    return token


def tokenize(
    text: object,
    remove_stopwords: bool = False,
    strip: bool = False,
    min_length: int = DEFAULT_MIN_STEM_LENGTH,
) -> list[str]:
    """Normalize text and split it into word tokens.

    Stopwords are checked before affix stripping so "من" (from) is dropped
    while "المن" (aphids) survives.

    Args:
        text: Raw or normalized text
        remove_stopwords: Drop tokens found in STOPWORDS
        strip: Apply strip_affixes() to each token
        min_length: Affix stripping guard

    Returns:
        Tokens in input order (repeats preserved)
    """
    tokens = normalize(text).split()
    if remove_stopwords:
        tokens = [t for t in tokens if t not in STOPWORDS]
    if strip:
        tokens = [strip_affixes(t, min_length) for t in tokens]
    return tokens


def term_key(term: str, min_length: int = DEFAULT_MIN_STEM_LENGTH) -> str:
    """Reduce a vocabulary entry to the form analysis tokens take.

    Used at build time so keyword banks and gazetteers compare like with like.
    """
    return " ".join(tokenize(term, strip=True, min_length=min_length))


def ngrams(tokens: list[str], sizes: Iterable[int]) -> list[str]:
    """Space-joined contiguous token n-grams for each requested size."""
    grams: list[str] = []
    for n in sizes:
        if n < 1:
            continue
        grams.extend(" ".join(tokens[i : i + n]) for i in range(len(tokens) - n + 1))
    return grams


__all__ = [
    "ARABIZI",
    "PREFIXES",
    "STOPWORDS",
    "SUFFIXES",
    "ngrams",
    "normalize",
    "strip_affixes",
    "term_key",
    "tokenize",
]
