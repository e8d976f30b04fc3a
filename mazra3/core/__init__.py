"""Core components for mazra3."""

from __future__ import annotations

from .advisory import (
    AdvisoryResponse,
    AdvisorySelector,
    Button,
    match_faq,
    planting_advice,
    respond,
)
from .context import (
    ContextStore,
    ConversationContext,
)
from .intent import (
    AnalysisResult,
    IntentType,
    LexiconError,
    MessageAnalyzer,
)
from .lexicon import Lexicon
from .service import AdvisoryService
from .text import (
    normalize,
    tokenize,
)

__all__ = [
    # Text
    "normalize",
    "tokenize",
    # Vocabulary
    "Lexicon",
    "LexiconError",
    # Analysis
    "MessageAnalyzer",
    "AnalysisResult",
    "IntentType",
    # Responses
    "AdvisorySelector",
    "AdvisoryResponse",
    "Button",
    "planting_advice",
    "respond",
    "match_faq",
    # Context
    "ContextStore",
    "ConversationContext",
    # Service
    "AdvisoryService",
]
