"""Advisory service: one inbound message in, one response record out.

The transport layer (webhook, chat gateway) calls ``handle()`` with the
sender id, the message text and an optional region override. The service
reads the sender's context, analyzes the message for the context's region,
selects the reply and records what was detected for the next turn.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .advisory import AdvisoryResponse, AdvisorySelector
from .context import ContextStore
from .intent import AnalysisResult, MessageAnalyzer, create_similarity
from .lexicon import Lexicon

if TYPE_CHECKING:
    from ..config import AppConfig

logger = logging.getLogger(__name__)


class AdvisoryService:
    """Wire analyzer, selector and context store together.

    Attributes:
        lexicon: Shared read-only vocabulary
        analyzer: Message analyzer
        selector: Response selector
        contexts: Per-user context store
    """

    def __init__(
        self,
        lexicon: Lexicon | None = None,
        analyzer: MessageAnalyzer | None = None,
        selector: AdvisorySelector | None = None,
        contexts: ContextStore | None = None,
    ) -> None:
        self.lexicon = lexicon or Lexicon.default()
        self.analyzer = analyzer or MessageAnalyzer(self.lexicon)
        self.selector = selector or AdvisorySelector(self.lexicon)
        self.contexts = contexts or ContextStore(default_region=self.lexicon.default_region)

    @classmethod
    def from_config(cls, config: AppConfig) -> AdvisoryService:
        """Build a service from application settings.

        Raises:
            LexiconError: If the configured vocabulary is inconsistent
        """
        lexicon = config.load_lexicon()
        analyzer = MessageAnalyzer(
            lexicon,
            similarity=create_similarity(config.similarity_backend),
            fuzzy_threshold=config.fuzzy_threshold,
            saturation=config.intent_saturation,
            position_weight=config.position_weight,
            min_length=config.min_stem_length,
            strict=config.strict_lexicon,
        )
        selector = AdvisorySelector(
            lexicon,
            clarify_threshold=config.clarify_threshold,
            max_buttons=config.max_buttons,
        )
        contexts = ContextStore(
            ttl_seconds=config.context_ttl_seconds,
            capacity=config.context_capacity,
            default_region=lexicon.default_region,
        )
        logger.info(
            f"Advisory service ready: regions={list(lexicon.regions)} "
            f"similarity={config.similarity_backend}"
        )
        return cls(lexicon, analyzer, selector, contexts)

    def analyze(self, user_id: str, text: object, region: str | None = None) -> AnalysisResult:
        """Analyze a message in the user's region without recording what was detected.

        The region comes from ``contexts.get()``, which creates a default
        record for a new user like any other read.
        """
        if region is None or region not in self.lexicon.calendar:
            region = self.contexts.get(user_id).region
        return self.analyzer.analyze(text, region)

    def handle(self, user_id: str, text: object, region: str | None = None) -> AdvisoryResponse:
        """Answer one message from a user.

        Args:
            user_id: Opaque sender identifier
            text: Message text
            region: Region override; unknown region ids are ignored

        Returns:
            AdvisoryResponse
        """
        context = self.contexts.get(user_id)
        if region is not None:
            if region in self.lexicon.calendar:
                if region != context.region:
                    context = self.contexts.set(user_id, region=region)
            else:
                logger.warning(f"Ignoring unknown region {region!r} for {user_id!r}")

        analysis = self.analyzer.analyze(text, context.region)
        response = self.selector.respond(analysis)

        detected: dict[str, Any] = {
            "intent": analysis.intent,
            "crop": analysis.crop.value,
            "disease": analysis.disease.value,
            "pest": analysis.pest.value,
        }
        patch = {key: value for key, value in detected.items() if value is not None}
        if patch:
            self.contexts.set(user_id, patch)

        return response

    def reset(self, user_id: str) -> None:
        """Forget a user's context."""
        self.contexts.clear(user_id)


__all__ = ["AdvisoryService"]
