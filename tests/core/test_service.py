"""Tests for the mazra3 advisory service (context + analysis + selection)."""

from __future__ import annotations

import pytest

from mazra3.config import AppConfig
from mazra3.core.advisory import HELP_TEXT
from mazra3.core.context import ContextStore
from mazra3.core.intent import EditDistanceSimilarity, LexiconError
from mazra3.core.service import AdvisoryService


@pytest.fixture
def service() -> AdvisoryService:
    return AdvisoryService()


class TestHandle:
    """Tests for AdvisoryService.handle()."""

    def test_planting_turn(self, service: AdvisoryService) -> None:
        """A planting question is answered and remembered."""
        response = service.handle("u1", "متى ازرع الطماطم؟")
        assert response.intent == "planting_time"
        assert "مارس" in response.text

        ctx = service.contexts.get("u1")
        assert ctx.crop == "طماطم"
        assert ctx.intent == "planting_time"
        assert ctx.region == "med"

    def test_region_override_persists(self, service: AdvisoryService) -> None:
        """A valid region override is stored and used on later turns."""
        response = service.handle("u1", "متى ازرع الطماطم", region="gulf_hot")
        assert "الخليج الحار" in response.text
        assert service.contexts.get("u1").region == "gulf_hot"

        later = service.handle("u1", "متى ازرع الخيار")
        assert "الخليج الحار" in later.text

    def test_unknown_region_ignored(self, service: AdvisoryService) -> None:
        """Unknown region ids leave the context alone."""
        response = service.handle("u1", "متى ازرع الطماطم", region="mars")
        assert "المتوسط" in response.text
        assert service.contexts.get("u1").region == "med"

    def test_only_detected_fields_patched(self, service: AdvisoryService) -> None:
        """Fields not detected this turn keep their previous value."""
        service.handle("u1", "ري الطماطم")
        service.handle("u1", "شكرا")
        ctx = service.contexts.get("u1")
        assert ctx.crop == "طماطم"
        assert ctx.intent == "thanks"

    def test_nothing_detected(self, service: AdvisoryService) -> None:
        """Unrecognized messages get help and leave entities unset."""
        response = service.handle("u1", "السيارة سريعة")
        assert response.text == HELP_TEXT
        assert response.buttons
        ctx = service.contexts.get("u1")
        assert ctx.crop is None
        assert ctx.intent is None

    def test_users_isolated(self, service: AdvisoryService) -> None:
        """One user's region does not leak to another."""
        service.handle("u1", "مرحبا", region="highland_cool")
        assert service.contexts.get("u2").region == "med"

    def test_reset(self, service: AdvisoryService) -> None:
        """reset() forgets the user's context."""
        service.handle("u1", "ري الطماطم", region="gulf_hot")
        service.reset("u1")
        ctx = service.contexts.get("u1")
        assert ctx.region == "med"
        assert ctx.crop is None

    def test_analyze_uses_context_region(self, service: AdvisoryService) -> None:
        """analyze() reads the stored region without writing context."""
        service.contexts.set("u1", region="gulf_hot")
        assert service.analyze("u1", "مرحبا").region == "gulf_hot"
        assert service.analyze("u1", "مرحبا", region="highland_cool").region == "highland_cool"
        assert service.contexts.get("u1").intent is None

    def test_analyze_new_user_gets_default_record(self, service: AdvisoryService) -> None:
        """analyze() for an unseen user uses, and stores, a default record."""
        assert service.analyze("new", "ري الطماطم").region == "med"
        assert "new" in service.contexts
        assert service.contexts.get("new").crop is None

    @pytest.mark.parametrize("text", [None, "", 42])
    def test_malformed_input(self, service: AdvisoryService, text) -> None:
        """Malformed input still produces a reply."""
        response = service.handle("u1", text)
        assert response.text == HELP_TEXT


class TestFromConfig:
    """Tests for AdvisoryService.from_config()."""

    def test_applies_settings(self) -> None:
        """Config values reach every component."""
        config = AppConfig(
            similarity_backend="levenshtein",
            clarify_threshold=0.2,
            max_buttons=4,
            context_ttl_seconds=60,
            context_capacity=5,
        )
        service = AdvisoryService.from_config(config)
        assert service.selector.clarify_threshold == 0.2
        assert service.selector.max_buttons == 4
        assert isinstance(service.contexts, ContextStore)
        assert service.contexts.ttl_seconds == 60
        assert service.contexts.capacity == 5
        recognizer = next(iter(service.analyzer.recognizers.values()))
        assert isinstance(recognizer.similarity, EditDistanceSimilarity)

    def test_default_region(self) -> None:
        """A configured default region is used for new users."""
        service = AdvisoryService.from_config(AppConfig(default_region="gulf_hot"))
        assert service.contexts.get("u1").region == "gulf_hot"
        assert "الخليج الحار" in service.handle("u1", "متى ازرع الطماطم").text

    def test_unknown_default_region(self) -> None:
        """A default region without a calendar is rejected at startup."""
        with pytest.raises(LexiconError):
            AdvisoryService.from_config(AppConfig(default_region="mars"))

    def test_lexicon_path(self, tmp_path) -> None:
        """The lexicon file replaces the built-in vocabulary."""
        path = tmp_path / "lexicon.yaml"
        path.write_text("crops:\n  تفاح: [تفاح]\n", encoding="utf-8")
        service = AdvisoryService.from_config(AppConfig(lexicon_path=path))
        assert service.handle("u1", "ري التفاح").crop == "تفاح"
