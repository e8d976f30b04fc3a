"""Tests for mazra3.config module.

Covers:
- AppConfig defaults and validation
- Environment variable support
- Configuration load from YAML
- Lexicon loading
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from mazra3.config import AppConfig
from mazra3.core.intent import LexiconError
from mazra3.core.lexicon import Lexicon

# ============================================================================
# AppConfig Tests
# ============================================================================


class TestAppConfig:
    """Tests for AppConfig settings."""

    def test_default_values(self):
        """AppConfig has the calibrated defaults."""
        config = AppConfig()
        assert config.fuzzy_threshold == 0.78
        assert config.clarify_threshold == 0.45
        assert config.intent_saturation == 3.0
        assert config.position_weight == 0.02
        assert config.min_stem_length == 3
        assert config.max_buttons == 6
        assert config.default_region == "med"
        assert config.context_ttl_seconds == 7200
        assert config.context_capacity == 10_000
        assert config.similarity_backend == "rapidfuzz"
        assert config.lexicon_path is None

    def test_env_override(self, monkeypatch):
        """MAZRA3_* environment variables set fields."""
        monkeypatch.setenv("MAZRA3_FUZZY_THRESHOLD", "0.9")
        monkeypatch.setenv("MAZRA3_SIMILARITY_BACKEND", "levenshtein")
        monkeypatch.setenv("MAZRA3_DEBUG", "1")
        config = AppConfig()
        assert config.fuzzy_threshold == 0.9
        assert config.similarity_backend == "levenshtein"
        assert config.debug is True

    @pytest.mark.parametrize(
        "field, value",
        [
            ("fuzzy_threshold", 1.5),
            ("clarify_threshold", -0.1),
            ("intent_saturation", 0),
            ("max_buttons", 7),
            ("max_buttons", 0),
            ("context_ttl_seconds", 0),
            ("context_capacity", 0),
            ("similarity_backend", "soundex"),
        ],
    )
    def test_invalid_values(self, field, value):
        """Out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            AppConfig(**{field: value})


class TestAppConfigLoad:
    """Tests for AppConfig.load()."""

    def test_load_none(self):
        """No path means defaults."""
        assert AppConfig.load(None).fuzzy_threshold == 0.78

    def test_load_missing_file(self, tmp_path: Path):
        """A missing file means defaults."""
        assert AppConfig.load(tmp_path / "missing.yaml").clarify_threshold == 0.45

    def test_load_yaml(self, tmp_path: Path):
        """File values override defaults."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "clarify_threshold: 0.3\n"
            "default_region: gulf_hot\n"
            "context_ttl_seconds: 600\n",
            encoding="utf-8",
        )
        config = AppConfig.load(path)
        assert config.clarify_threshold == 0.3
        assert config.default_region == "gulf_hot"
        assert config.context_ttl_seconds == 600

    def test_env_beats_file(self, tmp_path: Path, monkeypatch):
        """Environment variables take precedence over the file."""
        path = tmp_path / "config.yaml"
        path.write_text("clarify_threshold: 0.3\n", encoding="utf-8")
        monkeypatch.setenv("MAZRA3_CLARIFY_THRESHOLD", "0.6")
        assert AppConfig.load(path).clarify_threshold == 0.6

    def test_invalid_file_value(self, tmp_path: Path):
        """Invalid file values fail validation."""
        path = tmp_path / "config.yaml"
        path.write_text("fuzzy_threshold: 2\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            AppConfig.load(path)

    def test_non_mapping_file(self, tmp_path: Path):
        """The file must hold a mapping."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load(path)


class TestLoadLexicon:
    """Tests for AppConfig.load_lexicon()."""

    def test_builtin(self):
        """Without a path the built-in lexicon is used."""
        assert AppConfig().load_lexicon() == Lexicon.default()

    def test_from_file(self, tmp_path: Path):
        """lexicon_path points at a YAML override."""
        path = tmp_path / "lexicon.yaml"
        path.write_text("units: [صندوق]\n", encoding="utf-8")
        lexicon = AppConfig(lexicon_path=path).load_lexicon()
        assert lexicon.units == ("صندوق",)

    def test_default_region_applied(self):
        """An explicit default region is carried into the lexicon."""
        assert AppConfig(default_region="highland_cool").load_lexicon().default_region == "highland_cool"

    def test_unknown_default_region(self):
        """A region missing from the calendar is rejected."""
        with pytest.raises(LexiconError):
            AppConfig(default_region="mars").load_lexicon()
