"""mazra3 Configuration.

Includes:
- AppConfig: matching thresholds, context store limits and lexicon location,
  with environment variable support

Environment Variables:
    MAZRA3_FUZZY_THRESHOLD: Lowest accepted fuzzy entity score
    MAZRA3_CLARIFY_THRESHOLD: Confidence below which buttons are offered
    MAZRA3_DEFAULT_REGION: Region profile for users without one
    MAZRA3_CONTEXT_TTL_SECONDS: Context time-to-live
    MAZRA3_SIMILARITY_BACKEND: "rapidfuzz" or "levenshtein"
    MAZRA3_LEXICON_PATH: YAML file overriding the built-in vocabulary
    MAZRA3_DEBUG: Enable debug logging
"""

import os
from dataclasses import replace
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.intent import IntentConfidence
from .core.lexicon import DEFAULT_REGION, Lexicon

ENV_PREFIX = "MAZRA3_"


class AppConfig(BaseSettings):
    """Application configuration with environment variable support.

    Configuration is loaded from environment variables with MAZRA3_ prefix.
    For example, MAZRA3_FUZZY_THRESHOLD sets fuzzy_threshold.

    Precedence (highest to lowest):
        1. Environment variables (MAZRA3_*)
        2. Config file (see load())
        3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
    )

    # Matching
    fuzzy_threshold: float = Field(default=IntentConfidence.FUZZY_FLOOR, ge=0.0, le=1.0)
    clarify_threshold: float = Field(default=IntentConfidence.CLARIFY, ge=0.0, le=1.0)
    intent_saturation: float = Field(default=IntentConfidence.SATURATION, gt=0.0)
    position_weight: float = Field(default=IntentConfidence.POSITION_WEIGHT, ge=0.0)
    min_stem_length: int = Field(default=3, ge=1)
    similarity_backend: Literal["rapidfuzz", "levenshtein"] = "rapidfuzz"

    # Responses
    max_buttons: int = Field(default=6, ge=1, le=6)
    default_region: str = DEFAULT_REGION

    # Context store
    context_ttl_seconds: float = Field(default=7200.0, gt=0.0)
    context_capacity: int = Field(default=10_000, ge=1)

    # Vocabulary
    lexicon_path: Optional[Path] = None
    strict_lexicon: bool = True

    # Logging
    log_dir: Path = Field(default_factory=lambda: Path("~/.mazra3/logs").expanduser())
    debug: bool = False

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "AppConfig":
        """Load configuration from a YAML file if it exists.

        Keys set in the environment keep their environment value.

        Args:
            path: YAML config file (skipped when None or missing)

        Returns:
            AppConfig
        """
        if path is None or not Path(path).exists():
            return cls()

        from ruamel.yaml import YAML

        yaml = YAML(typ="safe")
        with Path(path).open(encoding="utf-8") as f:
            data = yaml.load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

        file_values = {
            key: value
            for key, value in data.items()
            if f"{ENV_PREFIX}{key}".upper() not in os.environ
        }
        return cls(**file_values)

    def load_lexicon(self) -> Lexicon:
        """Vocabulary for this configuration.

        Raises:
            LexiconError: If the lexicon file is malformed or the default
                region has no calendar
        """
        lexicon = Lexicon.from_yaml(self.lexicon_path) if self.lexicon_path else Lexicon.default()
        region_set = "default_region" in self.model_fields_set
        if region_set and lexicon.default_region != self.default_region:
            lexicon = replace(lexicon, default_region=self.default_region)
        return lexicon


__all__ = ["AppConfig"]
