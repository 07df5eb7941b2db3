#!/usr/bin/env python3
"""
Configuration for the ingredient parser.
Defaults come from the environment; a YAML file can overlay them.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from error_handling import ConfigurationError, log_and_raise


class ParserConfig:
    """Configuration for ingredient parsing and master data resolution."""

    # Fuzzy resolution thresholds
    UNIT_MIN_SCORE = float(os.getenv("INGREDIENT_UNIT_MIN_SCORE", "0.7"))
    UNIT_OK_SCORE = float(os.getenv("INGREDIENT_UNIT_OK_SCORE", "0.85"))
    INGREDIENT_MIN_SCORE = float(os.getenv("INGREDIENT_NAME_MIN_SCORE", "0.6"))
    INGREDIENT_OK_SCORE = float(os.getenv("INGREDIENT_NAME_OK_SCORE", "0.8"))

    # Autocomplete
    SUGGESTION_LIMIT = int(os.getenv("INGREDIENT_SUGGESTION_LIMIT", "5"))

    # Base vocabulary override (YAML)
    VOCABULARY_PATH = os.getenv("INGREDIENT_VOCABULARY_PATH")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # json or text

    SCORE_KEYS = ("UNIT_MIN_SCORE", "UNIT_OK_SCORE", "INGREDIENT_MIN_SCORE", "INGREDIENT_OK_SCORE")

    def update(self, overrides: Dict[str, Any], source: Optional[str] = None) -> "ParserConfig":
        """
        Apply overrides on this instance.

        Args:
            overrides: Mapping of setting name (any case) to value
            source: Where the overrides came from, for error messages

        Returns:
            The updated configuration
        """
        for raw_key, value in overrides.items():
            key = str(raw_key).upper()
            if not hasattr(ParserConfig, key) or key == "SCORE_KEYS":
                log_and_raise(ConfigurationError(
                    f"Unknown configuration key: {raw_key}",
                    config_path=source,
                    details={"key": raw_key}
                ))

            current = getattr(self, key)
            if key in self.SCORE_KEYS:
                value = self._coerce_score(key, value, source)
            elif isinstance(current, int) and not isinstance(current, bool):
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    log_and_raise(ConfigurationError(
                        f"{key} must be an integer", config_path=source, details={"value": value}
                    ))
            setattr(self, key, value)

        return self

    def _coerce_score(self, key: str, value: Any, source: Optional[str]) -> float:
        try:
            score = float(value)
        except (TypeError, ValueError):
            log_and_raise(ConfigurationError(
                f"{key} must be a number", config_path=source, details={"value": value}
            ))
        if not 0.0 <= score <= 1.0:
            log_and_raise(ConfigurationError(
                f"{key} must be between 0 and 1", config_path=source, details={"value": score}
            ))
        return score

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: getattr(self, key)
            for key in dir(ParserConfig)
            if key.isupper() and key != "SCORE_KEYS"
        }


def load_config(config_path: Optional[Union[str, Path]] = None) -> ParserConfig:
    """
    Load parser configuration.

    Args:
        config_path: Optional YAML file whose top-level keys override defaults

    Returns:
        Parser configuration
    """
    settings = ParserConfig()
    if not config_path:
        return settings

    path = Path(config_path)
    if not path.exists():
        log_and_raise(ConfigurationError(f"Config file not found: {path}", config_path=str(path)))

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        log_and_raise(ConfigurationError(
            f"Failed to parse config {path}: {e}", config_path=str(path)
        ))

    if not isinstance(data, dict):
        log_and_raise(ConfigurationError(
            "Config file must contain a mapping", config_path=str(path)
        ))

    return settings.update(data, source=str(path))


config = ParserConfig()
