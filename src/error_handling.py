#!/usr/bin/env python3
"""
Error types for ingredient processing.
The parse path never raises; these cover configuration and vocabulary loading.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


class ErrorCategory(Enum):
    CONFIGURATION = "configuration"
    VOCABULARY = "vocabulary"
    PROCESSING = "processing"


class IngredientProcessingError(Exception):
    """Base exception for ingredient processing errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None,
                 category: ErrorCategory = ErrorCategory.PROCESSING):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.category = category
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class ConfigurationError(IngredientProcessingError):
    """Configuration file could not be read or holds invalid values."""

    def __init__(self, message: str, config_path: Optional[str] = None, **kwargs):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)
        self.config_path = config_path


class VocabularyError(IngredientProcessingError):
    """Vocabulary file is malformed."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        super().__init__(message, category=ErrorCategory.VOCABULARY, **kwargs)
        self.source = source


def log_and_raise(error: IngredientProcessingError) -> None:
    """Log a structured error record, then raise it."""
    logger.error("ingredient_processing_error", **error.to_dict())
    raise error
