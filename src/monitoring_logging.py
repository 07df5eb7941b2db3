#!/usr/bin/env python3
"""
Logging and metrics for ingredient parsing.
Structured logging via structlog and Prometheus counters for the
master data cache and the line parser.
"""

import logging
import sys
from typing import Optional

import structlog
from prometheus_client import Counter, Histogram
from structlog.stdlib import LoggerFactory

from parser_config import config

# Master data metrics
MASTER_DATA_CACHE_OPERATIONS = Counter(
    'ingredient_master_data_cache_operations_total',
    'Master data cache lookups',
    ['result']
)
MASTER_DATA_BUILD_DURATION = Histogram(
    'ingredient_master_data_build_duration_seconds',
    'Time spent building a master data snapshot'
)
MASTER_DATA_RECORDS = Counter(
    'ingredient_master_data_records_total',
    'Records indexed per master data build',
    ['kind']
)

# Parser metrics
LINES_PARSED = Counter(
    'ingredient_lines_parsed_total',
    'Ingredient lines parsed',
    ['amount_status']
)

SERVICE_NAME = "cocktail-ingredient-parser"


def add_service_context(logger, method_name, event_dict):
    """Tag records with the service and the module that emitted them."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("component", event_dict.get("logger", "unknown"))
    return event_dict


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None):
    """Configure structured logging with Structlog."""
    level = (level or config.LOG_LEVEL).upper()
    log_format = log_format or config.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO)
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        add_service_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = structlog.processors.JSONRenderer(ensure_ascii=False) if log_format == "json" \
        else structlog.dev.ConsoleRenderer()
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
