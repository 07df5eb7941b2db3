#!/usr/bin/env python3

import sys
import unittest
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import structlog

from monitoring_logging import SERVICE_NAME, add_service_context, configure_logging


class ServiceContextTests(unittest.TestCase):
    def test_tags_service_and_component(self) -> None:
        event = add_service_context(None, "info", {"event": "master_data_built", "logger": "master_data"})
        self.assertEqual(event["service"], SERVICE_NAME)
        self.assertEqual(event["component"], "master_data")

    def test_keeps_explicit_component(self) -> None:
        event = add_service_context(None, "info", {"event": "x", "component": "cache"})
        self.assertEqual(event["component"], "cache")


class ConfigureLoggingTests(unittest.TestCase):
    def tearDown(self) -> None:
        structlog.reset_defaults()

    def test_json_renderer_chain(self) -> None:
        configure_logging(level="debug", log_format="json")
        processors = structlog.get_config()["processors"]
        self.assertIn(add_service_context, processors)
        self.assertIsInstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer_by_default(self) -> None:
        configure_logging(log_format="text")
        self.assertIsInstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)


if __name__ == "__main__":
    unittest.main()
