"""Tests for scraper logging setup and structured events."""

import io
import json
import logging

import pytest

from product_scrape.logging_config import (
    ROOT_LOGGER,
    ConsoleFormatter,
    get_logger,
    log_scrape_event,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root = logging.getLogger(ROOT_LOGGER)
    root.handlers.clear()
    root.propagate = True
    root.setLevel(logging.NOTSET)


def _read_entries(log_dir):
    files = list(log_dir.glob("scrape_*.jsonl"))
    assert len(files) == 1
    return [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]


class TestSetupLogging:
    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path):
        setup_logging(log_dir=tmp_path)
        logger = setup_logging(log_dir=tmp_path)
        assert len(logger.handlers) == 2

    def test_console_only(self):
        logger = setup_logging(log_to_file=False, level=logging.WARNING)
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_file_records_debug(self, tmp_path):
        setup_logging(level=logging.WARNING, log_to_console=False, log_dir=tmp_path)
        get_logger("scraper").debug("fetching %s", "https://shop.example.com/p")

        (entry,) = _read_entries(tmp_path)
        assert entry["level"] == "DEBUG"
        assert entry["logger"] == "product_scrape.scraper"
        assert entry["message"] == "fetching https://shop.example.com/p"


class TestLogScrapeEvent:
    def test_fields_written_to_jsonl(self, tmp_path):
        setup_logging(log_to_console=False, log_dir=tmp_path)

        log_scrape_event("scrape_complete", {"url": "https://shop.example.com/p", "images": 3})
        log_scrape_event("fetch_error", {"message": "Fetch failed", "error": "timeout"}, level=logging.ERROR)

        complete, error = _read_entries(tmp_path)
        assert complete["event_type"] == "scrape_complete"
        assert complete["message"] == "scrape_complete"
        assert complete["images"] == 3
        assert error["level"] == "ERROR"
        assert error["message"] == "Fetch failed"
        assert error["error"] == "timeout"


class TestConsoleFormatter:
    def _format(self, use_color):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(ConsoleFormatter(use_color=use_color))
        record = logging.LogRecord("product_scrape", logging.WARNING, __file__, 1, "slow page", (), None)
        handler.emit(record)
        return stream.getvalue()

    def test_plain(self):
        assert "[WARNING] slow page" in self._format(use_color=False)

    def test_colored(self):
        assert "[\033[33mWARNING\033[0m] slow page" in self._format(use_color=True)


def test_get_logger_namespacing():
    assert get_logger().name == ROOT_LOGGER
    assert get_logger("scraper").name == "product_scrape.scraper"
    assert get_logger("product_scrape.cli").name == "product_scrape.cli"
