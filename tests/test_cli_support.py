"""Tests for CLI logging and rich output detection."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

import pytest

from badgebot.cli.logging import configure_cli_logging, get_log_file
from badgebot.cli.rich_output import should_use_rich


class TestShouldUseRich:
    @pytest.mark.parametrize("value", ["0", "false", "no"])
    def test_override_disables(self, monkeypatch, value):
        monkeypatch.setenv("BADGEBOT_RICH", value)
        assert should_use_rich() is False

    def test_override_enables(self, monkeypatch):
        monkeypatch.setenv("BADGEBOT_RICH", "yes")
        monkeypatch.setenv("CI", "1")
        assert should_use_rich() is True

    def test_ci_disables(self, monkeypatch):
        monkeypatch.delenv("BADGEBOT_RICH", raising=False)
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("CI", "true")
        assert should_use_rich() is False

    def test_no_color_disables(self, monkeypatch):
        monkeypatch.delenv("BADGEBOT_RICH", raising=False)
        monkeypatch.setenv("NO_COLOR", "")
        assert should_use_rich() is False


class TestConfigureCliLogging:
    def test_log_file_name(self):
        assert get_log_file("update-badges", wiki="enwiki").name == "update-badges_enwiki.log"
        assert get_log_file("purge-badge-page-props").name == "purge-badge-page-props.log"

    def test_single_file_handler(self):
        configure_cli_logging("update-badges", wiki="enwiki")
        log_file = configure_cli_logging("update-badges", wiki="dewiki")

        handlers = [h for h in logging.getLogger("badgebot").handlers if isinstance(h, RotatingFileHandler)]
        assert len(handlers) == 1
        assert handlers[0].baseFilename == str(log_file)

    def test_records_are_written(self):
        log_file = configure_cli_logging("purge-badge-page-props")
        logging.getLogger("badgebot.tasks.purge_badges").info("Purged 3 pages")
        for handler in logging.getLogger("badgebot").handlers:
            handler.flush()
        assert "Purged 3 pages" in log_file.read_text()
