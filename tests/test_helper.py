"""Tests for the command helper and progress reporting."""

from __future__ import annotations

import io
from unittest.mock import MagicMock, patch

import pytest
from rich.console import Console

from badgebot.config import AppConfig
from badgebot.helper import CommandHelper, ProgressReporter, Verbosity
from badgebot.resolver import ConfigurationMissing
from badgebot.tasks import PurgeBadgesPageProps, UpdateBadges

CONFIG = {
    "users": {"bot": {"username": "ExampleBot", "password": "pw"}},
    "wikis": {"wikidata": {"url": "https://www.wikidata.org/w/api.php"}},
}


def _helper(verbosity=Verbosity.NORMAL, **options):
    output = io.StringIO()
    helper = CommandHelper(
        options,
        AppConfig(CONFIG),
        console=Console(file=output, width=120, color_system=None),
        verbosity=verbosity,
        use_rich=False,
    )
    return helper, output


class TestOutput:
    def test_gated_by_verbosity(self):
        helper, output = _helper(Verbosity.NORMAL)
        helper.writeln("always", Verbosity.QUIET)
        helper.writeln("normal")
        helper.writeln("chatty", Verbosity.VERBOSE)
        assert output.getvalue() == "always\nnormal\n"

    def test_write_has_no_newline(self):
        helper, output = _helper()
        helper.write(".")
        helper.write(".")
        assert output.getvalue() == ".."

    def test_markup_is_not_interpreted(self):
        helper, output = _helper()
        helper.writeln("[[Q42]] on [bold]page[/bold]")
        assert output.getvalue() == "[[Q42]] on [bold]page[/bold]\n"

    def test_long_lines_not_wrapped(self):
        helper, output = _helper()
        helper.writeln("x " * 200)
        assert output.getvalue().count("\n") == 1


class TestFactories:
    def test_unknown_repo_fails_before_connecting(self):
        helper, _ = _helper(repo="nowiki", user="bot")
        with patch("badgebot.helper.MediawikiApi") as api_cls:
            with pytest.raises(ConfigurationMissing):
                helper.get_wikibase("repo")
        api_cls.assert_not_called()

    def test_login_and_close(self):
        helper, _ = _helper(repo="wikidata", user="bot")
        with patch("badgebot.helper.MediawikiApi") as api_cls:
            wikibase = helper.get_wikibase("repo")
            api_cls.assert_called_once_with("https://www.wikidata.org/w/api.php")
            api = api_cls.return_value
            api.login.assert_called_once()
            assert wikibase.api is api

            helper.close()
            api.close.assert_called_once()

    def test_signal_queries_use_option_wiki(self):
        helper, _ = _helper(repo="wikidatawiki", database="bot")
        with patch("badgebot.helper.connect_database") as connect:
            helper.get_signal_queries("repo")
        credentials, wiki = connect.call_args.args
        assert wiki == "wikidatawiki"
        assert credentials.username == "ExampleBot"


class TestProgressReporter:
    def test_disabled_only_counts(self):
        with ProgressReporter(Console(file=io.StringIO()), 10, "x", enabled=False) as progress:
            progress.advance(4)
            progress.advance(6)
        assert progress.current == 10

    def test_renderer_failure_does_not_propagate(self):
        reporter = ProgressReporter(Console(file=io.StringIO()), 10, "x", enabled=False)
        with reporter as progress:
            broken = MagicMock()
            broken.update.side_effect = RuntimeError("terminal went away")
            progress._progress = broken
            progress.advance(3)
            progress.advance(3)
            assert progress._progress is None
        assert progress.current == 6

    def test_quiet_helper_disables_bar(self):
        helper, _ = _helper(Verbosity.QUIET)
        helper.use_rich = True
        assert helper.progress(5).enabled is False


class TestMissingConfigFailsFast:
    """Configuration errors surface before any database or API connection."""

    @pytest.mark.parametrize(
        "task, options",
        [
            (PurgeBadgesPageProps(), {"user": "nobody", "database": "bot", "repo": "wikidata", "chunk": 100}),
            (
                UpdateBadges(),
                {
                    "user": "bot",
                    "database": "nobody",
                    "repo": "wikidata",
                    "wiki": "enwiki",
                    "badge": "Q42",
                    "category": "X",
                    "summary": "s",
                },
            ),
            (
                UpdateBadges(),
                {
                    "user": "bot",
                    "database": "bot",
                    "repo": "nowiki",
                    "wiki": "enwiki",
                    "badge": "Q42",
                    "category": "X",
                    "summary": "s",
                },
            ),
        ],
    )
    def test_no_connection_attempted(self, task, options):
        helper, _ = _helper(**options)
        with (
            patch("badgebot.helper.connect_database") as connect,
            patch("badgebot.helper.MediawikiApi") as api_cls,
        ):
            with pytest.raises(ConfigurationMissing):
                task.execute(helper)
        assert connect.call_count == 0
        assert api_cls.call_count == 0

    def test_resolved_once(self):
        helper, _ = _helper(repo="wikidata", user="bot", database="bot")
        helper.resolve_all()
        with (
            patch("badgebot.helper.resolve_user") as resolve_user,
            patch("badgebot.helper.MediawikiApi"),
        ):
            helper.get_wikibase("repo")
        resolve_user.assert_not_called()
