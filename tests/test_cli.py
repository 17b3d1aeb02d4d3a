"""
Tests for CLI module.
"""

import logging
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from redmine_to_gitlab_migrator.cli import confirm_range, main, parse_arguments
from redmine_to_gitlab_migrator.exceptions import ConfigurationError, UnexpectedStatusError
from redmine_to_gitlab_migrator.migrator import MigrationStats
from redmine_to_gitlab_migrator.utils import setup_logging


@pytest.mark.unit
class TestParseArguments:
    def test_defaults(self) -> None:
        args = parse_arguments([])
        assert args.configuration_filename == "config.json"
        assert args.first_ticket_number == 1
        assert args.project_ids is None
        assert args.yes is False
        assert args.verbose == 0

    def test_repeated_project_ids(self) -> None:
        args = parse_arguments(["-p", "3", "--project-id", "5", "-f", "50", "-vv"])
        assert args.project_ids == [3, 5]
        assert args.first_ticket_number == 50
        assert args.verbose == 2

    def test_first_ticket_number_must_be_positive(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            parse_arguments(["--first-ticket-number", "0"])
        assert exc_info.value.code == 2


@pytest.mark.unit
class TestConfirmRange:
    @pytest.mark.parametrize(("answer", "expected"), [("", True), ("y", True), ("Yes", True), ("n", False)])
    def test_answers(self, answer: str, expected: bool) -> None:
        with patch("builtins.input", return_value=answer) as mock_input:
            assert confirm_range(range(3, 41)) is expected
        prompt = mock_input.call_args.args[0]
        assert "#40" in prompt
        assert "starting from #3" in prompt

    def test_end_of_input_declines(self) -> None:
        with patch("builtins.input", side_effect=EOFError):
            assert confirm_range(range(1, 2)) is False


@pytest.mark.unit
class TestMain:
    """Test exit behavior of the entry point."""

    def setup_method(self) -> None:
        self.migrator: MagicMock = MagicMock()
        self.migrator.resolve_ticket_range.return_value = range(1, 4)
        self.migrator.migrate.return_value = MigrationStats(tickets_processed=3, real_issues=3)

    def _main(self, argv: list[str], *, config_error: ConfigurationError | None = None) -> Any:
        with (
            patch("redmine_to_gitlab_migrator.cli.setup_logging"),
            patch("redmine_to_gitlab_migrator.cli.load_config", side_effect=config_error) as mock_load,
            patch("redmine_to_gitlab_migrator.cli.RedmineToGitlabMigrator", return_value=self.migrator) as mock_cls,
        ):
            main(argv)
        return mock_load, mock_cls

    def test_successful_run(self, capsys: pytest.CaptureFixture[str]) -> None:
        _, mock_cls = self._main(["-y", "-p", "2", "-f", "1"])

        self.migrator.migrate.assert_called_once_with(range(1, 4))
        assert mock_cls.call_args.kwargs["project_ids"] == [2]
        assert "tickets processed: 3" in capsys.readouterr().out

    def test_configuration_error_reports_fields(self, capsys: pytest.CaptureFixture[str]) -> None:
        error = ConfigurationError("does not conform", ["In /redmine/base-uri: invalid", "In /git-lab: missing"])

        with pytest.raises(SystemExit) as exc_info:
            self._main(["-y"], config_error=error)

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "In /redmine/base-uri: invalid" in err
        assert "In /git-lab: missing" in err
        self.migrator.migrate.assert_not_called()

    def test_nothing_to_do(self) -> None:
        self.migrator.resolve_ticket_range.return_value = range(0)

        with pytest.raises(SystemExit) as exc_info:
            self._main(["-f", "50"])

        assert exc_info.value.code == 0
        self.migrator.migrate.assert_not_called()

    def test_declined_confirmation(self) -> None:
        with patch("builtins.input", return_value="n"), pytest.raises(SystemExit) as exc_info:
            self._main([])

        assert exc_info.value.code == 0
        self.migrator.migrate.assert_not_called()

    def test_fatal_error_aborts(self, caplog: pytest.LogCaptureFixture) -> None:
        self.migrator.migrate.side_effect = UnexpectedStatusError("GitLab", "issue #2", 500)

        with caplog.at_level(logging.ERROR), pytest.raises(SystemExit) as exc_info:
            self._main(["-y"])

        assert exc_info.value.code == 1
        assert "Migration failed" in caplog.text


@pytest.mark.unit
class TestSetupLogging:
    """Test setup_logging verbosity levels."""

    def _get_console_handler(self, root_logger: logging.Logger) -> logging.StreamHandler[Any]:
        console_handlers = [
            h
            for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]
        assert console_handlers, "Expected at least one console StreamHandler"
        return console_handlers[0]

    @pytest.mark.parametrize(
        ("verbosity", "level"), [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)]
    )
    def test_console_level(self, verbosity: int, level: int, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        root_logger = logging.getLogger()
        original_handlers = root_logger.handlers[:]
        original_level = root_logger.level
        root_logger.handlers.clear()

        try:
            setup_logging(verbosity=verbosity)
            assert self._get_console_handler(root_logger).level == level
            file_handlers = [h for h in root_logger.handlers if isinstance(h, logging.FileHandler)]
            assert file_handlers[0].level == logging.DEBUG
            assert (tmp_path / "migration.log").exists()
        finally:
            for h in root_logger.handlers:
                h.close()
            root_logger.handlers = original_handlers
            root_logger.setLevel(original_level)
