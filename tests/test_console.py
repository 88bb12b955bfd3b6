"""Tests for console.py module."""

from unittest.mock import patch

from rich.table import Table

from ehrbase_seal import console
from ehrbase_seal.models import CheckId, CheckResult, CheckStatus, FailureKind, ValidationReport


class TestConsoleOutput:
    """Tests for console output functions."""

    def test_info_message(self):
        """Test info message format."""
        with patch.object(console.console, "print") as mock_print:
            console.info("Enter the passwords")
            mock_print.assert_called_once()
            call_arg = mock_print.call_args[0][0]
            assert "ℹ" in call_arg
            assert "Enter the passwords" in call_arg

    def test_success_message(self):
        """Test success message format."""
        with patch.object(console.console, "print") as mock_print:
            console.success("Sealed")
            call_arg = mock_print.call_args[0][0]
            assert "✓" in call_arg
            assert "Sealed" in call_arg

    def test_warning_and_error_markers(self):
        """Test warning and error use distinct markers."""
        with patch.object(console.console, "print") as mock_print:
            console.warning("Careful")
            console.error("Broken")
            assert "⚠" in mock_print.call_args_list[0][0][0]
            assert "✗" in mock_print.call_args_list[1][0][0]

    def test_action_and_step_markers(self):
        """Test action and step markers."""
        with patch.object(console.console, "print") as mock_print:
            console.action("Generating")
            console.step("Sealing ehrbase-redis")
            assert "→" in mock_print.call_args_list[0][0][0]
            assert "•" in mock_print.call_args_list[1][0][0]

    def test_highlight_returns_markup(self):
        """Test highlight returns Rich markup."""
        assert console.highlight("ehrbase") == "[highlight]ehrbase[/highlight]"

    def test_newline(self):
        """Test newline prints empty line."""
        with patch.object(console.console, "print") as mock_print:
            console.newline()
            mock_print.assert_called_once_with()


class TestConsoleProgress:
    """Tests for progress bar creation."""

    def test_create_task_progress(self):
        """Test task progress bar creation."""
        progress = console.create_task_progress()
        assert progress is not None


class TestConsoleSummaryPanel:
    """Tests for summary panel."""

    def test_summary_panel(self):
        """Test summary panel renders."""
        with patch.object(console.console, "print") as mock_print:
            console.summary_panel("Sealed Secrets Created", {"Namespace": "ehrbase", "Scope": "namespace-wide"})
            mock_print.assert_called_once()


class TestReportTable:
    """Tests for the validation report table."""

    def test_report_table_has_row_per_result(self):
        """Test every result becomes one row."""
        report = ValidationReport()
        report.add(CheckResult(CheckId.SCHEMA, "redis-sealed-secret.yaml", CheckStatus.PASS, "ok"))
        report.add(
            CheckResult(
                CheckId.KEYS,
                "auth-users-sealed-secret.yaml",
                CheckStatus.FAIL,
                "missing keys: password",
                FailureKind.MISSING_KEYS,
            )
        )

        with patch.object(console.console, "print") as mock_print:
            console.report_table(report)

        table = mock_print.call_args[0][0]
        assert isinstance(table, Table)
        assert table.row_count == 2
