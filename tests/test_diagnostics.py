# tests/test_diagnostics.py

import logging
from otpimport.common.diagnostics import CollectingReporter, Diagnostic, LoggingReporter
from otpimport.importers.csv_parser import parse_csv


def test_collecting_reporter_forwards(mocker):
    downstream = mocker.MagicMock()
    reporter = CollectingReporter(forward_to=downstream)

    reporter.warning("entry_skipped", "skip", line=3)

    expected = Diagnostic("warning", "entry_skipped", "skip", {"line": 3})
    assert reporter.events() == [expected]
    downstream.report.assert_called_once_with(expected)


def test_logging_reporter_uses_log_levels(caplog):
    with caplog.at_level(logging.INFO, logger="otpimport"):
        LoggingReporter().error("entry_failed", "bad row", table=0, row=2)

    [record] = caplog.records
    assert record.levelno == logging.ERROR
    assert record.getMessage() == "bad row (table=0, row=2)"


def test_parsers_default_to_logging(caplog):
    """未注入 reporter 时，诊断信息写入标准 logging"""
    with caplog.at_level(logging.WARNING, logger="otpimport"):
        assert parse_csv("nothing useful") == []

    assert any("no data lines" in r.getMessage() for r in caplog.records)
