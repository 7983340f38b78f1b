"""Tests for structured logging helpers."""

import logging

from knowbase.core.exceptions import BlobFetchError
from knowbase.core.ingestion.models import SourceKind, TextDetails
from knowbase.observability import log_exception_with_context, log_with_context, safe_log_value


class TestSafeLogValue:
    def test_values_summarized(self) -> None:
        assert safe_log_value(None) == "None"
        assert safe_log_value([1, 2, 3]) == "list(3 items)"
        assert safe_log_value({"a": 1}) == "dict(1 keys)"
        assert safe_log_value(b"%PDF-1.4") == "<8 bytes>"
        assert safe_log_value(SourceKind.QA) == "qa"
        assert safe_log_value(TextDetails(content="x")) == "<TextDetails>"
        assert safe_log_value(42) == "42"

    def test_truncates_long_values(self) -> None:
        value = safe_log_value("x" * 20, max_length=5)

        assert value == "xxxxx... (truncated, 20 total)"


def test_log_with_context_adds_extra(caplog) -> None:
    logger = logging.getLogger("knowbase.test")

    with caplog.at_level(logging.INFO, logger="knowbase.test"):
        log_with_context(logger, logging.INFO, "run queued", run_id="r-1", source_ids=[1, 2])

    record = caplog.records[-1]
    assert record.run_id == "r-1"
    assert record.source_ids == "list(2 items)"


def test_reserved_keys_prefixed(caplog) -> None:
    logger = logging.getLogger("knowbase.test")

    with caplog.at_level(logging.INFO, logger="knowbase.test"):
        log_with_context(logger, logging.INFO, "source loaded", name="handbook.pdf")

    record = caplog.records[-1]
    assert record.name == "knowbase.test"
    assert record.ctx_name == "handbook.pdf"


def test_log_exception_with_context(caplog) -> None:
    logger = logging.getLogger("knowbase.test")
    error = BlobFetchError("download failed", details={"status_code": 503})

    with caplog.at_level(logging.ERROR, logger="knowbase.test"):
        log_exception_with_context(logger, "step failed", error, run_id="r-1")

    record = caplog.records[-1]
    assert record.error_type == "BlobFetchError"
    assert "503" in record.error_details
    assert record.exc_info is not None
