"""
Тесты моделей: ResponseEnvelope, BatchResult, BatchSummary, PagedResult.
"""

from datetime import datetime, timezone

import pytest

from wug_client.core.models import (
    BatchResult,
    BatchSummary,
    ConnectionResult,
    PageCursor,
    PagedResult,
    ResponseEnvelope,
)


class TestPageCursor:
    """Тесты PageCursor."""

    def test_from_dict(self):
        cursor = PageCursor.from_dict({"nextPageId": 17, "totalPages": "3", "size": 250})
        assert cursor.next_page_id == "17"
        assert cursor.total_pages == 3
        assert cursor.size == 250

    def test_empty_next_page(self):
        assert PageCursor.from_dict({"nextPageId": ""}).next_page_id is None

    def test_not_dict(self):
        assert PageCursor.from_dict(None) is None

    @pytest.mark.parametrize("value", ["n/a", "", [], {}, True])
    def test_malformed_counters_ignored(self, value):
        """totalPages и size нужны только для прогресса: мусор -> None."""
        cursor = PageCursor.from_dict({"nextPageId": "p2", "totalPages": value, "size": value})
        assert cursor.next_page_id == "p2"
        assert cursor.total_pages is None
        assert cursor.size is None


class TestResponseEnvelope:
    """Тесты ResponseEnvelope."""

    def test_envelope_fields(self):
        envelope = ResponseEnvelope.from_json(
            {"data": [1], "paging": {"nextPageId": "x"}, "errors": "warn"}, status_code=200
        )
        assert envelope.data == [1]
        assert envelope.has_next_page
        assert envelope.errors == ["warn"]

    def test_plain_payload(self):
        envelope = ResponseEnvelope.from_json({"id": "1"})
        assert envelope.data == {"id": "1"}
        assert envelope.paging is None
        assert not envelope.has_next_page

    @pytest.mark.parametrize("data,expected", [
        (None, []),
        ([1, 2], [1, 2]),
        ({"devices": [{"id": "1"}]}, [{"id": "1"}]),
        ({"attributes": []}, []),
        ({"id": "1"}, [{"id": "1"}]),
        ("text", ["text"]),
    ])
    def test_items(self, data, expected):
        assert ResponseEnvelope(data=data).items() == expected


class TestBatchResult:
    """Тесты BatchResult.from_payload."""

    def test_none_all_successful(self):
        assert BatchResult.from_payload(None, 5).successful == 5

    def test_counts_from_dict(self):
        result = BatchResult.from_payload(
            {"successfulOperations": 3, "resourcesWithErrors": ["4"], "errors": "x"}, 5
        )
        assert result.successful == 3
        assert result.resources_with_errors == ["4"]
        assert result.errors == ["x"]

    def test_without_counter(self):
        result = BatchResult.from_payload({"resourcesWithErrors": ["1", "2"]}, 5)
        assert result.successful == 3

    def test_envelope_errors_merged(self):
        envelope = ResponseEnvelope(data={"successfulOperations": 2}, errors=["top"])
        result = BatchResult.from_payload(envelope, 2)
        assert result.successful == 2
        assert result.errors == ["top"]

    def test_envelope_without_data(self):
        assert BatchResult.from_payload(ResponseEnvelope(), 4).successful == 4


class TestSummaries:
    """Тесты BatchSummary и PagedResult."""

    def test_batch_summary_ok(self):
        summary = BatchSummary(total=3, successful_operations=3)
        assert summary.ok
        assert summary.is_consistent
        assert summary.to_dict()["total"] == 3

    def test_batch_summary_cancelled_not_ok(self):
        summary = BatchSummary(total=3, successful_operations=1, failed_operations=2, cancelled=True)
        assert not summary.ok
        assert summary.is_consistent

    def test_paged_result(self):
        result = PagedResult(items=[1, 2], pages=1)
        assert result.complete
        assert len(result) == 2
        assert list(result) == [1, 2]

    def test_paged_result_with_error(self):
        assert not PagedResult(error=RuntimeError("x")).complete

    def test_connection_result_to_dict(self):
        result = ConnectionResult(
            base_uri="https://wug:9644",
            username="admin",
            token_type="Bearer",
            expires_at=datetime(2026, 10, 19, 13, 0, tzinfo=timezone.utc),
        )
        assert result.to_dict()["expires_at"] == "2026-10-19T13:00:00+00:00"
