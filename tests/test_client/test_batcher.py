"""
Тесты Batcher: разбиение на batch, учёт частичных ошибок, отмена.
"""

from unittest.mock import MagicMock

import pytest

from wug_client.client.batch import Batcher, chunked
from wug_client.core.exceptions import ApiRequestError, ValidationError
from wug_client.core.models import BatchResult
from wug_client.core.progress import CancelToken, ProgressReporter


class TestChunked:
    """Тесты chunked."""

    def test_exact_chunks(self):
        assert chunked([1, 2, 3, 4], 2) == [[1, 2], [3, 4]]

    def test_last_chunk_smaller(self):
        assert chunked(list(range(1000)), 499)[-1] == [998, 999]
        assert [len(c) for c in chunked(list(range(1000)), 499)] == [499, 499, 2]

    def test_empty(self):
        assert chunked([], 10) == []

    def test_zero_size(self):
        with pytest.raises(ValidationError):
            chunked([1], 0)


class TestBatcherRun:
    """Тесты Batcher.run."""

    def test_thousand_items(self):
        """1000 элементов по 499 -> 499, 499, 2."""
        operation = MagicMock(return_value=None)

        summary = Batcher().run(list(range(1000)), 499, operation)

        sizes = [len(call.args[0]) for call in operation.call_args_list]
        assert sizes == [499, 499, 2]
        assert summary.successful_operations == 1000
        assert summary.failed_operations == 0
        assert summary.batches == 3
        assert summary.ok

    def test_chunks_in_order(self):
        operation = MagicMock(return_value=None)

        Batcher().run(list(range(7)), 3, operation)

        seen = [item for call in operation.call_args_list for item in call.args[0]]
        assert seen == list(range(7))

    def test_middle_chunk_failure_isolated(self):
        """Ошибка второго batch: 501 успешно, 499 неуспешно."""
        operation = MagicMock(side_effect=[
            None,
            ApiRequestError("Ошибка API: 500", status_code=500),
            None,
        ])

        summary = Batcher().run(list(range(1000)), 499, operation)

        assert operation.call_count == 3
        assert summary.successful_operations == 501
        assert summary.failed_operations == 499
        assert summary.is_consistent
        assert summary.errors[0]["batch"] == 2
        assert summary.errors[0]["range"] == [499, 997]
        assert summary.errors[0]["count"] == 499

    def test_unexpected_exception_isolated(self):
        operation = MagicMock(side_effect=[KeyError("boom"), None])

        summary = Batcher().run([1, 2, 3, 4], 2, operation)

        assert summary.successful_operations == 2
        assert summary.failed_operations == 2
        assert "KeyError" in summary.errors[0]["error"]

    def test_partial_success_from_response(self):
        operation = MagicMock(return_value={
            "successfulOperations": 3,
            "resourcesWithErrors": ["7", "9"],
            "errors": ["device 7 locked", "device 9 locked"],
        })

        summary = Batcher().run(list(range(5)), 10, operation)

        assert summary.successful_operations == 3
        assert summary.failed_operations == 2
        assert summary.resources_with_errors == ["7", "9"]
        assert summary.errors[0]["count"] == 2

    def test_success_count_clamped(self):
        """Некорректный successfulOperations не ломает учёт."""
        operation = MagicMock(return_value={"successfulOperations": 10})

        summary = Batcher().run([1, 2], 5, operation)

        assert summary.successful_operations == 2
        assert summary.is_consistent

    def test_accepts_batch_result(self):
        operation = MagicMock(return_value=BatchResult(successful=1, resources_with_errors=["b"]))

        summary = Batcher().run(["a", "b"], 5, operation)

        assert summary.successful_operations == 1
        assert summary.failed_operations == 1

    @pytest.mark.parametrize("total,size", [(0, 5), (1, 1), (5, 5), (6, 5), (11, 3), (1000, 499)])
    def test_accounting_always_consistent(self, total, size):
        outcomes = iter([None, ApiRequestError("x"), {"successfulOperations": 0}] * 400)
        summary = Batcher().run(
            list(range(total)), size, lambda chunk: _raise_or_return(next(outcomes))
        )

        assert summary.successful_operations + summary.failed_operations == total
        assert summary.batches == -(-total // size)

    def test_empty_input(self):
        operation = MagicMock()

        summary = Batcher().run([], 499, operation)

        operation.assert_not_called()
        assert summary.total == 0
        assert summary.ok


class TestBatcherValidation:
    """Валидация до вызовов API."""

    @pytest.mark.parametrize("size", [0, -1, 2.5, True, "10"])
    def test_bad_batch_size(self, size):
        operation = MagicMock()

        with pytest.raises(ValidationError):
            Batcher().run([1, 2], size, operation)
        operation.assert_not_called()

    @pytest.mark.parametrize("items", ["abc", None, 42])
    def test_bad_items(self, items):
        with pytest.raises(ValidationError):
            Batcher().run(items, 10, MagicMock())


class TestBatcherProgressAndCancel:
    """Прогресс и отмена."""

    def test_progress_per_chunk(self):
        events = []
        progress = ProgressReporter([lambda current, total, label: events.append((current, total, label))])

        Batcher(progress).run(list(range(10)), 4, MagicMock(return_value=None), label="remove")

        assert events == [(1, 3, "remove"), (2, 3, "remove"), (3, 3, "remove")]

    def test_cancel_marks_rest_failed(self):
        token = CancelToken()

        def operation(chunk):
            token.cancel("user")
            return None

        summary = Batcher().run(list(range(10)), 4, operation, cancel_token=token)

        assert summary.cancelled
        assert summary.successful_operations == 4
        assert summary.failed_operations == 6
        assert summary.batches == 1
        assert summary.is_consistent
        assert summary.errors[-1]["range"] == [4, 9]

    def test_before_batch_hook(self):
        hook = MagicMock()

        Batcher(before_batch=hook).run(list(range(5)), 2, MagicMock(return_value=None))

        assert hook.call_count == 3

    def test_before_batch_failure_counts_chunk_failed(self):
        hook = MagicMock(side_effect=[None, ApiRequestError("refresh failed")])
        operation = MagicMock(return_value=None)

        summary = Batcher(before_batch=hook).run(list(range(4)), 2, operation)

        assert operation.call_count == 1
        assert summary.successful_operations == 2
        assert summary.failed_operations == 2


def _raise_or_return(outcome):
    if isinstance(outcome, Exception):
        raise outcome
    return outcome
