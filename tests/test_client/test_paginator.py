"""
Тесты Paginator: выборка по nextPageId, прогресс, частичный результат.
"""

from unittest.mock import MagicMock

import pytest
from urllib.parse import parse_qs, urlparse

from wug_client.client.paging import Paginator
from wug_client.client.query import build_uri
from wug_client.core.exceptions import ApiRequestError, NotConnectedError
from wug_client.core.progress import CancelToken

PATH = "/api/v1/device-groups/1/devices/-"


def builder(page_id):
    return build_uri(PATH, limit=10, pageId=page_id)


def _requested_page_ids(http):
    """pageId каждого выполненного запроса (None для первого)."""
    result = []
    for call in http.request.call_args_list:
        query = parse_qs(urlparse(call.args[1]).query)
        result.append(query.get("pageId", [None])[0])
    return result


class TestFetchAll:
    """Тесты обхода страниц."""

    def test_three_pages_with_progress(self, client, http, make_response, make_page):
        """3 страницы по 10, три события прогресса."""
        http.request.side_effect = [
            make_response(200, make_page(list(range(0, 10)), "p2", total_pages=3)),
            make_response(200, make_page(list(range(10, 20)), "p3", total_pages=3)),
            make_response(200, make_page(list(range(20, 30)), total_pages=3)),
        ]
        events = []
        client.add_progress_observer(lambda current, total, label: events.append((current, total)))

        result = client.fetch_all_pages(builder, label="group devices")

        assert result.items == list(range(30))
        assert result.pages == 3
        assert result.complete
        assert events == [(1, 3), (2, 3), (3, 3)]
        assert _requested_page_ids(http) == [None, "p2", "p3"]

    def test_single_page_without_cursor(self, client, http, make_response, make_page):
        http.request.return_value = make_response(200, make_page(["a", "b"]))

        result = client.fetch_all_pages(builder)

        assert result.items == ["a", "b"]
        assert http.request.call_count == 1

    def test_empty_string_cursor_terminates(self, client, http, make_response):
        http.request.return_value = make_response(
            200, {"data": [1], "paging": {"nextPageId": ""}}
        )

        result = client.fetch_all_pages(builder)

        assert result.items == [1]
        assert http.request.call_count == 1

    def test_no_total_pages_indeterminate_progress(self, client, http, make_response, make_page):
        """Без totalPages выборка идёт до конца, total=None в прогрессе."""
        http.request.side_effect = [
            make_response(200, make_page([1, 2], "next")),
            make_response(200, make_page([3])),
        ]
        events = []
        client.add_progress_observer(lambda current, total, label: events.append((current, total)))

        result = client.fetch_all_pages(builder)

        assert result.items == [1, 2, 3]
        assert events == [(1, None), (2, None)]

    def test_wrong_total_pages_ignored(self, client, http, make_response, make_page):
        """Завершение определяется только nextPageId."""
        http.request.side_effect = [
            make_response(200, make_page([1], "p2", total_pages=1)),
            make_response(200, make_page([2], total_pages=1)),
        ]

        result = client.fetch_all_pages(builder)

        assert result.items == [1, 2]

    def test_collection_key_unwrapped(self, client, http, make_response):
        http.request.return_value = make_response(
            200, {"data": {"devices": [{"id": "1"}, {"id": "2"}]}, "paging": {"size": 2}}
        )

        result = client.fetch_all_pages(builder)

        assert result.items == [{"id": "1"}, {"id": "2"}]

    def test_authorization_header_on_every_page(self, client, http, make_response, make_page):
        http.request.side_effect = [
            make_response(200, make_page([1], "p2")),
            make_response(200, make_page([2])),
        ]

        client.fetch_all_pages(builder)

        for call in http.request.call_args_list:
            assert call.kwargs["headers"]["Authorization"] == "Bearer access-1"


class TestFetchAllFailures:
    """Тесты частичного результата."""

    def test_failure_returns_partial(self, client, http, make_response, make_page):
        """Ошибка на странице 3: элементы страниц 1..2 и ошибка."""
        http.request.side_effect = [
            make_response(200, make_page(list(range(10)), "p2")),
            make_response(200, make_page(list(range(10, 20)), "p3")),
            make_response(500, {"errors": ["boom"]}, reason="Internal Server Error"),
        ]

        result = client.fetch_all_pages(builder)

        assert result.items == list(range(20))
        assert result.pages == 2
        assert not result.complete
        assert isinstance(result.error, ApiRequestError)
        assert result.error.status_code == 500
        assert result.error.api_errors == ["boom"]

    def test_first_page_failure(self, client, http, make_response):
        http.request.return_value = make_response(404, None, reason="Not Found")

        result = client.fetch_all_pages(builder)

        assert result.items == []
        assert result.error.status_code == 404

    def test_not_connected_raises(self, client, http):
        client.disconnect()

        with pytest.raises(NotConnectedError):
            client.fetch_all_pages(builder)
        http.request.assert_not_called()

    def test_repeated_cursor_stops(self, client, http, make_response, make_page):
        http.request.side_effect = [
            make_response(200, make_page([1], "loop")),
            make_response(200, make_page([2], "loop")),
            make_response(200, make_page([3], "loop")),
        ]

        result = client.fetch_all_pages(builder)

        assert result.items == [1, 2]
        assert http.request.call_count == 2
        assert isinstance(result.error, ApiRequestError)

    def test_malformed_total_pages_does_not_break_fetch(self, client, http, make_response):
        """Нечисловой totalPages на второй странице: выборка продолжается."""
        http.request.side_effect = [
            make_response(200, {"data": [1, 2], "paging": {"nextPageId": "p2", "totalPages": 2}}),
            make_response(200, {"data": [3], "paging": {"totalPages": "n/a"}}),
        ]
        events = []
        client.add_progress_observer(lambda current, total, label: events.append((current, total)))

        result = client.fetch_all_pages(builder)

        assert result.items == [1, 2, 3]
        assert result.complete
        assert events == [(1, 2), (2, None)]

    def test_uri_builder_failure_returns_partial(self, client, http, make_response, make_page):
        """Исключение при сборке URI второй страницы не теряет первую."""
        http.request.return_value = make_response(200, make_page([1, 2], "p2"))

        def failing_builder(page_id):
            if page_id is not None:
                raise KeyError(page_id)
            return builder(page_id)

        result = client.fetch_all_pages(failing_builder)

        assert result.items == [1, 2]
        assert result.pages == 1
        assert not result.complete
        assert isinstance(result.error, KeyError)
        assert http.request.call_count == 1

    def test_cancel_between_pages(self, client, http, make_response, make_page):
        token = CancelToken()
        http.request.side_effect = [
            make_response(200, make_page([1], "p2")),
            make_response(200, make_page([2], "p3")),
        ]
        client.add_progress_observer(lambda current, total, label: token.cancel("stop"))

        result = client.fetch_all_pages(builder, cancel_token=token)

        assert result.items == [1]
        assert result.cancelled
        assert result.error is None
        assert not result.complete
        assert http.request.call_count == 1

    def test_observer_error_does_not_break_fetch(self, client, http, make_response, make_page):
        http.request.side_effect = [
            make_response(200, make_page([1], "p2")),
            make_response(200, make_page([2])),
        ]
        client.add_progress_observer(MagicMock(side_effect=RuntimeError("ui closed")))

        result = client.fetch_all_pages(builder)

        assert result.items == [1, 2]
        assert result.complete


class TestPaginatorOptions:
    """Тесты параметров Paginator."""

    def test_max_pages(self, client, http, make_response, make_page):
        http.request.side_effect = [
            make_response(200, make_page([1], "p2")),
            make_response(200, make_page([2], "p3")),
            make_response(200, make_page([3])),
        ]
        paginator = Paginator(client.executor, max_pages=2)

        result = paginator.fetch_all(builder)

        assert result.items == [1, 2]
        assert result.error is not None
        assert http.request.call_count == 2

    def test_before_request_called_per_page(self, client, http, make_response, make_page):
        http.request.side_effect = [
            make_response(200, make_page([1], "p2")),
            make_response(200, make_page([2])),
        ]
        hook = MagicMock()
        paginator = Paginator(client.executor, before_request=hook)

        paginator.fetch_all(builder)

        assert hook.call_count == 2

    def test_token_refreshed_mid_fetch(self, client, http, clock, make_response, make_page, token_payload):
        """Токен истекает между страницами: обновление перед следующей."""
        http.post.return_value = make_response(200, token_payload(access_token="access-2"))

        def first_page(*args, **kwargs):
            clock.advance(3600)
            http.request.side_effect = [make_response(200, make_page([2]))]
            return make_response(200, make_page([1], "p2"))

        http.request.side_effect = first_page

        result = client.fetch_all_pages(builder)

        assert result.items == [1, 2]
        last_headers = http.request.call_args.kwargs["headers"]
        assert last_headers["Authorization"] == "Bearer access-2"
