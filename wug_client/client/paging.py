"""
Paginator - выборка всех страниц по курсору nextPageId.

Алгоритм:
    page_id = None
    loop:
        envelope = execute(uri_builder(page_id))
        items += envelope.items()
        page_id = envelope.paging.nextPageId
    пока page_id не пустой

Завершение определяется только наличием nextPageId; totalPages нужен
лишь для прогресса. При ошибке на странице K возвращаются элементы
страниц 1..K-1 вместе с ошибкой (PagedResult.error); так же
обрабатывается ошибка сборки URI или разбора страницы. Результат при
ошибке неполный - вызывающий код должен проверять PagedResult.complete.
"""

import logging
from typing import Callable, Optional

from ..core.exceptions import (
    ApiRequestError,
    NotConnectedError,
    format_error_for_log,
)
from ..core.logging import OperationLog, get_logger
from ..core.models import PagedResult
from ..core.progress import CancelToken, ProgressReporter
from .executor import RequestExecutor

logger = logging.getLogger(__name__)

UriBuilder = Callable[[Optional[str]], str]


class Paginator:
    """
    Последовательная постраничная выборка.

    Example:
        paginator = Paginator(executor, progress)
        result = paginator.fetch_all(
            lambda page_id: build_uri("/api/v1/device-groups/1/devices/-", pageId=page_id),
            label="group devices",
        )
        if not result.complete:
            logger.warning(f"Получено частично: {len(result)}")
    """

    def __init__(
        self,
        executor: RequestExecutor,
        progress: Optional[ProgressReporter] = None,
        max_pages: Optional[int] = None,
        before_request: Optional[Callable[[], None]] = None,
    ):
        """
        Args:
            executor: RequestExecutor
            progress: Наблюдатели прогресса
            max_pages: Ограничение числа страниц (None = без ограничения)
            before_request: Вызывается перед каждой страницей (например, ensure_fresh)
        """
        self.executor = executor
        self.progress = progress or ProgressReporter()
        self.max_pages = max_pages
        self.before_request = before_request

    def fetch_all(
        self,
        uri_builder: UriBuilder,
        label: str = "pages",
        cancel_token: Optional[CancelToken] = None,
        method: str = "GET",
    ) -> PagedResult:
        """
        Получает все страницы.

        Args:
            uri_builder: page_id -> URI (первый вызов с None)
            label: Название операции для прогресса и логов
            cancel_token: Проверяется перед каждым запросом
            method: HTTP метод (GET для списков и отчётов)

        Returns:
            PagedResult: Элементы в порядке страниц, ошибка/отмена если были

        Raises:
            NotConnectedError: Нет активной сессии (до первого запроса)
        """
        if not self.executor.session.is_connected:
            raise NotConnectedError()

        result = PagedResult()
        op = OperationLog(operation=f"fetch_all:{label}").start()
        page_id: Optional[str] = None
        seen_page_ids = set()

        while True:
            if cancel_token is not None and cancel_token.cancelled:
                logger.warning(
                    f"{label}: выборка отменена после {result.pages} стр. "
                    f"({cancel_token.reason})"
                )
                result.cancelled = True
                break

            if self.max_pages and result.pages >= self.max_pages:
                result.error = ApiRequestError(
                    f"Превышен лимит страниц ({self.max_pages})", method=method
                )
                logger.error(f"{label}: {format_error_for_log(result.error)}")
                break

            try:
                uri = uri_builder(page_id)
                if self.before_request is not None:
                    self.before_request()
                envelope = self.executor.execute(uri, method)
                page_items = envelope.items()
            except Exception as e:
                # Страница не получена - возвращаем накопленное
                logger.error(
                    f"{label}: ошибка на странице {result.pages + 1}, "
                    f"возвращено {len(result.items)} элементов: {format_error_for_log(e)}"
                )
                result.error = e
                break

            result.items.extend(page_items)
            result.pages += 1
            total_pages = envelope.paging.total_pages if envelope.paging else None
            self.progress.report(result.pages, total_pages, label)

            page_id = envelope.next_page_id
            if page_id is None:
                break
            if page_id in seen_page_ids:
                result.error = ApiRequestError(
                    f"Сервер повторил nextPageId={page_id}", uri=uri, method=method
                )
                logger.error(f"{label}: {format_error_for_log(result.error)}")
                break
            seen_page_ids.add(page_id)

        if result.complete:
            op.success(pages=result.pages, items=len(result.items))
        else:
            op.failure(format_error_for_log(result.error) if result.error else "cancelled")
        op.log(get_logger(__name__))
        return result
