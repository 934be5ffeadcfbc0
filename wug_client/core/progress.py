"""
Прогресс и отмена длительных операций.

ProgressReporter рассылает события (current, total, label) зарегистрированным
наблюдателям. total=None означает неопределённый прогресс (сервер не прислал
totalPages). Ошибка в наблюдателе логируется и не прерывает операцию.

CancelToken проверяется Paginator/Batcher перед каждым сетевым вызовом.

Пример использования:
    reporter = ProgressReporter()
    reporter.add(lambda current, total, label: print(f"{label}: {current}/{total or '?'}"))

    token = CancelToken()
    result = paginator.fetch_all(builder, cancel_token=token)
"""

import logging
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

# (current, total, label)
ProgressObserver = Callable[[int, Optional[int], str], None]


class ProgressReporter:
    """Список наблюдателей прогресса."""

    def __init__(self, observers: Optional[List[ProgressObserver]] = None):
        self._observers: List[ProgressObserver] = list(observers or [])

    def add(self, observer: ProgressObserver) -> None:
        """Регистрирует наблюдателя."""
        if observer not in self._observers:
            self._observers.append(observer)

    def remove(self, observer: ProgressObserver) -> None:
        """Удаляет наблюдателя (если зарегистрирован)."""
        if observer in self._observers:
            self._observers.remove(observer)

    @property
    def observers(self) -> List[ProgressObserver]:
        return list(self._observers)

    def report(self, current: int, total: Optional[int], label: str) -> None:
        """
        Рассылает событие прогресса.

        Args:
            current: Номер текущей страницы/batch (с 1)
            total: Всего страниц/batch или None
            label: Название операции
        """
        if total:
            logger.debug(f"{label}: {current}/{total} ({current / total:.0%})")
        else:
            logger.debug(f"{label}: {current}/?")

        for observer in self._observers:
            try:
                observer(current, total, label)
            except Exception as e:
                logger.warning(f"Ошибка в наблюдателе прогресса {observer!r}: {e}")


class CancelToken:
    """
    Флаг отмены, потокобезопасный.

    Example:
        token = CancelToken()
        threading.Timer(30, token.cancel).start()
        summary = batcher.run(ids, 499, op, cancel_token=token)
    """

    def __init__(self):
        self._event = threading.Event()
        self.reason: str = ""

    def cancel(self, reason: str = "cancelled") -> None:
        """Запрашивает отмену."""
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Отмена запрошена."""
        return self._event.is_set()
