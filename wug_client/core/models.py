"""
Data Models для WUG Client.

Типизированные dataclasses на границе Request Executor / Paginator / Batcher.
Доменные структуры (отчёты, шаблоны, атрибуты) не типизируются:
поле data остаётся декодированным JSON, его интерпретирует вызывающий код.

Использование:
    from wug_client.core.models import ResponseEnvelope, BatchSummary

    envelope = ResponseEnvelope.from_json(response.json(), status_code=200)
    if envelope.has_next_page:
        print(envelope.paging.next_page_id)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Any, Dict


# Ключи коллекций внутри data, которые разворачиваются в список элементов
COLLECTION_KEYS = (
    "devices",
    "groups",
    "attributes",
    "templates",
    "monitors",
    "interfaces",
    "items",
)


def _optional_int(value: Any) -> Optional[int]:
    """Целое из paging или None, если значение отсутствует или не число."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class PageCursor:
    """
    Курсор страницы из подструктуры paging.

    Attributes:
        next_page_id: ID следующей страницы (None = страниц больше нет)
        total_pages: Общее число страниц (только для прогресса, может отсутствовать)
        size: Количество элементов на текущей странице
    """
    next_page_id: Optional[str] = None
    total_pages: Optional[int] = None
    size: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PageCursor"]:
        """Создаёт PageCursor из словаря paging (None если paging нет)."""
        if not isinstance(data, dict):
            return None
        next_page_id = data.get("nextPageId")
        return cls(
            next_page_id=str(next_page_id) if next_page_id not in (None, "") else None,
            total_pages=_optional_int(data.get("totalPages")),
            size=_optional_int(data.get("size")),
        )


@dataclass
class ResponseEnvelope:
    """
    Декодированный ответ API.

    Attributes:
        data: Полезная нагрузка (любой JSON)
        paging: Курсор страниц (если endpoint постраничный)
        errors: Ошибки из тела ответа
        status_code: HTTP код ответа
        raw: Исходный декодированный JSON
    """
    data: Any = None
    paging: Optional[PageCursor] = None
    errors: List[Any] = field(default_factory=list)
    status_code: Optional[int] = None
    raw: Any = None

    @classmethod
    def from_json(cls, payload: Any, status_code: Optional[int] = None) -> "ResponseEnvelope":
        """
        Создаёт envelope из декодированного JSON.

        Если тело не является объектом {data, paging, errors},
        оно целиком кладётся в data.
        """
        if isinstance(payload, dict) and ("data" in payload or "paging" in payload):
            errors = payload.get("errors") or []
            if not isinstance(errors, list):
                errors = [errors]
            return cls(
                data=payload.get("data"),
                paging=PageCursor.from_dict(payload.get("paging")),
                errors=errors,
                status_code=status_code,
                raw=payload,
            )
        return cls(data=payload, status_code=status_code, raw=payload)

    @property
    def next_page_id(self) -> Optional[str]:
        """ID следующей страницы или None."""
        return self.paging.next_page_id if self.paging else None

    @property
    def has_next_page(self) -> bool:
        """Есть ли следующая страница."""
        return self.next_page_id is not None

    def items(self) -> List[Any]:
        """
        Извлекает список элементов из data.

        - list -> как есть
        - dict с ключом коллекции (devices, attributes, ...) -> этот список
        - прочий dict -> [dict]
        - None -> []
        """
        data = self.data
        if data is None:
            return []
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            for key in COLLECTION_KEYS:
                value = data.get(key)
                if isinstance(value, list):
                    return value
            return [data]
        return [data]


@dataclass
class ConnectionResult:
    """
    Результат connect().

    Attributes:
        base_uri: Корневой URL сервера
        username: Пользователь
        token_type: Тип токена (Bearer)
        expires_at: Время истечения токена (UTC)
    """
    base_uri: str
    username: str
    token_type: str
    expires_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Конвертирует в словарь."""
        return {
            "base_uri": self.base_uri,
            "username": self.username,
            "token_type": self.token_type,
            "expires_at": self.expires_at.isoformat(),
        }


@dataclass
class RefreshResult:
    """
    Результат проверки/обновления токена без исключений.

    Вызывающий код сам решает, делать ли повторный connect().

    Attributes:
        ok: Сессия пригодна для запросов
        refreshed: Было выполнено обновление токена
        expires_at: Текущее время истечения (UTC)
        error: Ошибка обновления (если была)
    """
    ok: bool
    refreshed: bool = False
    expires_at: Optional[datetime] = None
    error: Optional[Exception] = None


@dataclass
class BatchResult:
    """
    Результат обработки одного batch.

    Attributes:
        successful: Количество успешных операций
        resources_with_errors: Ресурсы с ошибками (ID или объекты)
        errors: Ошибки из ответа
    """
    successful: int = 0
    resources_with_errors: List[Any] = field(default_factory=list)
    errors: List[Any] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any, chunk_size: int) -> "BatchResult":
        """
        Создаёт BatchResult из ответа bulk endpoint.

        Поддерживает:
        - None -> все элементы успешны
        - ResponseEnvelope -> разбирается его data
        - dict с successfulOperations / resourcesWithErrors / errors
        - dict без счётчика -> успешны все, кроме resourcesWithErrors
        """
        if payload is None:
            return cls(successful=chunk_size)
        if isinstance(payload, BatchResult):
            return payload
        if isinstance(payload, ResponseEnvelope):
            data = payload.data if payload.data is not None else {}
            result = cls.from_payload(data, chunk_size)
            result.errors = list(payload.errors) + result.errors
            return result
        if not isinstance(payload, dict):
            return cls(successful=chunk_size)

        resources = payload.get("resourcesWithErrors") or []
        if not isinstance(resources, list):
            resources = [resources]
        errors = payload.get("errors") or []
        if not isinstance(errors, list):
            errors = [errors]

        successful = payload.get("successfulOperations")
        if successful is None:
            successful = chunk_size - len(resources)
        return cls(
            successful=int(successful),
            resources_with_errors=resources,
            errors=errors,
        )


@dataclass
class BatchSummary:
    """
    Сводный результат batch-операции.

    Инвариант: successful_operations + failed_operations == total.

    Attributes:
        total: Количество входных элементов
        successful_operations: Успешные операции по всем batch
        failed_operations: Неуспешные операции по всем batch
        batches: Количество обработанных batch
        errors: Ошибки (batch, диапазон индексов, сообщение)
        resources_with_errors: Ресурсы с ошибками из ответов API
        cancelled: Операция прервана через CancelToken
    """
    total: int = 0
    successful_operations: int = 0
    failed_operations: int = 0
    batches: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    resources_with_errors: List[Any] = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        """Все операции успешны."""
        return self.failed_operations == 0 and not self.cancelled

    @property
    def is_consistent(self) -> bool:
        """Учёт исчерпывающий (ничего не потеряно)."""
        return self.successful_operations + self.failed_operations == self.total

    def to_dict(self) -> Dict[str, Any]:
        """Конвертирует в словарь для отчёта."""
        return {
            "total": self.total,
            "successful_operations": self.successful_operations,
            "failed_operations": self.failed_operations,
            "batches": self.batches,
            "errors": self.errors,
            "resources_with_errors": self.resources_with_errors,
            "cancelled": self.cancelled,
        }


@dataclass
class PagedResult:
    """
    Результат постраничной выборки.

    При ошибке на странице K содержит элементы страниц 1..K-1
    и саму ошибку (complete=False).

    Attributes:
        items: Элементы всех полученных страниц в порядке страниц
        pages: Количество успешно полученных страниц
        error: Ошибка, прервавшая выборку
        cancelled: Выборка прервана через CancelToken
    """
    items: List[Any] = field(default_factory=list)
    pages: int = 0
    error: Optional[Exception] = None
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        """Получены все страницы."""
        return self.error is None and not self.cancelled

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
