"""
Типизированные исключения для WUG Client.

Иерархия:
    WugClientError (базовый)
    ├── NotConnectedError (нет активной сессии)
    ├── AuthenticationError (получение/обновление токена)
    ├── ApiRequestError (ошибка вызова API)
    ├── ValidationError (некорректные входные данные)
    └── ConfigError (конфигурация)

Пример использования:
    from wug_client.core.exceptions import ApiRequestError, NotConnectedError

    try:
        envelope = client.execute_api_call("/api/v1/devices/42")
    except NotConnectedError:
        client.connect(username, password, server="wug.local")
    except ApiRequestError as e:
        logger.error(f"API ошибка: {e.method} {e.uri} - {e.status_description}")
"""

from typing import Optional, Any, List


class WugClientError(Exception):
    """
    Базовое исключение для всех ошибок WUG Client.

    Attributes:
        message: Описание ошибки
        details: Дополнительные детали (dict)
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self) -> dict:
        """Сериализация для логов/отчётов."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class NotConnectedError(WugClientError):
    """
    Вызов API без активной сессии.

    Пример:
        raise NotConnectedError()
    """

    def __init__(
        self,
        message: str = "Нет активной сессии. Выполните connect()",
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)


class AuthenticationError(WugClientError):
    """
    Ошибка получения или обновления токена.

    Attributes:
        uri: URI token endpoint
        status_code: HTTP код ответа (если был ответ)

    Пример:
        raise AuthenticationError("Unauthorized", uri="https://wug:9644/api/v1/token", status_code=401)
    """

    def __init__(
        self,
        message: str,
        uri: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        self.uri = uri
        self.status_code = status_code
        details = details or {}
        if uri:
            details["uri"] = uri
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, details)


class ApiRequestError(WugClientError):
    """
    Ошибка при вызове API (не-2xx ответ или сбой транспорта).

    Attributes:
        uri: URI запроса
        method: HTTP метод
        status_code: HTTP код ответа (None при сбое транспорта)
        status_description: Описание статуса (reason или текст ошибки)
        api_errors: Список ошибок из тела ответа

    Пример:
        raise ApiRequestError("Not Found", uri="/api/v1/devices/1", method="GET", status_code=404)
    """

    def __init__(
        self,
        message: str,
        uri: Optional[str] = None,
        method: Optional[str] = None,
        status_code: Optional[int] = None,
        status_description: Optional[str] = None,
        api_errors: Optional[List[Any]] = None,
        details: Optional[dict] = None,
    ):
        self.uri = uri
        self.method = method
        self.status_code = status_code
        self.status_description = status_description or message
        self.api_errors = api_errors or []
        details = details or {}
        if method:
            details["method"] = method
        if uri:
            details["uri"] = uri
        if status_code:
            details["status_code"] = status_code
        if self.api_errors:
            details["api_errors"] = str(self.api_errors)[:200]  # Ограничиваем размер
        super().__init__(message, details)


class ValidationError(WugClientError):
    """
    Некорректные входные данные. Выбрасывается до любого сетевого вызова.

    Attributes:
        field: Поле с ошибкой
        value: Значение которое не прошло валидацию

    Пример:
        raise ValidationError("max_batch_size должен быть >= 1", field="max_batch_size", value=0)
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[dict] = None,
    ):
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]  # Ограничиваем размер
        super().__init__(message, details)


class ConfigError(WugClientError):
    """
    Ошибка конфигурации.

    Attributes:
        config_file: Путь к файлу конфигурации
        key: Ключ конфигурации с ошибкой

    Пример:
        raise ConfigError("Missing required field", config_file="config.yaml", key="wug.server")
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        key: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.config_file = config_file
        self.key = key
        details = details or {}
        if config_file:
            details["config_file"] = config_file
        if key:
            details["key"] = key
        super().__init__(message, details)


# === Utility Functions ===

def format_error_for_log(error: Exception) -> str:
    """
    Форматирует ошибку для вывода в лог.

    Args:
        error: Исключение

    Returns:
        str: Отформатированная строка ошибки
    """
    if isinstance(error, WugClientError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"


def is_retryable(error: Exception) -> bool:
    """
    Проверяет, можно ли повторить операцию после ошибки.

    Повторяемы сбои транспорта (нет status_code), 429 и 5xx.

    Args:
        error: Исключение

    Returns:
        bool: True если можно retry
    """
    if isinstance(error, ApiRequestError):
        if error.status_code is None:
            return True
        return error.status_code == 429 or error.status_code >= 500
    return False
