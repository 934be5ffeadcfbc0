"""
Request Executor - один аутентифицированный вызов WUG API.

Не изменяет Session: обновление токена - задача TokenManager,
вызывающий код делает ensure_fresh() перед execute() при необходимости.
"""

import logging
from typing import Any, Optional

import requests

from ..core.exceptions import ApiRequestError, NotConnectedError, ValidationError
from ..core.models import ResponseEnvelope
from ..core.session import Session

logger = logging.getLogger(__name__)

ALLOWED_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE"}


class RequestExecutor:
    """
    Выполняет HTTP запрос с заголовком Authorization текущей сессии.

    Example:
        executor = RequestExecutor(session, http)
        envelope = executor.execute("/api/v1/devices/42/status")
        print(envelope.data)
    """

    def __init__(self, session: Session, http: requests.Session):
        self.session = session
        self.http = http

    def execute(self, uri: str, method: str = "GET", body: Optional[Any] = None) -> ResponseEnvelope:
        """
        Выполняет запрос и декодирует JSON ответ.

        Args:
            uri: Полный URI или путь относительно base_uri (/api/v1/...)
            method: GET, POST, PUT, PATCH, DELETE
            body: Тело запроса (сериализуется в JSON)

        Returns:
            ResponseEnvelope: data, paging, errors

        Raises:
            NotConnectedError: Нет активной сессии
            ValidationError: Неподдерживаемый HTTP метод
            ApiRequestError: Не-2xx ответ, сбой транспорта или не-JSON ответ
        """
        method = (method or "GET").upper()
        if method not in ALLOWED_METHODS:
            raise ValidationError(
                f"Неподдерживаемый HTTP метод: {method}", field="method", value=method
            )

        # Снимок заголовка и base_uri одной операцией
        with self.session.lock:
            auth_header = self.session.snapshot_auth_header()
            if not auth_header or not self.session.base_uri:
                raise NotConnectedError()
            full_uri = self.session.resolve(uri)

        headers = {"Accept": "application/json", **auth_header}
        kwargs = {"headers": headers}
        if body is not None:
            kwargs["json"] = body

        logger.debug(f"{method} {full_uri}")
        try:
            response = self.http.request(method, full_uri, **kwargs)
        except requests.RequestException as e:
            raise ApiRequestError(
                f"Сбой транспорта: {e}",
                uri=full_uri,
                method=method,
                status_description=str(e),
            ) from e

        status_code = response.status_code
        payload = self._decode(response, full_uri, method)

        if not 200 <= status_code < 300:
            reason = getattr(response, "reason", "") or ""
            api_errors = []
            if isinstance(payload, dict):
                api_errors = payload.get("errors") or []
                if not isinstance(api_errors, list):
                    api_errors = [api_errors]
            description = f"{status_code} {reason}".strip()
            raise ApiRequestError(
                f"Ошибка API: {description}",
                uri=full_uri,
                method=method,
                status_code=status_code,
                status_description=description,
                api_errors=api_errors,
            )

        return ResponseEnvelope.from_json(payload, status_code=status_code)

    def _decode(self, response, uri: str, method: str) -> Any:
        """Декодирует JSON. Пустое тело -> None."""
        content = getattr(response, "content", b"")
        if not content:
            return None
        try:
            return response.json()
        except ValueError as e:
            if 200 <= response.status_code < 300:
                raise ApiRequestError(
                    "Ответ не является JSON",
                    uri=uri,
                    method=method,
                    status_code=response.status_code,
                ) from e
            # Для ошибок тело может быть HTML/текстом
            return None
