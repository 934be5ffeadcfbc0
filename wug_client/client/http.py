"""
HTTP транспорт WUG Client.

WugHttpSession - requests.Session с:
- таймаутом по умолчанию для каждого запроса
- повтором при HTTP 429 (Retry-After или линейный backoff)
- повтором идемпотентных запросов при сбое соединения/таймауте
"""

import time
import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
MAX_RETRIES_429 = 3
DEFAULT_RETRY_DELAY = 2
DEFAULT_TRANSPORT_RETRIES = 2

IDEMPOTENT_METHODS = {"GET", "HEAD", "OPTIONS", "PUT", "DELETE"}


class WugHttpSession(requests.Session):
    """
    requests.Session с таймаутом и retry.

    Attributes:
        timeout: Таймаут запроса (секунды)
        max_retries_429: Попыток при HTTP 429
        transport_retries: Повторов идемпотентного запроса при сбое соединения
        retry_delay: Базовая задержка между попытками (секунды)
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        verify: bool = True,
        max_retries_429: int = MAX_RETRIES_429,
        transport_retries: int = DEFAULT_TRANSPORT_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        super().__init__()
        self.timeout = timeout
        self.verify = verify
        self.max_retries_429 = max(1, max_retries_429)
        self.transport_retries = max(0, transport_retries)
        self.retry_delay = retry_delay
        self.headers.update({"Accept": "application/json"})

    def request(self, method, url, *args, **kwargs):
        """Выполняет запрос с таймаутом и retry."""
        kwargs.setdefault("timeout", self.timeout)
        response = None

        for attempt in range(1, self.max_retries_429 + 1):
            response = self._request_with_transport_retry(method, url, *args, **kwargs)
            if response.status_code != 429:
                return response

            delay = self._retry_after(response, attempt)
            logger.warning(
                f"HTTP 429 на {method} {url}, попытка {attempt}/{self.max_retries_429}, "
                f"ожидание {delay}с"
            )
            time.sleep(delay)

        return response

    def _request_with_transport_retry(self, method, url, *args, **kwargs):
        """Повторяет идемпотентный запрос при ConnectionError/Timeout."""
        retries = self.transport_retries if str(method).upper() in IDEMPOTENT_METHODS else 0
        attempt = 0
        while True:
            try:
                return super().request(method, url, *args, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempt >= retries:
                    raise
                attempt += 1
                delay = self.retry_delay * attempt
                logger.warning(
                    f"Сбой соединения {method} {url} ({e}), "
                    f"повтор {attempt}/{retries} через {delay}с"
                )
                time.sleep(delay)

    def _retry_after(self, response, attempt: int) -> float:
        """Задержка из Retry-After или линейный backoff."""
        retry_after: Optional[str] = None
        headers = getattr(response, "headers", None) or {}
        if "Retry-After" in headers:
            retry_after = headers["Retry-After"]
        if retry_after:
            try:
                return int(retry_after)
            except (TypeError, ValueError):
                pass
        return self.retry_delay * attempt
