"""
Состояние сессии WUG API.

Session хранит base URI, bearer/refresh токены и время истечения (UTC).
Один объект Session передаётся явно в TokenManager, RequestExecutor,
Paginator и Batcher. Глобального состояния нет.

Жизненный цикл:
    Disconnected -> Connected -> (Connected, токен переиздан) -> Disconnected

Пример использования:
    session = Session()
    session.install(
        base_uri="https://wug.local:9644",
        bearer_token="abc",
        refresh_token="def",
        expires_at=utc_now() + timedelta(hours=1),
    )
    header = session.snapshot_auth_header()
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional, Dict, Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Текущее время в UTC (aware datetime)."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Приводит datetime к UTC. Naive значения считаются UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Session:
    """
    Сессия подключения к серверу мониторинга.

    Мутации выполняются под RLock, чтение заголовка авторизации
    делается атомарным снимком.

    Attributes:
        base_uri: Корневой URL сервера (scheme://host:port)
        bearer_token: Access токен
        token_type: Тип токена для заголовка Authorization
        refresh_token: Токен для обновления без пароля
        expires_at: Время истечения access токена (UTC)
        username: Пользователь, под которым открыта сессия
    """

    def __init__(self):
        self.lock = threading.RLock()
        self.base_uri: Optional[str] = None
        self.bearer_token: Optional[str] = None
        self.token_type: str = "Bearer"
        self.refresh_token: Optional[str] = None
        self.expires_at: Optional[datetime] = None
        self.username: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        """Сессия установлена (есть base URI и токен)."""
        with self.lock:
            return bool(self.base_uri and self.bearer_token)

    def install(
        self,
        base_uri: str,
        bearer_token: str,
        expires_at: datetime,
        refresh_token: Optional[str] = None,
        token_type: Optional[str] = None,
        username: Optional[str] = None,
    ) -> None:
        """Устанавливает новую сессию целиком (connect)."""
        with self.lock:
            self.base_uri = base_uri.rstrip("/")
            self.bearer_token = bearer_token
            self.refresh_token = refresh_token
            self.token_type = token_type or "Bearer"
            self.expires_at = ensure_utc(expires_at)
            self.username = username

    def update_tokens(
        self,
        bearer_token: str,
        expires_at: datetime,
        refresh_token: Optional[str] = None,
        token_type: Optional[str] = None,
    ) -> None:
        """Заменяет токены и время истечения на месте (refresh)."""
        with self.lock:
            self.bearer_token = bearer_token
            self.expires_at = ensure_utc(expires_at)
            if refresh_token:
                self.refresh_token = refresh_token
            if token_type:
                self.token_type = token_type

    def clear(self) -> None:
        """Сбрасывает сессию (disconnect)."""
        with self.lock:
            self.base_uri = None
            self.bearer_token = None
            self.refresh_token = None
            self.token_type = "Bearer"
            self.expires_at = None
            self.username = None

    def snapshot_auth_header(self) -> Optional[Dict[str, str]]:
        """
        Атомарный снимок заголовка Authorization.

        Returns:
            Dict с заголовком или None если сессии нет
        """
        with self.lock:
            if not self.bearer_token:
                return None
            return {"Authorization": f"{self.token_type} {self.bearer_token}"}

    def seconds_until_expiry(self, now: Optional[datetime] = None) -> Optional[float]:
        """Секунды до истечения токена (отрицательно если истёк)."""
        with self.lock:
            if self.expires_at is None:
                return None
            now = ensure_utc(now) if now else utc_now()
            return (self.expires_at - now).total_seconds()

    def resolve(self, uri: str) -> str:
        """
        Преобразует относительный путь (/api/v1/...) в полный URI.

        Полные URI (http://, https://) возвращаются как есть.
        """
        if uri.startswith(("http://", "https://")):
            return uri
        with self.lock:
            base = self.base_uri or ""
        return f"{base}/{uri.lstrip('/')}"

    def __repr__(self) -> str:
        # Токены в repr не выводим
        return (
            f"Session(base_uri={self.base_uri!r}, username={self.username!r}, "
            f"connected={self.is_connected}, expires_at={self.expires_at!r})"
        )
