"""
Token Manager - получение и обновление токенов WUG API.

- connect(): password grant, устанавливает Session целиком
- ensure_fresh(): refresh grant, только если до истечения осталось
  меньше порога (по умолчанию 5 минут). Иначе сетевого вызова нет.
- try_ensure_fresh(): то же без исключений, возвращает RefreshResult

Token endpoint:
    POST {base_uri}/api/v1/token
    grant_type=password&username=...&password=...
    grant_type=refresh_token&refresh_token=...

Ответ:
    {"access_token": "...", "token_type": "bearer",
     "expires_in": 3600, "refresh_token": "..."}
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

import requests

from ..core.exceptions import AuthenticationError, NotConnectedError, ValidationError
from ..core.models import ConnectionResult, RefreshResult
from ..core.session import Session, Clock, utc_now

logger = logging.getLogger(__name__)

TOKEN_PATH = "/api/v1/token"
DEFAULT_PORT = 9644
DEFAULT_REFRESH_THRESHOLD_MINUTES = 5


def build_base_uri(server: str, protocol: str = "https", port: Optional[int] = DEFAULT_PORT) -> str:
    """
    Собирает корневой URL сервера.

    Args:
        server: Hostname или IP (или уже полный URL)
        protocol: http или https
        port: Порт REST API (9644 по умолчанию)

    Returns:
        str: scheme://host:port без завершающего слэша

    Raises:
        ValidationError: Пустой server или неизвестный protocol
    """
    if not server or not server.strip():
        raise ValidationError("Не указан сервер", field="server", value=server)
    server = server.strip().rstrip("/")
    if server.startswith(("http://", "https://")):
        return server

    protocol = (protocol or "https").lower()
    if protocol not in ("http", "https"):
        raise ValidationError(
            "protocol должен быть http или https", field="protocol", value=protocol
        )
    if port:
        return f"{protocol}://{server}:{port}"
    return f"{protocol}://{server}"


class TokenManager:
    """
    Управляет жизненным циклом токенов одной Session.

    Attributes:
        session: Session, которую заполняет/обновляет менеджер
        http: HTTP сессия (requests.Session / WugHttpSession)
        clock: Функция текущего времени UTC (для тестов)
        refresh_threshold_minutes: Порог обновления по умолчанию

    Example:
        manager = TokenManager(session, http)
        manager.connect("admin", "secret", "https://wug.local:9644")
        manager.ensure_fresh()  # без сетевого вызова, если токен свежий
    """

    def __init__(
        self,
        session: Session,
        http: requests.Session,
        clock: Clock = utc_now,
        refresh_threshold_minutes: int = DEFAULT_REFRESH_THRESHOLD_MINUTES,
    ):
        self.session = session
        self.http = http
        self.clock = clock
        self.refresh_threshold_minutes = refresh_threshold_minutes

    # ==================== CONNECT ====================

    def connect(self, username: str, password: str, base_uri: str) -> ConnectionResult:
        """
        Получает токены по логину/паролю и устанавливает Session.

        Повторный вызов заменяет предыдущую сессию.
        При ошибке Session не изменяется.

        Raises:
            ValidationError: Пустые логин/пароль/base_uri
            AuthenticationError: Сбой транспорта или отказ в авторизации
        """
        if not username:
            raise ValidationError("Не указан пользователь", field="username")
        if not password:
            raise ValidationError("Не указан пароль", field="password")
        if not base_uri:
            raise ValidationError("Не указан base_uri", field="base_uri")

        base_uri = base_uri.rstrip("/")
        token_uri = f"{base_uri}{TOKEN_PATH}"
        logger.info(f"Подключение к {base_uri} как {username}")

        token = self._request_token(
            token_uri,
            {"grant_type": "password", "username": username, "password": password},
        )
        expires_at = self._expires_at(token, token_uri)

        with self.session.lock:
            self.session.install(
                base_uri=base_uri,
                bearer_token=token["access_token"],
                refresh_token=token.get("refresh_token"),
                token_type=self._token_type(token),
                expires_at=expires_at,
                username=username,
            )

        logger.info(f"Подключено к {base_uri}, токен действителен до {expires_at.isoformat()}")
        return ConnectionResult(
            base_uri=base_uri,
            username=username,
            token_type=self.session.token_type,
            expires_at=expires_at,
        )

    def disconnect(self) -> None:
        """Сбрасывает сессию."""
        base_uri = self.session.base_uri
        self.session.clear()
        if base_uri:
            logger.info(f"Отключено от {base_uri}")

    # ==================== REFRESH ====================

    def needs_refresh(self, threshold_minutes: Optional[int] = None) -> bool:
        """
        Проверяет, пора ли обновлять токен: now + threshold >= expires_at.

        Raises:
            NotConnectedError: Сессии нет
        """
        if threshold_minutes is None:
            threshold_minutes = self.refresh_threshold_minutes
        with self.session.lock:
            if not self.session.is_connected or self.session.expires_at is None:
                raise NotConnectedError()
            expires_at = self.session.expires_at
        return self.clock() + timedelta(minutes=threshold_minutes) >= expires_at

    def ensure_fresh(self, threshold_minutes: Optional[int] = None) -> bool:
        """
        Обновляет токен, если он близок к истечению.

        Returns:
            bool: True если было выполнено обновление

        Raises:
            NotConnectedError: Сессии нет
            AuthenticationError: Обновление не удалось (старая сессия остаётся)
        """
        with self.session.lock:
            if not self.needs_refresh(threshold_minutes):
                return False
            self.refresh()
            return True

    def try_ensure_fresh(self, threshold_minutes: Optional[int] = None) -> RefreshResult:
        """
        ensure_fresh() без исключений.

        Returns:
            RefreshResult: ok=False и error при ошибке; решение о повторном
            connect() принимает вызывающий код
        """
        try:
            refreshed = self.ensure_fresh(threshold_minutes)
        except (NotConnectedError, AuthenticationError) as e:
            logger.warning(f"Токен не обновлён: {e}")
            return RefreshResult(ok=False, expires_at=self.session.expires_at, error=e)
        return RefreshResult(ok=True, refreshed=refreshed, expires_at=self.session.expires_at)

    def refresh(self) -> None:
        """
        Безусловно обновляет токен через refresh_token.

        Raises:
            NotConnectedError: Сессии нет
            AuthenticationError: Нет refresh токена, сервер отказал или
                новый токен истекает не позже текущего
        """
        with self.session.lock:
            if not self.session.is_connected:
                raise NotConnectedError()
            token_uri = self.session.resolve(TOKEN_PATH)
            refresh_token = self.session.refresh_token
            old_expires_at = self.session.expires_at

            if not refresh_token:
                raise AuthenticationError(
                    "Нет refresh токена, требуется повторный connect()",
                    uri=token_uri,
                )

            logger.debug(f"Обновление токена (истекает {old_expires_at.isoformat()})")
            token = self._request_token(
                token_uri,
                {"grant_type": "refresh_token", "refresh_token": refresh_token},
            )
            expires_at = self._expires_at(token, token_uri)
            if old_expires_at and expires_at <= old_expires_at:
                # Текущая сессия остаётся без изменений
                raise AuthenticationError(
                    f"Новый токен истекает не позже текущего: "
                    f"{expires_at.isoformat()} <= {old_expires_at.isoformat()}",
                    uri=token_uri,
                )

            self.session.update_tokens(
                bearer_token=token["access_token"],
                refresh_token=token.get("refresh_token"),
                token_type=self._token_type(token),
                expires_at=expires_at,
            )
        logger.info(f"Токен обновлён, действителен до {expires_at.isoformat()}")

    # ==================== HELPERS ====================

    def _request_token(self, token_uri: str, form: Dict[str, str]) -> Dict[str, Any]:
        """POST form-encoded запрос на token endpoint."""
        grant = form.get("grant_type")
        try:
            response = self.http.post(
                token_uri,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except requests.RequestException as e:
            raise AuthenticationError(
                f"Token endpoint недоступен ({grant}): {e}", uri=token_uri
            ) from e

        if not 200 <= response.status_code < 300:
            reason = getattr(response, "reason", "") or ""
            raise AuthenticationError(
                f"Ошибка авторизации ({grant}): {response.status_code} {reason}".strip(),
                uri=token_uri,
                status_code=response.status_code,
            )

        try:
            token = response.json()
        except ValueError as e:
            raise AuthenticationError(
                f"Некорректный ответ token endpoint ({grant})", uri=token_uri
            ) from e

        if not isinstance(token, dict) or not token.get("access_token"):
            raise AuthenticationError(
                f"В ответе нет access_token ({grant})", uri=token_uri
            )
        return token

    def _expires_at(self, token: Dict[str, Any], token_uri: str) -> datetime:
        """now (UTC) + expires_in."""
        try:
            expires_in = int(token.get("expires_in"))
        except (TypeError, ValueError) as e:
            raise AuthenticationError(
                f"Некорректный expires_in: {token.get('expires_in')!r}", uri=token_uri
            ) from e
        return self.clock() + timedelta(seconds=expires_in)

    @staticmethod
    def _token_type(token: Dict[str, Any]) -> str:
        """Тип токена всегда в форме 'Bearer' для заголовка Authorization."""
        token_type = (token.get("token_type") or "Bearer").strip()
        if token_type.lower() == "bearer":
            return "Bearer"
        return token_type
