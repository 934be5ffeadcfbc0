"""
Базовый класс WUG клиента.

Связывает Session, TokenManager, RequestExecutor, Paginator и Batcher
и предоставляет примитивы, на которых построены endpoint mixins:

    connect() / disconnect()
    execute_api_call(uri, method, body)
    fetch_all_pages(uri_builder)
    run_batch_mutation(items, max_batch_size, operation)
    add_progress_observer(callback)
"""

import logging
from typing import Any, Optional, Sequence

import requests

from ..core.config_schema import AppConfig, get_default_config
from ..core.credentials import CredentialsManager
from ..core.exceptions import ValidationError
from ..core.models import BatchSummary, ConnectionResult, PagedResult, RefreshResult, ResponseEnvelope
from ..core.progress import CancelToken, ProgressObserver, ProgressReporter
from ..core.session import Clock, Session, utc_now
from .auth import TokenManager, build_base_uri
from .batch import BatchOperation, Batcher
from .executor import RequestExecutor
from .http import WugHttpSession
from .paging import Paginator, UriBuilder

logger = logging.getLogger(__name__)


class WugClientBase:
    """
    Базовый класс для WUG клиента.

    Отвечает за сессию и оркестрацию запросов. Настройки берутся
    из AppConfig (секции wug и batch), явные параметры их перекрывают.

    Attributes:
        session: Session текущего подключения
        http: HTTP сессия (WugHttpSession)
        tokens: TokenManager
        executor: RequestExecutor
        paginator: Paginator
        batcher: Batcher
        progress: Наблюдатели прогресса
    """

    def __init__(
        self,
        server: Optional[str] = None,
        protocol: Optional[str] = None,
        port: Optional[int] = None,
        verify_ssl: Optional[bool] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        refresh_threshold_minutes: Optional[int] = None,
        auto_refresh: Optional[bool] = None,
        config: Optional[AppConfig] = None,
        http: Optional[requests.Session] = None,
        clock: Clock = utc_now,
    ):
        """
        Инициализация клиента WUG. Подключение выполняется в connect().

        Args:
            server: Hostname/IP сервера (или config.wug.server)
            protocol: http или https
            port: Порт REST API (9644)
            verify_ssl: Проверять SSL сертификат
            timeout: Таймаут HTTP запроса (секунды)
            max_retries: Попыток при HTTP 429
            retry_delay: Базовая задержка между попытками
            refresh_threshold_minutes: Порог обновления токена
            auto_refresh: Вызывать ensure_fresh() перед каждым запросом
            config: Валидированная конфигурация
            http: Готовая HTTP сессия (для тестов)
            clock: Источник текущего времени UTC
        """
        self.config = config or get_default_config()
        wug = self.config.wug

        self.server = server if server is not None else wug.server
        self.protocol = protocol or wug.protocol
        self.port = port if port is not None else wug.port
        self.auto_refresh = wug.auto_refresh if auto_refresh is None else auto_refresh
        self.max_batch_size = self.config.batch.max_batch_size
        self.page_size = wug.page_size
        self.username = wug.username or None

        self.http = http or WugHttpSession(
            timeout=timeout if timeout is not None else wug.timeout,
            verify=wug.verify_ssl if verify_ssl is None else verify_ssl,
            max_retries_429=max_retries if max_retries is not None else wug.max_retries,
            transport_retries=wug.transport_retries,
            retry_delay=retry_delay if retry_delay is not None else wug.retry_delay,
        )

        self.session = Session()
        self.progress = ProgressReporter()
        self.tokens = TokenManager(
            self.session,
            self.http,
            clock=clock,
            refresh_threshold_minutes=(
                refresh_threshold_minutes
                if refresh_threshold_minutes is not None
                else wug.refresh_threshold_minutes
            ),
        )
        self.executor = RequestExecutor(self.session, self.http)
        self.paginator = Paginator(self.executor, self.progress, before_request=self._before_call)
        self.batcher = Batcher(self.progress)

    # ==================== SESSION ====================

    def connect(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        base_uri: Optional[str] = None,
        protocol: Optional[str] = None,
        server: Optional[str] = None,
        port: Optional[int] = None,
    ) -> ConnectionResult:
        """
        Подключается к серверу (password grant).

        Повторный вызов заменяет текущую сессию. Если логин/пароль не
        переданы, они берутся из CredentialsManager (env/keyring).

        Raises:
            ValidationError: Не указан сервер или учётные данные
            AuthenticationError: Сервер отказал или недоступен
        """
        if not base_uri:
            base_uri = build_base_uri(
                server or self.server,
                protocol or self.protocol,
                port if port is not None else self.port,
            )

        if not (username and password):
            try:
                creds = CredentialsManager(
                    username=username or self.username,
                    password=password,
                ).get_credentials(interactive=False)
            except ValueError as e:
                raise ValidationError(str(e), field="password") from e
            username, password = creds.username, creds.password

        result = self.tokens.connect(username, password, base_uri)
        self.username = username
        return result

    def disconnect(self) -> None:
        """Сбрасывает сессию."""
        self.tokens.disconnect()

    @property
    def is_connected(self) -> bool:
        return self.session.is_connected

    def ensure_fresh(self, threshold_minutes: Optional[int] = None) -> bool:
        """Обновляет токен при приближении истечения. См. TokenManager.ensure_fresh."""
        return self.tokens.ensure_fresh(threshold_minutes)

    def try_ensure_fresh(self, threshold_minutes: Optional[int] = None) -> RefreshResult:
        """ensure_fresh() без исключений."""
        return self.tokens.try_ensure_fresh(threshold_minutes)

    def _before_call(self) -> None:
        if self.auto_refresh:
            self.tokens.ensure_fresh()

    # ==================== PRIMITIVES ====================

    def execute_api_call(
        self,
        uri: str,
        method: str = "GET",
        body: Optional[Any] = None,
    ) -> ResponseEnvelope:
        """
        Один вызов API.

        Raises:
            NotConnectedError: Нет сессии
            AuthenticationError: Не удалось обновить токен (auto_refresh)
            ValidationError: Неподдерживаемый HTTP метод
            ApiRequestError: Ошибка вызова
        """
        self._before_call()
        return self.executor.execute(uri, method, body)

    def fetch_all_pages(
        self,
        uri_builder: UriBuilder,
        label: str = "pages",
        cancel_token: Optional[CancelToken] = None,
    ) -> PagedResult:
        """Все страницы по курсору. См. Paginator.fetch_all."""
        return self.paginator.fetch_all(uri_builder, label=label, cancel_token=cancel_token)

    def run_batch_mutation(
        self,
        items: Sequence[Any],
        max_batch_size: Optional[int],
        operation: BatchOperation,
        label: str = "batch",
        cancel_token: Optional[CancelToken] = None,
    ) -> BatchSummary:
        """
        Bulk-мутация по batch. См. Batcher.run.

        max_batch_size=None - размер из config.batch.max_batch_size.
        operation обычно вызывает execute_api_call(), поэтому
        ensure_fresh() выполняется перед каждым batch автоматически.
        """
        if max_batch_size is None:
            max_batch_size = self.max_batch_size
        return self.batcher.run(
            items,
            max_batch_size,
            operation,
            label=label,
            cancel_token=cancel_token,
        )

    # ==================== PROGRESS ====================

    def add_progress_observer(self, observer: ProgressObserver) -> None:
        """Регистрирует callback(current, total, label)."""
        self.progress.add(observer)

    def remove_progress_observer(self, observer: ProgressObserver) -> None:
        self.progress.remove(observer)

    # ==================== LIFECYCLE ====================

    def close(self) -> None:
        """Сбрасывает сессию и закрывает HTTP соединения."""
        self.disconnect()
        self.http.close()

    def __enter__(self) -> "WugClientBase":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
