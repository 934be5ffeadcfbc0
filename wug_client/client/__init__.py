"""
WUG Client - модуль для работы с WhatsUp Gold REST API.

Ядро (сессия и оркестрация запросов):
    - http.py        - WugHttpSession: таймаут, retry 429 и сбоев соединения
    - auth.py        - TokenManager: connect, ensure_fresh, refresh
    - executor.py    - RequestExecutor: один вызов API -> ResponseEnvelope
    - paging.py      - Paginator: все страницы по nextPageId
    - batch.py       - Batcher: bulk-мутации пачками
    - base.py        - WugClientBase: связывает компоненты

Endpoint mixins:
    - devices.py     - устройства
    - attributes.py  - атрибуты устройств
    - maintenance.py - maintenance
    - reports.py     - отчёты
    - main.py        - WugClient (объединяет все mixins)
"""

from .main import WugClient
from .base import WugClientBase
from .auth import TokenManager, build_base_uri
from .executor import RequestExecutor
from .paging import Paginator
from .batch import Batcher, chunked
from .http import WugHttpSession
from .query import build_query, build_uri

__all__ = [
    "WugClient",
    "WugClientBase",
    "TokenManager",
    "build_base_uri",
    "RequestExecutor",
    "Paginator",
    "Batcher",
    "chunked",
    "WugHttpSession",
    "build_query",
    "build_uri",
]
