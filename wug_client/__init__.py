"""
WUG Client - клиентская библиотека для REST API WhatsUp Gold.

Скрипты массового управления устройствами: выборка по группам,
удаление, атрибуты, maintenance, отчёты.

Пример использования:
    from wug_client import WugClient

    with WugClient(server="wug.example.com") as client:
        client.connect("admin", "secret")
        client.add_progress_observer(lambda cur, total, label: print(label, cur, total))

        devices = client.get_group_devices(group_id=0, view="id")
        if not devices.complete:
            print(f"Получено частично: {devices.error}")

        summary = client.set_maintenance([d["id"] for d in devices], enabled=True)
        print(summary.to_dict())
"""

__version__ = "1.0.0"

from .client import WugClient, WugClientBase
from .config import Config, load_config
from .core.models import BatchSummary, PagedResult, ResponseEnvelope, ConnectionResult
from .core.progress import CancelToken
from .core.exceptions import (
    WugClientError,
    NotConnectedError,
    AuthenticationError,
    ApiRequestError,
    ValidationError,
    ConfigError,
)

__all__ = [
    "__version__",
    "WugClient",
    "WugClientBase",
    "Config",
    "load_config",
    "BatchSummary",
    "PagedResult",
    "ResponseEnvelope",
    "ConnectionResult",
    "CancelToken",
    "WugClientError",
    "NotConnectedError",
    "AuthenticationError",
    "ApiRequestError",
    "ValidationError",
    "ConfigError",
]
