"""
Core модули WUG Client: сессия, модели, исключения, логирование,
конфигурация и учётные данные.
"""

from .session import Session, utc_now
from .models import (
    PageCursor,
    ResponseEnvelope,
    ConnectionResult,
    RefreshResult,
    BatchResult,
    BatchSummary,
    PagedResult,
)
from .progress import ProgressReporter, CancelToken
from .exceptions import (
    WugClientError,
    NotConnectedError,
    AuthenticationError,
    ApiRequestError,
    ValidationError,
    ConfigError,
)

__all__ = [
    "Session",
    "utc_now",
    "PageCursor",
    "ResponseEnvelope",
    "ConnectionResult",
    "RefreshResult",
    "BatchResult",
    "BatchSummary",
    "PagedResult",
    "ProgressReporter",
    "CancelToken",
    "WugClientError",
    "NotConnectedError",
    "AuthenticationError",
    "ApiRequestError",
    "ValidationError",
    "ConfigError",
]
