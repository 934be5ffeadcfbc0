"""
Mixin для режима обслуживания (maintenance) устройств WUG.
"""

import logging
from datetime import datetime
from typing import List, Any, Optional, Sequence

from ..core.exceptions import ValidationError
from ..core.models import BatchSummary
from ..core.progress import CancelToken
from ..core.session import ensure_utc

logger = logging.getLogger(__name__)

# Лимит API для PATCH /api/v1/devices/-/config/maintenance
MAINTENANCE_BATCH_SIZE = 499


def format_utc(value: datetime) -> str:
    """datetime -> ISO 8601 в UTC с суффиксом Z."""
    return ensure_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


class MaintenanceMixin:
    """Включение/выключение maintenance."""

    def set_maintenance(
        self,
        device_ids: Sequence[Any],
        enabled: bool,
        reason: str = "",
        end_utc: Optional[datetime] = None,
        max_batch_size: int = MAINTENANCE_BATCH_SIZE,
        cancel_token: Optional[CancelToken] = None,
    ) -> BatchSummary:
        """
        Переводит устройства в maintenance (или выводит из него) пачками.

        Args:
            device_ids: ID устройств
            enabled: True - включить maintenance, False - выключить
            reason: Причина (видна в консоли WUG)
            end_utc: Автоматическое завершение (только при enabled=True)
            max_batch_size: Размер batch
            cancel_token: Отмена между batch

        Raises:
            ValidationError: end_utc в прошлом или задан при enabled=False
        """
        body = {"enabled": bool(enabled)}
        if reason:
            body["reason"] = reason
        if end_utc is not None:
            if not enabled:
                raise ValidationError(
                    "end_utc допустим только при enabled=True", field="end_utc", value=end_utc
                )
            if ensure_utc(end_utc) <= self.tokens.clock():
                raise ValidationError(
                    "end_utc должен быть в будущем", field="end_utc", value=end_utc
                )
            body["endUtc"] = format_utc(end_utc)

        def _apply(chunk: List[Any]):
            return self.execute_api_call(
                "/api/v1/devices/-/config/maintenance",
                "PATCH",
                {"devices": chunk, **body},
            )

        state = "включение" if enabled else "выключение"
        summary = self.run_batch_mutation(
            list(device_ids),
            max_batch_size,
            _apply,
            label=f"maintenance {'on' if enabled else 'off'}",
            cancel_token=cancel_token,
        )
        logger.info(
            f"Maintenance {state}: успешно {summary.successful_operations}, "
            f"ошибок {summary.failed_operations}"
        )
        return summary
