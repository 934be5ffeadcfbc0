"""
Mixin для работы с устройствами WUG.
"""

import logging
from typing import List, Any, Optional, Sequence

from ..core.exceptions import ValidationError
from ..core.models import BatchSummary, PagedResult
from ..core.progress import CancelToken
from .query import build_uri, path_segment

logger = logging.getLogger(__name__)

DEVICE_VIEWS = {"id", "basic", "card", "overview", "status", "overviewHierarchy"}

# Лимит API для PATCH /api/v1/devices/-
REMOVE_DEVICES_BATCH_SIZE = 499


class DevicesMixin:
    """Методы для работы с устройствами."""

    def get_group_devices(
        self,
        group_id: Any = 0,
        view: str = "overview",
        search: Optional[str] = None,
        state: Optional[str] = None,
        limit: Optional[int] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> PagedResult:
        """
        Получает все устройства группы (постранично).

        Args:
            group_id: ID группы ("-" или 0 - корневая группа My Network)
            view: Представление (id, basic, card, overview, status, overviewHierarchy)
            search: Поиск по имени/адресу
            state: Фильтр по состоянию (up, down, maintenance, unknown)
            limit: Размер страницы (по умолчанию config.wug.page_size)
            cancel_token: Отмена между страницами

        Returns:
            PagedResult: Устройства в порядке страниц

        Raises:
            ValidationError: Неизвестный view
        """
        if view not in DEVICE_VIEWS:
            raise ValidationError(
                f"Неизвестный view: {view}. Допустимо: {', '.join(sorted(DEVICE_VIEWS))}",
                field="view",
                value=view,
            )
        path = f"/api/v1/device-groups/{path_segment(group_id)}/devices/-"
        page_size = limit or self.page_size

        result = self.fetch_all_pages(
            lambda page_id: build_uri(
                path,
                view=view,
                search=search,
                state=state,
                limit=page_size,
                pageId=page_id,
            ),
            label=f"devices of group {group_id}",
            cancel_token=cancel_token,
        )
        logger.debug(f"Получено устройств группы {group_id}: {len(result.items)}")
        return result

    def get_device(self, device_id: Any, view: Optional[str] = None) -> Any:
        """
        Получает одно устройство.

        Args:
            device_id: ID устройства
            view: Представление (опционально)

        Returns:
            dict: data ответа
        """
        envelope = self.execute_api_call(
            build_uri(f"/api/v1/devices/{path_segment(device_id)}", view=view)
        )
        return envelope.data

    def get_device_status(self, device_id: Any) -> Any:
        """Текущее состояние устройства (data ответа)."""
        envelope = self.execute_api_call(f"/api/v1/devices/{path_segment(device_id)}/status")
        return envelope.data

    def remove_device(self, device_id: Any, delete_discovered: bool = False) -> Any:
        """Удаляет одно устройство."""
        envelope = self.execute_api_call(
            build_uri(
                f"/api/v1/devices/{path_segment(device_id)}",
                deleteDiscoveredDevices=delete_discovered,
            ),
            "DELETE",
        )
        logger.info(f"Удалено устройство: {device_id}")
        return envelope.data

    def remove_devices(
        self,
        device_ids: Sequence[Any],
        delete_discovered: bool = False,
        max_batch_size: int = REMOVE_DEVICES_BATCH_SIZE,
        cancel_token: Optional[CancelToken] = None,
    ) -> BatchSummary:
        """
        Удаляет устройства пачками.

        Args:
            device_ids: ID устройств
            delete_discovered: Удалить также из результатов discovery
            max_batch_size: Размер batch (лимит API 499)
            cancel_token: Отмена между batch

        Returns:
            BatchSummary: Успешные/неуспешные удаления
        """
        device_ids = self._unique_ids(device_ids)

        def _remove(chunk: List[Any]):
            return self.execute_api_call(
                "/api/v1/devices/-",
                "PATCH",
                {
                    "operation": "delete",
                    "devices": chunk,
                    "deleteDiscoveredDevices": delete_discovered,
                },
            )

        summary = self.run_batch_mutation(
            device_ids,
            max_batch_size,
            _remove,
            label="remove devices",
            cancel_token=cancel_token,
        )
        logger.info(
            f"Удаление устройств: успешно {summary.successful_operations}, "
            f"ошибок {summary.failed_operations}"
        )
        return summary

    @staticmethod
    def _unique_ids(ids: Sequence[Any]) -> List[Any]:
        """ID без повторов с сохранением порядка."""
        if isinstance(ids, (str, bytes)):
            raise ValidationError("Ожидается список ID", field="device_ids", value=ids)
        seen = set()
        unique = []
        for item in ids:
            key = str(item)
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        if len(unique) != len(ids):
            logger.debug(f"Удалены дубликаты ID: {len(ids) - len(unique)}")
        return unique
