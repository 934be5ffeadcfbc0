"""
Mixin для работы с атрибутами устройств WUG.
"""

import logging
from typing import List, Any, Optional, Sequence

from ..core.exceptions import ValidationError
from ..core.models import BatchSummary, PagedResult
from .query import build_uri, path_segment

logger = logging.getLogger(__name__)

# Лимит API для PATCH /api/v1/devices/-/attributes
SET_ATTRIBUTES_BATCH_SIZE = 499


class AttributesMixin:
    """Методы для работы с атрибутами устройств."""

    def get_device_attributes(
        self,
        device_id: Any,
        names: Optional[Sequence[str]] = None,
        names_contain: Optional[str] = None,
    ) -> PagedResult:
        """
        Получает атрибуты устройства (постранично).

        Args:
            device_id: ID устройства
            names: Точные имена атрибутов
            names_contain: Подстрока имени

        Returns:
            PagedResult: Атрибуты {id, name, value}
        """
        path = f"/api/v1/devices/{path_segment(device_id)}/attributes/-"
        return self.fetch_all_pages(
            lambda page_id: build_uri(
                path,
                names=list(names) if names else None,
                namesContain=names_contain,
                limit=self.page_size,
                pageId=page_id,
            ),
            label=f"attributes of device {device_id}",
        )

    def set_device_attribute(self, device_id: Any, name: str, value: Any) -> Any:
        """
        Создаёт или обновляет атрибут устройства.

        Raises:
            ValidationError: Пустое имя атрибута
        """
        if not name:
            raise ValidationError("Не указано имя атрибута", field="name")
        envelope = self.execute_api_call(
            f"/api/v1/devices/{path_segment(device_id)}/attributes/-",
            "POST",
            {"name": name, "value": "" if value is None else str(value)},
        )
        logger.debug(f"Атрибут {name} установлен для устройства {device_id}")
        return envelope.data

    def remove_device_attribute(self, device_id: Any, attribute_id: Any) -> Any:
        """Удаляет атрибут устройства по ID атрибута."""
        envelope = self.execute_api_call(
            f"/api/v1/devices/{path_segment(device_id)}/attributes/{path_segment(attribute_id)}",
            "DELETE",
        )
        return envelope.data

    def set_attribute_for_devices(
        self,
        device_ids: Sequence[Any],
        name: str,
        value: Any,
        max_batch_size: int = SET_ATTRIBUTES_BATCH_SIZE,
    ) -> BatchSummary:
        """
        Устанавливает один атрибут на множестве устройств пачками.

        Returns:
            BatchSummary: Итог по устройствам
        """
        if not name:
            raise ValidationError("Не указано имя атрибута", field="name")
        attribute = {"name": name, "value": "" if value is None else str(value)}

        def _set(chunk: List[Any]):
            return self.execute_api_call(
                "/api/v1/devices/-/attributes/-",
                "PATCH",
                {"devices": chunk, "set": [attribute]},
            )

        return self.run_batch_mutation(
            list(device_ids),
            max_batch_size,
            _set,
            label=f"set attribute {name}",
        )
