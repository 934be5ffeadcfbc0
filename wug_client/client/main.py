"""
WUG Client - объединяет все mixins.
"""

from .base import WugClientBase
from .devices import DevicesMixin
from .attributes import AttributesMixin
from .maintenance import MaintenanceMixin
from .reports import ReportsMixin


class WugClient(
    DevicesMixin,
    AttributesMixin,
    MaintenanceMixin,
    ReportsMixin,
    WugClientBase,
):
    """
    Клиент для работы с WhatsUp Gold REST API.

    Предоставляет:
    - Устройства (выборка по группам, удаление пачками)
    - Атрибуты устройств
    - Maintenance
    - Отчёты (временные ряды)

    Example:
        client = WugClient(server="wug.example.com")
        client.connect("admin", "secret")

        devices = client.get_group_devices(group_id=0, view="id")
        summary = client.remove_devices([d["id"] for d in devices])
        print(summary.successful_operations, summary.failed_operations)
    """

    pass
