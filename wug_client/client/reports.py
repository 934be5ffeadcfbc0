"""
Mixin для отчётов WUG (временные ряды по устройствам и группам).

Семантика конкретных отчётов не разбирается: строки отчёта
возвращаются как есть в PagedResult.items.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.exceptions import ValidationError
from ..core.models import PagedResult
from ..core.progress import CancelToken
from ..core.session import ensure_utc
from .maintenance import format_utc
from .query import build_uri, path_segment

logger = logging.getLogger(__name__)

FIXED_RANGES = {
    "today",
    "lastPolled",
    "yesterday",
    "lastWeek",
    "lastMonth",
    "lastQuarter",
    "weekToDate",
    "monthToDate",
    "quarterToDate",
}
RELATIVE_RANGES = {
    "lastNSeconds",
    "lastNMinutes",
    "lastNHours",
    "lastNDays",
    "lastNWeeks",
    "lastNMonths",
}
CUSTOM_RANGE = "custom"

# Параметры, которые формирует сам клиент; через extra не передаются
RESERVED_REPORT_PARAMS = frozenset({
    "pageId",
    "limit",
    "sortBy",
    "range",
    "rangeN",
    "rangeStartUtc",
    "rangeEndUtc",
})


def validate_time_range(
    range_: str,
    start_utc: Optional[datetime] = None,
    end_utc: Optional[datetime] = None,
    range_n: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Проверяет временной диапазон отчёта и возвращает query параметры.

    - фиксированный диапазон (today, lastWeek, ...) - без доп. параметров
    - lastN* - нужен range_n >= 1
    - custom - нужны start_utc < end_utc

    Raises:
        ValidationError: Неизвестный диапазон или некорректные границы
    """
    if range_ in FIXED_RANGES:
        if start_utc or end_utc or range_n:
            raise ValidationError(
                f"Диапазон {range_} не принимает границ", field="range", value=range_
            )
        return {"range": range_}

    if range_ in RELATIVE_RANGES:
        if isinstance(range_n, bool) or not isinstance(range_n, int) or range_n < 1:
            raise ValidationError(
                f"Для {range_} нужен range_n >= 1", field="range_n", value=range_n
            )
        return {"range": range_, "rangeN": range_n}

    if range_ == CUSTOM_RANGE:
        if start_utc is None or end_utc is None:
            raise ValidationError(
                "Для custom нужны start_utc и end_utc", field="range", value=range_
            )
        if ensure_utc(start_utc) >= ensure_utc(end_utc):
            raise ValidationError(
                "start_utc должен быть раньше end_utc",
                field="start_utc",
                value=f"{start_utc} >= {end_utc}",
            )
        return {
            "range": CUSTOM_RANGE,
            "rangeStartUtc": format_utc(start_utc),
            "rangeEndUtc": format_utc(end_utc),
        }

    raise ValidationError(f"Неизвестный диапазон: {range_}", field="range", value=range_)


class ReportsMixin:
    """Отчёты по устройствам и группам."""

    def get_device_report(
        self,
        device_id: Any,
        report: str,
        range_: str = "today",
        start_utc: Optional[datetime] = None,
        end_utc: Optional[datetime] = None,
        range_n: Optional[int] = None,
        sort_by: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> PagedResult:
        """
        Отчёт по устройству: GET /api/v1/devices/{id}/reports/{report}.

        Args:
            device_id: ID устройства
            report: Имя отчёта (ping-availability, cpu-utilization, ...)
            range_: Диапазон времени
            start_utc: Начало (для custom)
            end_utc: Конец (для custom)
            range_n: N для lastN*
            sort_by: Поле сортировки
            extra: Дополнительные query параметры отчёта (без pageId,
                limit, sortBy и параметров диапазона)
            cancel_token: Отмена между страницами

        Returns:
            PagedResult: Строки отчёта

        Raises:
            ValidationError: Некорректный диапазон или зарезервированный ключ в extra
        """
        path = f"/api/v1/devices/{path_segment(device_id)}/reports/{self._report_name(report)}"
        return self._fetch_report(
            path, range_, start_utc, end_utc, range_n, sort_by, extra, cancel_token,
            label=f"{report} of device {device_id}",
        )

    def get_group_report(
        self,
        group_id: Any,
        report: str,
        range_: str = "today",
        start_utc: Optional[datetime] = None,
        end_utc: Optional[datetime] = None,
        range_n: Optional[int] = None,
        sort_by: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> PagedResult:
        """Отчёт по устройствам группы: GET /api/v1/device-groups/{id}/devices/reports/{report}."""
        path = (
            f"/api/v1/device-groups/{path_segment(group_id)}/devices/reports/"
            f"{self._report_name(report)}"
        )
        return self._fetch_report(
            path, range_, start_utc, end_utc, range_n, sort_by, extra, cancel_token,
            label=f"{report} of group {group_id}",
        )

    def _fetch_report(
        self,
        path: str,
        range_: str,
        start_utc: Optional[datetime],
        end_utc: Optional[datetime],
        range_n: Optional[int],
        sort_by: Optional[str],
        extra: Optional[Dict[str, Any]],
        cancel_token: Optional[CancelToken],
        label: str,
    ) -> PagedResult:
        params = validate_time_range(range_, start_utc, end_utc, range_n)
        if extra:
            reserved = sorted(RESERVED_REPORT_PARAMS.intersection(extra))
            if reserved:
                raise ValidationError(
                    f"Параметры {', '.join(reserved)} задаются аргументами метода, а не extra",
                    field="extra",
                    value=reserved,
                )
            params.update(extra)
        params["sortBy"] = sort_by
        params["limit"] = self.page_size

        result = self.fetch_all_pages(
            lambda page_id: build_uri(path, **params, pageId=page_id),
            label=label,
            cancel_token=cancel_token,
        )
        if not result.complete:
            logger.warning(f"{label}: отчёт получен частично ({len(result.items)} строк)")
        return result

    @staticmethod
    def _report_name(report: str) -> str:
        if not report or not report.strip():
            raise ValidationError("Не указан отчёт", field="report", value=report)
        return path_segment(report.strip())
