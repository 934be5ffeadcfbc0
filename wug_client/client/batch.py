"""
Batcher - bulk-мутации с ограничением размера batch.

API ограничивает количество элементов в одном запросе (на разных
endpoint от 201 до 499). Batcher режет вход на последовательные
batch не больше max_batch_size и обрабатывает их строго по порядку.

Ошибка batch не прерывает обработку: все элементы batch считаются
неуспешными, ошибка логируется и сохраняется в BatchSummary.errors
вместе с диапазоном индексов. Итог всегда сходится:
successful_operations + failed_operations == total.
"""

import logging
from typing import Any, Callable, List, Optional, Sequence

from ..core.exceptions import ValidationError, format_error_for_log
from ..core.logging import OperationLog, get_logger
from ..core.models import BatchResult, BatchSummary
from ..core.progress import CancelToken, ProgressReporter

logger = logging.getLogger(__name__)

BatchOperation = Callable[[List[Any]], Any]


def chunked(items: Sequence[Any], size: int) -> List[List[Any]]:
    """
    Режет последовательность на batch по size элементов.

    Args:
        items: Входные элементы
        size: Максимальный размер batch (>= 1)

    Returns:
        List: ceil(len(items) / size) списков в исходном порядке
    """
    if size < 1:
        raise ValidationError("Размер batch должен быть >= 1", field="max_batch_size", value=size)
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class Batcher:
    """
    Последовательная обработка batch с учётом частичных ошибок.

    Example:
        batcher = Batcher(progress)
        summary = batcher.run(
            device_ids,
            max_batch_size=499,
            operation=lambda chunk: client.execute_api_call(
                "/api/v1/devices/-", "PATCH", {"operation": "delete", "devices": chunk}
            ),
            label="remove devices",
        )
        print(summary.successful_operations, summary.failed_operations)
    """

    def __init__(
        self,
        progress: Optional[ProgressReporter] = None,
        before_batch: Optional[Callable[[], None]] = None,
    ):
        """
        Args:
            progress: Наблюдатели прогресса
            before_batch: Вызывается перед каждым batch (например, ensure_fresh)
        """
        self.progress = progress or ProgressReporter()
        self.before_batch = before_batch

    def run(
        self,
        items: Sequence[Any],
        max_batch_size: int,
        operation: BatchOperation,
        label: str = "batch",
        cancel_token: Optional[CancelToken] = None,
    ) -> BatchSummary:
        """
        Выполняет operation для каждого batch.

        Args:
            items: Входные элементы (ID устройств и т.п.)
            max_batch_size: Лимит элементов на запрос
            operation: chunk -> BatchResult / ResponseEnvelope / dict / None
            label: Название операции для прогресса и логов
            cancel_token: Проверяется перед каждым batch

        Returns:
            BatchSummary: Сводный результат

        Raises:
            ValidationError: Некорректные items или max_batch_size (до вызовов API)
        """
        if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
            raise ValidationError(
                "items должен быть списком", field="items", value=type(items).__name__
            )
        if isinstance(max_batch_size, bool) or not isinstance(max_batch_size, int):
            raise ValidationError(
                "max_batch_size должен быть целым числом",
                field="max_batch_size",
                value=max_batch_size,
            )
        chunks = chunked(items, max_batch_size)

        summary = BatchSummary(total=len(items))
        op = OperationLog(operation=f"batch:{label}").start()
        total_chunks = len(chunks)
        offset = 0

        if total_chunks:
            logger.info(
                f"{label}: {len(items)} элементов, {total_chunks} batch по <= {max_batch_size}"
            )

        for index, chunk in enumerate(chunks, start=1):
            start, end = offset, offset + len(chunk) - 1
            offset += len(chunk)

            if cancel_token is not None and cancel_token.cancelled:
                remaining = summary.total - summary.successful_operations - summary.failed_operations
                logger.warning(
                    f"{label}: отменено перед batch {index}/{total_chunks}, "
                    f"не обработано {remaining} элементов ({cancel_token.reason})"
                )
                summary.failed_operations += remaining
                summary.errors.append({
                    "batch": index,
                    "range": [start, summary.total - 1],
                    "count": remaining,
                    "error": f"cancelled: {cancel_token.reason}",
                })
                summary.cancelled = True
                break

            try:
                if self.before_batch is not None:
                    self.before_batch()
                raw = operation(chunk)
                batch_result = BatchResult.from_payload(raw, len(chunk))
            except Exception as e:
                logger.error(
                    f"{label}: batch {index}/{total_chunks} (элементы {start}..{end}) "
                    f"не выполнен: {format_error_for_log(e)}"
                )
                summary.failed_operations += len(chunk)
                summary.errors.append({
                    "batch": index,
                    "range": [start, end],
                    "count": len(chunk),
                    "error": format_error_for_log(e),
                })
            else:
                successful = min(max(batch_result.successful, 0), len(chunk))
                failed = len(chunk) - successful
                summary.successful_operations += successful
                summary.failed_operations += failed
                summary.resources_with_errors.extend(batch_result.resources_with_errors)
                if failed or batch_result.errors:
                    logger.warning(
                        f"{label}: batch {index}/{total_chunks} - успешно {successful}, "
                        f"ошибок {failed}"
                    )
                    summary.errors.append({
                        "batch": index,
                        "range": [start, end],
                        "count": failed,
                        "error": batch_result.errors,
                    })

            summary.batches += 1
            self.progress.report(index, total_chunks, label)

        if summary.ok:
            op.success(total=summary.total, batches=summary.batches)
        else:
            op.failure(
                f"successful={summary.successful_operations}, failed={summary.failed_operations}"
            )
        op.log(get_logger(__name__))
        return summary
