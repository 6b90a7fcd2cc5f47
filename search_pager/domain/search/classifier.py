from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from search_pager.domain.error_codes import ErrorCode
from search_pager.domain.exceptions import SearchProtocolError, StatusFailure
from search_pager.domain.models import SearchEnvelope


@dataclass(frozen=True)
class PageUpdate:
    """
    Назначение:
        Результат успешной классификации одной страницы.
    Инварианты/гарантии:
        - search_id непустой.
        - records в порядке, полученном от бэкенда (пустой список, если записей нет).
    """

    page_index: int
    total_pages: int
    total_records: int
    search_id: str
    records: list[Any] = field(default_factory=list)


def classifyEnvelope(envelope: SearchEnvelope, itemType: type | None = None) -> PageUpdate:
    """
    Назначение:
        Интерпретирует конверт ответа: успех -> PageUpdate, отказ -> StatusFailure.

    Входные данные:
        envelope: SearchEnvelope
        itemType: type | None
            Ожидаемый тип записей; None отключает проверку.

    Ошибки/исключения:
        StatusFailure: status.is_success == False (с полным статусом).
        SearchProtocolError: успешный ответ без searchId или запись не того типа.
    """
    status = envelope.status
    if not status.is_success:
        raise StatusFailure(status)

    if not envelope.search_id:
        raise SearchProtocolError(
            "Missing searchId in a successful search response. This could lead to infinite loops.",
            ErrorCode.MISSING_SEARCH_ID,
            details={"pageIndex": envelope.page_index, "totalPages": envelope.total_pages},
        )

    records = list(envelope.records or [])
    if itemType is not None:
        for offset, record in enumerate(records):
            if not isinstance(record, itemType):
                raise SearchProtocolError(
                    f"Unexpected record type {type(record).__name__}, expected {itemType.__name__}",
                    ErrorCode.RECORD_TYPE_MISMATCH,
                    details={"pageIndex": envelope.page_index, "offset": offset},
                )

    return PageUpdate(
        page_index=envelope.page_index or 0,
        total_pages=envelope.total_pages,
        total_records=envelope.total_records,
        search_id=envelope.search_id,
        records=records,
    )


__all__ = ["PageUpdate", "classifyEnvelope"]
