from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class StatusDetail:
    """
    Назначение:
        Одна диагностическая запись статуса (код + человекочитаемое сообщение).
    """

    code: str | None = None
    message: str | None = None
    type: str | None = None

    @classmethod
    def fromDict(cls, data: Any) -> "StatusDetail | Any":
        # Непривычные записи (строки, числа) сохраняются как есть.
        if not isinstance(data, dict):
            return data
        return cls(code=data.get("code"), message=data.get("message"), type=data.get("type"))

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "type": self.type}


@dataclass
class Status:
    """
    Назначение:
        Прикладной статус ответа: флаг успеха и список диагностических записей.
    Инварианты/гарантии:
        - status_detail может быть None (бэкенд не прислал детали).
    """

    is_success: bool
    status_detail: list[Any] | None = None

    @classmethod
    def fromDict(cls, data: Any) -> "Status":
        if not isinstance(data, dict):
            raise ValueError("status must be an object")
        if "isSuccess" not in data:
            raise ValueError("status.isSuccess is required")
        details = data.get("statusDetail")
        if details is not None and not isinstance(details, list):
            details = [details]
        return cls(
            is_success=bool(data["isSuccess"]),
            status_detail=[StatusDetail.fromDict(d) for d in details] if details is not None else None,
        )


@dataclass
class SearchEnvelope:
    """
    Назначение/ответственность:
        Декодированный ответ одного поискового вызова: статус, метаданные страницы и записи.
    Контракт:
        - page_index 1-based; None, если бэкенд его не прислал.
        - records None означает «записей нет», а не ошибку.
    Взаимодействия:
        Возвращается SearchExecutorProtocol, разбирается classifyEnvelope().
    """

    status: Status
    total_pages: int = 0
    total_records: int = 0
    page_index: int | None = None
    search_id: str | None = None
    records: list[Any] | None = None
    page_size: int | None = None

    @classmethod
    def fromDict(cls, data: Any) -> "SearchEnvelope":
        """
        Разбирает JSON-конверт (опционально обёрнутый в {"searchResult": ...}).
        Бросает ValueError на структурно некорректных данных.
        """
        if isinstance(data, dict) and isinstance(data.get("searchResult"), dict):
            data = data["searchResult"]
        if not isinstance(data, dict):
            raise ValueError("search result must be an object")

        records: list[Any] | None = None
        record_list = data.get("recordList")
        if isinstance(record_list, dict):
            records = record_list.get("record")
        elif isinstance(record_list, list):
            records = record_list
        elif record_list is not None:
            raise ValueError("recordList must be an object or an array")
        if records is not None and not isinstance(records, list):
            raise ValueError("recordList.record must be an array")

        return cls(
            status=Status.fromDict(data.get("status")),
            total_pages=_as_int(data.get("totalPages"), "totalPages") or 0,
            total_records=_as_int(data.get("totalRecords"), "totalRecords") or 0,
            page_index=_as_int(data.get("pageIndex"), "pageIndex"),
            search_id=data.get("searchId"),
            records=records,
            page_size=_as_int(data.get("pageSize"), "pageSize"),
        )


def _as_int(value: Any, name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer") from exc


__all__ = ["SearchEnvelope", "Status", "StatusDetail"]
