from __future__ import annotations

import json
from typing import Any

from search_pager.domain.error_codes import ErrorCode
from search_pager.domain.models import Status, StatusDetail
from search_pager.errors import AppError

STATUS_FAILURE_PREFIX = "Something went wrong with your request: "


class StatusFailure(AppError):
    """
    Назначение:
        Запрос технически выполнен, но прикладной статус ответа сообщает об ошибке.
    Контракт:
        - status: исходный объект статуса (вместе со всеми statusDetail).
        - code: необязательный числовой код причины (failure_code).
        - message: необязательный дополнительный текст перед сериализацией деталей.
        - previous: необязательная низкоуровневая причина (__cause__).
    Инварианты/гарантии:
        - str(exc) всегда заканчивается JSON-представлением statusDetail.
    """

    def __init__(
        self,
        status: Status,
        code: int = 0,
        message: str = "",
        previous: BaseException | None = None,
    ):
        self._status = status
        self._extra_messages: list[str] = []
        self.failure_code = code
        super().__init__(
            category="search",
            code=ErrorCode.STATUS_FAILURE.value,
            message="",
            retryable=False,
            details={},
        )
        if previous is not None:
            self.__cause__ = previous
        self.addMessage(message)

    def getStatus(self) -> Status:
        return self._status

    def addMessage(self, message: str | None) -> None:
        """
        Назначение:
            Добавляет поясняющий текст к сообщению об ошибке.
        Алгоритм:
            - Непустой текст дописывается после ранее добавленных, через перевод строки.
            - Фиксированная строка с деталями статуса всегда идёт последней.
            - details и message пересобираются из текущего статуса.
        """
        if message:
            self._extra_messages.append(message)
        serialized = _serialize_details(self._status.status_detail)
        self.details = {"statusDetail": serialized}
        rendered = STATUS_FAILURE_PREFIX + json.dumps(
            serialized,
            ensure_ascii=False,
            default=str,
        )
        if self._extra_messages:
            rendered = "\n".join(self._extra_messages) + "\n" + rendered
        self.message = rendered
        self.args = (rendered,)

    def findDetailByCode(self, code: str) -> Any | None:
        """
        Назначение:
            Ищет первую запись statusDetail с точно совпадающим кодом.
        Выходные данные:
            Найденная запись (в порядке списка) либо None.
        """
        for detail in self._status.status_detail or []:
            if _detail_code(detail) == code:
                return detail
        return None


class SearchProtocolError(AppError):
    """
    Назначение:
        Бэкенд вернул «успешный» ответ, но в состоянии, с которым нельзя
        безопасно продолжать постраничный обход (нет searchId, страница не
        продвинулась, запись не того типа).
    """

    def __init__(self, message: str, code: ErrorCode, details: dict | None = None):
        super().__init__(
            category="search",
            code=code.value,
            message=message,
            retryable=False,
            details=details or {},
        )


def _detail_code(detail: Any) -> Any:
    if isinstance(detail, dict):
        return detail.get("code")
    return getattr(detail, "code", None)


def _serialize_details(details: list[Any] | None) -> Any:
    if details is None:
        return None
    return [d.to_dict() if isinstance(d, StatusDetail) else d for d in details]


__all__ = ["STATUS_FAILURE_PREFIX", "SearchProtocolError", "StatusFailure"]
