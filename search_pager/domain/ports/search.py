from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from search_pager.domain.models import SearchEnvelope


@runtime_checkable
class SearchExecutorProtocol(Protocol):
    """
    Назначение:
        Контракт внешнего исполнителя поиска, который потребляет курсор.

    Контракт:
        - setPagingPreferences(usePaging, pageSize) вызывается перед каждым запросом.
        - clearPagingPreferences() вызывается после каждой попытки, даже неудачной.
        - executeSearch(specification) -> SearchEnvelope (первая страница).
        - executeSearchPage(searchId, pageIndex) -> SearchEnvelope (следующие страницы).

    Ошибки/исключения:
        Транспортные ошибки пробрасываются как есть, курсор их не перехватывает.
    """

    def setPagingPreferences(self, usePaging: bool, pageSize: int) -> None: ...
    def clearPagingPreferences(self) -> None: ...
    def executeSearch(self, specification: Any) -> SearchEnvelope: ...
    def executeSearchPage(self, searchId: str, pageIndex: int) -> SearchEnvelope: ...


__all__ = ["SearchExecutorProtocol"]
