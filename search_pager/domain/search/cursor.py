from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Generic, Iterator, TypeVar

from search_pager.domain.error_codes import ErrorCode
from search_pager.domain.exceptions import SearchProtocolError
from search_pager.domain.models import SearchEnvelope
from search_pager.domain.ports.search import SearchExecutorProtocol
from search_pager.domain.search.classifier import PageUpdate, classifyEnvelope
from search_pager.infra.logging.setup import logEvent

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50


class CursorState(str, Enum):
    """
    Состояния курсора:
        UNINITIALIZED: поиск ещё не выполнялся.
        FETCHING: идёт запрос страницы.
        HAS_MORE: буфер заполнен, у бэкенда есть следующие страницы.
        EXHAUSTED: буфер заполнен, страниц больше нет.
        FAILED: запрос страницы завершился ошибкой, дальнейших запросов не будет.
    """

    UNINITIALIZED = "uninitialized"
    FETCHING = "fetching"
    HAS_MORE = "has_more"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class PagedSearchCursor(Generic[T]):
    """
    Назначение/ответственность:
        Последовательный доступ ко всем результатам удалённого поиска,
        с подгрузкой следующих страниц по мере продвижения.

    Контракт:
        - Конструктор не делает удалённых вызовов.
        - Первый доступ (current/advance/isValid/position/restart/count/итерация)
          выполняет начальный поиск.
        - Любой шаг может выполнить сетевой запрос, поэтому обход нужно
          оборачивать в обработку ApiError/StatusFailure.
        - restart() перематывает только уже загруженные записи, поиск заново не выполняется.

    Ограничения:
        Синхронный, без блокировок; не предназначен для использования из нескольких потоков.

    Пример:
        cursor = PagedSearchCursor(executor, {"type": "customer"}, pageSize=100)
        for record in cursor:
            ...
    """

    def __init__(
        self,
        executor: SearchExecutorProtocol,
        specification: Any,
        *,
        pageSize: int = DEFAULT_PAGE_SIZE,
        itemType: type[T] | None = None,
        logger: logging.Logger | None = None,
        runId: str = "-",
    ):
        if pageSize <= 0:
            raise ValueError(f"pageSize must be positive, got {pageSize}")
        self.executor = executor
        self.specification = specification
        self.pageSize = pageSize
        self.itemType = itemType
        self.logger = logger or logging.getLogger("searchPager.cursor")
        self.runId = runId

        self._state = CursorState.UNINITIALIZED
        self._results: list[T] = []
        self._position = 0
        self._searchId: str | None = None
        self._page = 0
        self._maxPage = 0
        self._totalRecords = 0

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def searchId(self) -> str | None:
        return self._searchId

    @property
    def currentPage(self) -> int:
        return self._page

    @property
    def maxPage(self) -> int:
        return self._maxPage

    def current(self) -> T:
        self._init()
        if not self._isPositioned():
            raise IndexError(f"cursor is not positioned on a record (position={self._position})")
        return self._results[self._position]

    def advance(self) -> None:
        self._init()
        if self._position < len(self._results):
            self._position += 1
        self._fillBuffer()

    def isValid(self) -> bool:
        self._init()
        return self._isPositioned()

    def position(self) -> int:
        self._init()
        return self._position

    def restart(self) -> None:
        self._init()
        self._position = 0

    def count(self) -> int:
        """
        Общее число записей по данным бэкенда (может не совпадать с числом загруженных).

        Если первая страница так и не была получена (курсор в FAILED), число
        неизвестно: вместо 0 поднимается SearchProtocolError(CURSOR_FAILED).
        """
        self._init()
        if self._state is CursorState.FAILED and self._searchId is None:
            raise SearchProtocolError(
                "Search failed before the first page was fetched; total record count is unknown",
                ErrorCode.CURSOR_FAILED,
            )
        return self._totalRecords

    def bufferedCount(self) -> int:
        return len(self._results)

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[T]:
        self.restart()
        while self.isValid():
            yield self.current()
            self.advance()

    def _isPositioned(self) -> bool:
        return self._position < len(self._results)

    def _init(self) -> None:
        if self._state is CursorState.UNINITIALIZED:
            self._initialSearch()
            self._fillBuffer()

    def _fillBuffer(self) -> None:
        # Пустая страница в середине выдачи не должна обрывать обход.
        while not self._isPositioned() and self._state is CursorState.HAS_MORE:
            self._searchMore()

    def _initialSearch(self) -> None:
        logEvent(
            self.logger,
            logging.DEBUG,
            self.runId,
            "search",
            f"search start page_size={self.pageSize}",
        )
        update = self._fetch(lambda: self.executor.executeSearch(self.specification))
        self._apply(update)

    def _searchMore(self) -> None:
        previousPage = self._page
        pageIndex = previousPage + 1
        searchId = self._searchId or ""
        update = self._fetch(lambda: self.executor.executeSearchPage(searchId, pageIndex))
        if update.page_index <= previousPage:
            self._state = CursorState.FAILED
            logEvent(
                self.logger,
                logging.ERROR,
                self.runId,
                "search",
                f"search page did not advance requested={pageIndex} received={update.page_index}",
            )
            raise SearchProtocolError(
                f"Search page did not advance: requested {pageIndex}, got {update.page_index}",
                ErrorCode.PAGE_NOT_ADVANCED,
                details={"requested": pageIndex, "received": update.page_index},
            )
        self._apply(update)

    def _fetch(self, call: Callable[[], SearchEnvelope]) -> PageUpdate:
        """
        Алгоритм:
            - Устанавливает настройки пагинации, выполняет запрос,
              в finally сбрасывает настройки.
            - Классифицирует ответ; любая ошибка переводит курсор в FAILED.
        """
        self._state = CursorState.FETCHING
        try:
            self.executor.setPagingPreferences(True, self.pageSize)
            try:
                envelope = call()
            finally:
                self.executor.clearPagingPreferences()
            return classifyEnvelope(envelope, self.itemType)
        except Exception as exc:
            self._state = CursorState.FAILED
            logEvent(
                self.logger,
                logging.ERROR,
                self.runId,
                "search",
                f"search page fetch failed page={self._page + 1} error={exc}",
            )
            raise

    def _apply(self, update: PageUpdate) -> None:
        self._page = update.page_index
        self._searchId = update.search_id
        self._maxPage = update.total_pages
        self._totalRecords = update.total_records
        self._results.extend(update.records)
        self._state = CursorState.HAS_MORE if self._page < self._maxPage else CursorState.EXHAUSTED
        logEvent(
            self.logger,
            logging.DEBUG,
            self.runId,
            "search",
            f"search page={self._page}/{self._maxPage} records={len(update.records)} total={self._totalRecords}",
        )


__all__ = ["CursorState", "DEFAULT_PAGE_SIZE", "PagedSearchCursor"]
