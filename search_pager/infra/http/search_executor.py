from __future__ import annotations

from typing import Any

from search_pager.common.sanitize import truncateText
from search_pager.domain.error_codes import ErrorCode
from search_pager.domain.models import SearchEnvelope
from search_pager.domain.ports.search import SearchExecutorProtocol
from search_pager.infra.http.search_client import ApiError, SearchApiClient

SEARCH_PATH = "/search"
SEARCH_MORE_PATH = "/search/more"


class HttpSearchExecutor(SearchExecutorProtocol):
    """
    Назначение/ответственность:
        Адаптер SearchExecutorProtocol поверх SearchApiClient.
        Настройки пагинации хранятся в сессии исполнителя и уходят заголовками
        с каждым запросом, пока не будут сброшены.
    Ограничения:
        - Синхронное выполнение; ретраи выполняет сам клиент.
        - Экземпляр разделяемый: настройки видны всем вызовам до clearPagingPreferences().
    """

    def __init__(self, client: SearchApiClient):
        self._client = client
        self._preferences: dict[str, str] = {}

    @property
    def preferences(self) -> dict[str, str]:
        return dict(self._preferences)

    def setPagingPreferences(self, usePaging: bool, pageSize: int) -> None:
        self._preferences = {
            "X-Search-Paging": "true" if usePaging else "false",
            "X-Search-Page-Size": str(pageSize),
        }

    def clearPagingPreferences(self) -> None:
        self._preferences = {}

    def executeSearch(self, specification: Any) -> SearchEnvelope:
        data = self._client.postJson(SEARCH_PATH, {"criteria": specification}, headers=self.preferences)
        return self._parse(data)

    def executeSearchPage(self, searchId: str, pageIndex: int) -> SearchEnvelope:
        data = self._client.postJson(
            SEARCH_MORE_PATH,
            {"searchId": searchId, "pageIndex": pageIndex},
            headers=self.preferences,
        )
        return self._parse(data)

    def _parse(self, data: Any) -> SearchEnvelope:
        """
        Назначение:
            Разбирает JSON-ответ в SearchEnvelope; структурные ошибки превращает в ApiError.
        """
        try:
            return SearchEnvelope.fromDict(data)
        except ValueError as exc:
            raise ApiError(
                f"Invalid search envelope: {exc}",
                status_code=200,
                retryable=False,
                code=ErrorCode.INVALID_ENVELOPE.value,
                details={"body_snippet": truncateText(str(data), 200)},
            ) from exc
