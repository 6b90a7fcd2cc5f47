from __future__ import annotations

import time
from typing import Any

import httpx

from search_pager.domain.error_codes import ErrorCode
from search_pager.errors import AppError


class ApiError(AppError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
        retryable: bool = False,
        details: dict | None = None,
        code: str | None = None,
    ):
        """
        Назначение:
            Исключение для ошибок HTTP/API уровня SearchApiClient.
        Контракт:
            - code: строковый код (HTTP_*, NETWORK_ERROR, INVALID_JSON и т.п.).
            - status_code/body_snippet используются для диагностики.
        """
        super().__init__(
            category="api",
            code=code or (f"HTTP_{status_code}" if status_code else ErrorCode.API_ERROR.value),
            message=message,
            retryable=retryable,
            details=details or {},
        )
        self.status_code = status_code
        self.body_snippet = body_snippet


class SearchApiClient:
    def __init__(
        self,
        baseUrl: str,
        username: str,
        password: str,
        timeoutSeconds: float = 20.0,
        tlsSkipVerify: bool = False,
        caFile: str | None = None,
        retries: int = 3,
        retryBackoffSeconds: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Назначение:
            HTTP-клиент поискового API с простой политикой ретраев.
        Контракт:
            - baseUrl, username, password обязательны.
            - retries/ retryBackoffSeconds управляют повторными попытками на транспортном уровне.
        """
        verify: bool | str = True
        if tlsSkipVerify:
            verify = False
        elif caFile:
            verify = caFile

        self.baseUrl = baseUrl.rstrip("/")
        self.retries = retries
        self.retryBackoffSeconds = retryBackoffSeconds
        self.retry_attempts = 0

        self.client = httpx.Client(
            base_url=self.baseUrl,
            auth=httpx.BasicAuth(username, password),
            timeout=timeoutSeconds,
            verify=verify,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "SearchApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def getRetryAttempts(self) -> int:
        """Возвращает количество выполненных повторных попыток."""
        return self.retry_attempts

    def _headers_with(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        base = {"accept": "application/json"}
        if extra:
            base.update(extra)
        return base

    def _should_retry(self, resp: httpx.Response) -> bool:
        """Решает, стоит ли повторить запрос (429 или 5xx)."""
        if resp.status_code == 429:
            return True
        if 500 <= resp.status_code <= 599:
            return True
        return False

    def _sleep_backoff(self, attempt: int) -> None:
        """Задержка с экспоненциальным ростом для ретраев."""
        delay = self.retryBackoffSeconds * (2 ** attempt)
        time.sleep(delay)

    def postJson(self, path: str, jsonBody: Any, headers: dict[str, str] | None = None) -> Any:
        """
        POST JSON с ретраями по 429/5xx и сетевым ошибкам.
        Возвращает разобранный JSON или бросает ApiError.
        """
        attempt = 0
        while True:
            try:
                resp = self.client.post(path, json=jsonBody, headers=self._headers_with(headers))
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if attempt >= self.retries:
                    raise ApiError("Network error", status_code=None, retryable=False, code=ErrorCode.NETWORK_ERROR.value) from exc
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            if resp.status_code == 200:
                try:
                    return resp.json()
                except ValueError as exc:
                    raise ApiError(
                        "Invalid JSON response",
                        status_code=resp.status_code,
                        retryable=False,
                        code=ErrorCode.INVALID_JSON.value,
                    ) from exc

            if self._should_retry(resp) and attempt < self.retries:
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            body_snippet = resp.text[:200] if resp.text else None
            raise ApiError(
                f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                body_snippet=body_snippet,
                retryable=self._should_retry(resp),
                details={"body_snippet": body_snippet},
            )
