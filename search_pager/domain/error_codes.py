from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Единая таксономия кодов ошибок поиска и транспорта.
        HTTP-ошибки кодируются отдельно как HTTP_<status>.
    """

    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_JSON = "INVALID_JSON"
    INVALID_ENVELOPE = "INVALID_ENVELOPE"
    API_ERROR = "API_ERROR"
    STATUS_FAILURE = "STATUS_FAILURE"
    MISSING_SEARCH_ID = "MISSING_SEARCH_ID"
    PAGE_NOT_ADVANCED = "PAGE_NOT_ADVANCED"
    RECORD_TYPE_MISMATCH = "RECORD_TYPE_MISMATCH"
    CURSOR_FAILED = "CURSOR_FAILED"
