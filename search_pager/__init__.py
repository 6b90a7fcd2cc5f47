from search_pager.domain.exceptions import SearchProtocolError, StatusFailure
from search_pager.domain.models import SearchEnvelope, Status, StatusDetail
from search_pager.domain.search.cursor import CursorState, PagedSearchCursor

__all__ = [
    "CursorState",
    "PagedSearchCursor",
    "SearchEnvelope",
    "SearchProtocolError",
    "Status",
    "StatusDetail",
    "StatusFailure",
]
