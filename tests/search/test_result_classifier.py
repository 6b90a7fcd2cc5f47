from __future__ import annotations

import pytest

from search_pager.domain.exceptions import SearchProtocolError, StatusFailure
from search_pager.domain.models import SearchEnvelope, Status, StatusDetail
from search_pager.domain.search.classifier import PageUpdate, classifyEnvelope


def test_success_returns_page_update():
    envelope = SearchEnvelope(
        status=Status(is_success=True),
        total_pages=4,
        total_records=100,
        page_index=2,
        search_id="sid-1",
        records=[{"id": 1}, {"id": 2}],
    )

    update = classifyEnvelope(envelope)

    assert update == PageUpdate(
        page_index=2,
        total_pages=4,
        total_records=100,
        search_id="sid-1",
        records=[{"id": 1}, {"id": 2}],
    )


def test_missing_page_index_reads_as_zero_and_null_records_as_empty():
    envelope = SearchEnvelope(status=Status(is_success=True), total_pages=1, search_id="sid", records=None)

    update = classifyEnvelope(envelope)

    assert update.page_index == 0
    assert update.records == []


def test_failure_raises_with_full_status():
    status = Status(
        is_success=False,
        status_detail=[StatusDetail(code="A", message="first"), StatusDetail(code="B", message="second")],
    )
    envelope = SearchEnvelope(status=status, search_id="sid", records=["ignored"])

    with pytest.raises(StatusFailure) as excinfo:
        classifyEnvelope(envelope)

    assert excinfo.value.getStatus() is status
    assert excinfo.value.findDetailByCode("B").message == "second"


def test_failure_wins_over_missing_search_id():
    envelope = SearchEnvelope(status=Status(is_success=False, status_detail=None), search_id=None)

    with pytest.raises(StatusFailure):
        classifyEnvelope(envelope)


def test_item_type_accepts_matching_records():
    envelope = SearchEnvelope(status=Status(is_success=True), search_id="sid", records=[{"id": 1}])

    assert classifyEnvelope(envelope, dict).records == [{"id": 1}]

    with pytest.raises(SearchProtocolError):
        classifyEnvelope(envelope, str)
