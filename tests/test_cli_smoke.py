from __future__ import annotations

import json

import httpx
from typer.testing import CliRunner

import search_pager.main as cli_module
from search_pager.infra.http.search_client import SearchApiClient
from search_pager.main import app

runner = CliRunner()

API_ARGS = [
    "--base-url",
    "https://search.local",
    "--api-username",
    "user",
    "--api-password",
    "secret",
]


def patch_client_with_transport(monkeypatch, transport: httpx.BaseTransport):
    def factory(*args, **kwargs):
        kwargs["transport"] = transport
        return SearchApiClient(*args, **kwargs)

    monkeypatch.setattr(cli_module, "SearchApiClient", factory)


def paged_responder(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content.decode("utf-8"))
    page = body.get("pageIndex", 1)
    records = [{"id": page * 10 + i} for i in range(2)]
    return httpx.Response(
        200,
        json={
            "searchResult": {
                "status": {"isSuccess": True},
                "pageIndex": page,
                "totalPages": 2,
                "totalRecords": 4,
                "searchId": "sid",
                "recordList": {"record": records},
            }
        },
    )


def write_criteria(tmp_path):
    criteria = tmp_path / "criteria.yml"
    criteria.write_text("type: customer\nisInactive: false\n", encoding="utf-8")
    return criteria


def test_help_shows_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "search" in result.stdout
    assert "count" in result.stdout


def test_search_writes_all_pages(monkeypatch, tmp_path):
    patch_client_with_transport(monkeypatch, httpx.MockTransport(paged_responder))
    out = tmp_path / "records.jsonl"

    result = runner.invoke(
        app,
        [
            "--log-dir",
            str(tmp_path / "logs"),
            *API_ARGS,
            "search",
            "--criteria",
            str(write_criteria(tmp_path)),
            "--output",
            str(out),
        ],
    )

    assert result.exit_code == 0, result.output
    lines = out.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["id"] for line in lines] == [10, 11, 20, 21]
    assert "api_password=***" in result.output
    assert "secret" not in result.output
    assert list((tmp_path / "logs").glob("search_*.log"))


def test_count_prints_backend_total(monkeypatch, tmp_path):
    patch_client_with_transport(monkeypatch, httpx.MockTransport(paged_responder))

    result = runner.invoke(
        app,
        ["--log-dir", str(tmp_path / "logs"), *API_ARGS, "count", "--criteria", str(write_criteria(tmp_path))],
    )

    assert result.exit_code == 0, result.output
    assert "total_records=4" in result.output


def test_status_failure_exits_with_code_2(monkeypatch, tmp_path):
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"status": {"isSuccess": False, "statusDetail": [{"code": "SSS_REQUEST_LIMIT_EXCEEDED", "message": "limit"}]}},
        )

    patch_client_with_transport(monkeypatch, httpx.MockTransport(responder))

    result = runner.invoke(
        app,
        ["--log-dir", str(tmp_path / "logs"), *API_ARGS, "count", "--criteria", str(write_criteria(tmp_path))],
    )

    assert result.exit_code == 2
    assert "SSS_REQUEST_LIMIT_EXCEEDED" in result.output


def test_search_requires_api_settings(monkeypatch, tmp_path):
    monkeypatch.delenv("SEARCH_PAGER_BASE_URL", raising=False)
    monkeypatch.delenv("SEARCH_PAGER_API_USERNAME", raising=False)
    monkeypatch.delenv("SEARCH_PAGER_API_PASSWORD", raising=False)

    result = runner.invoke(
        app,
        ["--log-dir", str(tmp_path / "logs"), "search", "--criteria", str(write_criteria(tmp_path))],
    )

    assert result.exit_code == 2
    assert "missing API settings" in result.output


def test_string_page_size_in_config_is_used(monkeypatch, tmp_path):
    patch_client_with_transport(monkeypatch, httpx.MockTransport(paged_responder))
    monkeypatch.delenv("SEARCH_PAGER_PAGE_SIZE", raising=False)
    cfg = tmp_path / "config.yml"
    cfg.write_text('page_size: "25"\n', encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "--config",
            str(cfg),
            "--log-dir",
            str(tmp_path / "logs"),
            *API_ARGS,
            "count",
            "--criteria",
            str(write_criteria(tmp_path)),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "page_size=25" in result.output
    assert "total_records=4" in result.output
