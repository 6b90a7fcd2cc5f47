from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable

import typer
import yaml

from search_pager.common.run_id import generate_run_id
from search_pager.common.sanitize import maskSecret
from search_pager.config.config import Settings, loadSettings
from search_pager.domain.exceptions import SearchProtocolError, StatusFailure
from search_pager.domain.search.cursor import PagedSearchCursor
from search_pager.infra.http.search_client import ApiError, SearchApiClient
from search_pager.infra.http.search_executor import HttpSearchExecutor
from search_pager.infra.logging.setup import closeCommandLogger, createCommandLogger, logEvent

app = typer.Typer(no_args_is_help=True, add_completion=False)


def requireApi(settings: Settings) -> None:
    """
    Назначение:
        Проверяет наличие параметров API для команд, которым нужен REST доступ.

    Поведение:
        - Если чего-то не хватает, exit code 2.
    """
    missing = []
    if not settings.base_url:
        missing.append("base_url")
    if not settings.api_username:
        missing.append("api_username")
    if not settings.api_password:
        missing.append("api_password")

    if missing:
        typer.echo(f"ERROR: missing API settings: {', '.join(missing)}", err=True)
        raise typer.Exit(code=2)


def readCriteria(criteriaPath: str) -> Any:
    """
    Назначение:
        Читает критерии поиска из YAML/JSON файла (JSON является подмножеством YAML).
    """
    p = Path(criteriaPath)
    if not p.exists() or not p.is_file():
        typer.echo(f"ERROR: criteria file not found: {criteriaPath}", err=True)
        raise typer.Exit(code=2)
    with p.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """Печатает безопасную сводку параметров запуска (без секретов)."""
    typer.echo(
        f"run_id={runId} command={command} "
        f"base_url={settings.base_url} api_username={settings.api_username} "
        f"api_password={maskSecret(settings.api_password)} page_size={settings.page_size} "
        f"sources={sources}",
        err=True,
    )


def createClient(settings: Settings) -> SearchApiClient:
    return SearchApiClient(
        baseUrl=settings.base_url or "",
        username=settings.api_username or "",
        password=settings.api_password or "",
        timeoutSeconds=settings.timeout_seconds,
        tlsSkipVerify=settings.tls_skip_verify,
        caFile=settings.ca_file,
        retries=settings.retries,
        retryBackoffSeconds=settings.retry_backoff_seconds,
    )


def runSearchCommand(
    ctx: typer.Context,
    commandName: str,
    criteriaPath: str,
    runner: Callable[[PagedSearchCursor, logging.Logger], int],
) -> None:
    """
    Назначение:
        Унифицированная обвязка поисковых команд:
        - создаёт логгер + файл лога
        - валидирует настройки API и критерии
        - строит клиент/исполнитель/курсор
        - переводит ошибки поиска в exit code 2
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )
    exitCode = 0
    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")
        printRunHeader(runId, commandName, settings, sources)
        try:
            requireApi(settings)
        except typer.Exit:
            logEvent(logger, logging.ERROR, runId, "config", "Missing API settings")
            exitCode = 2
            return
        criteria = readCriteria(criteriaPath)

        with createClient(settings) as client:
            cursor: PagedSearchCursor[Any] = PagedSearchCursor(
                HttpSearchExecutor(client),
                criteria,
                pageSize=settings.page_size,
                logger=logger,
                runId=runId,
            )
            try:
                exitCode = runner(cursor, logger)
            except StatusFailure as exc:
                logEvent(logger, logging.ERROR, runId, "search", f"status failure: {exc}")
                typer.echo(f"ERROR: search failed: {exc}", err=True)
                exitCode = 2
            except SearchProtocolError as exc:
                logEvent(logger, logging.ERROR, runId, "search", f"protocol error code={exc.code}: {exc}")
                typer.echo(f"ERROR: malformed search response: {exc}", err=True)
                exitCode = 2
            except ApiError as exc:
                logEvent(logger, logging.ERROR, runId, "api", f"api error code={exc.code}: {exc}")
                typer.echo(f"ERROR: API request failed ({exc.code}), see {logFilePath}", err=True)
                exitCode = 2
    finally:
        logEvent(logger, logging.INFO, runId, "core", f"Command finished exit_code={exitCode}")
        closeCommandLogger(logger)
        if exitCode:
            raise typer.Exit(code=exitCode)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    baseUrl: str | None = typer.Option(None, "--base-url", help="Search API base URL"),
    apiUsername: str | None = typer.Option(None, "--api-username", help="API username"),
    apiPassword: str | None = typer.Option(None, "--api-password", help="API password (avoid; use env/file)"),
    apiPasswordFile: str | None = typer.Option(None, "--api-password-file", help="Read API password from file"),
    tlsSkipVerify: bool | None = typer.Option(None, "--tls-skip-verify", help="Disable TLS verification"),
    caFile: str | None = typer.Option(None, "--ca-file", help="CA file path"),
    pageSize: int | None = typer.Option(None, "--page-size", help="Records per search page"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
    retries: int | None = typer.Option(None, "--retries", help="Retry attempts for API calls"),
    retryBackoffSeconds: float | None = typer.Option(None, "--retry-backoff-seconds", help="Base backoff for retries"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - сохраняет всё в ctx.obj для подкоманд
    """
    if apiPasswordFile and not apiPassword:
        p = Path(apiPasswordFile)
        if not p.exists() or not p.is_file():
            typer.echo(f"ERROR: api-password-file not found: {apiPasswordFile}", err=True)
            raise typer.Exit(code=2)
        apiPassword = p.read_text(encoding="utf-8").strip()

    if not runId:
        runId = generate_run_id()

    cliOverrides = {
        "base_url": baseUrl,
        "api_username": apiUsername,
        "api_password": apiPassword,
        "log_level": logLevel,
        "log_dir": logDir,
        "tls_skip_verify": tlsSkipVerify,
        "ca_file": caFile,
        "page_size": pageSize,
        "timeout_seconds": timeoutSeconds,
        "retries": retries,
        "retry_backoff_seconds": retryBackoffSeconds,
    }
    try:
        loaded = loadSettings(config_path=config, cli_overrides=cliOverrides)
    except ValueError as exc:
        typer.echo(f"ERROR: invalid settings: {exc}", err=True)
        raise typer.Exit(code=2)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@app.command("search")
def search(
    ctx: typer.Context,
    criteria: str = typer.Option(..., "--criteria", help="Path to search criteria (YAML/JSON)"),
    output: str | None = typer.Option(None, "--output", help="Write JSON lines here instead of stdout"),
):
    """Выполняет поиск и выводит все записи всех страниц построчно в JSON."""

    def execute(cursor: PagedSearchCursor, logger: logging.Logger) -> int:
        stream = open(output, "w", encoding="utf-8") if output else sys.stdout
        written = 0
        try:
            for record in cursor:
                stream.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
                written += 1
        finally:
            if output:
                stream.close()
        logEvent(
            logger,
            logging.INFO,
            ctx.obj["runId"],
            "search",
            f"search done records={written} total_records={cursor.count()} pages={cursor.currentPage}",
        )
        return 0

    runSearchCommand(ctx, "search", criteria, execute)


@app.command("count")
def count(
    ctx: typer.Context,
    criteria: str = typer.Option(..., "--criteria", help="Path to search criteria (YAML/JSON)"),
):
    """Печатает общее число записей, сообщённое бэкендом по первой странице."""

    def execute(cursor: PagedSearchCursor, logger: logging.Logger) -> int:
        typer.echo(f"total_records={cursor.count()}")
        return 0

    runSearchCommand(ctx, "count", criteria, execute)


if __name__ == "__main__":
    app()
