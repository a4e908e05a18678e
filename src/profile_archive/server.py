import json
import sys
from typing import AsyncIterator

import aiohttp
from aiohttp import web

from src.config.logger_config import logger
from src.config.settings import Settings
from src.profile_archive.application.ports import LedgerPort
from src.profile_archive.application.workflows.archive_profile import ArchiveProfileWorkflow
from src.profile_archive.archive import build_components
from src.profile_archive.domain.errors import (
    ConfigurationError,
    InputError,
    LedgerFailure,
    PublishFailure,
    ScrapeFailure,
)
from src.profile_archive.domain.rules import validate_profile_url

WORKFLOW_KEY = web.AppKey("workflow", ArchiveProfileWorkflow)
LEDGER_KEY = web.AppKey("ledger", LedgerPort)


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def handle_scrape(request: web.Request) -> web.Response:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, ValueError):
        return _error(400, "Request body must be a JSON object")
    if not isinstance(payload, dict):
        return _error(400, "Request body must be a JSON object")

    try:
        profile_url = validate_profile_url(payload.get("profileUrl"))
    except InputError as exc:
        return _error(400, str(exc))

    workflow = request.app[WORKFLOW_KEY]
    try:
        result = await workflow.run(profile_url)
    except ScrapeFailure as exc:
        logger.error("Scrape failed for {}: {}", profile_url, exc.cause)
        return _error(500, "Failed to scrape profile")
    except PublishFailure as exc:
        logger.error("Profile publish failed for {}: {}", profile_url, exc.cause)
        return _error(500, "Failed to upload profile data to IPFS")

    return web.json_response(result.to_response())


async def handle_ledger_lookup(request: web.Request) -> web.Response:
    ledger = request.app.get(LEDGER_KEY)
    if ledger is None:
        return _error(404, "Ledger is not enabled")
    key = request.match_info["key"]
    try:
        record = await ledger.lookup(key)
    except LedgerFailure as exc:
        logger.error("Ledger lookup failed for {}: {}", key, exc)
        return _error(502, "Ledger lookup failed")
    if record is None:
        return _error(404, f"No ledger record for {key}")
    return web.json_response(record.to_dict())


async def handle_health(_request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def handle_preflight(_request: web.Request) -> web.Response:
    return web.Response(status=204)


def _allow_origin(headers, origin: str) -> None:
    headers["Access-Control-Allow-Origin"] = origin
    headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    headers["Access-Control-Allow-Headers"] = "Content-Type"


def cors_middleware(origin: str):
    @web.middleware
    async def middleware(request: web.Request, handler):
        try:
            response = await handler(request)
        except web.HTTPException as exc:
            # Router errors (404, 405) are raised, not returned.
            _allow_origin(exc.headers, origin)
            raise
        _allow_origin(response.headers, origin)
        return response

    return middleware


def create_app(
    workflow: ArchiveProfileWorkflow | None = None,
    ledger: LedgerPort | None = None,
    cors_origin: str = "*",
) -> web.Application:
    app = web.Application(middlewares=[cors_middleware(cors_origin)])
    if workflow is not None:
        app[WORKFLOW_KEY] = workflow
    if ledger is not None:
        app[LEDGER_KEY] = ledger
    app.router.add_post("/scrape", handle_scrape)
    app.router.add_route("OPTIONS", "/scrape", handle_preflight)
    app.router.add_get("/ledger/{key:.+}", handle_ledger_lookup)
    app.router.add_get("/health", handle_health)
    return app


def build_app(settings: Settings) -> web.Application:
    app = create_app(cors_origin=settings.cors_origin)

    async def archive_context(app: web.Application) -> AsyncIterator[None]:
        async with aiohttp.ClientSession() as session:
            components = build_components(settings, session)
            app[WORKFLOW_KEY] = components.workflow
            if components.ledger is not None:
                app[LEDGER_KEY] = components.ledger
            try:
                yield
            finally:
                components.close()

    app.cleanup_ctx.append(archive_context)
    return app


def run_server(settings: Settings | None = None) -> None:
    try:
        settings = settings or Settings.from_env()
    except ConfigurationError as exc:
        logger.error("Configuration error: {}", exc)
        sys.exit(1)
    logger.info("Server running on http://{}:{}", settings.host, settings.port)
    web.run_app(build_app(settings), host=settings.host, port=settings.port, print=None)
