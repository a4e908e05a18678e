import asyncio
import json
from datetime import datetime, timezone
from typing import Any

import aiohttp
from aiohttp import ClientError, ContentTypeError

from src.config.logger_config import logger
from src.profile_archive.domain.errors import StorageNetworkError
from src.profile_archive.infrastructure.journal import PinEventJournal


class HttpStorageClient:
    """Shared request/response handling for HTTP pinning APIs.

    Subclasses build the request and name the response field holding the CID.
    Every failure is raised as StorageNetworkError; the caller decides what
    a failure means.
    """

    operation = "submit"
    cid_field = "Hash"

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout_seconds: float | None = 60.0,
        journal: PinEventJournal | None = None,
    ) -> None:
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds, connect=10)
        self.journal = journal

    async def _post(self, url: str, label: str, size: int, **request_kwargs: Any) -> str:
        attempt = {"label": label, "size": size, "url": url, "started_at": datetime.now(timezone.utc)}
        status: int | None = None
        try:
            async with self.session.post(url, timeout=self.timeout, **request_kwargs) as resp:
                status = resp.status
                if resp.status != 200:
                    body = await resp.text()
                    raise StorageNetworkError(f"HTTP {resp.status}: {body}", status=resp.status)
                try:
                    data = await resp.json()
                except (ContentTypeError, json.JSONDecodeError, ValueError) as exc:
                    raise StorageNetworkError(f"Invalid JSON response: {exc}", status=resp.status) from exc
        except StorageNetworkError as exc:
            await self._journal(attempt, status=status, error=exc)
            raise
        except (ClientError, asyncio.TimeoutError) as exc:
            await self._journal(attempt, status=status, error=exc)
            raise StorageNetworkError(f"{type(exc).__name__}: {exc}") from exc

        cid = data.get(self.cid_field) if isinstance(data, dict) else None
        if not cid:
            exc = StorageNetworkError(f"Response has no '{self.cid_field}' field", status=status)
            await self._journal(attempt, status=status, error=exc)
            raise exc

        await self._journal(attempt, status=status, cid=str(cid))
        return str(cid)

    async def _journal(self, attempt: dict[str, Any], **outcome: Any) -> None:
        if self.journal is None:
            return
        try:
            await self.journal.record_submission(operation=self.operation, **attempt, **outcome)
        except Exception as exc:
            logger.warning("Failed to journal {} for {}: {}", self.operation, attempt["label"], exc)
