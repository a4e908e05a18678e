import asyncio
import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

from src.config.logger_config import logger


class PinEventJournal:
    """One JSONL line per storage-network submission attempt.

    The file is opened on the first recorded submission, so a run that
    publishes nothing leaves no empty journal behind.
    """

    def __init__(self, output_dir: str | Path, run_id: str) -> None:
        self.run_id = run_id
        self.file_path = Path(output_dir) / f"pin_events_{run_id}.jsonl"
        self.outcomes: Counter[str] = Counter()
        self._lock = asyncio.Lock()
        self._stream: TextIO | None = None
        self._closed = False

    async def record_submission(
        self,
        *,
        operation: str,
        label: str,
        size: int,
        url: str,
        started_at: datetime,
        status: int | None = None,
        cid: str | None = None,
        error: Exception | None = None,
    ) -> dict[str, Any]:
        finished_at = datetime.now(timezone.utc)
        event = {
            "run_id": self.run_id,
            "operation": operation,
            "label": label,
            "bytes": size,
            "url": url,
            "status": status,
            "cid": cid,
            "outcome": "success" if error is None else "error",
            "error": _describe_error(error),
            "timing": {
                "started_at": started_at.isoformat(),
                "finished_at": finished_at.isoformat(),
                "elapsed_ms": round((finished_at - started_at).total_seconds() * 1000, 1),
            },
        }
        line = json.dumps(event, ensure_ascii=False, sort_keys=True)
        async with self._lock:
            if self._closed:
                raise RuntimeError(f"Pin event journal {self.file_path.name} is closed")
            if self._stream is None:
                self.file_path.parent.mkdir(parents=True, exist_ok=True)
                self._stream = self.file_path.open("a", encoding="utf-8")
            self._stream.write(line + "\n")
            self._stream.flush()
            self.outcomes[event["outcome"]] += 1
        return event

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._stream is None:
            return
        self._stream.close()
        logger.info(
            "Pin journal {}: {} published, {} failed",
            self.file_path,
            self.outcomes["success"],
            self.outcomes["error"],
        )


def _describe_error(error: Exception | None) -> dict[str, Any] | None:
    if error is None:
        return None
    described: dict[str, Any] = {"type": type(error).__name__, "message": str(error)}
    status = getattr(error, "status", None)
    if status is not None:
        described["status"] = status
    return described
