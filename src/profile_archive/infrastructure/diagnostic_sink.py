from datetime import datetime, timezone
from pathlib import Path

from src.config.logger_config import logger
from src.profile_archive.application.ports import DiagnosticSinkPort, SnapshotPort
from src.profile_archive.domain.rules import sanitize_filename


def make_screenshot_filename(url: str, captured_at: datetime) -> str:
    stamp = captured_at.strftime("%Y%m%dT%H%M%S%fZ")
    return f"{sanitize_filename(url)}_{stamp}.png"


class ScreenshotDiagnosticSink(DiagnosticSinkPort):
    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    async def observe(self, url: str, snapshot: SnapshotPort) -> None:
        image = await snapshot.screenshot()
        if not image:
            logger.debug("No screenshot available for {}", url)
            return
        file_path = self.output_dir / make_screenshot_filename(url, datetime.now(timezone.utc))
        file_path.write_bytes(image)
        logger.info("Screenshot saved as {}", file_path)
