import aiohttp

from src.profile_archive.application.ports import StorageNetworkPort
from src.profile_archive.domain.rules import sanitize_filename
from src.profile_archive.infrastructure.journal import PinEventJournal
from src.profile_archive.infrastructure.http_storage import HttpStorageClient


class IpfsHttpClient(HttpStorageClient, StorageNetworkPort):
    """Kubo-compatible `/api/v0/add` endpoint (e.g. Infura) with basic auth."""

    operation = "ipfs_add"
    cid_field = "Hash"

    def __init__(
        self,
        session: aiohttp.ClientSession,
        project_id: str,
        project_secret: str,
        base_url: str = "https://ipfs.infura.io:5001",
        timeout_seconds: float | None = 60.0,
        journal: PinEventJournal | None = None,
    ) -> None:
        super().__init__(session, timeout_seconds=timeout_seconds, journal=journal)
        self.auth = aiohttp.BasicAuth(project_id, project_secret)
        self.base_url = base_url.rstrip("/")

    async def submit(self, payload: bytes, label: str) -> str:
        form = aiohttp.FormData()
        form.add_field(
            "file",
            payload,
            filename=f"{sanitize_filename(label)}.json",
            content_type="application/json",
        )
        return await self._post(
            f"{self.base_url}/api/v0/add",
            label,
            len(payload),
            data=form,
            params={"pin": "true"},
            auth=self.auth,
        )
