import json

import aiohttp

from src.profile_archive.application.ports import StorageNetworkPort
from src.profile_archive.infrastructure.journal import PinEventJournal
from src.profile_archive.infrastructure.http_storage import HttpStorageClient


class PinataClient(HttpStorageClient, StorageNetworkPort):
    operation = "pin_json"
    cid_field = "IpfsHash"

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_key: str,
        secret_api_key: str,
        base_url: str = "https://api.pinata.cloud",
        timeout_seconds: float | None = 60.0,
        journal: PinEventJournal | None = None,
    ) -> None:
        super().__init__(session, timeout_seconds=timeout_seconds, journal=journal)
        self.api_key = api_key
        self.secret_api_key = secret_api_key
        self.base_url = base_url.rstrip("/")

    async def submit(self, payload: bytes, label: str) -> str:
        body = {
            "pinataContent": json.loads(payload.decode("utf-8")),
            "pinataMetadata": {"name": label},
        }
        data = json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        return await self._post(
            f"{self.base_url}/pinning/pinJSONToIPFS",
            label,
            len(payload),
            data=data,
            headers={
                "Content-Type": "application/json",
                "pinata_api_key": self.api_key,
                "pinata_secret_api_key": self.secret_api_key,
            },
        )
