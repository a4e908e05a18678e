import hashlib
import json
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class CanonicalForm:
    payload: bytes
    fingerprint: str

    def to_record(self) -> Any:
        return json.loads(self.payload.decode("utf-8"))


def canonical_bytes(record: Mapping[str, Any]) -> bytes:
    # Keys sorted at every depth; list order is significant and kept.
    text = json.dumps(record, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return text.encode("utf-8")


def compute_fingerprint(payload: bytes) -> str:
    return hashlib.sha256(payload).hexdigest()


def canonicalize(record: Mapping[str, Any]) -> CanonicalForm:
    payload = canonical_bytes(record)
    return CanonicalForm(payload=payload, fingerprint=compute_fingerprint(payload))
