from urllib.parse import urlparse

from pathvalidate import sanitize_filename as lib_sanitize

from src.profile_archive.domain.errors import InputError
from src.profile_archive.domain.models import SENTINEL, ProfileRecord


def validate_profile_url(profile_url: object) -> str:
    if not isinstance(profile_url, str) or not profile_url.strip():
        raise InputError("Profile URL is required")
    url = profile_url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InputError(f"Profile URL must be an absolute http(s) URL: {url}")
    return url


def build_gateway_url(cid: str, gateway_base_url: str = "https://gateway.pinata.cloud/ipfs") -> str:
    return f"{gateway_base_url.rstrip('/')}/{cid}"


def listing_label(title: str) -> str:
    return f"Listing-{title}"


def profile_label(profile: ProfileRecord) -> str:
    if profile.handle and profile.handle != SENTINEL:
        return f"Profile-{profile.handle}"
    return "Profile"


def ledger_key(profile: ProfileRecord, profile_url: str) -> str:
    if profile.handle and profile.handle != SENTINEL:
        return profile.handle
    return profile_url


def sanitize_filename(name: str) -> str:
    safe_name = lib_sanitize(name, replacement_text="_")
    if not safe_name:
        return "untitled"
    return safe_name
