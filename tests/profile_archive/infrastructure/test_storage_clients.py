import asyncio
import json
import unittest
from types import SimpleNamespace

import aiohttp

from src.profile_archive.domain.canonical import canonicalize
from src.profile_archive.domain.errors import StorageNetworkError
from src.profile_archive.infrastructure.ipfs_client import IpfsHttpClient
from src.profile_archive.infrastructure.pinata_client import PinataClient


class FakeResponse:
    def __init__(self, status=200, json_data=None, text_data=""):
        self.status = status
        self._json_data = json_data
        self._text_data = text_data
        self.headers = {}
        self.request_info = SimpleNamespace(real_url="http://test.invalid")
        self.history = ()

    async def json(self):
        if isinstance(self._json_data, Exception):
            raise self._json_data
        return self._json_data

    async def text(self):
        return self._text_data

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    def __init__(self, responses):
        self._responses = list(responses)
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if not self._responses:
            raise AssertionError("No more fake responses configured")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeJournal:
    def __init__(self):
        self.submissions = []

    async def record_submission(self, **attempt):
        self.submissions.append(attempt)


class PinataClientTests(unittest.IsolatedAsyncioTestCase):
    def make_client(self, session, journal=None):
        return PinataClient(
            session,
            api_key="key",
            secret_api_key="secret",
            base_url="https://pinata.invalid/",
            journal=journal,
        )

    async def test_submit_posts_pin_json_and_returns_ipfs_hash(self):
        session = FakeSession([FakeResponse(json_data={"IpfsHash": "bafyPinata"})])
        client = self.make_client(session)
        form = canonicalize({"title": "Logo Design", "link": "https://example.com/g"})

        cid = await client.submit(form.payload, "Listing-Logo Design")

        self.assertEqual(cid, "bafyPinata")
        url, kwargs = session.requests[0]
        self.assertEqual(url, "https://pinata.invalid/pinning/pinJSONToIPFS")
        self.assertEqual(kwargs["headers"]["pinata_api_key"], "key")
        self.assertEqual(kwargs["headers"]["pinata_secret_api_key"], "secret")
        body = json.loads(kwargs["data"])
        self.assertEqual(body["pinataContent"], form.to_record())
        self.assertEqual(body["pinataMetadata"], {"name": "Listing-Logo Design"})

    async def test_non_200_raises_storage_error_with_status(self):
        session = FakeSession([FakeResponse(status=401, text_data="invalid key")])
        client = self.make_client(session)

        with self.assertRaises(StorageNetworkError) as ctx:
            await client.submit(b'{"a":1}', "Profile")

        self.assertEqual(ctx.exception.status, 401)
        self.assertIn("invalid key", str(ctx.exception))

    async def test_transport_error_is_wrapped(self):
        session = FakeSession([aiohttp.ClientConnectionError("connection reset")])
        client = self.make_client(session)

        with self.assertRaises(StorageNetworkError) as ctx:
            await client.submit(b'{"a":1}', "Profile")

        self.assertIsInstance(ctx.exception.__cause__, aiohttp.ClientConnectionError)

    async def test_timeout_is_wrapped(self):
        session = FakeSession([asyncio.TimeoutError()])
        client = self.make_client(session)

        with self.assertRaises(StorageNetworkError):
            await client.submit(b'{"a":1}', "Profile")

    async def test_missing_hash_field_is_an_error(self):
        session = FakeSession([FakeResponse(json_data={"unexpected": True})])
        client = self.make_client(session)

        with self.assertRaises(StorageNetworkError):
            await client.submit(b'{"a":1}', "Profile")

    async def test_invalid_json_is_an_error(self):
        session = FakeSession([FakeResponse(json_data=ValueError("not json"))])
        client = self.make_client(session)

        with self.assertRaises(StorageNetworkError):
            await client.submit(b'{"a":1}', "Profile")

    async def test_each_attempt_is_reported_to_the_journal(self):
        journal = FakeJournal()
        session = FakeSession(
            [
                FakeResponse(json_data={"IpfsHash": "bafyOk"}),
                FakeResponse(status=500, text_data="boom"),
                aiohttp.ClientConnectionError("connection reset"),
            ]
        )
        client = self.make_client(session, journal=journal)

        await client.submit(b'{"a":1}', "Listing-A")
        for label in ("Listing-B", "Listing-C"):
            with self.assertRaises(StorageNetworkError):
                await client.submit(b'{"b":2}', label)

        ok, rejected, dropped = journal.submissions
        self.assertEqual(ok["operation"], "pin_json")
        self.assertEqual(ok["label"], "Listing-A")
        self.assertEqual(ok["size"], len(b'{"a":1}'))
        self.assertEqual(ok["url"], "https://pinata.invalid/pinning/pinJSONToIPFS")
        self.assertEqual((ok["status"], ok["cid"]), (200, "bafyOk"))
        self.assertNotIn("error", ok)
        self.assertEqual(rejected["status"], 500)
        self.assertIsInstance(rejected["error"], StorageNetworkError)
        self.assertIsNone(dropped["status"])
        self.assertIsInstance(dropped["error"], aiohttp.ClientConnectionError)

    async def test_journal_failure_does_not_fail_the_upload(self):
        class BrokenJournal:
            async def record_submission(self, **attempt):
                raise RuntimeError("journal closed")

        session = FakeSession([FakeResponse(json_data={"IpfsHash": "bafyOk"})])
        client = self.make_client(session, journal=BrokenJournal())

        self.assertEqual(await client.submit(b'{"a":1}', "Listing-A"), "bafyOk")


class IpfsHttpClientTests(unittest.IsolatedAsyncioTestCase):
    async def test_submit_uploads_bytes_with_basic_auth(self):
        session = FakeSession([FakeResponse(json_data={"Name": "x", "Hash": "QmHash", "Size": "10"})])
        client = IpfsHttpClient(
            session,
            project_id="project",
            project_secret="secret",
            base_url="https://ipfs.invalid:5001",
        )

        cid = await client.submit(b'{"a":1}', "Profile-@alice")

        self.assertEqual(cid, "QmHash")
        url, kwargs = session.requests[0]
        self.assertEqual(url, "https://ipfs.invalid:5001/api/v0/add")
        self.assertEqual(kwargs["auth"], aiohttp.BasicAuth("project", "secret"))
        self.assertEqual(kwargs["params"], {"pin": "true"})
        self.assertIsInstance(kwargs["data"], aiohttp.FormData)

    async def test_server_error_raises(self):
        session = FakeSession([FakeResponse(status=502, text_data="bad gateway")])
        client = IpfsHttpClient(session, project_id="p", project_secret="s")

        with self.assertRaises(StorageNetworkError) as ctx:
            await client.submit(b"{}", "Profile")

        self.assertEqual(ctx.exception.status, 502)
