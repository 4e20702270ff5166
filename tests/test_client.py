"""
End-to-end tests: relay client pipelines against a running relay.

Tests cover:
- Copy/paste with no encryption, key file, password and hybrid modes
- Salt rotation on password uploads and the single-slot race
- Bounded reads, timeouts and transport errors
"""
import io
import asyncio

import pytest
from aiohttp import web

from navigator_clipboard.client import (
    Clipboard,
    RelayClient,
    read_limited,
)
from navigator_clipboard.conf import DATA_KEY, SALT_KEY
from navigator_clipboard.config import ClientConfig, ServerConfig
from navigator_clipboard.exceptions import (
    AuthenticationError,
    DecryptionError,
    NetworkError,
    NotFound,
    RequestTimeout,
    ResponseError,
    SizeLimitExceeded,
)
from navigator_clipboard.resolver import KeyOptions, KeyResolver
from navigator_clipboard.server import ClipboardRelay
from navigator_clipboard.storage import Blob, MemoryStore


def _address(server) -> str:
    return f"http://{server.host}:{server.port}"


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
async def relay_server(aiohttp_server, server_config, store):
    relay = ClipboardRelay(server_config, store=store)
    return await aiohttp_server(relay.make_app())


@pytest.fixture
def client_config(relay_server):
    return ClientConfig(address=_address(relay_server), timeout=5)


@pytest.fixture
async def clipboard(client_config):
    async with RelayClient(client_config) as client:
        yield Clipboard(client, resolver=KeyResolver(environ={}))


class TestRelayClient:
    """Tests for the raw relay requests."""

    async def test_put_and_get(self, client_config, store):
        async with RelayClient(client_config) as client:
            await client.put_data(b"clipboardValue")
            assert await store.get_blob(DATA_KEY) == b"clipboardValue"
            assert await client.get_data() == b"clipboardValue"
            assert await client.get_last_updated() > 0

    async def test_get_empty_relay(self, client_config):
        async with RelayClient(client_config) as client:
            with pytest.raises(NotFound):
                await client.get_data()
            with pytest.raises(NotFound):
                await client.get_salt()

    async def test_rotate_and_get_salt(self, client_config):
        async with RelayClient(client_config) as client:
            salt = await client.rotate_salt()
            assert len(salt) == 128
            assert await client.get_salt() == salt
            assert await client.rotate_salt() != salt

    async def test_response_size_limit(self, relay_server, store):
        await store.put(DATA_KEY, Blob(b"x" * 100))
        config = ClientConfig(address=_address(relay_server), max_size=10)
        async with RelayClient(config) as client:
            with pytest.raises(SizeLimitExceeded):
                await client.get_data()

    async def test_timeout(self, aiohttp_server):
        async def slow(request):
            await asyncio.sleep(2)
            return web.Response(body=b"late")

        app = web.Application()
        app.router.add_get("/", slow)
        server = await aiohttp_server(app)
        config = ClientConfig(address=_address(server), timeout=0.1)
        async with RelayClient(config) as client:
            with pytest.raises(RequestTimeout):
                await client.get_data()

    async def test_connection_refused(self, unused_tcp_port):
        config = ClientConfig(address=f"http://127.0.0.1:{unused_tcp_port}")
        async with RelayClient(config) as client:
            with pytest.raises(NetworkError):
                await client.get_data()

    async def test_unauthorized(self, aiohttp_server, store):
        relay = ClipboardRelay(
            ServerConfig(ttl=0, basic_auth="testUser:testPass"), store=store,
        )
        server = await aiohttp_server(relay.make_app())
        config = ClientConfig(address=_address(server), basic_auth="testUser:invalidPass")
        async with RelayClient(config) as client:
            with pytest.raises(ResponseError) as exc:
                await client.put_data(b"clipboardValue")
        assert exc.value.status == 401
        assert await store.contains(DATA_KEY) is False

    async def test_authorized(self, aiohttp_server, store):
        relay = ClipboardRelay(
            ServerConfig(ttl=0, basic_auth="testUser:testPass"), store=store,
        )
        server = await aiohttp_server(relay.make_app())
        config = ClientConfig(address=_address(server), basic_auth="testUser:testPass")
        async with RelayClient(config) as client:
            await client.put_data(b"clipboardValue")
            assert await client.get_data() == b"clipboardValue"

    async def test_non_ascii_credentials(self, aiohttp_server, store):
        relay = ClipboardRelay(ServerConfig(ttl=0, basic_auth="user:密码"), store=store)
        server = await aiohttp_server(relay.make_app())
        config = ClientConfig(address=_address(server), basic_auth="user:密码")
        async with RelayClient(config) as client:
            await client.put_data(b"clipboardValue")
            assert await client.get_data() == b"clipboardValue"
        assert await store.get_blob(DATA_KEY) == b"clipboardValue"

    async def test_requires_context_manager(self, client_config):
        with pytest.raises(RuntimeError):
            await RelayClient(client_config).get_data()


class TestClipboardPipelines:
    """Tests for copy/paste in every key mode."""

    async def test_plaintext(self, clipboard, store):
        await clipboard.copy(b"hello", KeyOptions())
        assert await store.get_blob(DATA_KEY) == b"hello"
        assert await clipboard.paste(KeyOptions()) == b"hello"

    async def test_symmetric_key_file(self, clipboard, store, symmetric_key_file):
        options = KeyOptions(symmetric_key_file=symmetric_key_file)
        await clipboard.copy(b"hello", options)
        assert await store.get_blob(DATA_KEY) != b"hello"
        assert await clipboard.paste(options) == b"hello"

    async def test_password_rotates_salt(self, clipboard, store):
        options = KeyOptions(password="password")
        await clipboard.copy(b"hello", options)
        first_salt = await store.get_blob(SALT_KEY)
        assert await clipboard.paste(options) == b"hello"

        await clipboard.copy(b"again", options)
        assert await store.get_blob(SALT_KEY) != first_salt
        assert await clipboard.paste(options) == b"again"

    async def test_paste_does_not_rotate(self, clipboard, store):
        options = KeyOptions(password="password")
        await clipboard.copy(b"hello", options)
        salt = await store.get_blob(SALT_KEY)
        await clipboard.paste(options)
        assert await store.get_blob(SALT_KEY) == salt

    async def test_wrong_password(self, clipboard):
        await clipboard.copy(b"hello", KeyOptions(password="password"))
        with pytest.raises(AuthenticationError):
            await clipboard.paste(KeyOptions(password="wrong-password"))

    async def test_rotation_invalidates_previous_item(self, clipboard, client_config):
        """A rotation by another sender makes the stored item undecryptable."""
        options = KeyOptions(password="password")
        await clipboard.copy(b"hello", options)
        async with RelayClient(client_config) as other_sender:
            await other_sender.rotate_salt()
        with pytest.raises(AuthenticationError):
            await clipboard.paste(options)

    async def test_hybrid_rsa(self, clipboard, key_files):
        public_path, private_path = key_files
        await clipboard.copy(b"hello", KeyOptions(public_key_file=public_path))
        assert await clipboard.paste(KeyOptions(private_key_file=private_path)) == b"hello"

    async def test_hybrid_does_not_touch_salt(self, clipboard, store, key_files):
        public_path, _ = key_files
        await clipboard.copy(b"hello", KeyOptions(password="ignored", public_key_file=public_path))
        assert await store.contains(SALT_KEY) is False

    async def test_hybrid_plaintext_is_not_accepted(self, clipboard, key_files):
        _, private_path = key_files
        await clipboard.copy(b"hello", KeyOptions())
        with pytest.raises(DecryptionError):
            await clipboard.paste(KeyOptions(private_key_file=private_path))


class TestReadLimited:
    """Tests for bounded input reads."""

    def test_within_limit(self):
        assert read_limited(io.BytesIO(b"x" * 10), 10) == b"x" * 10

    def test_exceeds_limit(self):
        with pytest.raises(SizeLimitExceeded) as exc:
            read_limited(io.BytesIO(b"x" * 11), 10)
        assert exc.value.limit == 10

    def test_empty(self):
        assert read_limited(io.BytesIO(b""), 10) == b""
