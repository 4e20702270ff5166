"""
Clipboard Client: talks to the relay and runs the copy/paste pipelines.

Every invocation issues its requests strictly one after another, each
bounded by the configured timeout. Nothing is retried here: a timeout is
reported as ``RequestTimeout`` and left to the caller, because salt
rotation is not idempotent.
"""
import asyncio
import logging
from typing import BinaryIO, Optional

import aiohttp
from aiohttp import hdrs

from .conf import ROOT_PATH, SALT_PATH, LAST_UPDATED_PATH
from .config import ClientConfig
from .crypto.cipher import SymmetricCipher, KeyDerivation
from .crypto.envelope import EnvelopeCipher
from .exceptions import (
    NetworkError,
    NotFound,
    RequestTimeout,
    ResponseError,
    SizeLimitExceeded,
)
from .resolver import KeyMode, KeyOptions, KeyResolver, ResolvedKey

logger = logging.getLogger("navigator.clipboard.client")

_CHUNK_SIZE = 64 * 1024


def read_limited(stream: BinaryIO, max_size: int) -> bytes:
    """Read at most ``max_size`` bytes from a binary stream.

    Raises:
        SizeLimitExceeded: If the stream holds more data than that.
    """
    data = stream.read(max_size + 1)
    if len(data) > max_size:
        raise SizeLimitExceeded(max_size)
    return data


async def read_response_limited(response: aiohttp.ClientResponse, max_size: int) -> bytes:
    """Read a response body, aborting once it grows past ``max_size``."""
    buffer = bytearray()
    async for chunk in response.content.iter_chunked(_CHUNK_SIZE):
        buffer.extend(chunk)
        if len(buffer) > max_size:
            raise SizeLimitExceeded(max_size)
    return bytes(buffer)


class RelayClient:
    """HTTP client for a single relay.

    Use as an async context manager; the underlying ``ClientSession`` lives
    for the duration of the block.
    """

    def __init__(self, config: ClientConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    def _headers(self) -> dict:
        if not self.config.basic_auth:
            return {}
        login, password = self.config.basic_auth.split(":", 1)
        return {
            hdrs.AUTHORIZATION: aiohttp.encode_basic_auth(login, password, encoding="utf-8")
        }

    async def __aenter__(self) -> "RelayClient":
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            headers=self._headers(),
        )
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def _request(self, method: str, path: str, data: Optional[bytes] = None) -> bytes:
        if self._session is None:
            raise RuntimeError("RelayClient must be used as an async context manager")
        url = f"{self.config.address}{path}"
        try:
            async with self._session.request(method, url, data=data) as response:
                if response.status == 404:
                    raise NotFound(path)
                if response.status != 200:
                    raise ResponseError(
                        f"failed request: Status {response.status} {response.reason}",
                        response.status,
                    )
                return await read_response_limited(response, self.config.max_size)
        except asyncio.TimeoutError as err:
            raise RequestTimeout(
                f"{method} {url} timed out after {self.config.timeout}s"
            ) from err
        except aiohttp.ClientError as err:
            raise NetworkError(
                f"failed to issue {method.lower()} request to {url}: {err}"
            ) from err

    async def get_data(self) -> bytes:
        return await self._request("GET", ROOT_PATH)

    async def put_data(self, data: bytes) -> None:
        await self._request("PUT", ROOT_PATH, data=data)
        logger.debug("Uploaded %d bytes", len(data))

    async def rotate_salt(self) -> bytes:
        """Ask the relay for a fresh salt. Not idempotent."""
        return await self._request("PUT", SALT_PATH)

    async def get_salt(self) -> bytes:
        return await self._request("GET", SALT_PATH)

    async def get_last_updated(self) -> int:
        body = await self._request("GET", LAST_UPDATED_PATH)
        try:
            return int(body.decode("ascii").strip())
        except (UnicodeDecodeError, ValueError) as err:
            raise ResponseError(f"invalid lastUpdated timestamp: {body!r}", 200) from err


class Clipboard:
    """Encrypt-then-upload and fetch-then-decrypt on top of a ``RelayClient``."""

    def __init__(
        self,
        client: RelayClient,
        resolver: Optional[KeyResolver] = None,
        cipher: Optional[SymmetricCipher] = None,
        kdf: Optional[KeyDerivation] = None,
    ):
        self.client = client
        self.resolver = resolver or KeyResolver()
        self.cipher = cipher or SymmetricCipher()
        self.kdf = kdf or KeyDerivation()

    async def encrypt(self, data: bytes, resolved: ResolvedKey) -> bytes:
        if resolved.mode is KeyMode.HYBRID:
            envelope = EnvelopeCipher(resolved.wrapper, self.cipher)
            return await envelope.encrypt(data)
        if resolved.mode is KeyMode.PASSWORD:
            # Always rotate first; the receiver derives from the current salt.
            salt = await self.client.rotate_salt()
            key = self.kdf.derive(resolved.password, salt)
            return self.cipher.encrypt(key, data)
        if resolved.mode is KeyMode.KEY_FILE:
            return self.cipher.encrypt(resolved.key, data)
        return data

    async def decrypt(self, data: bytes, resolved: ResolvedKey) -> bytes:
        if resolved.mode is KeyMode.HYBRID:
            envelope = EnvelopeCipher(resolved.wrapper, self.cipher)
            return await envelope.decrypt(data)
        if resolved.mode is KeyMode.PASSWORD:
            salt = await self.client.get_salt()
            key = self.kdf.derive(resolved.password, salt)
            return self.cipher.decrypt(key, data)
        if resolved.mode is KeyMode.KEY_FILE:
            return self.cipher.decrypt(resolved.key, data)
        return data

    async def copy(self, data: bytes, options: KeyOptions) -> None:
        """Encrypt ``data`` as configured by ``options`` and upload it."""
        resolved = self.resolver.resolve(options)
        payload = await self.encrypt(data, resolved)
        await self.client.put_data(payload)
        logger.info("Copied %d bytes (%s)", len(data), resolved.mode.value)

    async def paste(self, options: KeyOptions) -> bytes:
        """Fetch the relay content and decrypt it as configured by ``options``."""
        resolved = self.resolver.resolve(options)
        data = await self.client.get_data()
        plaintext = await self.decrypt(data, resolved)
        logger.info("Pasted %d bytes (%s)", len(plaintext), resolved.mode.value)
        return plaintext
