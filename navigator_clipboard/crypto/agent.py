"""
Session key wrapping for hybrid encryption.

A ``KeyWrapper`` seals the one-time session key for a recipient and opens
it again on the other side. Two implementations ship with the package:

- ``RSAKeyWrapper``: RSA-OAEP (MGF1 + SHA-256, no label) with key files.
- ``GPGKeyWrapper``: delegates to an OpenPGP agent (``gpg``) subprocess,
  addressed by recipient identity.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..conf import DEFAULT_GPG_EXECUTABLE
from ..exceptions import AgentError, DecryptionError, ClipboardError

logger = logging.getLogger("navigator.clipboard.crypto")


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None
    )


class KeyWrapper(ABC):
    """Seals and opens session keys for a single recipient."""

    @abstractmethod
    async def wrap(self, session_key: bytes) -> bytes:
        """Encrypt the session key for the recipient."""

    @abstractmethod
    async def unwrap(self, wrapped_key: bytes) -> bytes:
        """Recover the session key with the recipient's private material."""


class RSAKeyWrapper(KeyWrapper):
    """RSA-OAEP session key wrapping.

    Either key may be omitted when only one direction is needed: senders
    hold the recipient's public key, recipients hold their private key.
    """

    def __init__(
        self,
        public_key: Optional[rsa.RSAPublicKey] = None,
        private_key: Optional[rsa.RSAPrivateKey] = None,
    ):
        if public_key is None and private_key is not None:
            public_key = private_key.public_key()
        self.public_key = public_key
        self.private_key = private_key

    async def wrap(self, session_key: bytes) -> bytes:
        if self.public_key is None:
            raise ClipboardError("RSA public key not loaded")
        return self.public_key.encrypt(session_key, _oaep())

    async def unwrap(self, wrapped_key: bytes) -> bytes:
        if self.private_key is None:
            raise ClipboardError("RSA private key not loaded")
        try:
            return self.private_key.decrypt(wrapped_key, _oaep())
        except ValueError as err:
            raise DecryptionError(
                f"RSA decryption failed: {err}", original_error=err
            ) from err


class GPG:
    """Minimal OpenPGP agent client running ``gpg`` as a subprocess."""

    def __init__(self, executable: str = DEFAULT_GPG_EXECUTABLE):
        self.executable = executable

    async def encrypt_for(self, identity: str, data: bytes) -> bytes:
        """Encrypt data with the public key of ``identity``."""
        return await self._run(data, "--encrypt", "-r", identity)

    async def decrypt_for(self, identity: str, data: bytes) -> bytes:
        """Decrypt data with the private key associated with ``identity``."""
        return await self._run(data, "--decrypt", "-r", identity)

    async def _run(self, stdin: bytes, *args: str) -> bytes:
        logger.debug("Running %s %s", self.executable, args[0])
        try:
            proc = await asyncio.create_subprocess_exec(
                self.executable,
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as err:
            raise AgentError(f"failed to run GPG: {err}") from err
        stdout, stderr = await proc.communicate(stdin)
        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise AgentError(
                f"failed to run GPG: stderr: {message}: exit status {proc.returncode}",
                stderr=message,
            )
        return stdout


class GPGKeyWrapper(KeyWrapper):
    """Session key wrapping through an OpenPGP agent."""

    def __init__(self, identity: str, gpg: Optional[GPG] = None):
        self.identity = identity
        self.gpg = gpg or GPG()

    async def wrap(self, session_key: bytes) -> bytes:
        return await self.gpg.encrypt_for(self.identity, session_key)

    async def unwrap(self, wrapped_key: bytes) -> bytes:
        return await self.gpg.decrypt_for(self.identity, wrapped_key)
