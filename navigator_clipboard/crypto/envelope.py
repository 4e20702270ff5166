"""
Hybrid (envelope) encryption.

Bulk data is sealed with AES-256-GCM under a random one-time session key;
only the session key goes through the (slow) asymmetric ``KeyWrapper``.

Wire format::

    {"encryptedData": "<base64>", "encryptedSessionKey": "<base64>"}
"""
import os
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional

import orjson

from ..conf import SESSION_KEY_SIZE
from ..exceptions import ClipboardError, DecryptionError, InvalidKeyError
from .agent import KeyWrapper
from .cipher import SymmetricCipher, RandomSource

logger = logging.getLogger("navigator.clipboard.crypto")

_DATA_FIELD = "encryptedData"
_SESSION_KEY_FIELD = "encryptedSessionKey"


@dataclass(frozen=True)
class CipherEnvelope:
    """Ciphertext plus the wrapped session key needed to open it."""

    encrypted_data: bytes
    encrypted_session_key: bytes

    def to_json(self) -> bytes:
        return orjson.dumps({
            _DATA_FIELD: base64.b64encode(self.encrypted_data).decode("ascii"),
            _SESSION_KEY_FIELD: base64.b64encode(self.encrypted_session_key).decode("ascii"),
        })

    @classmethod
    def from_json(cls, data: bytes) -> "CipherEnvelope":
        """Parse the wire format.

        Raises:
            DecryptionError: If the payload is not a well formed envelope.
        """
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as err:
            raise DecryptionError(f"failed to decode data: {err}", original_error=err) from err
        if not isinstance(parsed, dict):
            raise DecryptionError("failed to decode data: envelope must be an object")
        try:
            return cls(
                encrypted_data=base64.b64decode(parsed[_DATA_FIELD], validate=True),
                encrypted_session_key=base64.b64decode(parsed[_SESSION_KEY_FIELD], validate=True),
            )
        except KeyError as err:
            raise DecryptionError(
                f"failed to decode data: missing field {err}", original_error=err
            ) from err
        except (TypeError, binascii.Error) as err:
            raise DecryptionError(
                f"failed to decode data: {err}", original_error=err
            ) from err


class EnvelopeCipher:
    """Encrypts for, and decrypts as, the recipient behind a ``KeyWrapper``."""

    def __init__(
        self,
        wrapper: KeyWrapper,
        cipher: Optional[SymmetricCipher] = None,
        random_source: RandomSource = os.urandom,
    ):
        self.wrapper = wrapper
        self.cipher = cipher or SymmetricCipher(random_source)
        self._random = random_source

    async def encrypt_hybrid(self, plaintext: bytes) -> CipherEnvelope:
        session_key = self._random(SESSION_KEY_SIZE)
        encrypted_data = self.cipher.encrypt(session_key, plaintext)
        encrypted_session_key = await self.wrapper.wrap(session_key)
        logger.debug(
            "Hybrid encryption: %d bytes payload, %d bytes wrapped key",
            len(encrypted_data), len(encrypted_session_key),
        )
        return CipherEnvelope(encrypted_data, encrypted_session_key)

    async def decrypt_hybrid(self, envelope: CipherEnvelope) -> bytes:
        """Unwrap the session key, then open the payload.

        Raises:
            DecryptionError: If either step fails (``AuthenticationError``
                when the payload tag does not verify).
        """
        try:
            session_key = await self.wrapper.unwrap(envelope.encrypted_session_key)
        except DecryptionError:
            raise
        except ClipboardError as err:
            raise DecryptionError(
                f"failed to decrypt the session key: {err}", original_error=err
            ) from err
        try:
            return self.cipher.decrypt(session_key, envelope.encrypted_data)
        except InvalidKeyError as err:
            raise DecryptionError(
                f"failed to decrypt the encrypted data: {err}", original_error=err
            ) from err

    async def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt and serialize to the wire format."""
        envelope = await self.encrypt_hybrid(plaintext)
        return envelope.to_json()

    async def decrypt(self, data: bytes) -> bytes:
        """Parse the wire format and decrypt."""
        return await self.decrypt_hybrid(CipherEnvelope.from_json(data))
