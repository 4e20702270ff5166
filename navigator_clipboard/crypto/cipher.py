"""
Clipboard Crypto Core: key derivation and AES-256-GCM encryption.

Format: [nonce 12B][encrypted_payload + GCM_tag 16B]

Security Note:
    Never log plaintext, ciphertext or key material.
    Nonces are random 96-bit, generated fresh for every call; a nonce is
    never reused under a given key.
"""
import os
from typing import Callable

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..conf import KEY_LENGTH, NONCE_SIZE, PBKDF2_ITERATIONS
from ..exceptions import AuthenticationError, InvalidKeyError

RandomSource = Callable[[int], bytes]


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

class KeyDerivation:
    """PBKDF2-HMAC-SHA256 password stretching.

    Derivation is deterministic: the same ``(password, salt)`` always yields
    the same key, which lets sender and receiver agree on a key without
    exchanging it. The iteration count is not negotiated, both ends must be
    built with the same value.
    """

    def __init__(self, iterations: int = PBKDF2_ITERATIONS, length: int = KEY_LENGTH):
        self.iterations = iterations
        self.length = length

    def derive(self, password: str, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=self.length,
            salt=salt or b"",
            iterations=self.iterations,
        )
        return kdf.derive(password.encode("utf-8"))


def derive_key(password: str, salt: bytes) -> bytes:
    """Derive a 32-byte encryption key from a password using PBKDF2-SHA256.

    Args:
        password: User supplied password.
        salt: Salt shared through the relay.

    Returns:
        32-byte derived key.
    """
    return KeyDerivation().derive(password, salt)


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

class SymmetricCipher:
    """AES-256-GCM with the nonce prefixed to the sealed output."""

    def __init__(self, random_source: RandomSource = os.urandom):
        self._random = random_source

    @staticmethod
    def _aead(key: bytes) -> AESGCM:
        if len(key) != KEY_LENGTH:
            raise InvalidKeyError(
                f"Invalid AES key size: {len(key)} bytes (expected {KEY_LENGTH} bytes)"
            )
        return AESGCM(key)

    def encrypt(self, key: bytes, plaintext: bytes) -> bytes:
        """Encrypt plaintext under a 32-byte key.

        Returns:
            ``nonce || ciphertext || tag``.
        """
        cipher = self._aead(key)
        nonce = self._random(NONCE_SIZE)
        return nonce + cipher.encrypt(nonce, plaintext, None)

    def decrypt(self, key: bytes, ciphertext: bytes) -> bytes:
        """Decrypt data produced by :meth:`encrypt`.

        Raises:
            AuthenticationError: If the input is shorter than the nonce or
                the authentication tag does not verify.
        """
        cipher = self._aead(key)
        if len(ciphertext) < NONCE_SIZE:
            raise AuthenticationError(
                f"ciphertext too short: {len(ciphertext)} bytes "
                f"(minimum {NONCE_SIZE})"
            )
        nonce = ciphertext[:NONCE_SIZE]
        try:
            return cipher.decrypt(nonce, ciphertext[NONCE_SIZE:], None)
        except InvalidTag as err:
            raise AuthenticationError(
                "message authentication failed", original_error=err
            ) from err


_default_cipher = SymmetricCipher()


def encrypt(key: bytes, plaintext: bytes) -> bytes:
    """Encrypt with a fresh random nonce (see :class:`SymmetricCipher`)."""
    return _default_cipher.encrypt(key, plaintext)


def decrypt(key: bytes, ciphertext: bytes) -> bytes:
    """Decrypt ``nonce || ciphertext || tag`` (see :class:`SymmetricCipher`)."""
    return _default_cipher.decrypt(key, ciphertext)


def encrypt_with_password(password: str, salt: bytes, plaintext: bytes) -> bytes:
    """Derive a key from ``password`` and ``salt`` and encrypt plaintext."""
    return encrypt(derive_key(password, salt), plaintext)


def decrypt_with_password(password: str, salt: bytes, ciphertext: bytes) -> bytes:
    """Derive a key from ``password`` and ``salt`` and decrypt ciphertext."""
    return decrypt(derive_key(password, salt), ciphertext)
