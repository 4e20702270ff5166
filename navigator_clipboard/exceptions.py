"""Navigator Clipboard exceptions.

Every error raised by the package derives from ``ClipboardError`` so the
command line layer can report any failure with a single handler.
"""
from typing import Optional


class ClipboardError(Exception):
    """Base exception for navigator-clipboard."""


# ---------------------------------------------------------------------------
# Key resolution
# ---------------------------------------------------------------------------

class ConflictingOptions(ClipboardError):
    """Two mutually exclusive key sources were given together."""


class KeyNotFound(ClipboardError):
    """A configured key source could not be read or is empty."""


class InvalidKeyError(ClipboardError):
    """Key material has the wrong size for the cipher."""


class UnsupportedKeyFormat(ClipboardError):
    """Key data is neither DER nor PEM in any supported structure."""


class NotAnRSAKey(UnsupportedKeyFormat):
    """Key data parsed correctly but does not hold an RSA key."""


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

class DecryptionError(ClipboardError):
    """Ciphertext could not be turned back into plaintext."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class AuthenticationError(DecryptionError):
    """AEAD tag verification failed (wrong key, tampered data or nonce)."""


class AgentError(ClipboardError):
    """The external OpenPGP agent failed."""

    def __init__(self, message: str, stderr: str = ''):
        super().__init__(message)
        self.stderr = stderr


# ---------------------------------------------------------------------------
# Storage and transport
# ---------------------------------------------------------------------------

class SizeLimitExceeded(ClipboardError):
    """Input data is larger than the configured maximum size."""

    def __init__(self, limit: int):
        super().__init__(f"input data exceeds set limit {limit}Bytes")
        self.limit = limit


class NotFound(ClipboardError):
    """A requested key was never set (or has expired)."""

    def __init__(self, key: str):
        super().__init__(f"{key} not found")
        self.key = key


class StoreError(ClipboardError):
    """The ephemeral store holds a value of an unexpected shape."""


class NetworkError(ClipboardError):
    """A request to the relay failed before a response was received."""


class RequestTimeout(NetworkError):
    """A request to the relay exceeded its timeout; safe to retry for reads."""


class ResponseError(ClipboardError):
    """The relay answered with an unexpected status code."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status
