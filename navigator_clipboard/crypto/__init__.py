"""Clipboard Crypto: symmetric, password-derived and hybrid encryption.

Security Note (Threat Model):
    The relay stores ciphertext only and is trusted to serve bytes
    faithfully. It is not protected against an actively malicious operator.
"""

from .cipher import (
    SymmetricCipher,
    KeyDerivation,
    derive_key,
    encrypt,
    decrypt,
    encrypt_with_password,
    decrypt_with_password,
)
from .agent import KeyWrapper, RSAKeyWrapper, GPGKeyWrapper, GPG
from .envelope import CipherEnvelope, EnvelopeCipher
from .keys import (
    load_public_key,
    load_private_key,
    load_public_key_file,
    load_private_key_file,
)

__all__ = [
    "SymmetricCipher",
    "KeyDerivation",
    "derive_key",
    "encrypt",
    "decrypt",
    "encrypt_with_password",
    "decrypt_with_password",
    "KeyWrapper",
    "RSAKeyWrapper",
    "GPGKeyWrapper",
    "GPG",
    "CipherEnvelope",
    "EnvelopeCipher",
    "load_public_key",
    "load_private_key",
    "load_public_key_file",
    "load_private_key_file",
]
