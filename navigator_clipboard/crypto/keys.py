"""RSA key loading for hybrid encryption.

Keys may be DER or PEM encoded and hold either a PKCS#1 (RSA specific) or
a PKIX/PKCS#8 (generic) structure. DER is tried first, then PEM.
"""
import logging
from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..exceptions import KeyNotFound, UnsupportedKeyFormat, NotAnRSAKey

logger = logging.getLogger("navigator.clipboard.crypto")

PathLike = Union[str, Path]

_PARSE_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


def read_key_file(path: PathLike, strip: bool = False) -> bytes:
    """Read a key (or key password) file.

    Raises:
        KeyNotFound: If the file cannot be read.
    """
    try:
        data = Path(path).read_bytes()
    except OSError as err:
        raise KeyNotFound(f"failed to read {path}: {err}") from err
    return data.strip() if strip else data


def load_public_key(data: bytes) -> rsa.RSAPublicKey:
    """Parse an RSA public key.

    ``load_der_public_key`` and ``load_pem_public_key`` both accept the
    PKCS#1 ``RSAPublicKey`` and the PKIX ``SubjectPublicKeyInfo`` forms.

    Raises:
        UnsupportedKeyFormat: If no encoding/structure matches.
        NotAnRSAKey: If the key is not an RSA key.
    """
    key = None
    errors = []
    for loader in (serialization.load_der_public_key, serialization.load_pem_public_key):
        try:
            key = loader(data)
            break
        except _PARSE_ERRORS as err:
            errors.append(err)
    if key is None:
        raise UnsupportedKeyFormat(f"failed to parse public key: {errors[-1]}")
    if not isinstance(key, rsa.RSAPublicKey):
        raise NotAnRSAKey("given public key is not an RSA key")
    return key


def load_private_key(data: bytes, password: Optional[bytes] = None) -> rsa.RSAPrivateKey:
    """Parse an RSA private key, unlocking it with ``password`` if given.

    ``load_der_private_key`` and ``load_pem_private_key`` both accept the
    PKCS#1 ``RSAPrivateKey`` and the PKCS#8 ``PrivateKeyInfo`` forms.

    Raises:
        UnsupportedKeyFormat: If no encoding/structure matches, or the key
            password is missing or wrong.
        NotAnRSAKey: If the key is not an RSA key.
    """
    password = password or None
    key = None
    errors = []
    for loader in (serialization.load_der_private_key, serialization.load_pem_private_key):
        try:
            key = loader(data, password=password)
            break
        except _PARSE_ERRORS as err:
            errors.append(err)
    if key is None:
        raise UnsupportedKeyFormat(f"failed to parse private key: {errors[-1]}")
    if not isinstance(key, rsa.RSAPrivateKey):
        raise NotAnRSAKey("given private key is not an RSA key")
    return key


def load_public_key_file(path: PathLike) -> rsa.RSAPublicKey:
    key = load_public_key(read_key_file(path))
    logger.debug("Loaded RSA public key from %s (%d bits)", path, key.key_size)
    return key


def load_private_key_file(
    path: PathLike,
    password_file: Optional[PathLike] = None,
) -> rsa.RSAPrivateKey:
    """Load an RSA private key file, optionally protected by a password file.

    The password file content is trimmed of surrounding whitespace.
    """
    password = read_key_file(password_file, strip=True) if password_file else None
    key = load_private_key(read_key_file(path), password)
    logger.debug("Loaded RSA private key from %s (%d bits)", path, key.key_size)
    return key
