"""Shared fixtures: RSA key material and relay configuration."""
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from navigator_clipboard.config import ServerConfig


@pytest.fixture(scope="session")
def rsa_private_key():
    """One RSA key pair for the whole run (generation is slow)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def public_pem(rsa_private_key) -> bytes:
    return rsa_private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture
def private_pem(rsa_private_key) -> bytes:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def key_files(tmp_path, public_pem, private_pem):
    """Write the key pair as PEM files; returns (public_path, private_path)."""
    public_path = tmp_path / "id_rsa.pub.pem"
    private_path = tmp_path / "id_rsa.pem"
    public_path.write_bytes(public_pem)
    private_path.write_bytes(private_pem)
    return str(public_path), str(private_path)


@pytest.fixture
def symmetric_key_file(tmp_path):
    path = tmp_path / "symmetric.key"
    # Surrounding whitespace is trimmed on load.
    path.write_bytes(b"  " + b"k" * 32 + b"\n")
    return str(path)


@pytest.fixture
def server_config():
    """Relay configuration without expiry or auth."""
    return ServerConfig(ttl=0, port=0)
