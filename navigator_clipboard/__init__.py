"""Navigator Clipboard.

Encrypt content on one device, park it on a short-lived relay and
decrypt it on another.

Security Note (Threat Model):
    Content without any configured key travels and is stored as
    plaintext. The relay is trusted to store and serve bytes faithfully,
    not to see plaintext.
"""
from .version import __version__
from .client import Clipboard, RelayClient
from .config import ClientConfig, ServerConfig
from .resolver import KeyMode, KeyOptions, KeyResolver
from .salt import SaltRotation
from .server import ClipboardRelay, serve
from .storage import MemoryStore, TTLStore, Blob, Timestamp, create_store

__all__ = [
    "__version__",
    "Clipboard",
    "RelayClient",
    "ClientConfig",
    "ServerConfig",
    "KeyMode",
    "KeyOptions",
    "KeyResolver",
    "SaltRotation",
    "ClipboardRelay",
    "serve",
    "MemoryStore",
    "TTLStore",
    "Blob",
    "Timestamp",
    "create_store",
]
