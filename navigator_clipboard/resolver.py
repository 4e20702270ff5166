"""
Key Resolver: picks the key acquisition path from user supplied options.

The order of priority is:

1. hybrid encryption, if a public/private key file or a GPG user id is given;
2. symmetric encryption with a key derived from a password;
3. symmetric encryption with a key read from a file (option or
   ``NAVIGATOR_CLIPBOARD_SYMMETRIC_KEY_FILE``);
4. no encryption at all.

The last case is not an error: content without any configured key is
copied and pasted as plaintext.
"""
import os
import logging
from enum import Enum
from dataclasses import dataclass
from collections.abc import Mapping
from typing import Optional

from .conf import CLIPBOARD_SYMMETRIC_KEY_FILE_ENV, DEFAULT_GPG_EXECUTABLE
from .crypto.agent import KeyWrapper, RSAKeyWrapper, GPGKeyWrapper, GPG
from .crypto.keys import (
    read_key_file,
    load_public_key_file,
    load_private_key_file,
)
from .exceptions import ConflictingOptions, KeyNotFound

logger = logging.getLogger("navigator.clipboard.resolver")


class KeyMode(str, Enum):
    HYBRID = "hybrid"
    PASSWORD = "password"
    KEY_FILE = "key-file"
    NONE = "none"


@dataclass
class KeyOptions:
    """Key sources given on the command line."""

    password: Optional[str] = None
    symmetric_key_file: Optional[str] = None
    public_key_file: Optional[str] = None
    private_key_file: Optional[str] = None
    private_key_password_file: Optional[str] = None
    gpg_user_id: Optional[str] = None
    gpg_executable: str = DEFAULT_GPG_EXECUTABLE


@dataclass
class ResolvedKey:
    """Outcome of key resolution; exactly one of the payload fields is set."""

    mode: KeyMode
    password: Optional[str] = None
    key: Optional[bytes] = None
    wrapper: Optional[KeyWrapper] = None

    @property
    def encrypted(self) -> bool:
        return self.mode is not KeyMode.NONE


class KeyResolver:
    """Resolves ``KeyOptions`` into a single ``ResolvedKey``."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ

    def _env_key_file(self) -> Optional[str]:
        value = self._environ.get(CLIPBOARD_SYMMETRIC_KEY_FILE_ENV)
        if value is None or value == "":
            return None
        if not value.strip():
            raise KeyNotFound(
                f"{CLIPBOARD_SYMMETRIC_KEY_FILE_ENV} is set but empty"
            )
        return value.strip()

    def resolve(self, options: KeyOptions) -> ResolvedKey:
        """Return the key acquisition mode and its material.

        Raises:
            ConflictingOptions: If two sources for the same mode are given.
            KeyNotFound: If a key file is unreadable or empty.
        """
        if options.public_key_file or options.private_key_file or options.gpg_user_id:
            return ResolvedKey(KeyMode.HYBRID, wrapper=self._resolve_wrapper(options))

        env_key_file = self._env_key_file()
        if options.password:
            if options.symmetric_key_file or env_key_file:
                raise ConflictingOptions("can't specify both password and key")
            logger.debug("Using password derived symmetric key")
            return ResolvedKey(KeyMode.PASSWORD, password=options.password)

        key_file = options.symmetric_key_file or env_key_file
        if key_file:
            key = read_key_file(key_file, strip=True)
            if not key:
                raise KeyNotFound(f"symmetric key file {key_file} is empty")
            logger.debug("Using symmetric key from %s", key_file)
            return ResolvedKey(KeyMode.KEY_FILE, key=key)

        logger.info("No key configured, content is transferred unencrypted")
        return ResolvedKey(KeyMode.NONE)

    def _resolve_wrapper(self, options: KeyOptions) -> KeyWrapper:
        has_key_file = bool(options.public_key_file or options.private_key_file)
        if options.gpg_user_id and has_key_file:
            raise ConflictingOptions(
                "can't specify both \"--gpg-user-id\" and a key file"
            )
        if options.gpg_user_id:
            logger.debug("Using GPG identity for hybrid encryption")
            return GPGKeyWrapper(options.gpg_user_id, GPG(options.gpg_executable))
        public_key = None
        private_key = None
        if options.public_key_file:
            public_key = load_public_key_file(options.public_key_file)
        if options.private_key_file:
            private_key = load_private_key_file(
                options.private_key_file, options.private_key_password_file,
            )
        return RSAKeyWrapper(public_key=public_key, private_key=private_key)
