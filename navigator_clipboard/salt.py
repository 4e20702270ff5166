"""
Salt Rotation: the relay side of the password salt protocol.

The relay keeps a single global salt slot (store key ``salt``):

- ``rotate()`` replaces it with fresh random bytes and returns them;
- ``current()`` returns it without mutation.

A password-encrypting sender always rotates before uploading, and the
receiver derives its key from the current salt. A newer upload therefore
makes every older password-protected item undecryptable, and two senders
racing on the same relay can invalidate each other. This is intended: the
slot is global, not per item, and existing clients rely on that contract.

Rotation is not idempotent; never retry it blindly.
"""
import os
import logging

from .conf import SALT_KEY, SALT_SIZE
from .crypto.cipher import RandomSource
from .storage import MemoryStore, Blob

logger = logging.getLogger("navigator.clipboard.salt")


class SaltRotation:
    """Generates and serves the relay's password derivation salt."""

    def __init__(
        self,
        store: MemoryStore,
        salt_size: int = SALT_SIZE,
        random_source: RandomSource = os.urandom,
    ):
        self.store = store
        self.salt_size = salt_size
        self._random = random_source

    async def rotate(self) -> bytes:
        """Replace the active salt with a fresh random value."""
        salt = self._random(self.salt_size)
        await self.store.put(SALT_KEY, Blob(salt))
        logger.info("Salt rotated (%d bytes)", len(salt))
        return salt

    async def current(self) -> bytes:
        """Return the active salt.

        Raises:
            NotFound: If no salt has been generated yet.
        """
        return await self.store.get_blob(SALT_KEY)
