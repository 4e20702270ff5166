"""
Clipboard Configuration: validated settings for the relay and its clients.

Values come from the environment (see ``conf``) and can be overridden by
command line flags.

Security Note:
    The basic-auth credential is a shared secret. Never log it.
"""
import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .conf import (
    CLIPBOARD_SERVER_ENV,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TTL,
    DEFAULT_SHUTDOWN_TIMEOUT,
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_SIZE,
    DEFAULT_GPG_EXECUTABLE,
)
from .datasize import parse_size


def _validate_basic_auth(v: Optional[str]) -> Optional[str]:
    if not v:
        return None
    if ":" not in v:
        raise ValueError("basic auth must be given as username:password")
    return v


def _validate_size(v: int | str) -> int:
    if isinstance(v, str):
        return parse_size(v)
    if v < 0:
        raise ValueError("max size cannot be negative")
    return v


class ServerConfig(BaseModel):
    """Validated relay configuration."""

    host: str = Field(default=DEFAULT_HOST)
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    # 0 disables expiry entirely.
    ttl: float = Field(default=DEFAULT_TTL, ge=0)
    check_interval: Optional[float] = Field(default=None, gt=0)
    basic_auth: Optional[str] = None
    max_size: int = Field(default=parse_size(DEFAULT_MAX_SIZE))
    shutdown_timeout: float = Field(default=DEFAULT_SHUTDOWN_TIMEOUT, ge=0)

    @field_validator("basic_auth")
    @classmethod
    def validate_basic_auth(cls, v: Optional[str]) -> Optional[str]:
        """Require the username:password shape."""
        return _validate_basic_auth(v)

    @field_validator("max_size", mode="before")
    @classmethod
    def validate_max_size(cls, v: int | str) -> int:
        """Accept human readable sizes such as "500mb"."""
        return _validate_size(v)

    @property
    def sweep_interval(self) -> float:
        """Interval of the background expiry sweep (defaults to the TTL)."""
        return self.check_interval or self.ttl

    @classmethod
    def from_env(cls, **overrides) -> "ServerConfig":
        """Create a ServerConfig from environment defaults.

        Keyword arguments set to ``None`` are ignored so unset command line
        flags fall back to the defaults.
        """
        values = {k: v for k, v in overrides.items() if v is not None}
        return cls(**values)


class ClientConfig(BaseModel):
    """Validated client configuration."""

    address: str
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    basic_auth: Optional[str] = None
    max_size: int = Field(default=parse_size(DEFAULT_MAX_SIZE))
    gpg_executable: str = Field(default=DEFAULT_GPG_EXECUTABLE)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Require an http(s) relay address."""
        if not v:
            raise ValueError(
                f"put the relay address into {CLIPBOARD_SERVER_ENV} environment variable"
            )
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"relay address must be an http(s) URL: {v}")
        return v.rstrip("/")

    @field_validator("basic_auth")
    @classmethod
    def validate_basic_auth(cls, v: Optional[str]) -> Optional[str]:
        """Require the username:password shape."""
        return _validate_basic_auth(v)

    @field_validator("max_size", mode="before")
    @classmethod
    def validate_max_size(cls, v: int | str) -> int:
        """Accept human readable sizes such as "500mb"."""
        return _validate_size(v)

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """Create a ClientConfig reading the relay address from the environment.

        Returns:
            Populated ClientConfig instance.
        """
        values = {k: v for k, v in overrides.items() if v is not None}
        values.setdefault("address", os.environ.get(CLIPBOARD_SERVER_ENV, ""))
        return cls(**values)
