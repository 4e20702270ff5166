"""Navigator Clipboard defaults.

Values can be overridden through environment variables; the command line
flags take precedence over both.
"""
import os

# Environment variables
CLIPBOARD_SERVER_ENV = "NAVIGATOR_CLIPBOARD_SERVER"
CLIPBOARD_SYMMETRIC_KEY_FILE_ENV = "NAVIGATOR_CLIPBOARD_SYMMETRIC_KEY_FILE"

# Relay resources
ROOT_PATH = "/"
SALT_PATH = "/salt"
LAST_UPDATED_PATH = "/lastupdated"

# Store keys
DATA_KEY = "data"
SALT_KEY = "salt"
LAST_UPDATED_KEY = "lastUpdated"

# Server defaults
DEFAULT_HOST = os.environ.get("NAVIGATOR_CLIPBOARD_HOST", "0.0.0.0")
DEFAULT_PORT = int(os.environ.get("NAVIGATOR_CLIPBOARD_PORT", 9090))
DEFAULT_TTL = float(os.environ.get("NAVIGATOR_CLIPBOARD_TTL", 24 * 3600))
DEFAULT_SHUTDOWN_TIMEOUT = 10.0

# Client defaults
DEFAULT_TIMEOUT = 5.0
DEFAULT_MAX_SIZE = "500mb"
DEFAULT_GPG_EXECUTABLE = "gpg"

# Crypto constants
KEY_LENGTH = 32  # AES-256
NONCE_SIZE = 12  # 96-bit GCM nonce
TAG_SIZE = 16
# Fixed and shared implicitly by both ends; changing it breaks decryption
# of payloads produced by older clients.
PBKDF2_ITERATIONS = 100
SALT_SIZE = 128
SESSION_KEY_SIZE = 32
