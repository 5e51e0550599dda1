"""
Exceptions for crumb.

Every failure raised by the store, the crypto layer, the config loader and the
export resolver derives from CrumbError so CLI commands can report them in one
place.
"""


class CrumbError(Exception):
    """Base exception for crumb errors."""

    pass


class ValidationError(CrumbError):
    """A secret path does not follow the path rules."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class NotFoundError(CrumbError):
    """Requested secret does not exist."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class CryptoError(CrumbError):
    """Base exception for encryption-related errors."""

    pass


class EncryptionError(CryptoError):
    """Failed to encrypt the secrets payload."""

    pass


class DecryptionError(CryptoError):
    """Failed to decrypt the secrets file (wrong key or corrupted data)."""

    pass


class KeyLoadError(CryptoError):
    """A key file could not be read or is not a supported key type."""

    pass


class ConfigError(CrumbError):
    """Raised when configuration loading or validation fails."""

    pass


class LockError(CrumbError):
    """Could not acquire an advisory lock on the storage file."""

    pass


class StorageIOError(CrumbError):
    """Reading or writing the storage file failed."""

    pass


class CancelledError(CrumbError):
    """The user declined a confirmation; nothing was changed."""

    pass


class NoSecretsError(CrumbError):
    """An export resolved to no variables."""

    pass
