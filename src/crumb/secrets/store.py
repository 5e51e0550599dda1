"""
Secret store for crumb.

All secrets live in a single file: the plaintext is a sorted list of
``path=value`` lines, encrypted as one blob. Every mutation is a full
load -> change -> save cycle guarded by advisory file locks.
"""

import logging
from collections.abc import Callable, Iterator, Mapping, MutableMapping
from pathlib import Path

from crumb.crypto import EncryptionProvider, Identity, Recipient, SSHKeyEncryption
from crumb.exceptions import CancelledError, DecryptionError, NotFoundError
from crumb.storage.locking import read_file_with_lock, write_file_with_lock

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def parse_secrets(content: str) -> dict[str, str]:
    """
    Parse decrypted secrets content into a dictionary.

    Lines without an '=' are skipped.

    Args:
        content: Decrypted payload.

    Returns:
        Mapping of path to value.
    """
    secrets: dict[str, str] = {}
    for lineno, line in enumerate(content.strip().split("\n"), start=1):
        line = line.strip()
        if not line:
            continue

        if "=" not in line:
            logger.debug(f"Skipping malformed secrets line {lineno}")
            continue

        key, value = line.split("=", 1)
        secrets[key.strip()] = value.strip()

    return secrets


def serialize_secrets(secrets: Mapping[str, str]) -> str:
    """Render secrets as sorted ``path=value`` lines."""
    lines = sorted(f"{key}={value}" for key, value in secrets.items())
    return "\n".join(lines)


class SecretSet(MutableMapping[str, str]):
    """
    In-memory set of secrets, keyed by path.

    Behaves as a mapping and adds the CRUD helpers used by the CLI. None of
    these methods touch the disk; use SecretStore.save() to persist.
    """

    def __init__(self, secrets: Mapping[str, str] | None = None):
        self._secrets: dict[str, str] = dict(secrets or {})

    def __getitem__(self, key: str) -> str:
        return self._secrets[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._secrets[key] = value

    def __delitem__(self, key: str) -> None:
        del self._secrets[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._secrets)

    def __len__(self) -> int:
        return len(self._secrets)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SecretSet):
            return self._secrets == other._secrets
        if isinstance(other, Mapping):
            return self._secrets == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"SecretSet({len(self._secrets)} secrets)"

    def exists(self, key: str) -> tuple[str, bool]:
        """
        Look up a secret.

        Returns:
            (value, True) if present, ("", False) otherwise.
        """
        if key in self._secrets:
            return self._secrets[key], True
        return "", False

    def set(self, key: str, value: str) -> None:
        """Insert or overwrite a secret."""
        self._secrets[key] = value

    def delete(self, key: str) -> bool:
        """
        Remove a secret.

        Returns:
            True if deleted, False if not found.
        """
        if key in self._secrets:
            del self._secrets[key]
            return True
        return False

    def move(self, old_key: str, new_key: str, confirm: Confirm | None = None) -> None:
        """
        Move a secret to a new path.

        Args:
            old_key: Current path.
            new_key: Destination path.
            confirm: Asked before overwriting an existing destination. When
                omitted, an existing destination is never overwritten.

        Raises:
            NotFoundError: If old_key does not exist.
            CancelledError: If the destination exists and the overwrite was
                not confirmed.
        """
        if old_key not in self._secrets:
            raise NotFoundError(f"old key not found: {old_key}", old_key)

        if old_key == new_key:
            return

        if new_key in self._secrets:
            if confirm is None or not confirm(f"Key '{new_key}' already exists. Overwrite?"):
                raise CancelledError("operation cancelled")

        self._secrets[new_key] = self._secrets.pop(old_key)


class SecretStore:
    """
    Loads and saves the encrypted secrets file.

    The store itself holds no secrets between calls; load() returns a fresh
    SecretSet each time.
    """

    def __init__(self, storage_path: Path, provider: EncryptionProvider | None = None):
        """
        Initialize the store.

        Args:
            storage_path: Location of the encrypted secrets file.
            provider: Encryption backend. Defaults to SSHKeyEncryption.
        """
        self.storage_path = Path(storage_path)
        self.provider = provider or SSHKeyEncryption()

    def exists(self) -> bool:
        return self.storage_path.exists()

    def load(self, identity: Identity) -> SecretSet:
        """
        Load and decrypt the secrets file.

        A missing file, an empty file, and an empty payload all yield an
        empty SecretSet.

        Args:
            identity: Private key able to open the file.

        Raises:
            DecryptionError: If the identity cannot decrypt the file.
            LockError: If the shared lock cannot be acquired.
            StorageIOError: If the file cannot be read.
        """
        if not self.storage_path.exists():
            logger.debug(f"No secrets file at {self.storage_path}, starting empty")
            return SecretSet()

        encrypted = read_file_with_lock(self.storage_path)
        if not encrypted:
            return SecretSet()

        payload = self.provider.decrypt(encrypted, identity)
        if not payload:
            return SecretSet()

        try:
            content = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError(f"Decrypted secrets are not valid UTF-8: {e}") from e

        secrets = SecretSet(parse_secrets(content))
        logger.debug(f"Loaded {len(secrets)} secrets from {self.storage_path}")
        return secrets

    def save(self, secrets: Mapping[str, str], recipient: Recipient) -> None:
        """
        Encrypt and write the secrets file, replacing its contents.

        Args:
            secrets: The full secret set.
            recipient: Public key to encrypt for.

        Raises:
            EncryptionError: If encryption fails.
            LockError: If the exclusive lock cannot be acquired.
            StorageIOError: If the file cannot be written.
        """
        content = serialize_secrets(secrets)
        encrypted = self.provider.encrypt(content.encode("utf-8"), recipient)
        write_file_with_lock(self.storage_path, encrypted, 0o600)
        logger.info(f"Saved {len(secrets)} secrets to {self.storage_path}")

    def create_empty(self, recipient: Recipient) -> None:
        """Write an encrypted empty payload (first-time setup)."""
        encrypted = self.provider.encrypt(b"", recipient)
        write_file_with_lock(self.storage_path, encrypted, 0o600)
        logger.info(f"Created empty secrets file: {self.storage_path}")
