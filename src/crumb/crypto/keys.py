"""
SSH key loading for crumb.

Turns OpenSSH public/private key files into recipients and identities that can
wrap and unwrap a per-file key. Two key types are supported:

- ssh-ed25519: the Edwards key is mapped onto Curve25519 and the file key is
  wrapped with an ephemeral X25519 exchange, HKDF-SHA256 and ChaCha20-Poly1305.
- ssh-rsa: the file key is wrapped with RSA-OAEP (SHA-256).
"""

import base64
import hashlib
import logging
import os
from pathlib import Path
from typing import Any

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, padding, rsa, x25519
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from crumb.exceptions import DecryptionError, EncryptionError, KeyLoadError

logger = logging.getLogger(__name__)

# Field prime of Curve25519 / edwards25519
_P = 2**255 - 19

X25519_STANZA = "x25519"
RSA_STANZA = "rsa-oaep"

_WRAP_INFO = b"crumb.v1.x25519-wrap"
_OAEP_LABEL = b"crumb.v1.rsa-oaep"


def _b64e(b: bytes) -> str:
    """urlsafe base64 (no padding)."""
    return base64.urlsafe_b64encode(b).decode("ascii").rstrip("=")


def _b64d(s: str) -> bytes:
    """Decode urlsafe base64 that may omit padding."""
    pad = "=" * ((4 - len(s) % 4) % 4)
    return base64.urlsafe_b64decode(s + pad)


def _ed25519_public_to_x25519(public_key: ed25519.Ed25519PublicKey) -> x25519.X25519PublicKey:
    """Map an Ed25519 public key to its Curve25519 (Montgomery) form: u = (1 + y) / (1 - y)."""
    raw = public_key.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)
    y = int.from_bytes(raw, "little") & ((1 << 255) - 1)
    u = (1 + y) * pow(1 - y, _P - 2, _P) % _P
    return x25519.X25519PublicKey.from_public_bytes(u.to_bytes(32, "little"))


def _ed25519_private_to_x25519(private_key: ed25519.Ed25519PrivateKey) -> x25519.X25519PrivateKey:
    """Derive the Curve25519 scalar from an Ed25519 seed (X25519 clamps it on use)."""
    seed = private_key.private_bytes(
        serialization.Encoding.Raw,
        serialization.PrivateFormat.Raw,
        serialization.NoEncryption(),
    )
    return x25519.X25519PrivateKey.from_private_bytes(hashlib.sha512(seed).digest()[:32])


def _x25519_raw(public_key: x25519.X25519PublicKey) -> bytes:
    return public_key.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)


def _derive_wrap_key(shared: bytes, ephemeral: bytes, recipient: bytes) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=ephemeral + recipient,
        info=_WRAP_INFO,
    )
    return hkdf.derive(shared)


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=_OAEP_LABEL,
    )


class Recipient:
    """Public half of a key pair; wraps file keys."""

    def __init__(self, public_key: ed25519.Ed25519PublicKey | rsa.RSAPublicKey):
        if not isinstance(public_key, (ed25519.Ed25519PublicKey, rsa.RSAPublicKey)):
            raise KeyLoadError("Public key must be of type ssh-ed25519 or ssh-rsa")
        self.public_key = public_key

    @property
    def key_type(self) -> str:
        if isinstance(self.public_key, ed25519.Ed25519PublicKey):
            return "ssh-ed25519"
        return "ssh-rsa"

    def wrap(self, file_key: bytes) -> dict[str, Any]:
        """
        Wrap a file key for this recipient.

        Args:
            file_key: The 32-byte key that encrypts the payload.

        Returns:
            A JSON-serializable stanza describing the wrapped key.

        Raises:
            EncryptionError: If the key cannot be wrapped.
        """
        try:
            if isinstance(self.public_key, rsa.RSAPublicKey):
                wrapped = self.public_key.encrypt(file_key, _oaep())
                return {"type": RSA_STANZA, "body": _b64e(wrapped)}

            their_public = _ed25519_public_to_x25519(self.public_key)
            ephemeral = x25519.X25519PrivateKey.generate()
            ephemeral_raw = _x25519_raw(ephemeral.public_key())
            shared = ephemeral.exchange(their_public)
            wrap_key = _derive_wrap_key(shared, ephemeral_raw, _x25519_raw(their_public))
            nonce = os.urandom(12)
            wrapped = ChaCha20Poly1305(wrap_key).encrypt(nonce, file_key, None)
        except ValueError as e:
            raise EncryptionError(f"Failed to wrap file key: {e}") from e

        return {
            "type": X25519_STANZA,
            "epk": _b64e(ephemeral_raw),
            "nonce": _b64e(nonce),
            "body": _b64e(wrapped),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Recipient):
            return NotImplemented
        return self.to_openssh() == other.to_openssh()

    def __hash__(self) -> int:
        return hash(self.to_openssh())

    def to_openssh(self) -> bytes:
        return self.public_key.public_bytes(
            serialization.Encoding.OpenSSH, serialization.PublicFormat.OpenSSH
        )


class Identity:
    """Private half of a key pair; unwraps file keys."""

    def __init__(self, private_key: ed25519.Ed25519PrivateKey | rsa.RSAPrivateKey):
        if not isinstance(private_key, (ed25519.Ed25519PrivateKey, rsa.RSAPrivateKey)):
            raise KeyLoadError("Private key must be of type ssh-ed25519 or ssh-rsa")
        self.private_key = private_key

    @property
    def recipient(self) -> Recipient:
        """The matching recipient for this identity."""
        return Recipient(self.private_key.public_key())

    def unwrap(self, stanza: dict[str, Any]) -> bytes:
        """
        Recover the file key from a stanza.

        Args:
            stanza: Stanza produced by Recipient.wrap.

        Returns:
            The 32-byte file key.

        Raises:
            DecryptionError: If the stanza does not belong to this identity.
        """
        stanza_type = stanza.get("type")
        try:
            if stanza_type == RSA_STANZA and isinstance(self.private_key, rsa.RSAPrivateKey):
                return self.private_key.decrypt(_b64d(stanza["body"]), _oaep())

            if stanza_type == X25519_STANZA and isinstance(
                self.private_key, ed25519.Ed25519PrivateKey
            ):
                ours = _ed25519_private_to_x25519(self.private_key)
                ephemeral_raw = _b64d(stanza["epk"])
                ephemeral = x25519.X25519PublicKey.from_public_bytes(ephemeral_raw)
                shared = ours.exchange(ephemeral)
                wrap_key = _derive_wrap_key(
                    shared, ephemeral_raw, _x25519_raw(ours.public_key())
                )
                return ChaCha20Poly1305(wrap_key).decrypt(
                    _b64d(stanza["nonce"]), _b64d(stanza["body"]), None
                )
        except (InvalidTag, ValueError, KeyError, TypeError) as e:
            raise DecryptionError("No identity matched the secrets file") from e

        raise DecryptionError(f"Identity cannot open a '{stanza_type}' stanza")


def load_recipient(public_key_path: Path) -> Recipient:
    """
    Read an OpenSSH public key file.

    Args:
        public_key_path: Path to e.g. ~/.ssh/id_ed25519.pub

    Returns:
        A Recipient for the key.

    Raises:
        KeyLoadError: If the file cannot be read or parsed.
    """
    try:
        data = Path(public_key_path).read_bytes().strip()
    except OSError as e:
        raise KeyLoadError(f"Failed to read public key: {e}") from e

    if not (data.startswith(b"ssh-ed25519 ") or data.startswith(b"ssh-rsa ")):
        raise KeyLoadError("Public key must be of type ssh-rsa or ssh-ed25519")

    try:
        public_key = serialization.load_ssh_public_key(data)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"Failed to parse public key: {e}") from e

    return Recipient(public_key)  # type: ignore[arg-type]


def load_identity(private_key_path: Path) -> Identity:
    """
    Read an unencrypted OpenSSH (or PEM) private key file.

    Args:
        private_key_path: Path to e.g. ~/.ssh/id_ed25519

    Returns:
        An Identity for the key.

    Raises:
        KeyLoadError: If the file cannot be read, is passphrase protected, or
            is not an ed25519/RSA key.
    """
    try:
        data = Path(private_key_path).read_bytes()
    except OSError as e:
        raise KeyLoadError(f"Failed to read private key: {e}") from e

    try:
        if b"BEGIN OPENSSH PRIVATE KEY" in data:
            private_key = serialization.load_ssh_private_key(data, password=None)
        else:
            private_key = serialization.load_pem_private_key(data, password=None)
    except TypeError as e:
        raise KeyLoadError("Passphrase-protected private keys are not supported") from e
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"Failed to parse private key: {e}") from e

    logger.debug(f"Loaded private key from {private_key_path}")
    return Identity(private_key)  # type: ignore[arg-type]


def validate_key_pair(public_key_path: Path, private_key_path: Path) -> None:
    """
    Check that both key files exist, parse, and belong together.

    Raises:
        KeyLoadError: On any mismatch or parse failure.
    """
    if not Path(public_key_path).exists():
        raise KeyLoadError(f"Public key file not found: {public_key_path}")
    if not Path(private_key_path).exists():
        raise KeyLoadError(f"Private key file not found: {private_key_path}")

    recipient = load_recipient(public_key_path)
    identity = load_identity(private_key_path)
    if identity.recipient != recipient:
        raise KeyLoadError("Public key does not match private key")
