"""
Envelope encryption for the secrets file.

A fresh 32-byte file key encrypts the payload with ChaCha20-Poly1305; the file
key itself is wrapped for the recipient (see crumb.crypto.keys).

Container layout:
    [u16 header_len][header_json_bytes][ciphertext]

The header is compact JSON with sorted keys and is authenticated as AAD.
"""

import json
import os
import struct
from typing import Final, Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from crumb.crypto.keys import Identity, Recipient, _b64d, _b64e
from crumb.exceptions import DecryptionError, EncryptionError

MAGIC: Final[str] = "crumb"
VERSION: Final[int] = 1

_U16_MAX: Final[int] = 0xFFFF
_PAYLOAD_INFO: Final[bytes] = b"crumb.v1.payload"


class EncryptionProvider(Protocol):
    """Anything that can seal bytes for a recipient and open them with an identity."""

    def encrypt(self, plaintext: bytes, recipient: Recipient) -> bytes: ...

    def decrypt(self, ciphertext: bytes, identity: Identity) -> bytes: ...


def _derive_payload_key(file_key: bytes, salt: bytes) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        info=_PAYLOAD_INFO,
    )
    return hkdf.derive(file_key)


class SSHKeyEncryption:
    """Default EncryptionProvider backed by ssh-ed25519 / ssh-rsa key pairs."""

    def encrypt(self, plaintext: bytes, recipient: Recipient) -> bytes:
        """
        Encrypt a payload for a recipient.

        Raises:
            EncryptionError: If wrapping or encryption fails.
        """
        file_key = os.urandom(32)
        salt = os.urandom(16)
        nonce = os.urandom(12)

        header = {
            "magic": MAGIC,
            "v": VERSION,
            "recipient": recipient.wrap(file_key),
            "salt": _b64e(salt),
            "nonce": _b64e(nonce),
        }
        hbytes = json.dumps(header, separators=(",", ":"), sort_keys=True).encode("utf-8")
        if len(hbytes) > _U16_MAX:
            raise EncryptionError("Header too large")

        try:
            aead = ChaCha20Poly1305(_derive_payload_key(file_key, salt))
            ciphertext = aead.encrypt(nonce, plaintext, hbytes)
        except (ValueError, OverflowError) as e:
            raise EncryptionError(f"Failed to encrypt data: {e}") from e

        return struct.pack(">H", len(hbytes)) + hbytes + ciphertext

    def decrypt(self, ciphertext: bytes, identity: Identity) -> bytes:
        """
        Decrypt a container produced by encrypt().

        Raises:
            DecryptionError: On a malformed container, wrong identity or
                authentication failure.
        """
        if len(ciphertext) < 2:
            raise DecryptionError("Missing container header")
        (hlen,) = struct.unpack(">H", ciphertext[:2])
        hbytes = ciphertext[2 : 2 + hlen]
        if len(hbytes) != hlen:
            raise DecryptionError("Truncated container header")

        try:
            header = json.loads(hbytes.decode("utf-8"))
            if header["magic"] != MAGIC:
                raise DecryptionError("Not a crumb secrets file")
            if int(header["v"]) != VERSION:
                raise DecryptionError(f"Unsupported container version: {header['v']}")
            stanza = header["recipient"]
            if not isinstance(stanza, dict):
                raise DecryptionError("Invalid header: malformed recipient stanza")
            salt = _b64d(header["salt"])
            nonce = _b64d(header["nonce"])
        except (ValueError, KeyError, TypeError) as e:
            raise DecryptionError(f"Invalid header: {e}") from e

        file_key = identity.unwrap(stanza)
        try:
            aead = ChaCha20Poly1305(_derive_payload_key(file_key, salt))
            return aead.decrypt(nonce, ciphertext[2 + hlen :], hbytes)
        except (InvalidTag, ValueError) as e:
            raise DecryptionError("Failed to decrypt data: authentication failed") from e
