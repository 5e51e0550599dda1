"""
crumb encryption.

Envelope encryption of the secrets file for SSH key pairs.
"""

from crumb.crypto.envelope import EncryptionProvider, SSHKeyEncryption
from crumb.crypto.keys import (
    Identity,
    Recipient,
    load_identity,
    load_recipient,
    validate_key_pair,
)

__all__ = [
    "EncryptionProvider",
    "Identity",
    "Recipient",
    "SSHKeyEncryption",
    "load_identity",
    "load_recipient",
    "validate_key_pair",
]
