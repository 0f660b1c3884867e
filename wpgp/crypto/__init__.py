"""
Cryptographic operations for WPGP.

This module provides:
- RSA keypairs and header wrapping (RSA-OAEP, block-split)
- AES-256-ECB body encryption with incremental interfaces
- Single-use session key derivation
"""

from wpgp.crypto.aes import AesDecryptor, AesEncryptor
from wpgp.crypto.protocol import AsymmetricBackend
from wpgp.crypto.rsa_backend import RsaBackend
from wpgp.crypto.session_key import (
    derive_session_key,
    unwrap_message_header,
    wrap_message_header,
)

__all__ = [
    "AesDecryptor",
    "AesEncryptor",
    "AsymmetricBackend",
    "RsaBackend",
    "derive_session_key",
    "unwrap_message_header",
    "wrap_message_header",
]
