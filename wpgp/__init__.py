"""
WPGP: hybrid RSA/AES encryption in a self-verifying container format.

Example:
    ```python
    from wpgp import WpgpClient

    with WpgpClient() as client:
        client.create_new_user("Alice", "alice@example.com", "laptop", validity_days=30)
        sealed = client.encrypt_message(b"Hello World")
        assert client.decrypt_message(sealed) == b"Hello World"

        # Streams
        async for event in client.encrypt_stream("report.pdf"):
            ...
    ```
"""

from wpgp.client import WpgpClient
from wpgp.config import WpgpConfig
from wpgp.container.verifier import verify_container
from wpgp.exceptions import (
    CryptoError,
    DecryptError,
    ErrorKind,
    ExpiredKeyError,
    FormatError,
    IntegrityError,
    KeyGenerationError,
    StreamError,
    WpgpError,
)
from wpgp.models.identity import ContainerType, Expiration, Identity
from wpgp.models.stream import CloseEvent, DataEvent, ErrorEvent, StreamEvent
from wpgp.services.key_service import KeyService
from wpgp.services.message_service import MessageService
from wpgp.services.stream_service import StreamService

__version__ = "0.1.0"

__all__ = [
    # Main client
    "WpgpClient",
    "WpgpConfig",
    # Services
    "KeyService",
    "MessageService",
    "StreamService",
    "verify_container",
    # Models
    "ContainerType",
    "Expiration",
    "Identity",
    "StreamEvent",
    "DataEvent",
    "CloseEvent",
    "ErrorEvent",
    # Exceptions
    "WpgpError",
    "ErrorKind",
    "FormatError",
    "IntegrityError",
    "ExpiredKeyError",
    "CryptoError",
    "DecryptError",
    "KeyGenerationError",
    "StreamError",
]
