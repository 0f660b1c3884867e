"""
Services for WPGP identities, messages and streams.
"""

from wpgp.services.key_service import KeyService
from wpgp.services.message_service import MessageService
from wpgp.services.stream_service import Sink, Source, StreamService

__all__ = [
    "KeyService",
    "MessageService",
    "Sink",
    "Source",
    "StreamService",
]
