"""
Container layout models.

A container is laid out as::

    body | header | digest | trailer

The fixed-size trailer records the format tag, the obfuscation mask and the
byte ranges of the three segments.
"""

import json
from dataclasses import dataclass
from typing import Any, Self

from wpgp.models.crypto import SessionKey
from wpgp.models.identity import ContainerType, Expiration

FORMAT_TAG = b"WPGP"
MASK_SIZE = 4
DIGEST_SIZE = 32


@dataclass(frozen=True, slots=True)
class Segment:
    """Half-open byte range `[start, end)` inside a container."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def slice(self, data: bytes) -> bytes:
        return data[self.start : self.end]


@dataclass(frozen=True, kw_only=True)
class Trailer:
    """
    Offset table closing every container.

    Attributes:
        mask: Obfuscation mask applied to header and body.
        header: Range of the encoded header.
        body: Range of the encoded body.
        digest: Range of the SHA-256 digest over body and header.
        tag: Format tag.
    """

    mask: bytes
    header: Segment
    body: Segment
    digest: Segment
    tag: bytes = FORMAT_TAG

    @classmethod
    def for_lengths(cls, mask: bytes, body_length: int, header_length: int) -> Self:
        """Lay out body, header and digest back to back from offset 0."""
        body = Segment(0, body_length)
        header = Segment(body.end, body.end + header_length)
        digest = Segment(header.end, header.end + DIGEST_SIZE)
        return cls(mask=mask, header=header, body=body, digest=digest)

    @property
    def covered(self) -> Segment:
        """Range protected by the digest: body followed by header."""
        return Segment(self.body.start, self.header.end)


@dataclass(frozen=True, kw_only=True)
class KeyHeader:
    """
    Metadata header of a key container.

    Attributes:
        name: Owner name.
        mail: Owner mail.
        comment: Owner comment.
        expiration: Validity window.
        size: RSA modulus size in bits.
        type: PRIVATE or PUBLIC.
    """

    name: str
    mail: str
    comment: str
    expiration: Expiration
    size: int
    type: ContainerType

    def to_json(self) -> bytes:
        return json.dumps(
            {
                "name": self.name,
                "mail": self.mail,
                "comment": self.comment,
                "expiration": self.expiration.as_list(),
                "size": self.size,
                "type": self.type.value,
            },
            separators=(",", ":"),
        ).encode("utf-8")

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Self:
        """
        Build from a parsed header object.

        Raises:
            KeyError: If a field is missing.
            ValueError: If a field has the wrong shape.
        """
        name, mail, comment = data["name"], data["mail"], data["comment"]
        if not all(isinstance(value, str) for value in (name, mail, comment)):
            msg = "name, mail and comment must be strings"
            raise ValueError(msg)
        size = data["size"]
        if type(size) is not int or size <= 0:
            msg = f"Invalid key size: {size!r}"
            raise ValueError(msg)
        return cls(
            name=name,
            mail=mail,
            comment=comment,
            expiration=Expiration.from_json(data["expiration"]),
            size=size,
            type=ContainerType(data["type"]),
        )


@dataclass(frozen=True, kw_only=True)
class MessageHeader:
    """
    Header of a message container, carried wrapped under the recipient key.

    Attributes:
        size: Plaintext length in bytes.
        session_key: Key the body was encrypted with.
    """

    size: int
    session_key: SessionKey
    type: ContainerType = ContainerType.MESSAGE

    def to_json(self) -> bytes:
        return json.dumps(
            {"size": self.size, "type": self.type.value, "pass": self.session_key.to_text()},
            separators=(",", ":"),
        ).encode("utf-8")

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Self:
        """
        Build from a parsed header object.

        Raises:
            KeyError: If a field is missing.
            ValueError: If a field has the wrong shape or the type is not MESSAGE.
        """
        if ContainerType(data["type"]) != ContainerType.MESSAGE:
            msg = f"Expected MESSAGE header, got {data['type']}"
            raise ValueError(msg)
        size = data["size"]
        if type(size) is not int or size < 0:
            msg = f"Invalid message size: {size!r}"
            raise ValueError(msg)
        passphrase = data["pass"]
        if not isinstance(passphrase, str):
            msg = "Session key must be a string"
            raise ValueError(msg)
        return cls(size=size, session_key=SessionKey.from_text(passphrase))
