import json

import pytest

from wpgp.core.secure_bytes import SecureBytes
from wpgp.models.container import (
    DIGEST_SIZE,
    KeyHeader,
    MessageHeader,
    Segment,
    Trailer,
)
from wpgp.models.crypto import SessionKey
from wpgp.models.identity import ContainerType, Expiration


def test_segment_length_and_slice() -> None:
    segment = Segment(2, 5)

    assert segment.length == 3
    assert segment.slice(b"abcdefg") == b"cde"


def test_trailer_for_lengths_lays_segments_back_to_back() -> None:
    trailer = Trailer.for_lengths(b"\x01\x02\x03\x04", body_length=10, header_length=7)

    assert trailer.body == Segment(0, 10)
    assert trailer.header == Segment(10, 17)
    assert trailer.digest == Segment(17, 17 + DIGEST_SIZE)
    assert trailer.covered == Segment(0, 17)
    assert trailer.tag == b"WPGP"


def test_key_header_json_is_compact_with_expected_fields() -> None:
    header = KeyHeader(
        name="EDBC",
        mail="edbc@example.com",
        comment="c",
        expiration=Expiration(created_day=19000, validity_days=30),
        size=2048,
        type=ContainerType.PUBLIC,
    )

    raw = header.to_json()

    assert b" " not in raw
    assert json.loads(raw) == {
        "name": "EDBC",
        "mail": "edbc@example.com",
        "comment": "c",
        "expiration": [19000, 30],
        "size": 2048,
        "type": "PUBLIC",
    }
    assert KeyHeader.from_mapping(json.loads(raw)) == header


def test_key_header_missing_field_raises_key_error() -> None:
    with pytest.raises(KeyError):
        KeyHeader.from_mapping({"name": "a", "mail": "b", "comment": "c"})


@pytest.mark.parametrize(
    "override",
    [{"size": "2048"}, {"size": 0}, {"name": 1}, {"type": "SECRET"}, {"expiration": [1]}],
)
def test_key_header_rejects_bad_fields(override: dict) -> None:
    data = {
        "name": "a",
        "mail": "b",
        "comment": "c",
        "expiration": [0, 0],
        "size": 1024,
        "type": "PRIVATE",
    }
    data.update(override)

    with pytest.raises(ValueError):
        KeyHeader.from_mapping(data)


def test_message_header_json_round_trip() -> None:
    session_key = SessionKey(key_data=SecureBytes(bytes(range(32))))
    header = MessageHeader(size=11, session_key=session_key)

    parsed = MessageHeader.from_mapping(json.loads(header.to_json()))

    assert parsed.size == 11
    assert parsed.session_key.key_data == bytes(range(32))
    assert json.loads(header.to_json())["type"] == "MESSAGE"


def test_message_header_rejects_key_type() -> None:
    with pytest.raises(ValueError, match="MESSAGE"):
        MessageHeader.from_mapping({"size": 1, "type": "PUBLIC", "pass": ""})


def test_message_header_rejects_negative_size() -> None:
    with pytest.raises(ValueError, match="size"):
        MessageHeader.from_mapping({"size": -1, "type": "MESSAGE", "pass": "AAAA"})
