import io

import pytest

from wpgp.container.segments import assemble_container, encode_segment
from wpgp.container.trailer import TRAILER_SIZE
from wpgp.container.verifier import (
    inspect_container,
    inspect_file,
    read_exact,
    verify_container,
)
from wpgp.exceptions import ExpiredKeyError, FormatError, IntegrityError
from wpgp.models.container import KeyHeader
from wpgp.models.identity import ContainerType, Expiration

MASK = b"\x5a\xa5\x0f\xf0"
TODAY = 20000


def _key_container(
    container_type: ContainerType = ContainerType.PUBLIC,
    expiration: Expiration | None = None,
    body: bytes = b"-----BEGIN PUBLIC KEY-----",
) -> bytes:
    header = KeyHeader(
        name="EDBC",
        mail="edbc@example.com",
        comment="",
        expiration=expiration or Expiration(),
        size=1024,
        type=container_type,
    )
    return assemble_container(
        MASK, encode_segment(body, MASK), encode_segment(header.to_json(), MASK)
    )


def _opaque_container(header: bytes = b"\x00\x01 wrapped bytes") -> bytes:
    return assemble_container(MASK, encode_segment(b"body", MASK), encode_segment(header, MASK))


def _flip(data: bytes, index: int) -> bytes:
    return data[:index] + bytes([data[index] ^ 0x01]) + data[index + 1 :]


def test_inspect_key_container_parses_header() -> None:
    verified = inspect_container(_key_container(), today=TODAY)

    assert verified.container_type == ContainerType.PUBLIC
    assert verified.key_header is not None
    assert verified.key_header.name == "EDBC"
    assert verified.trailer.mask == MASK


def test_inspect_opaque_header_is_message() -> None:
    verified = inspect_container(_opaque_container(), ContainerType.MESSAGE)

    assert verified.container_type == ContainerType.MESSAGE
    assert verified.key_header is None
    assert verified.header == b"\x00\x01 wrapped bytes"


def test_inspect_rejects_empty_and_short_input() -> None:
    with pytest.raises(FormatError, match="empty"):
        inspect_container(b"")
    with pytest.raises(FormatError, match="too short"):
        inspect_container(b"WPGP" * 5)


def test_tampering_any_covered_byte_is_detected() -> None:
    container = _key_container()
    digest_end = len(container) - TRAILER_SIZE

    for index in range(digest_end):
        tampered = _flip(container, index)
        assert not verify_container(tampered, today=TODAY)
        with pytest.raises(IntegrityError):
            inspect_container(tampered, today=TODAY)


def test_tampered_trailer_tag_is_rejected() -> None:
    container = _key_container()

    assert not verify_container(_flip(container, len(container) - TRAILER_SIZE))


@pytest.mark.parametrize(
    ("expected", "actual"),
    [
        (ContainerType.PRIVATE, ContainerType.PUBLIC),
        (ContainerType.PUBLIC, ContainerType.PRIVATE),
        (ContainerType.MESSAGE, ContainerType.PUBLIC),
    ],
)
def test_type_confusion_is_rejected(expected: ContainerType, actual: ContainerType) -> None:
    with pytest.raises(FormatError, match="Expected"):
        inspect_container(_key_container(actual), expected, today=TODAY)


def test_message_container_is_not_a_key() -> None:
    with pytest.raises(FormatError, match="not key metadata"):
        inspect_container(_opaque_container(), ContainerType.PUBLIC)


def test_key_header_with_message_type_is_rejected() -> None:
    container = _key_container(ContainerType.MESSAGE)

    with pytest.raises(FormatError, match="invalid type"):
        inspect_container(container)


def test_expiration_boundary() -> None:
    container = _key_container(expiration=Expiration(created_day=TODAY, validity_days=5))

    assert verify_container(container, today=TODAY + 5)
    assert not verify_container(container, today=TODAY + 6)
    with pytest.raises(ExpiredKeyError) as exc_info:
        inspect_container(container, today=TODAY + 6)
    assert exc_info.value.created_day == TODAY
    assert exc_info.value.validity_days == 5


def test_zero_validity_never_expires() -> None:
    container = _key_container(expiration=Expiration(created_day=TODAY, validity_days=0))

    assert verify_container(container, today=TODAY * 10)


def test_verify_container_accepts_valid() -> None:
    assert verify_container(_key_container(), ContainerType.PUBLIC, today=TODAY)
    assert verify_container(_opaque_container(), ContainerType.MESSAGE)


def test_verify_container_never_raises_on_garbage() -> None:
    assert not verify_container(b"\xff" * 200)
    assert not verify_container(b"")


def test_inspect_file_matches_in_memory() -> None:
    container = _key_container(body=b"k" * 5000)

    from_file = inspect_file(io.BytesIO(container), ContainerType.PUBLIC, today=TODAY, chunk_size=7)

    assert from_file == inspect_container(container, ContainerType.PUBLIC, today=TODAY)


def test_inspect_file_detects_tampered_body() -> None:
    container = _flip(_key_container(body=b"k" * 5000), 123)

    with pytest.raises(IntegrityError):
        inspect_file(io.BytesIO(container), chunk_size=64)


def test_inspect_file_rejects_empty_source() -> None:
    with pytest.raises(FormatError, match="empty"):
        inspect_file(io.BytesIO(b""))


def test_read_exact_raises_on_short_source() -> None:
    with pytest.raises(FormatError, match="truncated"):
        read_exact(io.BytesIO(b"abc"), 4)
