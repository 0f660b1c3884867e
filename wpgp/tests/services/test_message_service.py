import pytest

from wpgp.container.verifier import verify_container
from wpgp.crypto.rsa_backend import RsaBackend
from wpgp.exceptions import DecryptError, FormatError, IntegrityError
from wpgp.models.identity import ContainerType, Identity
from wpgp.services.key_service import KeyService
from wpgp.services.message_service import MessageService


@pytest.fixture(scope="module")
def messages(backend: RsaBackend) -> MessageService:
    return MessageService(backend)


def test_hello_world_public_to_private(
    messages: MessageService, identity: Identity, public_identity: Identity
) -> None:
    container = messages.encrypt_message(public_identity, b"Hello World")

    assert b"Hello World" not in container
    assert verify_container(container, ContainerType.MESSAGE)
    assert messages.decrypt_message(identity, container) == b"Hello World"


@pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 1024 * 1024])
def test_round_trip_sizes(messages: MessageService, identity: Identity, size: int) -> None:
    plaintext = bytes(i % 251 for i in range(size))

    container = messages.encrypt_message(identity, plaintext)

    assert messages.decrypt_message(identity, container) == plaintext


def test_encryptions_are_not_deterministic(messages: MessageService, identity: Identity) -> None:
    first = messages.encrypt_message(identity, b"same")

    assert first != messages.encrypt_message(identity, b"same")


def test_decrypt_with_public_identity_fails(
    messages: MessageService, identity: Identity, public_identity: Identity
) -> None:
    container = messages.encrypt_message(identity, b"secret")

    with pytest.raises(DecryptError):
        messages.decrypt_message(public_identity, container)


def test_decrypt_with_other_identity_fails(
    messages: MessageService, identity: Identity, other_identity: Identity
) -> None:
    container = messages.encrypt_message(identity, b"secret")

    with pytest.raises(DecryptError):
        messages.decrypt_message(other_identity, container)


def test_tampered_message_is_rejected(messages: MessageService, identity: Identity) -> None:
    container = bytearray(messages.encrypt_message(identity, b"secret" * 100))
    container[len(container) // 3] ^= 0x01

    assert not verify_container(bytes(container), ContainerType.MESSAGE)
    with pytest.raises(IntegrityError):
        messages.decrypt_message(identity, bytes(container))


def test_key_container_is_not_a_message(
    messages: MessageService, key_service: KeyService, identity: Identity
) -> None:
    with pytest.raises(FormatError):
        messages.decrypt_message(identity, key_service.export_public_key(identity))


def test_message_is_not_a_key(
    messages: MessageService, key_service: KeyService, identity: Identity
) -> None:
    container = messages.encrypt_message(identity, b"secret")

    assert not verify_container(container, ContainerType.PUBLIC)
    with pytest.raises(FormatError):
        key_service.import_public_key(container)
