import pytest

from wpgp.config import WpgpConfig
from wpgp.crypto.rsa_backend import RsaBackend
from wpgp.models.identity import Identity
from wpgp.services.key_service import KeyService

# 1024-bit keys keep generation fast; chunk_size is deliberately not a
# multiple of 3 or 4 so streams cross base64 group boundaries.
TEST_KEY_SIZE = 1024
TEST_CHUNK_SIZE = 1001


@pytest.fixture(scope="session")
def config() -> WpgpConfig:
    return WpgpConfig(default_key_size=TEST_KEY_SIZE, chunk_size=TEST_CHUNK_SIZE)


@pytest.fixture(scope="session")
def backend() -> RsaBackend:
    return RsaBackend()


@pytest.fixture(scope="session")
def key_service(backend: RsaBackend, config: WpgpConfig) -> KeyService:
    return KeyService(backend, config)


@pytest.fixture(scope="session")
def identity(key_service: KeyService) -> Identity:
    return key_service.create_identity("Alice", "alice@example.com", "test key")


@pytest.fixture(scope="session")
def other_identity(key_service: KeyService) -> Identity:
    return key_service.create_identity("Bob", "bob@example.com", "other key")


@pytest.fixture(scope="session")
def public_identity(key_service: KeyService, identity: Identity) -> Identity:
    return key_service.import_public_key(key_service.export_public_key(identity))
