"""
Asymmetric backend implementation using RSA from the cryptography library.

Wrapping uses RSA-OAEP with SHA-256. Payloads longer than one OAEP block are
split and each block encrypted separately; the ciphertext is the
concatenation of modulus-sized blocks.
"""

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from wpgp.core.secure_bytes import SecureBytes
from wpgp.exceptions import CryptoError, DecryptError, FormatError, KeyGenerationError

RsaKey = rsa.RSAPrivateKey | rsa.RSAPublicKey

_HASH_SIZE = 32
_SUPPORTED_EXPONENTS = (3, 65537)


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


class RsaBackend:
    """
    RSA backend for identities and message headers.

    Example:
        backend = RsaBackend()
        key = backend.generate(2048)
        wrapped = backend.encrypt(key, b"header")
        assert backend.decrypt(key, wrapped) == b"header"
    """

    def __init__(self, public_exponent: int = 65537) -> None:
        if public_exponent not in _SUPPORTED_EXPONENTS:
            msg = f"Unsupported public exponent: {public_exponent}"
            raise ValueError(msg)
        self._public_exponent = public_exponent

    def generate(self, key_size: int) -> rsa.RSAPrivateKey:
        try:
            return rsa.generate_private_key(
                public_exponent=self._public_exponent, key_size=key_size
            )
        except ValueError as e:
            msg = f"Failed to generate RSA key: {e}"
            raise KeyGenerationError(msg, key_size=key_size) from e

    @staticmethod
    def is_private(key: RsaKey) -> bool:
        return isinstance(key, rsa.RSAPrivateKey)

    @staticmethod
    def key_size(key: RsaKey) -> int:
        return key.key_size

    def encrypt(self, key: RsaKey, data: bytes) -> bytes:
        public_key = key.public_key() if isinstance(key, rsa.RSAPrivateKey) else key
        block_size = self._max_plaintext_block(public_key.key_size)
        try:
            blocks = [
                public_key.encrypt(data[offset : offset + block_size], _oaep())
                for offset in range(0, max(len(data), 1), block_size)
            ]
        except ValueError as e:
            msg = f"RSA encryption failed: {e}"
            raise CryptoError(msg) from e
        return b"".join(blocks)

    def decrypt(self, key: RsaKey, data: bytes) -> bytes:
        if not isinstance(key, rsa.RSAPrivateKey):
            msg = "A private key is required to decrypt"
            raise DecryptError(msg)
        block_size = (key.key_size + 7) // 8
        if len(data) == 0 or len(data) % block_size != 0:
            msg = f"Ciphertext length {len(data)} is not a multiple of the key block size"
            raise DecryptError(msg, block_size=block_size)
        try:
            return b"".join(
                key.decrypt(data[offset : offset + block_size], _oaep())
                for offset in range(0, len(data), block_size)
            )
        except ValueError as e:
            msg = "RSA decryption failed, possibly wrong key"
            raise DecryptError(msg) from e

    @staticmethod
    def serialize_private(key: RsaKey, passphrase: SecureBytes | None = None) -> bytes:
        if not isinstance(key, rsa.RSAPrivateKey):
            msg = "Cannot export a private key from a public-only identity"
            raise CryptoError(msg)
        if passphrase:
            encryption: serialization.KeySerializationEncryption = (
                serialization.BestAvailableEncryption(bytes(passphrase))
            )
        else:
            encryption = serialization.NoEncryption()
        return key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=encryption,
        )

    @staticmethod
    def serialize_public(key: RsaKey) -> bytes:
        public_key = key.public_key() if isinstance(key, rsa.RSAPrivateKey) else key
        return public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    @staticmethod
    def deserialize_private(
        data: bytes, passphrase: SecureBytes | None = None
    ) -> rsa.RSAPrivateKey:
        password = bytes(passphrase) if passphrase else None
        try:
            key = serialization.load_pem_private_key(data, password=password)
        except TypeError as e:
            msg = f"Passphrase mismatch: {e}"
            raise DecryptError(msg) from e
        except (ValueError, UnsupportedAlgorithm) as e:
            msg = "Failed to load private key, wrong passphrase or corrupted key"
            raise DecryptError(msg) from e
        if not isinstance(key, rsa.RSAPrivateKey):
            msg = f"Expected an RSA private key, got {type(key).__name__}"
            raise FormatError(msg)
        return key

    @staticmethod
    def deserialize_public(data: bytes) -> rsa.RSAPublicKey:
        try:
            key = serialization.load_pem_public_key(data)
        except (ValueError, UnsupportedAlgorithm) as e:
            msg = f"Failed to load public key: {e}"
            raise FormatError(msg) from e
        if not isinstance(key, rsa.RSAPublicKey):
            msg = f"Expected an RSA public key, got {type(key).__name__}"
            raise FormatError(msg)
        return key

    @staticmethod
    def key_material(key: RsaKey) -> bytes:
        if isinstance(key, rsa.RSAPrivateKey):
            return key.private_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        return key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    @staticmethod
    def _max_plaintext_block(key_size: int) -> int:
        return (key_size + 7) // 8 - 2 * _HASH_SIZE - 2
