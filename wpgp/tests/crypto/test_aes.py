import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from wpgp.core.secure_bytes import SecureBytes
from wpgp.crypto.aes import AesDecryptor, AesEncryptor
from wpgp.exceptions import DecryptError
from wpgp.models.crypto import SessionKey


def _session_key(fill: int = 0x11) -> SessionKey:
    return SessionKey(key_data=SecureBytes(bytes([fill]) * 32))


def _seal(plaintext: bytes, session_key: SessionKey) -> bytes:
    encryptor = AesEncryptor(session_key)
    return encryptor.update(plaintext) + encryptor.finalize()


def _open(ciphertext: bytes, session_key: SessionKey) -> bytes:
    decryptor = AesDecryptor(session_key)
    return decryptor.update(ciphertext) + decryptor.finalize()


def _reference_ecb(plaintext: bytes, fill: int = 0x11) -> bytes:
    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(bytes([fill]) * 32), modes.ECB()).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


@pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 1000])
def test_encryptor_pads_to_whole_blocks(size: int) -> None:
    ciphertext = _seal(b"x" * size, _session_key())

    assert len(ciphertext) == (size // 16 + 1) * 16
    assert _open(ciphertext, _session_key()) == b"x" * size


def test_ecb_is_deterministic_per_key() -> None:
    assert _seal(b"Hello World", _session_key()) == _seal(b"Hello World", _session_key())
    assert _seal(b"Hello World", _session_key()) != _seal(b"Hello World", _session_key(0x22))


def test_incremental_encryption_is_plain_aes_ecb_pkcs7() -> None:
    plaintext = bytes(range(256)) * 5
    encryptor = AesEncryptor(_session_key())

    pieces = [encryptor.update(plaintext[i : i + 7]) for i in range(0, len(plaintext), 7)]
    pieces.append(encryptor.finalize())

    assert b"".join(pieces) == _reference_ecb(plaintext)


def test_incremental_decryption_handles_odd_chunks() -> None:
    plaintext = bytes(range(256)) * 5
    ciphertext = _reference_ecb(plaintext)
    decryptor = AesDecryptor(_session_key())

    pieces = [decryptor.update(ciphertext[i : i + 5]) for i in range(0, len(ciphertext), 5)]
    pieces.append(decryptor.finalize())

    assert b"".join(pieces) == plaintext


def test_decrypt_with_wrong_key_raises_decrypt_error() -> None:
    ciphertext = _seal(b"Hello World", _session_key())

    with pytest.raises(DecryptError, match="Invalid body padding"):
        _open(ciphertext, _session_key(0x22))


def test_decrypt_truncated_ciphertext_raises_decrypt_error() -> None:
    ciphertext = _seal(b"Hello World" * 4, _session_key())

    with pytest.raises(DecryptError):
        _open(ciphertext[:-3], _session_key())
