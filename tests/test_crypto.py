"""
Tests for the envelope format.

Tests cover:
- PBKDF2 key derivation
- encrypt/decrypt round trips
- Envelope layout
- Tamper and wrong-password detection
- Malformed envelopes
"""
import base64

import pytest

from navigator_vault.crypto import (
    HEADER_SIZE,
    IV_SIZE,
    SALT_SIZE,
    TAG_SIZE,
    decrypt,
    derive_key,
    encrypt,
)
from navigator_vault.exceptions import (
    AuthenticationError,
    CorruptDataError,
    DecryptionError,
    MalformedEnvelopeError,
)


def _flip_bit(envelope: str, index: int) -> str:
    raw = bytearray(base64.b64decode(envelope))
    raw[index] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


class TestDeriveKey:
    """Tests for derive_key()."""

    def test_same_inputs_same_key(self):
        salt = b"1234567890123456"
        assert derive_key("test-password", salt) == derive_key("test-password", salt)

    def test_key_length(self):
        assert len(derive_key("test-password", b"1234567890123456")) == 32

    def test_different_passwords(self):
        salt = b"1234567890123456"
        assert derive_key("password1", salt) != derive_key("password2", salt)

    def test_different_salts(self):
        assert (
            derive_key("test-password", b"1234567890123456")
            != derive_key("test-password", b"6543210987654321")
        )

    def test_matches_hashlib_pbkdf2(self):
        """The KDF is plain PBKDF2-HMAC-SHA256 with 100k iterations."""
        import hashlib
        salt = b"1234567890123456"
        expected = hashlib.pbkdf2_hmac("sha256", b"test-password", salt, 100_000, dklen=32)
        assert derive_key("test-password", salt) == expected


class TestEncryptDecrypt:
    """Tests for encrypt()/decrypt()."""

    @pytest.mark.parametrize("plaintext", [
        "test-secret-data",
        "",
        "a" * 10000,
        '{"k": "ünïcødé ✓"}',
    ])
    def test_round_trip(self, plaintext):
        envelope = encrypt(plaintext, "test-password")
        assert decrypt(envelope, "test-password") == plaintext

    def test_envelope_is_not_plaintext(self):
        envelope = encrypt("test-secret-data", "test-password")
        assert "test-secret-data" not in envelope

    def test_envelope_layout(self):
        plaintext = "hello vault"
        raw = base64.b64decode(encrypt(plaintext, "pw"), validate=True)
        assert HEADER_SIZE == SALT_SIZE + IV_SIZE + TAG_SIZE == 44
        assert len(raw) == HEADER_SIZE + len(plaintext.encode("utf-8"))

    def test_fresh_salt_and_iv_per_call(self):
        first = base64.b64decode(encrypt("same", "pw"))
        second = base64.b64decode(encrypt("same", "pw"))
        assert first[:SALT_SIZE] != second[:SALT_SIZE]
        assert first[SALT_SIZE:SALT_SIZE + IV_SIZE] != second[SALT_SIZE:SALT_SIZE + IV_SIZE]
        assert first != second

    def test_wrong_password(self):
        envelope = encrypt("test-data", "correct-password")
        with pytest.raises(AuthenticationError):
            decrypt(envelope, "wrong-password")

    def test_authentication_error_is_decryption_error(self):
        envelope = encrypt("test-data", "correct-password")
        with pytest.raises(DecryptionError):
            decrypt(envelope, "wrong-password")


class TestTamperDetection:
    """Flipping a bit anywhere in the envelope must fail authentication."""

    @pytest.mark.parametrize("index", [
        0,                       # salt
        SALT_SIZE,               # iv
        SALT_SIZE + IV_SIZE,     # tag start
        HEADER_SIZE - 1,         # tag end
        HEADER_SIZE,             # ciphertext start
        -1,                      # ciphertext end
    ])
    @pytest.mark.parametrize("password", ["pw", "other-password", ""])
    def test_flipped_bit(self, index, password):
        envelope = encrypt("some secret payload", "pw")
        tampered = _flip_bit(envelope, index)
        with pytest.raises(AuthenticationError):
            decrypt(tampered, password)

    def test_truncated_ciphertext(self):
        raw = base64.b64decode(encrypt("some secret payload", "pw"))
        truncated = base64.b64encode(raw[:-1]).decode("ascii")
        with pytest.raises(AuthenticationError):
            decrypt(truncated, "pw")


class TestMalformedEnvelope:
    """Structurally invalid envelopes."""

    def test_not_base64(self):
        with pytest.raises(MalformedEnvelopeError):
            decrypt("invalid-encrypted-data!", "pw")

    def test_empty_envelope(self):
        with pytest.raises(MalformedEnvelopeError):
            decrypt("", "pw")

    def test_shorter_than_header(self):
        short = base64.b64encode(b"\x00" * (HEADER_SIZE - 1)).decode("ascii")
        with pytest.raises(MalformedEnvelopeError):
            decrypt(short, "pw")

    def test_header_only_fails_authentication(self):
        header = base64.b64encode(b"\x00" * HEADER_SIZE).decode("ascii")
        with pytest.raises(AuthenticationError):
            decrypt(header, "pw")

    def test_non_utf8_plaintext(self):
        """Authenticated bytes that are not UTF-8 are corrupt data."""
        import os
        from cryptography.hazmat.primitives.ciphers.aead import AESGCM

        salt, iv = os.urandom(SALT_SIZE), os.urandom(IV_SIZE)
        sealed = AESGCM(derive_key("pw", salt)).encrypt(iv, b"\xff\xfe", None)
        envelope = base64.b64encode(
            salt + iv + sealed[-TAG_SIZE:] + sealed[:-TAG_SIZE]
        ).decode("ascii")
        with pytest.raises(CorruptDataError):
            decrypt(envelope, "pw")
