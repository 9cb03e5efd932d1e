"""
Vault Crypto Core — Key derivation and the encrypted envelope format.

Envelope layout (base64 of the concatenation, no separators):
    [salt 16B][iv 12B][GCM tag 16B][ciphertext]

- Key: PBKDF2-HMAC-SHA256(password, salt, 100_000 iterations) → 32 bytes
- Cipher: AES-256-GCM, no associated data

Security Note:
    Never log passwords, derived keys, plaintext or envelopes.
    Salt and IV are random per call; an envelope never reuses either.
"""
import os
import base64
import binascii
import logging

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import (
    AuthenticationError,
    CorruptDataError,
    MalformedEnvelopeError,
)

logger = logging.getLogger("navigator.vault")

PBKDF2_ITERATIONS = 100_000
KEY_LENGTH = 32  # AES-256
SALT_SIZE = 16
IV_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16

HEADER_SIZE = SALT_SIZE + IV_SIZE + TAG_SIZE


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(password: str, salt: bytes) -> bytes:
    """Derive a 32-byte AES key from a password using PBKDF2-HMAC-SHA256.

    Args:
        password: The vault password.
        salt: Random salt stored in the envelope header.

    Returns:
        32-byte key suitable for AES-256-GCM.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))


# ---------------------------------------------------------------------------
# Envelope encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, password: str) -> str:
    """Encrypt a string into a self-contained base64 envelope.

    Args:
        plaintext: Text to encrypt (encoded as UTF-8).
        password: Password the key is derived from.

    Returns:
        Base64 text of ``salt | iv | tag | ciphertext``.
    """
    salt = os.urandom(SALT_SIZE)
    iv = os.urandom(IV_SIZE)
    key = derive_key(password, salt)
    # AESGCM appends the tag to the ciphertext; the envelope stores it first.
    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return base64.b64encode(salt + iv + tag + ciphertext).decode("ascii")


def decrypt(envelope: str, password: str) -> str:
    """Decrypt a base64 envelope produced by :func:`encrypt`.

    Args:
        envelope: Base64 envelope text.
        password: Password the key is derived from.

    Returns:
        Decrypted plaintext string.

    Raises:
        MalformedEnvelopeError: If the text is not base64 or is too short.
        AuthenticationError: If the tag does not verify (wrong password or
            tampered data).
        CorruptDataError: If the authenticated plaintext is not UTF-8.
    """
    try:
        combined = base64.b64decode(envelope, validate=True)
    except (binascii.Error, ValueError) as err:
        raise MalformedEnvelopeError(
            "Vault envelope is not valid base64"
        ) from err
    if len(combined) < HEADER_SIZE:
        raise MalformedEnvelopeError(
            f"Vault envelope too short: {len(combined)} bytes "
            f"(minimum {HEADER_SIZE})"
        )
    salt = combined[:SALT_SIZE]
    iv = combined[SALT_SIZE:SALT_SIZE + IV_SIZE]
    tag = combined[SALT_SIZE + IV_SIZE:HEADER_SIZE]
    ciphertext = combined[HEADER_SIZE:]

    key = derive_key(password, salt)
    try:
        data = AESGCM(key).decrypt(iv, ciphertext + tag, None)
    except InvalidTag as err:
        raise AuthenticationError(
            "Failed to decrypt vault. Invalid password or corrupted vault file."
        ) from err
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise CorruptDataError("Vault plaintext is not valid UTF-8") from err
