"""
Vault Exceptions — errors raised by the envelope, store and session layers.

``AuthenticationError`` and ``MalformedEnvelopeError`` both derive from
``DecryptionError``: callers that only care whether a vault could be opened
catch the base class.
"""


class VaultError(Exception):
    """Base class for every vault error."""


class NotFoundError(VaultError, FileNotFoundError):
    """The vault file does not exist."""


class DecryptionError(VaultError):
    """An envelope could not be decrypted."""


class AuthenticationError(DecryptionError):
    """The authentication tag did not verify.

    Raised for a wrong password and for tampered or corrupted ciphertext
    alike; AES-GCM cannot tell the two apart.
    """


class MalformedEnvelopeError(DecryptionError):
    """The envelope is not valid base64 or is shorter than its header."""


class CorruptDataError(VaultError):
    """Decryption succeeded but the plaintext is not a flat string mapping."""


class CancelledError(VaultError):
    """The user supplied an empty password."""


class PreconditionError(VaultError):
    """The operation requires an unlocked session."""


class VaultIOError(VaultError, OSError):
    """The vault file could not be read or written."""
