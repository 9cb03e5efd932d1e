"""Navigator Vault — Local encrypted secret store with session-scoped access.

Security Note (Threat Model):
    While a session is unlocked, the vault password and the decrypted
    secrets are held in process memory. A memory dump of the process could
    expose them. This is an accepted limitation; the relock timer bounds
    how long they stay resident after the last access.
"""

from .version import __version__
from .crypto import derive_key, encrypt, decrypt
from .data import VaultRecord
from .store import init_vault, read_vault, write_vault, rekey_vault, vault_exists
from .session import SessionState, VaultAgent, VaultSession
from .config import VaultConfig
from .exceptions import (
    VaultError,
    NotFoundError,
    DecryptionError,
    AuthenticationError,
    MalformedEnvelopeError,
    CorruptDataError,
    CancelledError,
    PreconditionError,
    VaultIOError,
)

__all__ = [
    "__version__",
    "derive_key",
    "encrypt",
    "decrypt",
    "VaultRecord",
    "init_vault",
    "read_vault",
    "write_vault",
    "rekey_vault",
    "vault_exists",
    "SessionState",
    "VaultAgent",
    "VaultSession",
    "VaultConfig",
    "VaultError",
    "NotFoundError",
    "DecryptionError",
    "AuthenticationError",
    "MalformedEnvelopeError",
    "CorruptDataError",
    "CancelledError",
    "PreconditionError",
    "VaultIOError",
]
