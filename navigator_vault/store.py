"""
Vault Store — reads and writes the encrypted vault file.

A vault file holds exactly one envelope (see ``crypto.py``) as a single line
of base64 text. Writes go to a temporary file in the same directory which is
then renamed over the target, so a crash never leaves a half-written vault.

Security Note:
    Vault files are created with owner-only permissions (0600 on POSIX;
    best effort elsewhere). Never log passwords or file contents.

Known limitation:
    Two processes writing the same vault file are not coordinated; the last
    writer wins.
"""
import os
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union
from collections.abc import Mapping

from .crypto import encrypt, decrypt
from .data import VaultRecord
from .exceptions import MalformedEnvelopeError, NotFoundError, VaultIOError

logger = logging.getLogger("navigator.vault")

FILE_MODE = 0o600

PathLike = Union[str, os.PathLike]


def vault_exists(path: PathLike) -> bool:
    """Return True if a vault file exists at ``path``."""
    return Path(path).is_file()


def init_vault(path: PathLike, password: str) -> None:
    """Create a vault holding an empty record.

    The file (and its parent directories) need not exist.

    Raises:
        VaultIOError: If the location is not writable.
    """
    write_vault(path, password, VaultRecord())
    logger.info("Vault initialized at %s", path)


def read_vault(path: PathLike, password: str) -> VaultRecord:
    """Load and decrypt the vault at ``path``.

    Args:
        path: Vault file location.
        password: Vault password.

    Returns:
        The decrypted record.

    Raises:
        NotFoundError: If the file does not exist.
        DecryptionError: If the envelope is malformed or does not
            authenticate with ``password``.
        CorruptDataError: If the plaintext is not a flat string mapping.
        VaultIOError: If the file can not be read.
    """
    vault_file = Path(path)
    if not vault_file.exists():
        raise NotFoundError(f"Vault file does not exist: {vault_file}")
    try:
        envelope = vault_file.read_text(encoding="utf-8")
    except UnicodeDecodeError as err:
        raise MalformedEnvelopeError("Vault envelope is not valid base64") from err
    except OSError as err:
        raise VaultIOError(f"Unable to read vault file {vault_file}: {err}") from err
    record = VaultRecord.decode(decrypt(envelope.strip(), password))
    logger.debug("Vault read from %s: %d secret(s)", vault_file, len(record))
    return record


def write_vault(
    path: PathLike, password: str, record: Union[VaultRecord, Mapping[str, str]]
) -> None:
    """Encrypt ``record`` and atomically replace the vault at ``path``.

    Plain mappings are converted to a :class:`VaultRecord` first.

    Raises:
        VaultIOError: If the file can not be written.
    """
    vault_file = Path(path)
    if not isinstance(record, VaultRecord):
        record = VaultRecord(record)
    envelope = encrypt(record.encode(), password)
    tmp_name: Optional[str] = None
    try:
        vault_file.parent.mkdir(parents=True, exist_ok=True)
        # mkstemp creates the file readable and writable by the owner only
        fd, tmp_name = tempfile.mkstemp(
            dir=vault_file.parent,
            prefix=f".{vault_file.name}.",
            suffix=".tmp",
        )
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            fp.write(envelope)
            fp.flush()
            os.fsync(fp.fileno())
        _restrict_permissions(tmp_name)
        os.replace(tmp_name, vault_file)
        tmp_name = None
    except OSError as err:
        raise VaultIOError(f"Unable to write vault file {vault_file}: {err}") from err
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.warning("Unable to remove temporary vault file %s", tmp_name)
    logger.debug("Vault written to %s: %d secret(s)", vault_file, len(record))


def rekey_vault(path: PathLike, old_password: str, new_password: str) -> VaultRecord:
    """Re-encrypt an existing vault under a new password.

    Args:
        path: Vault file location.
        old_password: Current password.
        new_password: Replacement password (must not be empty).

    Returns:
        The record that was re-encrypted.

    Raises:
        ValueError: If ``new_password`` is empty.
        NotFoundError, DecryptionError, CorruptDataError, VaultIOError:
            As for :func:`read_vault` and :func:`write_vault`.
    """
    if not new_password:
        raise ValueError("New vault password cannot be empty")
    record = read_vault(path, old_password)
    write_vault(path, new_password, record)
    logger.info("Vault at %s re-encrypted with a new password", path)
    return record


def _restrict_permissions(filename: str) -> None:
    """Set owner read/write only; some platforms ignore POSIX modes."""
    try:
        os.chmod(filename, FILE_MODE)
    except (NotImplementedError, PermissionError) as err:
        logger.debug("Unable to restrict permissions on %s: %s", filename, err)
