"""
VaultSession — Unlock/lock state machine over a vault file.

Provides the public API for a vault session:
- ``unlock()`` — prompt for the password (or create a new vault) and cache the record
- ``get_item(key)`` / ``set_item(key, value)`` / ``delete_item(key)`` — item access
- ``keys()`` — list secret names
- ``save(record)`` — persist a new snapshot of the record
- ``change_password()`` — re-encrypt the vault under a new password
- ``lock()`` — drop the password and record from memory

While unlocked, a relock timer is armed on the running event loop. Every
``unlock()`` (including the no-op call on an unlocked session) re-arms it;
when it fires the session locks itself.

A session expects a single caller; concurrent calls on the same instance
must be serialized by that caller.

Security Note:
    The password and decrypted record live in process memory while the
    session is unlocked. Never log passwords or secret values, only key
    names and state transitions.
"""
import enum
import asyncio
import logging
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable
from collections.abc import Mapping

from .config import DEFAULT_RELOCK_TIME, VaultConfig
from .data import VaultRecord
from .exceptions import CancelledError, DecryptionError, PreconditionError
from .store import PathLike, init_vault, read_vault, vault_exists, write_vault

logger = logging.getLogger("navigator.vault")


class SessionState(enum.Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


@runtime_checkable
class VaultAgent(Protocol):
    """Host-side collaborator used by a session to talk to the user."""

    async def prompt_password(self, message: str) -> str:
        """Ask for a password. An empty string means the user cancelled."""
        ...

    def notify(self, message: str) -> None:
        """Show an informational message. Best effort."""
        ...


class VaultSession:
    """Session-scoped access to an encrypted vault file.

    Starts ``LOCKED``. While ``UNLOCKED`` it holds the password, an immutable
    :class:`VaultRecord` snapshot and a relock timer handle; ``lock()`` drops
    all three.
    """

    def __init__(
        self,
        vault_file: PathLike,
        agent: VaultAgent,
        relock_time: float = DEFAULT_RELOCK_TIME,
    ):
        if relock_time <= 0:
            raise ValueError(f"relock_time must be positive, got {relock_time}")
        self._vault_file = Path(vault_file).expanduser()
        self._agent = agent
        self._relock_time = float(relock_time)
        self._state = SessionState.LOCKED
        self._password: Optional[str] = None
        self._record: Optional[VaultRecord] = None
        self._relock_timer: Optional[asyncio.TimerHandle] = None

    @classmethod
    def from_config(cls, config: VaultConfig, agent: VaultAgent) -> "VaultSession":
        """Build a session from a validated :class:`VaultConfig`."""
        return cls(
            vault_file=config.vault_file,
            agent=agent,
            relock_time=config.relock_time,
        )

    def __repr__(self) -> str:
        return f'<VaultSession file={str(self._vault_file)!r} state={self._state.value}>'

    async def __aenter__(self) -> "VaultSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.lock()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_unlocked(self) -> bool:
        return self._state is SessionState.UNLOCKED

    @property
    def vault_file(self) -> Path:
        return self._vault_file

    @property
    def relock_time(self) -> float:
        return self._relock_time

    # ------------------------------------------------------------------
    # Relock timer
    # ------------------------------------------------------------------

    def _arm_relock(self) -> None:
        """Cancel any pending relock and schedule a new one."""
        loop = asyncio.get_running_loop()
        if self._relock_timer is not None:
            self._relock_timer.cancel()
        self._relock_timer = loop.call_later(self._relock_time, self._on_relock)

    def _on_relock(self) -> None:
        self._relock_timer = None
        logger.info(
            "Vault %s relocked after %ss of inactivity",
            self._vault_file, self._relock_time,
        )
        self.lock()
        self._notify("Vault locked due to inactivity.")

    # ------------------------------------------------------------------
    # Agent helpers
    # ------------------------------------------------------------------

    async def _ask_password(self, message: str, cancelled: str) -> str:
        password = await self._agent.prompt_password(message)
        if not password:
            raise CancelledError(cancelled)
        return password

    def _notify(self, message: str) -> None:
        try:
            self._agent.notify(message)
        except Exception as err:  # notify is best effort
            logger.warning("Vault agent failed to display a message: %s", err)

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _enter_unlocked(self, password: str, record: VaultRecord) -> None:
        """Cache password and record and arm the timer, without suspending."""
        self._password = password
        self._record = record
        self._state = SessionState.UNLOCKED
        self._arm_relock()
        logger.info(
            "Vault %s unlocked: %d secret(s)", self._vault_file, len(record),
        )

    async def _initialize(self) -> VaultRecord:
        """Create a new, empty vault protected by a freshly prompted password."""
        self._notify("Vault file does not exist, creating a new empty vault.")
        password = await self._ask_password(
            "Set a password for the new vault.",
            "Password was empty, vault creation cancelled",
        )
        await asyncio.to_thread(init_vault, self._vault_file, password)
        record = VaultRecord()
        self._enter_unlocked(password, record)
        return record

    async def unlock(self) -> VaultRecord:
        """Unlock the vault and return the cached record.

        On an unlocked session this only re-arms the relock timer. If the
        vault file does not exist a new vault is created.

        Returns:
            Immutable snapshot of the vault contents.

        Raises:
            CancelledError: If the user supplied an empty password.
            DecryptionError: If the password is wrong or the file is
                corrupted; the session stays locked.
            CorruptDataError: If the vault does not hold a string mapping.
            VaultIOError: On filesystem failures.
        """
        if self._state is SessionState.UNLOCKED:
            self._arm_relock()
            return self._record

        if not await asyncio.to_thread(vault_exists, self._vault_file):
            return await self._initialize()

        password = await self._ask_password(
            "Enter your password to unlock the vault.",
            "Password was empty, vault unlock cancelled",
        )
        try:
            record = await asyncio.to_thread(read_vault, self._vault_file, password)
        except DecryptionError:
            logger.warning(
                "Failed to unlock vault %s: invalid password or corrupted file",
                self._vault_file,
            )
            self.lock()
            raise
        self._enter_unlocked(password, record)
        return record

    def lock(self) -> None:
        """Drop the password and record and cancel the relock timer.

        Idempotent; never raises.
        """
        if self._relock_timer is not None:
            self._relock_timer.cancel()
            self._relock_timer = None
        was_unlocked = self._state is SessionState.UNLOCKED
        self._password = None
        self._record = None
        self._state = SessionState.LOCKED
        if was_unlocked:
            logger.info("Vault %s locked", self._vault_file)

    async def save(self, record: Union[VaultRecord, Mapping[str, str]]) -> None:
        """Persist ``record`` and make it the cached snapshot.

        Raises:
            PreconditionError: If the session is locked.
            VaultIOError: On filesystem failures.
        """
        if self._state is not SessionState.UNLOCKED:
            raise PreconditionError("Vault must be unlocked before saving")
        if not isinstance(record, VaultRecord):
            record = VaultRecord(record)
        await asyncio.to_thread(
            write_vault, self._vault_file, self._password, record,
        )
        if self._state is not SessionState.UNLOCKED:
            # relocked while the write was in flight; keep memory clear
            logger.debug("Vault %s locked during save", self._vault_file)
            return
        self._record = record

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under ``key``, or None if absent."""
        record = await self.unlock()
        return record.get(key)

    async def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` and persist the vault.

        Raises:
            TypeError: If key or value is not a string.
        """
        record = await self.unlock()
        await self.save(record.with_item(key, value))
        logger.debug("Vault set: key=%s", key)

    async def delete_item(self, key: str) -> bool:
        """Remove ``key`` from the vault.

        Returns:
            True if the key existed and was removed.
        """
        record = await self.unlock()
        if key not in record:
            return False
        await self.save(record.without_item(key))
        logger.debug("Vault delete: key=%s", key)
        return True

    async def keys(self) -> list[str]:
        """List secret names, sorted."""
        record = await self.unlock()
        return sorted(record)

    async def change_password(self) -> None:
        """Re-encrypt the vault under a newly prompted password.

        Raises:
            CancelledError: If the user supplied an empty password.
            VaultIOError: On filesystem failures; the old password stays valid.
        """
        await self.unlock()
        new_password = await self._ask_password(
            "Set a new password for the vault.",
            "Password was empty, password change cancelled",
        )
        if self._state is not SessionState.UNLOCKED:
            raise PreconditionError("Vault locked before the password could be changed")
        await asyncio.to_thread(
            write_vault, self._vault_file, new_password, self._record,
        )
        if self._state is SessionState.UNLOCKED:
            self._password = new_password
        logger.info("Vault %s re-encrypted with a new password", self._vault_file)
        self._notify("Vault password changed.")
