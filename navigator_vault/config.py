"""
Vault Configuration — validated settings for a vault session.

Reads settings from environment variables:
    VAULT_FILE = <path to the vault file>
    VAULT_RELOCK_TIME = <idle seconds before the vault re-locks, default 300>
"""
import os
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("navigator.vault")

DEFAULT_RELOCK_TIME = 300.0  # 5 minutes


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    vault_file: Path
    relock_time: float = Field(default=DEFAULT_RELOCK_TIME, gt=0)

    @field_validator("vault_file", mode="before")
    @classmethod
    def validate_vault_file(cls, v):
        """Reject empty paths and expand ``~``."""
        if not isinstance(v, (str, os.PathLike)):
            raise ValueError(f"vault_file must be a path, got {type(v).__name__}")
        if isinstance(v, str) and not v.strip():
            raise ValueError("vault_file cannot be empty")
        return Path(v).expanduser()

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.

        Raises:
            RuntimeError: If VAULT_FILE is not set.
        """
        vault_file = os.environ.get("VAULT_FILE")
        if not vault_file:
            raise RuntimeError(
                "VAULT_FILE environment variable is not set"
            )
        relock_time = os.environ.get("VAULT_RELOCK_TIME", DEFAULT_RELOCK_TIME)
        config = cls(vault_file=vault_file, relock_time=relock_time)
        logger.debug(
            "Vault config loaded: file=%s relock_time=%ss",
            config.vault_file, config.relock_time,
        )
        return config
