"""Tests for VaultConfig."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from navigator_vault.config import DEFAULT_RELOCK_TIME, VaultConfig


class TestVaultConfig:
    """Validation and environment loading."""

    def test_defaults(self, tmp_path):
        config = VaultConfig(vault_file=tmp_path / "test.vault")
        assert config.vault_file == tmp_path / "test.vault"
        assert config.relock_time == DEFAULT_RELOCK_TIME == 300.0

    def test_expands_user(self):
        config = VaultConfig(vault_file="~/test.vault")
        assert config.vault_file == Path.home() / "test.vault"

    @pytest.mark.parametrize("relock_time", [0, -1])
    def test_rejects_non_positive_relock_time(self, tmp_path, relock_time):
        with pytest.raises(ValidationError):
            VaultConfig(vault_file=tmp_path / "test.vault", relock_time=relock_time)

    @pytest.mark.parametrize("vault_file", ["", "   ", 42])
    def test_rejects_invalid_vault_file(self, vault_file):
        with pytest.raises(ValidationError):
            VaultConfig(vault_file=vault_file)

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VAULT_FILE", str(tmp_path / "env.vault"))
        monkeypatch.setenv("VAULT_RELOCK_TIME", "60")
        config = VaultConfig.from_env()
        assert config.vault_file == tmp_path / "env.vault"
        assert config.relock_time == 60.0

    def test_from_env_default_relock_time(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VAULT_FILE", str(tmp_path / "env.vault"))
        monkeypatch.delenv("VAULT_RELOCK_TIME", raising=False)
        assert VaultConfig.from_env().relock_time == DEFAULT_RELOCK_TIME

    def test_from_env_missing_file(self, monkeypatch):
        monkeypatch.delenv("VAULT_FILE", raising=False)
        with pytest.raises(RuntimeError):
            VaultConfig.from_env()
