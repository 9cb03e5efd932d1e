"""Shared fixtures for vault tests."""
import pytest

from navigator_vault.session import VaultSession


class FakeAgent:
    """Scripted stand-in for the host application.

    Returns queued passwords in order; once the queue is empty, returns
    ``default``.
    """

    def __init__(self, *passwords: str, default: str = "") -> None:
        self.passwords = list(passwords)
        self.default = default
        self.prompts: list[str] = []
        self.messages: list[str] = []

    async def prompt_password(self, message: str) -> str:
        self.prompts.append(message)
        if self.passwords:
            return self.passwords.pop(0)
        return self.default

    def notify(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def vault_file(tmp_path):
    """Path to a not-yet-created vault file."""
    return tmp_path / "secrets.vault"


@pytest.fixture
def agent():
    """Agent that always answers with 'pw1'."""
    return FakeAgent(default="pw1")


@pytest.fixture
def session(vault_file, agent):
    """Locked session over a fresh vault path."""
    vault = VaultSession(vault_file, agent, relock_time=300)
    yield vault
    vault.lock()
