"""
VaultRecord — immutable snapshot of the decrypted vault contents.

A record maps secret names to secret values, both strings. Mutations never
happen in place: ``with_item`` and ``without_item`` return a new snapshot,
so a record handed out by a session can not change behind its back.
"""
from typing import Any, Optional
from collections.abc import Iterator, Mapping

import orjson

from .exceptions import CorruptDataError

# sorted keys + fixed indent: the same record always serializes the same way
_DUMP_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2


class VaultRecord(Mapping[str, str]):
    """Read-only mapping of secret name to secret value."""

    __slots__ = ('_data',)

    def __init__(self, data: Optional[Mapping[str, str]] = None) -> None:
        items = dict(data) if data else {}
        for key, value in items.items():
            self._check_item(key, value)
        object.__setattr__(self, '_data', items)

    @staticmethod
    def _check_item(key: Any, value: Any) -> None:
        """Raise TypeError unless both key and value are strings."""
        if not isinstance(key, str):
            raise TypeError(
                f"Vault key must be a string, got {type(key).__name__}"
            )
        if not isinstance(value, str):
            raise TypeError(
                f"Vault value for {key!r} must be a string, "
                f"got {type(value).__name__}"
            )

    def __repr__(self) -> str:
        # values are secrets; only names are shown
        return f'<VaultRecord keys={sorted(self._data)}>'

    # --- Mapping protocol ---

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, VaultRecord):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    @property
    def empty(self) -> bool:
        return not self._data

    # --- Copy-on-write updates ---

    def with_item(self, key: str, value: str) -> "VaultRecord":
        """Return a new record with ``key`` set to ``value``."""
        self._check_item(key, value)
        data = dict(self._data)
        data[key] = value
        return VaultRecord(data)

    def without_item(self, key: str) -> "VaultRecord":
        """Return a new record without ``key`` (unchanged copy if absent)."""
        data = dict(self._data)
        data.pop(key, None)
        return VaultRecord(data)

    def to_dict(self) -> dict[str, str]:
        """Return a plain, independent ``dict`` copy."""
        return dict(self._data)

    # --- Serialization ---

    def encode(self) -> str:
        """Serialize the record to deterministic JSON text."""
        return orjson.dumps(self._data, option=_DUMP_OPTIONS).decode("utf-8")

    @classmethod
    def decode(cls, text: str) -> "VaultRecord":
        """Parse JSON text into a record.

        Args:
            text: JSON produced by :meth:`encode`.

        Raises:
            CorruptDataError: If the text is not JSON or not a flat
                string-to-string object.
        """
        try:
            parsed = orjson.loads(text)
        except orjson.JSONDecodeError as err:
            raise CorruptDataError(f"Vault data is not valid JSON: {err}") from err
        if not isinstance(parsed, dict):
            raise CorruptDataError(
                f"Vault data must be an object, got {type(parsed).__name__}"
            )
        try:
            return cls(parsed)
        except TypeError as err:
            raise CorruptDataError(f"Vault data is not a flat string mapping: {err}") from err
