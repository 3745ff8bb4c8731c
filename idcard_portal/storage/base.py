from __future__ import annotations

from typing import Protocol

from idcard_portal.core.errors import StoreUnavailableError


class Store(Protocol):
    """Key/value text store addressed by string keys (localStorage semantics).

    No transactions, no expiry. ``delete`` of a missing key is not an error.
    Implementations raise ``StoreUnavailableError`` when the backend refuses
    an operation.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store. Used by tests and by ``STORE_BACKEND=memory``."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        # emulate a full or disabled storage
        self.fail_writes = False

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StoreUnavailableError("storage quota exceeded")
        self._data[key] = str(value)

    def delete(self, key: str) -> None:
        if self.fail_writes:
            raise StoreUnavailableError("storage is disabled")
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data
