"""Small container helpers."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class OrderedMap(Generic[K, V]):
    """Insertion-ordered mapping whose keys only need to support equality.

    Lookups are linear, which is fine for the small collections it is meant for,
    and keys do not have to be hashable.
    """

    def __init__(self, items: Iterable[tuple[K, V]] | None = None) -> None:
        self._entries: list[list] = [[key, value] for key, value in (items or ())]

    def _find(self, key: K) -> list | None:
        return next((entry for entry in self._entries if entry[0] == key), None)

    def get(self, key: K) -> V | None:
        """Return the value stored under ``key``, or ``None`` if absent."""
        entry = self._find(key)
        return None if entry is None else entry[1]

    def insert(self, key: K, value: V) -> None:
        """Store ``value`` under ``key``, keeping the key's original position."""
        entry = self._find(key)
        if entry is None:
            self._entries.append([key, value])
        else:
            entry[1] = value

    def get_or_insert_with(self, key: K, factory: Callable[[], V]) -> V:
        """Return the value for ``key``, inserting ``factory()`` first if absent."""
        entry = self._find(key)
        if entry is None:
            entry = [key, factory()]
            self._entries.append(entry)
        return entry[1]

    def __iter__(self) -> Iterator[tuple[K, V]]:
        return ((key, value) for key, value in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"OrderedMap({list(self)!r})"