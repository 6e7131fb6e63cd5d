"""A slab allocator: values stored under small reusable integer keys."""

from typing import Any, Callable, Generic, Iterator, Optional, Tuple, TypeVar

T = TypeVar("T")


class _Vacant:
    __slots__ = ("next_free",)

    def __init__(self, next_free: int) -> None:
        self.next_free = next_free


class Slab(Generic[T]):
    """Stores values under integer keys, reusing freed keys last-in first-out."""

    __slots__ = ("_entries", "_next_free", "_len")

    def __init__(self) -> None:
        self._entries: list[Any] = []
        self._next_free = 0
        self._len = 0

    def _lookup(self, key: int) -> Tuple[bool, Optional[T]]:
        if isinstance(key, int) and 0 <= key < len(self._entries):
            entry = self._entries[key]
            if not isinstance(entry, _Vacant):
                return True, entry
        return False, None

    def get(self, key: int) -> Optional[T]:
        """Return the value stored under ``key``, or None if there is none."""
        return self._lookup(key)[1]

    def __getitem__(self, key: int) -> T:
        found, value = self._lookup(key)
        if not found:
            raise KeyError(key)
        return value  # type: ignore[return-value]

    def __contains__(self, key: object) -> bool:
        return self._lookup(key)[0]  # type: ignore[arg-type]

    def insert(self, value: T) -> int:
        """Store ``value`` and return its key."""
        return self.insert_with(lambda _key: value)[0]

    def insert_with(self, factory: Callable[[int], T]) -> Tuple[int, T]:
        """Store the value ``factory(key)`` and return the key and the value."""
        key = self._next_free
        value = factory(key)
        if key == len(self._entries):
            self._entries.append(value)
            self._next_free = key + 1
        else:
            vacant = self._entries[key]
            if not isinstance(vacant, _Vacant):
                raise RuntimeError("corrupt free list")
            self._next_free = vacant.next_free
            self._entries[key] = value
        self._len += 1
        return key, value

    def _vacate(self, key: int) -> None:
        self._entries[key] = _Vacant(self._next_free)
        self._next_free = key
        self._len -= 1

    def remove(self, key: int) -> T:
        """Remove and return the value under ``key``; KeyError if absent."""
        found, value = self._lookup(key)
        if not found:
            raise KeyError(key)
        self._vacate(key)
        return value  # type: ignore[return-value]

    def retain(self, predicate: Callable[[int, T], bool]) -> None:
        """Keep only the entries for which ``predicate(key, value)`` is true."""
        for key, entry in enumerate(self._entries):
            if not isinstance(entry, _Vacant) and not predicate(key, entry):
                self._vacate(key)

    def clear(self) -> None:
        """Remove every value and forget all keys."""
        self._entries.clear()
        self._next_free = 0
        self._len = 0

    def __len__(self) -> int:
        return self._len

    def __iter__(self) -> Iterator[Tuple[int, T]]:
        for key, entry in enumerate(self._entries):
            if not isinstance(entry, _Vacant):
                yield key, entry

    def __reversed__(self) -> Iterator[Tuple[int, T]]:
        for key, entry in reversed(list(enumerate(self._entries))):
            if not isinstance(entry, _Vacant):
                yield key, entry

    def __repr__(self) -> str:
        return f"Slab({dict(self)!r})"