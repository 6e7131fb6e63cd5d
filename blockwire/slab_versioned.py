"""A slab whose keys carry a version, so stale keys never match new values."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Generic, Iterator, Optional, Tuple, TypeVar

from blockwire.slab import Slab

T = TypeVar("T")

_U32_MAX = 0xFFFFFFFF

_log = logging.getLogger(__name__)


@dataclass(frozen=True, order=True, slots=True)
class Key:
    """A slot index paired with the nonzero version it was created with."""

    index: int = _U32_MAX
    version: int = _U32_MAX

    NULL: ClassVar["Key"]

    def __post_init__(self) -> None:
        if not 0 <= self.index <= _U32_MAX:
            raise ValueError(f"key index out of range: {self.index}")
        if not 1 <= self.version <= _U32_MAX:
            raise ValueError(f"key version must be a nonzero 32-bit value: {self.version}")


Key.NULL = Key()


@dataclass(slots=True)
class _Slot:
    value: Any
    version: int


class VersionedSlab(Generic[T]):
    """Stores values under versioned keys; removed keys stay invalid forever."""

    __slots__ = ("_slab", "_version")

    def __init__(self) -> None:
        self._slab: Slab[_Slot] = Slab()
        self._version = 1

    def _slot(self, key: Key) -> Optional[_Slot]:
        slot = self._slab.get(key.index)
        if slot is not None and slot.version == key.version:
            return slot
        return None

    def get(self, key: Key) -> Optional[T]:
        """Return the value for ``key``, or None if the key is stale or unknown."""
        slot = self._slot(key)
        return None if slot is None else slot.value

    def __getitem__(self, key: Key) -> T:
        slot = self._slot(key)
        if slot is None:
            raise KeyError(key)
        return slot.value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, Key) and self._slot(key) is not None

    def insert(self, value: T) -> Key:
        """Store ``value`` and return its key."""
        return self.insert_with(lambda _key: value)[0]

    def insert_with(self, factory: Callable[[Key], T]) -> Tuple[Key, T]:
        """Store the value ``factory(key)`` and return the key and the value."""
        version = self._version
        next_version = (version + 1) & _U32_MAX
        if next_version == 0:
            _log.warning("slab version overflow")
            next_version = 1
        self._version = next_version

        def make(index: int) -> _Slot:
            if index >= _U32_MAX:
                raise OverflowError("too many values in versioned slab")
            return _Slot(factory(Key(index, version)), version)

        index, slot = self._slab.insert_with(make)
        return Key(index, version), slot.value

    def remove(self, key: Key) -> T:
        """Remove and return the value for ``key``; KeyError if stale or unknown."""
        if self._slot(key) is None:
            raise KeyError(key)
        return self._slab.remove(key.index).value

    def retain(self, predicate: Callable[[Key, T], bool]) -> None:
        """Keep only the entries for which ``predicate(key, value)`` is true."""
        self._slab.retain(lambda index, slot: predicate(Key(index, slot.version), slot.value))

    def clear(self) -> None:
        """Remove every value."""
        self._slab.clear()

    def __len__(self) -> int:
        return len(self._slab)

    def __iter__(self) -> Iterator[Tuple[Key, T]]:
        for index, slot in self._slab:
            yield Key(index, slot.version), slot.value

    def __repr__(self) -> str:
        return f"VersionedSlab({dict(self)!r})"