"""A slab whose entries live only as long as someone holds their key."""

import weakref
from dataclasses import dataclass
from typing import Any, Generic, Iterator, Tuple, TypeVar

from blockwire.slab import Slab

T = TypeVar("T")


class RcKey:
    """A handle to one entry of an RcSlab.

    Keys compare equal only to themselves. An entry stays in the slab
    until its key is no longer referenced and garbage is collected.
    """

    __slots__ = ("_index", "__weakref__")

    def __init__(self, index: int) -> None:
        self._index = index

    @property
    def index(self) -> int:
        """The slot index this key refers to."""
        return self._index

    def __repr__(self) -> str:
        return f"RcKey(index={self._index})"


@dataclass(slots=True)
class _Slot:
    value: Any
    key_ref: "weakref.ref[RcKey]"


class RcSlab(Generic[T]):
    """Stores values whose lifetime is tied to the keys handed out for them."""

    __slots__ = ("_slab",)

    def __init__(self) -> None:
        self._slab: Slab[_Slot] = Slab()

    def _slot(self, key: RcKey) -> _Slot:
        slot = self._slab.get(key.index) if isinstance(key, RcKey) else None
        if slot is None or slot.key_ref() is not key:
            raise KeyError(key)
        return slot

    def get(self, key: RcKey) -> T:
        """Return the value for ``key``; KeyError if the key is not from this slab."""
        return self._slot(key).value

    def __getitem__(self, key: RcKey) -> T:
        return self._slot(key).value

    def __setitem__(self, key: RcKey, value: T) -> None:
        self._slot(key).value = value

    def __contains__(self, key: object) -> bool:
        try:
            self._slot(key)  # type: ignore[arg-type]
        except KeyError:
            return False
        return True

    def insert(self, value: T) -> RcKey:
        """Store ``value`` and return the key that keeps it alive."""
        created = []

        def make(index: int) -> _Slot:
            key = RcKey(index)
            created.append(key)
            return _Slot(value, weakref.ref(key))

        self._slab.insert_with(make)
        return created[0]

    def collect_garbage(self) -> None:
        """Drop every entry whose key is no longer referenced."""
        self._slab.retain(lambda _index, slot: slot.key_ref() is not None)

    def __len__(self) -> int:
        return len(self._slab)

    def __iter__(self) -> Iterator[Tuple[RcKey, T]]:
        """Yield (key, value) pairs for entries whose key is still alive."""
        for _index, slot in self._slab:
            key = slot.key_ref()
            if key is not None:
                yield key, slot.value

    def __repr__(self) -> str:
        return f"RcSlab({[value for _key, value in self]!r})"