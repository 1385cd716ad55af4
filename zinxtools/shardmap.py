"""A thread-safe string-keyed map split into independently locked shards."""

from __future__ import annotations

import json
import threading
from typing import Any, Callable, Iterator, Mapping, NamedTuple

from zinxtools.hashing import Hasher, default_hash

DEFAULT_SHARD_COUNT = 32


class Entry(NamedTuple):
    """One key/value pair yielded by :meth:`ShardLockMap.iter_buffered`."""

    key: str
    value: Any


class _Shard:
    __slots__ = ("items", "lock")

    def __init__(self) -> None:
        self.items: dict[str, Any] = {}
        self.lock = threading.Lock()


class ShardLockMap:
    """A map of string keys to values, sharded by hash to reduce lock contention."""

    def __init__(
        self,
        hasher: Hasher | None = None,
        shard_count: int = DEFAULT_SHARD_COUNT,
    ) -> None:
        if shard_count < 1:
            raise ValueError("shard_count must be at least 1")
        self._hasher = hasher if hasher is not None else default_hash()
        self._shards = [_Shard() for _ in range(shard_count)]

    @property
    def shard_count(self) -> int:
        return len(self._shards)

    def get_shard(self, key: str) -> _Shard:
        """Return the shard responsible for ``key``."""
        return self._shards[self._hasher.sum(key) % len(self._shards)]

    def count(self) -> int:
        """Return the number of stored items."""
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.items)
        return total

    def __len__(self) -> int:
        return self.count()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value under ``key``, or ``default`` if absent."""
        shard = self.get_shard(key)
        with shard.lock:
            return shard.items.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``."""
        shard = self.get_shard(key)
        with shard.lock:
            shard.items[key] = value

    def set_nx(self, key: str, value: Any) -> bool:
        """Store ``value`` only if ``key`` is absent; return whether it was stored."""
        shard = self.get_shard(key)
        with shard.lock:
            if key in shard.items:
                return False
            shard.items[key] = value
            return True

    def mset(self, data: Mapping[str, Any]) -> None:
        """Store every pair of ``data``."""
        for key, value in data.items():
            self.set(key, value)

    def has(self, key: str) -> bool:
        """Return whether ``key`` is stored."""
        shard = self.get_shard(key)
        with shard.lock:
            return key in shard.items

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def remove(self, key: str) -> None:
        """Remove ``key`` if present."""
        shard = self.get_shard(key)
        with shard.lock:
            shard.items.pop(key, None)

    def remove_cb(
        self, key: str, callback: Callable[[str, Any, bool], bool]
    ) -> bool:
        """Call ``callback(key, value, exists)`` under the shard lock.

        The item is removed when the callback returns true and the key exists.
        The callback's result is returned either way.
        """
        shard = self.get_shard(key)
        with shard.lock:
            exists = key in shard.items
            value = shard.items.get(key)
            remove = bool(callback(key, value, exists))
            if remove and exists:
                del shard.items[key]
            return remove

    def pop(self, key: str, default: Any = None) -> Any:
        """Remove ``key`` and return its value, or ``default`` if absent."""
        shard = self.get_shard(key)
        with shard.lock:
            return shard.items.pop(key, default)

    def clear(self) -> None:
        """Remove every item."""
        for shard in self._shards:
            with shard.lock:
                shard.items.clear()

    def is_empty(self) -> bool:
        return self.count() == 0

    def iter_buffered(self) -> Iterator[Entry]:
        """Return an iterator over a snapshot taken at call time."""
        snapshot: list[Entry] = []
        for shard in self._shards:
            with shard.lock:
                snapshot.extend(Entry(k, v) for k, v in shard.items.items())
        return iter(snapshot)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def items(self) -> dict[str, Any]:
        """Return a plain dict copy of all items."""
        return dict(self.iter_buffered())

    def keys(self) -> list[str]:
        """Return a list of all keys."""
        result: list[str] = []
        for shard in self._shards:
            with shard.lock:
                result.extend(shard.items)
        return result

    def iter_cb(self, callback: Callable[[str, Any], None]) -> None:
        """Call ``callback(key, value)`` for every item, one shard lock at a time."""
        for shard in self._shards:
            with shard.lock:
                for key, value in shard.items.items():
                    callback(key, value)

    def to_json(self) -> str:
        """Serialise all items as a compact JSON object with sorted keys."""
        return json.dumps(self.items(), sort_keys=True, separators=(",", ":"))

    def update_from_json(self, data: str | bytes) -> None:
        """Store every pair of the JSON object in ``data``."""
        decoded = json.loads(data)
        if not isinstance(decoded, dict):
            raise ValueError("JSON document is not an object")
        self.mset(decoded)