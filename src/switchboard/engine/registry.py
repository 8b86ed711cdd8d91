"""Handler Registry - Stores specialist descriptors in registration order."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from switchboard.errors import ConfigError, DuplicateHandler, UnknownHandler
from switchboard.models import HandlerDescriptor

# Keys accepted in a handler configuration entry
CONFIG_KEYS = frozenset(
    {
        "name",
        "triggers",
        "domains",
        "capabilities",
        "depends_on",
        "requires_aggregation",
        "hand_off_to",
        "timeout",
    }
)


def descriptor_from_config(entry: Mapping[str, Any]) -> HandlerDescriptor:
    """Build a descriptor from one configuration entry."""
    unknown = set(entry) - CONFIG_KEYS
    if unknown:
        raise ConfigError(f"Unknown handler option(s): {', '.join(sorted(unknown))}")
    if "name" not in entry:
        raise ConfigError("Handler entry is missing 'name'")

    timeout = entry.get("timeout")
    try:
        return HandlerDescriptor(
            name=str(entry["name"]),
            triggers=entry.get("triggers", ()),
            domains=entry.get("domains", ()),
            capabilities=tuple(entry.get("capabilities", ())),
            depends_on=entry.get("depends_on", ()),
            requires_aggregation=bool(entry.get("requires_aggregation", False)),
            hand_off_to=entry.get("hand_off_to") or None,
            timeout=float(timeout) if timeout is not None else None,
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid handler {entry.get('name')!r}: {e}") from e


@dataclass(frozen=True)
class RegistrySnapshot:
    """Read-only view of the registry taken at plan time."""

    descriptors: tuple[HandlerDescriptor, ...]

    def lookup(self, name: str) -> HandlerDescriptor:
        for descriptor in self.descriptors:
            if descriptor.name == name:
                return descriptor
        raise UnknownHandler(name)

    def all(self) -> Iterator[HandlerDescriptor]:
        return iter(self.descriptors)

    def rank(self, name: str) -> int:
        """Registration position, used for deterministic tie-breaks."""
        for idx, descriptor in enumerate(self.descriptors):
            if descriptor.name == name:
                return idx
        raise UnknownHandler(name)

    def __contains__(self, name: object) -> bool:
        return any(d.name == name for d in self.descriptors)

    def __len__(self) -> int:
        return len(self.descriptors)


class HandlerRegistry:
    """
    Process-wide registry of specialist handlers.

    Populated at startup and read-only during routing. Routing works on a
    snapshot, so administrative changes (replace/unregister) never affect a
    plan that is already being dispatched.
    """

    def __init__(self, descriptors: Iterable[HandlerDescriptor] = ()) -> None:
        self._descriptors: dict[str, HandlerDescriptor] = {}
        self._lock = threading.Lock()
        for descriptor in descriptors:
            self.register(descriptor)

    @classmethod
    def from_config(cls, entries: Iterable[Mapping[str, Any]]) -> HandlerRegistry:
        """Populate a registry from a list of handler configuration entries."""
        return cls(descriptor_from_config(entry) for entry in entries)

    def register(self, descriptor: HandlerDescriptor) -> None:
        with self._lock:
            if descriptor.name in self._descriptors:
                raise DuplicateHandler(descriptor.name)
            self._descriptors[descriptor.name] = descriptor

    def lookup(self, name: str) -> HandlerDescriptor:
        try:
            return self._descriptors[name]
        except KeyError:
            raise UnknownHandler(name) from None

    def all(self) -> Iterator[HandlerDescriptor]:
        """Yield descriptors lazily, in registration order."""
        yield from list(self._descriptors.values())

    def snapshot(self) -> RegistrySnapshot:
        with self._lock:
            return RegistrySnapshot(tuple(self._descriptors.values()))

    # Administrative operations

    def replace(self, descriptor: HandlerDescriptor) -> None:
        """Re-register an existing handler, keeping its registration rank."""
        with self._lock:
            if descriptor.name not in self._descriptors:
                raise UnknownHandler(descriptor.name)
            self._descriptors[descriptor.name] = descriptor

    def unregister(self, name: str) -> HandlerDescriptor:
        with self._lock:
            try:
                return self._descriptors.pop(name)
            except KeyError:
                raise UnknownHandler(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)
