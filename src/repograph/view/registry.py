"""Process-scoped singleton slots for view hosts."""

from __future__ import annotations

from typing import Any, TypeVar

from repograph.logging import get_logger

log = get_logger("view")

T = TypeVar("T")


class ViewRegistry:
    """At most one live instance per host class.

    Hosts look themselves up here before creating a new instance and
    release their slot when disposed. Tests inject a fresh registry;
    the application uses ``default_registry``.
    """

    def __init__(self) -> None:
        self._slots: dict[type, Any] = {}

    def get(self, kind: type[T]) -> T | None:
        return self._slots.get(kind)

    def register(self, kind: type[T], instance: T) -> None:
        current = self._slots.get(kind)
        if current is not None and current is not instance:
            raise RuntimeError(f"A {kind.__name__} is already registered")
        self._slots[kind] = instance

    def release(self, kind: type[T], instance: T) -> None:
        """Free the slot, but only if ``instance`` still holds it."""
        if self._slots.get(kind) is instance:
            del self._slots[kind]
            log.debug("Released %s", kind.__name__)

    def clear(self) -> None:
        self._slots.clear()


default_registry = ViewRegistry()
