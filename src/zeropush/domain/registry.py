"""Name-to-handler lookup for mutations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from zeropush.domain.mutations import Mutation

type MutationClass = type[Mutation[Any]]


def normalize_mutation_name(name: str | None) -> str:
    """Return the dotted form of a mutation name (``posts|create`` -> ``posts.create``)."""

    if name is None:
        return ""
    return name.replace("|", ".")


class MutationRegistry:
    """Mapping of normalized mutation names to handler classes.

    A registry built with a ``base`` sees every entry of the base, including entries
    registered there later; its own entries take precedence.
    """

    def __init__(self, base: MutationRegistry | None = None) -> None:
        self._base = base
        self._handlers: dict[str, MutationClass] = {}

    def register(self, name: str, handler: MutationClass) -> MutationClass:
        key = normalize_mutation_name(name)
        if not key:
            raise ValueError("Mutation name must not be empty")
        self._handlers[key] = handler
        return handler

    def mutation(self, name: str) -> Callable[[MutationClass], MutationClass]:
        """Class decorator registering a handler under ``name``."""

        def decorator(handler: MutationClass) -> MutationClass:
            return self.register(name, handler)

        return decorator

    def mount(self, prefix: str, registry: MutationRegistry) -> None:
        """Register every handler of ``registry`` under ``prefix.<name>``."""

        namespace = normalize_mutation_name(prefix).rstrip(".")
        for name, handler in registry.items():
            self.register(f"{namespace}.{name}" if namespace else name, handler)

    def lookup(self, name: str | None) -> MutationClass | None:
        key = normalize_mutation_name(name)
        handler = self._handlers.get(key)
        if handler is None and self._base is not None:
            return self._base.lookup(key)
        return handler

    def items(self) -> Iterator[tuple[str, MutationClass]]:
        merged = dict(self._base.items()) if self._base is not None else {}
        merged.update(self._handlers)
        yield from sorted(merged.items())

    def names(self) -> list[str]:
        return [name for name, _ in self.items()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def __len__(self) -> int:
        return len(self.names())
