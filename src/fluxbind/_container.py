from __future__ import annotations

import inspect
import logging
import threading
import typing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, cast, overload

from ._errors import CyclicDependencyError, ResolutionError, describe
from ._registry import RegistrationMap


logger = logging.getLogger(__name__)

T = TypeVar("T")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping

    from ._builder import ContainerBuilder
    from ._registry import Entry

    CacheKey = tuple[str, str | None, int | None]


@dataclass(frozen=True)
class Key(Generic[T]):
    """Typed token for a dependency.

    A `Key` and a plain string with the same `name` address the same
    registration. When `expected` is given, resolved instances are checked
    against it and `Container.resolve` is typed to return it.

    Example:
      ROUTER_STORE: Key[RouterStore] = Key("IRouterStore", RouterStore)
      store = container.resolve(ROUTER_STORE)  # typed as RouterStore

    """

    name: str
    expected: type[T] | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Key name must be a non-empty string."
            raise ValueError(msg)

    def __str__(self) -> str:
        return self.name

    def check(self, instance: object) -> None:
        expected = self.expected
        if expected is None or not inspect.isclass(expected):
            return

        # Plain protocols can't be used with isinstance
        if _is_protocol(expected) and not _is_runtime_checkable_protocol(expected):
            return

        if not isinstance(instance, expected):
            msg = (
                f"Resolved instance {type(instance).__name__} for key {self.name!r} "
                f"is not an instance of {expected.__name__}"
            )
            raise TypeError(msg)


def key_name(key: str | Key[Any]) -> str:
    if isinstance(key, Key):
        return key.name
    if not isinstance(key, str) or not key:
        msg = f"Key must be a non-empty string or a Key, got {key!r}"
        raise ValueError(msg)
    return key


class Container:
    """Resolution engine built by `ContainerBuilder`.

    - instances are created lazily and cached per (key, instance name)
    - a named registration serves its own name; the default registration
      serves every other name, as an independent singleton per name
    - collection registrations resolve to a list in registration order
    - keys unknown locally are resolved by the first parent that knows them.
    """

    def __init__(
        self,
        registrations: RegistrationMap | None = None,
        parents: Iterable[Container] = (),
        *,
        detect_cycles: bool = True,
    ) -> None:
        self._registrations: Mapping[str, Entry] = (registrations or RegistrationMap()).snapshot()
        self._parents = tuple(parents)
        self._detect_cycles = detect_cycles
        self._singletons: dict[CacheKey, object] = {}
        self._creating: list[CacheKey] = []
        self._lock = threading.RLock()

    @property
    def parents(self) -> tuple[Container, ...]:
        return self._parents

    def keys(self) -> Iterator[str]:
        """Keys registered in this container, not including parents."""
        return iter(self._registrations)

    def can_resolve(self, key: str | Key[Any], instance_name: str | None = None) -> bool:
        token = key_name(key)
        name = instance_name or None
        if self._local_entry(token, name) is not None:
            return True
        return any(parent.can_resolve(token, name) for parent in self._parents)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, Key) or (isinstance(key, str) and key):
            return self.can_resolve(key)
        return False

    @overload
    def resolve(self, key: Key[T], instance_name: str | None = None) -> T: ...

    @overload
    def resolve(self, key: str, instance_name: str | None = None) -> Any: ...

    def resolve(self, key: str | Key[Any], instance_name: str | None = None) -> Any:
        """Resolve the key to an instance.

        - local registration: return its cached instance, creating it on first use.
        - collection registration: return a list with one instance per rule.
        - no local registration: delegate to the first parent able to resolve it.
        - otherwise raise `ResolutionError`.
        """
        token = key_name(key)
        name = instance_name or None

        instance, many = self._resolve(token, name)

        if isinstance(key, Key):
            for item in instance if many else (instance,):
                key.check(item)

        return instance

    def try_resolve(
        self,
        key: str | Key[Any],
        instance_name: str | None = None,
        default: Any = None,
    ) -> Any:
        """Resolve the key, or return `default` when nothing can resolve it.

        Errors raised while creating the instance still propagate.
        """
        if not self.can_resolve(key, instance_name):
            return default
        return self.resolve(key, instance_name)

    def child_builder(self, *, strict: bool = False) -> ContainerBuilder:
        """Create a builder whose containers fall back to this one."""
        from ._builder import ContainerBuilder

        builder = ContainerBuilder(strict=strict, detect_cycles=self._detect_cycles)
        builder.add_parent_container(self)
        return builder

    def _local_entry(self, key: str, name: str | None) -> Entry | None:
        entry = self._registrations.get(key)
        if entry is None:
            return None
        if not entry.is_collection and entry.lookup(name) is None:
            # Only named rules for other names
            return None
        return entry

    def _resolve(self, key: str, name: str | None) -> tuple[Any, bool]:
        with self._lock:
            entry = self._local_entry(key, name)

            if entry is not None:
                if entry.collection is not None:
                    instances = [
                        self._create((key, name, index), rule) for index, rule in enumerate(entry.collection)
                    ]
                    return instances, True

                rule = cast("Callable[[Container], object]", entry.lookup(name))
                return self._create((key, name, None), rule), False

        for parent in self._parents:
            if parent.can_resolve(key, name):
                return parent._resolve(key, name)  # noqa: SLF001

        raise ResolutionError(key, name)

    def _create(self, cache_key: CacheKey, rule: Callable[[Container], object]) -> object:
        if cache_key in self._singletons:
            return self._singletons[cache_key]

        if self._detect_cycles and cache_key in self._creating:
            start = self._creating.index(cache_key)
            chain = [(k, n) for k, n, _ in [*self._creating[start:], cache_key]]
            raise CyclicDependencyError(chain)

        self._creating.append(cache_key)
        try:
            instance = rule(self)
        finally:
            self._creating.pop()

        self._singletons[cache_key] = instance
        key, name, _ = cache_key
        logger.debug("Created instance %s for key %s", type(instance).__name__, describe(key, name))
        return instance


def _is_protocol(tp: type) -> bool:
    """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
    if hasattr(typing, "is_protocol"):
        # https://docs.python.org/3/library/typing.html#typing.is_protocol
        return inspect.isclass(tp) and typing.is_protocol(tp)
    return inspect.isclass(tp) and issubclass(tp, cast("type", Protocol)) and tp is not Protocol


def _is_runtime_checkable_protocol(tp: type) -> bool:
    try:
        isinstance(None, tp)
    except TypeError:
        return False
    else:
        return True
