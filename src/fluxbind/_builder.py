from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ._container import Container, Key, key_name
from ._errors import MisconfiguredRegistrationError, describe
from ._registry import Binding, RegistrationMap


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    CreationRule = Callable[[Container], object]


class Registration:
    """Handle returned by `ContainerBuilder.register`.

    Binds the registered rule to a key, optionally under an instance name or
    as one member of a collection. Calls can be chained in any order:

      builder.register(make_store).as_key("IStore").named("secondary")
      builder.register(make_plugin).as_key("IPlugin").in_collection()

    Conflicts between registrations (the same key and name twice, or single
    and collection registrations under one key) are settled by `build()`,
    once every handle has its final shape.
    """

    def __init__(self, registrations: RegistrationMap, rule: CreationRule) -> None:
        self._registrations = registrations
        self._binding = Binding(rule)
        self._key: str | None = None

    @property
    def key(self) -> str | None:
        return self._key

    @property
    def name(self) -> str | None:
        return self._binding.name

    @property
    def is_collection(self) -> bool:
        return self._binding.collection

    def as_key(self, key: str | Key[Any]) -> Registration:
        token = key_name(key)
        if token == self._key:
            return self
        if self._key is not None:
            msg = f"Registration is already bound to key {self._key!r}, cannot rebind it to {token!r}."
            raise MisconfiguredRegistrationError(msg)

        self._registrations.bind(token, self._binding)
        self._key = token
        return self

    def named(self, name: str) -> Registration:
        if not name:
            msg = "Instance name must be a non-empty string."
            raise ValueError(msg)
        if name == self._binding.name:
            return self
        if self._binding.collection:
            msg = f"Collection registration for key {self._key!r} cannot be named {name!r}."
            raise MisconfiguredRegistrationError(msg)

        if self._binding.name is not None:
            logger.warning(
                "Registration for key %r renamed from %r to %r, the last name wins",
                self._key,
                self._binding.name,
                name,
            )
        self._binding.name = name
        return self

    def in_collection(self) -> Registration:
        if self._binding.collection:
            return self
        if self._binding.name is not None:
            msg = f"Named registration {describe(self._key or '', self._binding.name)} cannot join a collection."
            raise MisconfiguredRegistrationError(msg)

        self._binding.collection = True
        return self


class ContainerBuilder:
    """Collects registrations and parent containers, then builds a `Container`.

    `build()` drains the registrations: each built container gets its own
    snapshot and singleton cache, and the builder starts over empty. Parent
    containers are kept for later builds.

    Options:
    - `strict`: raise `MisconfiguredRegistrationError` when a key (and
      instance name) is registered twice instead of overwriting it.
    - `detect_cycles`: raise `CyclicDependencyError` when a creation rule
      resolves a dependency that is still being created.
    """

    def __init__(self, *, strict: bool = False, detect_cycles: bool = True) -> None:
        self._registrations = RegistrationMap(strict=strict)
        self._parents: list[Container] = []
        self._strict = strict
        self._detect_cycles = detect_cycles

    def add_parent_container(self, parent: Container) -> None:
        """Add a parent that resolves keys the built container does not know.

        Parents are consulted in the order they were added.
        """
        if not isinstance(parent, Container):
            msg = f"Parent must be a Container, got {type(parent).__name__}"
            raise TypeError(msg)
        self._parents.append(parent)

    def register(self, rule: CreationRule, key: str | Key[Any] | None = None) -> Registration:
        """Register a creation rule, called with the resolving container.

        Example:
          builder.register(lambda c: Counter(), "ICounter")
          builder.register(lambda c: Report(c.resolve("ICounter"))).as_key("IReport")

        """
        if not callable(rule):
            msg = f"Creation rule must be callable, got {type(rule).__name__}"
            raise TypeError(msg)

        registration = Registration(self._registrations, rule)
        if key is not None:
            registration.as_key(key)
        return registration

    def register_instance(self, key: str | Key[Any], instance: object, *, name: str | None = None) -> Registration:
        """Register a pre-built instance."""
        registration = self.register(lambda _: instance, key)
        if name:
            registration.named(name)
        return registration

    def build(self) -> Container:
        """Build a container from the registrations made so far and start over empty.

        Raises `MisconfiguredRegistrationError` when a key mixes single and
        collection registrations, or, with `strict`, is registered twice. The
        registrations are kept in that case so the builder can be corrected.
        """
        container = Container(self._registrations, self._parents, detect_cycles=self._detect_cycles)
        logger.debug(
            "Built container with %d key(s) and %d parent(s)",
            len(self._registrations),
            len(self._parents),
        )
        self._registrations = RegistrationMap(strict=self._strict)
        return container
