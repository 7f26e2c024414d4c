"""Lazily evaluated, hierarchical dependency container for state stores.

Register creation rules on a `ContainerBuilder`, optionally chain parent
containers, then `build()` an immutable `Container` and `resolve` keys from it.
Instances are created on first resolution and cached per key and instance name.

Exports:
- `ContainerBuilder` / `Registration`: collect registrations (named or as
  collections) and build containers.
- `Container`: resolves keys, falling back to parent containers.
- `Key`: typed token for a dependency.
- `PageContainerFactoryBase`, `GlobalStores` and the well-known page keys:
  per-page containers chained to a shared container of global stores.
- `ReplayState`, `ReplayAware`: replay awareness for stores.
"""

from ._builder import ContainerBuilder, Registration
from ._container import Container, Key
from ._errors import ContainerError, CyclicDependencyError, MisconfiguredRegistrationError, ResolutionError
from ._page import (
    PAGE_COMMUNICATION_STORE,
    PAGE_MANAGEMENT_STORE,
    PAGE_REQUEST,
    PAGE_URL,
    ROUTER_STORE,
    SITE_MAP_STORE,
    GlobalStores,
    PageContainerFactory,
    PageContainerFactoryBase,
    build_global_container,
)
from ._replay import ReplayAware, ReplayState, mark_replay_ended, mark_replay_started


__all__ = [
    "PAGE_COMMUNICATION_STORE",
    "PAGE_MANAGEMENT_STORE",
    "PAGE_REQUEST",
    "PAGE_URL",
    "ROUTER_STORE",
    "SITE_MAP_STORE",
    "Container",
    "ContainerBuilder",
    "ContainerError",
    "CyclicDependencyError",
    "GlobalStores",
    "Key",
    "MisconfiguredRegistrationError",
    "PageContainerFactory",
    "PageContainerFactoryBase",
    "Registration",
    "ReplayAware",
    "ReplayState",
    "ResolutionError",
    "build_global_container",
    "mark_replay_ended",
    "mark_replay_started",
]
