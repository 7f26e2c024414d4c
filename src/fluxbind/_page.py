from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from ._builder import ContainerBuilder
from ._container import Container, Key


if TYPE_CHECKING:
    from collections.abc import Mapping


logger = logging.getLogger(__name__)

ROUTER_STORE: Key[Any] = Key("IRouterStore")
SITE_MAP_STORE: Key[Any] = Key("ISiteMapStore")
PAGE_MANAGEMENT_STORE: Key[Any] = Key("IPageManagementStore")
PAGE_COMMUNICATION_STORE: Key[Any] = Key("IPageCommunicationStore")
PAGE_REQUEST: Key[Any] = Key("IPageRequest")
PAGE_URL: Key[Any] = Key("PageUrl")


@dataclass(frozen=True)
class GlobalStores:
    """Stores that exist once per application and are shared by all pages."""

    router_store: Any
    site_map_store: Any
    page_management_store: Any
    page_communication_store: Any


def build_global_container(global_stores: GlobalStores, *, strict: bool = False) -> Container:
    """Build a container holding the global stores under their well-known keys."""
    builder = ContainerBuilder(strict=strict)
    builder.register_instance(ROUTER_STORE, global_stores.router_store)
    builder.register_instance(SITE_MAP_STORE, global_stores.site_map_store)
    builder.register_instance(PAGE_MANAGEMENT_STORE, global_stores.page_management_store)
    builder.register_instance(PAGE_COMMUNICATION_STORE, global_stores.page_communication_store)
    return builder.build()


class PageContainerFactory(Protocol):
    def create_container(
        self,
        url: str,
        route_parameters: Mapping[str, str],
        global_stores: GlobalStores,
        page_request: Any = None,
    ) -> Container:
        """Create the container for one page.

        The container resolves the global stores, `PAGE_REQUEST` (None when
        the page was navigated to directly) and `PAGE_URL`.
        """
        ...


class PageContainerFactoryBase(ABC):
    """Page container factory that chains a shared global container as parent.

    Subclasses implement `register_stores` to add their page stores:

      class ContainerFactory(PageContainerFactoryBase):
          def register_stores(self, builder, url, route_parameters):
              builder.register(lambda c: FormPageStore(c.resolve(PAGE_REQUEST)), "IFormPageStore")

    """

    def __init__(self, *, strict: bool = False) -> None:
        self._strict = strict
        self._global_stores: GlobalStores | None = None
        self._global_container: Container | None = None

    def global_container(self, global_stores: GlobalStores) -> Container:
        """Return the global container, rebuilt when different global stores are passed."""
        if self._global_container is None or self._global_stores is not global_stores:
            self._global_container = build_global_container(global_stores, strict=self._strict)
            self._global_stores = global_stores
        return self._global_container

    def create_container(
        self,
        url: str,
        route_parameters: Mapping[str, str],
        global_stores: GlobalStores,
        page_request: Any = None,
    ) -> Container:
        builder = ContainerBuilder(strict=self._strict)
        builder.add_parent_container(self.global_container(global_stores))

        builder.register_instance(PAGE_REQUEST, page_request)
        builder.register_instance(PAGE_URL, url)

        self.register_stores(builder, url, route_parameters)

        container = builder.build()
        logger.debug("Created page container for %s", url)
        return container

    @abstractmethod
    def register_stores(self, builder: ContainerBuilder, url: str, route_parameters: Mapping[str, str]) -> None:
        """Register the page's own stores on `builder`."""
