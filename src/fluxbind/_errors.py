from __future__ import annotations


def describe(key: str, instance_name: str | None = None) -> str:
    if instance_name:
        return f"{key!r} (instance name {instance_name!r})"
    return repr(key)


class ContainerError(RuntimeError):
    """Base class for errors raised while registering, building or resolving."""


class ResolutionError(ContainerError):
    """No registration for the key, locally or in any parent container."""

    def __init__(self, key: str, instance_name: str | None = None) -> None:
        self.key = key
        self.instance_name = instance_name
        super().__init__(f"No registration found for key {describe(key, instance_name)}")


class CyclicDependencyError(ContainerError):
    """A creation rule resolved a dependency that is still being created."""

    def __init__(self, chain: list[tuple[str, str | None]]) -> None:
        self.chain = list(chain)
        path = " -> ".join(describe(key, name) for key, name in self.chain)
        super().__init__(f"Cyclic dependency detected: {path}")


class MisconfiguredRegistrationError(ContainerError):
    """Registrations that contradict each other or misuse a registration handle."""
