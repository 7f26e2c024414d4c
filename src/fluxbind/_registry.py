from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from ._errors import MisconfiguredRegistrationError, describe


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    CreationRule = Callable[[Any], object]


@dataclass
class Binding:
    """Where one registered rule goes within its key: a name, or the collection."""

    rule: CreationRule
    name: str | None = None
    collection: bool = False


@dataclass
class Entry:
    """Creation rules registered under one key.

    An entry is either single (a default rule plus named rules) or a
    collection (an ordered list of rules), never both.
    """

    default: CreationRule | None = None
    named: dict[str, CreationRule] = field(default_factory=dict)
    collection: list[CreationRule] | None = None

    @property
    def is_collection(self) -> bool:
        return self.collection is not None

    def lookup(self, name: str | None) -> CreationRule | None:
        """Return the rule serving `name`: its named rule, else the default."""
        if name is not None and name in self.named:
            return self.named[name]
        return self.default

    def peek(self, name: str | None) -> CreationRule | None:
        if name is None:
            return self.default
        return self.named.get(name)

    def put(self, name: str | None, rule: CreationRule) -> None:
        if name is None:
            self.default = rule
        else:
            self.named[name] = rule


class RegistrationMap:
    """Insertion-ordered mapping from key to the bindings registered under it.

    Bindings stay mutable until `snapshot`, which folds them into one `Entry`
    per key. Later bindings for the same key and name replace earlier ones;
    with `strict` they raise `MisconfiguredRegistrationError` instead.
    """

    def __init__(self, *, strict: bool = False) -> None:
        self._bindings: dict[str, list[Binding]] = {}
        self._strict = strict

    def bind(self, key: str, binding: Binding) -> None:
        self._bindings.setdefault(key, []).append(binding)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in self._bindings

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def snapshot(self) -> Mapping[str, Entry]:
        """Read-only entries for every key, detached from later edits."""
        return MappingProxyType({key: self._fold(key, bindings) for key, bindings in self._bindings.items()})

    def _fold(self, key: str, bindings: list[Binding]) -> Entry:
        singles = [binding for binding in bindings if not binding.collection]
        members = [binding for binding in bindings if binding.collection]

        if singles and members:
            msg = f"Key {key!r} mixes single and collection registrations."
            raise MisconfiguredRegistrationError(msg)

        if members:
            return Entry(collection=[binding.rule for binding in members])

        entry = Entry()
        for binding in singles:
            if entry.peek(binding.name) is not None:
                if self._strict:
                    msg = f"Key {describe(key, binding.name)} is already registered."
                    raise MisconfiguredRegistrationError(msg)
                logger.warning("Overwriting registration for key %s", describe(key, binding.name))
            entry.put(binding.name, binding.rule)
        return entry
