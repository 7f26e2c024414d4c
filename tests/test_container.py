import itertools
from typing import Protocol, runtime_checkable

import pytest

from fluxbind import Container, ContainerBuilder, Key, ResolutionError


class Counter:
    _ids = itertools.count(1)

    def __init__(self) -> None:
        self.id = next(self._ids)


def test_resolve_unregistered_key_raises_resolution_error():
    c = ContainerBuilder().build()
    with pytest.raises(ResolutionError) as ctx:
        c.resolve("IUnknown")
    assert ctx.value.key == "IUnknown"
    assert ctx.value.instance_name is None
    assert "'IUnknown'" in str(ctx.value)


def test_resolution_error_names_the_instance_name():
    c = ContainerBuilder().build()
    with pytest.raises(ResolutionError) as ctx:
        c.resolve("IUnknown", "alt")
    assert ctx.value.instance_name == "alt"
    assert "'alt'" in str(ctx.value)


def test_resolution_error_is_a_runtime_error():
    with pytest.raises(RuntimeError):
        ContainerBuilder().build().resolve("IUnknown")


def test_resolve_returns_same_instance_on_repeated_calls():
    builder = ContainerBuilder()
    builder.register(lambda _: Counter(), "IFoo")
    c = builder.build()

    first = c.resolve("IFoo")
    second = c.resolve("IFoo")
    assert second is first


def test_rule_is_not_invoked_until_first_resolve():
    calls = []
    builder = ContainerBuilder()
    builder.register(lambda _: calls.append("created") or Counter(), "IFoo")
    c = builder.build()

    assert calls == []
    c.resolve("IFoo")
    c.resolve("IFoo")
    assert calls == ["created"]


def test_named_registration_is_distinct_from_default():
    builder = ContainerBuilder()
    builder.register(lambda _: Counter(), "IFoo")
    builder.register(lambda _: Counter(), "IFoo").named("alt")
    c = builder.build()

    default = c.resolve("IFoo")
    alt = c.resolve("IFoo", "alt")
    assert alt is not default
    assert c.resolve("IFoo") is default
    assert c.resolve("IFoo", "alt") is alt


def test_default_rule_creates_independent_singleton_per_instance_name():
    created = []

    def make(_):
        counter = Counter()
        created.append(counter)
        return counter

    builder = ContainerBuilder()
    builder.register(make, "IFoo")
    c = builder.build()

    one = c.resolve("IFoo", "one")
    two = c.resolve("IFoo", "two")
    assert one is not two
    assert c.resolve("IFoo", "one") is one
    assert c.resolve("IFoo", "two") is two
    assert len(created) == 2


def test_empty_instance_name_means_default():
    builder = ContainerBuilder()
    builder.register(lambda _: Counter(), "IFoo")
    c = builder.build()

    assert c.resolve("IFoo", "") is c.resolve("IFoo")


def test_named_only_registration_does_not_serve_default():
    builder = ContainerBuilder()
    builder.register(lambda _: Counter(), "IFoo").named("alt")
    c = builder.build()

    assert isinstance(c.resolve("IFoo", "alt"), Counter)
    with pytest.raises(ResolutionError):
        c.resolve("IFoo")


def test_collection_resolves_in_registration_order():
    builder = ContainerBuilder()
    builder.register(lambda _: "r1", "IPlugin").in_collection()
    builder.register(lambda _: "r2", "IPlugin").in_collection()
    builder.register(lambda _: "r3", "IPlugin").in_collection()
    c = builder.build()

    assert c.resolve("IPlugin") == ["r1", "r2", "r3"]


def test_collection_members_are_singletons():
    builder = ContainerBuilder()
    builder.register(lambda _: Counter(), "IPlugin").in_collection()
    builder.register(lambda _: Counter(), "IPlugin").in_collection()
    c = builder.build()

    first = c.resolve("IPlugin")
    second = c.resolve("IPlugin")
    assert first is not second
    assert all(a is b for a, b in zip(first, second))


def test_collection_members_per_instance_name():
    builder = ContainerBuilder()
    builder.register(lambda _: Counter(), "IPlugin").in_collection()
    c = builder.build()

    [default] = c.resolve("IPlugin")
    [named] = c.resolve("IPlugin", "tab-1")
    assert default is not named


def test_creation_rule_receives_resolving_container():
    seen = []
    builder = ContainerBuilder()
    builder.register(lambda c: seen.append(c) or "db", "db")
    builder.register(lambda c: ("repo", c.resolve("db")), "repo")
    c = builder.build()

    assert c.resolve("repo") == ("repo", "db")
    assert seen == [c]


def test_none_instances_are_cached():
    calls = []
    builder = ContainerBuilder()
    builder.register(lambda _: calls.append(1), "IPageRequest")
    c = builder.build()

    assert c.resolve("IPageRequest") is None
    assert c.resolve("IPageRequest") is None
    assert calls == [1]


def test_errors_raised_by_rules_propagate_and_are_not_cached():
    attempts = []

    def make(_):
        attempts.append(1)
        msg = "boom"
        raise ValueError(msg)

    builder = ContainerBuilder()
    builder.register(make, "IFoo")
    c = builder.build()

    with pytest.raises(ValueError, match="boom"):
        c.resolve("IFoo")
    with pytest.raises(ValueError, match="boom"):
        c.resolve("IFoo")
    assert len(attempts) == 2


def test_try_resolve_returns_default_on_miss():
    c = ContainerBuilder().build()
    sentinel = object()
    assert c.try_resolve("IUnknown") is None
    assert c.try_resolve("IUnknown", default=sentinel) is sentinel


def test_try_resolve_does_not_hide_nested_resolution_errors():
    builder = ContainerBuilder()
    builder.register(lambda c: c.resolve("IMissing"), "IFoo")
    c = builder.build()

    with pytest.raises(ResolutionError) as ctx:
        c.try_resolve("IFoo")
    assert ctx.value.key == "IMissing"


def test_contains_and_keys():
    builder = ContainerBuilder()
    builder.register(lambda _: 1, "a")
    builder.register(lambda _: 2, "b").named("x")
    c = builder.build()

    assert "a" in c
    assert Key("a") in c
    assert "b" not in c
    assert c.can_resolve("b", "x")
    assert "" not in c
    assert 42 not in c
    assert list(c.keys()) == ["a", "b"]


def test_invalid_key_raises_value_error():
    c = ContainerBuilder().build()
    with pytest.raises(ValueError):
        c.resolve("")
    with pytest.raises(ValueError):
        Key("")


def test_concrete_counter_scenario():
    builder = ContainerBuilder()
    builder.register(lambda _: Counter(), "IFoo")
    builder.register(lambda _: Counter(), "IFoo").named("alt")
    c = builder.build()

    counter = c.resolve("IFoo")
    assert c.resolve("IFoo") is counter
    assert c.resolve("IFoo").id == counter.id
    assert c.resolve("IFoo", "alt") is not counter


class TestTypedKeys:
    class Store: ...

    class OtherStore: ...

    def test_string_and_key_address_same_registration(self):
        key = Key("IStore", self.Store)
        builder = ContainerBuilder()
        builder.register(lambda _: self.Store(), key)
        c = builder.build()

        assert c.resolve(key) is c.resolve("IStore")

    def test_typed_key_rejects_wrong_instance_type(self):
        key = Key("IStore", self.Store)
        builder = ContainerBuilder()
        builder.register(lambda _: self.OtherStore(), "IStore")
        c = builder.build()

        with pytest.raises(TypeError):
            c.resolve(key)
        # untyped access is unchecked
        assert isinstance(c.resolve("IStore"), self.OtherStore)

    def test_typed_key_checks_each_collection_member(self):
        key = Key("IStore", self.Store)
        builder = ContainerBuilder()
        builder.register(lambda _: self.Store(), key).in_collection()
        builder.register(lambda _: self.OtherStore(), key).in_collection()
        c = builder.build()

        with pytest.raises(TypeError):
            c.resolve(key)

    def test_runtime_checkable_protocol_is_checked(self):
        @runtime_checkable
        class Readable(Protocol):
            def read(self) -> str: ...

        class Good:
            def read(self) -> str:
                return "ok"

        builder = ContainerBuilder()
        builder.register(lambda _: Good(), "good")
        builder.register(lambda _: object(), "bad")
        c = builder.build()

        assert c.resolve(Key("good", Readable)).read() == "ok"
        with pytest.raises(TypeError):
            c.resolve(Key("bad", Readable))

    def test_plain_protocol_is_not_checked(self):
        class Readable(Protocol):
            def read(self) -> str: ...

        builder = ContainerBuilder()
        builder.register(lambda _: object(), "bad")
        c = builder.build()

        assert c.resolve(Key("bad", Readable)) is not None

    def test_keys_compare_by_name(self):
        assert Key("IStore", self.Store) == Key("IStore")
        assert str(Key("IStore")) == "IStore"


def test_container_without_registrations():
    c = Container()
    assert list(c.keys()) == []
    assert c.parents == ()
