"""Tests for hash-to-locations fan-out."""

from __future__ import annotations

from glossa.client.document import Location
from glossa.client.pending import PendingMultiplexer


class Node:
    pass


def make_multiplexer():
    applied: list[tuple[Location, str]] = []
    return PendingMultiplexer(lambda loc, text: applied.append((loc, text))), applied


def test_resolve_fans_out_to_every_waiter() -> None:
    mux, applied = make_multiplexer()
    a, b = Location.text(Node()), Location.text(Node())
    mux.register("h1", a)
    mux.register("h1", b)

    mux.resolve("h1", "Guardar")

    assert applied == [(a, "Guardar"), (b, "Guardar")]
    assert not mux.is_pending("h1")
    assert len(mux) == 0


def test_second_resolve_is_a_noop() -> None:
    mux, applied = make_multiplexer()
    mux.register("h1", Location.text(Node()))
    mux.resolve("h1", "Guardar")

    mux.resolve("h1", "Guardar")

    assert len(applied) == 1


def test_resolve_unknown_hash_is_a_noop() -> None:
    mux, applied = make_multiplexer()
    mux.resolve("missing", "x")
    assert applied == []


def test_registering_twice_keeps_one_entry() -> None:
    mux, _ = make_multiplexer()
    location = Location.text(Node())
    mux.register("h1", location)
    mux.register("h1", location)

    assert mux.waiting("h1") == [location]


def test_location_waits_on_one_hash_at_a_time() -> None:
    mux, applied = make_multiplexer()
    location = Location.text(Node())
    mux.register("old", location)
    mux.register("new", location)

    assert mux.hashes() == ["new"]
    mux.resolve("old", "stale")
    assert applied == []

    mux.resolve("new", "fresh")
    assert applied == [(location, "fresh")]


def test_attribute_and_text_on_same_node_are_separate() -> None:
    mux, _ = make_multiplexer()
    node = Node()
    mux.register("h1", Location.text(node))
    mux.register("h1", Location.attr(node, "title"))

    assert len(mux.waiting("h1")) == 2


def test_clear_drops_everything() -> None:
    mux, applied = make_multiplexer()
    mux.register("h1", Location.text(Node()))
    mux.clear()
    mux.resolve("h1", "x")
    assert applied == []
