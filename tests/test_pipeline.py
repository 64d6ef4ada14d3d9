"""End-to-end tests for the client pipeline against a fake server connection."""

from __future__ import annotations

import asyncio
import gc

from conftest import FakeConnection, FakeConnector, FakeDocument, FakeNode, FakeSleep, settle

from glossa.client.classifier import TRANSLATION_MARKER
from glossa.client.coalescer import ManualTimer
from glossa.client.pipeline import TranslationPipeline, mark
from glossa.client.soup import SoupDocument
from glossa.config import Settings
from glossa.protocol import build_result
from glossa.utils.hashing import content_hash

SAVE_ES = content_hash("Save", "es")


def make_pipeline(document, connections, **kwargs):
    timer = ManualTimer()
    pipeline = TranslationPipeline(
        document,
        target_lang="es",
        url="ws://test/ws/translate",
        timer=timer,
        connect=FakeConnector(connections),
        sleep=FakeSleep(),
        **kwargs,
    )
    return pipeline, timer


def test_mark_is_idempotent() -> None:
    assert mark("Guardar") == TRANSLATION_MARKER + "Guardar"
    assert mark(mark("Guardar")) == TRANSLATION_MARKER + "Guardar"


def test_identical_text_is_requested_once_and_fanned_out() -> None:
    async def scenario():
        conn = FakeConnection()
        document = SoupDocument("<div><button>Save</button><p><span>Save</span></p></div>")
        pipeline, _ = make_pipeline(document, [conn])

        items = await pipeline.start()
        await settle(lambda: conn.sent)

        # Both locations show the placeholder while waiting
        placeholder = document.html().count(TRANSLATION_MARKER + "Save")
        conn.push(build_result(SAVE_ES, "Save", "Guardar"))
        await settle(lambda: pipeline.is_idle)
        await pipeline.stop()
        return conn, document, pipeline, items, placeholder

    conn, document, pipeline, items, placeholder = asyncio.run(scenario())

    assert len(items) == 2
    assert placeholder == 2
    assert conn.requested_hashes == [SAVE_ES]
    assert document.soup.button.string == TRANSLATION_MARKER + "Guardar"
    assert document.soup.span.string == TRANSLATION_MARKER + "Guardar"
    assert pipeline.cache.get(SAVE_ES) == TRANSLATION_MARKER + "Guardar"


def test_cached_text_is_written_without_a_request() -> None:
    async def scenario():
        conn = FakeConnection()
        document = FakeDocument({"a": "Save"})
        pipeline, timer = make_pipeline(document, [conn])
        pipeline.cache.set(SAVE_ES, mark("Guardar"))

        await pipeline.start()
        await settle()
        await pipeline.stop()
        return conn, document, pipeline

    conn, document, pipeline = asyncio.run(scenario())

    assert conn.sent == []
    assert document.text_of("a") == TRANSLATION_MARKER + "Guardar"
    assert pipeline.stats()["cache_hits"] == 1
    assert len(pipeline.pending) == 0


def test_mutations_are_coalesced_and_requested() -> None:
    async def scenario():
        conn = FakeConnection()
        document = SoupDocument("<main><h1>Welcome</h1></main>")
        pipeline, timer = make_pipeline(document, [conn])

        await pipeline.start()
        await settle(lambda: len(conn.sent) == 1)

        document.insert(document.soup.main, "<p>Cancel</p>")
        document.insert(document.soup.main, '<input type="text" placeholder="Search here">')
        assert conn.sent[-1]["payload"][0]["text"] == "Welcome"

        timer.advance(0.1)
        await pipeline.drain()
        await settle(lambda: len(conn.sent) == 2)
        stats = pipeline.stats()
        await pipeline.stop()
        return conn, stats

    conn, stats = asyncio.run(scenario())

    assert [r["text"] for r in conn.sent[1]["payload"]] == ["Cancel", "Search here"]
    assert stats["processed_locations"] == 3
    assert stats["pending_hashes"] == 3


def test_written_translations_are_not_picked_up_again() -> None:
    async def scenario():
        conn = FakeConnection()
        document = SoupDocument("<p>Hello there</p>")
        pipeline, timer = make_pipeline(document, [conn])
        await pipeline.start()
        await settle(lambda: conn.sent)

        conn.push(build_result(content_hash("Hello there", "es"), "Hello there", "Hola"))
        await settle(lambda: pipeline.is_idle)
        rescanned = await pipeline.rescan()

        # A script replacing the text with a translated string is not re-requested
        document.replace_text(document.soup.p.string, mark("Hola"))
        timer.advance(0.1)
        await pipeline.drain()
        await settle()
        await pipeline.stop()
        return conn, rescanned

    conn, rescanned = asyncio.run(scenario())

    assert rescanned == []
    assert len(conn.sent) == 1


def test_set_language_requests_again_in_new_language() -> None:
    async def scenario():
        conn = FakeConnection()
        document = FakeDocument({"a": "Save"})
        pipeline, _ = make_pipeline(document, [conn])
        await pipeline.start()
        await settle(lambda: conn.sent)

        pipeline.set_language("fr")
        document.nodes["b"] = FakeNode("b", "Save")
        await pipeline.scan()
        await settle(lambda: len(conn.sent) == 2)
        await pipeline.stop()
        return conn, pipeline

    conn, pipeline = asyncio.run(scenario())

    assert conn.requested_hashes == [SAVE_ES, content_hash("Save", "fr")]
    assert conn.sent[1]["payload"][0]["targetLang"] == "fr"
    assert pipeline.cache.target_lang == "fr"


def test_custom_translations_rewrite_matching_locations() -> None:
    document = FakeDocument({"a": "Save", "b": "Save", "c": "Cancel"})
    pipeline, _ = make_pipeline(document, [])

    written = pipeline.apply_custom_translations([(SAVE_ES, "Guardar!")])

    assert written == 2
    assert document.text_of("a") == document.text_of("b") == "Guardar!"
    assert document.text_of("c") == "Cancel"
    assert pipeline.cache.get(SAVE_ES) == "Guardar!"


def test_translations_table_lists_pending_and_done() -> None:
    async def scenario():
        conn = FakeConnection()
        document = FakeDocument({"a": "Save", "c": "Cancel"})
        pipeline, _ = make_pipeline(document, [conn])
        await pipeline.start()
        await settle(lambda: conn.sent)
        conn.push(build_result(SAVE_ES, "Save", "Guardar"))
        await settle(lambda: len(pipeline.pending) == 1)
        table = pipeline.translations()
        status = pipeline.socket_status()
        await pipeline.stop()
        return table, status

    table, status = asyncio.run(scenario())

    assert {row["original"]: row["translation"] for row in table} == {
        "Save": TRANSLATION_MARKER + "Guardar",
        "Cancel": "(Pending)",
    }
    assert status == {
        "connected": True,
        "queue_size": 0,
        "sent_count": 2,
        "url": "ws://test/ws/translate",
    }


def reconnect_scenario(resend_on_reconnect: bool):
    async def scenario():
        first, second = FakeConnection(), FakeConnection()
        document = FakeDocument({"a": "Save"})
        pipeline, _ = make_pipeline(document, [first, second], resend_on_reconnect=resend_on_reconnect)
        await pipeline.start()
        await settle(lambda: first.sent)

        first.drop()
        await settle(lambda: pipeline.transport.connections == 2)
        await settle()
        await pipeline.stop()
        return second

    return asyncio.run(scenario())


def test_unresolved_requests_are_not_resent_by_default() -> None:
    second = reconnect_scenario(resend_on_reconnect=False)
    assert second.sent == []


def test_unresolved_requests_resent_when_enabled() -> None:
    second = reconnect_scenario(resend_on_reconnect=True)
    assert second.requested_hashes == [SAVE_ES]


def test_result_for_removed_location_is_harmless() -> None:
    async def scenario():
        conn = FakeConnection()
        document = SoupDocument("<div><p>Goodbye</p><p>Goodbye</p></div>")
        pipeline, _ = make_pipeline(document, [conn])
        await pipeline.start()
        await settle(lambda: conn.sent)

        first, second = document.soup.find_all("p")
        document.remove(first)
        conn.push(build_result(content_hash("Goodbye", "es"), "Goodbye", "Adiós"))
        await settle(lambda: pipeline.is_idle)
        await pipeline.stop()
        return document, second

    document, second = asyncio.run(scenario())

    assert second.string == TRANSLATION_MARKER + "Adiós"
    assert document.html().count("Adiós") == 1


def test_from_settings_applies_configuration() -> None:
    settings = Settings(target_language="de", debounce_ms=250, cache_size=7, server_url="ws://x/ws/translate")
    pipeline = TranslationPipeline.from_settings(FakeDocument({}), settings)

    assert pipeline.target_lang == "de"
    assert pipeline.coalescer.delay == 0.25
    assert pipeline.cache.max_size == 7
    assert pipeline.transport.url == "ws://x/ws/translate"


def test_removed_nodes_leave_the_processed_registry() -> None:
    async def scenario():
        document = SoupDocument("<main><h1>Welcome</h1></main>")
        pipeline, timer = make_pipeline(document, [])
        pipeline.cache.set(content_hash("Row item", "es"), mark("Fila"))
        document.observe(pipeline.notify)
        await pipeline.scan()

        for _ in range(200):
            [row] = document.insert(document.soup.main, "<p>Row item</p>")
            timer.advance(0.1)
            await pipeline.drain()
            document.remove(row)
        del row
        gc.collect()
        return pipeline.stats(), document.walk()

    stats, remaining = asyncio.run(scenario())

    assert len(remaining) == 1
    assert stats["cache_hits"] == 200
    assert stats["processed_locations"] == 1


def test_reapplying_a_cached_translation_changes_nothing() -> None:
    async def scenario():
        document = SoupDocument("<div><button>Save</button><p>Save</p></div>")
        pipeline, _ = make_pipeline(document, [])
        pipeline.cache.set(SAVE_ES, mark("Guardar"))

        items = await pipeline.scan()
        once = document.html()
        for item in items:
            pipeline.dispatch(item)
        return items, once, document.html()

    items, once, twice = asyncio.run(scenario())

    assert len(items) == 2
    assert once.count(TRANSLATION_MARKER + "Guardar") == 2
    assert twice == once


def test_repeated_result_changes_nothing() -> None:
    async def scenario():
        document = SoupDocument("<div><button>Save</button><p>Save</p></div>")
        pipeline, _ = make_pipeline(document, [])

        await pipeline.scan()
        pipeline.handle_result(SAVE_ES, "Guardar")
        once = document.html()
        pipeline.handle_result(SAVE_ES, "Guardar")
        return once, document.html()

    once, twice = asyncio.run(scenario())

    assert once == f"<div><button>{TRANSLATION_MARKER}Guardar</button><p>{TRANSLATION_MARKER}Guardar</p></div>"
    assert twice == once
