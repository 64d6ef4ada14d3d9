# routers/translate.py
"""
WebSocket route for batched translation requests.

Each connection gets its own RequestDeduplicator; the server cache, the
work queue and the provider are shared process-wide via app.state.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from glossa.protocol import TRANSLATION_REQUEST, ProtocolError, request_items
from glossa.translation import RequestDeduplicator

from ._base import parse_websocket_message, send_ack

router = APIRouter()


@router.websocket("/translate")
async def translate_stream(ws: WebSocket):
    """
    WebSocket endpoint for translation_request batches.

    Replies with an ack per batch, an immediate translation_result per cache
    hit, and a translation_result per successful provider call.
    """
    await ws.accept()
    print("✅ Client connected to /ws/translate")

    state = ws.app.state
    dedup = RequestDeduplicator(
        cache=state.translation_cache,
        queue=state.work_queue,
        provider=state.provider,
        send=ws.send_json,
    )

    try:
        while True:
            try:
                msg = await parse_websocket_message(ws)
            except ProtocolError as e:
                print(f"❌ Error processing message: {e}")
                continue

            if msg["type"] == "disconnect":
                break

            elif msg["type"] == TRANSLATION_REQUEST:
                try:
                    records, errors = request_items(msg)
                except ProtocolError as e:
                    print(f"❌ Error processing message: {e}")
                    continue

                for error in errors:
                    print(f"⚠️ Skipping malformed item: {error}")

                target_lang = records[0]["targetLang"] if records else "unknown"
                print(f"📥 Received batch of {len(records)} items for language: {target_lang}")
                for record in records:
                    print(f"   - [{record['hash'][:8]}...] ({record['targetLang']}) \"{record['text']}\"")

                await send_ack(ws, len(records))
                await dedup.handle_batch(records)

            else:
                print(f"📩 Ignoring message type: {msg['type']}")

    except WebSocketDisconnect:
        print("Client disconnected: WebSocketDisconnect")
    except RuntimeError as e:
        if "disconnect message has been received" in str(e):
            print("Client disconnected: Runtime")
        else:
            print(f"WebSocket error: RuntimeError: {e}")
    except Exception as e:
        print(f"WebSocket error: {type(e).__name__}: {e}")
    finally:
        dedup.disconnect()
        print(f"❌ Client disconnected (hits={dedup.hits}, misses={dedup.misses})")
