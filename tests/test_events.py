"""Live event stream served at /events."""
import asyncio
import json

import pytest
from starlette.concurrency import run_in_threadpool

from courtroom import main
from courtroom.broadcaster import Event, EventType
from courtroom.main import event_stream


class ClientConnection:
    """The part of a request the event stream looks at."""

    def __init__(self):
        self.gone = False

    async def is_disconnected(self):
        return self.gone


async def collect(stream):
    return [frame async for frame in stream]


def payload(frame):
    assert frame.startswith("data: ")
    return json.loads(frame[len("data: "):])


def test_stream_frames_then_unsubscribes_on_disconnect(events):
    async def scenario():
        conn = ClientConnection()
        sub = events.subscribe()
        stream = event_stream(conn, sub, keepalive=0, poll_interval=0.01)

        assert await stream.__anext__() == "retry: 10000\n\n"
        events.publish(Event(EventType.argument, 3, {"side": "plaintiff", "text": "Rent was paid."}))
        frames = [await stream.__anext__(), await stream.__anext__()]

        conn.gone = True
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()
        return sub, frames

    sub, frames = asyncio.run(scenario())

    assert payload(frames[0]) == {
        "type": "argument", "case_id": 3, "side": "plaintiff", "text": "Rent was paid."
    }
    assert frames[1] == ": keep-alive\n\n"
    assert sub.closed
    assert len(events) == 0


def test_stream_ends_when_subscription_dropped(events):
    async def scenario():
        sub = events.subscribe()
        sub.close()
        return await collect(event_stream(ClientConnection(), sub, poll_interval=0.01))

    assert asyncio.run(scenario()) == ["retry: 10000\n\n"]
    assert len(events) == 0


def test_events_endpoint_streams_case_mutations(court):
    async def scenario():
        conn = ClientConnection()
        response = await main.events(conn, court)
        assert response.media_type == "text/event-stream"
        assert response.headers["cache-control"] == "no-cache"
        assert len(court.events) == 1

        stream = response.body_iterator
        assert await stream.__anext__() == "retry: 10000\n\n"
        await run_in_threadpool(court.create_case, "Kapoor vs Kapoor")
        frame = await stream.__anext__()
        conn.gone = True
        rest = await collect(stream)
        return frame, rest

    frame, rest = asyncio.run(scenario())

    assert payload(frame)["type"] == "case_created"
    assert payload(frame)["title"] == "Kapoor vs Kapoor"
    assert all(not f.startswith("data: ") for f in rest)
    assert len(court.events) == 0


def test_open_streams_do_not_starve_mutations(court):
    observers = 40

    async def scenario():
        conn = ClientConnection()
        tasks = [
            asyncio.ensure_future(collect(event_stream(conn, court.subscribe(), poll_interval=0.01)))
            for _ in range(observers)
        ]
        await asyncio.sleep(0.05)
        assert len(court.events) == observers

        snap = await asyncio.wait_for(
            run_in_threadpool(court.create_case, "Crowded gallery"), timeout=2
        )
        await asyncio.sleep(0.2)
        conn.gone = True
        return snap, await asyncio.wait_for(asyncio.gather(*tasks), timeout=2)

    snap, streams = asyncio.run(scenario())

    assert snap.title == "Crowded gallery"
    for frames in streams:
        assert [payload(f)["case_id"] for f in frames if f.startswith("data: ")] == [snap.id]
    assert len(court.events) == 0
