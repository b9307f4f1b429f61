"""Tests for the in-memory event sink and the WebSocket broadcaster."""

from datetime import datetime, timedelta
import json

import pytest
import pytest_asyncio

from agentflow.events import InMemoryEventSink, RunBroadcaster, event_message, record_best_effort


class FakeWebSocket:

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_text(self, text):
        if self.fail:
            raise ConnectionError("socket closed")
        self.sent.append(json.loads(text))


class BrokenSink(InMemoryEventSink):

    async def record(self, event_type, details, run_id=None):
        raise IOError("disk full")


@pytest_asyncio.fixture
async def sink():
    sink = InMemoryEventSink()
    await sink.record("workflow_start", {"n": 1}, "run-a")
    await sink.record("workflow_step", {"n": 2}, "run-a")
    await sink.record("workflow_start", {"n": 3}, "run-b")
    await sink.record("workflow_complete", {"n": 4}, "run-a")
    return sink


class TestInMemoryEventSink:

    @pytest.mark.asyncio
    async def test_logs_are_newest_first_and_filterable(self, sink):
        assert [e.details["n"] for e in sink.get_logs()] == [4, 3, 2, 1]
        assert [e.details["n"] for e in sink.get_logs(event_type="workflow_start")] == [3, 1]
        assert [e.details["n"] for e in sink.get_logs(run_id="run-a", limit=2)] == [4, 2]
        assert [e.details["n"] for e in sink.get_logs_by_event_type("workflow_start", limit=1)] == [3]

    @pytest.mark.asyncio
    async def test_run_logs_are_oldest_first(self, sink):
        assert [e.event_type for e in sink.get_run_logs("run-a")] == [
            "workflow_start", "workflow_step", "workflow_complete"
        ]

    @pytest.mark.asyncio
    async def test_stats_cover_last_day(self, sink):
        sink.events[0] = sink.events[0].model_copy(update={"created_at": datetime.now() - timedelta(days=2)})

        assert sink.get_log_stats() == {"workflow_start": 1, "workflow_step": 1, "workflow_complete": 1}

    @pytest.mark.asyncio
    async def test_delete_old_logs(self, sink):
        sink.events[0] = sink.events[0].model_copy(update={"created_at": datetime.now() - timedelta(days=45)})

        assert await sink.delete_old_logs(30) == 1
        assert await sink.delete_old_logs(30) == 0
        assert len(sink.events) == 3

    @pytest.mark.asyncio
    async def test_listeners_see_events_and_failures_are_ignored(self):
        sink = InMemoryEventSink()
        seen = []

        async def broken(event):
            raise RuntimeError("listener down")

        async def collect(event):
            seen.append(event.event_type)

        sink.subscribe(broken)
        sink.subscribe(collect)
        await sink.record("workflow_start", {}, "run-a")
        sink.unsubscribe(collect)
        await sink.record("workflow_step", {}, "run-a")

        assert seen == ["workflow_start"]
        assert len(sink.events) == 2

    @pytest.mark.asyncio
    async def test_record_best_effort_swallows_sink_errors(self):
        assert await record_best_effort(BrokenSink(), "workflow_step", {}, "run-a") is None

        event = await record_best_effort(InMemoryEventSink(), "workflow_step", {"a": 1}, "run-a")
        assert event.workflow_run_id == "run-a"


class TestRunBroadcaster:

    @pytest.mark.asyncio
    async def test_broadcast_only_to_watchers_of_the_run(self):
        broadcaster = RunBroadcaster()
        watcher, other = FakeWebSocket(), FakeWebSocket()
        broadcaster.add_connection("run-a", watcher)
        broadcaster.add_connection("run-b", other)
        sink = InMemoryEventSink()
        sink.subscribe(broadcaster.broadcast)

        event = await sink.record("workflow_step", {"step": 1}, "run-a")
        await sink.record("workflow_start", {}, None)

        assert watcher.sent == [json.loads(json.dumps(event_message(event), default=str))]
        assert watcher.sent[0]["type"] == "log"
        assert other.sent == []

    @pytest.mark.asyncio
    async def test_failed_socket_is_dropped(self):
        broadcaster = RunBroadcaster()
        good, bad = FakeWebSocket(), FakeWebSocket(fail=True)
        broadcaster.add_connection("run-a", good)
        broadcaster.add_connection("run-a", bad)
        sink = InMemoryEventSink()
        sink.subscribe(broadcaster.broadcast)

        await sink.record("workflow_step", {}, "run-a")

        assert len(good.sent) == 1
        assert broadcaster.connection_count() == 1

    def test_remove_last_connection_cleans_up(self):
        broadcaster = RunBroadcaster()
        socket = FakeWebSocket()
        broadcaster.add_connection("run-a", socket)

        broadcaster.remove_connection("run-a", socket)
        broadcaster.remove_connection("run-a", socket)

        assert broadcaster.connections == {}
        assert broadcaster.connection_count() == 0

    @pytest.mark.asyncio
    async def test_attach_catches_up_then_streams_without_duplicates(self):
        broadcaster = RunBroadcaster()
        sink = InMemoryEventSink()
        sink.subscribe(broadcaster.broadcast)
        await sink.record("workflow_start", {}, "run-a")

        class BusySocket(FakeWebSocket):
            async def send_text(self, text):
                await super().send_text(text)
                if len(self.sent) == 1:
                    await sink.record("workflow_step", {"step": 1}, "run-a")

        socket = BusySocket()
        replayed = await broadcaster.attach("run-a", socket, lambda: sink.get_run_logs("run-a"))
        await sink.record("workflow_complete", {}, "run-a")

        assert replayed == 2
        assert [m["event_type"] for m in socket.sent] == ["workflow_start", "workflow_step", "workflow_complete"]
        assert len({m["id"] for m in socket.sent}) == 3
