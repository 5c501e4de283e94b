"""Tests for the in-process event dispatcher."""

from __future__ import annotations

import pytest

from thread_merge.services.events import EventDispatcher, ThreadsMerged


class TestEventDispatcher:
    """Test suite for EventDispatcher."""

    async def test_dispatches_to_listeners_in_order(self):
        dispatcher = EventDispatcher()
        calls = []

        async def first(event):
            calls.append(("first", event))

        async def second(event):
            calls.append(("second", event))

        dispatcher.listen(ThreadsMerged, first)
        dispatcher.listen(ThreadsMerged, second)
        event = ThreadsMerged(actor=None)

        await dispatcher.dispatch(event)

        assert calls == [("first", event), ("second", event)]

    async def test_ignores_other_event_types(self):
        dispatcher = EventDispatcher()
        calls = []

        async def listener(event):
            calls.append(event)

        dispatcher.listen(str, listener)

        await dispatcher.dispatch(ThreadsMerged(actor=None))

        assert calls == []

    async def test_no_listeners(self):
        await EventDispatcher().dispatch(ThreadsMerged(actor=None))

    async def test_failing_listener_stops_dispatch(self):
        dispatcher = EventDispatcher()
        calls = []

        async def broken(event):
            raise RuntimeError("listener failed")

        async def after(event):
            calls.append(event)

        dispatcher.listen(ThreadsMerged, broken)
        dispatcher.listen(ThreadsMerged, after)

        with pytest.raises(RuntimeError, match="listener failed"):
            await dispatcher.dispatch(ThreadsMerged(actor=None))

        assert calls == []

    def test_listeners_for_returns_copy(self):
        dispatcher = EventDispatcher()

        async def listener(event):
            pass

        dispatcher.listen(ThreadsMerged, listener)
        listeners = dispatcher.listeners_for(ThreadsMerged)
        listeners.clear()

        assert dispatcher.listeners_for(ThreadsMerged) == [listener]
        assert dispatcher.listeners_for(str) == []
