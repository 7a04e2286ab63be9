import asyncio

from linux_ha_bridge.signals import Signal


def test_callbacks_run_in_order():
    calls = []
    signal = Signal("changed")
    signal.connect(lambda value: calls.append(("a", value)))
    signal.connect(lambda value: calls.append(("b", value)))

    signal.emit(1)

    assert calls == [("a", 1), ("b", 1)]
    assert len(signal) == 2


def test_remover_disconnects():
    calls = []
    signal = Signal("changed")
    remove = signal.connect(calls.append)

    remove()
    remove()
    signal.emit(1)

    assert calls == []


def test_exception_does_not_reach_emitter():
    calls = []
    signal = Signal("changed")

    def broken(value):
        raise ValueError(value)

    signal.connect(broken)
    signal.connect(calls.append)
    signal.emit("x")

    assert calls == ["x"]


async def test_coroutine_handlers_are_scheduled():
    done = asyncio.Event()
    seen = []

    async def handler(value):
        seen.append(value)
        done.set()

    signal = Signal("changed")
    signal.connect(handler)
    signal.emit(42)

    await asyncio.wait_for(done.wait(), 1)
    assert seen == [42]


def test_coroutine_handler_without_loop_is_closed():
    async def handler():
        raise AssertionError("must not run")

    signal = Signal("changed")
    signal.connect(handler)
    signal.emit()
