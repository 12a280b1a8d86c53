from __future__ import annotations

from typing import Any, Callable

from navcaddy.nervous_system.connectivity import ConnectivityMonitor, ConnectivityState


class _FakeTimer:
    def __init__(self, interval: float, function: Callable[..., None], args: tuple[Any, ...] = ()) -> None:
        self.interval = interval
        self.function = function
        self.args = args
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function(*self.args)


class _Timers:
    def __init__(self) -> None:
        self.created: list[_FakeTimer] = []

    def __call__(self, interval: float, function: Callable[..., None], args: tuple[Any, ...] = ()) -> _FakeTimer:
        timer = _FakeTimer(interval, function, args)
        self.created.append(timer)
        return timer


def _monitor(timers: _Timers, **kwargs: Any) -> ConnectivityMonitor:
    return ConnectivityMonitor(500, timer_factory=timers, **kwargs)


def test_change_commits_after_debounce() -> None:
    timers = _Timers()
    monitor = _monitor(timers)
    changes: list[tuple[ConnectivityState, ConnectivityState]] = []
    monitor.subscribe(lambda prev, cur: changes.append((prev, cur)))

    monitor.report(False)
    assert monitor.state == ConnectivityState.UNKNOWN
    assert monitor.change_pending
    assert timers.created[0].interval == 0.5

    timers.created[0].fire()

    assert monitor.is_offline
    assert not monitor.change_pending
    assert changes == [(ConnectivityState.UNKNOWN, ConnectivityState.OFFLINE)]


def test_flapping_signal_never_commits() -> None:
    timers = _Timers()
    monitor = _monitor(timers, initial_state=ConnectivityState.ONLINE)

    monitor.report(False)
    monitor.report(True)

    assert timers.created[0].cancelled
    assert len(timers.created) == 1
    assert not monitor.change_pending
    timers.created[0].fire()
    assert monitor.state == ConnectivityState.ONLINE


def test_latest_signal_wins() -> None:
    timers = _Timers()
    monitor = _monitor(timers, initial_state=ConnectivityState.ONLINE)

    monitor.report(False)
    monitor.report(False)

    assert timers.created[0].cancelled
    timers.created[0].fire()
    assert monitor.state == ConnectivityState.ONLINE
    timers.created[1].fire()
    assert monitor.state == ConnectivityState.OFFLINE


def test_stop_discards_pending_change() -> None:
    timers = _Timers()
    monitor = _monitor(timers, initial_state=ConnectivityState.ONLINE)

    monitor.report(False)
    monitor.stop()
    timers.created[0].fire()

    assert monitor.state == ConnectivityState.ONLINE


def test_listener_errors_do_not_stop_other_listeners() -> None:
    timers = _Timers()
    monitor = _monitor(timers)
    seen: list[ConnectivityState] = []

    def _boom(prev: ConnectivityState, cur: ConnectivityState) -> None:
        raise RuntimeError("listener bug")

    monitor.subscribe(_boom)
    unsubscribe = monitor.subscribe(lambda prev, cur: seen.append(cur))

    monitor.report(True)
    timers.created[-1].fire()
    unsubscribe()
    monitor.report(False)
    timers.created[-1].fire()

    assert seen == [ConnectivityState.ONLINE]
    assert monitor.is_offline
