from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any

import pytest
from watchdog.events import DirModifiedEvent, FileModifiedEvent, FileMovedEvent

from check.watch import ProjectWatcher, _ChangeHandler


class _FakeObserver:
    def __init__(self) -> None:
        self.scheduled: list[tuple[Any, str, bool]] = []
        self.started = False
        self.stopped = False

    def schedule(self, handler: Any, path: str, recursive: bool = False) -> None:
        self.scheduled.append((handler, path, recursive))

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout: float | None = None) -> None:
        return None


def _write_project(root: Path, name: str, references: list[str] | None = None) -> Path:
    items = "".join(
        f'    <ProjectReference Include="../{ref}/{ref}.csproj" />\n' for ref in references or []
    )
    path = root / name / f"{name}.csproj"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"<Project>\n  <ItemGroup>\n{items}  </ItemGroup>\n</Project>\n", encoding="utf-8")
    return path


def test_is_relevant(tmp_path: Path) -> None:
    watcher = ProjectWatcher(tmp_path)

    assert watcher.is_relevant(tmp_path / "A" / "A.csproj")
    assert watcher.is_relevant(tmp_path / ".modulith.toml")
    assert watcher.is_relevant(tmp_path / "modulith.json")
    assert not watcher.is_relevant(tmp_path / "A" / "Handler.cs")
    assert not watcher.is_relevant(tmp_path / "A" / "obj" / "A.csproj")


def test_handler_flags_relevant_events_only(tmp_path: Path) -> None:
    watcher = ProjectWatcher(tmp_path)
    handler = _ChangeHandler(watcher)

    handler.dispatch(FileModifiedEvent(str(tmp_path / "A" / "Handler.cs")))
    handler.dispatch(DirModifiedEvent(str(tmp_path / "A")))
    assert not watcher._changed.is_set()

    handler.dispatch(FileMovedEvent(str(tmp_path / "A.tmp"), str(tmp_path / "A.csproj")))
    assert watcher._changed.is_set()


def test_revalidate_reloads_configuration_each_run(tmp_path: Path) -> None:
    _write_project(tmp_path, "Orders.Core", ["Orders.Infrastructure"])
    _write_project(tmp_path, "Orders.Infrastructure")
    results: list[int] = []
    watcher = ProjectWatcher(tmp_path, on_result=lambda r: results.append(len(r.violations)))

    watcher.revalidate()
    (tmp_path / ".modulith.toml").write_text(
        'extends = "default"\nignoredProjects = ["Orders.Core"]\n', encoding="utf-8"
    )
    watcher.revalidate()

    assert results == [1, 0]
    assert watcher.runs == 2


def test_revalidate_failure_is_logged_not_raised(tmp_path: Path) -> None:
    (tmp_path / ".modulith.toml").write_text("[broken", encoding="utf-8")
    watcher = ProjectWatcher(tmp_path)

    assert watcher.revalidate() is None
    assert watcher.last_error is not None
    assert watcher.runs == 0


def test_run_revalidates_on_change_and_stops(tmp_path: Path) -> None:
    _write_project(tmp_path, "Orders.Core")
    observer = _FakeObserver()
    second_run = threading.Event()

    def on_result(_result: Any) -> None:
        if watcher.runs >= 2:
            second_run.set()

    watcher = ProjectWatcher(
        tmp_path, settle=0.01, on_result=on_result, observer_factory=lambda: observer
    )
    thread = threading.Thread(target=watcher.run)
    thread.start()
    try:
        watcher.notify()
        assert second_run.wait(timeout=5)
    finally:
        watcher.stop()
        thread.join(timeout=5)

    assert not thread.is_alive()
    assert observer.started
    assert observer.stopped
    assert observer.scheduled[0][1] == str(tmp_path.resolve())
    assert observer.scheduled[0][2] is True


class _RecordingCheck:
    """Stand-in for run_check that records entry and exit of every call."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.events: list[str] = []
        self.active = 0
        self.max_active = 0
        self.gate: threading.Event | None = None
        self.entered = threading.Event()
        self._guard = threading.Lock()

    def __call__(self, _root: Path, _profile: str | None) -> object:
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.events.append("enter")
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        time.sleep(self.delay)
        with self._guard:
            self.events.append("exit")
            self.active -= 1
        return object()


def test_concurrent_revalidations_never_overlap(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    check = _RecordingCheck(delay=0.05)
    monkeypatch.setattr("check.watch.run_check", check)
    watcher = ProjectWatcher(tmp_path)

    threads = [threading.Thread(target=watcher.revalidate) for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert check.max_active == 1
    assert check.events == ["enter", "exit"] * 3
    assert watcher.runs == 3


def test_stop_waits_for_in_flight_revalidation(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    check = _RecordingCheck()
    monkeypatch.setattr("check.watch.run_check", check)
    watcher = ProjectWatcher(tmp_path, settle=0.01, observer_factory=_FakeObserver)

    run_thread = threading.Thread(target=watcher.run)
    run_thread.start()
    deadline = time.monotonic() + 5
    while watcher.runs < 1 and time.monotonic() < deadline:
        time.sleep(0.01)
    assert watcher.runs == 1

    check.entered.clear()
    check.gate = threading.Event()
    in_flight = threading.Thread(target=watcher.revalidate)
    in_flight.start()
    assert check.entered.wait(timeout=5)

    watcher.stop()
    run_thread.join(timeout=0.3)
    assert run_thread.is_alive()
    assert check.events[-1] == "enter"

    check.gate.set()
    in_flight.join(timeout=5)
    run_thread.join(timeout=5)

    assert not run_thread.is_alive()
    assert check.events == ["enter", "exit", "enter", "exit"]
    assert watcher.runs == 2
