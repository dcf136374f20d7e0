"""Continuous revalidation on descriptor and configuration changes."""

from __future__ import annotations

import logging
import threading
from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING, Any

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from check.pipeline import run_check
from rules.config import ConfigError
from rules.loader import CONFIG_FILENAMES
from scan.files import BUILD_OUTPUT_DIRS, DEFAULT_PROJECT_PATTERNS

if TYPE_CHECKING:
    from collections.abc import Callable

    from check.pipeline import CheckResult

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_SECONDS = 0.1
_POLL_SECONDS = 0.1
_WATCHED_EVENTS = frozenset({"created", "modified", "deleted", "moved"})


class _ChangeHandler(FileSystemEventHandler):
    """Flags the watcher whenever a relevant file changes."""

    def __init__(self, watcher: ProjectWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: Any) -> None:
        if event.is_directory or event.event_type not in _WATCHED_EVENTS:
            return
        paths = [event.src_path, getattr(event, "dest_path", "") or ""]
        relevant = [p for p in paths if p and self._watcher.is_relevant(p)]
        if relevant:
            logger.info("%s: %s", event.event_type.capitalize(), relevant[-1])
            self._watcher.notify()


class ProjectWatcher:
    """Reruns the check pipeline whenever watched files change.

    Runs are serialized through one lock. Each run waits ``settle`` seconds
    first so that editors can finish writing, then reloads the configuration
    from disk. :meth:`stop` ends :meth:`run` promptly.
    """

    def __init__(
        self,
        root: Path,
        *,
        profile: str | None = None,
        settle: float = DEFAULT_SETTLE_SECONDS,
        on_result: Callable[[CheckResult], None] | None = None,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.profile = profile
        self.settle = settle
        self.on_result = on_result
        self.observer_factory = observer_factory
        self.runs = 0
        self.last_error: Exception | None = None

        self._lock = threading.Lock()
        self._changed = threading.Event()
        self._stop = threading.Event()

    def is_relevant(self, path: str | Path) -> bool:
        """Return True for descriptors and configuration documents."""
        candidate = Path(path)
        if any(part.lower() in BUILD_OUTPUT_DIRS for part in candidate.parts[:-1]):
            return False
        name = candidate.name
        if name in CONFIG_FILENAMES:
            return True
        return any(fnmatch(name.lower(), pat) for pat in DEFAULT_PROJECT_PATTERNS)

    def notify(self) -> None:
        self._changed.set()

    def stop(self) -> None:
        self._stop.set()

    def revalidate(self) -> CheckResult | None:
        """Run one check; failures are logged and never raised."""
        with self._lock:
            try:
                result = run_check(self.root, self.profile)
            except (ConfigError, NotADirectoryError, OSError) as exc:
                logger.error("Validation error: %s", exc)
                self.last_error = exc
                return None

            self.runs += 1
            self.last_error = None
            if self.on_result is not None:
                self.on_result(result)
            return result

    def run(self) -> None:
        """Validate once, then revalidate on every change until stopped."""
        self.revalidate()

        observer = self.observer_factory()
        observer.schedule(_ChangeHandler(self), str(self.root), recursive=True)
        observer.start()
        logger.info("Watching %s for changes", self.root)

        try:
            while not self._stop.is_set():
                if not self._changed.wait(timeout=_POLL_SECONDS):
                    continue
                self._changed.clear()
                if self._stop.wait(timeout=self.settle):
                    break
                self.revalidate()
        finally:
            observer.stop()
            observer.join()
            # An in-flight revalidate() from another thread finishes first.
            with self._lock:
                logger.info("Watch mode stopped")


__all__ = ["DEFAULT_SETTLE_SECONDS", "ProjectWatcher"]
