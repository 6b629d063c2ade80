"""
File-change observation for watch mode.

Uses a watchdog polling observer with a fixed interval. Watchdog delivers
events on its own thread; they are filtered against the current watch set
and forwarded to the event loop with ``call_soon_threadsafe``, so the
supervisor's callback always runs on the loop.
"""

from __future__ import annotations

import asyncio
import os
import threading
from pathlib import Path
from typing import Callable, Iterable, Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers.polling import PollingObserver

from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_RELEVANT_EVENTS = {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}

ChangeCallback = Callable[[Path], None]


class WatchSetHandler(FileSystemEventHandler):
    """Forwards events of one watch-set generation to the watcher."""

    def __init__(self, watcher: FileWatcher, generation: int):
        super().__init__()
        self.watcher = watcher
        self.generation = generation

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _RELEVANT_EVENTS:
            return
        self.watcher.notify(self.generation, event.src_path, getattr(event, "dest_path", ""))


class FileWatcher:
    """
    Watches a set of files by polling their directories.

    ``clear()`` starts a new generation: events still in flight for the
    previous watch set are dropped, so a cleared set never fires.
    """

    def __init__(self, interval: float = 0.5, observer_factory: Optional[Callable[[], object]] = None):
        self.interval = interval
        self._observer_factory = observer_factory or (lambda: PollingObserver(timeout=interval))
        self._observer = None
        self._lock = threading.Lock()
        self._watched: frozenset[Path] = frozenset()
        self._generation = 0
        self._handler: WatchSetHandler | None = None
        self._scheduled_dirs: set[Path] = set()
        self._callback: ChangeCallback | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False

    @property
    def watched(self) -> frozenset[Path]:
        return self._watched

    def start(self, on_change: ChangeCallback, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Bind the change callback to the running event loop."""
        self._loop = loop or asyncio.get_running_loop()
        self._callback = on_change

    def watch(self, paths: Iterable[Path]) -> None:
        """Add paths to the watch set and make sure their directories are polled."""
        new_paths = frozenset(Path(p) for p in paths)
        with self._lock:
            if self._closed:
                return
            self._watched = self._watched | new_paths
            if self._handler is None:
                self._handler = WatchSetHandler(self, self._generation)
            handler = self._handler

        observer = self._ensure_observer()
        for directory in sorted({path.parent for path in new_paths} - self._scheduled_dirs):
            observer.schedule(handler, str(directory), recursive=False)
            self._scheduled_dirs.add(directory)

        logger.debug("watch_set_armed", files=len(self._watched), directories=len(self._scheduled_dirs))

    def clear(self) -> None:
        """Stop observing every path; pending events of the old set are discarded."""
        with self._lock:
            self._generation += 1
            self._watched = frozenset()
            self._handler = None
        if self._observer is not None:
            self._observer.unschedule_all()
        self._scheduled_dirs.clear()
        logger.debug("watch_set_cleared")

    def stop(self) -> None:
        """Stop polling for good; later ``watch()`` calls are ignored."""
        with self._lock:
            self._closed = True
        self.clear()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def notify(self, generation: int, *raw_paths) -> None:
        """Called from the observer thread for every relevant event."""
        with self._lock:
            if generation != self._generation:
                return
            watched = self._watched

        for raw in raw_paths:
            if not raw:
                continue
            path = Path(os.fsdecode(raw))
            if path in watched:
                self._dispatch(path)
                return

    def _dispatch(self, path: Path) -> None:
        if self._loop is None or self._callback is None:
            logger.debug("change_without_listener", path=str(path))
            return
        logger.debug("watched_file_changed", path=str(path))
        try:
            self._loop.call_soon_threadsafe(self._callback, path)
        except RuntimeError:
            # Loop already closed during shutdown
            logger.debug("change_after_loop_closed", path=str(path))

    def _ensure_observer(self):
        if self._observer is None:
            self._observer = self._observer_factory()
            self._observer.start()
        return self._observer
