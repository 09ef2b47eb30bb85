"""Mute/unmute coordination around the watcher of the focused repository."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from repograph.logging import get_logger
from repograph.watching.watcher import RepoChange, RepoFileWatcher

if TYPE_CHECKING:
    from repograph.config.schema import FileWatchConfig

log = get_logger("watching")


class FileWatcher(Protocol):
    """What the coordinator needs from a watcher."""

    def start(self, callback: Callable[[RepoChange], None]) -> None: ...
    def stop(self) -> None: ...


WatcherFactory = Callable[[Path], FileWatcher]


class FileWatchCoordinator:
    """Owns the single watched-repository slot of one view host.

    Every command dispatch runs inside ``muted()`` so that the command's own
    filesystem side effects do not produce a refresh on top of the command's
    response. Changes seen while muted are dropped, not deferred.

    Attributes:
        resume_delay: Seconds after ``unmute()`` during which changes are still
            dropped, for tools whose writes land after the command returns.
    """

    def __init__(
        self,
        on_change: Callable[[], None],
        *,
        watcher_factory: WatcherFactory | None = None,
        resume_delay: float = 0.0,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._on_change = on_change
        self._watcher_factory: WatcherFactory = watcher_factory or RepoFileWatcher
        self.resume_delay = resume_delay
        self._enabled = enabled
        self._clock = clock

        self._repo: Path | None = None
        self._watcher: FileWatcher | None = None
        self._muted = False
        self._resume_at = 0.0

    @classmethod
    def from_config(
        cls, on_change: Callable[[], None], config: FileWatchConfig
    ) -> FileWatchCoordinator:
        def factory(repo: Path) -> FileWatcher:
            return RepoFileWatcher(
                repo,
                poll_interval=config.poll_interval,
                ignore_dirs=config.ignore_dirs,
                max_files=config.max_files,
            )

        return cls(
            on_change,
            watcher_factory=factory,
            resume_delay=config.resume_delay,
            enabled=config.enabled,
        )

    @property
    def watched_repo(self) -> Path | None:
        return self._repo

    @property
    def is_muted(self) -> bool:
        return self._muted

    def start(self, repo: str | Path) -> None:
        """Watch ``repo``, replacing any repository watched before."""
        if self._watcher is not None:
            self.stop()
        if not self._enabled:
            log.debug("File watching disabled, not watching %s", repo)
            return

        self._repo = Path(repo)
        self._watcher = self._watcher_factory(self._repo)
        self._watcher.start(self._handle_change)
        log.info("Watching repository %s", self._repo)

    def stop(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        self._repo = None

    def mute(self) -> None:
        self._muted = True

    def unmute(self) -> None:
        self._muted = False
        self._resume_at = self._clock() + self.resume_delay

    @contextmanager
    def muted(self) -> Iterator[None]:
        """Mute for the duration of the block; always unmutes on exit."""
        self.mute()
        try:
            yield
        finally:
            self.unmute()

    def notify_change(self, paths: Iterable[Path] = ()) -> bool:
        """Forward a change unless muted.

        Returns:
            True if ``on_change`` was called.
        """
        if self._muted or self._clock() < self._resume_at:
            log.debug("Ignoring change while muted: %s", [str(p) for p in paths])
            return False
        self._on_change()
        return True

    def _handle_change(self, change: RepoChange) -> None:
        self.notify_change(change.paths)
