"""Repository file watching using polling.

Polling is preferred over native file watchers for cross-platform
reliability. Each poll cycle compares a snapshot of modification times
against the previous one and reports every changed path in a single batch,
so a burst of writes (a checkout, a rebase) becomes one notification.
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from repograph.logging import get_logger

log = get_logger("watching")

# Files inside .git whose changes mean the repository state moved.
GIT_METADATA_FILES = ("HEAD", "index", "config", "packed-refs")
GIT_REFS_DIR = "refs"

# Snapshot entry: (mtime, size)
_Stat = tuple[float, int]


@dataclass
class RepoChange:
    """A batch of changes detected in one poll cycle."""

    repo: Path
    paths: list[Path]
    timestamp: float = field(default_factory=time.time)


class RepoFileWatcher:
    """Watches one repository's working tree and ref metadata for changes.

    Example:
        watcher = RepoFileWatcher(Path("/work/project"), poll_interval=0.75)
        watcher.start(lambda change: print(len(change.paths), "changed"))
        ...
        watcher.stop()
    """

    def __init__(
        self,
        repo: str | Path,
        poll_interval: float = 0.75,
        ignore_dirs: Iterable[str] = (),
        max_files: int = 20000,
    ) -> None:
        self._repo = Path(repo)
        self._poll_interval = max(0.1, poll_interval)
        self._ignore_dirs = frozenset(ignore_dirs)
        self._max_files = max_files

        self._snapshot: dict[Path, _Stat] = {}
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def repo(self) -> Path:
        return self._repo

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @poll_interval.setter
    def poll_interval(self, value: float) -> None:
        self._poll_interval = max(0.1, value)  # Minimum 100ms

    @property
    def watched_count(self) -> int:
        return len(self._snapshot)

    def take_snapshot(self) -> dict[Path, _Stat]:
        """Stat every tracked file under the repository.

        Inside .git only HEAD, index, config, packed-refs and refs/** are
        tracked; everything else there is churn from git's own bookkeeping.
        """
        snapshot: dict[Path, _Stat] = {}

        for path in self._iter_tracked_files():
            if len(snapshot) >= self._max_files:
                log.warning(
                    "Watch limit of %d files reached in %s", self._max_files, self._repo
                )
                break
            try:
                stat = path.stat()
            except FileNotFoundError:
                continue
            except OSError as e:
                log.warning("Error checking %s: %s", path, e)
                continue
            snapshot[path] = (stat.st_mtime, stat.st_size)

        return snapshot

    def _iter_tracked_files(self) -> Iterable[Path]:
        git_dir = self._repo / ".git"
        for name in GIT_METADATA_FILES:
            yield git_dir / name
        for root, _dirs, files in os.walk(git_dir / GIT_REFS_DIR):
            for name in files:
                yield Path(root) / name

        for root, dirs, files in os.walk(self._repo):
            # Prune in place so os.walk never descends into ignored trees
            dirs[:] = [d for d in dirs if d != ".git" and d not in self._ignore_dirs]
            for name in files:
                yield Path(root) / name

    def check_changes(self) -> list[Path]:
        """Compare against the previous snapshot.

        Returns:
            Paths that were created, modified, or deleted since the last check.
        """
        current = self.take_snapshot()
        previous = self._snapshot
        self._snapshot = current

        changed = [path for path, stat in current.items() if previous.get(path) != stat]
        changed.extend(path for path in previous if path not in current)
        return changed

    def start(self, callback: Callable[[RepoChange], None]) -> None:
        """Start the polling loop as a background task.

        Must be called from within a running event loop.
        """
        if self._running:
            log.warning("Watcher for %s already running", self._repo)
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop(callback))

    async def _poll_loop(self, callback: Callable[[RepoChange], None]) -> None:
        # Scans run in a worker thread, off the event loop
        try:
            self._snapshot = await asyncio.to_thread(self.take_snapshot)
            log.debug(
                "Watching %s (%d files, interval %.2fs)",
                self._repo,
                len(self._snapshot),
                self._poll_interval,
            )

            while self._running:
                await asyncio.sleep(self._poll_interval)
                if not self._running:
                    break

                changed = await asyncio.to_thread(self.check_changes)
                if not changed:
                    continue
                try:
                    callback(RepoChange(repo=self._repo, paths=changed))
                except Exception:
                    log.exception("Error in repository change callback")
        except asyncio.CancelledError:
            log.debug("Watcher for %s cancelled", self._repo)
        finally:
            self._running = False

    def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = None
        log.debug("Watcher for %s stopped", self._repo)

    def is_running(self) -> bool:
        return self._running
