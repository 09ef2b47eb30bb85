"""File watching for the repository currently open in a view.

A polling watcher detects changes to the focused repository; the
coordinator mutes it while a command is running so the command's own
side effects do not trigger a redundant refresh.
"""

from repograph.watching.coordinator import FileWatchCoordinator, FileWatcher
from repograph.watching.watcher import RepoChange, RepoFileWatcher

__all__ = [
    "FileWatchCoordinator",
    "FileWatcher",
    "RepoChange",
    "RepoFileWatcher",
]
