"""Shared test doubles for repograph tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from repograph.config import Config
from repograph.protocols import AvatarEvent, RepoChangeEvent, ViewServices
from repograph.watching import RepoChange

# Backend methods returning a data dictionary
_QUERY_METHODS = (
    "get_repo_info",
    "get_commits",
    "get_config",
    "get_commit_details",
    "get_stash_details",
    "get_uncommitted_details",
    "get_commit_comparison",
    "get_tag_details",
)

# Backend methods returning one outcome per remote
_LIST_METHODS = ("create_branch", "push_branch_to_multiple_remotes", "push_tag")

_ACTION_METHODS = (
    "checkout_branch",
    "delete_branch",
    "delete_remote_branch",
    "fetch_into_local_branch",
    "merge",
    "pull_branch",
    "push_branch",
    "rebase",
    "rename_branch",
    "checkout_commit",
    "cherrypick_commit",
    "drop_commit",
    "drop_commits",
    "squash_commits",
    "edit_commit_message",
    "reset_to_commit",
    "revert_commit",
    "undo_last_commit",
    "add_tag",
    "delete_tag",
    "add_remote",
    "delete_remote",
    "edit_remote",
    "fetch",
    "prune_remote",
    "apply_stash",
    "branch_from_stash",
    "drop_stash",
    "pop_stash",
    "push_stash",
    "clean_untracked_files",
    "reset_file_to_revision",
    "set_config_value",
    "unset_config_value",
    "open_external_dir_diff",
    "open_git_terminal",
    "archive",
)

_HOST_ACTIONS = (
    "copy_file_path_to_clipboard",
    "copy_to_clipboard",
    "create_pull_request",
    "open_extension_settings",
    "open_external_url",
    "open_file",
    "view_diff",
    "view_diff_with_working_file",
    "view_file_at_revision",
    "view_scm",
)


def create_mock_backend() -> MagicMock:
    """A RepositoryBackend whose every operation succeeds."""
    backend = MagicMock()
    backend.is_git_executable_unknown = MagicMock(return_value=False)
    backend.repo_root = AsyncMock(side_effect=lambda repo: repo)
    for name in _QUERY_METHODS:
        setattr(backend, name, AsyncMock(return_value={}))
    for name in _LIST_METHODS:
        setattr(backend, name, AsyncMock(return_value=[None]))
    for name in _ACTION_METHODS:
        setattr(backend, name, AsyncMock(return_value=None))
    return backend


def create_mock_extension_state() -> MagicMock:
    state = MagicMock()
    state.get_last_active_repo = MagicMock(return_value=None)
    state.set_last_active_repo = MagicMock()
    state.get_global_view_state = MagicMock(return_value={})
    state.set_global_view_state = AsyncMock(return_value=None)
    state.get_workspace_view_state = MagicMock(return_value={})
    state.set_workspace_view_state = AsyncMock(return_value=None)
    state.is_avatar_storage_available = MagicMock(return_value=True)
    state.get_code_review = MagicMock(return_value=None)
    state.start_code_review = AsyncMock(return_value={"codeReview": {"id": "review-1"}})
    state.update_code_review = AsyncMock(return_value=None)
    state.end_code_review = MagicMock()
    return state


def create_mock_host_actions() -> MagicMock:
    host = MagicMock()
    for name in _HOST_ACTIONS:
        setattr(host, name, AsyncMock(return_value=None))
    host.show_error_message = MagicMock()
    return host


class _Emitter:
    def __init__(self) -> None:
        self.listeners: list[Callable[..., Any]] = []

    def subscribe(self, listener: Callable[..., Any]) -> Callable[[], None]:
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def fire(self, *args: Any) -> None:
        for listener in list(self.listeners):
            listener(*args)


class FakeRepoManager:
    def __init__(self, repos: dict[str, dict[str, Any]] | None = None) -> None:
        self.repos = {"/work/repo": {}} if repos is None else repos
        self.changes = _Emitter()
        self.check_repos_exist = AsyncMock(return_value=False)
        self.search_workspace_for_repos = AsyncMock(return_value=True)
        self.set_repo_state = MagicMock()
        self.export_repo_config = AsyncMock(return_value=None)

    def get_repos(self) -> dict[str, dict[str, Any]]:
        return self.repos

    def on_did_change_repos(self, listener: Callable[[RepoChangeEvent], None]):
        return self.changes.subscribe(listener)

    def change_repos(self, repos: dict[str, dict[str, Any]], load_repo: str | None = None) -> None:
        self.repos = repos
        self.changes.fire(RepoChangeEvent(repos=repos, num_repos=len(repos), load_repo=load_repo))


class FakeAvatarManager:
    def __init__(self) -> None:
        self.avatars = _Emitter()
        self.get_avatar_image = AsyncMock(return_value=None)
        self.fetch_avatar_image = MagicMock()

    def on_avatar(self, listener: Callable[[AvatarEvent], None]):
        return self.avatars.subscribe(listener)


class FakeSurface:
    """UISurface that records posted messages."""

    def __init__(self, csp_source: str = "https://surface.example/base?x=1") -> None:
        self.html = ""
        self._csp_source = csp_source
        self.posted: list[dict[str, Any]] = []
        self.incoming = _Emitter()
        self.fail_posts = False
        self.accept_posts = True

    @property
    def csp_source(self) -> str:
        return self._csp_source

    async def post_message(self, message: dict[str, Any]) -> bool:
        if self.fail_posts:
            raise ConnectionError("surface went away")
        self.posted.append(message)
        return self.accept_posts

    def on_did_receive_message(self, listener):
        return self.incoming.subscribe(listener)

    def as_surface_uri(self, *path_parts: str) -> str:
        return "surface://ext/" + "/".join(path_parts)

    def emit(self, message: dict[str, Any]) -> None:
        """Simulate a message arriving from the surface script."""
        self.incoming.fire(message)

    def commands(self) -> list[str]:
        return [m["command"] for m in self.posted]


class FakeHost:
    """Minimal SurfaceHost for driving a ViewCore directly."""

    def __init__(self, surface: FakeSurface | None = None, visible: bool = True) -> None:
        self.surface = surface or FakeSurface()
        self.visible = visible


class FakeWatcher:
    def __init__(self, repo: Path) -> None:
        self.repo = repo
        self.callback: Callable[[RepoChange], None] | None = None
        self.stopped = False

    def start(self, callback: Callable[[RepoChange], None]) -> None:
        self.callback = callback

    def stop(self) -> None:
        self.stopped = True

    def fire(self, *paths: str) -> None:
        assert self.callback is not None, "watcher was never started"
        self.callback(RepoChange(repo=self.repo, paths=[Path(p) for p in paths]))


class FakeWatcherFactory:
    def __init__(self) -> None:
        self.created: list[FakeWatcher] = []

    def __call__(self, repo: Path) -> FakeWatcher:
        watcher = FakeWatcher(repo)
        self.created.append(watcher)
        return watcher

    @property
    def latest(self) -> FakeWatcher:
        return self.created[-1]


def create_services(
    repos: dict[str, dict[str, Any]] | None = None, config: Config | None = None
) -> ViewServices:
    return ViewServices(
        backend=create_mock_backend(),
        repo_manager=FakeRepoManager(repos),
        extension_state=create_mock_extension_state(),
        avatar_manager=FakeAvatarManager(),
        host_actions=create_mock_host_actions(),
        extension_path="/ext",
        config=config or Config(),
    )
