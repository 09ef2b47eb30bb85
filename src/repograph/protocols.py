"""Collaborator contracts for the view core.

These protocols define what the view core needs from:
- the repository layer (RepositoryBackend) and repository discovery (RepoManager)
- persisted state (ExtensionState) and avatar retrieval (AvatarManager)
- the host editor (HostActions, HostWindow and the surface handles it returns)

Operations that can fail return an ErrorInfo (None on success) or raise
RepositoryError; the dispatcher treats both the same way.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from repograph.config.schema import Config
    from repograph.messages.common import (
        ActionOn,
        ErrorInfo,
        GitConfigKey,
        GitConfigLocation,
        GitPushBranchMode,
        GitResetMode,
        RepoSet,
        StashRef,
        TagType,
    )

# Returned by every subscription; calling it removes the listener.
Unsubscribe = Callable[[], None]

MessageListener = Callable[[dict[str, Any]], None]


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RepoChangeEvent:
    """The set of known repositories changed."""

    repos: RepoSet
    num_repos: int
    load_repo: str | None = None  # Repository to focus, if the change implies one


@dataclass(frozen=True, slots=True)
class AvatarEvent:
    email: str
    image: str


# -----------------------------------------------------------------------------
# Repository layer
# -----------------------------------------------------------------------------


@runtime_checkable
class RepositoryBackend(Protocol):
    """Repository operations, usually thin wrappers around the git executable."""

    def is_git_executable_unknown(self) -> bool: ...

    async def repo_root(self, repo: str) -> str | None: ...

    # Queries return the data dictionary that is spread into the response.
    async def get_repo_info(
        self, repo: str, show_remote_branches: bool, show_stashes: bool, hide_remotes: list[str]
    ) -> dict[str, Any]: ...

    async def get_commits(
        self,
        repo: str,
        branches: list[str] | None,
        authors: list[str] | None,
        max_commits: int,
        show_tags: bool,
        show_remote_branches: bool,
        include_commits_mentioned_by_reflogs: bool,
        only_follow_first_parent: bool,
        commit_ordering: str,
        remotes: list[str],
        hide_remotes: list[str],
        stashes: list[StashRef],
        simplify_by_decoration: bool,
    ) -> dict[str, Any]: ...

    async def get_config(self, repo: str, remotes: list[str]) -> dict[str, Any]: ...
    async def get_commit_details(self, repo: str, commit_hash: str, has_parents: bool) -> dict[str, Any]: ...
    async def get_stash_details(self, repo: str, commit_hash: str, stash: StashRef) -> dict[str, Any]: ...
    async def get_uncommitted_details(self, repo: str) -> dict[str, Any]: ...
    async def get_commit_comparison(self, repo: str, from_hash: str, to_hash: str) -> dict[str, Any]: ...
    async def get_tag_details(self, repo: str, tag_name: str) -> dict[str, Any]: ...

    # Branches
    async def checkout_branch(self, repo: str, branch_name: str, remote_branch: str | None) -> ErrorInfo: ...
    async def create_branch(
        self, repo: str, branch_name: str, commit_hash: str, checkout: bool, force: bool
    ) -> list[ErrorInfo]: ...
    async def delete_branch(self, repo: str, branch_name: str, force_delete: bool) -> ErrorInfo: ...
    async def delete_remote_branch(self, repo: str, branch_name: str, remote: str) -> ErrorInfo: ...
    async def fetch_into_local_branch(
        self, repo: str, remote: str, remote_branch: str, local_branch: str, force: bool
    ) -> ErrorInfo: ...
    async def merge(
        self,
        repo: str,
        obj: str,
        action_on: ActionOn,
        create_new_commit: bool,
        squash: bool,
        no_commit: bool,
        allow_unrelated_histories: bool,
    ) -> ErrorInfo: ...
    async def pull_branch(
        self, repo: str, branch_name: str, remote: str, create_new_commit: bool, squash: bool
    ) -> ErrorInfo: ...
    async def push_branch(
        self,
        repo: str,
        branch_name: str,
        remote: str,
        set_upstream: bool,
        mode: GitPushBranchMode,
        no_verify: bool,
    ) -> ErrorInfo: ...
    async def push_branch_to_multiple_remotes(
        self,
        repo: str,
        branch_name: str,
        remotes: list[str],
        set_upstream: bool,
        mode: GitPushBranchMode,
        no_verify: bool,
    ) -> list[ErrorInfo]: ...
    async def rebase(
        self, repo: str, obj: str, action_on: ActionOn, ignore_date: bool, interactive: bool
    ) -> ErrorInfo: ...
    async def rename_branch(self, repo: str, old_name: str, new_name: str) -> ErrorInfo: ...

    # Commits
    async def checkout_commit(self, repo: str, commit_hash: str) -> ErrorInfo: ...
    async def cherrypick_commit(
        self, repo: str, commit_hash: str, parent_index: int, record_origin: bool, no_commit: bool
    ) -> ErrorInfo: ...
    async def drop_commit(self, repo: str, commit_hash: str) -> ErrorInfo: ...
    async def drop_commits(self, repo: str, commits: list[str]) -> ErrorInfo: ...
    async def squash_commits(self, repo: str, commits: list[str], commit_message: str) -> ErrorInfo: ...
    async def edit_commit_message(
        self, repo: str, commit_hash: str, message: str, no_verify: bool
    ) -> ErrorInfo: ...
    async def reset_to_commit(self, repo: str, commit: str, reset_mode: GitResetMode) -> ErrorInfo: ...
    async def revert_commit(self, repo: str, commit_hash: str, parent_index: int) -> ErrorInfo: ...
    async def undo_last_commit(self, repo: str) -> ErrorInfo: ...

    # Tags
    async def add_tag(
        self,
        repo: str,
        tag_name: str,
        commit_hash: str,
        type: TagType,
        message: str,
        force: bool,
    ) -> ErrorInfo: ...
    async def delete_tag(self, repo: str, tag_name: str, delete_on_remote: str | None) -> ErrorInfo: ...
    async def push_tag(
        self,
        repo: str,
        tag_name: str,
        remotes: list[str],
        commit_hash: str,
        skip_remote_check: bool,
    ) -> list[ErrorInfo]: ...

    # Remotes
    async def add_remote(
        self, repo: str, name: str, url: str, push_url: str | None, fetch: bool
    ) -> ErrorInfo: ...
    async def delete_remote(self, repo: str, name: str) -> ErrorInfo: ...
    async def edit_remote(
        self,
        repo: str,
        name_old: str,
        name_new: str,
        url_old: str | None,
        url_new: str | None,
        push_url_old: str | None,
        push_url_new: str | None,
    ) -> ErrorInfo: ...
    async def fetch(self, repo: str, remote: str | None, prune: bool, prune_tags: bool) -> ErrorInfo: ...
    async def prune_remote(self, repo: str, name: str) -> ErrorInfo: ...

    # Stashes
    async def apply_stash(self, repo: str, selector: str, reinstate_index: bool) -> ErrorInfo: ...
    async def branch_from_stash(self, repo: str, selector: str, branch_name: str) -> ErrorInfo: ...
    async def drop_stash(self, repo: str, selector: str) -> ErrorInfo: ...
    async def pop_stash(self, repo: str, selector: str, reinstate_index: bool) -> ErrorInfo: ...
    async def push_stash(self, repo: str, message: str, include_untracked: bool) -> ErrorInfo: ...

    # Working tree and configuration
    async def clean_untracked_files(self, repo: str, directories: bool) -> ErrorInfo: ...
    async def reset_file_to_revision(self, repo: str, commit_hash: str, file_path: str) -> ErrorInfo: ...
    async def set_config_value(
        self, repo: str, key: GitConfigKey, value: str, location: GitConfigLocation
    ) -> ErrorInfo: ...
    async def unset_config_value(
        self, repo: str, key: GitConfigKey, location: GitConfigLocation
    ) -> ErrorInfo: ...
    async def open_external_dir_diff(
        self, repo: str, from_hash: str, to_hash: str, is_gui: bool
    ) -> ErrorInfo: ...
    async def open_git_terminal(self, repo: str, command: str | None, name: str) -> ErrorInfo: ...
    async def archive(self, repo: str, ref: str) -> ErrorInfo: ...


@runtime_checkable
class RepoManager(Protocol):
    """Repository discovery: which repositories the workspace contains."""

    def get_repos(self) -> RepoSet: ...

    async def check_repos_exist(self) -> bool:
        """Re-verify known repositories. Returns True if the set changed.

        A change is announced through on_did_change_repos.
        """
        ...

    async def search_workspace_for_repos(self) -> bool: ...
    def set_repo_state(self, repo: str, state: dict[str, Any]) -> None: ...
    async def export_repo_config(self, repo: str) -> ErrorInfo: ...
    def on_did_change_repos(self, listener: Callable[[RepoChangeEvent], None]) -> Unsubscribe: ...


@runtime_checkable
class ExtensionState(Protocol):
    """Persisted state owned by the host."""

    def get_last_active_repo(self) -> str | None: ...
    def set_last_active_repo(self, repo: str | None) -> None: ...
    def get_global_view_state(self) -> dict[str, Any]: ...
    async def set_global_view_state(self, state: dict[str, Any]) -> ErrorInfo: ...
    def get_workspace_view_state(self) -> dict[str, Any]: ...
    async def set_workspace_view_state(self, state: dict[str, Any]) -> ErrorInfo: ...
    def is_avatar_storage_available(self) -> bool: ...
    def get_code_review(self, repo: str, review_id: str) -> dict[str, Any] | None: ...
    async def start_code_review(
        self, repo: str, review_id: str, files: list[str], last_viewed_file: str | None
    ) -> dict[str, Any]: ...
    async def update_code_review(
        self, repo: str, review_id: str, remaining_files: list[str], last_viewed_file: str | None
    ) -> ErrorInfo: ...
    def end_code_review(self, repo: str, review_id: str) -> None: ...


@runtime_checkable
class AvatarManager(Protocol):
    async def get_avatar_image(self, email: str) -> str | None: ...

    def fetch_avatar_image(
        self, email: str, repo: str, remote: str | None, commits: list[str]
    ) -> None:
        """Queue a fetch; the result arrives later through on_avatar."""
        ...

    def on_avatar(self, listener: Callable[[AvatarEvent], None]) -> Unsubscribe: ...


# -----------------------------------------------------------------------------
# Host editor
# -----------------------------------------------------------------------------


@runtime_checkable
class HostActions(Protocol):
    """Editor-side utilities reachable from the surface."""

    async def copy_file_path_to_clipboard(self, repo: str, file_path: str, absolute: bool) -> ErrorInfo: ...
    async def copy_to_clipboard(self, text: str) -> ErrorInfo: ...
    async def create_pull_request(
        self, config: dict[str, Any], source_owner: str, source_repo: str, source_branch: str
    ) -> ErrorInfo: ...
    async def open_extension_settings(self) -> ErrorInfo: ...
    async def open_external_url(self, url: str) -> ErrorInfo: ...
    async def open_file(self, repo: str, file_path: str, hash: str) -> ErrorInfo: ...
    def show_error_message(self, message: str) -> None: ...
    async def view_diff(
        self,
        repo: str,
        from_hash: str,
        to_hash: str,
        old_file_path: str,
        new_file_path: str,
        type: str,
    ) -> ErrorInfo: ...
    async def view_diff_with_working_file(self, repo: str, hash: str, file_path: str) -> ErrorInfo: ...
    async def view_file_at_revision(self, repo: str, hash: str, file_path: str) -> ErrorInfo: ...
    async def view_scm(self) -> ErrorInfo: ...


@runtime_checkable
class UISurface(Protocol):
    """The sandboxed, message-only rendering frontend."""

    html: str

    @property
    def csp_source(self) -> str: ...

    async def post_message(self, message: dict[str, Any]) -> bool: ...
    def on_did_receive_message(self, listener: MessageListener) -> Unsubscribe: ...
    def as_surface_uri(self, *path_parts: str) -> str: ...


@runtime_checkable
class PanelHandle(Protocol):
    """A floating panel created by the host."""

    surface: UISurface
    icon_path: Any

    @property
    def visible(self) -> bool: ...

    def reveal(self, column: int | None = None) -> None: ...
    def on_did_dispose(self, listener: Callable[[], None]) -> Unsubscribe: ...
    def on_did_change_view_state(self, listener: Callable[[], None]) -> Unsubscribe: ...
    def dispose(self) -> None: ...


@runtime_checkable
class DockedViewHandle(Protocol):
    """A docked view materialized by the host."""

    surface: UISurface

    @property
    def visible(self) -> bool: ...

    def show(self, preserve_focus: bool = True) -> None: ...
    def on_did_change_visibility(self, listener: Callable[[], None]) -> Unsubscribe: ...
    def on_did_dispose(self, listener: Callable[[], None]) -> Unsubscribe: ...


@runtime_checkable
class HostWindow(Protocol):
    """Host windowing API used to create and reveal view hosts."""

    def active_column(self) -> int | None: ...

    def create_panel(
        self,
        view_type: str,
        title: str,
        column: int,
        *,
        retain_context_when_hidden: bool,
        resource_roots: list[str],
    ) -> PanelHandle: ...

    async def execute_command(self, command: str) -> Any: ...


@dataclass
class ViewServices:
    """Collaborators shared by every view host."""

    backend: RepositoryBackend
    repo_manager: RepoManager
    extension_state: ExtensionState
    avatar_manager: AvatarManager
    host_actions: HostActions
    extension_path: str = "."
    config: Config | None = None  # Loaded lazily from get_config() when None
