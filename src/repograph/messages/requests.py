"""Request messages sent by the UI surface to the backend controller.

Every request carries a ``command`` discriminant whose default is the
command name, so ``Model.model_fields["command"].default`` identifies it.
"""

from __future__ import annotations

from typing import Any, Literal

from repograph.messages.common import (
    ActionOn,
    GitConfigLocation,
    GitPushBranchMode,
    GitResetMode,
    ProtocolModel,
    PullAfterwards,
    StashRef,
    TagType,
)


class RequestMessage(ProtocolModel):
    command: str


class RepoRequest(RequestMessage):
    """A request scoped to one repository."""

    repo: str


# === Read queries ===


class LoadRepoInfoRequest(RepoRequest):
    command: Literal["loadRepoInfo"] = "loadRepoInfo"
    refresh_id: int
    show_remote_branches: bool = True
    show_stashes: bool = True
    hide_remotes: list[str] = []


class LoadCommitsRequest(RepoRequest):
    command: Literal["loadCommits"] = "loadCommits"
    refresh_id: int
    branches: list[str] | None = None  # None shows all branches
    authors: list[str] | None = None
    max_commits: int = 300
    show_tags: bool = True
    show_remote_branches: bool = True
    include_commits_mentioned_by_reflogs: bool = False
    only_follow_first_parent: bool = False
    commit_ordering: str = "date"
    remotes: list[str] = []
    hide_remotes: list[str] = []
    stashes: list[StashRef] = []
    simplify_by_decoration: bool = False


class LoadReposRequest(RequestMessage):
    command: Literal["loadRepos"] = "loadRepos"
    check: bool = False


class LoadConfigRequest(RepoRequest):
    command: Literal["loadConfig"] = "loadConfig"
    remotes: list[str] = []


class CommitDetailsRequest(RepoRequest):
    command: Literal["commitDetails"] = "commitDetails"
    commit_hash: str
    has_parents: bool = True
    stash: StashRef | None = None
    avatar_email: str | None = None
    refresh: bool = False


class CompareCommitsRequest(RepoRequest):
    command: Literal["compareCommits"] = "compareCommits"
    commit_hash: str
    compare_with_hash: str
    from_hash: str
    to_hash: str
    refresh: bool = False


class TagDetailsRequest(RepoRequest):
    command: Literal["tagDetails"] = "tagDetails"
    tag_name: str
    commit_hash: str


# === Branches ===


class CheckoutBranchRequest(RepoRequest):
    command: Literal["checkoutBranch"] = "checkoutBranch"
    branch_name: str
    remote_branch: str | None = None
    pull_afterwards: PullAfterwards | None = None


class CreateBranchRequest(RepoRequest):
    command: Literal["createBranch"] = "createBranch"
    branch_name: str
    commit_hash: str
    checkout: bool = False
    force: bool = False


class DeleteBranchRequest(RepoRequest):
    command: Literal["deleteBranch"] = "deleteBranch"
    branch_name: str
    force_delete: bool = False
    delete_on_remotes: list[str] = []


class DeleteRemoteBranchRequest(RepoRequest):
    command: Literal["deleteRemoteBranch"] = "deleteRemoteBranch"
    branch_name: str
    remote: str


class FetchIntoLocalBranchRequest(RepoRequest):
    command: Literal["fetchIntoLocalBranch"] = "fetchIntoLocalBranch"
    remote: str
    remote_branch: str
    local_branch: str
    force: bool = False


class MergeRequest(RepoRequest):
    command: Literal["merge"] = "merge"
    obj: str
    action_on: ActionOn
    create_new_commit: bool = False
    squash: bool = False
    no_commit: bool = False
    allow_unrelated_histories: bool = False


class PullBranchRequest(RepoRequest):
    command: Literal["pullBranch"] = "pullBranch"
    branch_name: str
    remote: str
    create_new_commit: bool = False
    squash: bool = False


class PushBranchRequest(RepoRequest):
    command: Literal["pushBranch"] = "pushBranch"
    branch_name: str
    remotes: list[str]
    set_upstream: bool = False
    mode: GitPushBranchMode = GitPushBranchMode.NORMAL
    no_verify: bool = False
    will_update_branch_config: bool = False


class RebaseRequest(RepoRequest):
    command: Literal["rebase"] = "rebase"
    obj: str
    action_on: ActionOn
    ignore_date: bool = False
    interactive: bool = False


class RenameBranchRequest(RepoRequest):
    command: Literal["renameBranch"] = "renameBranch"
    old_name: str
    new_name: str


# === Commits ===


class CheckoutCommitRequest(RepoRequest):
    command: Literal["checkoutCommit"] = "checkoutCommit"
    commit_hash: str


class CherrypickCommitRequest(RepoRequest):
    command: Literal["cherrypickCommit"] = "cherrypickCommit"
    commit_hash: str
    parent_index: int = 0
    record_origin: bool = False
    no_commit: bool = False


class DropCommitRequest(RepoRequest):
    command: Literal["dropCommit"] = "dropCommit"
    commit_hash: str


class DropCommitsRequest(RepoRequest):
    command: Literal["dropCommits"] = "dropCommits"
    commits: list[str]


class SquashCommitsRequest(RepoRequest):
    command: Literal["squashCommits"] = "squashCommits"
    commits: list[str]
    commit_message: str


class EditCommitMessageRequest(RepoRequest):
    command: Literal["editCommitMessage"] = "editCommitMessage"
    commit_hash: str
    message: str
    no_verify: bool = False


class ResetToCommitRequest(RepoRequest):
    command: Literal["resetToCommit"] = "resetToCommit"
    commit: str
    reset_mode: GitResetMode


class RevertCommitRequest(RepoRequest):
    command: Literal["revertCommit"] = "revertCommit"
    commit_hash: str
    parent_index: int = 0


class UndoLastCommitRequest(RepoRequest):
    command: Literal["undoLastCommit"] = "undoLastCommit"


class CreateArchiveRequest(RepoRequest):
    command: Literal["createArchive"] = "createArchive"
    ref: str


# === Tags ===


class AddTagRequest(RepoRequest):
    command: Literal["addTag"] = "addTag"
    tag_name: str
    commit_hash: str
    type: TagType = TagType.ANNOTATED
    message: str = ""
    push_to_remote: str | None = None
    push_skip_remote_check: bool = False
    force: bool = False


class DeleteTagRequest(RepoRequest):
    command: Literal["deleteTag"] = "deleteTag"
    tag_name: str
    delete_on_remote: str | None = None


class PushTagRequest(RepoRequest):
    command: Literal["pushTag"] = "pushTag"
    tag_name: str
    remotes: list[str]
    commit_hash: str
    skip_remote_check: bool = False


# === Remotes ===


class AddRemoteRequest(RepoRequest):
    command: Literal["addRemote"] = "addRemote"
    name: str
    url: str
    push_url: str | None = None
    fetch: bool = False


class DeleteRemoteRequest(RepoRequest):
    command: Literal["deleteRemote"] = "deleteRemote"
    name: str


class EditRemoteRequest(RepoRequest):
    command: Literal["editRemote"] = "editRemote"
    name_old: str
    name_new: str
    url_old: str | None = None
    url_new: str | None = None
    push_url_old: str | None = None
    push_url_new: str | None = None


class FetchRequest(RepoRequest):
    command: Literal["fetch"] = "fetch"
    name: str | None = None  # None fetches all remotes
    prune: bool = False
    prune_tags: bool = False


class PruneRemoteRequest(RepoRequest):
    command: Literal["pruneRemote"] = "pruneRemote"
    name: str


class CreatePullRequestRequest(RepoRequest):
    command: Literal["createPullRequest"] = "createPullRequest"
    config: dict[str, Any]
    source_remote: str
    source_owner: str
    source_repo: str
    source_branch: str
    push: bool = False


# === Stashes ===


class ApplyStashRequest(RepoRequest):
    command: Literal["applyStash"] = "applyStash"
    selector: str
    reinstate_index: bool = False


class BranchFromStashRequest(RepoRequest):
    command: Literal["branchFromStash"] = "branchFromStash"
    selector: str
    branch_name: str


class DropStashRequest(RepoRequest):
    command: Literal["dropStash"] = "dropStash"
    selector: str


class PopStashRequest(RepoRequest):
    command: Literal["popStash"] = "popStash"
    selector: str
    reinstate_index: bool = False


class PushStashRequest(RepoRequest):
    command: Literal["pushStash"] = "pushStash"
    message: str = ""
    include_untracked: bool = False


# === Working tree and repository configuration ===


class CleanUntrackedFilesRequest(RepoRequest):
    command: Literal["cleanUntrackedFiles"] = "cleanUntrackedFiles"
    directories: bool = False


class ResetFileToRevisionRequest(RepoRequest):
    command: Literal["resetFileToRevision"] = "resetFileToRevision"
    commit_hash: str
    file_path: str


class EditUserDetailsRequest(RepoRequest):
    command: Literal["editUserDetails"] = "editUserDetails"
    name: str
    email: str
    location: GitConfigLocation
    delete_local_name: bool = False
    delete_local_email: bool = False


class DeleteUserDetailsRequest(RepoRequest):
    command: Literal["deleteUserDetails"] = "deleteUserDetails"
    name: bool = False
    email: bool = False
    location: GitConfigLocation


class ExportRepoConfigRequest(RepoRequest):
    command: Literal["exportRepoConfig"] = "exportRepoConfig"


# === Code review ===


class StartCodeReviewRequest(RepoRequest):
    command: Literal["startCodeReview"] = "startCodeReview"
    id: str
    files: list[str]
    last_viewed_file: str | None = None
    commit_hash: str
    compare_with_hash: str | None = None


class UpdateCodeReviewRequest(RepoRequest):
    command: Literal["updateCodeReview"] = "updateCodeReview"
    id: str
    remaining_files: list[str]
    last_viewed_file: str | None = None


class EndCodeReviewRequest(RepoRequest):
    command: Literal["endCodeReview"] = "endCodeReview"
    id: str


# === Host editor actions ===


class CopyFilePathRequest(RepoRequest):
    command: Literal["copyFilePath"] = "copyFilePath"
    file_path: str
    absolute: bool = True


class CopyToClipboardRequest(RequestMessage):
    command: Literal["copyToClipboard"] = "copyToClipboard"
    type: str
    data: str


class OpenExtensionSettingsRequest(RequestMessage):
    command: Literal["openExtensionSettings"] = "openExtensionSettings"


class OpenExternalDirDiffRequest(RepoRequest):
    command: Literal["openExternalDirDiff"] = "openExternalDirDiff"
    from_hash: str
    to_hash: str
    is_gui: bool = False


class OpenExternalUrlRequest(RequestMessage):
    command: Literal["openExternalUrl"] = "openExternalUrl"
    url: str


class OpenFileRequest(RepoRequest):
    command: Literal["openFile"] = "openFile"
    hash: str
    file_path: str


class OpenTerminalRequest(RepoRequest):
    command: Literal["openTerminal"] = "openTerminal"
    name: str


class ShowErrorMessageRequest(RequestMessage):
    command: Literal["showErrorMessage"] = "showErrorMessage"
    message: str


class ViewDiffRequest(RepoRequest):
    command: Literal["viewDiff"] = "viewDiff"
    from_hash: str
    to_hash: str
    old_file_path: str
    new_file_path: str
    type: str


class ViewDiffWithWorkingFileRequest(RepoRequest):
    command: Literal["viewDiffWithWorkingFile"] = "viewDiffWithWorkingFile"
    hash: str
    file_path: str


class ViewFileAtRevisionRequest(RepoRequest):
    command: Literal["viewFileAtRevision"] = "viewFileAtRevision"
    hash: str
    file_path: str


class ViewScmRequest(RequestMessage):
    command: Literal["viewScm"] = "viewScm"


# === Discovery, avatars and persisted view state ===


class RescanForReposRequest(RequestMessage):
    command: Literal["rescanForRepos"] = "rescanForRepos"


class FetchAvatarRequest(RepoRequest):
    command: Literal["fetchAvatar"] = "fetchAvatar"
    remote: str | None = None
    email: str
    commits: list[str] = []


class SetGlobalViewStateRequest(RequestMessage):
    command: Literal["setGlobalViewState"] = "setGlobalViewState"
    state: dict[str, Any]


class SetWorkspaceViewStateRequest(RequestMessage):
    command: Literal["setWorkspaceViewState"] = "setWorkspaceViewState"
    state: dict[str, Any]


class SetRepoStateRequest(RepoRequest):
    command: Literal["setRepoState"] = "setRepoState"
    state: dict[str, Any]


ALL_REQUESTS: tuple[type[RequestMessage], ...] = (
    AddRemoteRequest,
    AddTagRequest,
    ApplyStashRequest,
    BranchFromStashRequest,
    CheckoutBranchRequest,
    CheckoutCommitRequest,
    CherrypickCommitRequest,
    CleanUntrackedFilesRequest,
    CommitDetailsRequest,
    CompareCommitsRequest,
    CopyFilePathRequest,
    CopyToClipboardRequest,
    CreateArchiveRequest,
    CreateBranchRequest,
    CreatePullRequestRequest,
    DeleteBranchRequest,
    DeleteRemoteBranchRequest,
    DeleteRemoteRequest,
    DeleteTagRequest,
    DeleteUserDetailsRequest,
    DropCommitRequest,
    DropCommitsRequest,
    DropStashRequest,
    EditCommitMessageRequest,
    EditRemoteRequest,
    EditUserDetailsRequest,
    EndCodeReviewRequest,
    ExportRepoConfigRequest,
    FetchAvatarRequest,
    FetchIntoLocalBranchRequest,
    FetchRequest,
    LoadCommitsRequest,
    LoadConfigRequest,
    LoadRepoInfoRequest,
    LoadReposRequest,
    MergeRequest,
    OpenExtensionSettingsRequest,
    OpenExternalDirDiffRequest,
    OpenExternalUrlRequest,
    OpenFileRequest,
    OpenTerminalRequest,
    PopStashRequest,
    PruneRemoteRequest,
    PullBranchRequest,
    PushBranchRequest,
    PushStashRequest,
    PushTagRequest,
    RebaseRequest,
    RenameBranchRequest,
    RescanForReposRequest,
    ResetFileToRevisionRequest,
    ResetToCommitRequest,
    RevertCommitRequest,
    SetGlobalViewStateRequest,
    SetRepoStateRequest,
    SetWorkspaceViewStateRequest,
    ShowErrorMessageRequest,
    SquashCommitsRequest,
    StartCodeReviewRequest,
    TagDetailsRequest,
    UndoLastCommitRequest,
    UpdateCodeReviewRequest,
    ViewDiffRequest,
    ViewDiffWithWorkingFileRequest,
    ViewFileAtRevisionRequest,
    ViewScmRequest,
)
