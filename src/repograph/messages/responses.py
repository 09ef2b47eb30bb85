"""Response and push messages sent from the backend controller to the UI surface."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import ConfigDict

from repograph.messages.common import (
    ActionOn,
    ErrorInfo,
    LoadTarget,
    ProtocolModel,
    PullAfterwards,
    RepoSet,
)


class ResponseMessage(ProtocolModel):
    command: str


class ActionResponse(ResponseMessage):
    """Reply to a single-step command."""

    error: ErrorInfo = None


class MultiStepResponse(ResponseMessage):
    """Reply to a multi-step command; errors are positional, index 0 is the primary step."""

    errors: list[ErrorInfo]


class DataResponse(ResponseMessage):
    """Reply that spreads the backend's data dictionary into the message."""

    model_config = ConfigDict(extra="allow")


# === Read queries ===


class LoadRepoInfoResponse(DataResponse):
    command: Literal["loadRepoInfo"] = "loadRepoInfo"
    refresh_id: int
    is_repo: bool
    error: ErrorInfo = None


class LoadCommitsResponse(DataResponse):
    command: Literal["loadCommits"] = "loadCommits"
    refresh_id: int
    only_follow_first_parent: bool


class LoadReposResponse(ResponseMessage):
    command: Literal["loadRepos"] = "loadRepos"
    repos: RepoSet
    last_active_repo: str | None = None
    load_view_to: LoadTarget | None = None


class LoadConfigResponse(DataResponse):
    command: Literal["loadConfig"] = "loadConfig"
    repo: str


class CommitDetailsResponse(DataResponse):
    command: Literal["commitDetails"] = "commitDetails"
    avatar: str | None = None
    code_review: dict[str, Any] | None = None
    refresh: bool = False


class CompareCommitsResponse(DataResponse):
    command: Literal["compareCommits"] = "compareCommits"
    commit_hash: str
    compare_with_hash: str
    code_review: dict[str, Any] | None = None
    refresh: bool = False


class TagDetailsResponse(DataResponse):
    command: Literal["tagDetails"] = "tagDetails"
    tag_name: str
    commit_hash: str


class StartCodeReviewResponse(DataResponse):
    command: Literal["startCodeReview"] = "startCodeReview"
    commit_hash: str
    compare_with_hash: str | None = None


# === Multi-step commands ===


class AddTagResponse(MultiStepResponse):
    command: Literal["addTag"] = "addTag"
    repo: str
    tag_name: str
    push_to_remote: str | None = None
    commit_hash: str


class CheckoutBranchResponse(MultiStepResponse):
    command: Literal["checkoutBranch"] = "checkoutBranch"
    pull_afterwards: PullAfterwards | None = None


class CherrypickCommitResponse(MultiStepResponse):
    command: Literal["cherrypickCommit"] = "cherrypickCommit"


class CreateBranchResponse(MultiStepResponse):
    command: Literal["createBranch"] = "createBranch"


class CreatePullRequestResponse(MultiStepResponse):
    command: Literal["createPullRequest"] = "createPullRequest"
    push: bool


class DeleteBranchResponse(MultiStepResponse):
    command: Literal["deleteBranch"] = "deleteBranch"
    repo: str
    branch_name: str
    delete_on_remotes: list[str]


class DeleteUserDetailsResponse(MultiStepResponse):
    command: Literal["deleteUserDetails"] = "deleteUserDetails"


class EditUserDetailsResponse(MultiStepResponse):
    command: Literal["editUserDetails"] = "editUserDetails"


class MergeResponse(MultiStepResponse):
    command: Literal["merge"] = "merge"
    action_on: ActionOn


class PushBranchResponse(MultiStepResponse):
    command: Literal["pushBranch"] = "pushBranch"
    will_update_branch_config: bool


class PushTagResponse(MultiStepResponse):
    command: Literal["pushTag"] = "pushTag"
    repo: str
    tag_name: str
    remotes: list[str]
    commit_hash: str


# === Single-step commands with pass-through fields ===


class CopyToClipboardResponse(ActionResponse):
    command: Literal["copyToClipboard"] = "copyToClipboard"
    type: str


class RebaseResponse(ActionResponse):
    command: Literal["rebase"] = "rebase"
    action_on: ActionOn
    interactive: bool


# === Pushes not tied to a request ===


class RefreshMessage(ResponseMessage):
    """Asks the surface to reload because the watched repository changed on disk."""

    command: Literal["refresh"] = "refresh"


class FetchAvatarMessage(ResponseMessage):
    command: Literal["fetchAvatar"] = "fetchAvatar"
    email: str
    image: str
