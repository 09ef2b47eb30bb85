"""Command dispatch for messages received from the UI surface.

Each request command maps to exactly one handler in ``HANDLERS``. A handler
calls its collaborators and sends at most one response; the dispatcher wraps
every handler in the watcher's mute window.

Multi-step commands share one policy, ``run_gated``: the primary step(s)
run first, and the follow-up steps only run if every primary step
succeeded. Follow-ups are attempted independently of each other, and their
outcomes are appended in call order, so index 0 of an error list is always
the primary step.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

from repograph.errors import ProtocolError, RepositoryError
from repograph.logging import get_logger
from repograph.messages import requests as rq
from repograph.messages import responses as rs
from repograph.messages.common import (
    UNCOMMITTED,
    ErrorInfo,
    GitConfigKey,
    GitConfigLocation,
    GitPushBranchMode,
)
from repograph.messages.registry import REQUEST_TYPES, parse_request
from repograph.view.correlator import QueryKind

if TYPE_CHECKING:
    from repograph.view.core import ViewCore

log = get_logger("dispatch")

NO_REPOS_FOUND_MSG = "No Git repositories were found in the current workspace."

_R = TypeVar("_R", bound=rq.RequestMessage)

Handler = Callable[["CommandDispatcher", Any], Awaitable[None]]
FollowUp = Callable[[], Awaitable[ErrorInfo | list[ErrorInfo]]]

HANDLERS: dict[str, Handler] = {}


def handles(command: str) -> Callable[[Handler], Handler]:
    """Register a dispatcher method as the handler for ``command``."""

    def register(fn: Handler) -> Handler:
        if command in HANDLERS:
            raise RuntimeError(f"Duplicate handler for {command!r}")
        HANDLERS[command] = fn
        return fn

    return register


# -----------------------------------------------------------------------------
# Step outcome helpers
# -----------------------------------------------------------------------------


def _failure(e: Exception) -> str:
    """ErrorInfo for a collaborator call that raised."""
    if not isinstance(e, RepositoryError):
        log.warning("Collaborator call failed: %s: %s", type(e).__name__, e, exc_info=True)
    return str(e) or type(e).__name__


async def attempt_one(operation: Awaitable[ErrorInfo]) -> ErrorInfo:
    """Await a single backend step, turning any failure into its ErrorInfo."""
    try:
        return await operation
    except Exception as e:
        return _failure(e)


async def attempt(operation: Awaitable[ErrorInfo | list[ErrorInfo]]) -> list[ErrorInfo]:
    """Await a backend step that may report one or several outcomes."""
    try:
        outcome = await operation
    except Exception as e:
        return [_failure(e)]
    return list(outcome) if isinstance(outcome, list) else [outcome]


async def run_gated(primary: list[ErrorInfo], follow_ups: Iterable[FollowUp]) -> list[ErrorInfo]:
    """Run ``follow_ups`` in order only if every primary outcome succeeded.

    Args:
        primary: Outcomes of the already-awaited primary step(s).
        follow_ups: Zero-argument callables creating each follow-up step.
            They are only called when the gate opens.

    Returns:
        The positional error list: the primary outcomes, then one or more
        entries per follow-up.
    """
    errors = list(primary)
    if any(error is not None for error in errors):
        return errors
    for step in follow_ups:
        errors.extend(await attempt(step()))
    return errors


async def query(operation: Awaitable[dict[str, Any]]) -> dict[str, Any]:
    """Await a data query; a failure becomes ``{"error": message}``."""
    try:
        return dict(await operation)
    except Exception as e:
        return {"error": _failure(e)}


async def _avatar_or_none(lookup: Awaitable[str | None] | None) -> str | None:
    if lookup is None:
        return None
    try:
        return await lookup
    except Exception as e:
        log.warning("Avatar lookup failed: %s", e)
        return None


class CommandDispatcher:
    """Routes inbound requests to handlers and sends their responses.

    The dispatcher belongs to one ViewCore and reaches every collaborator
    through it, so both view host variants share the same behavior.
    """

    def __init__(self, core: ViewCore) -> None:
        self._core = core
        services = core.services
        self._backend = services.backend
        self._repo_manager = services.repo_manager
        self._state = services.extension_state
        self._avatars = services.avatar_manager
        self._host = services.host_actions

    async def handle_raw(self, data: Any) -> None:
        """Decode and dispatch a wire message; undecodable messages are logged and dropped."""
        with self._core.watch.muted():
            try:
                request = parse_request(data)
            except ProtocolError as e:
                log.warning("Dropping message from view: %s", e)
                return
            await self._run(request)

    async def handle(self, request: rq.RequestMessage) -> None:
        """Dispatch one request inside the watcher mute window.

        Operation failures are reported inside the response. Anything else a
        handler raises is logged here; the mute window is released regardless.
        """
        with self._core.watch.muted():
            await self._run(request)

    async def _run(self, request: rq.RequestMessage) -> None:
        handler = HANDLERS.get(request.command)
        if handler is None:
            log.warning("No handler for command %r", request.command)
            return
        try:
            await handler(self, request)
        except Exception:
            log.exception("Unexpected error while handling %r", request.command)

    async def _send(self, message: rs.ResponseMessage) -> None:
        await self._core.send_message(message)

    async def _reply(self, request: rq.RequestMessage, operation: Awaitable[ErrorInfo]) -> None:
        await self._send(
            rs.ActionResponse(command=request.command, error=await attempt_one(operation))
        )

    # =========================================================================
    # Read queries
    # =========================================================================

    @handles("loadRepoInfo")
    async def _load_repo_info(self, msg: rq.LoadRepoInfoRequest) -> None:
        refresh_id = self._core.correlator.next_id(QueryKind.REPO_INFO, msg.refresh_id)
        info = await query(
            self._backend.get_repo_info(
                msg.repo, msg.show_remote_branches, msg.show_stashes, msg.hide_remotes
            )
        )

        is_repo = True
        if info.get("error"):
            # A repository deleted from disk is expected, not an error
            is_repo = await self._is_repo_root(msg.repo)
            if not is_repo:
                info["error"] = None

        await self._send(
            rs.LoadRepoInfoResponse.model_validate(
                {**info, "refreshId": refresh_id, "isRepo": is_repo}
            )
        )

        # A view hidden while the query ran must not restart its watcher
        lifecycle = self._core.lifecycle
        if lifecycle.is_visible and msg.repo != lifecycle.current_repo:
            lifecycle.current_repo = msg.repo
            self._state.set_last_active_repo(msg.repo)
            self._core.watch.start(msg.repo)

    async def _is_repo_root(self, repo: str) -> bool:
        try:
            return await self._backend.repo_root(repo) is not None
        except Exception as e:
            log.debug("Repository root lookup failed for %s: %s", repo, e)
            return False

    @handles("loadCommits")
    async def _load_commits(self, msg: rq.LoadCommitsRequest) -> None:
        # Unlike loadRepoInfo, a failure here is reported without probing
        # whether the repository still exists.
        refresh_id = self._core.correlator.next_id(QueryKind.COMMITS, msg.refresh_id)
        data = await query(
            self._backend.get_commits(
                msg.repo,
                msg.branches,
                msg.authors,
                msg.max_commits,
                msg.show_tags,
                msg.show_remote_branches,
                msg.include_commits_mentioned_by_reflogs,
                msg.only_follow_first_parent,
                msg.commit_ordering,
                msg.remotes,
                msg.hide_remotes,
                msg.stashes,
                msg.simplify_by_decoration,
            )
        )
        await self._send(
            rs.LoadCommitsResponse.model_validate(
                {
                    **data,
                    "refreshId": refresh_id,
                    "onlyFollowFirstParent": msg.only_follow_first_parent,
                }
            )
        )

    @handles("loadRepos")
    async def _load_repos(self, msg: rq.LoadReposRequest) -> None:
        # When the check finds changes, the repository-change event answers instead
        if not msg.check or not await self._repos_changed_on_check():
            await self._core.respond_load_repos(self._repo_manager.get_repos(), None)

    async def _repos_changed_on_check(self) -> bool:
        try:
            return await self._repo_manager.check_repos_exist()
        except Exception as e:
            log.warning("Repository check failed: %s", e)
            return False

    @handles("loadConfig")
    async def _load_config(self, msg: rq.LoadConfigRequest) -> None:
        data = await query(self._backend.get_config(msg.repo, msg.remotes))
        await self._send(rs.LoadConfigResponse.model_validate({**data, "repo": msg.repo}))

    @handles("commitDetails")
    async def _commit_details(self, msg: rq.CommitDetailsRequest) -> None:
        if msg.commit_hash == UNCOMMITTED:
            details = self._backend.get_uncommitted_details(msg.repo)
        elif msg.stash is None:
            details = self._backend.get_commit_details(msg.repo, msg.commit_hash, msg.has_parents)
        else:
            details = self._backend.get_stash_details(msg.repo, msg.commit_hash, msg.stash)

        avatar_lookup = (
            self._avatars.get_avatar_image(msg.avatar_email)
            if msg.avatar_email is not None
            else None
        )
        data, avatar = await asyncio.gather(query(details), _avatar_or_none(avatar_lookup))

        code_review = (
            self._state.get_code_review(msg.repo, msg.commit_hash)
            if msg.commit_hash != UNCOMMITTED
            else None
        )
        await self._send(
            rs.CommitDetailsResponse.model_validate(
                {**data, "avatar": avatar, "codeReview": code_review, "refresh": msg.refresh}
            )
        )

    @handles("compareCommits")
    async def _compare_commits(self, msg: rq.CompareCommitsRequest) -> None:
        data = await query(
            self._backend.get_commit_comparison(msg.repo, msg.from_hash, msg.to_hash)
        )
        code_review = (
            self._state.get_code_review(msg.repo, f"{msg.from_hash}-{msg.to_hash}")
            if msg.to_hash != UNCOMMITTED
            else None
        )
        await self._send(
            rs.CompareCommitsResponse.model_validate(
                {
                    **data,
                    "commitHash": msg.commit_hash,
                    "compareWithHash": msg.compare_with_hash,
                    "codeReview": code_review,
                    "refresh": msg.refresh,
                }
            )
        )

    @handles("tagDetails")
    async def _tag_details(self, msg: rq.TagDetailsRequest) -> None:
        data = await query(self._backend.get_tag_details(msg.repo, msg.tag_name))
        await self._send(
            rs.TagDetailsResponse.model_validate(
                {**data, "tagName": msg.tag_name, "commitHash": msg.commit_hash}
            )
        )

    # =========================================================================
    # Multi-step commands
    # =========================================================================

    @handles("addTag")
    async def _add_tag(self, msg: rq.AddTagRequest) -> None:
        primary = await attempt_one(
            self._backend.add_tag(
                msg.repo, msg.tag_name, msg.commit_hash, msg.type, msg.message, msg.force
            )
        )
        follow_ups: list[FollowUp] = []
        if msg.push_to_remote is not None:
            remote = msg.push_to_remote
            follow_ups.append(
                lambda: self._backend.push_tag(
                    msg.repo, msg.tag_name, [remote], msg.commit_hash, msg.push_skip_remote_check
                )
            )
        await self._send(
            rs.AddTagResponse(
                repo=msg.repo,
                tag_name=msg.tag_name,
                push_to_remote=msg.push_to_remote,
                commit_hash=msg.commit_hash,
                errors=await run_gated([primary], follow_ups),
            )
        )

    @handles("deleteBranch")
    async def _delete_branch(self, msg: rq.DeleteBranchRequest) -> None:
        primary = await attempt_one(
            self._backend.delete_branch(msg.repo, msg.branch_name, msg.force_delete)
        )
        follow_ups = [self._delete_on_remote(msg, remote) for remote in msg.delete_on_remotes]
        await self._send(
            rs.DeleteBranchResponse(
                repo=msg.repo,
                branch_name=msg.branch_name,
                delete_on_remotes=msg.delete_on_remotes,
                errors=await run_gated([primary], follow_ups),
            )
        )

    def _delete_on_remote(self, msg: rq.DeleteBranchRequest, remote: str) -> FollowUp:
        return lambda: self._backend.delete_remote_branch(msg.repo, msg.branch_name, remote)

    @handles("editUserDetails")
    async def _edit_user_details(self, msg: rq.EditUserDetailsRequest) -> None:
        # Both values are always set; the local unsets only follow if both succeeded
        primary = [
            await attempt_one(
                self._backend.set_config_value(
                    msg.repo, GitConfigKey.USER_NAME, msg.name, msg.location
                )
            ),
            await attempt_one(
                self._backend.set_config_value(
                    msg.repo, GitConfigKey.USER_EMAIL, msg.email, msg.location
                )
            ),
        ]
        follow_ups: list[FollowUp] = []
        if msg.delete_local_name:
            follow_ups.append(
                lambda: self._backend.unset_config_value(
                    msg.repo, GitConfigKey.USER_NAME, GitConfigLocation.LOCAL
                )
            )
        if msg.delete_local_email:
            follow_ups.append(
                lambda: self._backend.unset_config_value(
                    msg.repo, GitConfigKey.USER_EMAIL, GitConfigLocation.LOCAL
                )
            )
        await self._send(rs.EditUserDetailsResponse(errors=await run_gated(primary, follow_ups)))

    @handles("deleteUserDetails")
    async def _delete_user_details(self, msg: rq.DeleteUserDetailsRequest) -> None:
        errors: list[ErrorInfo] = []
        if msg.name:
            errors.append(
                await attempt_one(
                    self._backend.unset_config_value(msg.repo, GitConfigKey.USER_NAME, msg.location)
                )
            )
        if msg.email:
            errors.append(
                await attempt_one(
                    self._backend.unset_config_value(
                        msg.repo, GitConfigKey.USER_EMAIL, msg.location
                    )
                )
            )
        await self._send(rs.DeleteUserDetailsResponse(errors=errors))

    @handles("checkoutBranch")
    async def _checkout_branch(self, msg: rq.CheckoutBranchRequest) -> None:
        primary = await attempt_one(
            self._backend.checkout_branch(msg.repo, msg.branch_name, msg.remote_branch)
        )
        follow_ups: list[FollowUp] = []
        pull = msg.pull_afterwards
        if pull is not None:
            follow_ups.append(
                lambda: self._backend.pull_branch(
                    msg.repo, pull.branch_name, pull.remote, pull.create_new_commit, pull.squash
                )
            )
        await self._send(
            rs.CheckoutBranchResponse(
                pull_afterwards=pull, errors=await run_gated([primary], follow_ups)
            )
        )

    @handles("cherrypickCommit")
    async def _cherrypick_commit(self, msg: rq.CherrypickCommitRequest) -> None:
        primary = await attempt_one(
            self._backend.cherrypick_commit(
                msg.repo, msg.commit_hash, msg.parent_index, msg.record_origin, msg.no_commit
            )
        )
        follow_ups = [self._host.view_scm] if msg.no_commit else []
        await self._send(
            rs.CherrypickCommitResponse(errors=await run_gated([primary], follow_ups))
        )

    @handles("merge")
    async def _merge(self, msg: rq.MergeRequest) -> None:
        primary = await attempt_one(
            self._backend.merge(
                msg.repo,
                msg.obj,
                msg.action_on,
                msg.create_new_commit,
                msg.squash,
                msg.no_commit,
                msg.allow_unrelated_histories,
            )
        )
        follow_ups = [self._host.view_scm] if msg.no_commit else []
        await self._send(
            rs.MergeResponse(
                action_on=msg.action_on, errors=await run_gated([primary], follow_ups)
            )
        )

    @handles("createPullRequest")
    async def _create_pull_request(self, msg: rq.CreatePullRequestRequest) -> None:
        primary: ErrorInfo = None
        if msg.push:
            primary = await attempt_one(
                self._backend.push_branch(
                    msg.repo,
                    msg.source_branch,
                    msg.source_remote,
                    True,
                    GitPushBranchMode.NORMAL,
                    False,
                )
            )
        errors = await run_gated(
            [primary],
            [
                lambda: self._host.create_pull_request(
                    msg.config, msg.source_owner, msg.source_repo, msg.source_branch
                )
            ],
        )
        await self._send(rs.CreatePullRequestResponse(push=msg.push, errors=errors))

    @handles("createBranch")
    async def _create_branch(self, msg: rq.CreateBranchRequest) -> None:
        errors = await attempt(
            self._backend.create_branch(
                msg.repo, msg.branch_name, msg.commit_hash, msg.checkout, msg.force
            )
        )
        await self._send(rs.CreateBranchResponse(errors=errors))

    @handles("pushBranch")
    async def _push_branch(self, msg: rq.PushBranchRequest) -> None:
        errors = await attempt(
            self._backend.push_branch_to_multiple_remotes(
                msg.repo, msg.branch_name, msg.remotes, msg.set_upstream, msg.mode, msg.no_verify
            )
        )
        await self._send(
            rs.PushBranchResponse(
                will_update_branch_config=msg.will_update_branch_config, errors=errors
            )
        )

    @handles("pushTag")
    async def _push_tag(self, msg: rq.PushTagRequest) -> None:
        errors = await attempt(
            self._backend.push_tag(
                msg.repo, msg.tag_name, msg.remotes, msg.commit_hash, msg.skip_remote_check
            )
        )
        await self._send(
            rs.PushTagResponse(
                repo=msg.repo,
                tag_name=msg.tag_name,
                remotes=msg.remotes,
                commit_hash=msg.commit_hash,
                errors=errors,
            )
        )

    # =========================================================================
    # Single-step repository commands
    # =========================================================================

    @handles("addRemote")
    async def _add_remote(self, msg: rq.AddRemoteRequest) -> None:
        await self._reply(
            msg, self._backend.add_remote(msg.repo, msg.name, msg.url, msg.push_url, msg.fetch)
        )

    @handles("applyStash")
    async def _apply_stash(self, msg: rq.ApplyStashRequest) -> None:
        await self._reply(msg, self._backend.apply_stash(msg.repo, msg.selector, msg.reinstate_index))

    @handles("branchFromStash")
    async def _branch_from_stash(self, msg: rq.BranchFromStashRequest) -> None:
        await self._reply(
            msg, self._backend.branch_from_stash(msg.repo, msg.selector, msg.branch_name)
        )

    @handles("checkoutCommit")
    async def _checkout_commit(self, msg: rq.CheckoutCommitRequest) -> None:
        await self._reply(msg, self._backend.checkout_commit(msg.repo, msg.commit_hash))

    @handles("cleanUntrackedFiles")
    async def _clean_untracked_files(self, msg: rq.CleanUntrackedFilesRequest) -> None:
        await self._reply(msg, self._backend.clean_untracked_files(msg.repo, msg.directories))

    @handles("createArchive")
    async def _create_archive(self, msg: rq.CreateArchiveRequest) -> None:
        await self._reply(msg, self._backend.archive(msg.repo, msg.ref))

    @handles("deleteRemote")
    async def _delete_remote(self, msg: rq.DeleteRemoteRequest) -> None:
        await self._reply(msg, self._backend.delete_remote(msg.repo, msg.name))

    @handles("deleteRemoteBranch")
    async def _delete_remote_branch(self, msg: rq.DeleteRemoteBranchRequest) -> None:
        await self._reply(
            msg, self._backend.delete_remote_branch(msg.repo, msg.branch_name, msg.remote)
        )

    @handles("deleteTag")
    async def _delete_tag(self, msg: rq.DeleteTagRequest) -> None:
        await self._reply(
            msg, self._backend.delete_tag(msg.repo, msg.tag_name, msg.delete_on_remote)
        )

    @handles("dropCommit")
    async def _drop_commit(self, msg: rq.DropCommitRequest) -> None:
        await self._reply(msg, self._backend.drop_commit(msg.repo, msg.commit_hash))

    @handles("dropCommits")
    async def _drop_commits(self, msg: rq.DropCommitsRequest) -> None:
        await self._reply(msg, self._backend.drop_commits(msg.repo, msg.commits))

    @handles("dropStash")
    async def _drop_stash(self, msg: rq.DropStashRequest) -> None:
        await self._reply(msg, self._backend.drop_stash(msg.repo, msg.selector))

    @handles("editCommitMessage")
    async def _edit_commit_message(self, msg: rq.EditCommitMessageRequest) -> None:
        await self._reply(
            msg,
            self._backend.edit_commit_message(
                msg.repo, msg.commit_hash, msg.message, msg.no_verify
            ),
        )

    @handles("editRemote")
    async def _edit_remote(self, msg: rq.EditRemoteRequest) -> None:
        await self._reply(
            msg,
            self._backend.edit_remote(
                msg.repo,
                msg.name_old,
                msg.name_new,
                msg.url_old,
                msg.url_new,
                msg.push_url_old,
                msg.push_url_new,
            ),
        )

    @handles("fetch")
    async def _fetch(self, msg: rq.FetchRequest) -> None:
        await self._reply(msg, self._backend.fetch(msg.repo, msg.name, msg.prune, msg.prune_tags))

    @handles("fetchIntoLocalBranch")
    async def _fetch_into_local_branch(self, msg: rq.FetchIntoLocalBranchRequest) -> None:
        await self._reply(
            msg,
            self._backend.fetch_into_local_branch(
                msg.repo, msg.remote, msg.remote_branch, msg.local_branch, msg.force
            ),
        )

    @handles("openExternalDirDiff")
    async def _open_external_dir_diff(self, msg: rq.OpenExternalDirDiffRequest) -> None:
        await self._reply(
            msg,
            self._backend.open_external_dir_diff(msg.repo, msg.from_hash, msg.to_hash, msg.is_gui),
        )

    @handles("openTerminal")
    async def _open_terminal(self, msg: rq.OpenTerminalRequest) -> None:
        await self._reply(msg, self._backend.open_git_terminal(msg.repo, None, msg.name))

    @handles("popStash")
    async def _pop_stash(self, msg: rq.PopStashRequest) -> None:
        await self._reply(msg, self._backend.pop_stash(msg.repo, msg.selector, msg.reinstate_index))

    @handles("pruneRemote")
    async def _prune_remote(self, msg: rq.PruneRemoteRequest) -> None:
        await self._reply(msg, self._backend.prune_remote(msg.repo, msg.name))

    @handles("pullBranch")
    async def _pull_branch(self, msg: rq.PullBranchRequest) -> None:
        await self._reply(
            msg,
            self._backend.pull_branch(
                msg.repo, msg.branch_name, msg.remote, msg.create_new_commit, msg.squash
            ),
        )

    @handles("pushStash")
    async def _push_stash(self, msg: rq.PushStashRequest) -> None:
        await self._reply(
            msg, self._backend.push_stash(msg.repo, msg.message, msg.include_untracked)
        )

    @handles("rebase")
    async def _rebase(self, msg: rq.RebaseRequest) -> None:
        error = await attempt_one(
            self._backend.rebase(msg.repo, msg.obj, msg.action_on, msg.ignore_date, msg.interactive)
        )
        await self._send(
            rs.RebaseResponse(action_on=msg.action_on, interactive=msg.interactive, error=error)
        )

    @handles("renameBranch")
    async def _rename_branch(self, msg: rq.RenameBranchRequest) -> None:
        await self._reply(msg, self._backend.rename_branch(msg.repo, msg.old_name, msg.new_name))

    @handles("resetFileToRevision")
    async def _reset_file_to_revision(self, msg: rq.ResetFileToRevisionRequest) -> None:
        await self._reply(
            msg, self._backend.reset_file_to_revision(msg.repo, msg.commit_hash, msg.file_path)
        )

    @handles("resetToCommit")
    async def _reset_to_commit(self, msg: rq.ResetToCommitRequest) -> None:
        await self._reply(msg, self._backend.reset_to_commit(msg.repo, msg.commit, msg.reset_mode))

    @handles("revertCommit")
    async def _revert_commit(self, msg: rq.RevertCommitRequest) -> None:
        await self._reply(
            msg, self._backend.revert_commit(msg.repo, msg.commit_hash, msg.parent_index)
        )

    @handles("squashCommits")
    async def _squash_commits(self, msg: rq.SquashCommitsRequest) -> None:
        await self._reply(
            msg, self._backend.squash_commits(msg.repo, msg.commits, msg.commit_message)
        )

    @handles("undoLastCommit")
    async def _undo_last_commit(self, msg: rq.UndoLastCommitRequest) -> None:
        await self._reply(msg, self._backend.undo_last_commit(msg.repo))

    # =========================================================================
    # Discovery, persisted state and code review
    # =========================================================================

    @handles("exportRepoConfig")
    async def _export_repo_config(self, msg: rq.ExportRepoConfigRequest) -> None:
        await self._reply(msg, self._repo_manager.export_repo_config(msg.repo))

    @handles("rescanForRepos")
    async def _rescan_for_repos(self, msg: rq.RescanForReposRequest) -> None:
        if not await self._repo_manager.search_workspace_for_repos():
            self._host.show_error_message(NO_REPOS_FOUND_MSG)

    @handles("setRepoState")
    async def _set_repo_state(self, msg: rq.SetRepoStateRequest) -> None:
        self._repo_manager.set_repo_state(msg.repo, msg.state)

    @handles("setGlobalViewState")
    async def _set_global_view_state(self, msg: rq.SetGlobalViewStateRequest) -> None:
        await self._reply(msg, self._state.set_global_view_state(msg.state))

    @handles("setWorkspaceViewState")
    async def _set_workspace_view_state(self, msg: rq.SetWorkspaceViewStateRequest) -> None:
        await self._reply(msg, self._state.set_workspace_view_state(msg.state))

    @handles("startCodeReview")
    async def _start_code_review(self, msg: rq.StartCodeReviewRequest) -> None:
        review = await query(
            self._state.start_code_review(msg.repo, msg.id, msg.files, msg.last_viewed_file)
        )
        await self._send(
            rs.StartCodeReviewResponse.model_validate(
                {
                    **review,
                    "commitHash": msg.commit_hash,
                    "compareWithHash": msg.compare_with_hash,
                }
            )
        )

    @handles("updateCodeReview")
    async def _update_code_review(self, msg: rq.UpdateCodeReviewRequest) -> None:
        await self._reply(
            msg,
            self._state.update_code_review(
                msg.repo, msg.id, msg.remaining_files, msg.last_viewed_file
            ),
        )

    @handles("endCodeReview")
    async def _end_code_review(self, msg: rq.EndCodeReviewRequest) -> None:
        self._state.end_code_review(msg.repo, msg.id)

    @handles("fetchAvatar")
    async def _fetch_avatar(self, msg: rq.FetchAvatarRequest) -> None:
        # The image is pushed later through the avatar manager's on_avatar event
        self._avatars.fetch_avatar_image(msg.email, msg.repo, msg.remote, msg.commits)

    # =========================================================================
    # Host editor actions
    # =========================================================================

    @handles("copyFilePath")
    async def _copy_file_path(self, msg: rq.CopyFilePathRequest) -> None:
        await self._reply(
            msg, self._host.copy_file_path_to_clipboard(msg.repo, msg.file_path, msg.absolute)
        )

    @handles("copyToClipboard")
    async def _copy_to_clipboard(self, msg: rq.CopyToClipboardRequest) -> None:
        error = await attempt_one(self._host.copy_to_clipboard(msg.data))
        await self._send(rs.CopyToClipboardResponse(type=msg.type, error=error))

    @handles("openExtensionSettings")
    async def _open_extension_settings(self, msg: rq.OpenExtensionSettingsRequest) -> None:
        await self._reply(msg, self._host.open_extension_settings())

    @handles("openExternalUrl")
    async def _open_external_url(self, msg: rq.OpenExternalUrlRequest) -> None:
        await self._reply(msg, self._host.open_external_url(msg.url))

    @handles("openFile")
    async def _open_file(self, msg: rq.OpenFileRequest) -> None:
        await self._reply(msg, self._host.open_file(msg.repo, msg.file_path, msg.hash))

    @handles("showErrorMessage")
    async def _show_error_message(self, msg: rq.ShowErrorMessageRequest) -> None:
        self._host.show_error_message(msg.message)

    @handles("viewDiff")
    async def _view_diff(self, msg: rq.ViewDiffRequest) -> None:
        await self._reply(
            msg,
            self._host.view_diff(
                msg.repo, msg.from_hash, msg.to_hash, msg.old_file_path, msg.new_file_path, msg.type
            ),
        )

    @handles("viewDiffWithWorkingFile")
    async def _view_diff_with_working_file(self, msg: rq.ViewDiffWithWorkingFileRequest) -> None:
        await self._reply(
            msg, self._host.view_diff_with_working_file(msg.repo, msg.hash, msg.file_path)
        )

    @handles("viewFileAtRevision")
    async def _view_file_at_revision(self, msg: rq.ViewFileAtRevisionRequest) -> None:
        await self._reply(msg, self._host.view_file_at_revision(msg.repo, msg.hash, msg.file_path))

    @handles("viewScm")
    async def _view_scm(self, msg: rq.ViewScmRequest) -> None:
        await self._reply(msg, self._host.view_scm())


def _check_handler_table() -> None:
    missing = REQUEST_TYPES.keys() - HANDLERS.keys()
    unknown = HANDLERS.keys() - REQUEST_TYPES.keys()
    if missing or unknown:
        raise RuntimeError(
            f"Handler table out of sync: missing={sorted(missing)} unknown={sorted(unknown)}"
        )


_check_handler_table()
