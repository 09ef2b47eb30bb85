"""Tests for command dispatch, multi-step policies and the mute window."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest

from repograph.errors import RepositoryError
from repograph.messages import FIRE_AND_FORGET, REQUEST_TYPES, parse_request
from repograph.messages.common import GitConfigKey, GitConfigLocation
from repograph.protocols import AvatarEvent
from repograph.view.core import ViewCore
from repograph.view.correlator import QueryKind
from repograph.view.dispatcher import HANDLERS, NO_REPOS_FOUND_MSG, run_gated
from tests.utils import FakeSurface, FakeWatcherFactory

REPO = "/work/repo"

# A minimal valid wire message for every command
SAMPLE_REQUESTS: dict[str, dict[str, Any]] = {
    "addRemote": {"repo": REPO, "name": "origin", "url": "https://example.com/r.git"},
    "addTag": {"repo": REPO, "tagName": "v1", "commitHash": "abc"},
    "applyStash": {"repo": REPO, "selector": "stash@{0}"},
    "branchFromStash": {"repo": REPO, "selector": "stash@{0}", "branchName": "b"},
    "checkoutBranch": {"repo": REPO, "branchName": "main"},
    "checkoutCommit": {"repo": REPO, "commitHash": "abc"},
    "cherrypickCommit": {"repo": REPO, "commitHash": "abc"},
    "cleanUntrackedFiles": {"repo": REPO},
    "commitDetails": {"repo": REPO, "commitHash": "abc"},
    "compareCommits": {
        "repo": REPO,
        "commitHash": "abc",
        "compareWithHash": "def",
        "fromHash": "abc",
        "toHash": "def",
    },
    "copyFilePath": {"repo": REPO, "filePath": "src/a.py"},
    "copyToClipboard": {"type": "Commit Hash", "data": "abc"},
    "createArchive": {"repo": REPO, "ref": "main"},
    "createBranch": {"repo": REPO, "branchName": "b", "commitHash": "abc"},
    "createPullRequest": {
        "repo": REPO,
        "config": {},
        "sourceRemote": "origin",
        "sourceOwner": "me",
        "sourceRepo": "r",
        "sourceBranch": "feature",
    },
    "deleteBranch": {"repo": REPO, "branchName": "b"},
    "deleteRemote": {"repo": REPO, "name": "origin"},
    "deleteRemoteBranch": {"repo": REPO, "branchName": "b", "remote": "origin"},
    "deleteTag": {"repo": REPO, "tagName": "v1"},
    "deleteUserDetails": {"repo": REPO, "name": True, "location": "global"},
    "dropCommit": {"repo": REPO, "commitHash": "abc"},
    "dropCommits": {"repo": REPO, "commits": ["abc", "def"]},
    "dropStash": {"repo": REPO, "selector": "stash@{0}"},
    "editCommitMessage": {"repo": REPO, "commitHash": "abc", "message": "m"},
    "editRemote": {"repo": REPO, "nameOld": "origin", "nameNew": "upstream"},
    "editUserDetails": {"repo": REPO, "name": "A", "email": "a@x", "location": "local"},
    "endCodeReview": {"repo": REPO, "id": "review-1"},
    "exportRepoConfig": {"repo": REPO},
    "fetch": {"repo": REPO},
    "fetchAvatar": {"repo": REPO, "email": "a@x"},
    "fetchIntoLocalBranch": {
        "repo": REPO,
        "remote": "origin",
        "remoteBranch": "main",
        "localBranch": "main",
    },
    "loadCommits": {"repo": REPO, "refreshId": 1},
    "loadConfig": {"repo": REPO},
    "loadRepoInfo": {"repo": REPO, "refreshId": 1},
    "loadRepos": {},
    "merge": {"repo": REPO, "obj": "feature", "actionOn": "Branch"},
    "openExtensionSettings": {},
    "openExternalDirDiff": {"repo": REPO, "fromHash": "abc", "toHash": "def"},
    "openExternalUrl": {"url": "https://example.com"},
    "openFile": {"repo": REPO, "hash": "abc", "filePath": "a.py"},
    "openTerminal": {"repo": REPO, "name": "repo"},
    "popStash": {"repo": REPO, "selector": "stash@{0}"},
    "pruneRemote": {"repo": REPO, "name": "origin"},
    "pullBranch": {"repo": REPO, "branchName": "main", "remote": "origin"},
    "pushBranch": {"repo": REPO, "branchName": "main", "remotes": ["origin"]},
    "pushStash": {"repo": REPO},
    "pushTag": {"repo": REPO, "tagName": "v1", "remotes": ["origin"], "commitHash": "abc"},
    "rebase": {"repo": REPO, "obj": "main", "actionOn": "Branch"},
    "renameBranch": {"repo": REPO, "oldName": "a", "newName": "b"},
    "rescanForRepos": {},
    "resetFileToRevision": {"repo": REPO, "commitHash": "abc", "filePath": "a.py"},
    "resetToCommit": {"repo": REPO, "commit": "abc", "resetMode": "hard"},
    "revertCommit": {"repo": REPO, "commitHash": "abc"},
    "setGlobalViewState": {"state": {}},
    "setRepoState": {"repo": REPO, "state": {}},
    "setWorkspaceViewState": {"state": {}},
    "showErrorMessage": {"message": "oops"},
    "squashCommits": {"repo": REPO, "commits": ["abc", "def"], "commitMessage": "m"},
    "startCodeReview": {"repo": REPO, "id": "review-1", "files": ["a.py"], "commitHash": "abc"},
    "tagDetails": {"repo": REPO, "tagName": "v1", "commitHash": "abc"},
    "undoLastCommit": {"repo": REPO},
    "updateCodeReview": {"repo": REPO, "id": "review-1", "remainingFiles": []},
    "viewDiff": {
        "repo": REPO,
        "fromHash": "abc",
        "toHash": "def",
        "oldFilePath": "a.py",
        "newFilePath": "a.py",
        "type": "M",
    },
    "viewDiffWithWorkingFile": {"repo": REPO, "hash": "abc", "filePath": "a.py"},
    "viewFileAtRevision": {"repo": REPO, "hash": "abc", "filePath": "a.py"},
    "viewScm": {},
}

REPLIED_COMMANDS = sorted(set(SAMPLE_REQUESTS) - FIRE_AND_FORGET)


async def dispatch(core: ViewCore, command: str, **fields: Any) -> None:
    payload = {**SAMPLE_REQUESTS[command], **fields, "command": command}
    await core.dispatcher.handle(parse_request(payload))


def only_response(surface: FakeSurface) -> dict[str, Any]:
    assert len(surface.posted) == 1, surface.posted
    return surface.posted[0]


class TestHandlerTable:
    """The dispatch table covers the whole command vocabulary."""

    def test_every_request_type_has_a_handler(self) -> None:
        assert set(HANDLERS) == set(REQUEST_TYPES)

    def test_samples_cover_every_command(self) -> None:
        assert set(SAMPLE_REQUESTS) == set(REQUEST_TYPES)

    def test_fire_and_forget_commands_are_known(self) -> None:
        assert FIRE_AND_FORGET <= set(REQUEST_TYPES)


class TestExactlyOneResponse:
    """Every request that expects a reply gets exactly one."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", REPLIED_COMMANDS)
    async def test_single_reply(self, core, surface, command: str) -> None:
        await dispatch(core, command)
        assert only_response(surface)["command"] == command

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", sorted(FIRE_AND_FORGET))
    async def test_fire_and_forget_has_no_reply(self, core, surface, command: str) -> None:
        await dispatch(core, command)
        assert surface.posted == []

    @pytest.mark.asyncio
    async def test_single_step_failure_is_reported(self, core, surface, services) -> None:
        services.backend.checkout_commit.return_value = "detached HEAD refused"
        await dispatch(core, "checkoutCommit")
        assert only_response(surface) == {
            "command": "checkoutCommit",
            "error": "detached HEAD refused",
        }

    @pytest.mark.asyncio
    async def test_repository_error_becomes_error_info(self, core, surface, services) -> None:
        services.backend.drop_stash.side_effect = RepositoryError("no such stash")
        await dispatch(core, "dropStash")
        assert only_response(surface)["error"] == "no such stash"

    @pytest.mark.asyncio
    async def test_ordinary_backend_fault_still_replies(
        self, core, surface, services, caplog
    ) -> None:
        caplog.set_level(logging.WARNING, logger="repograph")
        services.backend.checkout_commit.side_effect = FileNotFoundError("git not found")
        await dispatch(core, "checkoutCommit")
        assert only_response(surface) == {"command": "checkoutCommit", "error": "git not found"}
        assert "Collaborator call failed: FileNotFoundError" in caplog.text

    @pytest.mark.asyncio
    async def test_timeout_without_message_is_named(self, core, surface, services) -> None:
        services.backend.fetch.side_effect = asyncio.TimeoutError()
        await dispatch(core, "fetch")
        assert only_response(surface)["error"] == "TimeoutError"

    @pytest.mark.asyncio
    async def test_query_fault_still_replies(self, core, surface, services) -> None:
        services.backend.get_commits.side_effect = OSError("broken pipe")
        await dispatch(core, "loadCommits", refreshId=3)
        response = only_response(surface)
        assert response["error"] == "broken pipe"
        assert response["refreshId"] == 3

    @pytest.mark.asyncio
    async def test_gated_primary_fault_skips_follow_ups(self, core, surface, services) -> None:
        services.backend.delete_branch.side_effect = OSError("disk full")
        await dispatch(core, "deleteBranch", deleteOnRemotes=["origin"])
        assert only_response(surface)["errors"] == ["disk full"]
        services.backend.delete_remote_branch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_avatar_fault_keeps_commit_details(self, core, surface, services) -> None:
        services.backend.get_commit_details.return_value = {"commitDetails": {"hash": "abc"}}
        services.avatar_manager.get_avatar_image.side_effect = ConnectionError("offline")
        await dispatch(core, "commitDetails", avatarEmail="dev@example.com")
        response = only_response(surface)
        assert response["avatar"] is None
        assert response["commitDetails"] == {"hash": "abc"}

    @pytest.mark.asyncio
    async def test_code_review_fault_still_replies(self, core, surface, services) -> None:
        services.extension_state.start_code_review.side_effect = OSError("state locked")
        await dispatch(core, "startCodeReview")
        assert only_response(surface)["error"] == "state locked"

    @pytest.mark.asyncio
    async def test_repo_check_fault_still_replies(self, core, surface, services) -> None:
        services.repo_manager.check_repos_exist.side_effect = RuntimeError("scan failed")
        await dispatch(core, "loadRepos", check=True)
        assert only_response(surface)["command"] == "loadRepos"


class TestGateThenFanOut:
    """Follow-up steps only run after the primary step succeeded."""

    @pytest.mark.asyncio
    async def test_delete_branch_partial_remote_failure(self, core, surface, services) -> None:
        services.backend.delete_remote_branch.side_effect = [None, "origin failure", None]
        await dispatch(
            core, "deleteBranch", deleteOnRemotes=["upstream", "origin", "fork"]
        )
        response = only_response(surface)
        assert response["errors"] == [None, None, "origin failure", None]
        assert services.backend.delete_remote_branch.await_count == 3

    @pytest.mark.asyncio
    async def test_delete_branch_two_remotes(self, core, surface, services) -> None:
        services.backend.delete_remote_branch.side_effect = ["origin failure", None]
        await dispatch(core, "deleteBranch", deleteOnRemotes=["origin", "upstream"])
        response = only_response(surface)
        assert response["errors"] == [None, "origin failure", None]
        assert response["deleteOnRemotes"] == ["origin", "upstream"]
        assert response["branchName"] == "b"

    @pytest.mark.asyncio
    async def test_primary_failure_skips_remotes(self, core, surface, services) -> None:
        services.backend.delete_branch.return_value = "branch not fully merged"
        await dispatch(core, "deleteBranch", deleteOnRemotes=["origin", "upstream"])
        assert only_response(surface)["errors"] == ["branch not fully merged"]
        services.backend.delete_remote_branch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_add_tag_pushes_to_remote(self, core, surface, services) -> None:
        await dispatch(core, "addTag", pushToRemote="origin")
        response = only_response(surface)
        assert response["errors"] == [None, None]
        assert response["pushToRemote"] == "origin"
        services.backend.push_tag.assert_awaited_once_with(REPO, "v1", ["origin"], "abc", False)

    @pytest.mark.asyncio
    async def test_add_tag_without_push(self, core, surface, services) -> None:
        await dispatch(core, "addTag")
        assert only_response(surface)["errors"] == [None]
        services.backend.push_tag.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_add_tag_failure_skips_push(self, core, surface, services) -> None:
        services.backend.add_tag.side_effect = RepositoryError("tag exists")
        await dispatch(core, "addTag", pushToRemote="origin")
        assert only_response(surface)["errors"] == ["tag exists"]
        services.backend.push_tag.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_follow_up_error_is_absorbed(self, core, surface, services) -> None:
        services.backend.push_tag.side_effect = RepositoryError("remote rejected")
        await dispatch(core, "addTag", pushToRemote="origin")
        assert only_response(surface)["errors"] == [None, "remote rejected"]

    @pytest.mark.asyncio
    async def test_edit_user_details_attempts_both_sets(self, core, surface, services) -> None:
        services.backend.set_config_value.side_effect = ["cannot write name", None]
        await dispatch(core, "editUserDetails", deleteLocalName=True, deleteLocalEmail=True)
        assert only_response(surface)["errors"] == ["cannot write name", None]
        assert services.backend.set_config_value.await_count == 2
        services.backend.unset_config_value.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_edit_user_details_unsets_local_values(self, core, surface, services) -> None:
        await dispatch(
            core, "editUserDetails", location="global", deleteLocalName=True, deleteLocalEmail=True
        )
        assert only_response(surface)["errors"] == [None, None, None, None]
        services.backend.unset_config_value.assert_any_await(
            REPO, GitConfigKey.USER_NAME, GitConfigLocation.LOCAL
        )
        services.backend.unset_config_value.assert_any_await(
            REPO, GitConfigKey.USER_EMAIL, GitConfigLocation.LOCAL
        )


class TestGateThenSingleFollowUp:
    """Commands with exactly one optional follow-up."""

    @pytest.mark.asyncio
    async def test_checkout_then_pull(self, core, surface, services) -> None:
        pull = {"branchName": "main", "remote": "origin", "createNewCommit": False, "squash": True}
        await dispatch(core, "checkoutBranch", pullAfterwards=pull)
        response = only_response(surface)
        assert response["errors"] == [None, None]
        assert response["pullAfterwards"]["remote"] == "origin"
        services.backend.pull_branch.assert_awaited_once_with(REPO, "main", "origin", False, True)

    @pytest.mark.asyncio
    async def test_checkout_failure_skips_pull(self, core, surface, services) -> None:
        services.backend.checkout_branch.side_effect = RepositoryError("local changes")
        pull = {"branchName": "main", "remote": "origin"}
        await dispatch(core, "checkoutBranch", pullAfterwards=pull)
        assert only_response(surface)["errors"] == ["local changes"]
        services.backend.pull_branch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_merge_no_commit_opens_scm(self, core, surface, services) -> None:
        await dispatch(core, "merge", noCommit=True)
        response = only_response(surface)
        assert response["errors"] == [None, None]
        assert response["actionOn"] == "Branch"
        services.host_actions.view_scm.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_merge_conflict_skips_scm(self, core, surface, services) -> None:
        services.backend.merge.return_value = "CONFLICT"
        await dispatch(core, "merge", noCommit=True)
        assert only_response(surface)["errors"] == ["CONFLICT"]
        services.host_actions.view_scm.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cherrypick_no_commit_opens_scm(self, core, surface, services) -> None:
        await dispatch(core, "cherrypickCommit", noCommit=True)
        assert only_response(surface)["errors"] == [None, None]
        services.host_actions.view_scm.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_pull_request_without_push(self, core, surface, services) -> None:
        await dispatch(core, "createPullRequest")
        response = only_response(surface)
        assert response["errors"] == [None, None]
        assert response["push"] is False
        services.backend.push_branch.assert_not_awaited()
        services.host_actions.create_pull_request.assert_awaited_once_with(
            {}, "me", "r", "feature"
        )

    @pytest.mark.asyncio
    async def test_create_pull_request_push_failure(self, core, surface, services) -> None:
        services.backend.push_branch.return_value = "rejected"
        await dispatch(core, "createPullRequest", push=True)
        assert only_response(surface)["errors"] == ["rejected"]
        services.host_actions.create_pull_request.assert_not_awaited()


class TestIndependentSteps:
    """Commands whose steps are not gated on each other."""

    @pytest.mark.asyncio
    async def test_delete_user_details_runs_both(self, core, surface, services) -> None:
        services.backend.unset_config_value.side_effect = ["no name set", None]
        await dispatch(core, "deleteUserDetails", name=True, email=True)
        assert only_response(surface)["errors"] == ["no name set", None]
        assert services.backend.unset_config_value.await_count == 2

    @pytest.mark.asyncio
    async def test_push_branch_reports_each_remote(self, core, surface, services) -> None:
        services.backend.push_branch_to_multiple_remotes.return_value = [None, "rejected"]
        await dispatch(core, "pushBranch", remotes=["origin", "fork"])
        assert only_response(surface)["errors"] == [None, "rejected"]


class TestRunGated:
    """The shared gating helper."""

    @pytest.mark.asyncio
    async def test_follow_ups_are_not_created_after_failure(self) -> None:
        created: list[str] = []

        async def step() -> None:
            created.append("ran")

        def follow_up():
            created.append("created")
            return step()

        assert await run_gated(["failed"], [follow_up]) == ["failed"]
        assert created == []

    @pytest.mark.asyncio
    async def test_list_outcomes_are_spliced(self) -> None:
        async def push() -> list[str | None]:
            return [None, "fork rejected"]

        async def done() -> None:
            return None

        assert await run_gated([None], [push, done]) == [None, None, "fork rejected", None]


class TestLoadRepoInfo:
    """Repository info queries and self-healing of deleted repositories."""

    @pytest.mark.asyncio
    async def test_echoes_refresh_id(self, core, surface, services) -> None:
        services.backend.get_repo_info.return_value = {"branches": ["main"], "error": None}
        await dispatch(core, "loadRepoInfo", refreshId=7)
        response = only_response(surface)
        assert response["refreshId"] == 7
        assert response["isRepo"] is True
        assert response["branches"] == ["main"]
        assert core.correlator.latest(QueryKind.REPO_INFO) == 7

    @pytest.mark.asyncio
    async def test_deleted_repository_is_not_an_error(self, core, surface, services) -> None:
        services.backend.get_repo_info.return_value = {"error": "not a git repository"}
        services.backend.repo_root.side_effect = None
        services.backend.repo_root.return_value = None
        await dispatch(core, "loadRepoInfo")
        response = only_response(surface)
        assert response["error"] is None
        assert response["isRepo"] is False

    @pytest.mark.asyncio
    async def test_error_in_existing_repository_passes_through(
        self, core, surface, services
    ) -> None:
        services.backend.get_repo_info.return_value = {"error": "index.lock exists"}
        await dispatch(core, "loadRepoInfo")
        response = only_response(surface)
        assert response["error"] == "index.lock exists"
        assert response["isRepo"] is True

    @pytest.mark.asyncio
    async def test_raised_error_checks_repository_root(self, core, surface, services) -> None:
        services.backend.get_repo_info.side_effect = RepositoryError("gone")
        services.backend.repo_root.side_effect = None
        services.backend.repo_root.return_value = None
        await dispatch(core, "loadRepoInfo")
        assert only_response(surface)["isRepo"] is False

    @pytest.mark.asyncio
    async def test_new_repo_starts_watcher_and_persists(
        self, core, services, watchers: FakeWatcherFactory
    ) -> None:
        await dispatch(core, "loadRepoInfo")
        assert core.lifecycle.current_repo == REPO
        assert str(core.watch.watched_repo) == REPO
        services.extension_state.set_last_active_repo.assert_called_once_with(REPO)

        await dispatch(core, "loadRepoInfo", refreshId=2)
        assert len(watchers.created) == 1

    @pytest.mark.asyncio
    async def test_switching_repo_restarts_watcher(self, core, watchers) -> None:
        await dispatch(core, "loadRepoInfo")
        await dispatch(core, "loadRepoInfo", repo="/work/other", refreshId=2)
        assert len(watchers.created) == 2
        assert watchers.created[0].stopped is True
        assert str(watchers.latest.repo) == "/work/other"

    @pytest.mark.asyncio
    async def test_hidden_view_does_not_start_watcher(
        self, core, surface, services, watchers: FakeWatcherFactory
    ) -> None:
        async def info_after_hiding(*args):
            core.set_visible(False)
            return {"branches": ["main"]}

        services.backend.get_repo_info.side_effect = info_after_hiding
        await dispatch(core, "loadRepoInfo")
        assert only_response(surface)["branches"] == ["main"]
        assert watchers.created == []
        assert core.lifecycle.current_repo is None
        services.extension_state.set_last_active_repo.assert_not_called()

        core.set_visible(True)
        services.backend.get_repo_info.side_effect = None
        await dispatch(core, "loadRepoInfo", refreshId=2)
        assert str(core.watch.watched_repo) == REPO


class TestLoadCommits:
    """Commit queries and out-of-order responses."""

    @pytest.mark.asyncio
    async def test_failure_does_not_check_repository_root(self, core, surface, services) -> None:
        services.backend.get_commits.return_value = {"commits": [], "error": "bad revision"}
        await dispatch(core, "loadCommits", refreshId=3, onlyFollowFirstParent=True)
        response = only_response(surface)
        assert response["error"] == "bad revision"
        assert response["refreshId"] == 3
        assert response["onlyFollowFirstParent"] is True
        services.backend.repo_root.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_response_is_detectable(self, core, surface, services) -> None:
        """A slow first query answers after the second; its RefreshId is stale."""
        release_slow = asyncio.Event()

        async def get_commits(repo, branches, *args):
            if branches == ["slow"]:
                await release_slow.wait()
            return {"commits": branches}

        services.backend.get_commits.side_effect = get_commits

        surface.emit({"command": "loadCommits", "repo": REPO, "refreshId": 1, "branches": ["slow"]})
        surface.emit({"command": "loadCommits", "repo": REPO, "refreshId": 2, "branches": ["fast"]})
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        release_slow.set()
        await core.drain()

        assert [m["refreshId"] for m in surface.posted] == [2, 1]
        latest = core.correlator.latest(QueryKind.COMMITS)
        assert latest == 2
        stale = [m for m in surface.posted if m["refreshId"] != latest]
        assert stale[0]["commits"] == ["slow"]


class TestOtherQueries:
    """Repository list, details and comparisons."""

    @pytest.mark.asyncio
    async def test_load_repos_responds_without_check(self, core, surface, services) -> None:
        services.extension_state.get_last_active_repo.return_value = REPO
        await dispatch(core, "loadRepos")
        response = only_response(surface)
        assert response["repos"] == {REPO: {}}
        assert response["lastActiveRepo"] == REPO
        assert response["loadViewTo"] is None

    @pytest.mark.asyncio
    async def test_load_repos_check_without_changes(self, core, surface, services) -> None:
        await dispatch(core, "loadRepos", check=True)
        assert only_response(surface)["command"] == "loadRepos"
        services.repo_manager.check_repos_exist.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_load_repos_check_with_changes_defers(self, core, surface, services) -> None:
        services.repo_manager.check_repos_exist.return_value = True
        await dispatch(core, "loadRepos", check=True)
        assert surface.posted == []

    @pytest.mark.asyncio
    async def test_commit_details_with_avatar(self, core, surface, services) -> None:
        services.backend.get_commit_details.return_value = {"commitDetails": {"hash": "abc"}}
        services.avatar_manager.get_avatar_image.return_value = "data:image/png;base64,xx"
        services.extension_state.get_code_review.return_value = {"id": "abc"}
        await dispatch(core, "commitDetails", avatarEmail="a@x", refresh=True)
        response = only_response(surface)
        assert response["commitDetails"] == {"hash": "abc"}
        assert response["avatar"] == "data:image/png;base64,xx"
        assert response["codeReview"] == {"id": "abc"}
        assert response["refresh"] is True

    @pytest.mark.asyncio
    async def test_uncommitted_details_have_no_review(self, core, surface, services) -> None:
        await dispatch(core, "commitDetails", commitHash="*")
        assert only_response(surface)["codeReview"] is None
        services.backend.get_uncommitted_details.assert_awaited_once_with(REPO)
        services.extension_state.get_code_review.assert_not_called()
        services.avatar_manager.get_avatar_image.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stash_details(self, core, surface, services) -> None:
        stash = {"selector": "stash@{0}", "baseHash": "base"}
        await dispatch(core, "commitDetails", stash=stash)
        services.backend.get_stash_details.assert_awaited_once()
        services.backend.get_commit_details.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_compare_commits_review_key(self, core, surface, services) -> None:
        await dispatch(core, "compareCommits")
        services.extension_state.get_code_review.assert_called_once_with(REPO, "abc-def")
        response = only_response(surface)
        assert response["commitHash"] == "abc"
        assert response["compareWithHash"] == "def"

    @pytest.mark.asyncio
    async def test_compare_with_uncommitted_has_no_review(self, core, surface, services) -> None:
        await dispatch(core, "compareCommits", toHash="*")
        services.extension_state.get_code_review.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_code_review(self, core, surface, services) -> None:
        await dispatch(core, "startCodeReview")
        response = only_response(surface)
        assert response["codeReview"] == {"id": "review-1"}
        assert response["commitHash"] == "abc"


class TestFireAndForget:
    """Requests answered later or not at all."""

    @pytest.mark.asyncio
    async def test_rescan_finding_nothing_shows_error(self, core, surface, services) -> None:
        services.repo_manager.search_workspace_for_repos.return_value = False
        await dispatch(core, "rescanForRepos")
        services.host_actions.show_error_message.assert_called_once_with(NO_REPOS_FOUND_MSG)
        assert surface.posted == []

    @pytest.mark.asyncio
    async def test_rescan_finding_repos_is_silent(self, core, services) -> None:
        await dispatch(core, "rescanForRepos")
        services.host_actions.show_error_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_fetch_avatar_is_queued(self, core, services) -> None:
        await dispatch(core, "fetchAvatar", remote="origin", commits=["abc"])
        services.avatar_manager.fetch_avatar_image.assert_called_once_with(
            "a@x", REPO, "origin", ["abc"]
        )

    @pytest.mark.asyncio
    async def test_avatar_arrives_as_push(self, core, surface, services) -> None:
        services.avatar_manager.avatars.fire(
            AvatarEvent(email="a@x", image="data:image/png;base64,xx")
        )
        await core.drain()
        assert only_response(surface) == {
            "command": "fetchAvatar",
            "email": "a@x",
            "image": "data:image/png;base64,xx",
        }


class TestMuteWindow:
    """The watcher is muted for exactly the duration of each dispatch."""

    @pytest.mark.asyncio
    async def test_muted_while_handler_runs(self, core, services) -> None:
        observed: list[bool] = []
        services.backend.checkout_commit.side_effect = lambda *a: observed.append(
            core.watch.is_muted
        )
        await dispatch(core, "checkoutCommit")
        assert observed == [True]
        assert core.watch.is_muted is False

    @pytest.mark.asyncio
    async def test_changes_during_handler_are_swallowed(
        self, core, surface, services, watchers
    ) -> None:
        await dispatch(core, "loadRepoInfo")
        surface.posted.clear()

        services.backend.checkout_commit.side_effect = lambda *a: watchers.latest.fire("a.py")
        await dispatch(core, "checkoutCommit")
        await core.drain()
        assert surface.commands() == ["checkoutCommit"]

        watchers.latest.fire("b.py")
        await core.drain()
        assert surface.commands() == ["checkoutCommit", "refresh"]

    @pytest.mark.asyncio
    async def test_unmuted_after_unexpected_error(
        self, core, surface, monkeypatch, caplog
    ) -> None:
        caplog.set_level(logging.ERROR, logger="repograph")

        def broken(kind, refresh_id):
            raise ValueError("bug in handler")

        monkeypatch.setattr(core.correlator, "next_id", broken)
        await dispatch(core, "loadCommits")
        assert core.watch.is_muted is False
        assert surface.posted == []
        assert "Unexpected error while handling 'loadCommits'" in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_message_is_dropped(self, core, surface, caplog) -> None:
        caplog.set_level(logging.WARNING, logger="repograph")
        await core.dispatcher.handle_raw({"command": "noSuchCommand"})
        await core.dispatcher.handle_raw({"command": "checkoutCommit"})
        assert surface.posted == []
        assert core.watch.is_muted is False
        assert "Unknown command 'noSuchCommand'" in caplog.text
