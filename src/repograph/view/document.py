"""Rendering of the document loaded into a UI surface.

There are three document states:
- WORKING: the graph view, with the initial state embedded as JSON
- NO_REPOS: no repositories were found, with a button to re-scan
- UNABLE_TO_LOAD: the git executable could not be found
"""

from __future__ import annotations

import html
import json
import re
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from repograph.config.schema import ViewConfig
from repograph.messages.common import LoadTarget, RepoSet

UNABLE_TO_FIND_GIT_MSG = (
    'Unable to find a Git executable. Either set the "git.path" setting to the path '
    "and filename of an existing Git executable, or install Git and restart the editor."
)
NO_REPOS_MSG = "No Git repositories were found in the current workspace when it was last scanned."

SCRIPT_FILE = "out.min.js"
STYLE_FILE = "out.min.css"

_HTTP_AUTHORITY = re.compile(r"^(https?://[^/?#]*)")


class DocumentState(Enum):
    WORKING = "working"
    NO_REPOS = "no_repos"
    UNABLE_TO_LOAD = "unable_to_load"


def choose_state(git_executable_unknown: bool, num_repos: int) -> DocumentState:
    """An unknown git executable wins over the repository count."""
    if git_executable_unknown:
        return DocumentState.UNABLE_TO_LOAD
    if num_repos > 0:
        return DocumentState.WORKING
    return DocumentState.NO_REPOS


def standardise_csp_source(csp_source: str) -> str:
    """Reduce an http(s) CSP source to scheme and authority.

    Other sources (e.g. ``vscode-resource:``) are returned unchanged.
    """
    match = _HTTP_AUTHORITY.match(csp_source)
    return match.group(1) if match else csp_source


def surface_config(config: ViewConfig, avatar_storage_available: bool) -> dict[str, Any]:
    """The view options the surface script reads from ``initialState.config``."""
    return {
        "commitOrdering": config.commit_ordering.value,
        "dateFormat": config.date_format,
        "fetchAndPrune": config.fetch_and_prune,
        "fetchAndPruneTags": config.fetch_and_prune_tags,
        "fetchAvatars": config.fetch_avatars and avatar_storage_available,
        "graph": {"colours": list(config.graph_colours)},
        "includeCommitsMentionedByReflogs": config.include_commits_mentioned_by_reflogs,
        "initialLoadCommits": config.initial_load_commits,
        "loadMoreCommits": config.load_more_commits,
        "loadMoreCommitsAutomatically": config.load_more_commits_automatically,
        "onlyFollowFirstParent": config.only_follow_first_parent,
        "showRemoteBranches": config.show_remote_branches,
        "showStashes": config.show_stashes,
        "showTags": config.show_tags,
        "simplifyByDecoration": config.simplify_by_decoration,
        "stickyHeader": config.sticky_header,
        "toolbarButtonVisibility": {
            "remotes": config.toolbar_button_visibility.remotes,
            "simplify": config.toolbar_button_visibility.simplify,
        },
    }


@dataclass
class InitialState:
    """State handed to the surface script when the working document loads."""

    config: dict[str, Any]
    repos: RepoSet
    last_active_repo: str | None = None
    load_view_to: LoadTarget | None = None
    load_repo_info_refresh_id: int = 0
    load_commits_refresh_id: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config,
            "lastActiveRepo": self.last_active_repo,
            "loadViewTo": self.load_view_to.to_wire() if self.load_view_to else None,
            "repos": self.repos,
            "loadRepoInfoRefreshId": self.load_repo_info_refresh_id,
            "loadCommitsRefreshId": self.load_commits_refresh_id,
        }


@dataclass
class DocumentContext:
    """Everything one render needs. Built by the view core per render."""

    state: DocumentState
    initial_state: InitialState
    csp_source: str
    script_uri: str
    style_uri: str
    global_view_state: dict[str, Any] = field(default_factory=dict)
    workspace_view_state: dict[str, Any] = field(default_factory=dict)
    nonce: str = field(default_factory=lambda: secrets.token_urlsafe(24))


def _script_json(value: Any) -> str:
    # "</" would close the surrounding <script> element
    return json.dumps(value).replace("</", "<\\/")


def _colour_styles(colours: list[str]) -> tuple[str, str]:
    variables = "".join(f"--git-graph-color{i}:{c}; " for i, c in enumerate(colours))
    selectors = "".join(
        f'[data-color="{i}"]{{--git-graph-color:var(--git-graph-color{i});}} '
        for i in range(len(colours))
    )
    return variables, selectors


def _working_body(ctx: DocumentContext) -> str:
    config = ctx.initial_state.config
    sticky = ' class="sticky"' if config.get("stickyHeader") else ""
    toolbar = config.get("toolbarButtonVisibility", {})
    hide_remotes = "" if toolbar.get("remotes", True) else ' style="display: none"'
    hide_simplify = "" if toolbar.get("simplify", True) else ' style="display: none"'
    return f"""<body>
<div id="view" tabindex="-1">
  <div id="controls"{sticky}>
    <span id="repoControl"><span class="unselectable">Repo: </span><div id="repoDropdown" class="dropdown"></div></span>
    <span id="branchControl"><span class="unselectable">Branches: </span><div id="branchDropdown" class="dropdown"></div></span>
    <span id="authorControl"><span class="unselectable">Authors: </span><div id="authorDropdown" class="dropdown"></div></span>
    <label{hide_remotes} id="showRemoteBranchesControl" title="Show Remote Branches"><input type="checkbox" id="showRemoteBranchesCheckbox" tabindex="-1"><span class="customCheckbox"></span>Remotes</label>
    <label{hide_simplify} id="simplifyByDecorationControl" title="Simplify By Decoration"><input type="checkbox" id="simplifyByDecorationCheckbox" tabindex="-1"><span class="customCheckbox"></span>Simplify</label>
    <div id="currentBtn" title="Current"></div>
    <div id="findBtn" title="Find"></div>
    <div id="terminalBtn" title="Open a Terminal for this Repository"></div>
    <div id="settingsBtn" title="Repository Settings"></div>
    <div id="fetchBtn"></div>
    <div id="refreshBtn"></div>
  </div>
  <div id="content">
    <div id="commitGraph"></div>
    <div id="commitTable"></div>
  </div>
  <div id="footer"></div>
</div>
<script nonce="{ctx.nonce}">var initialState = {_script_json(ctx.initial_state.to_dict())}, globalState = {_script_json(ctx.global_view_state)}, workspaceState = {_script_json(ctx.workspace_view_state)};</script>
<script nonce="{ctx.nonce}" src="{html.escape(ctx.script_uri)}"></script>
</body>"""


def _no_repos_body(ctx: DocumentContext) -> str:
    return f"""<body class="unableToLoad">
<h2>Unable to load the repository graph</h2>
<p class="unableToLoadMessage">{html.escape(NO_REPOS_MSG)}</p>
<p><div id="rescanForReposBtn" class="roundedBtn">Re-scan the current workspace for repositories</div></p>
<script nonce="{ctx.nonce}">(function(){{ var api = acquireVsCodeApi(); document.getElementById('rescanForReposBtn').addEventListener('click', function(){{ api.postMessage({{command: 'rescanForRepos'}}); }}); }})();</script>
</body>"""


def _unable_to_load_body(ctx: DocumentContext) -> str:
    return f"""<body class="unableToLoad">
<h2>Unable to load the repository graph</h2>
<p class="unableToLoadMessage">{html.escape(UNABLE_TO_FIND_GIT_MSG)}</p>
</body>"""


_BODIES = {
    DocumentState.WORKING: _working_body,
    DocumentState.NO_REPOS: _no_repos_body,
    DocumentState.UNABLE_TO_LOAD: _unable_to_load_body,
}


def render_document(ctx: DocumentContext) -> str:
    """Build the full HTML document for ``ctx.state``."""
    colours = ctx.initial_state.config.get("graph", {}).get("colours", [])
    colour_vars, colour_selectors = _colour_styles(colours)
    csp = (
        f"default-src 'none'; style-src {standardise_csp_source(ctx.csp_source)} 'unsafe-inline'; "
        f"script-src 'nonce-{ctx.nonce}'; img-src data:;"
    )
    body = _BODIES[ctx.state](ctx)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta http-equiv="Content-Security-Policy" content="{csp}">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<link rel="stylesheet" type="text/css" href="{html.escape(ctx.style_uri)}">
<title>Repository Graph</title>
<style>body{{{colour_vars}}} {colour_selectors}</style>
</head>
{body}
</html>"""
