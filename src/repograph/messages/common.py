"""Types shared by request and response messages."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# None means the step succeeded; otherwise a human-readable failure message.
ErrorInfo = str | None

# Path of a repository -> its persisted per-repository state.
RepoSet = dict[str, dict[str, Any]]

# The pseudo commit hash the surface uses for uncommitted changes.
UNCOMMITTED = "*"


class ProtocolModel(BaseModel):
    """Base model for wire types: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict using wire names."""
        return self.model_dump(mode="json", by_alias=True)


class GitConfigLocation(Enum):
    LOCAL = "local"
    GLOBAL = "global"
    SYSTEM = "system"


class GitConfigKey(Enum):
    USER_NAME = "user.name"
    USER_EMAIL = "user.email"


class GitPushBranchMode(Enum):
    NORMAL = ""
    FORCE = "force"
    FORCE_WITH_LEASE = "force-with-lease"


class GitResetMode(Enum):
    SOFT = "soft"
    MIXED = "mixed"
    HARD = "hard"


class ActionOn(Enum):
    """What a merge or rebase is performed on."""

    BRANCH = "Branch"
    REMOTE_TRACKING_BRANCH = "Remote-tracking Branch"
    COMMIT = "Commit"


class TagType(Enum):
    ANNOTATED = "annotated"
    LIGHTWEIGHT = "lightweight"


class CommitDetailsTarget(ProtocolModel):
    """Commit to open once a repository has been loaded."""

    commit_hash: str
    compare_with_hash: str | None = None


class LoadTarget(ProtocolModel):
    """Deferred navigation intent: the repository (and optional commit) to focus."""

    repo: str
    commit_details: CommitDetailsTarget | None = None


class PullAfterwards(ProtocolModel):
    """Pull to run after a successful checkout."""

    branch_name: str
    remote: str
    create_new_commit: bool = False
    squash: bool = False


class StashRef(ProtocolModel):
    """A stash entry as known to the surface."""

    selector: str
    base_hash: str
    untracked_files_hash: str | None = None
