"""RefreshId bookkeeping for the two long-running read queries."""

from __future__ import annotations

from enum import Enum


class QueryKind(Enum):
    REPO_INFO = "loadRepoInfo"
    COMMITS = "loadCommits"


class RefreshCorrelator:
    """Remembers the latest RefreshId the surface issued for each query kind.

    The ids are chosen by the surface and only echoed back here; nothing is
    cancelled or discarded on the backend side. The latest values are
    re-announced when the document is re-rendered so the surface can resume
    both streams where it left off.
    """

    def __init__(self) -> None:
        self._latest: dict[QueryKind, int] = {kind: 0 for kind in QueryKind}

    def next_id(self, kind: QueryKind, refresh_id: int) -> int:
        self._latest[kind] = refresh_id
        return refresh_id

    def latest(self, kind: QueryKind) -> int:
        return self._latest[kind]
