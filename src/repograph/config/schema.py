"""Configuration schema dataclasses for repograph.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TabIconColourTheme(Enum):
    """Which icon set the floating panel's tab uses."""

    COLOUR = "colour"
    GREYSCALE = "grey"


class CommitOrdering(Enum):
    DATE = "date"
    AUTHOR_DATE = "author-date"
    TOPO = "topo"


DEFAULT_GRAPH_COLOURS = [
    "#0085d9",
    "#d9008f",
    "#00d90a",
    "#d98500",
    "#a300d9",
    "#ff0000",
    "#00d9cc",
    "#e138e8",
    "#85d900",
    "#dc5b23",
    "#6f24d6",
    "#ffcc00",
]


@dataclass
class ToolbarButtonVisibility:
    """Optional toolbar controls in the working document."""

    remotes: bool = True
    simplify: bool = True


@dataclass
class ViewConfig:
    """Options that shape the rendered document and the floating panel.

    Example config.yaml:
        view:
          commit_ordering: topo
          show_remote_branches: false
          graph_colours: ["#ff0000", "#00ff00"]
          toolbar_button_visibility:
            simplify: false
    """

    commit_ordering: CommitOrdering = CommitOrdering.DATE
    date_format: str = "Date & Time"
    graph_colours: list[str] = field(default_factory=lambda: list(DEFAULT_GRAPH_COLOURS))
    show_remote_branches: bool = True
    show_stashes: bool = True
    show_tags: bool = True
    simplify_by_decoration: bool = False
    only_follow_first_parent: bool = False
    include_commits_mentioned_by_reflogs: bool = False
    initial_load_commits: int = 300
    load_more_commits: int = 100
    load_more_commits_automatically: bool = True
    fetch_avatars: bool = False
    fetch_and_prune: bool = False
    fetch_and_prune_tags: bool = False
    sticky_header: bool = True
    retain_context_when_hidden: bool = True
    tab_icon_colour_theme: TabIconColourTheme = TabIconColourTheme.COLOUR
    toolbar_button_visibility: ToolbarButtonVisibility = field(
        default_factory=ToolbarButtonVisibility
    )


@dataclass
class FileWatchConfig:
    """Repository file watching configuration.

    Example config.yaml:
        file_watch:
          poll_interval: 1.0
          resume_delay: 1.5
          ignore_dirs: ["node_modules", ".venv"]
    """

    enabled: bool = True
    poll_interval: float = 0.75  # Seconds between polling cycles
    resume_delay: float = 0.0  # Seconds to keep swallowing changes after unmute
    ignore_dirs: list[str] = field(
        default_factory=lambda: ["node_modules", ".venv", "__pycache__"]
    )
    max_files: int = 20000


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class BridgeConfig:
    """WebSocket bridge configuration."""

    host: str = "127.0.0.1"
    port: int = 8765


@dataclass
class Config:
    """Root configuration object."""

    view: ViewConfig = field(default_factory=ViewConfig)
    file_watch: FileWatchConfig = field(default_factory=FileWatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)

    # Unknown top-level sections are kept verbatim
    extra: dict[str, Any] = field(default_factory=dict)
