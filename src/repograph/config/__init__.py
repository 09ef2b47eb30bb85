"""Configuration management for repograph.

Hierarchical YAML configuration:
- System-level config (/etc/repograph/ or %PROGRAMDATA%)
- User-level config (~/.config/repograph/, ~/.rg/ or %APPDATA%)
- Project-level config (<workspace>/.rg/)
- Environment variable overrides (highest priority)

Example usage:
    from repograph.config import load_config

    config = load_config(workspace_root="/path/to/workspace")
    print(config.view.initial_load_commits)
"""

from repograph.config.loader import (
    get_config,
    load_config,
    on_config_reload,
    reload_config,
    reset_config,
)
from repograph.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from repograph.config.schema import (
    BridgeConfig,
    CommitOrdering,
    Config,
    FileWatchConfig,
    LoggingConfig,
    TabIconColourTheme,
    ToolbarButtonVisibility,
    ViewConfig,
)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    "on_config_reload",
    "BridgeConfig",
    "CommitOrdering",
    "FileWatchConfig",
    "LoggingConfig",
    "TabIconColourTheme",
    "ToolbarButtonVisibility",
    "ViewConfig",
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
