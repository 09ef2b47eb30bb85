"""Where config files live, lowest priority first.

============  ==========================================  ===============================
Level         Unix                                        Windows
============  ==========================================  ===============================
system        /etc/repograph/config.yaml                  %PROGRAMDATA%\\repograph\\...
user          $XDG_CONFIG_HOME/repograph, ~/.config/...,  %APPDATA%\\repograph\\...
              or ~/.rg when there is no ~/.config
project       <workspace>/.rg/config.yaml                 same
============  ==========================================  ===============================
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "repograph"
SHORT_NAME = ".rg"


def _windows_dir(env_var: str) -> Path | None:
    base = os.environ.get(env_var)
    return Path(base) / APP_NAME if base else None


def get_system_config_path() -> Path | None:
    directory = _windows_dir("PROGRAMDATA") if sys.platform == "win32" else Path("/etc", APP_NAME)
    return directory / CONFIG_FILENAME if directory else None


def get_user_config_path() -> Path | None:
    """User-level config file. It need not exist."""
    if sys.platform == "win32":
        directory = _windows_dir("APPDATA")
    elif os.environ.get("XDG_CONFIG_HOME"):
        directory = Path(os.environ["XDG_CONFIG_HOME"]) / APP_NAME
    elif (Path.home() / ".config").exists():
        directory = Path.home() / ".config" / APP_NAME
    else:
        directory = Path.home() / SHORT_NAME
    return directory / CONFIG_FILENAME if directory else None


def get_project_config_path(workspace_root: str) -> Path:
    return Path(workspace_root, SHORT_NAME, CONFIG_FILENAME)


def get_config_paths(workspace_root: str | None = None) -> list[Path]:
    """System, user and (given a workspace) project paths, in that order."""
    candidates = [get_system_config_path(), get_user_config_path()]
    if workspace_root:
        candidates.append(get_project_config_path(workspace_root))
    return [path for path in candidates if path is not None]
