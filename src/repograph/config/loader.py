"""Reading, layering and caching of repograph config.

Each config file is a YAML mapping whose top-level keys are the sections of
``Config``. Files are layered system, user, project, and then the
environment (``RG_LOG``, ``RG_BRIDGE_PORT``) goes on top. The merged mapping
is converted field by field so a bad value in one place falls back to its
default instead of rejecting the whole file.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import yaml

from repograph.config.merge import merge_configs
from repograph.config.paths import get_config_paths
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

# Plain stdlib logger: config loads before setup_logging runs
_log = logging.getLogger("repograph.config")

_KNOWN_SECTIONS = frozenset({"view", "file_watch", "logging", "bridge"})

_E = TypeVar("_E", bound=Enum)

_global: Config | None = None
_listeners: list[Callable[[Config], None]] = []


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Mapping stored in ``path``; empty when missing, unreadable or not a mapping."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except PermissionError:
        _log.debug("No permission to read config %s", path)
        return {}
    except OSError as e:
        _log.warning("Cannot read config %s: %s", path, e)
        return {}

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        _log.warning("Ignoring config %s, it is not valid YAML: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def env_overrides() -> dict[str, Any]:
    """The environment as a config layer."""
    layer: dict[str, Any] = {}

    log_file = os.environ.get("RG_LOG")
    if log_file:
        layer["logging"] = {"file": log_file}

    raw_port = os.environ.get("RG_BRIDGE_PORT")
    if raw_port:
        if raw_port.isdigit():
            layer["bridge"] = {"port": int(raw_port)}
        else:
            _log.warning("Ignoring non-numeric RG_BRIDGE_PORT=%r", raw_port)

    return layer


def _enum_value(enum_type: type[_E], raw: Any, default: _E) -> _E:
    if raw is None:
        return default
    try:
        return enum_type(raw)
    except ValueError:
        _log.warning("Unknown %s value %r, using %s", enum_type.__name__, raw, default.value)
        return default


def _view_config(data: dict[str, Any]) -> ViewConfig:
    defaults = ViewConfig()
    toolbar = data.get("toolbar_button_visibility", {})
    colours = data.get("graph_colours")
    if isinstance(colours, list) and colours:
        graph_colours = [c for c in colours if isinstance(c, str)]
    else:
        graph_colours = defaults.graph_colours

    flags = {
        name: data.get(name, getattr(defaults, name))
        for name in (
            "date_format",
            "show_remote_branches",
            "show_stashes",
            "show_tags",
            "simplify_by_decoration",
            "only_follow_first_parent",
            "include_commits_mentioned_by_reflogs",
            "initial_load_commits",
            "load_more_commits",
            "load_more_commits_automatically",
            "fetch_avatars",
            "fetch_and_prune",
            "fetch_and_prune_tags",
            "sticky_header",
            "retain_context_when_hidden",
        )
    }
    return ViewConfig(
        commit_ordering=_enum_value(
            CommitOrdering, data.get("commit_ordering"), defaults.commit_ordering
        ),
        graph_colours=graph_colours,
        tab_icon_colour_theme=_enum_value(
            TabIconColourTheme, data.get("tab_icon_colour_theme"), defaults.tab_icon_colour_theme
        ),
        toolbar_button_visibility=ToolbarButtonVisibility(
            remotes=toolbar.get("remotes", True),
            simplify=toolbar.get("simplify", True),
        ),
        **flags,
    )


def _file_watch_config(data: dict[str, Any]) -> FileWatchConfig:
    defaults = FileWatchConfig()
    ignore_dirs = data.get("ignore_dirs", defaults.ignore_dirs)
    return FileWatchConfig(
        enabled=data.get("enabled", defaults.enabled),
        poll_interval=float(data.get("poll_interval", defaults.poll_interval)),
        resume_delay=float(data.get("resume_delay", defaults.resume_delay)),
        ignore_dirs=[d for d in ignore_dirs if isinstance(d, str)],
        max_files=data.get("max_files", defaults.max_files),
    )


def dict_to_config(data: dict[str, Any]) -> Config:
    """Typed config from a merged mapping. Unknown sections land in ``extra``."""
    log_data = data.get("logging", {})
    bridge_data = data.get("bridge", {})
    bridge_defaults = BridgeConfig()
    return Config(
        view=_view_config(data.get("view", {})),
        file_watch=_file_watch_config(data.get("file_watch", {})),
        logging=LoggingConfig(
            level=log_data.get("level"),
            verbose=log_data.get("verbose"),
            file=log_data.get("file"),
        ),
        bridge=BridgeConfig(
            host=bridge_data.get("host", bridge_defaults.host),
            port=bridge_data.get("port", bridge_defaults.port),
        ),
        extra={k: v for k, v in data.items() if k not in _KNOWN_SECTIONS},
    )


def load_config(workspace_root: str | None = None, reload: bool = False) -> Config:
    """Merge every config layer into a ``Config``.

    Later layers win: system, user, project (only with ``workspace_root``),
    then the environment. Only the workspace-less result is cached, and
    ``reload`` bypasses the cache.
    """
    global _global

    if workspace_root is None and _global is not None and not reload:
        return _global

    layers = []
    for path in get_config_paths(workspace_root):
        layer = load_yaml_file(path)
        if layer:
            _log.debug("Using config layer %s", path)
            layers.append(layer)
    layers.append(env_overrides())

    config = dict_to_config(merge_configs(*layers))
    if workspace_root is None:
        _global = config
    return config


def get_config() -> Config:
    """The cached global config, loaded on first use."""
    return _global if _global is not None else load_config()


def reset_config() -> None:
    """Forget the cached global config."""
    global _global
    _global = None


def reload_config(workspace_root: str | None = None) -> Config:
    """Load config afresh and hand it to every ``on_config_reload`` listener."""
    config = load_config(workspace_root=workspace_root, reload=True)
    for listener in list(_listeners):
        try:
            listener(config)
        except Exception:
            _log.exception("Config reload listener failed")
    return config


def on_config_reload(listener: Callable[[Config], None]) -> Callable[[], None]:
    """Call ``listener`` after each reload until the returned function is called."""
    _listeners.append(listener)

    def unsubscribe() -> None:
        if listener in _listeners:
            _listeners.remove(listener)

    return unsubscribe
