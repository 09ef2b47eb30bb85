"""repograph: message dispatch and view lifecycle for a repository graph viewer."""

__version__ = "0.1.0"

# Public API
from repograph.config import Config, get_config, load_config
from repograph.errors import ProtocolError, RepographError, RepositoryError
from repograph.messages import LoadTarget, parse_request
from repograph.protocols import RepoChangeEvent, ViewServices
from repograph.view import (
    CommandDispatcher,
    DockedViewHost,
    FloatingViewHost,
    ViewCore,
    ViewRegistry,
    ViewState,
    default_registry,
)
from repograph.watching import FileWatchCoordinator, RepoFileWatcher

__all__ = [
    # View hosts
    "DockedViewHost",
    "FloatingViewHost",
    "ViewCore",
    "ViewRegistry",
    "ViewState",
    "default_registry",
    # Dispatch
    "CommandDispatcher",
    "LoadTarget",
    "parse_request",
    # Collaborators
    "RepoChangeEvent",
    "ViewServices",
    # Watching
    "FileWatchCoordinator",
    "RepoFileWatcher",
    # Config
    "Config",
    "get_config",
    "load_config",
    # Errors
    "ProtocolError",
    "RepographError",
    "RepositoryError",
    "__version__",
]
