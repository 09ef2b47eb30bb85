"""View hosts, their shared core and the command dispatcher."""

from repograph.view.core import SurfaceHost, ViewCore
from repograph.view.correlator import QueryKind, RefreshCorrelator
from repograph.view.dispatcher import CommandDispatcher, run_gated
from repograph.view.document import DocumentState, render_document, standardise_csp_source
from repograph.view.hosts import DockedViewHost, FloatingViewHost
from repograph.view.lifecycle import ViewLifecycle, ViewState
from repograph.view.registry import ViewRegistry, default_registry

__all__ = [
    "CommandDispatcher",
    "DockedViewHost",
    "DocumentState",
    "FloatingViewHost",
    "QueryKind",
    "RefreshCorrelator",
    "SurfaceHost",
    "ViewCore",
    "ViewLifecycle",
    "ViewRegistry",
    "ViewState",
    "default_registry",
    "render_document",
    "run_gated",
    "standardise_csp_source",
]
