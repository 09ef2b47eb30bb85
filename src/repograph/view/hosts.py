"""The two view host variants: a floating panel and a docked view.

Both compose a ViewCore and differ only in how they are created, revealed
and told about their surface:

- FloatingViewHost: the host creates a panel on request, and disposing
  the panel disposes the view.
- DockedViewHost: the host materializes the view lazily through
  resolve_view(), possibly several times over the instance's lifetime.
"""

from __future__ import annotations

import os
from typing import Any

from repograph.config import TabIconColourTheme, get_config
from repograph.logging import get_logger
from repograph.messages.common import LoadTarget
from repograph.protocols import (
    DockedViewHandle,
    HostWindow,
    PanelHandle,
    UISurface,
    Unsubscribe,
    ViewServices,
)
from repograph.view.core import ViewCore
from repograph.view.lifecycle import ViewState
from repograph.view.registry import ViewRegistry, default_registry
from repograph.watching.coordinator import WatcherFactory

log = get_logger("view")

PANEL_VIEW_TYPE = "repograph"
PANEL_TITLE = "Repository Graph"
DEFAULT_COLUMN = 1

DOCKED_VIEW_TYPE = "repograph.panel"
DOCKED_FOCUS_COMMAND = f"{DOCKED_VIEW_TYPE}.focus"
DOCKED_CONTAINER_COMMAND = "workbench.view.extension.repograph-panel"


def tab_icon_path(extension_path: str, theme: TabIconColourTheme) -> Any:
    """Icon for the floating panel's tab: one file, or a light/dark pair."""
    resources = os.path.join(extension_path, "resources")
    if theme is TabIconColourTheme.COLOUR:
        return os.path.join(resources, "webview-icon.svg")
    return {
        "light": os.path.join(resources, "webview-icon-light.svg"),
        "dark": os.path.join(resources, "webview-icon-dark.svg"),
    }


class FloatingViewHost:
    """A view hosted in a floating editor panel."""

    def __init__(
        self,
        panel: PanelHandle,
        services: ViewServices,
        registry: ViewRegistry,
        target: LoadTarget | None,
        *,
        watcher_factory: WatcherFactory | None = None,
    ) -> None:
        self._panel = panel
        self.core = ViewCore(self, services, watcher_factory=watcher_factory)

        lifecycle = self.core.lifecycle
        lifecycle.defer(target)
        lifecycle.register_cleanup(panel.dispose)
        lifecycle.register_cleanup(lambda: registry.release(FloatingViewHost, self))
        lifecycle.register_cleanup(panel.on_did_dispose(self.core.dispose))
        lifecycle.register_cleanup(panel.on_did_change_view_state(self.core.on_visibility_changed))
        self.core.initialize()

    @property
    def surface(self) -> UISurface:
        return self._panel.surface

    @property
    def visible(self) -> bool:
        return self._panel.visible

    @classmethod
    async def create_or_show(
        cls,
        window: HostWindow,
        services: ViewServices,
        target: LoadTarget | None = None,
        *,
        registry: ViewRegistry = default_registry,
        watcher_factory: WatcherFactory | None = None,
    ) -> FloatingViewHost:
        """Reveal the existing panel, or create the first one.

        An existing panel is pointed at ``target`` and revealed in the active
        column; no second instance is ever created.
        """
        column = window.active_column()

        existing = registry.get(cls)
        if existing is not None:
            await existing.core.update_with_repos(services.repo_manager.get_repos(), target)
            existing.reveal(column)
            return existing

        config = services.config or get_config()
        panel = window.create_panel(
            PANEL_VIEW_TYPE,
            PANEL_TITLE,
            column or DEFAULT_COLUMN,
            retain_context_when_hidden=config.view.retain_context_when_hidden,
            resource_roots=[os.path.join(services.extension_path, "media")],
        )
        panel.icon_path = tab_icon_path(services.extension_path, config.view.tab_icon_colour_theme)

        host = cls(panel, services, registry, target, watcher_factory=watcher_factory)
        registry.register(cls, host)
        return host

    def reveal(self, column: int | None = None) -> None:
        try:
            self._panel.reveal(column)
            return
        except Exception as e:
            log.debug("Reveal in column %s failed: %s", column, e)
        try:
            self._panel.reveal()
        except Exception:
            log.exception("Failed to reveal the repository graph panel")

    def dispose(self) -> None:
        self.core.dispose()


class DockedViewHost:
    """A view docked in the host's side or bottom panel.

    The host may create and destroy the underlying view at any time.
    The core is initialized on the first resolve; later resolves hand the
    core the new surface and re-render.
    """

    def __init__(
        self,
        window: HostWindow,
        services: ViewServices,
        registry: ViewRegistry,
        *,
        watcher_factory: WatcherFactory | None = None,
    ) -> None:
        self._window = window
        self._services = services
        self._handle: DockedViewHandle | None = None
        self._handle_subscriptions: list[Unsubscribe] = []
        self.core = ViewCore(self, services, watcher_factory=watcher_factory)

        lifecycle = self.core.lifecycle
        lifecycle.register_cleanup(lambda: registry.release(DockedViewHost, self))
        lifecycle.register_cleanup(self._unbind_handle)

    @classmethod
    def get_instance(
        cls,
        window: HostWindow,
        services: ViewServices,
        *,
        registry: ViewRegistry = default_registry,
        watcher_factory: WatcherFactory | None = None,
    ) -> DockedViewHost:
        existing = registry.get(cls)
        if existing is not None:
            return existing
        host = cls(window, services, registry, watcher_factory=watcher_factory)
        registry.register(cls, host)
        return host

    @property
    def surface(self) -> UISurface:
        if self._handle is None:
            raise RuntimeError("Docked view has not been resolved")
        return self._handle.surface

    @property
    def visible(self) -> bool:
        return self._handle is not None and self._handle.visible

    @property
    def is_resolved(self) -> bool:
        return self._handle is not None

    def resolve_view(self, handle: DockedViewHandle) -> None:
        """Called by the host each time it materializes the docked view."""
        if self.core.lifecycle.is_disposed:
            log.warning("Ignoring resolve of a disposed docked view")
            return

        self._unbind_handle()
        self._handle = handle
        self._handle_subscriptions = [
            handle.on_did_change_visibility(self.core.on_visibility_changed),
            handle.on_did_dispose(self._on_handle_disposed),
        ]

        if self.core.lifecycle.state is ViewState.UNINITIALIZED:
            self.core.initialize()
        else:
            self.core.reattach_surface(handle.visible)

    async def show(self, target: LoadTarget | None = None) -> None:
        """Reveal the docked view and point it at ``target``."""
        if self._handle is None:
            await self._reveal_unresolved()

        if self._handle is not None:
            self._handle.show(preserve_focus=True)
            await self.core.update_with_repos(self._services.repo_manager.get_repos(), target)
        else:
            # Flushed by the first render after resolve_view
            self.core.lifecycle.defer(target)

    async def _reveal_unresolved(self) -> None:
        try:
            await self._window.execute_command(DOCKED_FOCUS_COMMAND)
            return
        except Exception as e:
            log.debug("%s failed: %s", DOCKED_FOCUS_COMMAND, e)
        try:
            await self._window.execute_command(DOCKED_CONTAINER_COMMAND)
        except Exception:
            log.exception("Failed to reveal the docked repository graph view")

    def _on_handle_disposed(self) -> None:
        self._unbind_handle()
        self._handle = None
        self.core.set_visible(False)

    def _unbind_handle(self) -> None:
        for unsubscribe in self._handle_subscriptions:
            unsubscribe()
        self._handle_subscriptions = []

    def dispose(self) -> None:
        self.core.dispose()
