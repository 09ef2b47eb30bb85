"""The view core shared by both view host variants.

ViewCore owns the dispatcher, lifecycle, watch coordinator and refresh
correlator of one host. It renders documents into the host's surface and
is the only place messages are posted to it. Hosts differ only in how they
are created and revealed; they hand the core a SurfaceHost and forward
host events to it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, Protocol

from repograph.config import Config, get_config
from repograph.logging import get_logger
from repograph.messages.common import LoadTarget, RepoSet
from repograph.messages.responses import (
    FetchAvatarMessage,
    LoadReposResponse,
    RefreshMessage,
    ResponseMessage,
)
from repograph.protocols import AvatarEvent, RepoChangeEvent, UISurface, Unsubscribe, ViewServices
from repograph.view.correlator import QueryKind, RefreshCorrelator
from repograph.view.dispatcher import CommandDispatcher
from repograph.view.document import (
    SCRIPT_FILE,
    STYLE_FILE,
    DocumentContext,
    InitialState,
    choose_state,
    render_document,
    surface_config,
)
from repograph.view.lifecycle import ViewLifecycle
from repograph.watching import FileWatchCoordinator
from repograph.watching.coordinator import WatcherFactory

log = get_logger("view")

MEDIA_DIR = "media"


class SurfaceHost(Protocol):
    """What the core needs from a view host."""

    @property
    def surface(self) -> UISurface: ...

    @property
    def visible(self) -> bool: ...


class ViewCore:
    """Protocol and lifecycle behavior of one view host.

    Inbound messages are dispatched as independent tasks, so several
    requests may be in flight at once and respond in any order. The core
    keeps a reference to each task until it finishes.
    """

    def __init__(
        self,
        host: SurfaceHost,
        services: ViewServices,
        *,
        watcher_factory: WatcherFactory | None = None,
    ) -> None:
        self._host = host
        self.services = services
        self.config: Config = services.config or get_config()

        self.lifecycle = ViewLifecycle()
        self.correlator = RefreshCorrelator()

        watch_config = self.config.file_watch
        if watcher_factory is None:
            self.watch = FileWatchCoordinator.from_config(self._on_files_changed, watch_config)
        else:
            self.watch = FileWatchCoordinator(
                self._on_files_changed,
                watcher_factory=watcher_factory,
                resume_delay=watch_config.resume_delay,
                enabled=watch_config.enabled,
            )

        self.dispatcher = CommandDispatcher(self)

        self._tasks: set[asyncio.Task[Any]] = set()
        self._surface_unsubscribe: Unsubscribe | None = None
        self._graph_loaded = False

    @property
    def surface(self) -> UISurface:
        return self._host.surface

    @property
    def graph_loaded(self) -> bool:
        """Whether the last render produced the working document."""
        return self._graph_loaded

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Subscribe to collaborators and render the first document."""
        if not self.lifecycle.initialize():
            log.debug("View already initialized")
            return

        self.lifecycle.register_cleanup(self.watch.stop)
        self.lifecycle.register_cleanup(self._detach_surface)
        self.lifecycle.register_cleanup(
            self.services.repo_manager.on_did_change_repos(self._on_repos_changed)
        )
        self.lifecycle.register_cleanup(self.services.avatar_manager.on_avatar(self._on_avatar))
        self.attach_surface()

        target = self.lifecycle.pending_target
        self.render()
        if target is None:
            log.info("Created view")
        else:
            log.info("Created view (active repo: %s)", target.repo)

    def attach_surface(self) -> None:
        """Listen to the host's current surface, replacing any previous listener."""
        self._detach_surface()
        self._surface_unsubscribe = self.surface.on_did_receive_message(self._on_message)

    def reattach_surface(self, visible: bool) -> None:
        """Adopt a replacement surface from the host.

        A hidden surface is left blank; it is rendered when it becomes visible.
        """
        if self.lifecycle.is_disposed:
            return
        self.attach_surface()
        if self.lifecycle.set_visible(visible) and not visible:
            self.watch.stop()
        if visible:
            self.render()

    def _detach_surface(self) -> None:
        if self._surface_unsubscribe is not None:
            self._surface_unsubscribe()
            self._surface_unsubscribe = None

    def on_visibility_changed(self) -> None:
        self.set_visible(self._host.visible)

    def set_visible(self, visible: bool) -> None:
        if not self.lifecycle.set_visible(visible):
            return
        if visible:
            log.debug("View became visible")
            self.render()
        else:
            log.debug("View hidden, stopping file watcher")
            self.watch.stop()

    def dispose(self) -> None:
        # In-flight tasks run to completion; their sends are dropped
        self.lifecycle.dispose()

    async def drain(self) -> None:
        """Wait for every in-flight message task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # =========================================================================
    # Rendering
    # =========================================================================

    def render(self) -> None:
        """Render a fresh document, consuming the pending LoadTarget."""
        services = self.services
        state_store = services.extension_state
        repos = services.repo_manager.get_repos()
        target = self.lifecycle.take_pending_target()
        surface = self.surface

        initial_state = InitialState(
            config=surface_config(self.config.view, state_store.is_avatar_storage_available()),
            repos=repos,
            last_active_repo=state_store.get_last_active_repo(),
            load_view_to=target,
            load_repo_info_refresh_id=self.correlator.latest(QueryKind.REPO_INFO),
            load_commits_refresh_id=self.correlator.latest(QueryKind.COMMITS),
        )
        ctx = DocumentContext(
            state=choose_state(services.backend.is_git_executable_unknown(), len(repos)),
            initial_state=initial_state,
            csp_source=surface.csp_source,
            script_uri=surface.as_surface_uri(MEDIA_DIR, SCRIPT_FILE),
            style_uri=surface.as_surface_uri(MEDIA_DIR, STYLE_FILE),
            global_view_state=state_store.get_global_view_state(),
            workspace_view_state=state_store.get_workspace_view_state(),
        )
        surface.html = render_document(ctx)
        self._graph_loaded = len(repos) > 0
        log.debug("Rendered %s document (%d repos)", ctx.state.value, len(repos))

    # =========================================================================
    # Outbound messages
    # =========================================================================

    async def send_message(self, message: ResponseMessage) -> None:
        """Post ``message`` to the surface. Failures are logged, never retried."""
        if self.lifecycle.is_disposed:
            log.debug("View disposed, dropping %r message", message.command)
            return
        try:
            delivered = await self.surface.post_message(message.to_wire())
        except Exception as e:
            log.warning("Failed to post %r message to view: %s", message.command, e)
            return
        if not delivered:
            log.debug("View did not accept %r message", message.command)

    async def respond_load_repos(self, repos: RepoSet, target: LoadTarget | None) -> None:
        await self.send_message(
            LoadReposResponse(
                repos=repos,
                last_active_repo=self.services.extension_state.get_last_active_repo(),
                load_view_to=target,
            )
        )

    async def update_with_repos(self, repos: RepoSet, target: LoadTarget | None) -> None:
        """Point an existing view at ``target``.

        A visible view is told immediately; otherwise the target waits for
        the next render.
        """
        if target is None:
            return
        if self.lifecycle.is_visible:
            await self.respond_load_repos(repos, target)
        else:
            self.lifecycle.defer(target)

    # =========================================================================
    # Inbound events
    # =========================================================================

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_message(self, data: dict[str, Any]) -> None:
        if self.lifecycle.is_disposed:
            log.debug("View disposed, ignoring inbound message")
            return
        self._spawn(self.dispatcher.handle_raw(data))

    def _on_files_changed(self) -> None:
        if self.lifecycle.is_visible:
            self._spawn(self.send_message(RefreshMessage()))

    def _on_avatar(self, event: AvatarEvent) -> None:
        self._spawn(self.send_message(FetchAvatarMessage(email=event.email, image=event.image)))

    def _on_repos_changed(self, event: RepoChangeEvent) -> None:
        target = LoadTarget(repo=event.load_repo) if event.load_repo is not None else None
        if not self.lifecycle.is_visible:
            self.lifecycle.defer(target)
            return
        # Crossing between zero and some repositories needs a different document
        if (event.num_repos == 0) == self._graph_loaded:
            self.lifecycle.defer(target)
            self.render()
        else:
            self._spawn(self.respond_load_repos(event.repos, target))
