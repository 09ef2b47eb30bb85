"""Visibility state machine of a view host.

    UNINITIALIZED --initialize--> VISIBLE <--set_visible--> HIDDEN
          any state --dispose--> DISPOSED (terminal)

The lifecycle only tracks state; ViewCore performs the renders and watcher
changes each transition calls for.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import ExitStack
from enum import Enum

from repograph.logging import get_logger
from repograph.messages.common import LoadTarget

log = get_logger("view")


class ViewState(Enum):
    UNINITIALIZED = "uninitialized"
    VISIBLE = "visible"
    HIDDEN = "hidden"
    DISPOSED = "disposed"


class ViewLifecycle:
    """Tracks visibility, the pending LoadTarget and the focused repository.

    Attributes:
        current_repo: Repository the surface last loaded info for. Cleared
            when the view is hidden so the next load restarts the watcher.
    """

    def __init__(self) -> None:
        self._state = ViewState.UNINITIALIZED
        self._pending: LoadTarget | None = None
        self._cleanups = ExitStack()
        self.current_repo: str | None = None

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def is_visible(self) -> bool:
        return self._state is ViewState.VISIBLE

    @property
    def is_disposed(self) -> bool:
        return self._state is ViewState.DISPOSED

    @property
    def pending_target(self) -> LoadTarget | None:
        return self._pending

    def defer(self, target: LoadTarget | None) -> None:
        """Remember ``target`` for the next render; None leaves any pending target."""
        if target is not None:
            self._pending = target

    def take_pending_target(self) -> LoadTarget | None:
        """Return the pending target and clear it. Each target is consumed once."""
        target, self._pending = self._pending, None
        return target

    def initialize(self) -> bool:
        """Uninitialized -> Visible. Returns False if already initialized or disposed."""
        if self._state is not ViewState.UNINITIALIZED:
            return False
        self._state = ViewState.VISIBLE
        return True

    def set_visible(self, visible: bool) -> bool:
        """Apply a host visibility change.

        Returns:
            True if the state changed, False for repeats and for changes
            before initialization or after disposal.
        """
        if visible and self._state is ViewState.HIDDEN:
            self._state = ViewState.VISIBLE
            return True
        if not visible and self._state is ViewState.VISIBLE:
            self._state = ViewState.HIDDEN
            self.current_repo = None
            return True
        return False

    def register_cleanup(self, callback: Callable[[], object]) -> None:
        """Run ``callback`` on dispose. Cleanups run in reverse registration order."""
        self._cleanups.callback(callback)

    def dispose(self) -> bool:
        """Enter DISPOSED and run the cleanups. Only the first call does anything."""
        if self._state is ViewState.DISPOSED:
            return False
        self._state = ViewState.DISPOSED
        self._pending = None
        self.current_repo = None
        log.debug("Disposing view")
        self._cleanups.close()
        return True
