"""
Interfaces the fitter expects from the compositor it runs in.

Every call into the compositor goes through these classes, so the fitting
logic never touches a compositor's event-bus or socket types directly.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from almost_fullscreen.fit.geometry import Rect

WINDOW_TYPE_NORMAL = "normal"
WINDOW_TYPE_DIALOG = "dialog"

KEYBINDING_ACTION = "almost-fullscreen-keybinding"


class ActorRef(ABC):
    """The compositor-side visual proxy of a window."""

    @abstractmethod
    def ease(self, target: Rect, duration_ms: int, mode: str) -> None:
        """Starts a cosmetic transition towards `target`. Never awaited."""


class WindowRef(ABC):
    """
    A borrowed handle to a compositor window.

    The handle is only valid for the callback or timer that received it; the
    window may be destroyed at any point in between.
    """

    @property
    @abstractmethod
    def window_type(self) -> str: ...

    @property
    @abstractmethod
    def maximized_horizontally(self) -> bool: ...

    @property
    @abstractmethod
    def maximized_vertically(self) -> bool: ...

    @property
    def maximized(self) -> bool:
        return self.maximized_horizontally or self.maximized_vertically

    @abstractmethod
    def is_destroyed(self) -> bool: ...

    @abstractmethod
    def allows_resize(self) -> bool: ...

    @abstractmethod
    def get_frame_rect(self) -> Rect: ...

    @abstractmethod
    def get_buffer_rect(self) -> Rect: ...

    @abstractmethod
    def get_monitor(self) -> Any: ...

    @abstractmethod
    def get_wm_class(self) -> Optional[str]: ...

    @abstractmethod
    def get_actor(self) -> Optional[ActorRef]: ...

    @abstractmethod
    def maximize(self) -> None: ...

    @abstractmethod
    def unmaximize(self) -> None: ...

    @abstractmethod
    def move_resize_frame(self, x: int, y: int, width: int, height: int) -> None:
        """Authoritative, immediate geometry change in frame coordinates."""


class Host(ABC):
    """
    The compositor services a plugin session consumes.

    Subscription and timer handles are opaque to the caller; they are only
    handed back to `disconnect` and `source_remove`.
    """

    supports_actors: bool = True

    @abstractmethod
    def get_work_area(self, monitor: Any) -> Rect: ...

    @abstractmethod
    def get_focused_window(self) -> Optional[WindowRef]: ...

    @abstractmethod
    def timeout_add(self, delay_ms: int, callback: Callable[[], bool]) -> Any:
        """Runs `callback` once after `delay_ms`; it returns False to stop."""

    @abstractmethod
    def source_remove(self, source_id: Any) -> None: ...

    @abstractmethod
    def connect_window_created(self, callback: Callable[[WindowRef], None]) -> Any: ...

    @abstractmethod
    def connect_first_frame(
        self, window: WindowRef, callback: Callable[[WindowRef], None]
    ) -> Any: ...

    @abstractmethod
    def connect_destroyed(
        self, window: WindowRef, callback: Callable[[WindowRef], None]
    ) -> Any:
        """Runs `callback` when `window` is unmapped or destroyed."""

    @abstractmethod
    def disconnect(self, handle: Any) -> None: ...

    @abstractmethod
    def add_keybinding(
        self, name: str, accelerator: str, callback: Callable[[], None]
    ) -> None: ...

    @abstractmethod
    def remove_keybinding(self, name: str) -> None: ...
