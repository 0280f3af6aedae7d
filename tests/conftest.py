"""
Pytest configuration and fakes standing in for a compositor.
"""

from typing import Any, Callable, Dict, List, Optional

import pytest

from almost_fullscreen.fit.geometry import Rect
from almost_fullscreen.fit.host import WINDOW_TYPE_NORMAL, ActorRef, Host, WindowRef


class FakeActor(ActorRef):
    def __init__(self):
        self.eases: List[tuple] = []

    def ease(self, target: Rect, duration_ms: int, mode: str) -> None:
        self.eases.append((target, duration_ms, mode))


class FakeWindow(WindowRef):
    """Records every command; maximizing fills the work area like a compositor would."""

    def __init__(
        self,
        frame=Rect(100, 100, 640, 480),
        buffer=None,
        window_type=WINDOW_TYPE_NORMAL,
        wm_class="org.example.Editor",
        monitor=0,
        maximized=False,
        resizable=True,
        actor: Optional[ActorRef] = None,
    ):
        self.frame = frame
        self.buffer = buffer or frame
        self._window_type = window_type
        self.wm_class = wm_class
        self.monitor = monitor
        self.max_h = maximized
        self.max_v = maximized
        self.resizable = resizable
        self.actor = actor
        self.destroyed = False
        self.calls: List[tuple] = []

    @property
    def window_type(self) -> str:
        return self._window_type

    @property
    def maximized_horizontally(self) -> bool:
        return self.max_h

    @property
    def maximized_vertically(self) -> bool:
        return self.max_v

    def is_destroyed(self) -> bool:
        return self.destroyed

    def allows_resize(self) -> bool:
        return self.resizable

    def get_frame_rect(self) -> Rect:
        return self.frame

    def get_buffer_rect(self) -> Rect:
        return self.buffer

    def get_monitor(self) -> Any:
        return self.monitor

    def get_wm_class(self) -> Optional[str]:
        return self.wm_class

    def get_actor(self) -> Optional[ActorRef]:
        return self.actor

    def maximize(self) -> None:
        self.calls.append(("maximize",))
        self.max_h = self.max_v = True

    def unmaximize(self) -> None:
        self.calls.append(("unmaximize",))
        self.max_h = self.max_v = False

    def move_resize_frame(self, x: int, y: int, width: int, height: int) -> None:
        self.calls.append(("move_resize_frame", x, y, width, height))
        dx, dy = self.buffer.x - self.frame.x, self.buffer.y - self.frame.y
        self.frame = Rect(x, y, width, height)
        self.buffer = Rect(x + dx, y + dy, width, height)

    def command_names(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeHost(Host):
    """
    Timers only run when a test calls `run_timers`; signals only fire when a
    test calls `create_window`, `render_first_frame` or `destroy_window`.
    """

    def __init__(self, work_areas=None, supports_actors=True):
        self.work_areas: Dict[Any, Rect] = work_areas or {0: Rect(0, 0, 1920, 1080)}
        self.supports_actors = supports_actors
        self.focused: Optional[WindowRef] = None
        self.timers: Dict[int, tuple] = {}
        self.removed_timers: List[int] = []
        self.handles: Dict[int, tuple] = {}
        self.keybindings: Dict[str, tuple] = {}
        self.fail_keybinding = False
        self._next_id = 1

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def get_work_area(self, monitor: Any) -> Rect:
        return self.work_areas[monitor]

    def get_focused_window(self) -> Optional[WindowRef]:
        return self.focused

    def timeout_add(self, delay_ms: int, callback: Callable[[], bool]) -> int:
        source_id = self._new_id()
        self.timers[source_id] = (delay_ms, callback)
        return source_id

    def source_remove(self, source_id: int) -> None:
        self.timers.pop(source_id, None)
        self.removed_timers.append(source_id)

    def run_timers(self) -> None:
        """Fires every pending timer in delay order."""
        for source_id, (_, callback) in sorted(
            self.timers.items(), key=lambda item: item[1][0]
        ):
            if self.timers.pop(source_id, None) is not None:
                callback()

    def timer_delays(self) -> List[int]:
        return sorted(delay for delay, _ in self.timers.values())

    def connect_window_created(self, callback) -> int:
        handle = self._new_id()
        self.handles[handle] = ("window-created", None, callback)
        return handle

    def connect_first_frame(self, window, callback) -> int:
        handle = self._new_id()
        self.handles[handle] = ("first-frame", window, callback)
        return handle

    def connect_destroyed(self, window, callback) -> int:
        handle = self._new_id()
        self.handles[handle] = ("destroyed", window, callback)
        return handle

    def disconnect(self, handle: int) -> None:
        del self.handles[handle]

    def handles_of(self, kind: str) -> List[tuple]:
        return [h for h in self.handles.values() if h[0] == kind]

    def create_window(self, window: WindowRef) -> None:
        for _, _, callback in list(self.handles_of("window-created")):
            callback(window)

    def render_first_frame(self, window: WindowRef) -> None:
        for _, target, callback in list(self.handles_of("first-frame")):
            if target is window:
                callback(window)

    def destroy_window(self, window: WindowRef) -> None:
        window.destroyed = True
        for _, target, callback in list(self.handles_of("destroyed")):
            if target is window:
                callback(window)

    def add_keybinding(self, name: str, accelerator: str, callback) -> None:
        if self.fail_keybinding:
            raise RuntimeError("accelerator rejected")
        self.keybindings[name] = (accelerator, callback)

    def remove_keybinding(self, name: str) -> None:
        del self.keybindings[name]

    def press(self, name: str) -> None:
        self.keybindings[name][1]()


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def actor():
    return FakeActor()


@pytest.fixture
def window(actor):
    return FakeWindow(actor=actor)
