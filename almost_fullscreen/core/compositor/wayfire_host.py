"""
Wayfire implementation of the host interface.

Windows are Wayfire views addressed by id, every property is read from a
fresh `get_view` reply, and events arrive through the event manager plugin.
"""

import re
from typing import Any, Callable, Dict, Optional

from gi.repository import GLib  # pyright: ignore

from almost_fullscreen.fit.geometry import Rect
from almost_fullscreen.fit.host import (
    WINDOW_TYPE_DIALOG,
    WINDOW_TYPE_NORMAL,
    ActorRef,
    Host,
    WindowRef,
)

EDGE_TOP = 1
EDGE_BOTTOM = 2
EDGE_LEFT = 4
EDGE_RIGHT = 8

MODIFIERS = {
    "super": "super",
    "meta": "super",
    "hyper": "super",
    "mod4": "super",
    "control": "ctrl",
    "ctrl": "ctrl",
    "primary": "ctrl",
    "alt": "alt",
    "mod1": "alt",
    "shift": "shift",
}

KEY_NAMES = {
    "return": "KEY_ENTER",
    "enter": "KEY_ENTER",
    "space": "KEY_SPACE",
    "tab": "KEY_TAB",
    "escape": "KEY_ESC",
    "backspace": "KEY_BACKSPACE",
    "delete": "KEY_DELETE",
    "insert": "KEY_INSERT",
    "home": "KEY_HOME",
    "end": "KEY_END",
    "page_up": "KEY_PAGEUP",
    "page_down": "KEY_PAGEDOWN",
    "up": "KEY_UP",
    "down": "KEY_DOWN",
    "left": "KEY_LEFT",
    "right": "KEY_RIGHT",
    "minus": "KEY_MINUS",
    "equal": "KEY_EQUAL",
}

_ACCELERATOR_RE = re.compile(r"<([^>]+)>")


def to_wayfire_binding(accelerator: str) -> str:
    """
    Converts a GTK style accelerator such as "<Super>f" into Wayfire's
    binding syntax, "<super> KEY_F". Strings already in Wayfire syntax are
    returned unchanged.

    Raises:
        ValueError: The accelerator has no key or an unknown modifier.
    """
    accelerator = accelerator.strip()
    if "KEY_" in accelerator or "BTN_" in accelerator:
        return accelerator
    modifiers = []
    for name in _ACCELERATOR_RE.findall(accelerator):
        modifier = MODIFIERS.get(name.strip().lower())
        if modifier is None:
            raise ValueError(f"Unknown modifier '{name}' in '{accelerator}'")
        if modifier not in modifiers:
            modifiers.append(modifier)
    key = _ACCELERATOR_RE.sub("", accelerator).strip()
    if not key:
        raise ValueError(f"No key in accelerator '{accelerator}'")
    key_name = KEY_NAMES.get(key.lower(), f"KEY_{key.upper()}")
    return " ".join([f"<{m}>" for m in modifiers] + [key_name])


class WayfireWindow(WindowRef):
    def __init__(self, ipc, view_id: int):
        self.ipc = ipc
        self.view_id = view_id

    def __repr__(self):
        return f"WayfireWindow(view_id={self.view_id})"

    def _view(self) -> Dict[str, Any]:
        view = self.ipc.get_view(self.view_id)
        if not view:
            raise LookupError(f"View {self.view_id} no longer exists")
        return view

    @property
    def window_type(self) -> str:
        view = self._view()
        role = view.get("role", "")
        if role != "toplevel" or view.get("type", "toplevel") != "toplevel":
            return role or "unknown"
        if view.get("parent", -1) not in (-1, None):
            return WINDOW_TYPE_DIALOG
        return WINDOW_TYPE_NORMAL

    def _edges(self) -> int:
        return self._view().get("tiled-edges", 0) or 0

    @property
    def maximized_horizontally(self) -> bool:
        edges = self._edges()
        return edges & (EDGE_LEFT | EDGE_RIGHT) == EDGE_LEFT | EDGE_RIGHT

    @property
    def maximized_vertically(self) -> bool:
        edges = self._edges()
        return edges & (EDGE_TOP | EDGE_BOTTOM) == EDGE_TOP | EDGE_BOTTOM

    def is_destroyed(self) -> bool:
        view = self.ipc.get_view(self.view_id)
        return not view or not view.get("mapped", True)

    def allows_resize(self) -> bool:
        view = self._view()
        min_size = view.get("min-size") or {}
        max_size = view.get("max-size") or {}

        def fixed(dimension):
            upper = max_size.get(dimension, 0)
            return bool(upper) and min_size.get(dimension) == upper

        return not (fixed("width") and fixed("height"))

    def get_frame_rect(self) -> Rect:
        return Rect.from_dict(self._view()["geometry"])

    def get_buffer_rect(self) -> Rect:
        view = self._view()
        return Rect.from_dict(view.get("bbox") or view["geometry"])

    def get_monitor(self) -> int:
        return self._view()["output-id"]

    def get_wm_class(self) -> Optional[str]:
        view = self._view()
        app_id = view.get("app-id")
        if app_id and app_id != "nil":
            return app_id
        return (view.get("window_properties") or {}).get("class")

    def get_actor(self) -> Optional[ActorRef]:
        return None

    def maximize(self) -> None:
        self.ipc.set_view_maximized(self.view_id)

    def unmaximize(self) -> None:
        self.ipc.restore_view(self.view_id)

    def move_resize_frame(self, x: int, y: int, width: int, height: int) -> None:
        self.ipc.configure_view(self.view_id, x, y, width, height)


class _Subscription:
    def __init__(self, event_type: str, callback: Callable[[Dict[str, Any]], None]):
        self.event_type = event_type
        self.callback = callback


class WayfireHost(Host):
    """
    Host services backed by Wayfire IPC.

    Args:
        ipc: Connection used for queries and commands.
        event_manager: The event manager plugin dispatching compositor events.
        binding_ipc: The event-watching connection; Wayfire reports a
            binding only to the connection that registered it.
        plugin_name: Name the event subscriptions are registered under.
    """

    supports_actors = False

    def __init__(self, ipc, event_manager, binding_ipc=None, plugin_name=None):
        self.ipc = ipc
        self.event_manager = event_manager
        self.binding_ipc = binding_ipc or ipc
        self.plugin_name = plugin_name or "almost_fullscreen"
        self._bindings: Dict[str, Any] = {}

    def window(self, view_id: int) -> WayfireWindow:
        return WayfireWindow(self.ipc, view_id)

    def get_work_area(self, monitor: int) -> Rect:
        output = self.ipc.get_output(monitor)
        if not output:
            raise LookupError(f"Output {monitor} not found")
        return Rect.from_dict(output["workarea"])

    def get_focused_window(self) -> Optional[WindowRef]:
        view = self.ipc.get_focused_view()
        if not view or view.get("id") is None:
            return None
        return self.window(view["id"])

    def timeout_add(self, delay_ms: int, callback: Callable[[], bool]) -> int:
        return GLib.timeout_add(delay_ms, callback)

    def source_remove(self, source_id: int) -> None:
        GLib.source_remove(source_id)

    def _subscribe(self, event_type: str, callback) -> _Subscription:
        subscription = _Subscription(event_type, callback)
        self.event_manager.subscribe_to_event(event_type, callback, self.plugin_name)
        return subscription

    def disconnect(self, handle: _Subscription) -> None:
        self.event_manager.unsubscribe_from_event(handle.event_type, handle.callback)

    def connect_window_created(
        self, callback: Callable[[WindowRef], None]
    ) -> _Subscription:
        def on_view_mapped(msg: Dict[str, Any]):
            view = msg.get("view") or {}
            if view.get("id") is None:
                return
            callback(self.window(view["id"]))

        return self._subscribe("view-mapped", on_view_mapped)

    def connect_first_frame(
        self, window: WindowRef, callback: Callable[[WindowRef], None]
    ) -> _Subscription:
        view_id = getattr(window, "view_id", None)

        def on_geometry_changed(msg: Dict[str, Any]):
            view = msg.get("view") or {}
            if view.get("id") == view_id:
                callback(window)

        return self._subscribe("view-geometry-changed", on_geometry_changed)

    def connect_destroyed(
        self, window: WindowRef, callback: Callable[[WindowRef], None]
    ) -> _Subscription:
        view_id = getattr(window, "view_id", None)

        def on_unmapped(msg: Dict[str, Any]):
            view = msg.get("view") or {}
            if view.get("id") == view_id:
                callback(window)

        return self._subscribe("view-unmapped", on_unmapped)

    def add_keybinding(
        self, name: str, accelerator: str, callback: Callable[[], None]
    ) -> None:
        binding = to_wayfire_binding(accelerator)
        binding_id = self.binding_ipc.register_binding(binding)
        if binding_id is None:
            raise RuntimeError(f"Wayfire refused binding '{binding}'")

        def on_binding(msg: Dict[str, Any]):
            if msg.get("binding-id") == binding_id:
                callback()

        subscription = self._subscribe("command-binding", on_binding)
        self._bindings[name] = (binding_id, subscription)

    def remove_keybinding(self, name: str) -> None:
        entry = self._bindings.pop(name, None)
        if entry is None:
            return
        binding_id, subscription = entry
        self.disconnect(subscription)
        self.binding_ipc.unregister_binding(binding_id)
