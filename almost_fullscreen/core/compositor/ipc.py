import logging
import os
import socket
from functools import wraps
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def handle_ipc_error(func):
    """Decorator to handle common IPC-related errors."""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except (socket.error, ConnectionRefusedError, BrokenPipeError) as e:
            logger.error(f"IPC connection error in '{func.__name__}': {e}")
            self.is_compositor_socket_set_up = False
            self.sock = None
            return None
        except Exception as e:
            logger.error(f"An unexpected error occurred in '{func.__name__}': {e}")
            return None

    return wrapper


class IPC:
    """
    A thin wrapper around the Wayfire IPC socket.

    Connection errors are logged and turn the call into a None result, so a
    compositor restart never propagates into the fitting logic. Call
    `ensure_ipc_connection` periodically to reconnect.
    """

    def __init__(self, sock: Any = None):
        """
        Args:
            sock: An already connected WayfireSocket. A new connection is made
                from $WAYFIRE_SOCKET when omitted.
        """
        self.sock = sock
        self.is_compositor_socket_set_up = sock is not None
        if sock is None:
            self.connect_wayfire_ipc()

    def connect_wayfire_ipc(self):
        """Initializes the connection to the Wayfire IPC socket."""
        if not os.getenv("WAYFIRE_SOCKET"):
            logger.error("WAYFIRE_SOCKET is not set; is Wayfire running with ipc?")
            self.sock = None
            self.is_compositor_socket_set_up = False
            return
        try:
            from wayfire import WayfireSocket

            self.sock = WayfireSocket()
            self.is_compositor_socket_set_up = True
        except Exception as e:
            logger.error(f"Failed to connect to Wayfire IPC: {e}")
            self.sock = None
            self.is_compositor_socket_set_up = False

    def ensure_ipc_connection(self) -> bool:
        """
        Checks that the IPC connection is alive and reconnects if not.
        Returns True so it can be used as a repeating GLib timeout.
        """
        if not self.sock or not self.is_connected():
            logger.warning("Attempting to re-establish IPC connection...")
            self.connect_wayfire_ipc()
        return True

    def is_connected(self) -> bool:
        """Check if the compositor socket is connected."""
        if self.sock:
            return self.sock.is_connected()
        return False

    @handle_ipc_error
    def get_view(self, id: int) -> Optional[Dict[str, Any]]:
        """Get the view by the given id."""
        return self.sock.get_view(id)

    @handle_ipc_error
    def get_focused_view(self) -> Optional[Dict[str, Any]]:
        """Get the currently focused view."""
        return self.sock.get_focused_view()

    @handle_ipc_error
    def get_output(self, output_id: int) -> Optional[Dict[str, Any]]:
        """Get the output with the given id."""
        return self.sock.get_output(output_id)

    @handle_ipc_error
    def configure_view(
        self,
        view_id: int,
        x: int,
        y: int,
        w: int,
        h: int,
        output_id: Optional[int] = None,
    ) -> Any:
        """Configure a view's position and size."""
        return self.sock.configure_view(view_id, x, y, w, h, output_id)

    @handle_ipc_error
    def set_view_maximized(self, view_id: int) -> Any:
        """Maximize a view by assigning it the grid plugin's center slot."""
        return self.sock.assign_slot(view_id, "slot_c")

    @handle_ipc_error
    def restore_view(self, view_id: int) -> Any:
        """Undo a grid slot (maximized included), restoring the view's geometry."""
        message = {"method": "grid/restore", "data": {"view_id": view_id}}
        return self.sock.send_json(message)

    @handle_ipc_error
    def register_binding(
        self, binding: str, command: Optional[str] = None, mode: str = "normal"
    ) -> Optional[int]:
        """
        Register a keyboard binding. Without a command, Wayfire reports each
        activation as a 'command-binding' event carrying the returned id.
        """
        response = self.sock.register_binding(
            binding=binding,
            command=command,
            exec_always=True,
            mode=mode,
        )
        if isinstance(response, dict):
            return response.get("binding-id")
        return None

    @handle_ipc_error
    def unregister_binding(self, binding_id: int) -> Any:
        """Remove a binding registered by this connection."""
        return self.sock.unregister_binding(binding_id)

    @handle_ipc_error
    def watch(self, events=None) -> Any:
        """Start watching for compositor events."""
        return self.sock.watch(events)

    @handle_ipc_error
    def read_next_event(self) -> Optional[Dict[str, Any]]:
        """Read the next event from the compositor."""
        return self.sock.read_next_event()

    @handle_ipc_error
    def close(self) -> Any:
        """Close the compositor socket connection."""
        return self.sock.close()

    @handle_ipc_error
    def get_option_value(self, option: str) -> Any:
        """Read a Wayfire option, e.g. 'core/plugins'."""
        return self.sock.get_option_value(option)

    @handle_ipc_error
    def set_option_values(self, options: Dict[str, Any]) -> Any:
        """Set one or more Wayfire options."""
        return self.sock.set_option_values(options)
