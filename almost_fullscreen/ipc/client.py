from typing import Any, Callable, Dict, List, Optional

from gi.repository import GLib  # pyright: ignore

from almost_fullscreen.core.compositor.ipc import IPC

WATCHED_EVENTS = [
    "view-mapped",
    "view-unmapped",
    "view-geometry-changed",
    "command-binding",
]


class WayfireClientIPC:
    def __init__(
        self,
        handle_event: Callable[[Dict[str, Any]], None],
        logger,
        ipc: Optional[IPC] = None,
        events: Optional[List[str]] = None,
    ):
        """
        Event-watching connection to the compositor.

        Wayfire delivers events only to the connection that asked for them,
        and reports keybindings only to the connection that registered
        them, so this client owns a socket of its own and bindings are
        registered through `self.ipc`.

        Args:
            handle_event: Callback receiving every decoded event, on the
                main loop.
            logger: The application logger.
            ipc: The connection to watch on; a new one is opened if omitted.
            events: Event names to watch; WATCHED_EVENTS by default.
        """
        self.logger = logger
        self.handle_event = handle_event
        self.ipc = ipc or IPC()
        self.events = events or WATCHED_EVENTS
        self.source: Optional[int] = None

    def start(self) -> bool:
        """Subscribes to events and starts reading them on the main loop."""
        if not self.ipc.is_connected():
            self.logger.error("Cannot watch compositor events: IPC not connected.")
            return False
        self.ipc.watch(self.events)
        self.source = GLib.io_add_watch(
            self.ipc.sock.client.fileno(),
            GLib.PRIORITY_DEFAULT,
            GLib.IO_IN | GLib.IO_HUP | GLib.IO_ERR,
            self.handle_socket_event,
        )
        self.logger.info(f"Watching compositor events: {', '.join(self.events)}")
        return True

    def handle_socket_event(self, fd: int, condition: int) -> bool:
        """
        Reads one event when the socket becomes readable, then drains events
        the socket buffered while answering requests.

        Returns:
            GLib.SOURCE_CONTINUE while the connection is usable.
        """
        if condition & (GLib.IO_HUP | GLib.IO_ERR):
            self.logger.warning("Compositor closed the event socket; removing source.")
            self.source = None
            return GLib.SOURCE_REMOVE
        event = self.ipc.read_next_event()
        if event is None:
            self.logger.warning("Lost the compositor event stream; removing source.")
            self.source = None
            return GLib.SOURCE_REMOVE
        self.process_event(event)
        pending = getattr(self.ipc.sock, "pending_events", None)
        while pending:
            self.process_event(pending.pop(0))
        return GLib.SOURCE_CONTINUE

    def process_event(self, event: Dict[str, Any]) -> None:
        """Forward the processed event to the handler."""
        try:
            self.handle_event(event)
        except Exception as e:
            self.logger.error(f"Error in event handler callback: {e}", exc_info=True)

    def disconnect_socket(self) -> None:
        """Gracefully disconnect and cleanup resources."""
        if self.source:
            GLib.source_remove(self.source)
            self.source = None
        self.ipc.close()
