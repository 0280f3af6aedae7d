def get_plugin_metadata(_):
    return {
        "id": "org.almost_fullscreen.plugin.event_manager",
        "name": "Event Manager",
        "version": "1.0.0",
        "enabled": True,
        "priority": 1,
        "deps": [],
    }


def get_plugin_class():
    from almost_fullscreen.plugins.core._base import BasePlugin
    from almost_fullscreen.ipc.client import WayfireClientIPC
    import collections

    class EventManagerPlugin(BasePlugin):
        def __init__(self, app_instance):
            """Initialize the Event Manager Plugin.

            Sets up the IPC client receiving compositor events and the event
            subscription table other plugins register handlers in.

            Args:
                app_instance: The main application object providing access to
                              the logger, the IPC connection and the plugin loader.
            """
            super().__init__(app_instance)
            self.ipc_client = WayfireClientIPC(self.handle_event, self.logger)
            self.event_subscribers = {}
            self.event_queue = collections.deque()
            self.is_processing_events = False
            self._queue_source = None

        @property
        def binding_ipc(self):
            """The event-watching connection; keybindings must be registered on it."""
            return self.ipc_client.ipc

        def on_start(self):
            self.ipc_client.start()
            # drain the queue every 50ms
            self._queue_source = self.glib.timeout_add(50, self._process_queued_events)

        def on_stop(self):
            if self._queue_source is not None:
                self.glib.source_remove(self._queue_source)
                self._queue_source = None
            self.ipc_client.disconnect_socket()
            self.event_queue.clear()

        def handle_event(self, msg) -> None:
            """
            Queue an incoming IPC event for dispatch.

            Args:
                msg (dict): The event message containing details about the event.
            """
            if not isinstance(msg, dict) or "event" not in msg:
                return
            self.event_queue.append(msg)

        def _process_queued_events(self):
            """
            Dispatches every queued event to its subscribers.

            Returns True to keep the timeout running.
            """
            if self.is_processing_events:
                return True
            self.is_processing_events = True
            try:
                while self.event_queue:
                    self.dispatch(self.event_queue.popleft())
            finally:
                self.is_processing_events = False
            return True

        def dispatch(self, msg) -> None:
            event_type = msg.get("event")
            # copy: callbacks may unsubscribe themselves
            for callback, plugin_name in list(self.event_subscribers.get(event_type, [])):
                try:
                    callback(msg)
                except Exception as e:
                    self.logger.error(
                        f"Error executing callback for event '{event_type}' "
                        f"({plugin_name or 'anonymous'}): {e}",
                        exc_info=True,
                    )

        def subscribe_to_event(self, event_type, callback, plugin_name=None) -> None:
            """
            Allow plugins to subscribe to specific events.

            Args:
                event_type (str): The type of event to subscribe to.
                callback (function): The callback function to execute when the event occurs.
                plugin_name (str, optional): The name of the plugin subscribing to the event.
            """
            self.event_subscribers.setdefault(event_type, []).append(
                (callback, plugin_name)
            )
            self.logger.debug(
                f"Plugin '{plugin_name or 'anonymous'}' subscribed to event: {event_type}"
            )

        def unsubscribe_from_event(self, event_type, callback) -> None:
            """Allow plugins to unsubscribe from specific events."""
            subscribers = self.event_subscribers.get(event_type)
            if not subscribers:
                return
            self.event_subscribers[event_type] = [
                entry for entry in subscribers if entry[0] is not callback
            ]
            self.logger.debug(f"Unsubscribed from event: {event_type}")

    return EventManagerPlugin
