import signal
from typing import Optional

from gi.repository import GLib  # pyright: ignore

from almost_fullscreen.core.compositor.ipc import IPC
from almost_fullscreen.core.plugin_loader import PluginLoader

# wayfire plugins the fitting relies on: ipc for the socket, ipc-rules for
# view queries and events, grid for maximize/restore
REQUIRED_WAYFIRE_PLUGINS = ["ipc", "ipc-rules", "grid"]


class Daemon:
    """
    Owns the main loop, the query connection and the plugin loader.

    Plugins are loaded from an idle callback once the loop runs, and stopped
    in reverse order on SIGINT/SIGTERM or `quit`.
    """

    def __init__(self, logger, config_file: Optional[str] = None, ipc=None):
        self.logger = logger
        self.config_file = config_file
        self.ipc = ipc or IPC()
        self.loop = GLib.MainLoop()
        self.plugin_loader = PluginLoader(self)
        self.plugins = self.plugin_loader.plugins
        self._reconnect_source = None

    def verify_required_wayfire_plugins(self) -> None:
        """Enables the wayfire plugins the fitting needs, keeping the user's own."""
        val = self.ipc.get_option_value("core/plugins")
        enabled = []
        if isinstance(val, dict) and "value" in val:
            enabled = str(val["value"]).split()
        elif isinstance(val, str):
            enabled = val.split()
        else:
            self.logger.warning("Could not read wayfire core/plugins option.")
            return
        missing = [p for p in REQUIRED_WAYFIRE_PLUGINS if p not in enabled]
        if not missing:
            return
        self.logger.info(f"Enabling wayfire plugins: {', '.join(missing)}")
        self.ipc.set_option_values({"core/plugins": " ".join(enabled + missing)})

    def _load_plugins(self):
        self.logger.debug("Loading plugins...")
        started = self.plugin_loader.load_plugins()
        self.logger.info(f"Plugins loading finished: {', '.join(started) or 'none'}")
        return False

    def _on_signal(self):
        self.logger.info("Received termination signal, shutting down.")
        self.quit()
        return GLib.SOURCE_REMOVE

    def quit(self) -> None:
        if self._reconnect_source is not None:
            GLib.source_remove(self._reconnect_source)
            self._reconnect_source = None
        self.plugin_loader.stop_plugins()
        if self.loop.is_running():
            self.loop.quit()

    def run(self) -> int:
        if not self.ipc.is_connected():
            self.logger.critical("No Wayfire IPC connection; is WAYFIRE_SOCKET set?")
            return 1
        self.verify_required_wayfire_plugins()
        for signum in (signal.SIGINT, signal.SIGTERM):
            GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signum, self._on_signal)
        self._reconnect_source = GLib.timeout_add_seconds(
            3, self.ipc.ensure_ipc_connection
        )
        GLib.idle_add(self._load_plugins)
        self.logger.info("almost-fullscreen is running.")
        self.loop.run()
        return 0
