import os
import sys
import inspect
from typing import Any, Dict, Optional

from gi.repository import GLib  # pyright: ignore


class PluginLogAdapter:
    """
    A wrapper around the structlog logger that automatically injects the caller's
    file, package, function name and line number into the log event's 'extra' dictionary.
    """

    def __init__(self, logger):
        self._logger = logger
        self._adapter_filename = os.path.basename(__file__)

    def _get_caller_context(self) -> Dict[str, Any]:
        frame = inspect.currentframe()
        if not frame:
            return {}
        f = frame.f_back
        try:
            while f:
                caller_file = os.path.basename(f.f_code.co_filename)
                if caller_file != self._adapter_filename:
                    return {
                        "file": caller_file,
                        "package": f.f_globals.get("__package__", "unknown"),
                        "func": f.f_code.co_name,
                        "line": f.f_lineno,
                    }
                f = f.f_back
            return {}
        finally:
            del frame
            del f

    def _log_with_context(self, level: str, message: str, **kwargs):
        context = self._get_caller_context()
        if context:
            if "extra" in kwargs and isinstance(kwargs["extra"], dict):
                kwargs["extra"].update(context)
            else:
                kwargs["extra"] = context
        log_method = getattr(self._logger, level)
        log_method(message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log_with_context("info", message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log_with_context("warning", message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log_with_context("error", message, **kwargs)

    def debug(self, message: str, **kwargs):
        self._log_with_context("debug", message, **kwargs)

    def exception(self, message: str, **kwargs):
        self._log_with_context("exception", message, **kwargs)

    def critical(self, message: str, **kwargs):
        self._log_with_context("critical", message, **kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


class BasePlugin:
    """
    Base class for all plugins. Gives access to the application instance,
    its IPC connection and the other loaded plugins.
    """

    def __init__(self, app_instance: Any):
        self._app_instance = app_instance
        self._plugin_loader = app_instance.plugin_loader
        self._ipc = app_instance.ipc
        self._logger_adapter = PluginLogAdapter(app_instance.logger)
        self.glib = GLib
        metadata = self.get_plugin_metadata()
        self.plugin_id: Optional[str] = None
        if metadata is not None and "id" in metadata:
            self.plugin_id = metadata["id"]

    def get_plugin_metadata(self) -> Optional[Dict[str, Any]]:
        module_object = sys.modules.get(self.__module__)
        if module_object is not None and hasattr(module_object, "get_plugin_metadata"):
            return module_object.get_plugin_metadata(self._app_instance)
        return None

    def on_start(self) -> None:
        """Called once every dependency has started."""

    def on_stop(self) -> None:
        """Called when the plugin is disabled or the application exits."""

    @property
    def obj(self) -> Any:
        """Reference to the main application instance."""
        return self._app_instance

    @property
    def logger(self) -> PluginLogAdapter:
        """Logger object for logging messages (read-only)."""
        return self._logger_adapter

    @property
    def ipc(self) -> Any:
        """IPC client for Wayfire communication."""
        return self._ipc

    @property
    def plugins(self) -> dict:
        """Dictionary of all loaded plugins."""
        return self._plugin_loader.plugins
