def get_plugin_metadata(app):
    id = "org.almost_fullscreen.plugin.almost_fullscreen"
    container = "background"

    return {
        "id": id,
        "name": "Almost Fullscreen",
        "version": "1.0.0",
        "enabled": True,
        "container": container,
        "index": 0,
        "deps": ["event_manager"],
        "description": "Resizes new windows to fill the work area minus a padding, "
        "and refits the focused window on a keybinding.",
    }


def get_plugin_class():
    from almost_fullscreen.plugins.core._base import BasePlugin
    from almost_fullscreen.core.compositor.wayfire_host import WayfireHost
    from almost_fullscreen.fit.session import PluginSession
    from almost_fullscreen.shared.config_handler import ConfigHandler

    class AlmostFullscreenPlugin(BasePlugin):
        """
        Binds a PluginSession to the compositor: new views are fitted as they
        map, and the configured keybinding refits the focused view.
        """

        def __init__(self, app_instance):
            super().__init__(app_instance)
            self.config_handler = ConfigHandler(
                getattr(self.obj, "config_file", None), logger=self.logger
            )
            self.session = None

        def on_start(self):
            if "event_manager" not in self.plugins:
                self.logger.error(
                    "Event Manager not found; cannot watch windows or bind keys."
                )
                return
            event_mgr = self.plugins["event_manager"]
            host = WayfireHost(
                self.ipc,
                event_mgr,
                binding_ipc=event_mgr.binding_ipc,
                plugin_name=self.plugin_id,
            )
            self.session = PluginSession(host, self.config_handler.load_config)
            self.session.enable()

        def on_stop(self):
            if self.session is not None:
                self.session.disable()
                self.session = None

    return AlmostFullscreenPlugin
