import dataclasses
import logging
from typing import Any, Callable, Optional

from almost_fullscreen.fit.applier import ResizeApplier
from almost_fullscreen.fit.dispatcher import TriggerDispatcher
from almost_fullscreen.fit.host import KEYBINDING_ACTION, Host
from almost_fullscreen.fit.policy import FitConfig

logger = logging.getLogger(__name__)


class PluginSession:
    """
    Everything one enable/disable cycle owns on the compositor side.

    The configuration is read on `enable` and stays fixed until the next
    enable. `disable` releases every registration `enable` made, so the
    compositor keeps no callbacks into a disabled session.
    """

    def __init__(self, host: Host, load_config: Callable[[], FitConfig]):
        self.host = host
        self._load_config = load_config
        self.config: Optional[FitConfig] = None
        self.dispatcher: Optional[TriggerDispatcher] = None
        self._window_created_id: Any = None
        self._keybinding_registered = False

    @property
    def enabled(self) -> bool:
        return self.dispatcher is not None

    def enable(self) -> None:
        if self.enabled:
            return
        config = self._load_config()
        if not self.host.supports_actors and config.policy.require_actor:
            config = dataclasses.replace(
                config,
                policy=dataclasses.replace(config.policy, require_actor=False),
            )
        self.config = config
        applier = ResizeApplier(self.host, config)
        self.dispatcher = TriggerDispatcher(self.host, applier)
        self._window_created_id = self.host.connect_window_created(
            self.dispatcher.on_window_created
        )
        try:
            self.host.add_keybinding(
                KEYBINDING_ACTION, config.keybinding, self.dispatcher.on_hotkey
            )
            self._keybinding_registered = True
        except Exception as e:
            logger.error(
                f"almost-fullscreen: cannot bind '{config.keybinding}': {e}",
                exc_info=True,
            )
        logger.info(
            f"almost-fullscreen enabled: padding={dataclasses.astuple(config.padding)} "
            f"keybinding={config.keybinding} ignored={sorted(config.ignore_windows)}"
        )

    def disable(self) -> None:
        if not self.enabled:
            return
        if self._window_created_id is not None:
            self.host.disconnect(self._window_created_id)
            self._window_created_id = None
        if self._keybinding_registered:
            self.host.remove_keybinding(KEYBINDING_ACTION)
            self._keybinding_registered = False
        self.dispatcher.close()
        self.dispatcher = None
        self.config = None
        logger.info("almost-fullscreen disabled")
