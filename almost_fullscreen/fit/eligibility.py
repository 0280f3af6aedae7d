import logging
from typing import Optional

from almost_fullscreen.fit.host import WINDOW_TYPE_NORMAL, ActorRef, WindowRef
from almost_fullscreen.fit.policy import FitConfig

logger = logging.getLogger(__name__)


def is_eligible(
    window: Optional[WindowRef],
    config: FitConfig,
    actor: Optional[ActorRef] = None,
) -> bool:
    """
    Decides whether a window should be fitted to its work area.

    Rejections are silent: a window that closed, a dialog or an ignored
    application is an expected outcome, not an error. A compositor error
    while inspecting the window is logged and also counts as a rejection.

    Args:
        window: The window to inspect, possibly None.
        config: The session configuration holding the ignore list and policy.
        actor: The window's actor, when the caller already resolved it.
    Returns:
        True when every later fitting step may run.
    """
    if window is None:
        return False
    try:
        if window.is_destroyed():
            return False
        if window.window_type != WINDOW_TYPE_NORMAL:
            return False
        if config.is_ignored(window.get_wm_class()):
            return False
        if config.policy.require_actor:
            if actor is None:
                actor = window.get_actor()
            if actor is None:
                return False
        return window.allows_resize()
    except Exception as e:
        logger.error(f"almost-fullscreen: eligibility check failed: {e}", exc_info=True)
        return False
