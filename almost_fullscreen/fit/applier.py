import enum
import logging
from typing import Any, Optional, Set

from almost_fullscreen.fit.eligibility import is_eligible
from almost_fullscreen.fit.geometry import (
    Rect,
    compute_target,
    decoration_offset,
    is_fitted,
)
from almost_fullscreen.fit.host import ActorRef, Host, WindowRef
from almost_fullscreen.fit.policy import FitConfig

logger = logging.getLogger(__name__)


class ResizeState(enum.Enum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    FITTING = "fitting"
    SETTLED = "settled"


class ResizeApplier:
    """
    Fits one window to its monitor's work area minus the configured padding.

    A run walks Idle -> Normalizing -> Fitting -> Settled. When the policy
    asks for a settle delay after unmaximizing, the run stops in Normalizing
    and the fitting step continues from a host timer.
    """

    def __init__(self, host: Host, config: FitConfig):
        self.host = host
        self.config = config
        self.policy = config.policy
        self.pending_timers: Set[Any] = set()

    def run(
        self, window: Optional[WindowRef], actor: Optional[ActorRef] = None
    ) -> ResizeState:
        """
        Runs the state machine once for `window`.

        Args:
            window: The window to fit; None and destroyed windows are skipped.
            actor: The window's actor if the trigger already holds it.
        Returns:
            The state the run stopped in. IDLE means the window was skipped.
        """
        if not is_eligible(window, self.config, actor):
            return ResizeState.IDLE
        try:
            if window.maximized:
                window.unmaximize()
                if self.policy.settle_delay_ms > 0:
                    self._schedule_fit(window, actor)
                    return ResizeState.NORMALIZING
            return self._fit(window, actor)
        except Exception as e:
            logger.error(f"almost-fullscreen: resize failed: {e}", exc_info=True)
            return ResizeState.IDLE

    def _schedule_fit(self, window: WindowRef, actor: Optional[ActorRef]) -> None:
        source_id = None

        def fit_after_settle():
            self.pending_timers.discard(source_id)
            try:
                if not window.is_destroyed():
                    self._fit(window, actor)
            except Exception as e:
                logger.error(
                    f"almost-fullscreen: deferred resize failed: {e}", exc_info=True
                )
            return False

        source_id = self.host.timeout_add(
            self.policy.settle_delay_ms, fit_after_settle
        )
        self.pending_timers.add(source_id)

    def _fit(self, window: WindowRef, actor: Optional[ActorRef]) -> ResizeState:
        work_area = self.host.get_work_area(window.get_monitor())
        frame = window.get_frame_rect()
        target = compute_target(work_area, self.config.padding, self.policy.min_size)
        if is_fitted(frame, target):
            logger.debug(f"Window already fitted at {target.as_tuple()}")
            return ResizeState.SETTLED

        offset_x, offset_y = 0, 0
        if self.policy.decoration_offset:
            offset_x, offset_y = decoration_offset(frame, window.get_buffer_rect())

        # some windows resize themselves a pixel smaller otherwise
        if self.policy.pixel_shrink_fix and not window.maximized:
            window.maximize()
            window.unmaximize()

        if self.policy.animate:
            if actor is None:
                actor = window.get_actor()
            if actor is not None:
                self._ease(actor, target.translated(offset_x, offset_y))

        window.move_resize_frame(target.x, target.y, target.width, target.height)
        logger.debug(f"Resized window to {target.as_tuple()}")
        return ResizeState.SETTLED

    def _ease(self, actor: ActorRef, target: Rect) -> None:
        try:
            actor.ease(
                target,
                self.policy.animation_duration_ms,
                self.policy.animation_mode,
            )
        except Exception as e:
            logger.warning(f"almost-fullscreen: animation failed: {e}")

    def cancel_pending(self) -> None:
        """Drops fits still waiting for a window to settle."""
        for source_id in list(self.pending_timers):
            try:
                self.host.source_remove(source_id)
            except Exception as e:
                logger.warning(f"Failed to remove settle timer {source_id}: {e}")
        self.pending_timers.clear()
