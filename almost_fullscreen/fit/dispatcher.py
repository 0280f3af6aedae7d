import logging
from typing import Any, Callable, Optional, Set

from almost_fullscreen.fit.applier import ResizeApplier, ResizeState
from almost_fullscreen.fit.host import Host, WindowRef

logger = logging.getLogger(__name__)


class FirstFrameWatch:
    """
    A one-shot subscription to a window's first rendered frame.

    Acquired by entering a `with` block. The subscription is released after
    it fires once, when the window is destroyed, when `close` is called, or
    when the block raises.
    """

    def __init__(
        self,
        host: Host,
        window: WindowRef,
        on_first_frame: Callable[[WindowRef], Any],
        on_release: Optional[Callable[["FirstFrameWatch"], None]] = None,
    ):
        self.host = host
        self.window = window
        self._on_first_frame = on_first_frame
        self._on_release = on_release
        self._handle: Any = None
        self._destroyed_handle: Any = None
        self.fired = False

    @property
    def active(self) -> bool:
        return self._handle is not None

    def __enter__(self) -> "FirstFrameWatch":
        handle = self.host.connect_first_frame(self.window, self._fire)
        if self.fired:
            self.host.disconnect(handle)
            return self
        self._handle = handle
        try:
            self._destroyed_handle = self.host.connect_destroyed(
                self.window, self._on_destroyed
            )
        except Exception:
            self.close()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.close()
        return False

    def _fire(self, window: WindowRef) -> None:
        if self.fired:
            return
        self.fired = True
        self.close()
        self._on_first_frame(window)

    def _on_destroyed(self, window: WindowRef) -> None:
        self.close()

    def close(self) -> None:
        handles = (self._handle, self._destroyed_handle)
        self._handle = self._destroyed_handle = None
        for handle in handles:
            if handle is None:
                continue
            try:
                self.host.disconnect(handle)
            except Exception as e:
                logger.warning(f"Failed to release first-frame subscription: {e}")
        if self._on_release is not None:
            self._on_release(self)


class TriggerDispatcher:
    """
    Turns the two triggers into resize runs.

    `on_window_created` fits the window on its first frame and again from a
    few fallback timers, for compositors that signal the first frame too
    early or not at all. `on_hotkey` fits the focused window once.
    """

    def __init__(self, host: Host, applier: ResizeApplier):
        self.host = host
        self.applier = applier
        self.retry_delays_ms = applier.policy.retry_delays_ms
        self.pending_timers: Set[Any] = set()
        self.watches: Set[FirstFrameWatch] = set()

    def on_window_created(self, window: Optional[WindowRef]) -> None:
        if window is None:
            return
        watch = FirstFrameWatch(
            self.host, window, self._resize, on_release=self.watches.discard
        )
        self.watches.add(watch)
        try:
            with watch:
                if not watch.active:
                    return
                last_delay = max(self.retry_delays_ms, default=None)
                for delay in self.retry_delays_ms:
                    self._schedule_retry(window, watch, delay, delay == last_delay)
        except Exception as e:
            self.watches.discard(watch)
            logger.error(
                f"almost-fullscreen: failed to track new window: {e}", exc_info=True
            )

    def on_hotkey(self) -> ResizeState:
        try:
            window = self.host.get_focused_window()
        except Exception as e:
            logger.error(
                f"almost-fullscreen: cannot resolve focused window: {e}", exc_info=True
            )
            return ResizeState.IDLE
        return self._resize(window)

    def _resize(self, window: Optional[WindowRef]) -> ResizeState:
        return self.applier.run(window)

    def _schedule_retry(
        self, window: WindowRef, watch: FirstFrameWatch, delay: int, last: bool
    ) -> None:
        source_id = None

        def retry():
            self.pending_timers.discard(source_id)
            if self._is_gone(window):
                watch.close()
                return False
            self._resize(window)
            # the first frame is only waited for until the last fallback
            if last:
                watch.close()
            return False

        source_id = self.host.timeout_add(delay, retry)
        self.pending_timers.add(source_id)

    @staticmethod
    def _is_gone(window: WindowRef) -> bool:
        try:
            return window.is_destroyed()
        except Exception:
            return True

    def close(self) -> None:
        """Cancels pending fallback timers and releases open watches."""
        for source_id in list(self.pending_timers):
            try:
                self.host.source_remove(source_id)
            except Exception as e:
                logger.warning(f"Failed to remove timer {source_id}: {e}")
        self.pending_timers.clear()
        self.applier.cancel_pending()
        for watch in list(self.watches):
            watch.close()
        self.watches.clear()
