from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Tuple

from almost_fullscreen.fit.geometry import MIN_SIZE, Padding

DEFAULT_PADDING = 8
DEFAULT_KEYBINDING = "<Super>f"
EASE_OUT_CUBIC = "ease-out-cubic"


@dataclass(frozen=True)
class WorkaroundPolicy:
    """
    Compositor quirks the applier works around, each one switchable.

    Attributes:
        settle_delay_ms: Wait after unmaximizing before measuring the frame.
            0 continues in the same call.
        pixel_shrink_fix: Run a maximize/unmaximize cycle before resizing a
            window that is not maximized. Some windows otherwise come out a
            pixel smaller than requested.
        decoration_offset: Shift the animation target by the distance
            between buffer and frame origin.
        animate: Ease the actor towards the target while resizing.
        animation_duration_ms: Length of that transition.
        animation_mode: Easing curve name handed to the actor.
        retry_delays_ms: Fallback timers scheduled for every new window.
        min_size: Smallest target width and height.
        require_actor: Skip windows whose actor is not available yet.
    """

    settle_delay_ms: int = 0
    pixel_shrink_fix: bool = True
    decoration_offset: bool = True
    animate: bool = True
    animation_duration_ms: int = 400
    animation_mode: str = EASE_OUT_CUBIC
    retry_delays_ms: Tuple[int, ...] = (200, 400, 600)
    min_size: int = MIN_SIZE
    require_actor: bool = True


@dataclass(frozen=True)
class FitConfig:
    padding: Padding = field(default_factory=lambda: Padding.uniform(DEFAULT_PADDING))
    keybinding: str = DEFAULT_KEYBINDING
    ignore_windows: FrozenSet[str] = frozenset()
    policy: WorkaroundPolicy = field(default_factory=WorkaroundPolicy)

    def __post_init__(self):
        object.__setattr__(
            self, "ignore_windows", self.normalize_ignore_list(self.ignore_windows)
        )

    @staticmethod
    def normalize_ignore_list(classes: Iterable[str]) -> FrozenSet[str]:
        return frozenset(c.casefold() for c in classes)

    def is_ignored(self, wm_class: Optional[str]) -> bool:
        if not wm_class:
            return False
        return wm_class.casefold() in self.ignore_windows
