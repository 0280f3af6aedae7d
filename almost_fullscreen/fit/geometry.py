import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

MIN_SIZE = 100


def round_half_up(value: Union[int, float]) -> int:
    """Rounds to the nearest integer, with halves rounded up."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Rect:
    """An integer rectangle in compositor coordinates."""

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rect":
        """
        Builds a Rect from an IPC geometry payload.

        Args:
            data: A mapping with the keys "x", "y", "width" and "height".
        Returns:
            The rectangle with every field rounded to whole pixels.
        """
        return cls(
            round_half_up(data["x"]),
            round_half_up(data["y"]),
            round_half_up(data["width"]),
            round_half_up(data["height"]),
        )

    def rounded(self) -> "Rect":
        return Rect(
            round_half_up(self.x),
            round_half_up(self.y),
            round_half_up(self.width),
            round_half_up(self.height),
        )

    def translated(self, dx: int, dy: int) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class Padding:
    """Margins kept free between the work area edges and the window frame."""

    top: int = 8
    bottom: int = 8
    left: int = 8
    right: int = 8

    @classmethod
    def uniform(cls, value: int) -> "Padding":
        return cls(value, value, value, value)

    @property
    def horizontal(self) -> int:
        return self.left + self.right

    @property
    def vertical(self) -> int:
        return self.top + self.bottom


def compute_target(work_area: Rect, padding: Padding, min_size: int = MIN_SIZE) -> Rect:
    """
    Computes the frame rectangle that fills a work area minus its padding.

    Width and height never drop below `min_size`, so padding larger than the
    monitor still yields a usable window.

    Args:
        work_area: The usable monitor region, panels and docks excluded.
        padding: The margins to keep on each side.
        min_size: The smallest width or height ever produced.
    Returns:
        The target frame rectangle.
    """
    area = work_area.rounded()
    return Rect(
        area.x + padding.left,
        area.y + padding.top,
        max(min_size, area.width - padding.horizontal),
        max(min_size, area.height - padding.vertical),
    )


def decoration_offset(frame: Rect, buffer: Rect) -> Tuple[int, int]:
    """
    Returns how far the rendered surface sits from the frame origin.

    The actor is positioned in buffer coordinates, so an animation towards a
    frame target has to be shifted by this amount to rest where the final
    frame geometry lands.
    """
    frame, buffer = frame.rounded(), buffer.rounded()
    return buffer.x - frame.x, buffer.y - frame.y


def is_fitted(current: Rect, target: Rect) -> bool:
    """True when the window already occupies the target rectangle."""
    return current.rounded() == target.rounded()
