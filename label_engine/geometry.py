from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle with a top-left origin and y growing downwards."""

    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    def inset(
        self,
        top: float,
        right: float,
        bottom: float,
        left: float,
    ) -> Rect:
        """Shrink by the given amounts; size never goes below zero."""

        width = max(self.width - left - right, 0.0)
        height = max(self.height - top - bottom, 0.0)
        return Rect(self.x + left, self.y + top, width, height)

    def snapped(self) -> Rect:
        """Round edges (not size) to whole device units."""

        left = round(self.left)
        top = round(self.top)
        return Rect(left, top, round(self.right) - left, round(self.bottom) - top)

    def contains_point(self, px: float, py: float) -> bool:
        return self.left <= px <= self.right and self.top <= py <= self.bottom

    def contains(self, other: Rect, tolerance: float = 1e-6) -> bool:
        return (
            other.left >= self.left - tolerance
            and other.top >= self.top - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )

    def overflow(self, other: Rect) -> float:
        """Largest distance ``other`` sticks out of this rect (0 if inside)."""

        return max(
            self.left - other.left,
            self.top - other.top,
            other.right - self.right,
            other.bottom - self.bottom,
            0.0,
        )

    def union(self, other: Rect) -> Rect:
        left = min(self.left, other.left)
        top = min(self.top, other.top)
        right = max(self.right, other.right)
        bottom = max(self.bottom, other.bottom)
        return Rect(left, top, right - left, bottom - top)

    def as_dict(self) -> dict[str, float]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }
