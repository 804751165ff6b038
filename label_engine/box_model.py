"""Resolve declared geometry into outer and inner rectangles."""

from __future__ import annotations

from dataclasses import dataclass

from label_types import TRANSPARENT, Border, Padding
from label_engine.geometry import Rect
from label_engine.units import UnitConverter


@dataclass(frozen=True)
class ResolvedBox:
    """Outer rect, border stroke and content rect in target units."""

    outer: Rect
    inner: Rect
    border_width: float

    @property
    def border_rect(self) -> Rect:
        """Path the border stroke follows: centred on the outer edge."""

        return self.outer


def resolve_box(
    rect_mm: Rect,
    padding: Padding,
    border: Border,
    converter: UnitConverter,
) -> ResolvedBox:
    """Convert ``rect_mm`` and subtract padding plus half the border stroke."""

    outer = converter.rect(rect_mm)
    border_width = converter.stroke(border.width) if border.enabled else 0.0
    half = border_width / 2.0
    inner = outer.inset(
        converter.length(padding.top) + half,
        converter.length(padding.right) + half,
        converter.length(padding.bottom) + half,
        converter.length(padding.left) + half,
    )
    return ResolvedBox(outer=outer, inner=inner, border_width=border_width)


def has_fill(color: str | None) -> bool:
    return bool(color) and (color or "").strip().lower() != TRANSPARENT
