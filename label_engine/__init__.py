"""Layout engine shared by every label render target."""

from .anchors import Anchor, CaptionPlacement, parse_anchor, resolve_anchor, resolve_caption
from .box_model import ResolvedBox, resolve_box
from .config import EngineConfig
from .geometry import Rect
from .layout import (
    LabelLayout,
    LayoutElement,
    ResolvedField,
    ResolvedLayout,
    compute_layout,
)
from .units import (
    UnitConverter,
    mm_to_pixels,
    mm_to_points,
    pixels_to_mm,
    points_to_mm,
)

__all__ = [
    "Anchor",
    "CaptionPlacement",
    "EngineConfig",
    "LabelLayout",
    "LayoutElement",
    "Rect",
    "ResolvedBox",
    "ResolvedField",
    "ResolvedLayout",
    "UnitConverter",
    "compute_layout",
    "mm_to_pixels",
    "mm_to_points",
    "parse_anchor",
    "pixels_to_mm",
    "points_to_mm",
    "resolve_anchor",
    "resolve_box",
    "resolve_caption",
]
