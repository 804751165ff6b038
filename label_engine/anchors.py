"""Caption placement for field labels against nine compass anchors.

Captions on the top or bottom row reserve a strip of the field's content box
and push the content into the remaining space, so the two never overlap.
Captions on the center row are laid over the content instead; when both
axes are centred the content beneath is drawn at reduced opacity so the
caption stays legible. No other anchor strings exist: anything unknown is
treated as ``inside-top-left``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from label_errors import UnknownAnchor
from label_types import LabelTemplateField
from label_engine.box_model import ResolvedBox
from label_engine.geometry import Rect
from label_engine.text import LINE_HEIGHT, REGULAR_FONT, ellipsize, text_width
from label_engine.units import UnitConverter, points_to_mm

logger = logging.getLogger(__name__)

CAPTION_FONT = REGULAR_FONT
CAPTION_MARGIN_MM = points_to_mm(1.0)
CAPTION_SIDE_OFFSET_MM = points_to_mm(2.0)
CENTER_OVERLAY_OPACITY = 0.8


class Anchor(StrEnum):
    TOP_LEFT = "inside-top-left"
    TOP_CENTER = "inside-top-center"
    TOP_RIGHT = "inside-top-right"
    CENTER_LEFT = "inside-center-left"
    CENTER_CENTER = "inside-center-center"
    CENTER_RIGHT = "inside-center-right"
    BOTTOM_LEFT = "inside-bottom-left"
    BOTTOM_CENTER = "inside-bottom-center"
    BOTTOM_RIGHT = "inside-bottom-right"

    @property
    def vertical(self) -> str:
        return self.value.split("-")[1]

    @property
    def horizontal(self) -> str:
        return self.value.split("-")[2]

    @property
    def reserves_strip(self) -> bool:
        return self.vertical in ("top", "bottom")


DEFAULT_ANCHOR = Anchor.TOP_LEFT


@dataclass(frozen=True)
class CaptionPlacement:
    """Where a field's caption goes and what is left for its content."""

    anchor: Anchor
    text: str
    font_size: float
    caption_rect: Rect
    content_rect: Rect
    content_opacity: float
    overlay: bool


def parse_anchor(value: str | None) -> Anchor:
    """Return the anchor for ``value`` or raise :class:`UnknownAnchor`."""

    text = (value or "").strip().lower()
    if text in Anchor._value2member_map_:
        return Anchor(text)
    raise UnknownAnchor(value or "")


def resolve_anchor(value: str | None) -> Anchor:
    try:
        return parse_anchor(value)
    except UnknownAnchor as exc:
        logger.warning("%s; falling back to %s", exc, DEFAULT_ANCHOR.value)
        return DEFAULT_ANCHOR


def _caption_x(anchor: Anchor, inner: Rect, width: float, side_offset: float) -> float:
    if anchor.horizontal == "left":
        x = inner.left + side_offset
    elif anchor.horizontal == "right":
        x = inner.right - side_offset - width
    else:
        x = inner.left + (inner.width - width) / 2.0
    return min(max(x, inner.left), inner.right - width)


def resolve_caption(
    field: LabelTemplateField,
    box: ResolvedBox,
    converter: UnitConverter,
) -> CaptionPlacement | None:
    if not field.has_caption:
        return None

    anchor = resolve_anchor(field.label_position)
    inner = box.inner
    font_size = converter.font(field.label_font_size)
    caption_height = min(font_size * LINE_HEIGHT, inner.height)
    text = ellipsize(field.label_text, CAPTION_FONT, font_size, inner.width)
    width = min(text_width(text, CAPTION_FONT, font_size), inner.width)

    if anchor.reserves_strip:
        strip = min(caption_height + converter.length(CAPTION_MARGIN_MM), inner.height)
        if anchor.vertical == "top":
            caption_y = inner.top
            content = Rect(inner.x, inner.top + strip, inner.width, inner.height - strip)
        else:
            caption_y = inner.bottom - caption_height
            content = Rect(inner.x, inner.top, inner.width, inner.height - strip)
        caption = Rect(_caption_x(anchor, inner, width, 0.0), caption_y, width, caption_height)
        return CaptionPlacement(
            anchor=anchor,
            text=text,
            font_size=font_size,
            caption_rect=caption,
            content_rect=content,
            content_opacity=1.0,
            overlay=False,
        )

    side_offset = min(converter.length(CAPTION_SIDE_OFFSET_MM), max(inner.width - width, 0.0))
    caption = Rect(
        _caption_x(anchor, inner, width, side_offset),
        inner.top + (inner.height - caption_height) / 2.0,
        width,
        caption_height,
    )
    opacity = CENTER_OVERLAY_OPACITY if anchor is Anchor.CENTER_CENTER else 1.0
    return CaptionPlacement(
        anchor=anchor,
        text=text,
        font_size=font_size,
        caption_rect=caption,
        content_rect=inner,
        content_opacity=opacity,
        overlay=True,
    )
