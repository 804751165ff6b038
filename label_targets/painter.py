"""Draw a resolved label onto a reportlab canvas.

Resolved layouts use a top-left origin; PDF space grows upwards from the
bottom-left. The painter works in label-local coordinates, so callers
translate (and rotate) the canvas to the label's slot before painting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from reportlab.lib import colors
from reportlab.pdfgen import canvas

from label_engine.anchors import CAPTION_FONT
from label_engine.box_model import has_fill
from label_engine.geometry import Rect
from label_engine.layout import LayoutElement, ResolvedField, ResolvedLayout
from label_engine.text import LINE_HEIGHT, fit_lines, font_for_weight
from label_engine.units import UnitConverter
from label_types import FieldType, TextAlign, VerticalAlign
from .qr import QRMatrix, draw_qr_matrix

ASCENT_RATIO = 0.7
BLANK_RULE_WIDTH = 1.0
QR_DARK = "#000000"
QR_LIGHT = "#FFFFFF"
SELECTION_COLOR = "#2563EB"
GUIDE_COLOR = "#9CA3AF"
OVERFLOW_COLOR = "#DC2626"


@dataclass(frozen=True)
class PaintOptions:
    """Editor-only decorations; the defaults paint a clean label."""

    selected_field_id: str | None = None
    outline_borderless: bool = False
    flag_overflow: bool = False


def _color(value: str | None, fallback: str = "#000000") -> colors.Color:
    return colors.toColor(value or fallback, colors.toColor(fallback))


class LabelPainter:
    def __init__(self, canvas_obj: canvas.Canvas, label_height: float) -> None:
        self.canvas = canvas_obj
        self.label_height = label_height

    def _flip(self, rect: Rect) -> tuple[float, float, float, float]:
        return rect.x, self.label_height - rect.bottom, rect.width, rect.height

    def _baseline(self, top: float, line_height: float, font_size: float) -> float:
        return self.label_height - (top + (line_height + font_size * ASCENT_RATIO) / 2.0)

    def _fill(self, rect: Rect, color: str) -> None:
        self.canvas.setFillColor(_color(color))
        self.canvas.rect(*self._flip(rect), stroke=0, fill=1)

    def _stroke(
        self,
        rect: Rect,
        width: float,
        color: str,
        dash: tuple[float, float] | None = None,
    ) -> None:
        if width <= 0:
            return
        self.canvas.saveState()
        self.canvas.setLineWidth(width)
        self.canvas.setStrokeColor(_color(color))
        if dash:
            self.canvas.setDash(list(dash))
        self.canvas.rect(*self._flip(rect), stroke=1, fill=0)
        self.canvas.restoreState()

    def _clip(self, rect: Rect) -> None:
        path = self.canvas.beginPath()
        path.rect(*self._flip(rect))
        self.canvas.clipPath(path, stroke=0, fill=0)

    def paint(
        self,
        resolved: ResolvedLayout,
        qr_matrix: QRMatrix,
        field_values: Mapping[str, str] | None = None,
        options: PaintOptions | None = None,
    ) -> None:
        options = options or PaintOptions()
        template = resolved.template
        label = resolved.label
        values = field_values or {}

        self.canvas.saveState()
        if has_fill(template.background_color):
            self._fill(label.outer, template.background_color)
        self._clip(label.outer)
        for element in resolved.draw_order:
            if element is LayoutElement.QR:
                self.paint_qr(resolved.qr_rect, qr_matrix)
            else:
                for item in resolved.fields:
                    value = values.get(item.field.id, item.field.field_value)
                    self.paint_field(item, value, resolved.converter)
        self.canvas.restoreState()

        if template.border_enabled:
            self._stroke(label.border_rect, label.border_width, template.border_color)
        self._paint_decorations(resolved, options)

    def paint_qr(self, rect: Rect, matrix: QRMatrix) -> None:
        self._fill(rect, QR_LIGHT)
        self.canvas.setFillColor(_color(QR_DARK))
        x, y, size, _ = self._flip(rect)
        draw_qr_matrix(self.canvas, matrix, x, y, size)

    def paint_field(
        self,
        item: ResolvedField,
        value: str,
        converter: UnitConverter,
    ) -> None:
        field = item.field
        box = item.box
        self.canvas.saveState()
        self._clip(box.outer)
        if has_fill(field.background_color):
            self._fill(box.outer, field.background_color)

        self.canvas.saveState()
        opacity = item.content_opacity
        if opacity < 1.0:
            self.canvas.setFillAlpha(opacity)
            self.canvas.setStrokeAlpha(opacity)
        if field.field_type is FieldType.BLANK:
            self._paint_blank(
                item.content_rect, field.text_color, converter.stroke(BLANK_RULE_WIDTH)
            )
        else:
            self._paint_text(item, value, converter.font(field.font_size))
        self.canvas.restoreState()

        if item.caption:
            self._paint_caption(item)
        if field.border_enabled:
            self._stroke(box.border_rect, box.border_width, field.border_color)
        self.canvas.restoreState()

    def _paint_blank(self, content: Rect, color: str, width: float) -> None:
        if content.width <= 0:
            return
        y = self.label_height - content.bottom + width / 2.0
        self.canvas.setLineWidth(width)
        self.canvas.setStrokeColor(_color(color))
        self.canvas.line(content.left, y, content.right, y)

    def _paint_text(self, item: ResolvedField, value: str, font_size: float) -> None:
        field = item.field
        content = item.content_rect
        font_name = font_for_weight(field.font_weight)
        lines = fit_lines(value, font_name, font_size, content.width, content.height)
        if not lines:
            return

        line_height = font_size * LINE_HEIGHT
        block = line_height * len(lines)
        if field.vertical_align is VerticalAlign.TOP:
            top = content.top
        elif field.vertical_align is VerticalAlign.BOTTOM:
            top = content.bottom - block
        else:
            top = content.top + (content.height - block) / 2.0

        self.canvas.setFont(font_name, font_size)
        self.canvas.setFillColor(_color(field.text_color))
        for index, line in enumerate(lines):
            baseline = self._baseline(top + index * line_height, line_height, font_size)
            if field.text_align is TextAlign.CENTER:
                self.canvas.drawCentredString(content.center[0], baseline, line)
            elif field.text_align is TextAlign.RIGHT:
                self.canvas.drawRightString(content.right, baseline, line)
            else:
                self.canvas.drawString(content.left, baseline, line)

    def _paint_caption(self, item: ResolvedField) -> None:
        caption = item.caption
        if caption is None or not caption.text:
            return
        rect = caption.caption_rect
        self.canvas.setFont(CAPTION_FONT, caption.font_size)
        self.canvas.setFillColor(_color(item.field.label_color, "#666666"))
        self.canvas.drawString(
            rect.left,
            self._baseline(rect.top, rect.height, caption.font_size),
            caption.text,
        )

    def _paint_decorations(self, resolved: ResolvedLayout, options: PaintOptions) -> None:
        stroke = resolved.converter.stroke
        for item in resolved.fields:
            if options.outline_borderless and not item.field.border_enabled:
                self._stroke(item.box.outer, stroke(1), GUIDE_COLOR, (stroke(3), stroke(2)))
            if item.field.id == options.selected_field_id:
                self._stroke(item.box.outer, stroke(2), SELECTION_COLOR)
        if options.flag_overflow and resolved.overflowing:
            self._stroke(resolved.label.outer, stroke(2), OVERFLOW_COLOR)
