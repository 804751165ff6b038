"""Label layout: QR block and field stack placement in millimetres.

``compute_layout`` is the single source of geometry for every render target.
It works in millimetres with a top-left origin; ``LabelLayout.project``
converts the result into a target's units through a :class:`UnitConverter`
and resolves each field's box and caption.

Two modes exist. In QR-only mode (``show_additional_info`` false) the label
is forced square around the QR block and fields are ignored. Otherwise the
QR block and the field stack are laid out like two flex items along
``layout_direction``, 2mm apart, aligned per ``items_alignment``. Content is
never shrunk to fit: anything that leaves the padded area is reported as a
:class:`LayoutOverflow` warning and drawn as-is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from label_errors import ConfigurationError, LayoutOverflow
from label_types import (
    FieldLayout,
    ItemsAlignment,
    LabelTemplate,
    LabelTemplateField,
    QRPosition,
)
from label_engine.anchors import CaptionPlacement, resolve_caption
from label_engine.box_model import ResolvedBox, resolve_box
from label_engine.geometry import Rect
from label_engine.units import UnitConverter, validate_resolution

logger = logging.getLogger(__name__)

QR_FIELDS_GAP_MM = 2.0
OVERFLOW_EPSILON_MM = 1e-6


class LayoutElement(StrEnum):
    QR = "qr"
    FIELDS = "fields"


@dataclass(frozen=True)
class FieldSlot:
    field: LabelTemplateField
    rect: Rect


@dataclass(frozen=True)
class ResolvedField:
    field: LabelTemplateField
    box: ResolvedBox
    caption: CaptionPlacement | None

    @property
    def content_rect(self) -> Rect:
        return self.caption.content_rect if self.caption else self.box.inner

    @property
    def content_opacity(self) -> float:
        return self.caption.content_opacity if self.caption else 1.0


@dataclass(frozen=True)
class ResolvedLayout:
    """Layout projected into one target's units."""

    template: LabelTemplate
    converter: UnitConverter
    label: ResolvedBox
    content_rect: Rect
    qr_rect: Rect
    fields_container_rect: Rect | None
    fields: tuple[ResolvedField, ...]
    draw_order: tuple[LayoutElement, ...]
    warnings: tuple[LayoutOverflow, ...]

    @property
    def size(self) -> tuple[float, float]:
        return self.label.outer.width, self.label.outer.height

    @property
    def field_rects(self) -> list[Rect]:
        return [item.box.outer for item in self.fields]

    @property
    def overflowing(self) -> bool:
        return bool(self.warnings)

    def field_at(self, x: float, y: float) -> LabelTemplateField | None:
        """Hit-test a point; later fields win where rects overlap."""

        for item in reversed(self.fields):
            if item.box.outer.contains_point(x, y):
                return item.field
        return None


@dataclass(frozen=True)
class LabelLayout:
    """Resolved label geometry in millimetres."""

    template: LabelTemplate
    label_rect: Rect
    content_rect: Rect
    qr_rect: Rect
    fields_container_rect: Rect | None
    field_slots: tuple[FieldSlot, ...]
    draw_order: tuple[LayoutElement, ...]
    warnings: tuple[LayoutOverflow, ...]

    @property
    def qr_only(self) -> bool:
        return self.template.qr_only

    @property
    def critical_warnings(self) -> list[LayoutOverflow]:
        return [w for w in self.warnings if w.critical]

    def project(self, converter: UnitConverter) -> ResolvedLayout:
        snap = converter.is_raster

        def _rect(rect_mm: Rect) -> Rect:
            rect = converter.rect(rect_mm)
            return rect.snapped() if snap else rect

        def _box(rect_mm: Rect, padding, border) -> ResolvedBox:
            box = resolve_box(rect_mm, padding, border, converter)
            if not snap:
                return box
            return ResolvedBox(box.outer.snapped(), box.inner.snapped(), box.border_width)

        label_box = _box(self.label_rect, self.template.padding, self.template.border)
        fields: list[ResolvedField] = []
        for slot in self.field_slots:
            box = _box(slot.rect, slot.field.padding, slot.field.border)
            fields.append(
                ResolvedField(
                    field=slot.field,
                    box=box,
                    caption=resolve_caption(slot.field, box, converter),
                )
            )

        container = self.fields_container_rect
        return ResolvedLayout(
            template=self.template,
            converter=converter,
            label=label_box,
            content_rect=_rect(self.content_rect),
            qr_rect=_rect(self.qr_rect),
            fields_container_rect=_rect(container) if container else None,
            fields=tuple(fields),
            draw_order=self.draw_order,
            warnings=self.warnings,
        )


def validate_template(template: LabelTemplate) -> None:
    """Reject geometry no layout can be computed for."""

    validate_resolution(template.dpi)
    if template.qr_size_mm <= 0:
        raise ConfigurationError(f"qr_size_mm must be positive (got {template.qr_size_mm})")
    if not template.qr_only and (template.width_mm <= 0 or template.height_mm <= 0):
        raise ConfigurationError(
            f"Label size must be positive (got {template.width_mm}x{template.height_mm}mm)"
        )
    padding = template.padding
    if min(padding.top, padding.right, padding.bottom, padding.left) < 0:
        raise ConfigurationError("Label padding cannot be negative")
    if template.field_vertical_gap < 0:
        raise ConfigurationError("field_vertical_gap cannot be negative")
    if template.qr_only:
        return
    for item in template.fields:
        if item.height_mm <= 0 or item.width_mm < 0:
            raise ConfigurationError(
                f"Field '{item.field_name or item.id}' has a non-positive size"
            )


def compute_layout(template: LabelTemplate) -> LabelLayout:
    validate_template(template)
    if template.qr_only:
        layout = _qr_only_layout(template)
    else:
        layout = _composite_layout(template)
    for warning in layout.warnings:
        logger.warning("Template %s: %s", template.id, warning)
    return layout


def _place_qr(position: QRPosition, area: Rect, size: float) -> Rect:
    value = position.value
    if "left" in value:
        x = area.left
    elif "right" in value:
        x = area.right - size
    else:
        x = area.left + (area.width - size) / 2.0
    if value.startswith("top"):
        y = area.top
    elif value.startswith("bottom"):
        y = area.bottom - size
    else:
        y = area.top + (area.height - size) / 2.0
    return Rect(x, y, size, size)


def _qr_only_layout(template: LabelTemplate) -> LabelLayout:
    padding = template.padding
    qr_size = template.qr_size_mm
    side = qr_size + max(padding.left + padding.right, padding.top + padding.bottom)
    label = Rect(0.0, 0.0, side, side)
    content = label.inset(padding.top, padding.right, padding.bottom, padding.left)
    return LabelLayout(
        template=template,
        label_rect=label,
        content_rect=content,
        qr_rect=_place_qr(template.qr_position, content, qr_size),
        fields_container_rect=None,
        field_slots=(),
        draw_order=(LayoutElement.QR,),
        warnings=(),
    )


def _justify(alignment: ItemsAlignment, free: float) -> float:
    if alignment is ItemsAlignment.START:
        return 0.0
    if alignment is ItemsAlignment.END:
        return free
    return free / 2.0


def _cross(alignment: ItemsAlignment, start: float, span: float, size: float) -> float:
    return start + _justify(alignment, span - size)


def _stack_fields(
    fields: list[LabelTemplateField],
    container: Rect,
    top: float,
    gap: float,
) -> list[FieldSlot]:
    slots: list[FieldSlot] = []
    y = top
    for item in fields:
        slots.append(FieldSlot(item, Rect(container.left, y, container.width, item.height_mm)))
        y += item.height_mm + gap
    return slots


def _composite_layout(template: LabelTemplate) -> LabelLayout:
    padding = template.padding
    label = Rect(0.0, 0.0, template.width_mm, template.height_mm)
    content = label.inset(padding.top, padding.right, padding.bottom, padding.left)
    direction = template.layout_direction
    alignment = template.items_alignment
    qr_size = template.qr_size_mm
    fields = template.sorted_fields()
    vgap = template.field_vertical_gap
    stack_height = sum(f.height_mm for f in fields) + vgap * max(len(fields) - 1, 0)

    order = [LayoutElement.QR]
    if fields:
        order.append(LayoutElement.FIELDS)
    if direction.is_reversed:
        order.reverse()

    warnings: list[LayoutOverflow] = []
    container: Rect | None = None
    slots: list[FieldSlot] = []

    if direction.is_row:
        stack_width = content.width - qr_size - QR_FIELDS_GAP_MM if fields else 0.0
        if fields and stack_width < 0:
            warnings.append(LayoutOverflow("QR block and field stack", -stack_width))
            stack_width = 0.0
        sizes = {LayoutElement.QR: qr_size, LayoutElement.FIELDS: stack_width}
        used = sum(sizes[e] for e in order) + QR_FIELDS_GAP_MM * (len(order) - 1)
        cursor = content.left + _justify(alignment, content.width - used)
        starts: dict[LayoutElement, float] = {}
        for element in order:
            starts[element] = cursor
            cursor += sizes[element] + QR_FIELDS_GAP_MM
        qr_rect = Rect(
            starts[LayoutElement.QR],
            _cross(alignment, content.top, content.height, qr_size),
            qr_size,
            qr_size,
        )
        if fields:
            container = Rect(starts[LayoutElement.FIELDS], content.top, stack_width, content.height)
            top = container.top + (container.height - stack_height) / 2.0
            slots = _stack_fields(fields, container, top, vgap)
    else:
        sizes = {LayoutElement.QR: qr_size, LayoutElement.FIELDS: stack_height}
        used = sum(sizes[e] for e in order) + QR_FIELDS_GAP_MM * (len(order) - 1)
        cursor = content.top + _justify(alignment, content.height - used)
        starts = {}
        for element in order:
            starts[element] = cursor
            cursor += sizes[element] + QR_FIELDS_GAP_MM
        qr_rect = Rect(
            _cross(alignment, content.left, content.width, qr_size),
            starts[LayoutElement.QR],
            qr_size,
            qr_size,
        )
        if fields:
            container = Rect(content.left, starts[LayoutElement.FIELDS], content.width, stack_height)
            slots = _stack_fields(fields, container, container.top, vgap)

    if template.field_layout is FieldLayout.ABSOLUTE and fields:
        slots = [
            FieldSlot(f, Rect(f.position_x, f.position_y, f.width_mm, f.height_mm))
            for f in fields
        ]
        container = slots[0].rect
        for slot in slots[1:]:
            container = container.union(slot.rect)

    warnings.extend(_overflow_warnings(label, content, qr_rect, slots))
    return LabelLayout(
        template=template,
        label_rect=label,
        content_rect=content,
        qr_rect=qr_rect,
        fields_container_rect=container,
        field_slots=tuple(slots),
        draw_order=tuple(order),
        warnings=tuple(warnings),
    )


def _overflow_warnings(
    label: Rect,
    content: Rect,
    qr_rect: Rect,
    slots: list[FieldSlot],
) -> list[LayoutOverflow]:
    warnings: list[LayoutOverflow] = []
    amount = content.overflow(qr_rect)
    if amount > OVERFLOW_EPSILON_MM:
        critical = label.overflow(qr_rect) > OVERFLOW_EPSILON_MM
        warnings.append(LayoutOverflow("QR block", amount, critical=critical))
    for slot in slots:
        amount = content.overflow(slot.rect)
        if amount > OVERFLOW_EPSILON_MM:
            name = slot.field.field_name or slot.field.id
            warnings.append(LayoutOverflow(f"Field '{name}'", amount))
    return warnings
