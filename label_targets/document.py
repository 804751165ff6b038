"""Batch document target: vector PDF output measured in points."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from io import BytesIO
from typing import Mapping, Sequence

from reportlab.lib.pagesizes import A4, landscape, portrait
from reportlab.pdfgen import canvas

from label_engine.layout import ResolvedLayout
from label_engine.units import UnitConverter
from label_errors import ConfigurationError, RenderFailure
from label_types import LabelTemplate, Orientation
from .base import RenderTarget
from .painter import LabelPainter
from .qr import encode_qr

logger = logging.getLogger(__name__)

SHEET_MARGIN_PT = 20.0
SHEET_SPACING_PT = 5.0


class PagePreset(StrEnum):
    ROLL = "roll"
    SHEET = "sheet"


@dataclass(frozen=True)
class LabelInstance:
    """What goes on one physical label: its QR payload and field text."""

    payload: str
    field_values: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SlotPlacement:
    """Where a label landed, in page points with a bottom-left origin."""

    page_index: int
    slot_index: int
    left: float
    bottom: float
    width: float
    height: float
    rotated: bool = False


@dataclass(frozen=True)
class BatchDocument:
    pdf: bytes
    page_size: tuple[float, float]
    page_count: int
    placements: tuple[SlotPlacement, ...]

    def save(self, path: str) -> None:
        with open(path, "wb") as handle:
            handle.write(self.pdf)


class SlotGrid:
    """Hands out label slots row by row, starting a new page when full."""

    def __init__(
        self,
        page_size: tuple[float, float],
        slot_size: tuple[float, float],
        columns: int,
        rows: int,
        margin: float = 0.0,
        spacing: float = 0.0,
        rotated: bool = False,
    ) -> None:
        if columns < 1 or rows < 1:
            raise ConfigurationError(
                f"A {slot_size[0]:.1f}x{slot_size[1]:.1f}pt label does not fit on a "
                f"{page_size[0]:.0f}x{page_size[1]:.0f}pt page"
            )
        self.page_size = page_size
        self.slot_size = slot_size
        self.columns = columns
        self.rows = rows
        self.margin = margin
        self.spacing = spacing
        self.rotated = rotated
        self.reset()

    @property
    def slots_per_page(self) -> int:
        return self.columns * self.rows

    def reset(self) -> None:
        self._index = 0

    def next_slot(self) -> SlotPlacement:
        page_index, slot_index = divmod(self._index, self.slots_per_page)
        row, col = divmod(slot_index, self.columns)
        width, height = self.slot_size
        _, page_height = self.page_size
        left = self.margin + col * (width + self.spacing)
        bottom = page_height - self.margin - height - row * (height + self.spacing)
        self._index += 1
        return SlotPlacement(page_index, slot_index, left, bottom, width, height, self.rotated)


def _needs_rotation(orientation: Orientation, width: float, height: float) -> bool:
    """Landscape templates taller than wide are turned onto their side."""

    return orientation is Orientation.LANDSCAPE and height > width


def parse_preset(value: PagePreset | str) -> PagePreset:
    try:
        return PagePreset(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(p.value for p in PagePreset)
        raise ConfigurationError(f"Unknown page preset '{value}' (choose from {choices})") from exc


def roll_grid(template: LabelTemplate, label_size: tuple[float, float]) -> SlotGrid:
    width, height = label_size
    rotated = _needs_rotation(template.orientation, width, height)
    page = (height, width) if rotated else (width, height)
    return SlotGrid(page, page, 1, 1, rotated=rotated)


def sheet_grid(template: LabelTemplate, label_size: tuple[float, float]) -> SlotGrid:
    if template.orientation is Orientation.LANDSCAPE:
        page = landscape(A4)
    else:
        page = portrait(A4)
    width, height = label_size
    margin, spacing = SHEET_MARGIN_PT, SHEET_SPACING_PT
    columns = int((page[0] - 2 * margin + spacing) // (width + spacing))
    rows = int((page[1] - 2 * margin + spacing) // (height + spacing))
    return SlotGrid(page, label_size, columns, rows, margin, spacing)


class BatchDocumentTarget(RenderTarget):
    name = "document"

    def converter_for(self, template: LabelTemplate) -> UnitConverter:
        return UnitConverter.document()

    def slot_grid(self, resolved: ResolvedLayout, preset: PagePreset | str) -> SlotGrid:
        if parse_preset(preset) is PagePreset.SHEET:
            return sheet_grid(resolved.template, resolved.size)
        return roll_grid(resolved.template, resolved.size)

    def render(  # type: ignore[override]
        self,
        template: LabelTemplate,
        labels: Sequence[LabelInstance],
        preset: PagePreset | str = PagePreset.ROLL,
    ) -> BatchDocument:
        return self.render_resolved(self.resolve(template), labels, preset)

    def render_resolved(
        self,
        resolved: ResolvedLayout,
        labels: Sequence[LabelInstance],
        preset: PagePreset | str = PagePreset.ROLL,
    ) -> BatchDocument:
        if not labels:
            raise ConfigurationError("A batch document needs at least one label")
        grid = self.slot_grid(resolved, preset)
        buffer = BytesIO()
        canvas_obj = canvas.Canvas(buffer, pagesize=grid.page_size)
        canvas_obj.setTitle(resolved.template.name or "QR labels")

        placements: list[SlotPlacement] = []
        for index, label in enumerate(labels):
            placement = grid.next_slot()
            if placement.slot_index == 0 and index > 0:
                canvas_obj.showPage()
            self._draw_label(canvas_obj, resolved, placement, label)
            placements.append(placement)

        canvas_obj.showPage()
        canvas_obj.save()
        page_count = placements[-1].page_index + 1
        logger.debug(
            "Drew %d labels on %d %s pages", len(placements), page_count, parse_preset(preset)
        )
        return BatchDocument(
            pdf=buffer.getvalue(),
            page_size=grid.page_size,
            page_count=page_count,
            placements=tuple(placements),
        )

    def _draw_label(
        self,
        canvas_obj: canvas.Canvas,
        resolved: ResolvedLayout,
        placement: SlotPlacement,
        label: LabelInstance,
    ) -> None:
        matrix = encode_qr(label.payload)
        canvas_obj.saveState()
        try:
            if placement.rotated:
                canvas_obj.translate(placement.left + placement.width, placement.bottom)
                canvas_obj.rotate(90)
            else:
                canvas_obj.translate(placement.left, placement.bottom)
            painter = LabelPainter(canvas_obj, resolved.label.outer.height)
            painter.paint(resolved, matrix, label.field_values)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise RenderFailure(
                f"Drawing label {placement.page_index}:{placement.slot_index} failed: {exc}"
            ) from exc
        finally:
            canvas_obj.restoreState()


Target = BatchDocumentTarget
