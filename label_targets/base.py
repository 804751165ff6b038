"""Abstract base class for render targets."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Mapping

import fitz
from PIL import Image
from reportlab.pdfgen import canvas

from label_engine.config import EngineConfig
from label_engine.layout import LabelLayout, ResolvedLayout, compute_layout
from label_engine.units import UnitConverter
from label_errors import RenderFailure
from label_types import LabelTemplate
from .painter import LabelPainter, PaintOptions
from .qr import encode_qr

logger = logging.getLogger(__name__)

SAMPLE_TOKEN = "qr_preview_sample"


@dataclass(frozen=True)
class RasterImage:
    """PNG bytes plus the pixel size and physical resolution they carry."""

    png: bytes
    width: int
    height: int
    ppi: float


class RenderTarget(ABC):
    """Projects the shared layout into one output surface."""

    name = ""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()

    @abstractmethod
    def converter_for(self, template: LabelTemplate) -> UnitConverter:
        """Return the unit converter this target draws with."""

    def layout_for(self, template: LabelTemplate) -> LabelLayout:
        return compute_layout(template)

    def resolve(self, template: LabelTemplate) -> ResolvedLayout:
        converter = self.converter_for(template)
        resolved = self.layout_for(template).project(converter)
        logger.debug(
            "%s target projected template %s at %s (dpi=%s zoom=%s)",
            self.name,
            template.id,
            resolved.size,
            converter.dpi,
            converter.zoom,
        )
        return resolved

    @abstractmethod
    def render(self, template: LabelTemplate, *args: Any, **kwargs: Any) -> Any:
        """Draw ``template`` and return the target's artifact."""


class RasterTarget(RenderTarget):
    """Targets that produce PNG images measured in device pixels."""

    def scale_for(self, template: LabelTemplate) -> float:
        return 1.0

    def converter_for(self, template: LabelTemplate) -> UnitConverter:
        return UnitConverter.raster(
            self.config.effective_dpi(template.dpi),
            self.scale_for(template),
        )

    def render_resolved(
        self,
        resolved: ResolvedLayout,
        payload: str = SAMPLE_TOKEN,
        field_values: Mapping[str, str] | None = None,
        options: PaintOptions | None = None,
    ) -> RasterImage:
        width = max(int(round(resolved.label.outer.width)), 1)
        height = max(int(round(resolved.label.outer.height)), 1)
        matrix = encode_qr(payload)

        buffer = BytesIO()
        canvas_obj = canvas.Canvas(buffer, pagesize=(width, height))
        LabelPainter(canvas_obj, height).paint(resolved, matrix, field_values, options)
        canvas_obj.showPage()
        canvas_obj.save()

        converter = resolved.converter
        ppi = converter.dpi * converter.zoom
        png_bytes = rasterize_pdf(buffer.getvalue(), ppi)
        return RasterImage(png=png_bytes, width=width, height=height, ppi=ppi)


def rasterize_pdf(pdf_bytes: bytes, ppi: float) -> bytes:
    """Rasterize a page drawn in pixel-sized points and stamp ``ppi`` into it."""

    try:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            page = doc.load_page(0)
            pix = page.get_pixmap(dpi=72)
            original_png = pix.tobytes("png")

        with Image.open(BytesIO(original_png)) as img:
            output = BytesIO()
            img.save(output, format="PNG", dpi=(ppi, ppi))
            return output.getvalue()
    except (RuntimeError, ValueError, OSError) as exc:
        raise RenderFailure(f"Rasterization failed: {exc}") from exc
